"""
Antenna Tracking State Machine

    MANUAL ---enable auto-track---> ACQUIRING ---candidate found---> LOCKED
      ^                               |    ^                           |
      |                         window |    | re-enable / lock lost     |
      |                        expired v    |                           |
      +------ manual edit ------- FAILED ---+        manual az/el edit -+

A manual azimuth/elevation edit always breaks lock synchronously and turns
auto-track off. Skew is independent of the lock state. Loopback routes TX
into RX and takes tracking out of the picture for reception.
"""
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Optional, Sequence

from core.alarms import AlarmSeverity, AlarmStatus
from core.equipment import Antenna
from core.errors import OutOfRangeError, UnpoweredEquipmentError
from core.rf_models import RfSignal, SignalOrigin
from core.rf_utils import (angular_difference_deg, atmospheric_loss_db, free_space_path_loss_db,
                           geo_slant_range_km, polarization_mismatch_loss_db,
                           sky_temperature_k, wrap_azimuth)
from core.sim_config import TrackingConfig

logger = logging.getLogger(__name__)

# Reference C-band downlink frequency for advisory metrics
METRICS_FREQUENCY_HZ = 4e9


class LockState(Enum):
    MANUAL = "manual"
    ACQUIRING = "acquiring"
    LOCKED = "locked"
    FAILED = "failed"


@dataclass
class TrackingSnapshot:
    """Antenna tracking state as exposed to rendering and persistence."""
    index: int
    is_powered: bool
    azimuth_deg: float
    elevation_deg: float
    skew_deg: float
    is_auto_track: bool
    lock_state: LockState
    is_loopback: bool
    locked_signal_id: Optional[str] = None
    acquisition_elapsed_ms: float = 0.0
    visible_signal_count: int = 0

    # Advisory only; never fed back into displayed power
    sky_temperature_k: float = 0.0
    atmospheric_loss_db: float = 0.0
    polarization_loss_db: float = 0.0
    path_loss_db: float = 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data['lock_state'] = self.lock_state.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'TrackingSnapshot':
        values = dict(data)
        values['lock_state'] = LockState(values['lock_state'])
        return cls(**values)


class AntennaTracker:
    """
    Pointing and auto-track control for one antenna.

    The tracker is the only writer of the antenna's pointing fields.
    """

    def __init__(self, antenna: Antenna, config: Optional[TrackingConfig] = None, index: int = 1):
        self.antenna = antenna
        self.config = config or TrackingConfig()
        self.index = index

        self.antenna.azimuth_deg = wrap_azimuth(self.config.default_azimuth_deg)
        self.antenna.elevation_deg = self.config.default_elevation_deg
        self.antenna.skew_deg = self.config.default_skew_deg

        self.lock_state = LockState.MANUAL
        self.is_auto_track = False
        self.locked_signal_id: Optional[str] = None
        self._acquisition_elapsed_ms = 0.0
        self._visible_count = 0

    # -----------------------------------------------------
    # Controls
    # -----------------------------------------------------

    def set_power(self, is_powered: bool) -> None:
        self.antenna.is_powered = bool(is_powered)
        if not self.antenna.is_powered:
            self._drop_lock()
            self.lock_state = LockState.MANUAL
            logger.info(f"[ANT {self.index}] Powered off, tracking reset")

    def set_pointing(self, azimuth_deg: float, elevation_deg: float) -> None:
        """
        Manual pointing edit.

        Raises:
            UnpoweredEquipmentError: antenna is off
            OutOfRangeError: elevation outside [0, 90]
        """
        self._require_power()
        if not 0.0 <= elevation_deg <= 90.0:
            raise OutOfRangeError("elevation_deg", elevation_deg, 0.0, 90.0)

        azimuth_deg = wrap_azimuth(azimuth_deg)
        if azimuth_deg == self.antenna.azimuth_deg and elevation_deg == self.antenna.elevation_deg:
            return

        self.antenna.azimuth_deg = azimuth_deg
        self.antenna.elevation_deg = elevation_deg

        if self.lock_state is not LockState.MANUAL or self.is_auto_track:
            if self.lock_state is LockState.LOCKED:
                logger.info(f"[ANT {self.index}] Manual pointing edit broke lock on {self.locked_signal_id}")
            self._drop_lock()
            self.lock_state = LockState.MANUAL

    def set_skew(self, skew_deg: float) -> None:
        self._require_power()
        if not -90.0 <= skew_deg <= 90.0:
            raise OutOfRangeError("skew_deg", skew_deg, -90.0, 90.0)
        self.antenna.skew_deg = skew_deg

    def toggle_auto_track(self) -> LockState:
        self._require_power()
        if self.is_auto_track:
            self._drop_lock()
            self.lock_state = LockState.MANUAL
            logger.info(f"[ANT {self.index}] Auto-track disabled")
        else:
            self.is_auto_track = True
            self._acquisition_elapsed_ms = 0.0
            self.lock_state = LockState.ACQUIRING
            logger.info(f"[ANT {self.index}] Auto-track enabled, acquiring")
        return self.lock_state

    def set_loopback(self, enabled: bool) -> None:
        self._require_power()
        self.antenna.is_loopback = bool(enabled)

    def toggle_loopback(self) -> bool:
        self.set_loopback(not self.antenna.is_loopback)
        return self.antenna.is_loopback

    def _require_power(self) -> None:
        if not self.antenna.is_powered:
            raise UnpoweredEquipmentError(f"Antenna {self.index}")

    def _drop_lock(self) -> None:
        self.is_auto_track = False
        self.locked_signal_id = None
        self._acquisition_elapsed_ms = 0.0

    # -----------------------------------------------------
    # Tick
    # -----------------------------------------------------

    def is_pointed_at(self, azimuth_deg: float, elevation_deg: float) -> bool:
        tol = self.config.pointing_tolerance_deg
        return (angular_difference_deg(azimuth_deg, self.antenna.azimuth_deg) <= tol
                and abs(elevation_deg - self.antenna.elevation_deg) <= tol)

    def _qualifies(self, sig: RfSignal) -> bool:
        return (sig.origin is SignalOrigin.SATELLITE
                and sig.azimuth_deg is not None and sig.elevation_deg is not None
                and sig.power_dbm >= self.config.acquisition_threshold_dbm
                and self.is_pointed_at(sig.azimuth_deg, sig.elevation_deg))

    def update(self, dt_ms: float, candidates: Sequence[RfSignal]) -> LockState:
        """
        Advance acquisition or lock maintenance by one tick.

        Args:
            dt_ms: Milliseconds since the previous tick
            candidates: Satellite signals arriving at the station this tick

        Returns:
            The lock state after the update
        """
        if not self.antenna.is_powered:
            self._visible_count = 0
            return self.lock_state

        if self.lock_state is LockState.ACQUIRING:
            self._acquisition_elapsed_ms += dt_ms
            qualifying = [s for s in candidates if self._qualifies(s)]
            if qualifying:
                target = max(qualifying, key=lambda s: s.power_dbm)
                self._lock_on(target)
            elif self._acquisition_elapsed_ms >= self.config.acquisition_window_ms:
                logger.warning(f"[ANT {self.index}] Acquisition timed out after "
                               f"{self._acquisition_elapsed_ms:.0f} ms, no signal within "
                               f"{self.config.pointing_tolerance_deg} deg")
                self._drop_lock()
                self.lock_state = LockState.FAILED

        elif self.lock_state is LockState.LOCKED:
            target = next((s for s in candidates
                           if s.signal_id == self.locked_signal_id and self._qualifies(s)), None)
            if target is not None:
                # Follow the satellite while it stays within tolerance
                self.antenna.azimuth_deg = wrap_azimuth(target.azimuth_deg)
                self.antenna.elevation_deg = target.elevation_deg
            else:
                logger.warning(f"[ANT {self.index}] Lost lock on {self.locked_signal_id}, re-acquiring")
                self.locked_signal_id = None
                self._acquisition_elapsed_ms = 0.0
                self.lock_state = LockState.ACQUIRING

        self._visible_count = len(self.visible_signals(candidates))
        return self.lock_state

    def _lock_on(self, target: RfSignal) -> None:
        self.antenna.azimuth_deg = wrap_azimuth(target.azimuth_deg)
        self.antenna.elevation_deg = target.elevation_deg
        self.locked_signal_id = target.signal_id
        self.lock_state = LockState.LOCKED
        logger.info(f"[ANT {self.index}] Locked on {target.signal_id} at "
                    f"az={self.antenna.azimuth_deg:.1f} el={self.antenna.elevation_deg:.1f}")

    def visible_signals(self, signals: Sequence[RfSignal]) -> List[RfSignal]:
        """
        Gate satellite carriers by pointing and lock state.

        Transmit carriers pass untouched. Satellite carriers without an
        arrival direction are not gated. Directional carriers need a powered
        antenna that is not slewing (Acquiring) and points within tolerance.
        """
        visible = []
        for sig in signals:
            if sig.origin is not SignalOrigin.SATELLITE or sig.azimuth_deg is None:
                visible.append(sig)
                continue
            if not self.antenna.is_powered or self.lock_state is LockState.ACQUIRING:
                continue
            if self.is_pointed_at(sig.azimuth_deg, sig.elevation_deg):
                visible.append(sig)
        return visible

    # -----------------------------------------------------
    # Status and persistence
    # -----------------------------------------------------

    def get_status_alarms(self) -> List[AlarmStatus]:
        if not self.antenna.is_powered:
            return [AlarmStatus(AlarmSeverity.OFF, "Antenna off")]

        alarms = []
        if abs(self.antenna.skew_deg) > self.config.skew_warning_deg:
            alarms.append(AlarmStatus(AlarmSeverity.WARNING, "HIGH POLARIZATION"))

        if self.antenna.is_loopback:
            alarms.append(AlarmStatus(AlarmSeverity.INFO, "LOOPBACK ENABLED"))
            return alarms

        if self.lock_state is LockState.ACQUIRING:
            alarms.append(AlarmStatus(AlarmSeverity.WARNING, "ACQUIRING LOCK..."))
        elif self.lock_state is LockState.FAILED:
            alarms.append(AlarmStatus(AlarmSeverity.WARNING, "AUTO TRACK FAILED"))
        elif self.lock_state is LockState.LOCKED:
            if self._visible_count == 0:
                alarms.append(AlarmStatus(AlarmSeverity.WARNING, "LOCKED - NO SIGNALS RECEIVED"))
            else:
                alarms.append(AlarmStatus(AlarmSeverity.SUCCESS, "LOCKED ON SATELLITE"))
        else:
            alarms.append(AlarmStatus(AlarmSeverity.INFO, "Manual Tracking Enabled"))
        return alarms

    def snapshot(self) -> TrackingSnapshot:
        ant = self.antenna
        return TrackingSnapshot(
            index=self.index,
            is_powered=ant.is_powered,
            azimuth_deg=ant.azimuth_deg,
            elevation_deg=ant.elevation_deg,
            skew_deg=ant.skew_deg,
            is_auto_track=self.is_auto_track,
            lock_state=self.lock_state,
            is_loopback=ant.is_loopback,
            locked_signal_id=self.locked_signal_id,
            acquisition_elapsed_ms=self._acquisition_elapsed_ms,
            visible_signal_count=self._visible_count,
            sky_temperature_k=sky_temperature_k(ant.elevation_deg),
            atmospheric_loss_db=atmospheric_loss_db(METRICS_FREQUENCY_HZ, ant.elevation_deg),
            polarization_loss_db=polarization_mismatch_loss_db('H', 'H', ant.skew_deg),
            path_loss_db=free_space_path_loss_db(METRICS_FREQUENCY_HZ, geo_slant_range_km(ant.elevation_deg)),
        )

    def restore(self, snapshot: TrackingSnapshot) -> None:
        ant = self.antenna
        ant.is_powered = snapshot.is_powered
        ant.azimuth_deg = snapshot.azimuth_deg
        ant.elevation_deg = snapshot.elevation_deg
        ant.skew_deg = snapshot.skew_deg
        ant.is_loopback = snapshot.is_loopback
        self.is_auto_track = snapshot.is_auto_track
        self.lock_state = snapshot.lock_state
        self.locked_signal_id = snapshot.locked_signal_id
        self._acquisition_elapsed_ms = snapshot.acquisition_elapsed_ms
        self._visible_count = snapshot.visible_signal_count
