"""
Ground station simulation core.

GroundStation is the explicit owner of one RF front end, the signal path
resolver borrowing it, the antenna tracker, the spectrum analyzer and the
alarm aggregator. Each tick runs one complete pass in a fixed order:

    resolve signal paths -> analyzer traces -> tracking -> alarms

Control intents validate at this boundary and return a ControlResult
instead of raising, so a rejected edit never reaches the numeric core.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.alarms import AlarmAggregator, AlarmSnapshot, AlarmSourceEntry
from core.antenna_tracking import AntennaTracker, LockState, TrackingSnapshot
from core.equipment import RfFrontEnd
from core.errors import ControlRejected, UnknownEquipmentError, rejection_to_dict
from core.rf_models import RfSignal, SignalOrigin, TapPoint
from core.rf_utils import NEG_INF
from core.sim_config import SimulationConfig
from core.signal_path import NoiseFloor, SignalPathResolver, apply_interference
from core.spectrum_analyzer import (AnalyzerSnapshot, AutoTuneResult, LockedControl,
                                    ScreenMode, SpectrumAnalyzer, TapSlot)
from core.traces import TraceMode

logger = logging.getLogger(__name__)


@dataclass
class ControlResult:
    """Outcome of a control intent: success (with an optional value) or a typed rejection."""
    ok: bool
    error: Optional[ControlRejected] = None
    value: Any = None

    @classmethod
    def success(cls, value: Any = None) -> 'ControlResult':
        return cls(ok=True, value=value)

    @classmethod
    def rejected(cls, error: ControlRejected) -> 'ControlResult':
        return cls(ok=False, error=error)

    def to_dict(self) -> dict:
        return {'ok': self.ok, 'error': rejection_to_dict(self.error)}


class GroundStation:
    """
    One simulated ground station: front end, antenna, analyzer and alarms.

    Args:
        config: Simulation configuration; defaults are used when omitted
        front_end: Pre-built front end (e.g. restored from persistence)
        on_alarm_change: Optional callback receiving each changed AlarmSnapshot
    """

    def __init__(self, config: Optional[SimulationConfig] = None,
                 front_end: Optional[RfFrontEnd] = None,
                 on_alarm_change: Optional[Callable[[AlarmSnapshot], None]] = None):
        self.config = config or SimulationConfig()
        self.config.validate()

        self.front_end = front_end or RfFrontEnd()
        self.resolver = SignalPathResolver(self.front_end, self.config.analyzer.noise_figure_db)
        self.tracker = AntennaTracker(self.front_end.antenna, self.config.tracking,
                                      index=self.front_end.index)
        self.analyzer = SpectrumAnalyzer(self.resolver, self.config.analyzer)
        self.alarm_aggregator = AlarmAggregator(self.config.asset_id,
                                                self.config.alarms.poll_interval_ms,
                                                on_change=on_alarm_change)
        self.tick_count = 0

    @property
    def asset_id(self) -> str:
        return self.config.asset_id

    # -----------------------------------------------------
    # Read-only queries
    # -----------------------------------------------------

    def resolve_gain(self, tap: TapPoint) -> float:
        return self.resolver.gain_to(tap)

    def resolve_noise_floor(self, tap: TapPoint, bandwidth_hz: float) -> NoiseFloor:
        return self.resolver.noise_floor_at(tap, bandwidth_hz)

    # -----------------------------------------------------
    # Tick
    # -----------------------------------------------------

    def tick(self, dt_ms: float, active_signals: Iterable[RfSignal]) -> AnalyzerSnapshot:
        """
        Run one full simulation pass.

        Args:
            dt_ms: Milliseconds since the previous tick
            active_signals: Satellite downlinks and transmitter carriers present now

        Returns:
            AnalyzerSnapshot carrying traces, markers, tracking and alarm state
        """
        signals = list(active_signals)

        # Step 1: Resolve signal paths (tracking gate, loopback, interference)
        routed = self._route_signals(signals)

        # Step 2: Analyzer traces
        snapshot = self.analyzer.tick(dt_ms, routed)

        # Step 3: Tracking
        self.tracker.update(dt_ms, [s for s in signals if s.origin is SignalOrigin.SATELLITE])

        # Step 4: Alarms
        self.alarm_aggregator.update(dt_ms, self.alarm_entries)

        snapshot.tracking = self.tracker.snapshot().to_dict()
        snapshot.alarms = self.alarm_aggregator.current.to_dict()
        self.tick_count += 1
        return snapshot

    def _route_signals(self, signals: List[RfSignal]) -> List[RfSignal]:
        uplink = [s for s in signals if s.origin.is_uplink]

        buc_gain = self.resolver.gain_to(TapPoint.TX_RF_POST_BUC)
        hpa_gain = self.resolver.gain_to(TapPoint.TX_RF_POST_HPA)
        self.front_end.update_levels(
            [s.with_power(s.power_dbm + buc_gain) for s in uplink],
            [s.with_power(s.power_dbm + hpa_gain) for s in uplink],
        )

        antenna = self.front_end.antenna
        if antenna.is_powered and antenna.is_loopback:
            # TX leaves the OMT at RF and is fed straight back into the receive chain
            radiated = self.resolver.signals_at(TapPoint.TX_RF_POST_OMT, uplink)
            downlink = [ts.signal.with_power(ts.power_dbm, origin=SignalOrigin.LOOPBACK)
                        for ts in radiated if ts.power_dbm != NEG_INF]
        else:
            received = [s for s in signals if not s.origin.is_uplink]
            downlink = apply_interference(self.tracker.visible_signals(received))

        return uplink + downlink

    def alarm_entries(self) -> List[AlarmSourceEntry]:
        index = self.front_end.index
        return [
            ('ANT', index, self.tracker.get_status_alarms()),
            ('RF', index, self.front_end.get_status_alarms()),
            ('SPECA', index, self.analyzer.get_status_alarms()),
        ]

    # -----------------------------------------------------
    # Control intents
    # -----------------------------------------------------

    def _control(self, name: str, action: Callable, *args) -> ControlResult:
        try:
            value = action(*args)
        except ControlRejected as e:
            logger.warning(f"[{self.asset_id}] {name} rejected: {e}")
            return ControlResult.rejected(e)
        return ControlResult.success(value)

    def set_center_frequency(self, frequency_hz: float) -> ControlResult:
        return self._control("set_center_frequency", self.analyzer.set_center_frequency, frequency_hz)

    def set_span(self, span_hz: float) -> ControlResult:
        return self._control("set_span", self.analyzer.set_span, span_hz)

    def set_start_frequency(self, frequency_hz: float) -> ControlResult:
        return self._control("set_start_frequency", self.analyzer.set_start_frequency, frequency_hz)

    def set_stop_frequency(self, frequency_hz: float) -> ControlResult:
        return self._control("set_stop_frequency", self.analyzer.set_stop_frequency, frequency_hz)

    def set_full_span(self) -> ControlResult:
        return self._control("set_full_span", self.analyzer.set_full_span)

    def set_last_span(self) -> ControlResult:
        return self._control("set_last_span", self.analyzer.set_last_span)

    def set_locked_control(self, control: LockedControl) -> ControlResult:
        return self._control("set_locked_control", self.analyzer.set_locked_control, control)

    def set_rbw(self, rbw_hz: Optional[float]) -> ControlResult:
        return self._control("set_rbw", self.analyzer.set_rbw, rbw_hz)

    def set_reference_level(self, level_dbm: float) -> ControlResult:
        return self._control("set_reference_level", self.analyzer.set_reference_level, level_dbm)

    def set_amplitude_range(self, min_dbm: float, max_dbm: float) -> ControlResult:
        return self._control("set_amplitude_range", self.analyzer.set_amplitude_range, min_dbm, max_dbm)

    def set_trace_mode(self, trace_index: int, mode: TraceMode) -> ControlResult:
        return self._control("set_trace_mode", self.analyzer.set_trace_mode, trace_index, mode)

    def select_trace(self, trace_index: int) -> ControlResult:
        return self._control("select_trace", self.analyzer.select_trace, trace_index)

    def toggle_trace_visibility(self, trace_index: int) -> ControlResult:
        return self._control("toggle_trace_visibility", self.analyzer.toggle_trace_visibility, trace_index)

    def reset_max_hold(self, trace_index: Optional[int] = None) -> ControlResult:
        return self._control("reset_max_hold", self.analyzer.reset_max_hold, trace_index)

    def reset_min_hold(self, trace_index: Optional[int] = None) -> ControlResult:
        return self._control("reset_min_hold", self.analyzer.reset_min_hold, trace_index)

    def toggle_marker(self) -> ControlResult:
        return self._control("toggle_marker", self.analyzer.toggle_marker)

    def step_marker(self, delta: int) -> ControlResult:
        return self._control("step_marker", self.analyzer.step_marker, delta)

    def auto_tune(self) -> ControlResult:
        """Succeeds either way; ``value.found`` tells whether a carrier was found."""
        result = self._control("auto_tune", self.analyzer.auto_tune)
        tuned: Optional[AutoTuneResult] = result.value
        if tuned is not None and not tuned.found:
            logger.info(f"[{self.asset_id}] Auto-tune left the view unchanged: {tuned.message}")
        return result

    def cycle_screen_mode(self) -> ControlResult:
        return self._control("cycle_screen_mode", self.analyzer.cycle_screen_mode)

    def toggle_pause(self) -> ControlResult:
        return self._control("toggle_pause", self.analyzer.toggle_pause)

    def set_tap_point(self, slot: TapSlot, tap: TapPoint) -> ControlResult:
        return self._control("set_tap_point", self.analyzer.set_tap_point, slot, tap)

    def set_tap_enabled(self, slot: TapSlot, enabled: bool) -> ControlResult:
        return self._control("set_tap_enabled", self.analyzer.set_tap_enabled, slot, enabled)

    def set_antenna_power(self, is_powered: bool) -> ControlResult:
        return self._control("set_antenna_power", self.tracker.set_power, is_powered)

    def set_antenna_pointing(self, azimuth_deg: float, elevation_deg: float) -> ControlResult:
        return self._control("set_antenna_pointing", self.tracker.set_pointing, azimuth_deg, elevation_deg)

    def set_antenna_skew(self, skew_deg: float) -> ControlResult:
        return self._control("set_antenna_skew", self.tracker.set_skew, skew_deg)

    def toggle_auto_track(self) -> ControlResult:
        return self._control("toggle_auto_track", self.tracker.toggle_auto_track)

    def toggle_loopback(self) -> ControlResult:
        return self._control("toggle_loopback", self.tracker.toggle_loopback)

    def set_stage_power(self, stage: str, is_powered: bool) -> ControlResult:
        """Power a front-end stage by name ('omt', 'lnb', 'if_filter', 'buc', 'hpa')."""
        if stage == 'antenna':
            return self.set_antenna_power(is_powered)
        return self._control("set_stage_power", self._set_stage_power, stage, is_powered)

    def _set_stage_power(self, stage: str, is_powered: bool) -> None:
        target = self.front_end.stages().get(stage)
        if target is None:
            raise UnknownEquipmentError(stage)
        target.is_powered = bool(is_powered)

    def set_hpa_enabled(self, enabled: bool) -> ControlResult:
        self.front_end.hpa.is_enabled = bool(enabled)
        return ControlResult.success()

    def select_filter_bandwidth(self, index: int) -> ControlResult:
        return self._control("select_filter_bandwidth", self.front_end.if_filter.select_bandwidth, index)

    @property
    def lock_state(self) -> LockState:
        return self.tracker.lock_state

    # -----------------------------------------------------
    # Persistence
    # -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serializable state of every component. No side effects."""
        return {
            'config': self.config.to_dict(),
            'front_end': self.front_end.to_dict(),
            'tracking': self.tracker.snapshot().to_dict(),
            'analyzer': self.analyzer.snapshot().to_dict(),
            'alarms': self.alarm_aggregator.to_dict(),
            'tick_count': self.tick_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  on_alarm_change: Optional[Callable[[AlarmSnapshot], None]] = None) -> 'GroundStation':
        """Rebuild a station from :meth:`to_dict` output without running a tick."""
        station = cls(SimulationConfig.from_dict(data['config']),
                      RfFrontEnd.from_dict(data['front_end']),
                      on_alarm_change=on_alarm_change)
        station.tracker.restore(TrackingSnapshot.from_dict(data['tracking']))
        station.analyzer.restore(AnalyzerSnapshot.from_dict(data['analyzer']))
        station.alarm_aggregator.restore(data.get('alarms', {}))
        station.tick_count = int(data.get('tick_count', 0))
        return station


__all__ = [
    'ControlResult',
    'GroundStation',
    'LockedControl',
    'ScreenMode',
    'TapSlot',
    'TraceMode',
]
