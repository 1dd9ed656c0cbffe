"""
Equipment state records for the antenna and RF front-end stages.

Each stage shares a common shape (powered flag, optional gain, insertion
loss, noise figure) and adds the fields specific to its hardware. A stage
that does not pass signal (unpowered, muted, RF output disabled) contributes
-inf dB to every downstream tap, never a finite attenuation.
"""
import math
from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, List, Optional, Tuple

from core.alarms import AlarmSeverity, AlarmStatus
from core.errors import OutOfRangeError
from core.rf_models import Polarization, RfSignal, TapPoint
from core.rf_utils import (NEG_INF, T0_KELVIN, db_to_linear, linear_to_db,
                           loss_noise_temperature_k, sky_temperature_k)


@dataclass
class EquipmentStage:
    """Common shape of every stage in the chain."""
    kind: ClassVar[str] = "stage"
    is_passive: ClassVar[bool] = False

    is_powered: bool = True
    gain_db: Optional[float] = None
    insertion_loss_db: float = 0.0
    noise_figure_db: float = 0.0

    def passes_signal(self) -> bool:
        return self.is_powered

    def net_gain_db(self) -> float:
        """Gain minus insertion loss, or -inf when the stage passes nothing."""
        if not self.passes_signal():
            return NEG_INF
        return (self.gain_db or 0.0) - self.insertion_loss_db

    def effective_noise_figure_db(self) -> float:
        # A passive stage at 290 K has NF equal to its loss
        if self.is_passive:
            return self.insertion_loss_db
        return self.noise_figure_db

    def get_status_alarms(self) -> List[str]:
        return []

    def to_dict(self) -> dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.value if isinstance(value, Polarization) else value
        return data

    def update_from_dict(self, data: dict) -> None:
        for f in fields(self):
            if f.name not in data:
                continue
            value = data[f.name]
            if isinstance(getattr(self, f.name), Polarization) and value is not None:
                value = Polarization(value)
            setattr(self, f.name, value)


@dataclass
class Antenna(EquipmentStage):
    """
    Antenna feed. It is the source of the receive chain.

    Pointing fields are written only by the antenna tracker.
    """
    kind: ClassVar[str] = "ANT"

    is_powered: bool = False
    azimuth_deg: float = 0.0
    elevation_deg: float = 0.0
    skew_deg: float = 0.0
    is_loopback: bool = False
    feed_loss_db: float = 0.1

    @property
    def noise_temperature_k(self) -> float:
        """Sky temperature at the current elevation plus feed loss noise."""
        return sky_temperature_k(self.elevation_deg) + loss_noise_temperature_k(self.feed_loss_db)


@dataclass
class OrthoModeTransducer(EquipmentStage):
    """OMT: splits RX and TX paths by polarization."""
    kind: ClassVar[str] = "OMT"
    is_passive: ClassVar[bool] = True

    insertion_loss_db: float = 0.5
    tx_polarization: Polarization = Polarization.H
    rx_polarization: Polarization = Polarization.V
    cross_pol_isolation_db: float = 28.5

    def toggle_polarization(self) -> None:
        self.tx_polarization, self.rx_polarization = self.rx_polarization, self.tx_polarization

    def effective_rx_polarization(self, skew_deg: float) -> Polarization:
        """
        RX polarization after antenna skew.

        Near 0/180 deg the feed is in its base orientation, near 90 deg it is
        rotated; in between the configured polarization is used as-is.
        """
        skew = ((skew_deg % 180.0) + 180.0) % 180.0
        is_reversed = self.tx_polarization is Polarization.V

        if skew < 15.0 or abs(skew - 180.0) < 15.0:
            base = Polarization.V
        elif abs(skew - 90.0) < 15.0:
            base = Polarization.H
        else:
            return self.rx_polarization

        return base.crossed() if is_reversed else base

    def get_status_alarms(self) -> List[str]:
        if self.cross_pol_isolation_db < 25.0:
            return ["Cross-pol isolation degraded"]
        return []


# LNB IF output passband
L_BAND_MIN_HZ = 950e6
L_BAND_MAX_HZ = 2150e6
L_BAND_REJECTION_DB = 40.0


@dataclass
class LowNoiseBlock(EquipmentStage):
    """LNB: low noise amplifier followed by a down-converting mixer."""
    kind: ClassVar[str] = "LNB"

    gain_db: Optional[float] = 55.0
    lo_frequency_hz: float = 6080e6
    lna_noise_figure_db: float = 0.6
    mixer_noise_figure_db: float = 16.0

    def effective_noise_figure_db(self) -> float:
        # Friis over the LNA and mixer inside the block
        f_lna = db_to_linear(self.lna_noise_figure_db)
        f_mixer = db_to_linear(self.mixer_noise_figure_db)
        g_lna = db_to_linear(self.gain_db or 0.0)
        if g_lna == 0.0:
            return self.lna_noise_figure_db
        return linear_to_db(f_lna + (f_mixer - 1.0) / g_lna)

    @property
    def noise_temperature_k(self) -> float:
        return T0_KELVIN * (db_to_linear(self.effective_noise_figure_db()) - 1.0)

    def if_rolloff_db(self, if_frequency_hz: float, bandwidth_hz: float) -> float:
        """
        Attenuation of the L-band output filters for a carrier at ``if_frequency_hz``.

        The share of the carrier falling outside the passband is rejected by
        up to L_BAND_REJECTION_DB.
        """
        low = if_frequency_hz - bandwidth_hz / 2
        high = if_frequency_hz + bandwidth_hz / 2
        if bandwidth_hz <= 0:
            in_band = L_BAND_MIN_HZ <= if_frequency_hz <= L_BAND_MAX_HZ
            return 0.0 if in_band else L_BAND_REJECTION_DB
        outside_hz = max(0.0, min(high, L_BAND_MIN_HZ) - low) + max(0.0, high - max(low, L_BAND_MAX_HZ))
        return L_BAND_REJECTION_DB * min(outside_hz / bandwidth_hz, 1.0)

    def get_status_alarms(self) -> List[str]:
        alarms = []
        if self.noise_temperature_k > 100.0:
            alarms.append("LNB noise temperature high")
        if self.lna_noise_figure_db > 1.0:
            alarms.append("LNA noise figure degraded")
        return alarms


@dataclass(frozen=True)
class FilterBandwidth:
    bandwidth_hz: float
    insertion_loss_db: float


# Selectable IF filter bandwidths, narrowest first
FILTER_BANK: Tuple[FilterBandwidth, ...] = (
    FilterBandwidth(30e3, 3.5),
    FilterBandwidth(100e3, 3.2),
    FilterBandwidth(200e3, 3.0),
    FilterBandwidth(500e3, 2.9),
    FilterBandwidth(1e6, 2.8),
    FilterBandwidth(2e6, 2.6),
    FilterBandwidth(5e6, 2.4),
    FilterBandwidth(10e6, 2.2),
    FilterBandwidth(20e6, 2.0),
    FilterBandwidth(40e6, 1.8),
    FilterBandwidth(80e6, 1.6),
    FilterBandwidth(160e6, 1.5),
    FilterBandwidth(320e6, 1.5),
)


@dataclass
class IfFilter(EquipmentStage):
    """Switchable IF bandpass filter."""
    kind: ClassVar[str] = "FILTER"
    is_passive: ClassVar[bool] = True

    bandwidth_index: int = 8

    def __post_init__(self):
        self.select_bandwidth(self.bandwidth_index)

    @property
    def bandwidth_hz(self) -> float:
        return FILTER_BANK[self.bandwidth_index].bandwidth_hz

    def select_bandwidth(self, index: int) -> None:
        if not 0 <= index < len(FILTER_BANK):
            raise OutOfRangeError("filter_bandwidth_index", index, 0, len(FILTER_BANK) - 1)
        self.bandwidth_index = index
        self.insertion_loss_db = FILTER_BANK[index].insertion_loss_db

    def excess_bandwidth_loss_db(self, signal_bandwidth_hz: float) -> float:
        """Extra loss for a carrier wider than the selected passband."""
        if signal_bandwidth_hz <= self.bandwidth_hz:
            return 0.0
        return 10.0 * math.log10(signal_bandwidth_hz / (self.bandwidth_hz / 2))

    def get_status_alarms(self) -> List[str]:
        if self.insertion_loss_db > 3.0:
            return ["Filter insertion loss high"]
        return []


@dataclass
class BlockUpConverter(EquipmentStage):
    """BUC: up-converts the modem IF to RF and amplifies it."""
    kind: ClassVar[str] = "BUC"

    gain_db: Optional[float] = 58.0
    noise_figure_db: float = 6.0
    lo_frequency_hz: float = 6425e6
    is_muted: bool = False
    saturation_power_dbm: float = 15.0
    temperature_c: float = 35.0
    current_a: float = 2.5
    output_power_dbm: float = NEG_INF

    def passes_signal(self) -> bool:
        return self.is_powered and not self.is_muted

    def get_status_alarms(self) -> List[str]:
        alarms = []
        if self.output_power_dbm > self.saturation_power_dbm - 2.0:
            alarms.append("BUC approaching saturation")
        if self.temperature_c > 70.0:
            alarms.append("BUC over-temperature")
        if self.current_a > 4.5:
            alarms.append("BUC high current")
        return alarms


@dataclass
class HighPowerAmplifier(EquipmentStage):
    """HPA with an RF output enable switch."""
    kind: ClassVar[str] = "HPA"

    gain_db: Optional[float] = 44.0
    noise_figure_db: float = 8.0
    is_enabled: bool = False
    p1db_dbm: float = 50.0
    temperature_c: float = 40.0
    output_power_dbm: float = NEG_INF

    def passes_signal(self) -> bool:
        return self.is_powered and self.is_enabled

    @property
    def back_off_db(self) -> float:
        """Distance between output power and P1dB (large when idle)."""
        if self.output_power_dbm == NEG_INF:
            return float('inf')
        return self.p1db_dbm - self.output_power_dbm

    def get_status_alarms(self) -> List[str]:
        alarms = []
        if self.back_off_db < 3.0:
            alarms.append("HPA overdriven")
        if self.temperature_c > 85.0:
            alarms.append("HPA over-temperature")
        return alarms


_ERROR_KEYWORDS = ("over-temperature", "high current", "not operational")


def classify_front_end_alarm(message: str) -> AlarmSeverity:
    lowered = message.lower()
    if any(word in lowered for word in _ERROR_KEYWORDS):
        return AlarmSeverity.ERROR
    return AlarmSeverity.WARNING


@dataclass
class RfFrontEnd:
    """
    Front-end assembly: owns its antenna and every stage of both chains.

    Receive chain: antenna -> OMT -> LNB -> IF filter.
    Transmit chain: modem IF -> BUC -> HPA -> OMT.
    """
    index: int = 1
    antenna: Antenna = field(default_factory=Antenna)
    omt: OrthoModeTransducer = field(default_factory=OrthoModeTransducer)
    lnb: LowNoiseBlock = field(default_factory=LowNoiseBlock)
    if_filter: IfFilter = field(default_factory=IfFilter)
    buc: BlockUpConverter = field(default_factory=BlockUpConverter)
    hpa: HighPowerAmplifier = field(default_factory=HighPowerAmplifier)

    def chain_to(self, tap: TapPoint) -> List[EquipmentStage]:
        """Stages traversed from the chain source up to and including ``tap``."""
        if tap.is_receive:
            chain = [self.antenna, self.omt, self.lnb, self.if_filter]
            return chain[:tap - TapPoint.RX_RF_PRE_OMT + 1]
        chain = [self.buc, self.hpa, self.omt]
        return chain[:tap - TapPoint.TX_IF]

    def stages(self) -> Dict[str, EquipmentStage]:
        return {
            'antenna': self.antenna,
            'omt': self.omt,
            'lnb': self.lnb,
            'if_filter': self.if_filter,
            'buc': self.buc,
            'hpa': self.hpa,
        }

    def update_levels(self, buc_output: List[RfSignal], hpa_output: List[RfSignal]) -> None:
        """Record the strongest carrier leaving the BUC and the HPA."""
        self.buc.output_power_dbm = max((s.power_dbm for s in buc_output), default=NEG_INF)
        self.hpa.output_power_dbm = max((s.power_dbm for s in hpa_output), default=NEG_INF)

    def get_status_alarms(self) -> List[AlarmStatus]:
        """
        Collect alarms from every front-end stage.

        Returns:
            List of AlarmStatus; a fully healthy front end reports SUCCESS
        """
        messages: List[str] = []
        for name, stage in self.stages().items():
            if name == 'antenna':
                continue
            if not stage.is_powered:
                continue
            messages.extend(stage.get_status_alarms())

        if self.hpa.is_powered and self.hpa.is_enabled and not self.buc.is_powered:
            messages.append("HPA enabled without BUC power")

        if not messages:
            return [AlarmStatus(AlarmSeverity.SUCCESS, "RF front end nominal")]
        return [AlarmStatus(classify_front_end_alarm(m), m) for m in messages]

    def to_dict(self) -> dict:
        return {'index': self.index,
                **{name: stage.to_dict() for name, stage in self.stages().items()}}

    @classmethod
    def from_dict(cls, data: dict) -> 'RfFrontEnd':
        front_end = cls(index=int(data.get('index', 1)))
        for name, stage in front_end.stages().items():
            if name in data:
                stage.update_from_dict(data[name])
        return front_end
