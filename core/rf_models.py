"""
Data models for RF signals, tap points and satellites.
"""
from dataclasses import asdict, dataclass, field, replace
from enum import Enum, IntEnum
from typing import List, Optional


class TapPoint(IntEnum):
    """
    Observation points along the RF chain.

    Values are ordered by chain position: the receive path runs from the
    feed towards the IF output, the transmit path from the modem output
    towards the radiated signal.
    """
    RX_RF_PRE_OMT = 0
    RX_RF_POST_OMT = 1
    RX_RF_POST_LNA = 2
    RX_IF = 3
    TX_IF = 10
    TX_RF_POST_BUC = 11
    TX_RF_POST_HPA = 12
    TX_RF_POST_OMT = 13

    @property
    def is_receive(self) -> bool:
        return self < TapPoint.TX_IF

    @property
    def label(self) -> str:
        return self.name.replace('_', ' ')


class SignalOrigin(Enum):
    """Where a signal entered the simulation."""
    SATELLITE = "satellite"
    TRANSMITTER = "transmitter"
    LOOPBACK = "loopback"

    @property
    def is_uplink(self) -> bool:
        return self is SignalOrigin.TRANSMITTER


class Polarization(Enum):
    H = "H"
    V = "V"
    LHCP = "LHCP"
    RHCP = "RHCP"

    @property
    def is_linear(self) -> bool:
        return self in (Polarization.H, Polarization.V)

    def crossed(self) -> 'Polarization':
        return {
            Polarization.H: Polarization.V,
            Polarization.V: Polarization.H,
            Polarization.LHCP: Polarization.RHCP,
            Polarization.RHCP: Polarization.LHCP,
        }[self]


@dataclass(frozen=True)
class RfSignal:
    """
    A single RF carrier as seen at one point of the chain.

    Instances are immutable; every tick builds a fresh list.
    """
    signal_id: str
    frequency_hz: float
    bandwidth_hz: float
    power_dbm: float
    modulation: str = "QPSK"
    polarization: Optional[Polarization] = None
    origin: SignalOrigin = SignalOrigin.SATELLITE

    # Arrival direction for satellite carriers (None = not pointing-gated)
    azimuth_deg: Optional[float] = None
    elevation_deg: Optional[float] = None

    is_degraded: bool = False

    @property
    def start_hz(self) -> float:
        return self.frequency_hz - self.bandwidth_hz / 2

    @property
    def stop_hz(self) -> float:
        return self.frequency_hz + self.bandwidth_hz / 2

    def with_power(self, power_dbm: float, **changes) -> 'RfSignal':
        return replace(self, power_dbm=power_dbm, **changes)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['polarization'] = self.polarization.value if self.polarization else None
        data['origin'] = self.origin.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'RfSignal':
        values = dict(data)
        pol = values.get('polarization')
        values['polarization'] = Polarization(pol) if pol else None
        values['origin'] = SignalOrigin(values.get('origin', SignalOrigin.SATELLITE.value))
        return cls(**values)


@dataclass
class Satellite:
    """
    A satellite visible from the station, described by its look angles.

    Downlink carriers are stamped with the satellite direction so the
    antenna tracker can gate them.
    """
    satellite_id: str
    name: str
    azimuth_deg: float
    elevation_deg: float
    downlink: List[RfSignal] = field(default_factory=list)

    def downlink_signals(self) -> List[RfSignal]:
        return [
            replace(sig, origin=SignalOrigin.SATELLITE,
                    azimuth_deg=self.azimuth_deg, elevation_deg=self.elevation_deg)
            for sig in self.downlink
        ]
