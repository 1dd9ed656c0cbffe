"""
Built-in sandbox scenario: a few C-band satellites and one uplink carrier.
"""
from dataclasses import dataclass, field
from typing import List

from core.rf_models import Polarization, RfSignal, Satellite, SignalOrigin


def sandbox_satellites() -> List[Satellite]:
    """Two co-located satellites near the zenith plus one lower in the south-west.

    Downlinks sit in the upper C-band so the default LNB LO puts them in the
    L-band IF passband.
    """
    return [
        Satellite("SAT-1", "Atlas-1", azimuth_deg=247.3, elevation_deg=78.2, downlink=[
            RfSignal("1", 4080e6, 10e6, -88.0, "8QAM", Polarization.V),
            RfSignal("2", 4090e6, 3e6, -92.0, "8QAM", Polarization.V),
        ]),
        Satellite("SAT-2", "Atlas-2", azimuth_deg=247.6, elevation_deg=78.2, downlink=[
            RfSignal("3", 4070e6, 3e6, -94.0, "8QAM", Polarization.V),
        ]),
        Satellite("SAT-3", "Meridian-3", azimuth_deg=203.5, elevation_deg=38.2, downlink=[
            RfSignal("4", 4150e6, 36e6, -86.0, "QPSK", Polarization.H),
        ]),
    ]


def sandbox_uplinks() -> List[RfSignal]:
    """Modem carriers at L-band IF. The BUC translates them to RF."""
    return [
        RfSignal("TX-1", 1000e6, 10e6, -60.0, "8QAM", Polarization.H, origin=SignalOrigin.TRANSMITTER),
    ]


@dataclass
class Scenario:
    name: str = "Sandbox"
    satellites: List[Satellite] = field(default_factory=sandbox_satellites)
    uplinks: List[RfSignal] = field(default_factory=sandbox_uplinks)

    def active_signals(self) -> List[RfSignal]:
        """Fresh signal list for one tick."""
        signals: List[RfSignal] = []
        for sat in self.satellites:
            signals.extend(sat.downlink_signals())
        signals.extend(self.uplinks)
        return signals
