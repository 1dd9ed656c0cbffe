import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from core.antenna_tracking import AntennaTracker
from core.equipment import Antenna, RfFrontEnd
from core.ground_station import GroundStation
from core.rf_models import Polarization, RfSignal, SignalOrigin
from core.scenario import Scenario
from core.signal_path import SignalPathResolver
from core.sim_config import AnalyzerConfig, SimulationConfig, TrackingConfig
from core.spectrum_analyzer import SpectrumAnalyzer


@pytest.fixture
def front_end():
    return RfFrontEnd()


@pytest.fixture
def powered_front_end():
    fe = RfFrontEnd()
    fe.antenna.is_powered = True
    return fe


@pytest.fixture
def resolver(powered_front_end):
    return SignalPathResolver(powered_front_end)


@pytest.fixture
def analyzer():
    return SpectrumAnalyzer(SignalPathResolver(RfFrontEnd()), AnalyzerConfig())


@pytest.fixture
def tracker():
    return AntennaTracker(Antenna(), TrackingConfig())


@pytest.fixture
def scenario():
    return Scenario()


@pytest.fixture
def station():
    return GroundStation(SimulationConfig())


@pytest.fixture
def tx_carriers():
    """Two transmit carriers inside the default 550-650 MHz window."""
    return [
        RfSignal("TX-A", 580e6, 1e6, -60.0, polarization=Polarization.H,
                 origin=SignalOrigin.TRANSMITTER),
        RfSignal("TX-B", 620e6, 1e6, -70.0, polarization=Polarization.H,
                 origin=SignalOrigin.TRANSMITTER),
    ]


@pytest.fixture
def qapp():
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app
