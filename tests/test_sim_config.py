import json

import pytest

from core.errors import InvalidConfigError
from core.ground_station import GroundStation
from core.rf_models import TapPoint
from core.sim_config import AnalyzerConfig, SimulationConfig


def test_defaults_validate():
    SimulationConfig().validate()


def test_unknown_key_rejected():
    config = SimulationConfig()
    with pytest.raises(InvalidConfigError):
        config.update_settings('analyzer', {'colour': 'blue'})


def test_unknown_section_rejected():
    with pytest.raises(InvalidConfigError):
        SimulationConfig().get_section('network')


def test_invalid_value_rolls_back():
    config = SimulationConfig()
    with pytest.raises(InvalidConfigError):
        config.update_settings('analyzer', {'num_bins': 401, 'refresh_rate_hz': 0.0})
    assert config.analyzer.num_bins == 801
    assert config.analyzer.refresh_rate_hz == 10.0


def test_update_settings_applies_values():
    config = SimulationConfig()
    config.update_settings('tracking', {'acquisition_window_ms': 5000.0})
    assert config.tracking.acquisition_window_ms == 5000.0


def test_tap_points_persist_by_name():
    config = SimulationConfig()
    config.update_settings('analyzer', {'tap_a': 'RX_RF_POST_LNA'})
    assert config.analyzer.tap_a is TapPoint.RX_RF_POST_LNA

    data = json.loads(json.dumps(config.to_dict()))
    assert data['analyzer']['tap_a'] == 'RX_RF_POST_LNA'
    assert SimulationConfig.from_dict(data) == config

    with pytest.raises(InvalidConfigError):
        config.update_settings('analyzer', {'tap_b': 'NOWHERE'})


def test_station_refuses_invalid_config():
    config = SimulationConfig(analyzer=AnalyzerConfig(center_frequency_hz=10e3))
    with pytest.raises(InvalidConfigError):
        GroundStation(config)
