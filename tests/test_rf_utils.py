import itertools

import numpy as np
import pytest

from core.rf_utils import (NEG_INF, angular_difference_deg, cascade_noise_figure_db,
                           db_to_linear, gaussian_profile_db, geo_slant_range_km,
                           instrument_noise_floor_dbm, linear_to_db,
                           noise_figure_to_temperature, overlap_fraction,
                           polarization_mismatch_loss_db, sky_temperature_k,
                           thermal_noise_dbm, wrap_azimuth)


def test_db_conversions_handle_negative_infinity():
    assert db_to_linear(NEG_INF) == 0.0
    assert linear_to_db(0.0) == NEG_INF
    assert db_to_linear(3.0) == pytest.approx(1.995, abs=1e-3)
    assert linear_to_db(100.0) == pytest.approx(20.0)


def test_noise_figure_to_temperature():
    assert noise_figure_to_temperature(0.0) == pytest.approx(0.0)
    assert noise_figure_to_temperature(3.0103) == pytest.approx(290.0, abs=0.01)
    assert noise_figure_to_temperature(1.0) == pytest.approx(75.09, abs=0.01)


def test_thermal_noise_at_room_temperature():
    assert thermal_noise_dbm(1e6, 290.0) == pytest.approx(-114.0, abs=0.05)
    assert thermal_noise_dbm(0.0, 290.0) == NEG_INF
    assert instrument_noise_floor_dbm(1e6, 0.5) == pytest.approx(-113.5)


def test_cascade_of_one_stage_is_its_noise_figure():
    assert cascade_noise_figure_db([(4.0, 20.0)]) == pytest.approx(4.0)
    assert cascade_noise_figure_db([]) == 0.0


def test_cascade_lna_dominates_mixer():
    # 55 dB of LNA gain hides almost all of the 16 dB mixer noise
    assert cascade_noise_figure_db([(0.6, 55.0), (16.0, 0.0)]) == pytest.approx(0.6, abs=0.01)
    assert cascade_noise_figure_db([(16.0, 0.0), (0.6, 55.0)]) > 16.0


def test_cascade_stops_after_dead_stage():
    assert cascade_noise_figure_db([(1.0, NEG_INF), (30.0, 10.0)]) == pytest.approx(1.0)


def test_lowest_noise_highest_gain_stage_first_is_optimal():
    rng = np.random.default_rng(1234)
    for _ in range(25):
        others = [(float(rng.uniform(2.0, 10.0)), float(rng.uniform(1.0, 30.0))) for _ in range(3)]
        lna = (min(nf for nf, _ in others) - 1.0, max(g for _, g in others) + 5.0)
        stages = [lna] + others

        best_overall = min(cascade_noise_figure_db(list(p)) for p in itertools.permutations(stages))
        best_lna_first = min(cascade_noise_figure_db([lna] + list(p))
                             for p in itertools.permutations(others))
        assert best_lna_first <= best_overall + 1e-9


def test_sky_temperature_rises_towards_horizon():
    assert sky_temperature_k(90.0) == pytest.approx(8.0)
    assert sky_temperature_k(10.0) > sky_temperature_k(45.0) > sky_temperature_k(90.0)


def test_azimuth_wrapping():
    assert wrap_azimuth(370.0) == pytest.approx(10.0)
    assert wrap_azimuth(-10.0) == pytest.approx(350.0)
    assert angular_difference_deg(359.0, 1.0) == pytest.approx(2.0)


def test_overlap_fraction():
    assert overlap_fraction(100.0, 10.0, 100.0, 10.0) == pytest.approx(1.0)
    assert overlap_fraction(100.0, 10.0, 105.0, 10.0) == pytest.approx(0.5)
    assert overlap_fraction(100.0, 10.0, 200.0, 10.0) == 0.0


def test_polarization_mismatch():
    assert polarization_mismatch_loss_db('H', 'V') == 20.0
    assert polarization_mismatch_loss_db('H', 'H', 0.0) == pytest.approx(0.0)
    assert polarization_mismatch_loss_db('H', 'H', 45.0) == pytest.approx(3.01, abs=0.01)
    assert polarization_mismatch_loss_db('H', 'H', 90.0) == 20.0
    assert polarization_mismatch_loss_db(None, 'H') == 0.0


def test_geo_slant_range():
    assert geo_slant_range_km(90.0) == pytest.approx(35786.0)
    assert geo_slant_range_km(10.0) > 40000.0


def test_gaussian_profile_peaks_at_center():
    freqs = np.linspace(90.0, 110.0, 201)
    profile = gaussian_profile_db(freqs, 100.0, 3.0, -50.0)
    assert profile[100] == pytest.approx(-50.0)
    assert np.argmax(profile) == 100
    assert profile[0] == NEG_INF
    assert not np.isnan(profile).any()
