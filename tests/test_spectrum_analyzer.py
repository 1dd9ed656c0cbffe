import json

import numpy as np
import pytest

from core.equipment import RfFrontEnd
from core.errors import OutOfRangeError
from core.rf_models import TapPoint
from core.signal_path import SignalPathResolver
from core.sim_config import AnalyzerConfig
from core.spectrum_analyzer import (AnalyzerSnapshot, LockedControl, ScreenMode,
                                    SpectrumAnalyzer, TapSlot)
from core.traces import TraceMode


def test_power_on_window(analyzer):
    assert analyzer.start_frequency_hz == pytest.approx(550e6)
    assert analyzer.stop_frequency_hz == pytest.approx(650e6)
    assert analyzer.locked_control is LockedControl.FREQ


@pytest.mark.parametrize("frequency", [1e3, 25.5e9, 30e9])
def test_center_frequency_outside_limits_is_rejected(analyzer, frequency):
    with pytest.raises(OutOfRangeError) as exc:
        analyzer.set_center_frequency(frequency)
    assert exc.value.value == frequency
    assert analyzer.center_frequency_hz == pytest.approx(600e6)


@pytest.mark.parametrize("span", [0.0, 50.0, 2e9])
def test_span_outside_limits_is_rejected(analyzer, span):
    with pytest.raises(OutOfRangeError):
        analyzer.set_span(span)
    assert analyzer.span_hz == pytest.approx(100e6)


def test_set_span_remembers_last_span_and_locks_span(analyzer):
    analyzer.set_span(20e6)
    assert analyzer.last_span_hz == pytest.approx(100e6)
    assert analyzer.locked_control is LockedControl.SPAN

    analyzer.set_last_span()
    assert analyzer.span_hz == pytest.approx(100e6)
    assert analyzer.last_span_hz == pytest.approx(20e6)


def test_start_frequency_with_frequency_locked_keeps_stop(analyzer):
    analyzer.set_start_frequency(560e6)

    assert analyzer.stop_frequency_hz == pytest.approx(650e6)
    assert analyzer.span_hz == pytest.approx(90e6)
    assert analyzer.center_frequency_hz == pytest.approx(605e6)


def test_stop_frequency_with_frequency_locked_keeps_start(analyzer):
    analyzer.set_stop_frequency(700e6)

    assert analyzer.start_frequency_hz == pytest.approx(550e6)
    assert analyzer.span_hz == pytest.approx(150e6)
    assert analyzer.center_frequency_hz == pytest.approx(625e6)


def test_start_frequency_with_span_locked_moves_center(analyzer):
    analyzer.set_span(20e6)
    analyzer.set_start_frequency(100e6)

    assert analyzer.span_hz == pytest.approx(20e6)
    assert analyzer.center_frequency_hz == pytest.approx(110e6)


def test_stop_frequency_with_span_locked_moves_center(analyzer):
    analyzer.set_locked_control(LockedControl.SPAN)
    analyzer.set_stop_frequency(1e9)

    assert analyzer.span_hz == pytest.approx(100e6)
    assert analyzer.center_frequency_hz == pytest.approx(950e6)


def test_start_beyond_stop_is_rejected(analyzer):
    with pytest.raises(OutOfRangeError):
        analyzer.set_start_frequency(700e6)
    assert analyzer.span_hz == pytest.approx(100e6)


def test_full_span(analyzer):
    analyzer.set_full_span()
    assert analyzer.start_frequency_hz == pytest.approx(5e3)
    assert analyzer.stop_frequency_hz == pytest.approx(25.5e9)
    assert analyzer.last_span_hz == pytest.approx(100e6)


def test_reference_level_keeps_displayed_range(analyzer):
    analyzer.set_reference_level(-20.0)
    assert analyzer.max_amplitude_dbm == pytest.approx(-20.0)
    assert analyzer.min_amplitude_dbm == pytest.approx(-80.0)

    with pytest.raises(OutOfRangeError):
        analyzer.set_reference_level(50.0)
    assert analyzer.reference_level_dbm == pytest.approx(-20.0)


def test_inverted_amplitude_range_is_rejected(analyzer):
    with pytest.raises(OutOfRangeError):
        analyzer.set_amplitude_range(-50.0, -60.0)
    assert analyzer.min_amplitude_dbm == pytest.approx(-100.0)


def test_rbw_auto_follows_span(analyzer):
    analyzer.set_rbw(None)
    assert analyzer.effective_rbw_hz == pytest.approx(analyzer.span_hz)
    with pytest.raises(OutOfRangeError):
        analyzer.set_rbw(500e6)
    assert analyzer.rbw_hz is None


def test_repeated_absolute_edit_is_idempotent(analyzer):
    analyzer.set_center_frequency(700e6)
    first = analyzer.snapshot().to_dict()
    analyzer.set_center_frequency(700e6)
    assert analyzer.snapshot().to_dict() == first


def test_first_tick_always_sweeps_then_follows_refresh_rate(analyzer, tx_carriers):
    assert analyzer.tick(0.0, tx_carriers).sweep_count == 1
    assert analyzer.tick(50.0, tx_carriers).sweep_count == 1
    assert analyzer.tick(50.0, tx_carriers).sweep_count == 2


def test_paused_analyzer_keeps_traces(analyzer, tx_carriers):
    analyzer.tick(0.0, tx_carriers)
    before = analyzer.trace(1).data
    analyzer.toggle_pause()

    snap = analyzer.tick(1000.0, [])
    assert snap.sweep_count == 1
    assert np.array_equal(snap.traces[0].data, before)


def test_baseline_includes_analyzer_floor(analyzer):
    analyzer.sweep([])
    assert analyzer.noise_floor_dbm >= analyzer.resolver.internal_noise_floor(analyzer.effective_rbw_hz)


def test_sweep_shows_carriers_at_tap_power(analyzer, tx_carriers):
    sweep = analyzer.sweep(tx_carriers)
    freqs = analyzer.bin_frequencies()
    peak = int(np.argmax(sweep))

    assert freqs[peak] == pytest.approx(580e6)
    assert sweep[peak] == pytest.approx(-60.0, abs=1e-6)


def test_sweep_jitter_stays_within_limit(analyzer):
    sweep = analyzer.sweep([])
    assert np.all(np.abs(sweep - analyzer.noise_floor_dbm) <= analyzer.config.max_noise_jitter_db)


def test_max_hold_never_decreases(analyzer, tx_carriers):
    analyzer.set_trace_mode(2, TraceMode.MAX_HOLD)
    previous = analyzer.trace(2).data
    for signals in (tx_carriers, [], tx_carriers[:1], []):
        analyzer.sweep(signals)
        current = analyzer.trace(2).data
        assert np.all(current >= previous)
        previous = current


def test_min_hold_never_increases(analyzer, tx_carriers):
    analyzer.set_trace_mode(3, TraceMode.MIN_HOLD)
    previous = analyzer.trace(3).data
    for signals in ([], tx_carriers, [], tx_carriers):
        analyzer.sweep(signals)
        current = analyzer.trace(3).data
        assert np.all(current <= previous)
        previous = current


def test_reset_max_hold_clears_only_max_hold_traces(analyzer, tx_carriers):
    analyzer.set_trace_mode(2, TraceMode.MAX_HOLD)
    analyzer.sweep(tx_carriers)
    analyzer.reset_max_hold()

    assert np.all(np.isneginf(analyzer.trace(2).data))
    assert np.all(np.isfinite(analyzer.trace(1).data))


def test_trace_index_out_of_range(analyzer):
    with pytest.raises(OutOfRangeError):
        analyzer.select_trace(0)
    with pytest.raises(OutOfRangeError):
        analyzer.set_trace_mode(4, TraceMode.HOLD)


def test_markers_rank_peaks_and_wrap(analyzer, tx_carriers):
    analyzer.sweep(tx_carriers)
    analyzer.toggle_marker()

    assert [m.frequency_hz for m in analyzer.markers] == pytest.approx([580e6, 620e6])
    assert analyzer.active_marker.power_dbm == pytest.approx(-60.0, abs=1e-6)

    analyzer.step_marker(1)
    assert analyzer.marker_index == 1
    analyzer.step_marker(1)
    assert analyzer.marker_index == 0
    analyzer.step_marker(-1)
    assert analyzer.marker_index == 1

    analyzer.toggle_marker()
    assert analyzer.markers == []
    assert analyzer.active_marker is None


def test_auto_tune_centres_on_strongest_carrier(analyzer, tx_carriers):
    analyzer.sweep(tx_carriers)
    result = analyzer.auto_tune()

    assert result.found
    assert analyzer.center_frequency_hz == pytest.approx(580e6)
    assert analyzer.span_hz == pytest.approx(1.1e6)
    assert analyzer.max_amplitude_dbm == pytest.approx(-60.0)
    assert analyzer.max_amplitude_dbm - analyzer.min_amplitude_dbm >= 12.0


def test_auto_tune_without_signal_leaves_view(analyzer):
    analyzer.sweep([])
    before = (analyzer.center_frequency_hz, analyzer.span_hz, analyzer.reference_level_dbm)

    result = analyzer.auto_tune()
    assert not result.found
    assert result.message == "No signal found"
    assert (analyzer.center_frequency_hz, analyzer.span_hz, analyzer.reference_level_dbm) == before


def test_screen_mode_cycle(analyzer):
    modes = [analyzer.cycle_screen_mode() for _ in range(3)]
    assert modes == [ScreenMode.WATERFALL, ScreenMode.BOTH, ScreenMode.SPECTRAL_DENSITY]


def test_waterfall_records_only_outside_density_mode(analyzer):
    analyzer.sweep([])
    assert analyzer.waterfall.empty()

    analyzer.cycle_screen_mode()
    analyzer.sweep([])
    analyzer.sweep([])
    assert analyzer.waterfall.qsize() == 2


def test_tap_status_alarms(analyzer):
    assert analyzer.get_status_alarms()[0].message == "Analyzer nominal"

    analyzer.set_tap_point(TapSlot.A, TapPoint.RX_IF)
    assert analyzer.get_status_alarms()[0].message == "Both tap points set to same location"

    analyzer.set_tap_enabled(TapSlot.A, False)
    analyzer.set_tap_enabled(TapSlot.B, False)
    assert analyzer.get_status_alarms()[0].message == "No tap point selected"


def test_snapshot_round_trip_reproduces_next_sweep(analyzer, tx_carriers):
    analyzer.set_trace_mode(2, TraceMode.AVERAGE)
    analyzer.cycle_screen_mode()
    analyzer.toggle_marker()
    for _ in range(3):
        analyzer.tick(100.0, tx_carriers)

    data = json.loads(json.dumps(analyzer.snapshot().to_dict()))
    restored = SpectrumAnalyzer(SignalPathResolver(RfFrontEnd()), AnalyzerConfig())
    restored.restore(AnalyzerSnapshot.from_dict(data))

    original = analyzer.tick(100.0, tx_carriers)
    replayed = restored.tick(100.0, tx_carriers)

    for a, b in zip(original.traces, replayed.traces):
        assert a.mode is b.mode
        assert np.array_equal(a.data, b.data)
    assert original.markers == replayed.markers
    assert original.waterfall == replayed.waterfall
