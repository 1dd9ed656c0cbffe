"""
Spectrum Analyzer Engine

Owns the frequency/amplitude window, three trace buffers, the marker list
and the screen mode. Each refresh it asks the signal path resolver for the
noise floor and gain at the active tap points and synthesizes one sweep of
per-bin power values from the signal list.

Sweep synthesis:
----------------
1. Baseline: for each enabled tap take the resolved noise floor, adding the
   tap gain when the resolver says it is not already included. The highest
   displayed floor wins. The analyzer's own thermal floor always takes part.
2. Noise: baseline plus seeded uniform jitter, clamped to the configured limit.
3. Carriers: each in-window signal is drawn as a Gaussian (sigma = bandwidth/3)
   peaking at its power at the tap. Bins combine by maximum.
4. Traces fold the sweep in by mode; markers are re-ranked if enabled.

Control edits validate first and raise OutOfRangeError without touching
state when the request is outside the hardware limits.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from core.alarms import AlarmSeverity, AlarmStatus
from core.errors import OutOfRangeError
from core.rf_models import RfSignal, TapPoint
from core.rf_utils import NEG_INF, gaussian_profile_db
from core.ring_buffer import RingBuffer
from core.sim_config import AnalyzerConfig
from core.signal_path import SignalPathResolver, TapSignal
from core.traces import Trace, TraceMode

logger = logging.getLogger(__name__)

NUM_TRACES = 3


class ScreenMode(Enum):
    SPECTRAL_DENSITY = "spectralDensity"
    WATERFALL = "waterfall"
    BOTH = "both"

    def next(self) -> 'ScreenMode':
        order = [ScreenMode.SPECTRAL_DENSITY, ScreenMode.WATERFALL, ScreenMode.BOTH]
        return order[(order.index(self) + 1) % len(order)]


class LockedControl(Enum):
    """Which quantity stays pinned while start/stop are edited."""
    FREQ = "freq"
    SPAN = "span"


class TapSlot(Enum):
    A = "A"
    B = "B"


@dataclass
class Marker:
    bin_index: int
    frequency_hz: float
    power_dbm: float


@dataclass
class AutoTuneResult:
    found: bool
    message: str
    frequency_hz: Optional[float] = None
    power_dbm: Optional[float] = None


@dataclass
class AnalyzerSnapshot:
    """
    Complete analyzer state after a tick.

    Rendering reads the traces and markers; persistence round-trips the
    whole object, including the noise generator state, so a restored
    analyzer produces the same sweeps as the original.
    """
    sweep_count: int
    center_frequency_hz: float
    span_hz: float
    last_span_hz: float
    rbw_hz: Optional[float]
    reference_level_dbm: float
    min_amplitude_dbm: float
    max_amplitude_dbm: float
    locked_control: LockedControl
    screen_mode: ScreenMode
    is_paused: bool
    taps: Dict[str, Dict[str, Any]]
    noise_floor_dbm: float
    noise_floor_no_gain_dbm: float
    should_apply_gain: bool
    selected_trace: int
    traces: List[Trace]
    is_marker_on: bool
    markers: List[Marker]
    marker_index: int
    waterfall: List[List[float]] = field(default_factory=list)
    last_signals: List[Dict[str, Any]] = field(default_factory=list)
    since_refresh_ms: float = 0.0
    rng_state: Dict[str, Any] = field(default_factory=dict)
    tracking: Optional[Dict[str, Any]] = None
    alarms: Optional[Dict[str, Any]] = None

    @property
    def start_frequency_hz(self) -> float:
        return self.center_frequency_hz - self.span_hz / 2

    @property
    def stop_frequency_hz(self) -> float:
        return self.center_frequency_hz + self.span_hz / 2

    def frequencies(self) -> np.ndarray:
        num_bins = max((t.data.size for t in self.traces), default=0)
        return np.linspace(self.start_frequency_hz, self.stop_frequency_hz, num_bins)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sweep_count': self.sweep_count,
            'center_frequency_hz': self.center_frequency_hz,
            'span_hz': self.span_hz,
            'last_span_hz': self.last_span_hz,
            'rbw_hz': self.rbw_hz,
            'reference_level_dbm': self.reference_level_dbm,
            'min_amplitude_dbm': self.min_amplitude_dbm,
            'max_amplitude_dbm': self.max_amplitude_dbm,
            'locked_control': self.locked_control.value,
            'screen_mode': self.screen_mode.value,
            'is_paused': self.is_paused,
            'taps': self.taps,
            'noise_floor_dbm': self.noise_floor_dbm,
            'noise_floor_no_gain_dbm': self.noise_floor_no_gain_dbm,
            'should_apply_gain': self.should_apply_gain,
            'selected_trace': self.selected_trace,
            'traces': [t.to_dict() for t in self.traces],
            'is_marker_on': self.is_marker_on,
            'markers': [vars(m).copy() for m in self.markers],
            'marker_index': self.marker_index,
            'waterfall': self.waterfall,
            'last_signals': self.last_signals,
            'since_refresh_ms': self.since_refresh_ms,
            'rng_state': self.rng_state,
            'tracking': self.tracking,
            'alarms': self.alarms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalyzerSnapshot':
        values = dict(data)
        values['locked_control'] = LockedControl(data['locked_control'])
        values['screen_mode'] = ScreenMode(data['screen_mode'])
        values['traces'] = [Trace.from_dict(t) for t in data['traces']]
        values['markers'] = [Marker(**m) for m in data.get('markers', [])]
        return cls(**values)


class SpectrumAnalyzer:
    """
    Real-time spectrum analyzer attached to one front end through a resolver.
    """

    MIN_SPAN_HZ = 100.0

    def __init__(self, resolver: SignalPathResolver, config: Optional[AnalyzerConfig] = None):
        self.resolver = resolver
        self.config = config or AnalyzerConfig()
        self.config.validate()
        cfg = self.config

        self.center_frequency_hz = cfg.center_frequency_hz
        self.span_hz = cfg.span_hz
        self.last_span_hz = cfg.span_hz
        self.rbw_hz: Optional[float] = cfg.rbw_hz
        self.reference_level_dbm = cfg.reference_level_dbm
        self.min_amplitude_dbm = cfg.min_amplitude_dbm
        self.max_amplitude_dbm = cfg.max_amplitude_dbm
        self.locked_control = LockedControl.FREQ
        self.screen_mode = ScreenMode.SPECTRAL_DENSITY
        self.is_paused = False

        self.taps = {TapSlot.A: cfg.tap_a, TapSlot.B: cfg.tap_b}
        self.tap_enabled = {TapSlot.A: cfg.tap_a_enabled, TapSlot.B: cfg.tap_b_enabled}

        self.noise_floor_dbm = self.resolver.internal_noise_floor(self.effective_rbw_hz)
        self.noise_floor_no_gain_dbm = self.noise_floor_dbm
        self.should_apply_gain = False

        self.traces = [Trace() for _ in range(NUM_TRACES)]
        for trace in self.traces:
            trace.reset(cfg.num_bins)
        self.selected_trace = 1

        self.is_marker_on = False
        self.markers: List[Marker] = []
        self.marker_index = 0

        self.waterfall = RingBuffer(cfg.waterfall_depth)
        self.sweep_count = 0
        self._since_refresh_ms = 0.0
        self._last_signals: List[TapSignal] = []
        self._rng = np.random.default_rng(cfg.seed)

    # -----------------------------------------------------
    # Derived window values
    # -----------------------------------------------------

    @property
    def start_frequency_hz(self) -> float:
        return self.center_frequency_hz - self.span_hz / 2

    @property
    def stop_frequency_hz(self) -> float:
        return self.center_frequency_hz + self.span_hz / 2

    @property
    def effective_rbw_hz(self) -> float:
        """Explicit RBW, or the span when RBW is auto."""
        return self.rbw_hz if self.rbw_hz is not None else self.span_hz

    def bin_frequencies(self) -> np.ndarray:
        return np.linspace(self.start_frequency_hz, self.stop_frequency_hz, self.config.num_bins)

    def active_taps(self) -> List[TapPoint]:
        return [self.taps[slot] for slot in TapSlot if self.tap_enabled[slot]]

    # -----------------------------------------------------
    # Frequency controls
    # -----------------------------------------------------

    def set_center_frequency(self, frequency_hz: float) -> None:
        half = self.span_hz / 2
        low = self.config.min_frequency_hz + half
        high = self.config.max_frequency_hz - half
        if not low <= frequency_hz <= high:
            raise OutOfRangeError("center_frequency_hz", frequency_hz, low, high)
        self.center_frequency_hz = frequency_hz

    def set_span(self, span_hz: float) -> None:
        max_span = 2 * min(self.center_frequency_hz - self.config.min_frequency_hz,
                           self.config.max_frequency_hz - self.center_frequency_hz)
        if not self.MIN_SPAN_HZ <= span_hz <= max_span:
            raise OutOfRangeError("span_hz", span_hz, self.MIN_SPAN_HZ, max_span)
        if span_hz != self.span_hz:
            self.last_span_hz = self.span_hz
        self.span_hz = span_hz
        self.locked_control = LockedControl.SPAN

    def set_full_span(self) -> None:
        cfg = self.config
        full = cfg.max_frequency_hz - cfg.min_frequency_hz
        if full != self.span_hz:
            self.last_span_hz = self.span_hz
        self.center_frequency_hz = cfg.min_frequency_hz + full / 2
        self.span_hz = full

    def set_last_span(self) -> None:
        """Swap back to the previous span, centred on the current frequency."""
        self.set_span(self.last_span_hz)

    def set_locked_control(self, control: LockedControl) -> None:
        self.locked_control = control

    def set_start_frequency(self, frequency_hz: float) -> None:
        """
        Edit the start frequency.

        With the frequency locked the stop frequency is kept and the span
        follows; with the span locked the span is kept and the center moves.
        """
        cfg = self.config
        if self.locked_control is LockedControl.FREQ:
            stop = self.stop_frequency_hz
            if not (cfg.min_frequency_hz <= frequency_hz and stop - frequency_hz >= self.MIN_SPAN_HZ):
                raise OutOfRangeError("start_frequency_hz", frequency_hz,
                                      cfg.min_frequency_hz, stop - self.MIN_SPAN_HZ)
            span = stop - frequency_hz
            self.last_span_hz = self.span_hz
            self.span_hz = span
            self.center_frequency_hz = frequency_hz + span / 2
        else:
            high = cfg.max_frequency_hz - self.span_hz
            if not cfg.min_frequency_hz <= frequency_hz <= high:
                raise OutOfRangeError("start_frequency_hz", frequency_hz, cfg.min_frequency_hz, high)
            self.center_frequency_hz = frequency_hz + self.span_hz / 2

    def set_stop_frequency(self, frequency_hz: float) -> None:
        cfg = self.config
        if self.locked_control is LockedControl.FREQ:
            start = self.start_frequency_hz
            if not (frequency_hz <= cfg.max_frequency_hz and frequency_hz - start >= self.MIN_SPAN_HZ):
                raise OutOfRangeError("stop_frequency_hz", frequency_hz,
                                      start + self.MIN_SPAN_HZ, cfg.max_frequency_hz)
            span = frequency_hz - start
            self.last_span_hz = self.span_hz
            self.span_hz = span
            self.center_frequency_hz = start + span / 2
        else:
            low = cfg.min_frequency_hz + self.span_hz
            if not low <= frequency_hz <= cfg.max_frequency_hz:
                raise OutOfRangeError("stop_frequency_hz", frequency_hz, low, cfg.max_frequency_hz)
            self.center_frequency_hz = frequency_hz - self.span_hz / 2

    def set_rbw(self, rbw_hz: Optional[float]) -> None:
        """Set an explicit RBW, or None for auto."""
        if rbw_hz is not None and not self.config.min_rbw_hz <= rbw_hz <= self.config.max_rbw_hz:
            raise OutOfRangeError("rbw_hz", rbw_hz, self.config.min_rbw_hz, self.config.max_rbw_hz)
        self.rbw_hz = rbw_hz

    # -----------------------------------------------------
    # Amplitude controls
    # -----------------------------------------------------

    def set_reference_level(self, level_dbm: float) -> None:
        """Move the top of the screen, keeping the displayed dB range."""
        cfg = self.config
        if not cfg.min_reference_level_dbm <= level_dbm <= cfg.max_reference_level_dbm:
            raise OutOfRangeError("reference_level_dbm", level_dbm,
                                  cfg.min_reference_level_dbm, cfg.max_reference_level_dbm)
        height = self.max_amplitude_dbm - self.min_amplitude_dbm
        self.reference_level_dbm = level_dbm
        self.max_amplitude_dbm = level_dbm
        self.min_amplitude_dbm = level_dbm - height

    def set_amplitude_range(self, min_dbm: float, max_dbm: float) -> None:
        cfg = self.config
        for name, value in (("min_amplitude_dbm", min_dbm), ("max_amplitude_dbm", max_dbm)):
            if not cfg.min_reference_level_dbm <= value <= cfg.max_reference_level_dbm:
                raise OutOfRangeError(name, value, cfg.min_reference_level_dbm, cfg.max_reference_level_dbm)
        if min_dbm >= max_dbm:
            raise OutOfRangeError("min_amplitude_dbm", min_dbm, cfg.min_reference_level_dbm, max_dbm)
        self.min_amplitude_dbm = min_dbm
        self.max_amplitude_dbm = max_dbm
        self.reference_level_dbm = max_dbm

    # -----------------------------------------------------
    # Traces, markers, display
    # -----------------------------------------------------

    def trace(self, index: int) -> Trace:
        """Trace by 1-based index."""
        self._check_trace_index(index)
        return self.traces[index - 1]

    def set_trace_mode(self, index: int, mode: TraceMode) -> None:
        self.trace(index).set_mode(mode, self.config.num_bins)

    def select_trace(self, index: int) -> None:
        self._check_trace_index(index)
        self.selected_trace = index

    def toggle_trace_visibility(self, index: int) -> None:
        trace = self.trace(index)
        trace.is_visible = not trace.is_visible

    def reset_max_hold(self, index: Optional[int] = None) -> None:
        self._reset_hold(TraceMode.MAX_HOLD, index)

    def reset_min_hold(self, index: Optional[int] = None) -> None:
        self._reset_hold(TraceMode.MIN_HOLD, index)

    def _reset_hold(self, mode: TraceMode, index: Optional[int]) -> None:
        targets = [self.trace(index)] if index is not None else self.traces
        for trace in targets:
            if trace.mode is mode:
                trace.reset(self.config.num_bins)

    def _check_trace_index(self, index: int) -> None:
        if not 1 <= index <= NUM_TRACES:
            raise OutOfRangeError("trace_index", index, 1, NUM_TRACES)

    def toggle_marker(self) -> None:
        self.is_marker_on = not self.is_marker_on
        if self.is_marker_on:
            self._update_markers()
        else:
            self.markers = []
            self.marker_index = 0

    def step_marker(self, delta: int) -> None:
        """Move the active marker by ``delta`` peaks, wrapping at both ends."""
        if not self.markers:
            self.marker_index = 0
            return
        self.marker_index = (self.marker_index + int(delta)) % len(self.markers)

    @property
    def active_marker(self) -> Optional[Marker]:
        if not self.markers:
            return None
        return self.markers[self.marker_index]

    def cycle_screen_mode(self) -> ScreenMode:
        self.screen_mode = self.screen_mode.next()
        return self.screen_mode

    def toggle_pause(self) -> None:
        self.is_paused = not self.is_paused

    def set_tap_point(self, slot: TapSlot, tap: TapPoint) -> None:
        self.taps[slot] = TapPoint(tap)

    def set_tap_enabled(self, slot: TapSlot, enabled: bool) -> None:
        self.tap_enabled[slot] = bool(enabled)

    # -----------------------------------------------------
    # Auto-tune
    # -----------------------------------------------------

    def auto_tune(self) -> AutoTuneResult:
        """
        Centre on the strongest carrier seen in the current span.

        If nothing in view is above the noise floor the view is left
        unchanged and a "no signal found" result is returned.
        """
        cfg = self.config
        start, stop = self.start_frequency_hz, self.stop_frequency_hz
        in_view = [ts for ts in self._last_signals
                   if start <= ts.signal.frequency_hz <= stop and ts.power_dbm > self.noise_floor_dbm]
        if not in_view:
            logger.info("Auto-tune: no signal found in span")
            return AutoTuneResult(found=False, message="No signal found")

        best = max(in_view, key=lambda ts: ts.power_dbm)
        full = cfg.max_frequency_hz - cfg.min_frequency_hz
        span = min(max(best.signal.bandwidth_hz * 1.1, cfg.auto_tune_min_span_hz), full)

        center = best.signal.frequency_hz
        if center - span / 2 < cfg.min_frequency_hz:
            center = cfg.min_frequency_hz + span / 2
        if center + span / 2 > cfg.max_frequency_hz:
            center = cfg.max_frequency_hz - span / 2

        max_amp = math.ceil(best.power_dbm / 10.0) * 10.0
        min_amp = self.noise_floor_dbm - 6.0
        if max_amp < min_amp + 12.0:
            max_amp = min_amp + 12.0

        if span != self.span_hz:
            self.last_span_hz = self.span_hz
        self.center_frequency_hz = center
        self.span_hz = span
        self.max_amplitude_dbm = max_amp
        self.min_amplitude_dbm = min_amp
        self.reference_level_dbm = max_amp

        logger.info(f"Auto-tune: {best.signal.signal_id} at {center / 1e6:.3f} MHz, "
                    f"{best.power_dbm:.1f} dBm")
        return AutoTuneResult(found=True, message=f"Tuned to {best.signal.signal_id}",
                              frequency_hz=center, power_dbm=best.power_dbm)

    # -----------------------------------------------------
    # Tick
    # -----------------------------------------------------

    def tick(self, dt_ms: float, signals: Sequence[RfSignal]) -> AnalyzerSnapshot:
        """
        Advance the refresh timer and sweep when a refresh is due.

        The first tick always sweeps. A paused analyzer keeps its traces.

        Args:
            dt_ms: Milliseconds since the previous tick
            signals: Signals present this tick

        Returns:
            AnalyzerSnapshot of the current state
        """
        period = 1000.0 / self.config.refresh_rate_hz
        self._since_refresh_ms += dt_ms
        due = self.sweep_count == 0 or self._since_refresh_ms >= period

        if due and not self.is_paused:
            self._since_refresh_ms = self._since_refresh_ms % period
            self.sweep(signals)
        return self.snapshot()

    def sweep(self, signals: Sequence[RfSignal]) -> np.ndarray:
        cfg = self.config
        freqs = self.bin_frequencies()
        rbw = self.effective_rbw_hz

        # Step 1: Working baseline across active taps
        internal = self.resolver.internal_noise_floor(rbw)
        best = (internal, internal, False)
        for tap in self.active_taps():
            floor = self.resolver.noise_floor_at(tap, rbw)
            displayed = floor.noise_floor_dbm
            if floor.should_apply_gain:
                displayed += self.resolver.gain_to(tap)
            if displayed > best[0]:
                best = (displayed, floor.noise_floor_dbm, floor.should_apply_gain)
        self.noise_floor_dbm, self.noise_floor_no_gain_dbm, self.should_apply_gain = best

        # Step 2: Noise with seeded jitter
        jitter = self._rng.uniform(-cfg.noise_jitter_db, cfg.noise_jitter_db, cfg.num_bins)
        jitter = np.clip(jitter, -cfg.max_noise_jitter_db, cfg.max_noise_jitter_db)
        sweep = self.noise_floor_dbm + jitter

        # Step 3: Carriers
        bin_width = (self.stop_frequency_hz - self.start_frequency_hz) / max(cfg.num_bins - 1, 1)
        seen: List[TapSignal] = []
        for tap in self.active_taps():
            for tap_signal in self.resolver.signals_at(tap, signals):
                sig = tap_signal.signal
                if tap_signal.power_dbm == NEG_INF:
                    continue
                if not self.start_frequency_hz <= sig.frequency_hz <= self.stop_frequency_hz:
                    continue
                seen.append(tap_signal)
                shape_bw = max(sig.bandwidth_hz, 3.0 * bin_width)
                profile = gaussian_profile_db(freqs, sig.frequency_hz, shape_bw, tap_signal.power_dbm)
                sweep = np.maximum(sweep, profile)
        self._last_signals = seen

        # Step 4: Traces, waterfall, markers
        for trace in self.traces:
            trace.update(sweep, cfg.average_weight)
        if self.screen_mode is not ScreenMode.SPECTRAL_DENSITY:
            self.waterfall.put(sweep)
        if self.is_marker_on:
            self._update_markers()

        self.sweep_count += 1
        return sweep

    def _update_markers(self) -> None:
        self.markers = self.find_peaks(self.traces[self.selected_trace - 1].data)
        if self.markers:
            self.marker_index %= len(self.markers)
        else:
            self.marker_index = 0

    def find_peaks(self, data: np.ndarray) -> List[Marker]:
        """
        Local maxima at least ``peak_threshold_db`` above the noise floor.

        Returns:
            Markers in descending power order, at most ``max_markers``
        """
        if data.size < 3:
            return []
        threshold = self.noise_floor_dbm + self.config.peak_threshold_db
        mid = data[1:-1]
        with np.errstate(invalid='ignore'):
            mask = (mid > data[:-2]) & (mid >= data[2:]) & (mid >= threshold) & np.isfinite(mid)
        peaks = np.flatnonzero(mask) + 1
        order = peaks[np.argsort(-data[peaks], kind='stable')][:self.config.max_markers]
        freqs = self.bin_frequencies()
        return [Marker(int(i), float(freqs[i]), float(data[i])) for i in order]

    # -----------------------------------------------------
    # Status and persistence
    # -----------------------------------------------------

    def get_status_alarms(self) -> List[AlarmStatus]:
        alarms = []
        if self.is_paused:
            alarms.append(AlarmStatus(AlarmSeverity.INFO, "Analyzer paused"))
        active = self.active_taps()
        if not active:
            alarms.append(AlarmStatus(AlarmSeverity.INFO, "No tap point selected"))
        elif len(active) == 2 and active[0] is active[1]:
            alarms.append(AlarmStatus(AlarmSeverity.WARNING, "Both tap points set to same location"))
        if not alarms:
            alarms.append(AlarmStatus(AlarmSeverity.SUCCESS, "Analyzer nominal"))
        return alarms

    def snapshot(self) -> AnalyzerSnapshot:
        return AnalyzerSnapshot(
            sweep_count=self.sweep_count,
            center_frequency_hz=self.center_frequency_hz,
            span_hz=self.span_hz,
            last_span_hz=self.last_span_hz,
            rbw_hz=self.rbw_hz,
            reference_level_dbm=self.reference_level_dbm,
            min_amplitude_dbm=self.min_amplitude_dbm,
            max_amplitude_dbm=self.max_amplitude_dbm,
            locked_control=self.locked_control,
            screen_mode=self.screen_mode,
            is_paused=self.is_paused,
            taps={slot.value: {'tap': self.taps[slot].name, 'enabled': self.tap_enabled[slot]}
                  for slot in TapSlot},
            noise_floor_dbm=self.noise_floor_dbm,
            noise_floor_no_gain_dbm=self.noise_floor_no_gain_dbm,
            should_apply_gain=self.should_apply_gain,
            selected_trace=self.selected_trace,
            # Trace arrays are swapped, never written in place, so sharing them is safe
            traces=[Trace(t.mode, t.is_visible, t.is_updating, t.data) for t in self.traces],
            is_marker_on=self.is_marker_on,
            markers=list(self.markers),
            marker_index=self.marker_index,
            waterfall=self.waterfall.to_list(),
            last_signals=[{'signal': ts.signal.to_dict(), 'power_dbm': ts.power_dbm}
                          for ts in self._last_signals],
            since_refresh_ms=self._since_refresh_ms,
            rng_state=self._rng.bit_generator.state,
        )

    def restore(self, snapshot: AnalyzerSnapshot) -> None:
        """Load analyzer state from a snapshot. No sweep is run."""
        self.sweep_count = snapshot.sweep_count
        self.center_frequency_hz = snapshot.center_frequency_hz
        self.span_hz = snapshot.span_hz
        self.last_span_hz = snapshot.last_span_hz
        self.rbw_hz = snapshot.rbw_hz
        self.reference_level_dbm = snapshot.reference_level_dbm
        self.min_amplitude_dbm = snapshot.min_amplitude_dbm
        self.max_amplitude_dbm = snapshot.max_amplitude_dbm
        self.locked_control = snapshot.locked_control
        self.screen_mode = snapshot.screen_mode
        self.is_paused = snapshot.is_paused
        for slot in TapSlot:
            entry = snapshot.taps[slot.value]
            self.taps[slot] = TapPoint[entry['tap']]
            self.tap_enabled[slot] = bool(entry['enabled'])
        self.noise_floor_dbm = snapshot.noise_floor_dbm
        self.noise_floor_no_gain_dbm = snapshot.noise_floor_no_gain_dbm
        self.should_apply_gain = snapshot.should_apply_gain
        self.selected_trace = snapshot.selected_trace
        self.traces = [Trace(t.mode, t.is_visible, t.is_updating, np.array(t.data, dtype=float))
                       for t in snapshot.traces]
        self.is_marker_on = snapshot.is_marker_on
        self.markers = list(snapshot.markers)
        self.marker_index = snapshot.marker_index
        self.waterfall.load(snapshot.waterfall)
        self._last_signals = [TapSignal(RfSignal.from_dict(item['signal']), float(item['power_dbm']))
                              for item in snapshot.last_signals]
        self._since_refresh_ms = snapshot.since_refresh_ms
        if snapshot.rng_state:
            self._rng.bit_generator.state = snapshot.rng_state
