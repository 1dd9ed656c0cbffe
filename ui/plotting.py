"""
Matplotlib rendering of analyzer snapshots.

These helpers draw onto plain Axes/Figure objects and never touch Qt, so
they work with any canvas (including an off-screen Figure).
"""

import numpy as np
from matplotlib.figure import Figure

from core.spectrum_analyzer import AnalyzerSnapshot, ScreenMode
from ui.color_def import (MARKER_COLOR, NOISE_FLOOR_COLOR, WATERFALL_CMAP,
                          get_trace_color)


def _finite_or_nan(data) -> np.ndarray:
    values = np.asarray(data, dtype=float)
    return np.where(np.isfinite(values), values, np.nan)


def draw_spectrum(ax, snapshot: AnalyzerSnapshot):
    """
    Draw the spectral density view of a snapshot.

    Args:
        ax: Matplotlib Axes to draw on (cleared first)
        snapshot: Analyzer state after a tick

    Returns:
        List of Line2D objects, one per visible trace
    """
    ax.clear()
    freqs_mhz = snapshot.frequencies() / 1e6
    lines = []

    for index, trace in enumerate(snapshot.traces, start=1):
        if not trace.is_visible or trace.data.size != freqs_mhz.size:
            continue
        line, = ax.plot(freqs_mhz, _finite_or_nan(trace.data),
                        color=get_trace_color(index), linewidth=1.0,
                        label=f"Trace {index} ({trace.mode.value})")
        lines.append(line)

    ax.axhline(snapshot.noise_floor_dbm, color=NOISE_FLOOR_COLOR,
               linestyle=':', linewidth=0.8, alpha=0.7)

    for i, marker in enumerate(snapshot.markers):
        is_active = i == snapshot.marker_index
        ax.scatter(marker.frequency_hz / 1e6, marker.power_dbm,
                   marker='v', s=60 if is_active else 30, c=MARKER_COLOR, zorder=10)
        if is_active:
            ax.annotate(f"M{i + 1}: {marker.frequency_hz / 1e6:.3f} MHz\n{marker.power_dbm:.1f} dBm",
                        (marker.frequency_hz / 1e6, marker.power_dbm),
                        textcoords='offset points', xytext=(5, 8), fontsize=8)

    ax.set_xlim(snapshot.start_frequency_hz / 1e6, snapshot.stop_frequency_hz / 1e6)
    ax.set_ylim(snapshot.min_amplitude_dbm, snapshot.max_amplitude_dbm)
    ax.set_xlabel("Frequency (MHz)")
    ax.set_ylabel("Power (dBm)")

    rbw = "auto" if snapshot.rbw_hz is None else f"{snapshot.rbw_hz / 1e3:.1f} kHz"
    ax.set_title(f"CF {snapshot.center_frequency_hz / 1e6:.3f} MHz  "
                 f"Span {snapshot.span_hz / 1e6:.3f} MHz  RBW {rbw}", fontsize=9)
    ax.grid(True, alpha=0.3, linestyle='--')
    if lines:
        ax.legend(loc='upper right', fontsize=8)
    return lines


def draw_waterfall(ax, snapshot: AnalyzerSnapshot):
    """Draw the sweep history, newest sweep at the top. Returns the image or None."""
    ax.clear()
    ax.set_xlabel("Frequency (MHz)")
    ax.set_ylabel("Sweeps ago")

    if not snapshot.waterfall:
        ax.text(0.5, 0.5, "No waterfall data", ha='center', va='center',
                transform=ax.transAxes, color='gray')
        return None

    history = np.asarray(snapshot.waterfall, dtype=float)
    history = np.where(np.isfinite(history), history, snapshot.min_amplitude_dbm)
    image = ax.imshow(history[::-1], aspect='auto', cmap=WATERFALL_CMAP,
                      vmin=snapshot.min_amplitude_dbm, vmax=snapshot.max_amplitude_dbm,
                      extent=(snapshot.start_frequency_hz / 1e6, snapshot.stop_frequency_hz / 1e6,
                              len(history), 0))
    return image


def render_snapshot(figure: Figure, snapshot: AnalyzerSnapshot):
    """
    Lay out the figure for the snapshot's screen mode and draw it.

    Returns:
        List of the Axes that were drawn, top to bottom
    """
    figure.clear()
    if snapshot.screen_mode is ScreenMode.BOTH:
        ax_spec = figure.add_subplot(211)
        ax_fall = figure.add_subplot(212)
        draw_spectrum(ax_spec, snapshot)
        draw_waterfall(ax_fall, snapshot)
        return [ax_spec, ax_fall]

    ax = figure.add_subplot(111)
    if snapshot.screen_mode is ScreenMode.WATERFALL:
        draw_waterfall(ax, snapshot)
    else:
        draw_spectrum(ax, snapshot)
    return [ax]
