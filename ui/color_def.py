"""
Color definitions for alarm severities, analyzer traces and tap points.
"""

from core.alarms import AlarmSeverity
from core.rf_models import TapPoint

SEVERITY_COLORS = {
    AlarmSeverity.ERROR: '#D32F2F',    # Red
    AlarmSeverity.WARNING: '#F57C00',  # Orange
    AlarmSeverity.INFO: '#1976D2',     # Blue
    AlarmSeverity.SUCCESS: '#388E3C',  # Green
    AlarmSeverity.OFF: '#9E9E9E',      # Grey
}

# Trace 1 yellow, trace 2 cyan, trace 3 magenta
TRACE_COLORS = ('#FFD600', '#00E5FF', '#FF4081')

WATERFALL_CMAP = 'viridis'
NOISE_FLOOR_COLOR = '#757575'
MARKER_COLOR = '#FF1744'


def get_severity_color(severity):
    """
    Get the display color for an alarm severity.

    Parameters
    ----------
    severity : AlarmSeverity or str
        Severity enum or its string value (e.g. 'warning').

    Returns
    -------
    str
        Hex color code; grey for unknown values.
    """
    if isinstance(severity, str):
        try:
            severity = AlarmSeverity(severity.lower())
        except ValueError:
            return SEVERITY_COLORS[AlarmSeverity.OFF]
    return SEVERITY_COLORS.get(severity, SEVERITY_COLORS[AlarmSeverity.OFF])


def get_trace_color(trace_index: int) -> str:
    """
    Get the color of an analyzer trace.

    Parameters
    ----------
    trace_index : int
        1-based trace number; values beyond the palette wrap around.

    Returns
    -------
    str
        Hex color code.
    """
    return TRACE_COLORS[(trace_index - 1) % len(TRACE_COLORS)]


def get_tap_color(tap) -> str:
    # Receive taps in greens, transmit taps in reds
    tap = TapPoint(tap)
    if tap.is_receive:
        return ('#1B5E20', '#2E7D32', '#43A047', '#66BB6A')[tap - TapPoint.RX_RF_PRE_OMT]
    return ('#B71C1C', '#C62828', '#E53935', '#EF5350')[tap - TapPoint.TX_IF]
