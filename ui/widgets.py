# ui/widgets.py
"""
Ground station widgets: analyzer display, alarm banner and tracking panel.
"""

from PySide6.QtWidgets import (QWidget, QVBoxLayout, QLabel, QTableWidget,
                               QTableWidgetItem)
from PySide6.QtGui import QColor, QFont
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure

from core.alarms import AlarmSnapshot
from core.spectrum_analyzer import AnalyzerSnapshot
from ui.color_def import get_severity_color
from ui.plotting import render_snapshot


class SpectrumWidget(QWidget):
    """
    Spectrum analyzer screen (spectral density, waterfall or both).
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        self.figure = Figure(figsize=(10, 6), dpi=100)
        self.canvas = FigureCanvas(self.figure)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.canvas)

        ax = self.figure.add_subplot(111)
        ax.set_xlabel("Frequency (MHz)")
        ax.set_ylabel("Power (dBm)")
        ax.set_title("Spectrum Analyzer")
        ax.grid(True, alpha=0.3, linestyle='--')

    def update_snapshot(self, snapshot: AnalyzerSnapshot):
        """Redraw the analyzer screen from a snapshot."""
        if snapshot is None:
            return
        render_snapshot(self.figure, snapshot)
        self.figure.tight_layout()
        self.canvas.draw_idle()


class AlarmBanner(QLabel):
    """One-line summary of the aggregated alarm state."""

    def __init__(self, parent=None):
        super().__init__("No active alarms", parent)
        self.setFont(QFont("Microsoft YaHei", 10, QFont.Weight.Bold))
        self.setWordWrap(True)
        self._apply_color(get_severity_color('success'))

    def update_alarms(self, alarms: AlarmSnapshot):
        if alarms.is_stable:
            self.setText("No active alarms")
            self._apply_color(get_severity_color('success'))
            return
        lines = [f"{a.equipment_type}{a.equipment_index}: {a.message}" for a in alarms.alarms]
        self.setText(f"{alarms.severity.value.upper()} | " + " | ".join(lines))
        self._apply_color(get_severity_color(alarms.severity))

    def _apply_color(self, color: str):
        self.setStyleSheet(f"color: white; background-color: {color}; padding: 4px; border-radius: 4px;")


class TrackingInfoWidget(QWidget):
    """
    Antenna tracking state in a parameter/value table.
    """

    PARAMETERS = [
        ("Power", 'is_powered'),
        ("Azimuth", 'azimuth_deg'),
        ("Elevation", 'elevation_deg'),
        ("Skew", 'skew_deg'),
        ("Auto Track", 'is_auto_track'),
        ("Lock State", 'lock_state'),
        ("Locked Signal", 'locked_signal_id'),
        ("Loopback", 'is_loopback'),
        ("Visible Signals", 'visible_signal_count'),
        ("Sky Temperature", 'sky_temperature_k'),
        ("Atmospheric Loss", 'atmospheric_loss_db'),
        ("Polarization Loss", 'polarization_loss_db'),
        ("Path Loss", 'path_loss_db'),
    ]

    UNITS = {
        'azimuth_deg': "°", 'elevation_deg': "°", 'skew_deg': "°",
        'sky_temperature_k': " K", 'atmospheric_loss_db': " dB",
        'polarization_loss_db': " dB", 'path_loss_db': " dB",
    }

    def __init__(self, parent=None):
        super().__init__(parent)

        layout = QVBoxLayout(self)
        self.table = QTableWidget()
        self.table.setColumnCount(2)
        self.table.setHorizontalHeaderLabels(["Parameter", "Value"])
        self.table.setRowCount(len(self.PARAMETERS))

        for i, (label, _) in enumerate(self.PARAMETERS):
            item = QTableWidgetItem(label)
            item.setFont(QFont("Courier", 10))
            self.table.setItem(i, 0, item)
            self.table.setItem(i, 1, QTableWidgetItem("--"))

        layout.addWidget(self.table)

    def update_tracking(self, tracking: dict):
        if not tracking:
            return
        for row, (_, key) in enumerate(self.PARAMETERS):
            value = tracking.get(key)
            if isinstance(value, bool):
                text = "On" if value else "Off"
            elif isinstance(value, float):
                text = f"{value:.2f}{self.UNITS.get(key, '')}"
            elif value is None:
                text = "--"
            else:
                text = str(value)

            item = QTableWidgetItem(text)
            item.setFont(QFont("Courier", 10))
            if key == 'lock_state':
                if value == 'locked':
                    item.setForeground(QColor("green"))
                elif value in ('acquiring', 'failed'):
                    item.setForeground(QColor("orange"))
            self.table.setItem(row, 1, item)
