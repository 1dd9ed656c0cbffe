# ui/main_window.py
"""
Ground station main window: analyzer screen, analyzer and antenna controls,
tracking table, alarm banner and log.
"""
from datetime import datetime

from PySide6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
                               QPushButton, QLabel, QTextEdit, QSplitter, QComboBox,
                               QDoubleSpinBox, QGroupBox, QCheckBox)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QFont

from core.alarms import AlarmSnapshot
from core.ground_station import ControlResult, GroundStation
from core.rf_models import TapPoint
from core.spectrum_analyzer import AnalyzerSnapshot, TapSlot
from core.traces import TraceMode
from ui.widgets import AlarmBanner, SpectrumWidget, TrackingInfoWidget
from ui.workers import SimulationDriver


class StationWindow(QMainWindow):
    """
    Main window of one simulated ground station.
    """

    def __init__(self, driver: SimulationDriver):
        super().__init__()
        self.driver = driver
        self.station: GroundStation = driver.station

        self.setWindowTitle(f"RFGS - RF Ground Station Studio [{self.station.asset_id}]")
        self.resize(1500, 900)
        self.max_log_lines = 500

        self.setup_ui()
        self.sync_controls()

        signals = self.driver.signals
        signals.snapshot_signal.connect(self.on_snapshot)
        signals.alarm_signal.connect(self.on_alarms)
        signals.log_signal.connect(self.append_log)
        signals.status_signal.connect(self.update_status)

    # -----------------------------------------------------
    # Layout
    # -----------------------------------------------------

    def setup_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        top_bar = QHBoxLayout()
        title_label = QLabel("RF Ground Station Studio")
        title_label.setFont(QFont("Microsoft YaHei", 14, QFont.Weight.Bold))
        title_label.setStyleSheet("color: #347DFF;")

        self.status_label = QLabel("Simulation stopped")
        self.btn_run = QPushButton("Start")
        self.btn_run.setMaximumWidth(100)
        self.btn_run.clicked.connect(self.on_run_clicked)

        top_bar.addWidget(title_label)
        top_bar.addStretch()
        top_bar.addWidget(self.status_label)
        top_bar.addWidget(self.btn_run)
        layout.addLayout(top_bar)

        self.alarm_banner = AlarmBanner()
        layout.addWidget(self.alarm_banner)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.spectrum_widget = SpectrumWidget()
        splitter.addWidget(self.spectrum_widget)

        side = QWidget()
        side_layout = QVBoxLayout(side)
        side_layout.addWidget(self.create_analyzer_group())
        side_layout.addWidget(self.create_antenna_group())
        self.tracking_widget = TrackingInfoWidget()
        side_layout.addWidget(self.tracking_widget)
        splitter.addWidget(side)

        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        layout.addWidget(splitter, stretch=1)

        self.log_area = QTextEdit()
        self.log_area.setReadOnly(True)
        self.log_area.setMaximumHeight(100)
        self.log_area.setStyleSheet(
            "background: #ffffff; color: #000000; "
            "font-family: Monospace; border: 1px solid #ccc;"
        )
        layout.addWidget(self.log_area)

    def create_analyzer_group(self):
        group = QGroupBox("Spectrum Analyzer")
        grid = QGridLayout(group)

        cfg = self.station.config.analyzer

        self.spin_center = self._mhz_spin(cfg.min_frequency_hz, cfg.max_frequency_hz)
        self.spin_span = self._mhz_spin(self.station.analyzer.MIN_SPAN_HZ, cfg.max_frequency_hz)
        self.spin_ref = QDoubleSpinBox()
        self.spin_ref.setRange(cfg.min_reference_level_dbm, cfg.max_reference_level_dbm)
        self.spin_ref.setSuffix(" dBm")

        btn_center = QPushButton("Set")
        btn_center.clicked.connect(
            lambda: self.apply("Center frequency",
                               self.station.set_center_frequency(self.spin_center.value() * 1e6)))
        btn_span = QPushButton("Set")
        btn_span.clicked.connect(
            lambda: self.apply("Span", self.station.set_span(self.spin_span.value() * 1e6)))
        btn_ref = QPushButton("Set")
        btn_ref.clicked.connect(
            lambda: self.apply("Reference level", self.station.set_reference_level(self.spin_ref.value())))

        grid.addWidget(QLabel("Center:"), 0, 0)
        grid.addWidget(self.spin_center, 0, 1)
        grid.addWidget(btn_center, 0, 2)
        grid.addWidget(QLabel("Span:"), 1, 0)
        grid.addWidget(self.spin_span, 1, 1)
        grid.addWidget(btn_span, 1, 2)
        grid.addWidget(QLabel("Ref Level:"), 2, 0)
        grid.addWidget(self.spin_ref, 2, 1)
        grid.addWidget(btn_ref, 2, 2)

        self.combo_trace_mode = QComboBox()
        for mode in TraceMode:
            self.combo_trace_mode.addItem(mode.name.replace('_', ' ').title(), mode)
        self.combo_trace_mode.activated.connect(self.on_trace_mode_selected)
        grid.addWidget(QLabel("Trace 1 Mode:"), 3, 0)
        grid.addWidget(self.combo_trace_mode, 3, 1, 1, 2)

        self.combo_tap_a = self._tap_combo()
        self.combo_tap_b = self._tap_combo()
        self.combo_tap_a.activated.connect(lambda: self.on_tap_selected(TapSlot.A, self.combo_tap_a))
        self.combo_tap_b.activated.connect(lambda: self.on_tap_selected(TapSlot.B, self.combo_tap_b))
        grid.addWidget(QLabel("Tap A:"), 4, 0)
        grid.addWidget(self.combo_tap_a, 4, 1, 1, 2)
        grid.addWidget(QLabel("Tap B:"), 5, 0)
        grid.addWidget(self.combo_tap_b, 5, 1, 1, 2)

        buttons = [
            ("Full Span", self.station.set_full_span),
            ("Last Span", self.station.set_last_span),
            ("Marker", self.station.toggle_marker),
            ("Next Marker", lambda: self.station.step_marker(1)),
            ("Auto Tune", self.station.auto_tune),
            ("Screen Mode", self.station.cycle_screen_mode),
            ("Pause", self.station.toggle_pause),
            ("Reset Hold", self.station.reset_max_hold),
        ]
        for i, (label, action) in enumerate(buttons):
            btn = QPushButton(label)
            btn.clicked.connect(lambda checked=False, name=label, fn=action: self.apply(name, fn()))
            grid.addWidget(btn, 6 + i // 3, i % 3)

        return group

    def create_antenna_group(self):
        group = QGroupBox("Antenna")
        grid = QGridLayout(group)

        self.chk_power = QCheckBox("Powered")
        self.chk_power.toggled.connect(
            lambda on: self.apply("Antenna power", self.station.set_antenna_power(on)))
        self.chk_hpa = QCheckBox("HPA RF On")
        self.chk_hpa.toggled.connect(
            lambda on: self.apply("HPA enable", self.station.set_hpa_enabled(on)))
        grid.addWidget(self.chk_power, 0, 0)
        grid.addWidget(self.chk_hpa, 0, 1)

        self.spin_az = QDoubleSpinBox()
        self.spin_az.setRange(-360.0, 720.0)
        self.spin_az.setDecimals(1)
        self.spin_az.setSuffix("°")
        self.spin_el = QDoubleSpinBox()
        self.spin_el.setRange(-10.0, 100.0)
        self.spin_el.setDecimals(1)
        self.spin_el.setSuffix("°")
        self.spin_skew = QDoubleSpinBox()
        self.spin_skew.setRange(-180.0, 180.0)
        self.spin_skew.setDecimals(1)
        self.spin_skew.setSuffix("°")

        btn_point = QPushButton("Point")
        btn_point.clicked.connect(
            lambda: self.apply("Pointing", self.station.set_antenna_pointing(
                self.spin_az.value(), self.spin_el.value())))
        btn_skew = QPushButton("Set Skew")
        btn_skew.clicked.connect(
            lambda: self.apply("Skew", self.station.set_antenna_skew(self.spin_skew.value())))

        grid.addWidget(QLabel("Az:"), 1, 0)
        grid.addWidget(self.spin_az, 1, 1)
        grid.addWidget(QLabel("El:"), 2, 0)
        grid.addWidget(self.spin_el, 2, 1)
        grid.addWidget(btn_point, 1, 2, 2, 1)
        grid.addWidget(QLabel("Skew:"), 3, 0)
        grid.addWidget(self.spin_skew, 3, 1)
        grid.addWidget(btn_skew, 3, 2)

        btn_track = QPushButton("Auto Track")
        btn_track.clicked.connect(lambda: self.apply("Auto track", self.station.toggle_auto_track()))
        btn_loop = QPushButton("Loopback")
        btn_loop.clicked.connect(lambda: self.apply("Loopback", self.station.toggle_loopback()))
        grid.addWidget(btn_track, 4, 0)
        grid.addWidget(btn_loop, 4, 1)

        return group

    def _mhz_spin(self, minimum_hz, maximum_hz):
        spin = QDoubleSpinBox()
        spin.setDecimals(3)
        spin.setRange(minimum_hz / 1e6, maximum_hz / 1e6)
        spin.setSuffix(" MHz")
        return spin

    def _tap_combo(self):
        combo = QComboBox()
        for tap in TapPoint:
            combo.addItem(tap.label, tap)
        return combo

    # -----------------------------------------------------
    # Controls
    # -----------------------------------------------------

    def apply(self, action: str, result: ControlResult) -> ControlResult:
        """Report a control outcome and refresh the widgets showing its value."""
        self.driver.report(action, result)
        if result.ok and result.value is not None and hasattr(result.value, 'message'):
            self.append_log(f"{action}: {result.value.message}")
        self.sync_controls()
        return result

    def sync_controls(self):
        """Copy the current station state into the input widgets without firing their handlers."""
        analyzer = self.station.analyzer
        antenna = self.station.front_end.antenna
        for widget, value in (
            (self.spin_center, analyzer.center_frequency_hz / 1e6),
            (self.spin_span, analyzer.span_hz / 1e6),
            (self.spin_ref, analyzer.reference_level_dbm),
            (self.spin_az, antenna.azimuth_deg),
            (self.spin_el, antenna.elevation_deg),
            (self.spin_skew, antenna.skew_deg),
        ):
            widget.blockSignals(True)
            widget.setValue(value)
            widget.blockSignals(False)

        for checkbox, value in ((self.chk_power, antenna.is_powered),
                                (self.chk_hpa, self.station.front_end.hpa.is_enabled)):
            checkbox.blockSignals(True)
            checkbox.setChecked(value)
            checkbox.blockSignals(False)

        for combo, slot in ((self.combo_tap_a, TapSlot.A), (self.combo_tap_b, TapSlot.B)):
            combo.setCurrentIndex(combo.findData(analyzer.taps[slot]))
        self.combo_trace_mode.setCurrentIndex(self.combo_trace_mode.findData(analyzer.trace(1).mode))

    def on_trace_mode_selected(self, index):
        self.apply("Trace mode", self.station.set_trace_mode(1, self.combo_trace_mode.itemData(index)))

    def on_tap_selected(self, slot: TapSlot, combo: QComboBox):
        self.apply(f"Tap {slot.value}", self.station.set_tap_point(slot, combo.currentData()))

    def on_run_clicked(self):
        if self.driver.is_running:
            self.driver.stop()
        else:
            self.driver.start()

    # -----------------------------------------------------
    # Driver slots
    # -----------------------------------------------------

    @Slot(object)
    def on_snapshot(self, snapshot: AnalyzerSnapshot):
        self.spectrum_widget.update_snapshot(snapshot)
        self.tracking_widget.update_tracking(snapshot.tracking)

    @Slot(object)
    def on_alarms(self, alarms: AlarmSnapshot):
        self.alarm_banner.update_alarms(alarms)

    @Slot(str, bool)
    def update_status(self, message, is_running):
        self.status_label.setText(message)
        color = "#00AA00" if is_running else "#CC0000"
        self.status_label.setStyleSheet(f"color: {color}; font-weight: bold;")
        self.btn_run.setText("Stop" if is_running else "Start")

    def append_log(self, text):
        """Append a timestamped line, dropping the oldest 100 lines past the limit."""
        self.log_area.append(f"[{datetime.now().strftime('%H:%M:%S')}] {text}")
        doc = self.log_area.document()
        if doc.blockCount() > self.max_log_lines:
            cursor = self.log_area.textCursor()
            cursor.movePosition(cursor.MoveOperation.Start)
            for _ in range(100):
                cursor.movePosition(cursor.MoveOperation.Down, cursor.MoveMode.KeepAnchor)
            cursor.removeSelectedText()

    def closeEvent(self, event):
        if self.driver.is_running:
            self.driver.stop()
        super().closeEvent(event)
