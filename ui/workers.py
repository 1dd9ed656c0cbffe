"""
Simulation driver - QTimer-paced ticks of the ground station core.

The core has no threads and no event bus. The driver owns the timer, calls
GroundStation.tick() on the GUI thread and forwards every snapshot and
alarm change to the UI through Qt signals.
"""

import logging
import time
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from core.alarms import AlarmSnapshot
from core.ground_station import ControlResult, GroundStation
from core.scenario import Scenario
from core.spectrum_analyzer import AnalyzerSnapshot

logger = logging.getLogger(__name__)


class SimulationSignals(QObject):
    """
    Qt signal container for simulation updates.

    Attributes:
        snapshot_signal (Signal): Emitted after every tick. Carries: AnalyzerSnapshot
        alarm_signal (Signal): Emitted when the aggregated alarm set changes. Carries: AlarmSnapshot
        log_signal (Signal): Log and rejection messages
        status_signal (Signal): (message, is_running)
    """
    snapshot_signal = Signal(object)
    alarm_signal = Signal(object)
    log_signal = Signal(str)
    status_signal = Signal(str, bool)


class SimulationDriver(QObject):
    """
    Drives a GroundStation from a QTimer and relays results as Qt signals.
    """

    def __init__(self, station: GroundStation, scenario: Optional[Scenario] = None,
                 signals: Optional[SimulationSignals] = None, parent=None):
        super().__init__(parent)
        self.station = station
        self.scenario = scenario or Scenario()
        self.signals = signals or SimulationSignals()

        # Alarm changes reach the UI through the injected callback only
        self.station.alarm_aggregator.on_change = self._on_alarm_change

        self.timer = QTimer(self)
        self.timer.timeout.connect(self._on_timeout)
        self._last_time: Optional[float] = None
        self.last_snapshot: Optional[AnalyzerSnapshot] = None

    @property
    def is_running(self) -> bool:
        return self.timer.isActive()

    def start(self, interval_ms: Optional[int] = None):
        """Start ticking; defaults to the analyzer refresh rate."""
        if interval_ms is None:
            interval_ms = int(1000 / self.station.config.analyzer.refresh_rate_hz)
        self._last_time = time.monotonic()
        self.timer.start(interval_ms)
        self.signals.status_signal.emit(f"Simulation running ({interval_ms} ms)", True)

    def stop(self):
        self.timer.stop()
        self._last_time = None
        self.signals.status_signal.emit("Simulation stopped", False)

    def step(self, dt_ms: float) -> AnalyzerSnapshot:
        """
        Run one tick with the scenario's current signals.

        Args:
            dt_ms: Milliseconds since the previous tick

        Returns:
            The snapshot that was also emitted on ``snapshot_signal``
        """
        snapshot = self.station.tick(dt_ms, self.scenario.active_signals())
        self.last_snapshot = snapshot
        self.signals.snapshot_signal.emit(snapshot)
        return snapshot

    def report(self, action: str, result: ControlResult) -> ControlResult:
        """Forward a rejected control to the log signal."""
        if not result.ok:
            self.signals.log_signal.emit(f"[{self.station.asset_id}] {action} rejected: {result.error}")
        return result

    def _on_timeout(self):
        now = time.monotonic()
        dt_ms = 0.0 if self._last_time is None else (now - self._last_time) * 1000.0
        self._last_time = now
        try:
            self.step(dt_ms)
        except Exception as e:
            logger.error(f"[{self.station.asset_id}] Tick failed: {str(e)}", exc_info=True)
            self.signals.log_signal.emit(f"[{self.station.asset_id}] Tick failed: {e}")
            self.stop()

    def _on_alarm_change(self, alarms: AlarmSnapshot):
        self.signals.alarm_signal.emit(alarms)
        if alarms.is_stable:
            self.signals.log_signal.emit(f"[{self.station.asset_id}] Alarms cleared")
        else:
            for alarm in alarms.alarms:
                self.signals.log_signal.emit(
                    f"[{alarm.asset_id}] {alarm.equipment_type}{alarm.equipment_index} "
                    f"{alarm.severity.value.upper()}: {alarm.message}")
