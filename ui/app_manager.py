# ui/app_manager.py
import logging

from PySide6.QtCore import QObject
from PySide6.QtGui import QPalette, QColor

from core.ground_station import GroundStation
from core.scenario import Scenario
from core.sim_config import SimulationConfig
from ui.main_window import StationWindow
from ui.workers import SimulationDriver

logger = logging.getLogger(__name__)


class AppManager(QObject):
    """
    Application manager - owns the simulated station, its driver and its window
    """

    def __init__(self, app, config: SimulationConfig = None, scenario: Scenario = None):
        super().__init__()
        self.app = app
        self.config = config or SimulationConfig()
        self.scenario = scenario or Scenario()

        self.station = None
        self.driver = None
        self.station_window = None

        self.apply_global_style()

    def apply_global_style(self):
        """Apply global application style"""
        self.app.setStyle("Fusion")
        palette = QPalette()

        palette.setColor(QPalette.ColorRole.Window, QColor(250, 250, 250))
        palette.setColor(QPalette.ColorRole.Base, QColor(255, 255, 255))
        palette.setColor(QPalette.ColorRole.AlternateBase, QColor(245, 245, 245))

        palette.setColor(QPalette.ColorRole.WindowText, QColor(30, 30, 30))
        palette.setColor(QPalette.ColorRole.Text, QColor(20, 20, 20))

        palette.setColor(QPalette.ColorRole.Button, QColor(245, 245, 245))
        palette.setColor(QPalette.ColorRole.ButtonText, QColor(30, 30, 30))

        palette.setColor(QPalette.ColorRole.Highlight, QColor(52, 125, 255))
        palette.setColor(QPalette.ColorRole.HighlightedText, QColor(255, 255, 255))

        self.app.setPalette(palette)

        font = self.app.font()
        font.setPointSize(9)
        self.app.setFont(font)

    def show_station(self, autostart: bool = True):
        """Build the station, its driver and the main window, then show it"""
        self.close_station()

        self.station = GroundStation(self.config)
        self.driver = SimulationDriver(self.station, self.scenario, parent=self)
        self.station_window = StationWindow(self.driver)
        self.station_window.show()
        logger.info(f"[{self.station.asset_id}] Station window opened, scenario '{self.scenario.name}'")

        if autostart:
            self.driver.start()

    def close_station(self):
        if self.driver and self.driver.is_running:
            self.driver.stop()
        if self.station_window:
            self.station_window.close()
            self.station_window = None
        self.driver = None
        self.station = None
