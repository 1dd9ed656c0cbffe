#!/usr/bin/env python3
"""
RFGS - RF Ground Station Studio
Main GUI Application Entry Point
"""

import logging
import sys
from PySide6.QtWidgets import QApplication
from ui.app_manager import AppManager


def main():
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = QApplication(sys.argv)
    app.setApplicationName("RFGS - RF Ground Station Studio")
    app.setApplicationVersion("0.1")

    manager = AppManager(app)
    manager.show_station()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
