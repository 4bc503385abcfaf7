#!/usr/bin/env python3
"""
See My Speech - local Whisper serving manager
Loads a Whisper model in the background and keeps one serving worker alive
"""

import logging
import sys
from PyQt5.QtWidgets import QApplication

from core.serving_manager import ServingManager
from core.settings import ServingSettings
from core.system_checker import SystemChecker
from ui.main_window import ServingWindow
from workers.serving_supervisor import WorkerSupervisor
from workers.transcription_worker import join_retired_workers


def main():
    """Main application entry point"""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    app = QApplication(sys.argv)

    # Set application properties
    app.setApplicationName("See My Speech")
    app.setApplicationVersion("1.0")
    app.setOrganizationName("SeeMySpeech")

    system_info = SystemChecker.check_system()
    settings = ServingSettings.load(default_model=system_info['recommended_model'])

    manager = ServingManager(
        supervisor=WorkerSupervisor(config=settings.serving_config()),
        tick_interval_ms=settings.tick_interval_ms,
        auto_load=settings.local_model if settings.auto_load else None,
    )
    app.aboutToQuit.connect(manager.shutdown)
    app.aboutToQuit.connect(join_retired_workers)

    window = ServingWindow(manager, settings)
    window.show()

    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
