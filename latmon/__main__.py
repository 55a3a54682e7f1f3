"""Entry point for the latmon application."""

import logging
import sys

from PySide6.QtWidgets import QApplication

from latmon.collector_http import HttpProber
from latmon.config import Settings
from latmon.fake_collector import FakeProber
from latmon.logging_config import configure_logging
from latmon.ui.main_window import MainWindow

# Configure logging early
configure_logging()
logger = logging.getLogger(__name__)


def build_prober(settings: Settings):
    """Create the prober selected by the settings."""
    if settings.prober == "fake":
        logger.info("Using FakeProber (LATMON_PROBER=fake)")
        return FakeProber(simulate_delay=True)

    logger.info("Using HttpProber: timeout_ms=%d", settings.timeout_ms)
    return HttpProber(timeout_ms=settings.timeout_ms)


def main():
    """Main entry point for the latmon application."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    app = QApplication(sys.argv)

    window = MainWindow(settings, build_prober(settings))
    if settings.prober == "fake":
        window.status_label.setText("Status: Using simulated data (LATMON_PROBER=fake)")
        window.status_label.setStyleSheet("font-weight: bold; color: orange;")

    window.show()

    if settings.auto_start:
        window.toggle_auto()

    logger.info(
        "latmon started: %d targets, max_concurrent=%d",
        len(window.registry),
        settings.max_concurrent,
    )
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
