"""Application bootstrap for boxtag."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from .ui.main_window import MainWindow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


def create_application() -> QApplication:
    """
    Create and configure the Qt application.

    Returns:
        Configured QApplication instance
    """
    app = QApplication(sys.argv)
    app.setApplicationName("boxtag")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("boxtag")
    return app


def run() -> int:
    """
    Run the boxtag application.

    An image path given on the command line is opened on startup.

    Returns:
        Exit code
    """
    logger.info("Starting boxtag")

    try:
        app = create_application()

        window = MainWindow()
        window.show()
        logger.info("MainWindow shown")

        if len(sys.argv) > 1:
            window.open_image(Path(sys.argv[1]))

        return app.exec()

    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        return 1


def main() -> None:
    """Main entry point for the application."""
    sys.exit(run())


if __name__ == "__main__":
    main()
