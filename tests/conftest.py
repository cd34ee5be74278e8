"""Pytest configuration and fixtures."""

import os
import pytest
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from boxtag.core.interaction import InteractionMachine  # noqa: E402
from boxtag.core.store import AnnotationStore  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    """Create a QApplication for tests that need it."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])

    yield app


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for tests."""
    return tmp_path


@pytest.fixture
def store():
    """Provide an empty store for an 800x600 image."""
    store = AnnotationStore()
    store.set_image(800, 600, "screen.png")
    return store


@pytest.fixture
def machine(store):
    """Provide an interaction machine bound to the store fixture."""
    return InteractionMachine(store)
