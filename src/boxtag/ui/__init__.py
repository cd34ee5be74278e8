"""UI components for boxtag."""

from .drawing_area import DrawingArea
from .tag_panel import TagPanel
from .main_window import MainWindow

__all__ = [
    "DrawingArea",
    "TagPanel",
    "MainWindow",
]
