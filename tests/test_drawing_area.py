"""Tests for the drawing area's mouse handling."""

import pytest
from PyQt6.QtCore import QEvent, QPointF, Qt
from PyQt6.QtGui import QMouseEvent, QPixmap

from boxtag.core.geometry import BoundingBox
from boxtag.ui.drawing_area import DrawingArea


def _double_click(x, y, button):
    return QMouseEvent(
        QEvent.Type.MouseButtonDblClick,
        QPointF(x, y),
        QPointF(x, y),
        button,
        button,
        Qt.KeyboardModifier.NoModifier,
    )


@pytest.fixture
def area(qapp):
    """Provide a drawing area showing a 400x300 image at scale 1."""
    area = DrawingArea()
    area.set_image(QPixmap(400, 300), "screen.png")
    return area


class TestDoubleClick:
    """Tests for deleting boxes by double-clicking."""

    def test_left_double_click_deletes(self, area):
        """Test that a left double-click removes the box under the pointer."""
        area.store.create(BoundingBox(10, 10, 50, 50))

        area.mouseDoubleClickEvent(_double_click(20, 20, Qt.MouseButton.LeftButton))

        assert len(area.store) == 0

    def test_right_double_click_ignored(self, area):
        """Test that other buttons leave the box in place."""
        area.store.create(BoundingBox(10, 10, 50, 50))

        area.mouseDoubleClickEvent(_double_click(20, 20, Qt.MouseButton.RightButton))

        assert len(area.store) == 1

    def test_without_image_ignored(self, qapp):
        """Test that a canvas without an image ignores double-clicks."""
        area = DrawingArea()
        area.store.set_image(400, 300)
        area.store.create(BoundingBox(10, 10, 50, 50))

        area.mouseDoubleClickEvent(_double_click(20, 20, Qt.MouseButton.LeftButton))

        assert len(area.store) == 1
