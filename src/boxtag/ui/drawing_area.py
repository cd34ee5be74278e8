"""Drawing area canvas widget for box annotation."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from PyQt6.QtCore import Qt, QPointF, QRectF, pyqtSignal
from PyQt6.QtGui import (
    QColor, QFont, QFontMetrics, QKeyEvent, QKeySequence, QMouseEvent,
    QPainter, QPen, QPixmap
)
from PyQt6.QtWidgets import QWidget

from ..core.geometry import BoundingBox, normalize
from ..core.interaction import (
    DELETE_KEY, ESCAPE_KEY, InteractionEvent, InteractionMachine, Intent, ResizeHandle
)
from ..core.models import Annotation, Source, Tag
from ..core.store import AnnotationStore

logger = logging.getLogger(__name__)

# Intents that change the stored annotations
_MUTATING_INTENTS = {Intent.COMMIT_DRAW, Intent.DRAG, Intent.RESIZE, Intent.DELETE}

# Intents that may change which annotation is selected
_SELECTION_INTENTS = {Intent.SELECT, Intent.DESELECT, Intent.DELETE, Intent.COMMIT_DRAW}


class DrawingArea(QWidget):
    """
    Canvas widget that shows the image and its annotations.

    Translates Qt mouse and key events into image-space InteractionEvents,
    hit-testing annotations and the resize handles of the selected one,
    and paints the store contents plus the live drawing preview.
    """

    # Signals
    annotations_changed = pyqtSignal()
    selection_changed = pyqtSignal(object)  # Emits Annotation or None

    # Constants
    HANDLE_RADIUS = 6
    MANUAL_COLOR = QColor("#2563eb")
    PREDICTED_COLOR = QColor("#ea580c")
    PREVIEW_COLOR = QColor("#059669")

    def __init__(
        self,
        store: Optional[AnnotationStore] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        """
        Initialize the drawing area.

        Args:
            store: Annotation store to edit (a new one if omitted)
            parent: Parent widget
        """
        super().__init__(parent)

        self.store = store or AnnotationStore()
        self.machine = InteractionMachine(self.store)

        # Visual settings
        self.scale_factor = 1.0
        self.line_thickness = 2
        self.font_size = 10
        self.max_display_width = 900
        self.max_display_height = 700
        self.delete_shape_key = "Delete"  # Key/combination to delete selected box
        self.deselect_key = "Escape"  # Key/combination to clear the selection

        self._pixmap: Optional[QPixmap] = None

        # Widget setup
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    # === Image ===

    def pixmap(self) -> Optional[QPixmap]:
        """Return the current pixmap."""
        return self._pixmap

    def set_image(self, pixmap: QPixmap, filename: str = "") -> int:
        """
        Show a new image and start an empty annotation session for it.

        Args:
            pixmap: Decoded image
            filename: Image file name used on export

        Returns:
            Image key of the new session
        """
        self._pixmap = pixmap
        self.machine.reset()
        image_key = self.store.set_image(pixmap.width(), pixmap.height(), filename)

        self.scale_factor = self._fit_scale(pixmap.width(), pixmap.height())
        self.setFixedSize(
            max(1, round(pixmap.width() * self.scale_factor)),
            max(1, round(pixmap.height() * self.scale_factor))
        )

        self.update()
        self.annotations_changed.emit()
        self.selection_changed.emit(None)
        return image_key

    def _fit_scale(self, width: int, height: int) -> float:
        """Scale factor that fits the image in the display limits without upscaling."""
        if width <= 0 or height <= 0:
            return 1.0
        return min(self.max_display_width / width, self.max_display_height / height, 1.0)

    # === Coordinate Transform Methods ===

    def _transform_pos(self, pos: QPointF) -> QPointF:
        """Transform screen position to image coordinates."""
        return QPointF(pos.x() / self.scale_factor, pos.y() / self.scale_factor)

    # === Hit Testing ===

    def _handle_points(self, box: BoundingBox) -> List[Tuple[ResizeHandle, QPointF]]:
        """Image-space positions of the resize handles of a box."""
        cx = box.x + box.width / 2
        cy = box.y + box.height / 2
        return [
            (ResizeHandle.TOP_LEFT, QPointF(box.x, box.y)),
            (ResizeHandle.TOP, QPointF(cx, box.y)),
            (ResizeHandle.TOP_RIGHT, QPointF(box.right, box.y)),
            (ResizeHandle.RIGHT, QPointF(box.right, cy)),
            (ResizeHandle.BOTTOM_RIGHT, QPointF(box.right, box.bottom)),
            (ResizeHandle.BOTTOM, QPointF(cx, box.bottom)),
            (ResizeHandle.BOTTOM_LEFT, QPointF(box.x, box.bottom)),
            (ResizeHandle.LEFT, QPointF(box.x, cy)),
        ]

    def _get_resize_handle(self, pos: QPointF) -> Optional[ResizeHandle]:
        """Get the handle of the selected annotation at an image position."""
        selected = self.store.selected
        if selected is None:
            return None

        radius = self.HANDLE_RADIUS / self.scale_factor
        for handle, point in self._handle_points(selected.box):
            if (point - pos).manhattanLength() < radius * 2:
                return handle
        return None

    def _hit_test(self, pos: QPointF) -> Tuple[Optional[str], Optional[ResizeHandle]]:
        """Find the annotation and handle under an image position."""
        handle = self._get_resize_handle(pos)
        if handle is not None:
            return self.store.selected_id, handle

        annotation = self.store.hit_test(pos.x(), pos.y())
        return (annotation.id if annotation else None), None

    # === Event Handling ===

    def _dispatch(self, event: InteractionEvent) -> List[Intent]:
        """Forward an event to the state machine and refresh the view."""
        intents = self.machine.handle(event)
        if intents:
            self.update()
        if _MUTATING_INTENTS.intersection(intents):
            self.annotations_changed.emit()
        if _SELECTION_INTENTS.intersection(intents):
            self.selection_changed.emit(self.store.selected)
        return intents

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Handle mouse press events."""
        self.setFocus()
        if self._pixmap is None or event.button() != Qt.MouseButton.LeftButton:
            return

        pos = self._transform_pos(event.position())
        target_id, handle = self._hit_test(pos)
        self._dispatch(InteractionEvent.pointer_down(pos.x(), pos.y(), target_id, handle))

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Handle mouse move events."""
        pos = self._transform_pos(event.position())
        self._dispatch(InteractionEvent.pointer_move(pos.x(), pos.y()))
        self._update_cursor(pos)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Handle mouse release events."""
        if event.button() != Qt.MouseButton.LeftButton:
            return
        pos = self._transform_pos(event.position())
        self._dispatch(InteractionEvent.pointer_up(pos.x(), pos.y()))

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        """Delete the annotation under the pointer."""
        if self._pixmap is None or event.button() != Qt.MouseButton.LeftButton:
            return

        pos = self._transform_pos(event.position())
        annotation = self.store.hit_test(pos.x(), pos.y())
        if annotation is not None:
            self._dispatch(InteractionEvent.double_click(annotation.id))

    def leaveEvent(self, event) -> None:
        """Finish any gesture when the pointer leaves the canvas."""
        self._dispatch(InteractionEvent.pointer_leave())
        super().leaveEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Handle key press events."""
        if self.delete_shape_key and self._matches_key_sequence(event, self.delete_shape_key):
            self._dispatch(InteractionEvent.key_press(DELETE_KEY))
        elif self.deselect_key and self._matches_key_sequence(event, self.deselect_key):
            self._dispatch(InteractionEvent.key_press(ESCAPE_KEY))
        super().keyPressEvent(event)

    def _matches_key_sequence(self, event: QKeyEvent, key_sequence_str: str) -> bool:
        """Check if a key event matches a configured key sequence string."""
        if not key_sequence_str:
            return False

        key = event.key()
        modifiers = event.modifiers()

        # Ignore pure modifier key presses
        if key in (Qt.Key.Key_Control, Qt.Key.Key_Shift, Qt.Key.Key_Alt, Qt.Key.Key_Meta):
            return False

        combined = key
        if modifiers & Qt.KeyboardModifier.ControlModifier:
            combined |= Qt.KeyboardModifier.ControlModifier.value
        if modifiers & Qt.KeyboardModifier.ShiftModifier:
            combined |= Qt.KeyboardModifier.ShiftModifier.value
        if modifiers & Qt.KeyboardModifier.AltModifier:
            combined |= Qt.KeyboardModifier.AltModifier.value
        if modifiers & Qt.KeyboardModifier.MetaModifier:
            combined |= Qt.KeyboardModifier.MetaModifier.value

        return QKeySequence(combined) == QKeySequence(key_sequence_str)

    def _update_cursor(self, pos: QPointF) -> None:
        """Show a resize or move cursor over interactive areas."""
        if self.machine.is_drawing:
            self.setCursor(Qt.CursorShape.CrossCursor)
            return

        handle = self._get_resize_handle(pos)
        if handle in (ResizeHandle.TOP_LEFT, ResizeHandle.BOTTOM_RIGHT):
            self.setCursor(Qt.CursorShape.SizeFDiagCursor)
        elif handle in (ResizeHandle.TOP_RIGHT, ResizeHandle.BOTTOM_LEFT):
            self.setCursor(Qt.CursorShape.SizeBDiagCursor)
        elif handle in (ResizeHandle.TOP, ResizeHandle.BOTTOM):
            self.setCursor(Qt.CursorShape.SizeVerCursor)
        elif handle in (ResizeHandle.LEFT, ResizeHandle.RIGHT):
            self.setCursor(Qt.CursorShape.SizeHorCursor)
        elif self.store.hit_test(pos.x(), pos.y()) is not None:
            self.setCursor(Qt.CursorShape.SizeAllCursor)
        else:
            self.setCursor(Qt.CursorShape.CrossCursor)

    # === Painting ===

    def paintEvent(self, event) -> None:
        """Paint the image, annotations and drawing preview."""
        super().paintEvent(event)
        if self._pixmap is None or self._pixmap.isNull():
            return

        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.drawPixmap(self.rect(), self._pixmap)

        # Annotations are drawn in image coordinates
        painter.scale(self.scale_factor, self.scale_factor)

        selected_id = self.store.selected_id
        for annotation in self.store:
            self._draw_annotation(painter, annotation, annotation.id == selected_id)

        selected = self.store.selected
        if selected is not None:
            self._draw_handles(painter, selected.box)

        draft = self.machine.drawing_rect
        if draft is not None:
            self._draw_preview(painter, draft)

        painter.end()

    def _draw_annotation(self, painter: QPainter, annotation: Annotation, selected: bool) -> None:
        """Draw a single annotation with its tag label."""
        color = self.PREDICTED_COLOR if annotation.source == Source.PREDICTED else self.MANUAL_COLOR
        thickness = self.line_thickness + (1 if selected else 0)

        pen = QPen(color, thickness / self.scale_factor)
        if annotation.source == Source.PREDICTED:
            pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.setBrush(QColor(color.red(), color.green(), color.blue(), 64 if selected else 24))
        painter.drawRect(self._to_qrect(annotation.box))

        self._draw_label(painter, annotation.tag.value, QPointF(annotation.x, annotation.y), color)

    def _draw_handles(self, painter: QPainter, box: BoundingBox) -> None:
        """Draw resize handles around the selected box."""
        radius = self.HANDLE_RADIUS / 2 / self.scale_factor
        painter.setPen(QPen(QColor(255, 255, 255), 1 / self.scale_factor))
        painter.setBrush(self.MANUAL_COLOR)
        for _, point in self._handle_points(box):
            painter.drawRect(QRectF(point.x() - radius, point.y() - radius, radius * 2, radius * 2))

    def _draw_preview(self, painter: QPainter, draft: BoundingBox) -> None:
        """Draw the unclamped rectangle being drawn."""
        painter.setPen(QPen(self.PREVIEW_COLOR, 2 / self.scale_factor, Qt.PenStyle.DashLine))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(self._to_qrect(normalize(draft)))

    def _draw_label(self, painter: QPainter, label: str, point: QPointF, color: QColor) -> None:
        """Draw a label with background above the given position."""
        adjusted_font_size = self.font_size / self.scale_factor
        font = QFont("Arial")
        font.setPointSizeF(adjusted_font_size)
        font_metrics = QFontMetrics(font)
        text_width = font_metrics.horizontalAdvance(label)
        text_height = font_metrics.height()

        padding = 4 / self.scale_factor
        rect_width = text_width + 2 * padding
        rect_height = text_height + 2 * padding

        # Keep the label inside the image when the box touches the top edge
        top = point.y() - rect_height if point.y() >= rect_height else point.y()
        background_rect = QRectF(point.x(), top, rect_width, rect_height)

        background_color = QColor(color)
        background_color.setAlpha(180)

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(background_color)
        painter.drawRect(background_rect)

        painter.setFont(font)
        painter.setPen(Qt.GlobalColor.white)
        painter.drawText(background_rect, Qt.AlignmentFlag.AlignCenter, label)

    @staticmethod
    def _to_qrect(box: BoundingBox) -> QRectF:
        return QRectF(box.x, box.y, box.width, box.height)

    # === Commands ===

    def retag_selected(self, tag: Tag) -> None:
        """Change the tag of the selected annotation."""
        selected_id = self.store.selected_id
        if selected_id is None:
            return
        if self.store.retag(selected_id, tag) is not None:
            self.update()
            self.annotations_changed.emit()
            self.selection_changed.emit(self.store.selected)

    def refresh(self) -> None:
        """Repaint after the store was changed from outside the canvas."""
        self.update()
        self.annotations_changed.emit()
        self.selection_changed.emit(self.store.selected)
