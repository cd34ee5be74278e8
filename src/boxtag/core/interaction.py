"""
Pointer and keyboard interaction state machine.

Turns raw input events from the canvas into store mutations. The machine is
UI-agnostic: the canvas hit-tests records and resize handles, converts the
pointer position to image pixels, and forwards an InteractionEvent. Each call
to handle() reports the intents it applied so the canvas knows what changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .geometry import MIN_SIZE, BoundingBox, meets_minimum_size, normalize
from .models import Source
from .store import AnnotationStore

logger = logging.getLogger(__name__)

DELETE_KEY = "Delete"
ESCAPE_KEY = "Escape"


class InteractionMode(str, Enum):
    """Current pointer gesture."""

    IDLE = "idle"
    DRAWING = "drawing"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class EventType(str, Enum):
    """Kinds of input the machine understands."""

    POINTER_DOWN = "pointer_down"
    POINTER_MOVE = "pointer_move"
    POINTER_UP = "pointer_up"
    POINTER_LEAVE = "pointer_leave"
    DOUBLE_CLICK = "double_click"
    KEY_PRESS = "key_press"


class Intent(str, Enum):
    """Effects produced by handling an event."""

    START_DRAW = "start_draw"
    RESIZE_DRAW = "resize_draw"
    COMMIT_DRAW = "commit_draw"
    CANCEL_DRAW = "cancel_draw"
    SELECT = "select"
    DESELECT = "deselect"
    DRAG = "drag"
    RESIZE = "resize"
    DELETE = "delete"


class ResizeHandle(str, Enum):
    """Grab points on the selected box."""

    TOP_LEFT = "top_left"
    TOP = "top"
    TOP_RIGHT = "top_right"
    RIGHT = "right"
    BOTTOM_RIGHT = "bottom_right"
    BOTTOM = "bottom"
    BOTTOM_LEFT = "bottom_left"
    LEFT = "left"

    @property
    def moves_left(self) -> bool:
        return self in (ResizeHandle.TOP_LEFT, ResizeHandle.LEFT, ResizeHandle.BOTTOM_LEFT)

    @property
    def moves_right(self) -> bool:
        return self in (ResizeHandle.TOP_RIGHT, ResizeHandle.RIGHT, ResizeHandle.BOTTOM_RIGHT)

    @property
    def moves_top(self) -> bool:
        return self in (ResizeHandle.TOP_LEFT, ResizeHandle.TOP, ResizeHandle.TOP_RIGHT)

    @property
    def moves_bottom(self) -> bool:
        return self in (ResizeHandle.BOTTOM_LEFT, ResizeHandle.BOTTOM, ResizeHandle.BOTTOM_RIGHT)


@dataclass(frozen=True)
class InteractionEvent:
    """
    Input event in image pixel coordinates.

    target_id is the record under the pointer as hit-tested by the canvas,
    and handle the resize handle under the pointer, if any.
    """

    type: EventType
    x: float = 0.0
    y: float = 0.0
    target_id: Optional[str] = None
    handle: Optional[ResizeHandle] = None
    key: str = ""

    @classmethod
    def pointer_down(
        cls,
        x: float,
        y: float,
        target_id: Optional[str] = None,
        handle: Optional[ResizeHandle] = None
    ) -> InteractionEvent:
        return cls(EventType.POINTER_DOWN, x, y, target_id=target_id, handle=handle)

    @classmethod
    def pointer_move(cls, x: float, y: float) -> InteractionEvent:
        return cls(EventType.POINTER_MOVE, x, y)

    @classmethod
    def pointer_up(cls, x: float, y: float) -> InteractionEvent:
        return cls(EventType.POINTER_UP, x, y)

    @classmethod
    def pointer_leave(cls) -> InteractionEvent:
        return cls(EventType.POINTER_LEAVE)

    @classmethod
    def double_click(cls, target_id: str) -> InteractionEvent:
        return cls(EventType.DOUBLE_CLICK, target_id=target_id)

    @classmethod
    def key_press(cls, key: str) -> InteractionEvent:
        return cls(EventType.KEY_PRESS, key=key)


@dataclass
class _Gesture:
    """Bookkeeping for a drag or resize of one record."""

    annotation_id: str
    start_x: float
    start_y: float
    origin: BoundingBox
    handle: Optional[ResizeHandle] = None
    moved: bool = False
    toggle_off: bool = False


def resize_box(
    origin: BoundingBox,
    handle: ResizeHandle,
    dx: float,
    dy: float,
    image_width: float,
    image_height: float,
    min_size: float = MIN_SIZE
) -> BoundingBox:
    """
    Move the edges grabbed by a handle, keeping the opposite edges fixed.

    Sides never shrink below min_size and moving edges stop at the image
    border.

    Args:
        origin: Box at the start of the resize gesture
        handle: Handle being dragged
        dx: Horizontal pointer offset since the gesture started
        dy: Vertical pointer offset since the gesture started
        image_width: Image width in pixels
        image_height: Image height in pixels
        min_size: Smallest allowed side length

    Returns:
        Resized box
    """
    left, top = origin.x, origin.y
    right, bottom = origin.right, origin.bottom

    if handle.moves_left:
        left = max(0.0, min(left + dx, right - min_size))
    if handle.moves_right:
        right = min(image_width, max(right + dx, left + min_size))
    if handle.moves_top:
        top = max(0.0, min(top + dy, bottom - min_size))
    if handle.moves_bottom:
        bottom = min(image_height, max(bottom + dy, top + min_size))

    return BoundingBox(left, top, right - left, bottom - top)


class InteractionMachine:
    """
    Finite-state machine driving an AnnotationStore from input events.

    States are IDLE, DRAWING, DRAGGING and RESIZING; the selection lives in
    the store and is independent of the drawing state. Only one gesture can
    be active at a time.

    While drawing, the in-progress rectangle follows the pointer freely and
    may have negative size or leave the image; it is normalized and clamped
    only when committed.
    """

    def __init__(
        self,
        store: AnnotationStore,
        delete_key: str = DELETE_KEY,
        deselect_key: str = ESCAPE_KEY
    ) -> None:
        """
        Initialize the machine.

        Args:
            store: Store that receives all mutations
            delete_key: Key name that deletes the selected record
            deselect_key: Key name that clears the selection
        """
        self.store = store
        self.delete_key = delete_key
        self.deselect_key = deselect_key

        self.mode = InteractionMode.IDLE
        self._draft: Optional[BoundingBox] = None
        self._gesture: Optional[_Gesture] = None

        self._handlers: Dict[EventType, Callable[[InteractionEvent], List[Intent]]] = {
            EventType.POINTER_DOWN: self._on_pointer_down,
            EventType.POINTER_MOVE: self._on_pointer_move,
            EventType.POINTER_UP: self._on_pointer_up,
            EventType.POINTER_LEAVE: self._on_pointer_leave,
            EventType.DOUBLE_CLICK: self._on_double_click,
            EventType.KEY_PRESS: self._on_key_press,
        }

    @property
    def drawing_rect(self) -> Optional[BoundingBox]:
        """Unclamped, possibly negative-size rectangle being drawn."""
        return self._draft

    @property
    def is_drawing(self) -> bool:
        return self.mode == InteractionMode.DRAWING

    @property
    def active_id(self) -> Optional[str]:
        """Id of the record being dragged or resized."""
        return self._gesture.annotation_id if self._gesture else None

    def handle(self, event: InteractionEvent) -> List[Intent]:
        """
        Apply one input event.

        Args:
            event: Event in image pixel coordinates

        Returns:
            Intents applied to the store, in order
        """
        intents = self._handlers[event.type](event)
        if intents:
            logger.debug(f"{event.type.value} -> {[i.value for i in intents]} ({self.mode.value})")
        return intents

    def reset(self) -> None:
        """Drop any in-progress gesture, e.g. when the image changes."""
        self.mode = InteractionMode.IDLE
        self._draft = None
        self._gesture = None

    # === Event handlers ===

    def _on_pointer_down(self, event: InteractionEvent) -> List[Intent]:
        if self.mode != InteractionMode.IDLE:
            return []

        target = self.store.get(event.target_id)
        if target is None:
            return self._start_draw(event)

        was_selected = self.store.selected_id == target.id
        self._gesture = _Gesture(
            annotation_id=target.id,
            start_x=event.x,
            start_y=event.y,
            origin=target.box,
        )

        if was_selected and event.handle is not None:
            self._gesture.handle = event.handle
            self.mode = InteractionMode.RESIZING
            return []

        self.mode = InteractionMode.DRAGGING
        if was_selected:
            # Deselect on release unless the press turns into a drag
            self._gesture.toggle_off = True
            return []

        self.store.select(target.id)
        return [Intent.SELECT]

    def _on_pointer_move(self, event: InteractionEvent) -> List[Intent]:
        if self.mode == InteractionMode.DRAWING:
            self._draft = BoundingBox(
                self._draft.x,
                self._draft.y,
                event.x - self._draft.x,
                event.y - self._draft.y,
            )
            return [Intent.RESIZE_DRAW]

        if self.mode == InteractionMode.DRAGGING:
            return self._drag(event)

        if self.mode == InteractionMode.RESIZING:
            return self._resize(event)

        return []

    def _on_pointer_up(self, event: InteractionEvent) -> List[Intent]:
        intents = self._on_pointer_move(event)
        return intents + self._finish_gesture()

    def _on_pointer_leave(self, event: InteractionEvent) -> List[Intent]:
        return self._finish_gesture()

    def _on_double_click(self, event: InteractionEvent) -> List[Intent]:
        if event.target_id is None:
            return []
        return self._delete(event.target_id)

    def _on_key_press(self, event: InteractionEvent) -> List[Intent]:
        selected_id = self.store.selected_id
        if selected_id is None:
            return []

        if event.key == self.delete_key:
            return self._delete(selected_id)

        if event.key == self.deselect_key:
            self.store.deselect()
            # Only the selected record may be dragged or resized
            if self.active_id == selected_id:
                self._end_gesture()
            return [Intent.DESELECT]

        return []

    # === Transitions ===

    def _start_draw(self, event: InteractionEvent) -> List[Intent]:
        self.mode = InteractionMode.DRAWING
        self._draft = BoundingBox(event.x, event.y, 0.0, 0.0)

        intents = [Intent.START_DRAW]
        if self.store.selected_id is not None:
            self.store.deselect()
            intents.append(Intent.DESELECT)
        return intents

    def _commit_draw(self) -> List[Intent]:
        draft = self._draft
        self._draft = None
        self.mode = InteractionMode.IDLE

        box = normalize(draft)
        if not meets_minimum_size(box):
            logger.debug(f"Discarded draw below minimum size: {box}")
            return [Intent.CANCEL_DRAW]

        annotation = self.store.create(box, source=Source.MANUAL)
        if annotation is None:
            return [Intent.CANCEL_DRAW]

        self.store.select(annotation.id)
        return [Intent.COMMIT_DRAW, Intent.SELECT]

    def _drag(self, event: InteractionEvent) -> List[Intent]:
        gesture = self._gesture
        dx = event.x - gesture.start_x
        dy = event.y - gesture.start_y
        if not gesture.moved and dx == 0 and dy == 0:
            return []

        gesture.moved = True
        updated = self.store.update(
            gesture.annotation_id,
            x=gesture.origin.x + dx,
            y=gesture.origin.y + dy,
        )
        if updated is None:
            self._end_gesture()
            return []
        return [Intent.DRAG]

    def _resize(self, event: InteractionEvent) -> List[Intent]:
        gesture = self._gesture
        box = resize_box(
            gesture.origin,
            gesture.handle,
            event.x - gesture.start_x,
            event.y - gesture.start_y,
            self.store.image_width,
            self.store.image_height,
        )
        gesture.moved = True
        updated = self.store.update(
            gesture.annotation_id,
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
        )
        if updated is None:
            self._end_gesture()
            return []
        return [Intent.RESIZE]

    def _finish_gesture(self) -> List[Intent]:
        if self.mode == InteractionMode.DRAWING:
            return self._commit_draw()

        gesture = self._gesture
        self._end_gesture()
        if gesture is None:
            return []

        if (
            gesture.toggle_off
            and not gesture.moved
            and self.store.selected_id == gesture.annotation_id
        ):
            self.store.deselect()
            return [Intent.DESELECT]
        return []

    def _end_gesture(self) -> None:
        self._gesture = None
        if self.mode in (InteractionMode.DRAGGING, InteractionMode.RESIZING):
            self.mode = InteractionMode.IDLE

    def _delete(self, annotation_id: str) -> List[Intent]:
        if self.store.remove(annotation_id) is None:
            return []
        if self._gesture and self._gesture.annotation_id == annotation_id:
            self._end_gesture()
        return [Intent.DELETE]
