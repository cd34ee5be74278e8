"""Pure rectangle helpers used by the annotation store and canvas."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict

# Smallest side length (in image pixels) a committed box may have
MIN_SIZE = 10


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned rectangle in image pixel space.

    Origin is the top-left corner. Width and height may be negative
    while a box is being rubber-banded; use normalize() before storing.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, px: float, py: float) -> bool:
        """Check if a point lies inside the (normalized) box, edges included."""
        box = normalize(self)
        return box.x <= px <= box.right and box.y <= py <= box.bottom

    def translated(self, dx: float, dy: float) -> BoundingBox:
        """Return a copy moved by the given offset."""
        return BoundingBox(self.x + dx, self.y + dy, self.width, self.height)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BoundingBox:
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> BoundingBox:
        """Create a normalized box from two opposite corners."""
        return cls(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))


def normalize(rect: BoundingBox) -> BoundingBox:
    """
    Flip a rectangle with negative width or height so both are non-negative.

    The returned box covers the same set of points as the input.
    """
    x, width = rect.x, rect.width
    y, height = rect.y, rect.height

    if width < 0:
        x, width = x + width, -width
    if height < 0:
        y, height = y + height, -height

    if (x, y, width, height) == (rect.x, rect.y, rect.width, rect.height):
        return rect
    return BoundingBox(x, y, width, height)


def clamp_to_bounds(rect: BoundingBox, image_width: float, image_height: float) -> BoundingBox:
    """
    Constrain a rectangle to lie within [0, image_width] x [0, image_height].

    Size is preserved where possible by shifting the origin; a box larger
    than the image is shrunk to the image size. Boxes already inside the
    bounds are returned unchanged.

    Args:
        rect: Rectangle to clamp (normalized first if needed)
        image_width: Image width in pixels
        image_height: Image height in pixels

    Returns:
        Rectangle fully contained in the image
    """
    rect = normalize(rect)

    width = min(rect.width, image_width)
    height = min(rect.height, image_height)
    x = max(0.0, min(rect.x, image_width - width))
    y = max(0.0, min(rect.y, image_height - height))

    if (x, y, width, height) == (rect.x, rect.y, rect.width, rect.height):
        return rect
    return BoundingBox(x, y, width, height)


def meets_minimum_size(rect: BoundingBox, min_size: float = MIN_SIZE) -> bool:
    """Check that both sides are strictly larger than min_size."""
    return abs(rect.width) > min_size and abs(rect.height) > min_size


def iou(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """
    Intersection over union of two normalized boxes.

    Disjoint boxes give 0.0. When both boxes are degenerate the union
    is empty and the result is NaN; callers must check with math.isnan.
    """
    x_a = max(box_a.x, box_b.x)
    y_a = max(box_a.y, box_b.y)
    x_b = min(box_a.right, box_b.right)
    y_b = min(box_a.bottom, box_b.bottom)

    inter_area = max(0.0, x_b - x_a) * max(0.0, y_b - y_a)
    union_area = box_a.area + box_b.area - inter_area

    if union_area == 0:
        return math.nan
    return inter_area / union_area
