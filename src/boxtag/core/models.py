"""Data models for boxtag annotations."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from .geometry import BoundingBox

logger = logging.getLogger(__name__)


class Tag(str, Enum):
    """UI element class assigned to a box."""

    BUTTON = "Button"
    INPUT = "Input"
    RADIO = "Radio"
    DROPDOWN = "Dropdown"

    @classmethod
    def parse(cls, value: Any) -> Optional[Tag]:
        """
        Look up a tag by value, ignoring case.

        Args:
            value: Tag instance or tag name such as "button"

        Returns:
            Matching Tag, or None if the value is not a known tag
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None

        wanted = value.strip().lower()
        for tag in cls:
            if tag.value.lower() == wanted:
                return tag
        return None

    @classmethod
    def default(cls) -> Tag:
        """Tag given to freshly drawn boxes."""
        return next(iter(cls))


class Source(str, Enum):
    """Provenance of an annotation."""

    MANUAL = "manual"
    PREDICTED = "predicted"


def generate_id(source: Source) -> str:
    """
    Create a new annotation id.

    Combines a millisecond timestamp with a random suffix so ids stay
    distinct even when several are created within the same millisecond.
    """
    return f"{source.value}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}"


@dataclass(frozen=True)
class Annotation:
    """
    A tagged bounding box with identity and provenance.

    Instances are immutable; the store swaps in modified copies so that
    `id` and `source` can never change after creation.
    """

    id: str
    box: BoundingBox
    tag: Tag
    source: Source

    @property
    def x(self) -> float:
        return self.box.x

    @property
    def y(self) -> float:
        return self.box.y

    @property
    def width(self) -> float:
        return self.box.width

    @property
    def height(self) -> float:
        return self.box.height

    @property
    def is_manual(self) -> bool:
        return self.source == Source.MANUAL

    def with_box(self, box: BoundingBox) -> Annotation:
        """Return a copy with new geometry."""
        return replace(self, box=box)

    def with_tag(self, tag: Tag) -> Annotation:
        """Return a copy with a new tag."""
        return replace(self, tag=tag)

    def to_export_dict(self) -> Dict[str, Any]:
        """Serialize without id and source, as used in exported files."""
        data: Dict[str, Any] = self.box.to_dict()
        data["tag"] = self.tag.value
        return data


@dataclass(frozen=True)
class PredictedBox:
    """A validated machine-proposed box that has not yet entered the store."""

    box: BoundingBox
    tag: Tag
