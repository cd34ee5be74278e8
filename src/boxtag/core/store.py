"""Canonical mutable collection of annotations for the current image."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .geometry import MIN_SIZE, BoundingBox, clamp_to_bounds, meets_minimum_size, normalize
from .models import Annotation, PredictedBox, Source, Tag, generate_id

logger = logging.getLogger(__name__)


class AnnotationStore:
    """
    Ordered collection of annotations plus the current selection.

    All mutations go through this class. It keeps ids unique, keeps every
    stored box inside the image bounds, and clears the selection whenever
    the selected record disappears.

    Operations on unknown ids are no-ops rather than errors, since pointer
    handlers may fire after the record they refer to has been deleted.
    """

    def __init__(self, image_width: float = 0, image_height: float = 0) -> None:
        """
        Initialize an empty store.

        Args:
            image_width: Width of the current image in pixels
            image_height: Height of the current image in pixels
        """
        self._annotations: List[Annotation] = []
        self._selected_id: Optional[str] = None
        self.image_width = image_width
        self.image_height = image_height
        self.image_filename = ""
        self.image_key = 0

    # === Image lifecycle ===

    def set_image(self, width: float, height: float, filename: str = "") -> int:
        """
        Start a fresh annotation session for a new image.

        Discards every record and the selection.

        Args:
            width: Image width in pixels
            height: Image height in pixels
            filename: Name of the image file, used on export

        Returns:
            The new image identity token
        """
        self.clear()
        self.image_width = width
        self.image_height = height
        self.image_filename = filename
        self.image_key += 1
        logger.info(f"Loaded image {filename or '<unnamed>'} ({width}x{height}), key {self.image_key}")
        return self.image_key

    def clear(self) -> None:
        """Remove all annotations and clear the selection."""
        self._annotations.clear()
        self._selected_id = None

    # === Queries ===

    @property
    def annotations(self) -> List[Annotation]:
        """Snapshot of all annotations in insertion order."""
        return list(self._annotations)

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(list(self._annotations))

    def __contains__(self, annotation_id: object) -> bool:
        return self._index_of(annotation_id) is not None

    def get(self, annotation_id: Optional[str]) -> Optional[Annotation]:
        """Get an annotation by id, or None if it is not present."""
        index = self._index_of(annotation_id)
        return None if index is None else self._annotations[index]

    def by_source(self, source: Source) -> List[Annotation]:
        """Read-only projection of the annotations with the given source."""
        return [a for a in self._annotations if a.source == source]

    def count_by_source(self) -> Dict[Source, int]:
        counts = {source: 0 for source in Source}
        for annotation in self._annotations:
            counts[annotation.source] += 1
        return counts

    def hit_test(self, x: float, y: float) -> Optional[Annotation]:
        """Return the topmost (last drawn) annotation containing the point."""
        for annotation in reversed(self._annotations):
            if annotation.box.contains(x, y):
                return annotation
        return None

    # === Selection ===

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[Annotation]:
        return self.get(self._selected_id)

    def select(self, annotation_id: str) -> bool:
        """
        Select an annotation.

        Returns:
            True if the id exists and is now selected
        """
        if annotation_id not in self:
            logger.debug(f"Ignoring selection of unknown annotation {annotation_id}")
            return False
        self._selected_id = annotation_id
        return True

    def deselect(self) -> None:
        self._selected_id = None

    # === Mutations ===

    def create(
        self,
        rect: BoundingBox,
        tag: Optional[Tag] = None,
        source: Source = Source.MANUAL
    ) -> Optional[Annotation]:
        """
        Add a new annotation.

        The rectangle is normalized and clamped to the image first. Boxes that
        end up at or below the minimum size are rejected.

        Args:
            rect: Rectangle in image pixels, possibly with negative size
            tag: Tag for the annotation (defaults to the first tag)
            source: Provenance of the annotation

        Returns:
            The stored annotation, or None if the geometry was rejected
        """
        box = self._fit(rect)
        if not meets_minimum_size(box):
            logger.debug(f"Rejected {source.value} box below minimum size: {box}")
            return None

        annotation = Annotation(
            id=self._new_id(source),
            box=box,
            tag=tag or Tag.default(),
            source=source,
        )
        self._annotations.append(annotation)
        return annotation

    def update(
        self,
        annotation_id: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None
    ) -> Optional[Annotation]:
        """
        Replace some or all geometry fields of an annotation.

        The result is re-clamped to the image bounds and each side is raised
        to at least MIN_SIZE. Unknown ids are ignored.

        Returns:
            The updated annotation, or None if the id was not found
        """
        index = self._index_of(annotation_id)
        if index is None:
            logger.debug(f"Ignoring update of unknown annotation {annotation_id}")
            return None

        current = self._annotations[index]
        box = BoundingBox(
            x=current.x if x is None else x,
            y=current.y if y is None else y,
            width=current.width if width is None else width,
            height=current.height if height is None else height,
        )
        box = self._fit(box)
        if box.width < MIN_SIZE or box.height < MIN_SIZE:
            box = self._fit(BoundingBox(
                box.x, box.y, max(box.width, MIN_SIZE), max(box.height, MIN_SIZE)
            ))
        updated = current.with_box(box)
        self._annotations[index] = updated
        return updated

    def retag(self, annotation_id: str, tag: Tag) -> Optional[Annotation]:
        """Change only the tag of an annotation. Unknown ids are ignored."""
        index = self._index_of(annotation_id)
        if index is None:
            logger.debug(f"Ignoring retag of unknown annotation {annotation_id}")
            return None

        updated = self._annotations[index].with_tag(tag)
        self._annotations[index] = updated
        return updated

    def remove(self, annotation_id: str) -> Optional[Annotation]:
        """
        Delete an annotation, clearing the selection if it was selected.

        Returns:
            The removed annotation, or None if the id was not found
        """
        index = self._index_of(annotation_id)
        if index is None:
            logger.debug(f"Ignoring removal of unknown annotation {annotation_id}")
            return None

        removed = self._annotations.pop(index)
        if self._selected_id == annotation_id:
            self._selected_id = None
        return removed

    def replace_by_source(
        self,
        source: Source,
        records: Iterable[PredictedBox]
    ) -> List[Annotation]:
        """
        Swap every annotation of one source for a new batch in one step.

        Manual annotations are never touched; asking to replace the manual
        source is refused. New records get fresh ids and go through the same
        normalize/clamp/minimum-size checks as create().

        Args:
            source: Source whose records are superseded
            records: Replacement boxes, possibly empty

        Returns:
            The annotations that were added
        """
        if source == Source.MANUAL:
            logger.warning("Refusing to replace manual annotations")
            return []

        accepted = []
        for record in records:
            box = self._fit(record.box)
            if not meets_minimum_size(box):
                logger.debug(f"Dropped {source.value} box below minimum size: {box}")
                continue
            accepted.append((box, record.tag))

        self._annotations = [a for a in self._annotations if a.source != source]

        added: List[Annotation] = []
        for box, tag in accepted:
            annotation = Annotation(id=self._new_id(source), box=box, tag=tag, source=source)
            self._annotations.append(annotation)
            added.append(annotation)

        if self._selected_id is not None and self._selected_id not in self:
            self._selected_id = None

        logger.info(f"Replaced {source.value} annotations with {len(added)} records")
        return added

    # === Internals ===

    def _fit(self, rect: BoundingBox) -> BoundingBox:
        return clamp_to_bounds(normalize(rect), self.image_width, self.image_height)

    def _index_of(self, annotation_id: object) -> Optional[int]:
        if annotation_id is None:
            return None
        for i, annotation in enumerate(self._annotations):
            if annotation.id == annotation_id:
                return i
        return None

    def _new_id(self, source: Source) -> str:
        annotation_id = generate_id(source)
        while annotation_id in self:
            annotation_id = generate_id(source)
        return annotation_id
