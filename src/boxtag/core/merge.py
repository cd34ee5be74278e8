"""Validation and merging of machine-proposed box batches."""

from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Iterable, List, Mapping, Optional

from .geometry import BoundingBox
from .models import Annotation, PredictedBox, Source, Tag
from .store import AnnotationStore

logger = logging.getLogger(__name__)

GEOMETRY_FIELDS = ("x", "y", "width", "height")


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def parse_predicted_entry(entry: Any) -> Optional[PredictedBox]:
    """
    Validate a single raw prediction.

    Args:
        entry: Mapping with numeric x, y, width, height and a tag name

    Returns:
        PredictedBox, or None if the entry is malformed
    """
    if isinstance(entry, PredictedBox):
        return entry
    if not isinstance(entry, Mapping):
        return None

    for name in GEOMETRY_FIELDS:
        if not _is_number(entry.get(name)):
            return None

    tag = Tag.parse(entry.get("tag"))
    if tag is None:
        return None

    return PredictedBox(
        box=BoundingBox(*(float(entry[name]) for name in GEOMETRY_FIELDS)),
        tag=tag,
    )


def validate_predicted_batch(entries: Iterable[Any]) -> List[PredictedBox]:
    """
    Keep the well-formed entries of a raw prediction batch.

    Malformed entries are dropped one by one; a batch with no valid entry
    becomes an empty list.
    """
    boxes: List[PredictedBox] = []
    for index, entry in enumerate(entries):
        box = parse_predicted_entry(entry)
        if box is None:
            logger.warning(f"Dropping malformed prediction #{index}: {entry!r}")
            continue
        boxes.append(box)
    return boxes


def parse_prediction_response(payload: Any) -> List[PredictedBox]:
    """
    Extract predicted boxes from a prediction service response.

    Accepts either a list of entries or a mapping holding them under
    "annotations". Any other shape yields an empty batch.
    """
    if isinstance(payload, Mapping):
        payload = payload.get("annotations")

    if not isinstance(payload, (list, tuple)):
        logger.warning(f"Unexpected prediction payload type: {type(payload).__name__}")
        return []

    return validate_predicted_batch(payload)


def merge_predictions(
    store: AnnotationStore,
    batch: Iterable[Any],
    image_key: Optional[int] = None
) -> List[Annotation]:
    """
    Replace all predicted annotations in the store with a new batch.

    Manual annotations are left untouched and no deduplication against
    them is performed. An empty batch clears the predicted annotations.

    Args:
        store: Store to update
        batch: Raw entries or already validated PredictedBox objects, or a
            response mapping holding them under "annotations". Anything else
            is treated as an empty batch
        image_key: Image identity the batch was computed for; when given and
            the store has since moved to another image, the batch is ignored

    Returns:
        The predicted annotations that were added
    """
    if image_key is not None and image_key != store.image_key:
        logger.warning(
            f"Ignoring stale prediction batch for image key {image_key} "
            f"(current key {store.image_key})"
        )
        return []

    if isinstance(batch, Mapping):
        boxes = parse_prediction_response(batch)
    elif isinstance(batch, (str, bytes)) or not isinstance(batch, Iterable):
        logger.warning(f"Malformed prediction batch treated as empty: {type(batch).__name__}")
        boxes = []
    else:
        boxes = validate_predicted_batch(batch)
    return store.replace_by_source(Source.PREDICTED, boxes)
