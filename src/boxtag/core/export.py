"""JSON export of the annotations for one image."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .models import Annotation, Source

logger = logging.getLogger(__name__)

EXPORT_SUFFIX = "-annotations.json"


def build_export_record(
    image_filename: str,
    annotations: Iterable[Annotation],
    source: Optional[Source] = None
) -> Dict[str, Any]:
    """
    Build the interchange record for an image.

    Ids and sources are stripped. Filtering by source is a read-only
    projection; the annotations themselves are not modified.

    Args:
        image_filename: Name of the annotated image
        annotations: Annotations in store order
        source: Only export annotations with this source, if given

    Returns:
        {"image_filename": str, "annotations": [{x, y, width, height, tag}, ...]}
    """
    return {
        "image_filename": image_filename,
        "annotations": [
            annotation.to_export_dict()
            for annotation in annotations
            if source is None or annotation.source == source
        ],
    }


def export_json(record: Dict[str, Any]) -> str:
    """Serialize an export record with two-space indentation."""
    return json.dumps(record, indent=2)


def export_filename(image_filename: str) -> str:
    """
    Default file name for an image's export, e.g. "shot.png" -> "shot-annotations.json".
    """
    stem = Path(image_filename).stem if image_filename else "image"
    return f"{stem}{EXPORT_SUFFIX}"


class AnnotationExporter:
    """Writes export records to disk."""

    def __init__(self, directory: Optional[Path] = None) -> None:
        """
        Initialize the exporter.

        Args:
            directory: Default directory for exported files
        """
        self.directory = Path(directory) if directory else None

    def get_export_path(self, image_filename: str) -> Path:
        """Get the default export path for an image."""
        name = export_filename(image_filename)
        return self.directory / name if self.directory else Path(name)

    def write(self, path: Path, record: Dict[str, Any]) -> bool:
        """
        Write a record as JSON.

        Args:
            path: Destination file
            record: Record from build_export_record()

        Returns:
            True if write was successful
        """
        try:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(export_json(record), encoding="utf-8")
            logger.info(f"Exported {len(record['annotations'])} annotations to {path}")
            return True
        except Exception as e:
            logger.error(f"Error exporting annotations to {path}: {e}")
            return False

    def export(
        self,
        image_filename: str,
        annotations: Iterable[Annotation],
        source: Optional[Source] = None,
        path: Optional[Path] = None
    ) -> Optional[Path]:
        """
        Build and write the export for an image.

        Returns:
            Path written to, or None if writing failed
        """
        record = build_export_record(image_filename, annotations, source)
        target = Path(path) if path else self.get_export_path(image_filename)
        return target if self.write(target, record) else None
