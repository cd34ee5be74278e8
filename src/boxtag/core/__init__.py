"""Core annotation logic for boxtag. Independent of the Qt user interface."""

from .geometry import MIN_SIZE, BoundingBox, clamp_to_bounds, iou, meets_minimum_size, normalize
from .models import Annotation, PredictedBox, Source, Tag
from .store import AnnotationStore
from .interaction import InteractionEvent, InteractionMachine, Intent, ResizeHandle
from .merge import merge_predictions, parse_prediction_response
from .export import AnnotationExporter, build_export_record
from .config import AppConfig, ConfigManager

__all__ = [
    "MIN_SIZE",
    "BoundingBox",
    "clamp_to_bounds",
    "iou",
    "meets_minimum_size",
    "normalize",
    "Annotation",
    "PredictedBox",
    "Source",
    "Tag",
    "AnnotationStore",
    "InteractionEvent",
    "InteractionMachine",
    "Intent",
    "ResizeHandle",
    "merge_predictions",
    "parse_prediction_response",
    "AnnotationExporter",
    "build_export_record",
    "AppConfig",
    "ConfigManager",
]
