"""YOLO object detection wrapper used to propose boxes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import torch

logger = logging.getLogger(__name__)


class YOLODetector:
    """
    Wrapper for Ultralytics YOLO object detection.

    Produces raw prediction entries ({x, y, width, height, tag}) with the
    model's class name as the tag. Entries are validated later, so classes
    that are not known tags are simply dropped at merge time.
    """

    def __init__(self, model_path: Optional[str] = None) -> None:
        """
        Initialize the YOLO detector.

        Args:
            model_path: Path to the YOLO model file (.pt)
        """
        self.device = "cuda" if torch.cuda.is_available() else "cpu"
        self.model: Optional[Any] = None
        self.model_path: Optional[str] = None
        self._class_names: dict[int, str] = {}

        if model_path:
            self.load_model(model_path)

    @property
    def is_loaded(self) -> bool:
        """Check if a model is loaded."""
        return self.model is not None

    @property
    def class_names(self) -> dict[int, str]:
        """Get the class names from the loaded model."""
        return self._class_names

    def load_model(self, model_path: str) -> bool:
        """
        Load a YOLO model from file.

        Args:
            model_path: Path to the model file

        Returns:
            True if model loaded successfully
        """
        try:
            from ultralytics import YOLO

            self.model = YOLO(model_path)
            self.model.to(self.device)
            self.model_path = model_path

            if hasattr(self.model, "names"):
                self._class_names = dict(self.model.names)

            logger.info(f"Loaded YOLO model from {model_path} on {self.device}")
            return True

        except ImportError:
            logger.error("ultralytics package not installed")
            return False
        except Exception as e:
            logger.error(f"Error loading YOLO model: {e}")
            self.model = None
            self.model_path = None
            return False

    def detect(
        self,
        image_path: str,
        confidence: float = 0.25,
        iou_threshold: float = 0.45
    ) -> List[Dict[str, Any]]:
        """
        Run object detection on an image.

        Args:
            image_path: Path to the image file
            confidence: Confidence threshold for detections
            iou_threshold: IOU threshold for NMS

        Returns:
            List of raw prediction entries
        """
        if not self.is_loaded:
            raise ValueError("No model loaded. Call load_model() first.")

        try:
            results = self.model(
                image_path,
                conf=confidence,
                iou=iou_threshold,
                verbose=False
            )

            if not results:
                return []

            return self._convert_results(results[0])

        except Exception as e:
            logger.error(f"Detection failed: {e}")
            raise

    def _convert_results(self, result: Any) -> List[Dict[str, Any]]:
        """
        Convert a YOLO result to prediction entries.

        Args:
            result: Single YOLO result object

        Returns:
            List of {x, y, width, height, tag} dictionaries
        """
        entries: List[Dict[str, Any]] = []

        if getattr(result, "boxes", None) is None:
            return entries

        names = getattr(result, "names", None) or self._class_names
        for box in result.boxes:
            try:
                x1, y1, x2, y2 = box.xyxy[0].tolist()
                class_id = int(box.cls)
                entries.append({
                    "x": x1,
                    "y": y1,
                    "width": x2 - x1,
                    "height": y2 - y1,
                    "tag": names.get(class_id, str(class_id)),
                })
            except Exception as e:
                logger.warning(f"Error processing box detection: {e}")

        logger.info(f"Detected {len(entries)} objects")
        return entries

    def get_device_info(self) -> str:
        """Get information about the compute device."""
        if self.device == "cuda":
            try:
                device_name = torch.cuda.get_device_name(0)
                return f"CUDA: {device_name}"
            except Exception:
                return "CUDA (unknown device)"
        return "CPU"
