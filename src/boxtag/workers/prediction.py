"""Background prediction worker thread."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QThread, pyqtSignal

from ..core.detector import YOLODetector

logger = logging.getLogger(__name__)


class PredictionWorker(QThread):
    """
    Runs the detector off the GUI thread.

    Results are reported together with the image key they were computed
    for, so the receiver can drop batches that arrive after the image
    changed. The store is never touched from this thread.
    """

    # Signal emitted with the raw prediction entries and the image key
    prediction_ready = pyqtSignal(list, int)

    # Signal emitted with an error message and the image key
    prediction_failed = pyqtSignal(str, int)

    def __init__(
        self,
        detector: YOLODetector,
        image_path: str,
        image_key: int,
        confidence: float = 0.25,
        iou_threshold: float = 0.45
    ) -> None:
        """
        Initialize the prediction worker.

        Args:
            detector: Loaded detector to run
            image_path: Path to the image to analyse
            image_key: Identity of the image in the store at request time
            confidence: Confidence threshold for detections
            iou_threshold: IOU threshold for NMS
        """
        super().__init__()
        self.detector = detector
        self.image_path = image_path
        self.image_key = image_key
        self.confidence = confidence
        self.iou_threshold = iou_threshold

    def run(self) -> None:
        """Run detection and report the outcome."""
        logger.info(f"Predicting boxes for {self.image_path}")
        try:
            entries = self.detector.detect(
                self.image_path,
                confidence=self.confidence,
                iou_threshold=self.iou_threshold
            )
        except Exception as e:
            logger.error(f"Prediction failed for {self.image_path}: {e}")
            self.prediction_failed.emit(str(e), self.image_key)
            return

        self.prediction_ready.emit(entries, self.image_key)
