"""Main application window for boxtag."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QImageReader, QPixmap
from PyQt6.QtWidgets import (
    QDockWidget, QFileDialog, QLabel, QMainWindow, QMessageBox, QScrollArea,
    QStatusBar, QToolBar
)

from ..core.config import AppConfig, ConfigManager
from ..core.detector import YOLODetector
from ..core.export import AnnotationExporter
from ..core.merge import merge_predictions
from ..core.models import Annotation, Source, Tag
from ..core.store import AnnotationStore
from ..workers.prediction import PredictionWorker
from .drawing_area import DrawingArea
from .tag_panel import TagPanel

logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp)"


def increase_image_allocation_limit() -> None:
    """Remove image allocation limit for large images."""
    QImageReader.setAllocationLimit(0)


class MainWindow(QMainWindow):
    """
    Main application window for boxtag.

    Hosts the canvas, the tag panel and the toolbar for opening an image,
    requesting predictions and exporting annotations.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        """Initialize the main window."""
        super().__init__()

        increase_image_allocation_limit()

        self.config_manager = config_manager or ConfigManager()
        self.store = AnnotationStore()
        self.exporter = AnnotationExporter(self.config.export_directory or None)

        # State
        self.current_image_path: Optional[Path] = None
        self.yolo_detector: Optional[YOLODetector] = None
        self.prediction_worker: Optional[PredictionWorker] = None

        # UI elements (initialized in _init_ui)
        self.drawing_area: Optional[DrawingArea] = None
        self.tag_panel: Optional[TagPanel] = None
        self.actions: Dict[str, QAction] = {}
        self.status_bar: Optional[QStatusBar] = None
        self.file_label: Optional[QLabel] = None
        self.count_label: Optional[QLabel] = None

        self._load_settings()
        self._init_ui()
        self._update_actions()

        logger.info("MainWindow initialization complete")

    @property
    def config(self) -> AppConfig:
        """Get the current configuration."""
        return self.config_manager.config

    def _load_settings(self) -> None:
        """Load application settings."""
        if self.config.yolo_model_path:
            self._load_yolo_model(self.config.yolo_model_path)

    def _load_yolo_model(self, model_path: str) -> bool:
        """Load a YOLO model for predictions."""
        try:
            self.yolo_detector = YOLODetector(model_path)
            if not self.yolo_detector.is_loaded:
                raise ValueError("Failed to initialize YOLO model")
            logger.info(f"YOLO model loaded: {model_path}")
            return True
        except Exception as e:
            logger.error(f"Failed to load YOLO model: {e}")
            self.yolo_detector = None
            return False

    # === UI Construction ===

    def _init_ui(self) -> None:
        """Initialize the user interface."""
        self.setWindowTitle("boxtag")
        self.setGeometry(100, 100, 1200, 800)

        self.drawing_area = DrawingArea(self.store)
        self.drawing_area.line_thickness = self.config.line_thickness
        self.drawing_area.font_size = self.config.font_size
        self.drawing_area.max_display_width = self.config.max_display_width
        self.drawing_area.max_display_height = self.config.max_display_height
        self.drawing_area.delete_shape_key = self.config.delete_shape_key
        self.drawing_area.deselect_key = self.config.deselect_key
        self.drawing_area.annotations_changed.connect(self._on_annotations_changed)
        self.drawing_area.selection_changed.connect(self._on_selection_changed)

        scroll_area = QScrollArea()
        scroll_area.setWidget(self.drawing_area)
        scroll_area.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setCentralWidget(scroll_area)

        self.tag_panel = TagPanel()
        self.tag_panel.tag_changed.connect(self._on_tag_changed)
        dock = QDockWidget("Selected Element", self)
        dock.setWidget(self.tag_panel)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, dock)

        self._create_status_bar()
        self._create_toolbar()

    def _create_status_bar(self) -> None:
        """Create the status bar."""
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

        self.file_label = QLabel()
        self.status_bar.addPermanentWidget(self.file_label)

        self.count_label = QLabel()
        self.status_bar.addPermanentWidget(self.count_label)

    def _create_toolbar(self) -> None:
        """Create the main toolbar."""
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        entries = [
            ("open", "Open Image", self._open_image),
            ("model", "Select Model", self._select_model),
            ("predict", "Predict", self._predict),
            ("export_all", "Export All", lambda: self._export(None)),
            ("export_manual", "Export Manual", lambda: self._export(Source.MANUAL)),
            ("export_predicted", "Export Predicted", lambda: self._export(Source.PREDICTED)),
        ]
        for key, text, handler in entries:
            action = QAction(text, self)
            action.triggered.connect(handler)
            toolbar.addAction(action)
            self.actions[key] = action

    def _update_actions(self) -> None:
        """Enable actions that apply to the current state."""
        has_image = self.current_image_path is not None
        predicting = self.prediction_worker is not None

        self.actions["open"].setEnabled(not predicting)
        self.actions["predict"].setEnabled(has_image and not predicting)
        for key in ("export_all", "export_manual", "export_predicted"):
            self.actions[key].setEnabled(has_image)

    # === Image ===

    def _open_image(self) -> None:
        """Ask for an image file and open it."""
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", self.config.default_directory, IMAGE_FILTER
        )
        if path:
            self.open_image(Path(path))

    def open_image(self, path: Path) -> bool:
        """
        Open an image, discarding all annotations of the previous one.

        Args:
            path: Image file path

        Returns:
            True if the image was loaded
        """
        pixmap = QPixmap(str(path))
        if pixmap.isNull():
            QMessageBox.warning(self, "Error", f"Failed to load image: {path}")
            logger.warning(f"Failed to load image: {path}")
            return False

        self.current_image_path = path
        self.drawing_area.set_image(pixmap, path.name)
        self.file_label.setText(path.name)
        self.config_manager.update(default_directory=str(path.parent))
        self._update_actions()
        return True

    # === Prediction ===

    def _select_model(self) -> None:
        """Ask for a YOLO model file."""
        model_path, _ = QFileDialog.getOpenFileName(
            self, "Select YOLO Model", "", "YOLO Models (*.pt)"
        )
        if not model_path:
            return

        if self._load_yolo_model(model_path):
            self.config_manager.update(yolo_model_path=model_path)
            self._show_status_message(f"Model loaded ({self.yolo_detector.get_device_info()})")
        else:
            QMessageBox.warning(self, "Error", f"Failed to load model: {model_path}")

    def _predict(self) -> None:
        """Request predicted boxes for the current image in the background."""
        if not self.yolo_detector or not self.yolo_detector.is_loaded:
            QMessageBox.warning(self, "Warning", "Please select a valid YOLO model first.")
            return

        if self.current_image_path is None or self.prediction_worker is not None:
            return

        self.prediction_worker = PredictionWorker(
            self.yolo_detector,
            str(self.current_image_path),
            self.store.image_key,
            confidence=self.config.confidence_threshold,
            iou_threshold=self.config.iou_threshold,
        )
        self.prediction_worker.prediction_ready.connect(self._on_prediction_ready)
        self.prediction_worker.prediction_failed.connect(self._on_prediction_failed)
        self.prediction_worker.finished.connect(self._on_prediction_finished)
        self.prediction_worker.start()

        self._show_status_message("Predicting...")
        self._update_actions()

    def _on_prediction_ready(self, entries: List[dict], image_key: int) -> None:
        """Merge a finished prediction batch into the store."""
        if image_key != self.store.image_key:
            logger.warning("Discarding predictions for a previous image")
            return

        added = merge_predictions(self.store, entries, image_key=image_key)
        self.drawing_area.refresh()
        self._show_status_message(f"Predicted {len(added)} boxes")

    def _on_prediction_failed(self, message: str, image_key: int) -> None:
        """Report a prediction failure; the store is left unchanged."""
        self._show_status_message("Prediction failed")
        QMessageBox.critical(self, "Error", f"Prediction failed: {message}")

    def _on_prediction_finished(self) -> None:
        if self.prediction_worker is not None:
            self.prediction_worker.deleteLater()
        self.prediction_worker = None
        self._update_actions()

    # === Editing ===

    def _on_tag_changed(self, tag: Tag) -> None:
        self.drawing_area.retag_selected(tag)

    def _on_selection_changed(self, annotation: Optional[Annotation]) -> None:
        self.tag_panel.set_annotation(annotation)

    def _on_annotations_changed(self) -> None:
        counts = self.store.count_by_source()
        self.count_label.setText(
            f"{counts[Source.MANUAL]} manual, {counts[Source.PREDICTED]} predicted"
        )
        self.tag_panel.set_annotation(self.store.selected)

    # === Export ===

    def _export(self, source: Optional[Source]) -> None:
        """Export the annotations of the current image as JSON."""
        if self.current_image_path is None:
            return

        filename = self.store.image_filename
        default_path = self.exporter.get_export_path(filename)
        path, _ = QFileDialog.getSaveFileName(
            self, "Export Annotations", str(default_path), "JSON (*.json)"
        )
        if not path:
            return

        written = self.exporter.export(filename, self.store.annotations, source, Path(path))
        if written is None:
            QMessageBox.critical(self, "Error", f"Failed to export annotations to {path}")
            return
        self._show_status_message(f"Exported to {written}")

    def _show_status_message(self, message: str) -> None:
        """Show a status bar message."""
        self.status_bar.showMessage(message)

    def closeEvent(self, event) -> None:
        """Handle window close."""
        if self.prediction_worker is not None:
            self.prediction_worker.wait()
        super().closeEvent(event)
