"""Side panel showing and editing the selected annotation."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QComboBox, QFormLayout, QLabel, QVBoxLayout, QWidget

from ..core.models import Annotation, Source, Tag

logger = logging.getLogger(__name__)

SOURCE_LABELS = {
    Source.MANUAL: "Manual",
    Source.PREDICTED: "Predicted",
}

HELP_TEXT = (
    "Drag on the image to draw a box.\n"
    "Click a box to select it, drag to move it,\n"
    "drag its handles to resize it.\n"
    "Double-click a box or press Delete to remove it.\n"
    "Press Escape to deselect."
)


class TagPanel(QWidget):
    """
    Shows source, tag, position and size of the selected annotation
    and lets the user change its tag.
    """

    tag_changed = pyqtSignal(object)  # Emits Tag

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.source_label = QLabel("-")
        self.position_label = QLabel("-")
        self.size_label = QLabel("-")

        self.tag_combo = QComboBox()
        for tag in Tag:
            self.tag_combo.addItem(tag.value)
        self.tag_combo.currentIndexChanged.connect(self._on_tag_index_changed)

        form = QFormLayout()
        form.addRow("Source:", self.source_label)
        form.addRow("Tag:", self.tag_combo)
        form.addRow("Position:", self.position_label)
        form.addRow("Size:", self.size_label)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(QLabel(HELP_TEXT))
        layout.addStretch()

        self._updating = False
        self.set_annotation(None)

    def set_annotation(self, annotation: Optional[Annotation]) -> None:
        """Display an annotation, or clear the panel if None."""
        self._updating = True
        try:
            enabled = annotation is not None
            self.tag_combo.setEnabled(enabled)
            if annotation is None:
                self.source_label.setText("-")
                self.position_label.setText("-")
                self.size_label.setText("-")
                return

            self.source_label.setText(SOURCE_LABELS[annotation.source])
            self.tag_combo.setCurrentIndex(list(Tag).index(annotation.tag))
            self.position_label.setText(f"X: {round(annotation.x)}  Y: {round(annotation.y)}")
            self.size_label.setText(f"W: {round(annotation.width)}  H: {round(annotation.height)}")
        finally:
            self._updating = False

    def _on_tag_index_changed(self, index: int) -> None:
        if self._updating or index < 0:
            return
        self.tag_changed.emit(list(Tag)[index])
