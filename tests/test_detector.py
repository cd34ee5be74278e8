"""Tests for the YOLO detector wrapper and the prediction worker."""

import pytest

from boxtag.core.detector import YOLODetector
from boxtag.core.merge import validate_predicted_batch
from boxtag.core.models import Tag


class FakeCoords:
    """Stands in for a tensor row."""

    def __init__(self, values):
        self.values = values

    def tolist(self):
        return list(self.values)


class FakeBox:
    def __init__(self, x1, y1, x2, y2, cls):
        self.xyxy = [FakeCoords((x1, y1, x2, y2))]
        self.cls = cls


class FakeResult:
    def __init__(self, boxes, names=None):
        self.boxes = boxes
        self.names = names


class FakeModel:
    """Callable that mimics an Ultralytics model."""

    def __init__(self, results):
        self.results = results
        self.calls = []

    def __call__(self, image_path, **kwargs):
        self.calls.append((image_path, kwargs))
        return self.results


NAMES = {0: "Button", 1: "Input", 2: "Checkbox"}


class TestConvertResults:
    """Tests for converting detector output to prediction entries."""

    def test_boxes_to_entries(self):
        """Test corner coordinates become x, y, width, height."""
        detector = YOLODetector()
        result = FakeResult([FakeBox(10, 20, 110, 70, 1)], NAMES)

        entries = detector._convert_results(result)

        assert entries == [{"x": 10, "y": 20, "width": 100, "height": 50, "tag": "Input"}]

    def test_unknown_class_id(self):
        """Test that missing class names fall back to the id."""
        detector = YOLODetector()

        entries = detector._convert_results(FakeResult([FakeBox(0, 0, 20, 20, 7)], NAMES))

        assert entries[0]["tag"] == "7"

    def test_falls_back_to_model_names(self):
        """Test using the loaded model's class names."""
        detector = YOLODetector()
        detector._class_names = {0: "Radio"}

        entries = detector._convert_results(FakeResult([FakeBox(0, 0, 20, 20, 0)]))

        assert entries[0]["tag"] == "Radio"

    def test_no_boxes(self):
        """Test results without a boxes attribute."""
        assert YOLODetector()._convert_results(object()) == []

    def test_bad_box_skipped(self):
        """Test that a malformed box does not abort conversion."""
        detector = YOLODetector()
        bad = FakeBox(0, 0, 20, 20, 0)
        bad.xyxy = []

        entries = detector._convert_results(FakeResult([bad, FakeBox(0, 0, 30, 30, 0)], NAMES))

        assert len(entries) == 1

    def test_unknown_tags_dropped_on_validation(self):
        """Test that non-vocabulary classes are dropped before merging."""
        detector = YOLODetector()
        result = FakeResult([FakeBox(0, 0, 20, 20, 0), FakeBox(0, 0, 20, 20, 2)], NAMES)

        boxes = validate_predicted_batch(detector._convert_results(result))

        assert [b.tag for b in boxes] == [Tag.BUTTON]


class TestDetect:
    """Tests for YOLODetector.detect()."""

    def test_requires_model(self):
        """Test that detecting without a model raises."""
        with pytest.raises(ValueError):
            YOLODetector().detect("image.png")

    def test_passes_thresholds(self):
        """Test that thresholds reach the model."""
        detector = YOLODetector()
        detector.model = FakeModel([FakeResult([FakeBox(0, 0, 20, 20, 0)], NAMES)])

        entries = detector.detect("image.png", confidence=0.4, iou_threshold=0.6)

        assert len(entries) == 1
        assert detector.model.calls == [
            ("image.png", {"conf": 0.4, "iou": 0.6, "verbose": False})
        ]

    def test_empty_results(self):
        """Test a model that returns nothing."""
        detector = YOLODetector()
        detector.model = FakeModel([])

        assert detector.detect("image.png") == []


class TestPredictionWorker:
    """Tests for the background prediction worker."""

    def test_ready_signal(self, qapp):
        """Test that results are emitted with the image key."""
        from boxtag.workers.prediction import PredictionWorker

        detector = YOLODetector()
        detector.model = FakeModel([FakeResult([FakeBox(0, 0, 20, 20, 0)], NAMES)])
        worker = PredictionWorker(detector, "image.png", 3)
        received = []
        worker.prediction_ready.connect(lambda entries, key: received.append((entries, key)))

        worker.run()

        assert received == [([{"x": 0, "y": 0, "width": 20, "height": 20, "tag": "Button"}], 3)]

    def test_failed_signal(self, qapp):
        """Test that detector errors are emitted, not raised."""
        from boxtag.workers.prediction import PredictionWorker

        worker = PredictionWorker(YOLODetector(), "image.png", 5)
        failures = []
        worker.prediction_failed.connect(lambda message, key: failures.append((message, key)))

        worker.run()

        assert len(failures) == 1
        assert failures[0][1] == 5
