"""Tests for core models."""

import dataclasses

import pytest

from boxtag.core.geometry import BoundingBox
from boxtag.core.models import Annotation, Source, Tag, generate_id


class TestTag:
    """Tests for the Tag enum."""

    def test_values(self):
        """Test the tag values in order."""
        assert [t.value for t in Tag] == ["Button", "Input", "Radio", "Dropdown"]

    def test_default_is_first(self):
        """Test that the default tag is the first one."""
        assert Tag.default() == Tag.BUTTON

    @pytest.mark.parametrize("value, expected", [
        ("Button", Tag.BUTTON),
        ("dropdown", Tag.DROPDOWN),
        (" RADIO ", Tag.RADIO),
        (Tag.INPUT, Tag.INPUT),
    ])
    def test_parse_known(self, value, expected):
        """Test parsing known tag names."""
        assert Tag.parse(value) == expected

    @pytest.mark.parametrize("value", ["Checkbox", "", None, 3])
    def test_parse_unknown(self, value):
        """Test that unknown values are rejected."""
        assert Tag.parse(value) is None


class TestAnnotation:
    """Tests for the Annotation class."""

    def test_geometry_properties(self):
        """Test that geometry is exposed from the box."""
        annotation = Annotation("a", BoundingBox(1, 2, 30, 40), Tag.INPUT, Source.MANUAL)

        assert (annotation.x, annotation.y, annotation.width, annotation.height) == (1, 2, 30, 40)
        assert annotation.is_manual

    def test_is_immutable(self):
        """Test that fields cannot be reassigned."""
        annotation = Annotation("a", BoundingBox(0, 0, 20, 20), Tag.BUTTON, Source.MANUAL)

        with pytest.raises(dataclasses.FrozenInstanceError):
            annotation.id = "b"

    def test_with_tag_keeps_identity(self):
        """Test that retagging keeps id and source."""
        annotation = Annotation("a", BoundingBox(0, 0, 20, 20), Tag.BUTTON, Source.PREDICTED)

        retagged = annotation.with_tag(Tag.RADIO)

        assert retagged.id == "a"
        assert retagged.source == Source.PREDICTED
        assert retagged.tag == Tag.RADIO
        assert annotation.tag == Tag.BUTTON

    def test_to_export_dict(self):
        """Test that export strips id and source."""
        annotation = Annotation("a", BoundingBox(5, 6, 70, 80), Tag.DROPDOWN, Source.MANUAL)

        assert annotation.to_export_dict() == {
            "x": 5, "y": 6, "width": 70, "height": 80, "tag": "Dropdown"
        }


class TestGenerateId:
    """Tests for id generation."""

    def test_prefix(self):
        """Test that ids carry the source."""
        assert generate_id(Source.MANUAL).startswith("manual-")
        assert generate_id(Source.PREDICTED).startswith("predicted-")

    def test_rapid_calls_are_unique(self):
        """Test uniqueness for ids created in quick succession."""
        ids = {generate_id(Source.MANUAL) for _ in range(1000)}

        assert len(ids) == 1000
