"""Unit tests for shared normalization helpers."""

from __future__ import annotations

import pytest

from mtocalc.canonical.normalize import (
    is_supported_type,
    is_threaded_pipe,
    normalize_component_type,
    normalize_drawing,
    normalize_size,
    strip_header_markers,
)


class TestStripHeaderMarkers:
    """Test trailing marker removal."""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("DRAWING*", "DRAWING"),
            ("QTY+", "QTY"),
            ("CMDTY CODE!", "CMDTY CODE"),
            ("TYPE#", "TYPE"),
            ("SIZE*+!#", "SIZE"),
            ("  SPEC *  ", "SPEC"),
            ("DRAWING", "DRAWING"),
        ],
    )
    def test_trailing_markers(self, header, expected):
        assert strip_header_markers(header) == expected

    def test_embedded_markers_kept(self):
        assert strip_header_markers("Item #1") == "Item #1"
        assert strip_header_markers("A*B") == "A*B"


class TestNormalizeDrawing:
    """Test drawing number normalization."""

    def test_upper_and_trim(self):
        assert normalize_drawing("  p-001 ") == "P-001"

    def test_collapse_whitespace(self):
        assert normalize_drawing("p  001\trev a") == "P 001 REV A"


class TestNormalizeSize:
    """Test identity form of sizes."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2", "2"),
            ('2"', "2"),
            ("1/2", "1X2"),
            ('1/2"', "1X2"),
            ("2x4", "2X4"),
            (" 2 X 4 ", "2X4"),
            ("6'", "6"),
        ],
    )
    def test_sizes(self, raw, expected):
        assert normalize_size(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_is_nosize(self, raw):
        assert normalize_size(raw) == "NOSIZE"


class TestComponentTypes:
    """Test type canonicalization and classification."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("valve", "Valve"),
            ("VALVE", "Valve"),
            ("field weld", "Field_Weld"),
            ("Field_Weld", "Field_Weld"),
            ("threaded pipe", "Threaded_Pipe"),
            (" misc  component ", "Misc_Component"),
        ],
    )
    def test_canonical_spelling(self, raw, expected):
        assert normalize_component_type(raw) == expected

    def test_unsupported_type_is_underscored(self):
        assert normalize_component_type("Gasket Set") == "Gasket_Set"
        assert not is_supported_type("Gasket_Set")

    def test_supported(self):
        assert is_supported_type("instrument")
        assert is_supported_type("Threaded_Pipe")

    def test_threaded_pipe_is_literal(self):
        assert is_threaded_pipe("Threaded_Pipe")
        assert is_threaded_pipe("THREADED_PIPE")
        assert not is_threaded_pipe("Threaded_Pipe_Fitting")
        assert not is_threaded_pipe("Pipe")
