"""Normalization helpers shared by the mapper, validator and key generator."""

from __future__ import annotations

import re

SUPPORTED_COMPONENT_TYPES: tuple[str, ...] = (
    "Spool",
    "Field_Weld",
    "Valve",
    "Instrument",
    "Support",
    "Pipe",
    "Fitting",
    "Flange",
    "Tubing",
    "Hose",
    "Misc_Component",
    "Threaded_Pipe",
)

THREADED_PIPE = "Threaded_Pipe"
INSTRUMENT = "Instrument"

_TYPE_LOOKUP = {name.lower(): name for name in SUPPORTED_COMPONENT_TYPES}
_HEADER_MARKERS = re.compile(r"[*+!#]+$")
_WHITESPACE = re.compile(r"\s+")
_SIZE_STRIP = re.compile(r"[\"'\s]")


def strip_header_markers(header: str) -> str:
    """Remove a trailing run of required-field markers (``*+!#``).

    Only the end of the header is touched; embedded markers are kept.
    """
    return _HEADER_MARKERS.sub("", header.strip()).rstrip()


def normalize_drawing(raw: str) -> str:
    """Uppercase, trim and collapse internal whitespace to single spaces."""
    return _WHITESPACE.sub(" ", raw.strip().upper())


def normalize_size(raw: str | None) -> str:
    """Display/identity form of a size: "1/2\"" -> "1X2", empty -> "NOSIZE"."""
    if raw is None or not raw.strip():
        return "NOSIZE"

    return _SIZE_STRIP.sub("", raw).replace("/", "X").upper()


def normalize_component_type(raw: str) -> str:
    """Map a type cell onto its canonical spelling.

    Matching is case-insensitive and treats spaces as underscores
    ("field weld" -> "Field_Weld"). Unsupported types come back in their
    underscored form so callers can still report them.
    """
    underscored = _WHITESPACE.sub("_", raw.strip())
    return _TYPE_LOOKUP.get(underscored.lower(), underscored)


def is_supported_type(component_type: str) -> bool:
    return component_type.lower() in _TYPE_LOOKUP


def is_threaded_pipe(component_type: str) -> bool:
    """Literal Threaded_Pipe check (case-insensitive), not a substring test."""
    return component_type.lower() == THREADED_PIPE.lower()
