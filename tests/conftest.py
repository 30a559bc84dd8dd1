"""Pytest configuration and fixtures for MTOCalc tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

import pytest

from mtocalc.config import WeightingConfig, reset_config
from mtocalc.models import ExpectedField, NormalizedRecord


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Start every test from default configuration."""
    for name in (
        "WEIGHT_DIAMETER_EXPONENT",
        "WEIGHT_LINEAR_FEET_FACTOR",
        "VALIDATION_CHUNK_SIZE",
        "COLUMN_SYNONYMS_PATH",
        "MAX_ROWS",
        "MAX_FILE_SIZE_MB",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def weighting() -> WeightingConfig:
    """Default weight model."""
    return WeightingConfig()


@pytest.fixture
def column_lookup() -> dict[str, ExpectedField]:
    """Lookup map for a sheet whose headers are the canonical field names."""
    return {
        "DRAWING": ExpectedField.DRAWING,
        "TYPE": ExpectedField.TYPE,
        "QTY": ExpectedField.QTY,
        "CMDTY CODE": ExpectedField.CMDTY_CODE,
        "SIZE": ExpectedField.SIZE,
        "SPEC": ExpectedField.SPEC,
        "DESCRIPTION": ExpectedField.DESCRIPTION,
        "COMMENTS": ExpectedField.COMMENTS,
        "AREA": ExpectedField.AREA,
        "SYSTEM": ExpectedField.SYSTEM,
        "TEST PACKAGE": ExpectedField.TEST_PACKAGE,
    }


@pytest.fixture
def make_row():
    """Build a take-off row with sensible defaults."""

    def _make(**overrides: str) -> dict[str, str]:
        row = {
            "DRAWING": "P-001",
            "TYPE": "Valve",
            "QTY": "1",
            "CMDTY CODE": "V-100",
        }
        row.update(overrides)
        return row

    return _make


@pytest.fixture
def valve_record() -> NormalizedRecord:
    """A validated valve row with quantity 4."""
    return NormalizedRecord(
        drawing="P-001",
        type="Valve",
        qty=4,
        cmdty_code="V-100",
        size="2",
        spec="A1",
        description="Gate valve",
        comments="Field verify",
        unmapped_fields={"Item #": "12345"},
    )
