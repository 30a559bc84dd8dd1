"""Take-off ingestion for MTOCalc.

Handles reading take-off spreadsheets, validating rows and building
component records.
"""

from mtocalc.ingestion.explode import (
    aggregate_threaded_pipe,
    build_components,
    explode_quantity,
)
from mtocalc.ingestion.takeoff import preview_import, read_takeoff
from mtocalc.ingestion.validator import (
    DuplicateKeySet,
    create_validation_summary,
    validate_in_chunks,
    validate_rows,
)

__all__ = [
    "DuplicateKeySet",
    "aggregate_threaded_pipe",
    "build_components",
    "create_validation_summary",
    "explode_quantity",
    "preview_import",
    "read_takeoff",
    "validate_in_chunks",
    "validate_rows",
]
