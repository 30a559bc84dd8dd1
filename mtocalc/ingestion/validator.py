"""Take-off row validation engine.

Classifies every spreadsheet row as:
- valid: will be imported
- skipped: warning only (unsupported type, zero quantity)
- error: blocks the import (missing required field, bad quantity,
  duplicate identity key)

Checks run in a fixed order and the first failure decides the outcome.
The only state shared between rows is the duplicate-key set, which the
caller scopes to one uploaded batch.
"""

from __future__ import annotations

import logging
import math
import re
import threading
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from mtocalc.canonical.key_generator import MAX_SEQUENCE, generate_identity_key
from mtocalc.canonical.normalize import (
    is_supported_type,
    is_threaded_pipe,
    normalize_component_type,
    normalize_drawing,
    normalize_size,
)
from mtocalc.models import (
    ExpectedField,
    NormalizedRecord,
    ValidationCategory,
    ValidationOutcome,
    ValidationStatus,
    ValidationSummary,
)

logger = logging.getLogger(__name__)

# Plain decimal text; float() alone would also accept "1e3" and "1_000"
_QUANTITY = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

Row = Mapping[str, Any]


class DuplicateKeySet:
    """Identity keys seen so far in one batch.

    Create one per uploaded batch and pass the same instance to every
    chunk of that batch. Pass ``thread_safe=True`` when several workers
    validate chunks of the same batch concurrently.
    """

    def __init__(self, thread_safe: bool = False) -> None:
        self._keys: set[str] = set()
        self._lock = threading.Lock() if thread_safe else None

    def add(self, key: str) -> bool:
        """Record ``key``; return False if it was already present."""
        if self._lock is None:
            return self._add(key)
        with self._lock:
            return self._add(key)

    def _add(self, key: str) -> bool:
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def _field_columns(column_lookup: Mapping[str, ExpectedField]) -> dict[ExpectedField, str]:
    """Invert the lookup map; the first column mapped to a field wins."""
    columns: dict[ExpectedField, str] = {}
    for column, field in column_lookup.items():
        columns.setdefault(ExpectedField(field), column)
    return columns


def _parse_quantity(
    qty_raw: str, component_type: str
) -> tuple[int | float | None, str | None]:
    """Return (quantity, error reason); exactly one of them is None."""
    text = qty_raw.strip()
    if not _QUANTITY.match(text):
        return None, "QTY must be a number"
    qty = float(text)
    if not math.isfinite(qty):
        return None, "QTY must be a number"

    if qty < 0:
        return None, "QTY must be >= 0"

    # Threaded pipe quantities are linear feet and may be fractional
    if is_threaded_pipe(component_type):
        return (int(qty) if qty.is_integer() else qty), None

    if not qty.is_integer():
        return None, "QTY must be an integer"

    # Each unit needs its own 3-digit sequence number
    if qty > MAX_SEQUENCE:
        return None, f"QTY must be <= {MAX_SEQUENCE}"

    return int(qty), None


def _validate_row(
    row: Row,
    row_number: int,
    column_lookup: Mapping[str, ExpectedField],
    field_columns: Mapping[ExpectedField, str],
    seen_keys: DuplicateKeySet,
) -> ValidationOutcome:
    def value(field: ExpectedField) -> str:
        column = field_columns.get(field)
        return _cell(row.get(column)) if column is not None else ""

    def error(category: ValidationCategory, reason: str) -> ValidationOutcome:
        return ValidationOutcome(
            row_number=row_number,
            status=ValidationStatus.ERROR,
            category=category,
            reason=reason,
        )

    def skipped(category: ValidationCategory, reason: str) -> ValidationOutcome:
        return ValidationOutcome(
            row_number=row_number,
            status=ValidationStatus.SKIPPED,
            category=category,
            reason=reason,
        )

    drawing = value(ExpectedField.DRAWING)
    type_raw = value(ExpectedField.TYPE)
    cmdty_code = value(ExpectedField.CMDTY_CODE).strip()
    qty_raw = value(ExpectedField.QTY)

    if not drawing.strip():
        return error(ValidationCategory.EMPTY_DRAWING, "Required field DRAWING is empty")

    if not type_raw.strip():
        return error(ValidationCategory.MISSING_REQUIRED_FIELD, "Required field TYPE is empty")

    if not cmdty_code:
        return error(
            ValidationCategory.MISSING_REQUIRED_FIELD, "Required field CMDTY CODE is empty"
        )

    if not qty_raw.strip():
        return error(ValidationCategory.MISSING_REQUIRED_FIELD, "Required field QTY is empty")

    component_type = normalize_component_type(type_raw)
    qty, qty_error = _parse_quantity(qty_raw, component_type)
    if qty_error is not None:
        return error(ValidationCategory.INVALID_QUANTITY, qty_error)

    if qty == 0:
        return skipped(ValidationCategory.ZERO_QUANTITY, "Component quantity is 0")

    if not is_supported_type(component_type):
        return skipped(
            ValidationCategory.UNSUPPORTED_TYPE,
            f"Unsupported component type: {type_raw.strip()}",
        )

    drawing_norm = normalize_drawing(drawing)
    size_raw = value(ExpectedField.SIZE)

    identity_key = generate_identity_key(
        drawing_norm, size_raw, cmdty_code, 1, qty, component_type
    )

    # Threaded pipe rows sharing an identity are summed downstream
    if not seen_keys.add(identity_key) and not is_threaded_pipe(component_type):
        return error(
            ValidationCategory.DUPLICATE_IDENTITY_KEY,
            f"Duplicate identity key: {identity_key}",
        )

    unmapped_fields = {
        column: _cell(cell)
        for column, cell in row.items()
        if column not in column_lookup and _cell(cell)
    }

    record = NormalizedRecord(
        drawing=drawing_norm,
        type=component_type,
        qty=qty,
        cmdty_code=cmdty_code,
        size=normalize_size(size_raw),
        spec=value(ExpectedField.SPEC) or None,
        description=value(ExpectedField.DESCRIPTION) or None,
        comments=value(ExpectedField.COMMENTS) or None,
        area=value(ExpectedField.AREA) or None,
        system=value(ExpectedField.SYSTEM) or None,
        test_package=value(ExpectedField.TEST_PACKAGE) or None,
        unmapped_fields=unmapped_fields,
    )

    return ValidationOutcome(row_number=row_number, status=ValidationStatus.VALID, record=record)


def validate_rows(
    rows: Iterable[Row],
    column_lookup: Mapping[str, ExpectedField],
    seen_keys: DuplicateKeySet | None = None,
    *,
    start_row: int = 1,
) -> list[ValidationOutcome]:
    """Validate take-off rows.

    Args:
        rows: Row dicts keyed by spreadsheet header
        column_lookup: Header -> expected field (see MappingResult.lookup_map)
        seen_keys: Duplicate-key set for this batch; a fresh one is used
            when omitted, making this call the whole batch
        start_row: Row number of the first row, for chunked validation

    Returns:
        One ValidationOutcome per row, in input order
    """
    if start_row < 1:
        raise ValueError(f"start_row must be >= 1, got {start_row}")

    seen_keys = DuplicateKeySet() if seen_keys is None else seen_keys
    field_columns = _field_columns(column_lookup)

    outcomes = [
        _validate_row(row, row_number, column_lookup, field_columns, seen_keys)
        for row_number, row in enumerate(rows, start=start_row)
    ]

    logger.debug(
        "Validated rows %d-%d (%d keys seen in batch)",
        start_row,
        start_row + len(outcomes) - 1,
        len(seen_keys),
    )
    return outcomes


def _chunks(rows: Sequence[Row], size: int) -> Iterator[tuple[int, Sequence[Row]]]:
    for offset in range(0, len(rows), size):
        yield offset, rows[offset : offset + size]


def validate_in_chunks(
    rows: Sequence[Row],
    column_lookup: Mapping[str, ExpectedField],
    chunk_size: int,
    seen_keys: DuplicateKeySet | None = None,
) -> list[ValidationOutcome]:
    """Validate a large batch chunk by chunk.

    All chunks share one duplicate-key set and row numbers continue across
    chunk boundaries, so the result equals a single validate_rows() call.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    seen_keys = DuplicateKeySet() if seen_keys is None else seen_keys
    outcomes: list[ValidationOutcome] = []
    for offset, chunk in _chunks(rows, chunk_size):
        outcomes.extend(validate_rows(chunk, column_lookup, seen_keys, start_row=offset + 1))
    return outcomes


def create_validation_summary(outcomes: Sequence[ValidationOutcome]) -> ValidationSummary:
    """Aggregate outcomes by status and category.

    Skipped rows never block the import; any error does.
    """
    by_status: dict[ValidationStatus, list[ValidationOutcome]] = {
        status: [] for status in ValidationStatus
    }
    by_category: dict[ValidationCategory, list[ValidationOutcome]] = {}

    for outcome in outcomes:
        by_status[outcome.status].append(outcome)
        if outcome.category is not None:
            by_category.setdefault(outcome.category, []).append(outcome)

    error_count = len(by_status[ValidationStatus.ERROR])
    summary = ValidationSummary(
        total_rows=len(outcomes),
        valid_count=len(by_status[ValidationStatus.VALID]),
        skipped_count=len(by_status[ValidationStatus.SKIPPED]),
        error_count=error_count,
        can_import=error_count == 0,
        results_by_status=by_status,
        results_by_category=by_category,
    )

    logger.info(
        "Validation summary: %d rows, %d valid, %d skipped, %d errors",
        summary.total_rows,
        summary.valid_count,
        summary.skipped_count,
        summary.error_count,
    )
    return summary


def get_valid_records(outcomes: Iterable[ValidationOutcome]) -> list[NormalizedRecord]:
    return [o.record for o in outcomes if o.is_valid and o.record is not None]


def _details(
    outcomes: Iterable[ValidationOutcome], status: ValidationStatus
) -> list[dict[str, Any]]:
    return [
        {"row_number": o.row_number, "reason": o.reason, "category": o.category}
        for o in outcomes
        if o.status is status and o.reason and o.category
    ]


def get_error_details(outcomes: Iterable[ValidationOutcome]) -> list[dict[str, Any]]:
    """Row number, reason and category of every error row."""
    return _details(outcomes, ValidationStatus.ERROR)


def get_skip_details(outcomes: Iterable[ValidationOutcome]) -> list[dict[str, Any]]:
    """Row number, reason and category of every skipped row."""
    return _details(outcomes, ValidationStatus.SKIPPED)
