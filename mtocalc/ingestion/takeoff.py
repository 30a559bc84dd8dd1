"""Material take-off ingestion for MTOCalc.

Reads CSV/XLSX take-off exports and runs the import pipeline up to (but
not including) persistence: column mapping, row validation, metadata
extraction and component building.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

import pandas as pd

from mtocalc.config import IngestionConfig, get_config
from mtocalc.ingestion.explode import build_components
from mtocalc.ingestion.metadata import extract_unique_metadata
from mtocalc.ingestion.validator import (
    DuplicateKeySet,
    create_validation_summary,
    get_valid_records,
    validate_in_chunks,
)
from mtocalc.mapping.column_mapper import SynonymMap, load_synonyms, map_columns
from mtocalc.models import ImportPreview

logger = logging.getLogger(__name__)

Row = dict[str, str]


class TakeoffFileError(ValueError):
    """The take-off file cannot be read as a spreadsheet."""


def read_takeoff(
    file_path: Path, config: IngestionConfig | None = None
) -> tuple[list[str], list[Row]]:
    """Read a take-off export from CSV or XLSX.

    Every cell is read as text so quantities like "007" or sizes like
    "1/2" reach the validator untouched. Only the first sheet of a
    workbook is read.

    Args:
        file_path: Path to CSV or XLSX file
        config: Ingestion limits (defaults to the application config)

    Returns:
        Tuple of (headers, rows)

    Raises:
        FileNotFoundError: If file doesn't exist
        TakeoffFileError: If the file is too large, has too many rows or an
            unsupported format
    """
    config = config or get_config().ingestion

    if not file_path.exists():
        raise FileNotFoundError(f"Take-off file not found: {file_path}")

    file_size_mb = file_path.stat().st_size / (1024 * 1024)
    if file_size_mb > config.max_file_size_mb:
        raise TakeoffFileError(
            f"File too large ({file_size_mb:.1f}MB). "
            f"Maximum allowed: {config.max_file_size_mb}MB"
        )

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    elif suffix in (".xlsx", ".xls"):
        df = pd.read_excel(file_path, sheet_name=0, dtype=str, keep_default_na=False)
    else:
        raise TakeoffFileError(f"Unsupported file format: {file_path.suffix}. Use CSV or XLSX.")

    if len(df) > config.max_rows:
        raise TakeoffFileError(f"Too many rows ({len(df):,}). Maximum allowed: {config.max_rows:,}")

    headers = [str(column).strip() for column in df.columns]
    df.columns = headers
    df = df.fillna("")

    rows: list[Row] = [
        {header: str(value) for header, value in zip(headers, values)}
        for values in df.itertuples(index=False, name=None)
    ]

    logger.info("Read %d rows with %d columns from %s", len(rows), len(headers), file_path)
    return headers, rows


def preview_import(
    headers: Sequence[str],
    rows: Sequence[Mapping[str, str]],
    drawing_ids: Mapping[str, str] | None = None,
    *,
    synonyms: SynonymMap | None = None,
    config: IngestionConfig | None = None,
) -> ImportPreview:
    """Map, validate and (when importable) build components for one batch.

    Validation stops after column mapping if a required field has no
    column. Components are only built when the batch has no errors.
    """
    config = config or get_config().ingestion
    if synonyms is None:
        synonyms = load_synonyms(config.synonyms_path)

    mapping = map_columns(headers, synonyms)
    if not mapping.has_all_required_fields:
        logger.warning(
            "Missing required columns: %s",
            ", ".join(field.value for field in mapping.missing_required_fields),
        )
        return ImportPreview(mapping=mapping)

    outcomes = validate_in_chunks(
        rows, mapping.lookup_map(), config.chunk_size, DuplicateKeySet()
    )
    summary = create_validation_summary(outcomes)
    records = get_valid_records(outcomes)
    metadata = extract_unique_metadata(records)

    components = build_components(outcomes, drawing_ids) if summary.can_import else []

    return ImportPreview(
        mapping=mapping,
        outcomes=outcomes,
        summary=summary,
        metadata=metadata,
        components=components,
    )
