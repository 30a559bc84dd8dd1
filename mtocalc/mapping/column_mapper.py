"""Three-tier spreadsheet column mapping.

Each header (in input order) is matched against the expected fields:

- Tier 1: exact match on the marker-stripped header (confidence 100)
- Tier 2: case-insensitive match (confidence 95)
- Tier 3: registered synonym, case-insensitive (confidence 85)

A field is claimed by the first header that matches it at any tier, so a
later header never displaces an earlier one even if it would match at a
higher tier.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

import yaml

from mtocalc.canonical.normalize import strip_header_markers
from mtocalc.models import (
    REQUIRED_FIELDS,
    TIER_CONFIDENCE,
    ColumnMapping,
    ExpectedField,
    MappingResult,
    MatchTier,
)

logger = logging.getLogger(__name__)

SynonymMap = Mapping[ExpectedField, Iterable[str]]

COLUMN_SYNONYMS: dict[ExpectedField, tuple[str, ...]] = {
    ExpectedField.DRAWING: ("DRAWINGS", "DRAWING NUMBER", "DWG", "DWG NO", "DWG NUM"),
    ExpectedField.CMDTY_CODE: ("COMMODITY CODE", "CMDTY", "COMMODITY", "CODE", "PART CODE"),
    ExpectedField.AREA: ("AREAS", "LOCATION", "ZONE"),
    ExpectedField.SYSTEM: ("SYSTEMS", "SYS"),
    ExpectedField.TEST_PACKAGE: ("TEST PACKAGE", "TEST PKG", "PKG", "PACKAGE"),
    ExpectedField.SIZE: ("NOM SIZE", "NOMINAL SIZE", "NOMSIZE"),
    ExpectedField.QTY: ("QUANTITY", "COUNT", "CNT"),
    ExpectedField.SPEC: ("SPECIFICATION", "MATERIAL SPEC", "MAT SPEC"),
    ExpectedField.COMMENTS: ("COMMENT", "NOTES", "NOTE", "REMARKS"),
}


def load_synonyms(config_path: Path | None) -> dict[ExpectedField, tuple[str, ...]]:
    """Load extra header synonyms from YAML and merge them over the defaults.

    Expected layout::

        DRAWING: [ISO, ISOMETRIC]
        CMDTY CODE: [ITEM CODE]

    Args:
        config_path: Path to a synonyms YAML file, or None for defaults only

    Raises:
        ValueError: If the file names a field that does not exist
    """
    synonyms = dict(COLUMN_SYNONYMS)
    if config_path is None or not config_path.exists():
        return synonyms

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    for field_name, extra in config.items():
        try:
            field = ExpectedField(str(field_name).upper())
        except ValueError:
            raise ValueError(f"Unknown field in synonyms config: {field_name!r}") from None
        merged = list(synonyms.get(field, ()))
        merged.extend(str(s).upper() for s in extra or () if str(s).upper() not in merged)
        synonyms[field] = tuple(merged)

    logger.debug("Loaded header synonyms from %s", config_path)
    return synonyms


def _match_header(
    header: str,
    claimed: set[ExpectedField],
    synonyms: SynonymMap,
) -> ColumnMapping | None:
    normalized = strip_header_markers(header)
    if not normalized:
        return None
    upper = normalized.upper()

    tiers = (
        (MatchTier.EXACT, lambda field: normalized == field.value),
        (MatchTier.CASE_INSENSITIVE, lambda field: upper == field.value),
        (
            MatchTier.SYNONYM,
            lambda field: any(upper == s.upper() for s in synonyms.get(field, ())),
        ),
    )

    for tier, matches in tiers:
        for field in ExpectedField:
            if field in claimed:
                continue
            if matches(field):
                return ColumnMapping(
                    csv_column=header,
                    expected_field=field,
                    confidence=TIER_CONFIDENCE[tier],
                    match_tier=tier,
                )
    return None


def map_columns(headers: Iterable[str], synonyms: SynonymMap | None = None) -> MappingResult:
    """Map spreadsheet headers to expected fields.

    Args:
        headers: Header strings in sheet order
        synonyms: Synonym registry (defaults to COLUMN_SYNONYMS)

    Returns:
        MappingResult with mappings, unmapped headers and missing required fields
    """
    synonyms = COLUMN_SYNONYMS if synonyms is None else synonyms
    claimed: set[ExpectedField] = set()
    mappings: list[ColumnMapping] = []
    unmapped: list[str] = []

    for header in headers:
        mapping = _match_header(header, claimed, synonyms)
        if mapping is None:
            unmapped.append(header)
            continue
        claimed.add(mapping.expected_field)
        mappings.append(mapping)

    missing = [field for field in REQUIRED_FIELDS if field not in claimed]

    return MappingResult(
        mappings=mappings,
        unmapped_headers=unmapped,
        missing_required_fields=missing,
        has_all_required_fields=not missing,
    )
