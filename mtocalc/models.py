"""MTOCalc Pydantic models for type-safe data validation.

Covers the whole import path: column mappings, parsed sizes, weights,
row validation outcomes, identities and the components handed to the
datastore.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator


class ExpectedField(str, Enum):
    """Canonical fields a spreadsheet column can map to."""

    # Required
    DRAWING = "DRAWING"
    TYPE = "TYPE"
    QTY = "QTY"
    CMDTY_CODE = "CMDTY CODE"

    # Optional standard fields
    SIZE = "SIZE"
    SPEC = "SPEC"
    DESCRIPTION = "DESCRIPTION"
    COMMENTS = "COMMENTS"

    # Optional metadata fields
    AREA = "AREA"
    SYSTEM = "SYSTEM"
    TEST_PACKAGE = "TEST_PACKAGE"


REQUIRED_FIELDS: tuple[ExpectedField, ...] = (
    ExpectedField.DRAWING,
    ExpectedField.TYPE,
    ExpectedField.QTY,
    ExpectedField.CMDTY_CODE,
)


class MatchTier(str, Enum):
    """How a header was matched to an expected field."""

    EXACT = "exact"
    CASE_INSENSITIVE = "case-insensitive"
    SYNONYM = "synonym"


TIER_CONFIDENCE: dict[MatchTier, int] = {
    MatchTier.EXACT: 100,
    MatchTier.CASE_INSENSITIVE: 95,
    MatchTier.SYNONYM: 85,
}


class WeightBasis(str, Enum):
    """Which formula produced a weight."""

    FIXED = "fixed"
    DIMENSION = "dimension"
    LINEAR_FEET = "linear_feet"


class ValidationStatus(str, Enum):
    """Row classification outcome."""

    VALID = "valid"
    SKIPPED = "skipped"  # Warning, excluded but never blocks import
    ERROR = "error"  # Blocks import


class ValidationCategory(str, Enum):
    """Stable reason tokens for skipped/error rows."""

    EMPTY_DRAWING = "empty_drawing"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_QUANTITY = "invalid_quantity"
    ZERO_QUANTITY = "zero_quantity"
    UNSUPPORTED_TYPE = "unsupported_type"
    DUPLICATE_IDENTITY_KEY = "duplicate_identity_key"


class ColumnMapping(BaseModel):
    """Detected relationship between a spreadsheet header and an expected field."""

    csv_column: str  # Original header, markers included
    expected_field: ExpectedField
    confidence: Literal[100, 95, 85]
    match_tier: MatchTier

    @model_validator(mode="after")
    def check_tier_confidence(self) -> ColumnMapping:
        if TIER_CONFIDENCE[self.match_tier] != self.confidence:
            raise ValueError(
                f"confidence {self.confidence} does not match tier {self.match_tier.value!r}"
            )
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "csv_column": "DRAWING*",
                "expected_field": "DRAWING",
                "confidence": 100,
                "match_tier": "exact",
            }
        }


class MappingResult(BaseModel):
    """Result of mapping one header row."""

    mappings: list[ColumnMapping] = Field(default_factory=list)
    unmapped_headers: list[str] = Field(default_factory=list)
    missing_required_fields: list[ExpectedField] = Field(default_factory=list)
    has_all_required_fields: bool = False

    def lookup_map(self) -> dict[str, ExpectedField]:
        """Header -> expected field, as consumed by the row validator."""
        return {m.csv_column: m.expected_field for m in self.mappings}


class ParsedSize(BaseModel):
    """Numeric interpretation of a freeform size token."""

    diameter: float | None
    is_reducer: bool = False
    second_diameter: float | None = None  # Only set for reducers
    raw_text: str


class WeightResult(BaseModel):
    """Relative installation-effort weight for one component."""

    weight: float = Field(gt=0)
    basis: WeightBasis
    metadata: dict[str, Any] = Field(default_factory=dict)


class DiscreteIdentity(BaseModel):
    """Identity of one exploded unit (drawing + size + commodity + sequence)."""

    kind: Literal["discrete"] = "discrete"
    drawing: str
    size: str
    commodity: str
    seq: int = Field(ge=1, le=999)

    @property
    def key(self) -> str:
        return f"{self.drawing}-{self.size}-{self.commodity}-{self.seq:03d}"


class InstrumentIdentity(BaseModel):
    """Identity of an instrument; carries no sequence suffix."""

    kind: Literal["instrument"] = "instrument"
    drawing: str
    size: str
    commodity: str

    @property
    def key(self) -> str:
        return f"{self.drawing}-{self.size}-{self.commodity}"


class AggregateIdentity(BaseModel):
    """Identity of a linear-run aggregate (one per drawing + size + commodity).

    Size and total length live in the component attributes; the optional
    fields here are only consulted when no attributes are supplied.
    """

    kind: Literal["aggregate"] = "aggregate"
    pipe_id: str
    size: str | None = None
    total_length: float | None = None

    @property
    def key(self) -> str:
        return self.pipe_id


Identity = Annotated[
    Union[DiscreteIdentity, InstrumentIdentity, AggregateIdentity],
    Field(discriminator="kind"),
]


class NormalizedRecord(BaseModel):
    """Validated, normalized content of one spreadsheet row."""

    drawing: str
    type: str  # Canonical component type, e.g. "Field_Weld"
    qty: int | float  # float only for Threaded_Pipe linear feet
    cmdty_code: str
    size: str
    spec: str | None = None
    description: str | None = None
    comments: str | None = None
    area: str | None = None
    system: str | None = None
    test_package: str | None = None
    unmapped_fields: dict[str, str] = Field(default_factory=dict)


class ValidationOutcome(BaseModel):
    """Classification of one row."""

    row_number: int = Field(ge=1)  # 1-indexed for user reference
    status: ValidationStatus
    category: ValidationCategory | None = None
    reason: str | None = None
    record: NormalizedRecord | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is ValidationStatus.VALID


class ValidationSummary(BaseModel):
    """Aggregated counts for a validated batch."""

    total_rows: int
    valid_count: int
    skipped_count: int
    error_count: int
    can_import: bool
    results_by_status: dict[ValidationStatus, list[ValidationOutcome]]
    results_by_category: dict[ValidationCategory, list[ValidationOutcome]]


class Component(BaseModel):
    """One persisted unit handed to the datastore."""

    identity_key: str
    identity: Identity
    component_type: str  # Lower-cased, as the datastore expects
    drawing_context_id: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    unmapped_fields: dict[str, str] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "identity_key": "P-001-2-V-100-001",
                "identity": {
                    "kind": "discrete",
                    "drawing": "P-001",
                    "size": "2",
                    "commodity": "V-100",
                    "seq": 1,
                },
                "component_type": "valve",
                "drawing_context_id": "P-001",
                "attributes": {
                    "spec": "A1",
                    "description": "Gate valve",
                    "size": "2",
                    "cmdty_code": "V-100",
                    "comments": "",
                    "original_qty": 1,
                },
            }
        }


class ComponentAllocation(BaseModel):
    """Share of a labor-hour budget assigned to one component."""

    identity_key: str
    component_type: str
    weight: float
    basis: WeightBasis
    budgeted_manhours: float


class BudgetAllocation(BaseModel):
    """Result of distributing a labor-hour budget by weight."""

    total_manhours: float
    total_weight: float
    allocations: list[ComponentAllocation] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ImportMetadata(BaseModel):
    """Unique area/system/test package values referenced by a batch."""

    areas: list[str] = Field(default_factory=list)
    systems: list[str] = Field(default_factory=list)
    test_packages: list[str] = Field(default_factory=list)


class ImportPreview(BaseModel):
    """Everything the presentation layer needs before committing an import."""

    mapping: MappingResult
    outcomes: list[ValidationOutcome] = Field(default_factory=list)
    summary: ValidationSummary | None = None
    metadata: ImportMetadata = Field(default_factory=ImportMetadata)
    components: list[Component] = Field(default_factory=list)

    @property
    def can_import(self) -> bool:
        return (
            self.mapping.has_all_required_fields
            and self.summary is not None
            and self.summary.can_import
        )
