"""Installation-effort weights for labor-hour distribution.

Weight formulas:
- Standard components: diameter^1.5
- Reducers ("2X4"): average diameter^1.5
- Pipe / threaded pipe with a length: diameter^1.5 x linear_feet x 0.1
- Aggregate threaded pipe: size and total_linear_feet read from attributes
- No parseable size: fixed fallback (1.0 threaded, 0.5 otherwise)

Weights are always positive; bad input degrades to a fallback with a
``reason`` in the metadata instead of raising.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from mtocalc.canonical.size_parser import parse_size
from mtocalc.config import WeightingConfig, get_config
from mtocalc.models import (
    AggregateIdentity,
    DiscreteIdentity,
    InstrumentIdentity,
    WeightBasis,
    WeightResult,
)

_MIXED_NUMBER = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")
_FRACTION_SPACING = re.compile(r"\s*/\s*")
_REDUCER_SPACING = re.compile(r"\s*X\s*", re.IGNORECASE)

IdentityLike = DiscreteIdentity | InstrumentIdentity | AggregateIdentity | Mapping[str, Any]

_MISSING = object()


def _aggregate_fields(
    size: Any, length: Any, attributes: Mapping[str, Any] | None
) -> tuple[Any, Any]:
    """Aggregates keep size and length in the component attributes."""
    if attributes:
        size = attributes.get("size", size)
        length = attributes.get("total_linear_feet", length)
    return size, length


def _mapping_fields(identity: Mapping[str, Any]) -> tuple[Any, Any]:
    if "size" in identity:
        size = identity["size"]
    else:
        size = identity.get("SIZE", _MISSING)

    length = identity.get("linear_feet")
    if length is None:
        length = identity.get("LINEAR_FEET")
    return size, length


def _size_and_length(
    identity: IdentityLike, attributes: Mapping[str, Any] | None
) -> tuple[Any, Any]:
    """Resolve the raw size and length the weight model reads.

    Returns:
        (size, length); size is ``_MISSING`` when the identity has no size
        field at all, length is None when absent
    """
    if isinstance(identity, (DiscreteIdentity, InstrumentIdentity)):
        return identity.size, None

    if isinstance(identity, AggregateIdentity):
        size = identity.size if identity.size is not None else _MISSING
        return _aggregate_fields(size, identity.total_length, attributes)

    # Raw identity dicts as stored by the datastore
    if isinstance(identity, Mapping):
        size, length = _mapping_fields(identity)
        if "pipe_id" in identity:
            return _aggregate_fields(size, length, attributes)
        return size, length

    raise TypeError(f"Unsupported identity type: {type(identity).__name__}")


def _size_text(value: Any) -> str | None:
    """Scalar size value as text; None for non-scalars."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError:
            # Past the interpreter's int-to-str digit limit
            return None
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def _decimal_text(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


def _mixed_to_decimal(whole: str, numerator: str, denominator: str) -> str | None:
    """Mixed-number parts as decimal text; None when the numbers are unusable."""
    try:
        if int(denominator) == 0:
            return None
        return _decimal_text(int(whole) + int(numerator) / int(denominator))
    except (OverflowError, ValueError):
        return None


def preprocess_size(size: str) -> str | None:
    """Clean up a size cell before parsing.

    - strip inch marks: '2"' -> "2"
    - collapse fraction spacing: "1 / 2" -> "1/2"
    - mixed numbers become decimal text: "1 1/2" -> "1.5"
    - collapse reducer spacing: "2 x 4" -> "2X4"

    Returns:
        Cleaned text, or None for a reducer missing one side ("2X", "X4")
    """
    processed = size.strip().replace('"', "")
    processed = _FRACTION_SPACING.sub("/", processed)

    mixed = _MIXED_NUMBER.match(processed)
    if mixed:
        processed = _mixed_to_decimal(*mixed.groups()) or processed

    processed = _REDUCER_SPACING.sub("X", processed)

    if "X" in processed.upper():
        parts = re.split(r"X", processed, flags=re.IGNORECASE)
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            return None

    return processed


def _parse_length(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            length = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            length = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return length if math.isfinite(length) else None


def _usable_weight(weight: float) -> bool:
    """Finite and strictly positive; overflow and underflow both fail."""
    return math.isfinite(weight) and weight > 0


def uses_linear_feet(component_type: str) -> bool:
    """Pipe and anything threaded are billed by length."""
    upper = component_type.upper()
    return "THREADED" in upper or upper == "PIPE"


def fallback_weight(component_type: str, config: WeightingConfig | None = None) -> float:
    config = config or get_config().weighting
    if "THREADED" in component_type.upper():
        return config.threaded_fallback_weight
    return config.fallback_weight


def calculate_weight(
    identity: IdentityLike,
    component_type: str,
    attributes: Mapping[str, Any] | None = None,
    *,
    config: WeightingConfig | None = None,
) -> WeightResult:
    """Calculate the installation-effort weight of one component.

    Args:
        identity: Identity variant, or a raw identity mapping as stored by
            the datastore (``size``/``SIZE``, ``linear_feet``/``LINEAR_FEET``,
            ``pipe_id`` for aggregates)
        component_type: Component type in any case
        attributes: Component attributes; read only for aggregates
        config: Weight model (defaults to the application config)

    Returns:
        WeightResult with weight > 0, the basis used and explanatory metadata
    """
    config = config or get_config().weighting
    size_raw, length_raw = _size_and_length(identity, attributes)
    fallback = fallback_weight(component_type, config)

    def fixed(**metadata: Any) -> WeightResult:
        return WeightResult(weight=fallback, basis=WeightBasis.FIXED, metadata=metadata)

    if size_raw is _MISSING:
        return fixed(reason="no_size_field")
    if size_raw is None:
        return fixed(reason="null_size")

    size = _size_text(size_raw)
    if size is None:
        return fixed(reason="invalid_size_type", size=size_raw)
    if not size.strip():
        return fixed(reason="empty_size")

    preprocessed = preprocess_size(size)
    if preprocessed is None:
        return fixed(reason="unparseable_size", size=size)

    parsed = parse_size(preprocessed)
    if parsed.diameter is None or parsed.diameter <= 0:
        return fixed(reason="unparseable_size", size=size)

    diameter = parsed.diameter
    try:
        dimension_weight = diameter**config.diameter_exponent
    except OverflowError:
        dimension_weight = math.inf
    if not _usable_weight(dimension_weight):
        return fixed(reason="unparseable_size", size=size)

    if uses_linear_feet(component_type) and length_raw is not None:
        length = _parse_length(length_raw)
        if length is None or length < 0:
            return WeightResult(
                weight=dimension_weight,
                basis=WeightBasis.DIMENSION,
                metadata={
                    "reason": "invalid_linear_feet",
                    "linear_feet": length_raw,
                    "diameter": diameter,
                },
            )
        if length == 0:
            # A zero-length run would weigh nothing; keep the diameter weight
            return WeightResult(
                weight=dimension_weight,
                basis=WeightBasis.DIMENSION,
                metadata={"reason": "zero_linear_feet", "linear_feet": 0.0, "diameter": diameter},
            )

        linear_weight = dimension_weight * length * config.linear_feet_factor
        if not _usable_weight(linear_weight):
            return WeightResult(
                weight=dimension_weight,
                basis=WeightBasis.DIMENSION,
                metadata={
                    "reason": "linear_feet_out_of_range",
                    "linear_feet": length,
                    "diameter": diameter,
                },
            )

        return WeightResult(
            weight=linear_weight,
            basis=WeightBasis.LINEAR_FEET,
            metadata={"diameter": diameter, "linear_feet": length},
        )

    if parsed.is_reducer and parsed.second_diameter is not None:
        metadata = {
            "diameter1": diameter * 2 - parsed.second_diameter,
            "diameter2": parsed.second_diameter,
            "average_diameter": diameter,
        }
    else:
        metadata = {"diameter": diameter}

    return WeightResult(weight=dimension_weight, basis=WeightBasis.DIMENSION, metadata=metadata)
