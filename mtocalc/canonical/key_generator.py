"""Identity key generation for discrete take-off units.

Key construction:
- Instrument:   {drawing_norm}-{size_norm}-{commodity_code}
- All others:   {drawing_norm}-{size_norm}-{commodity_code}-{seq:03d}
- Threaded pipe aggregates: {drawing_norm}-{size_norm}-{commodity_code}-AGG

Instruments carry no sequence suffix, so two instrument rows sharing
drawing, size and commodity collide on the same key.
"""

from __future__ import annotations

from mtocalc.canonical.normalize import INSTRUMENT, normalize_size
from mtocalc.models import AggregateIdentity, DiscreteIdentity, InstrumentIdentity

MAX_SEQUENCE = 999


def build_identity(
    drawing_norm: str,
    size: str | None,
    commodity_code: str,
    index: int,
    component_type: str,
) -> DiscreteIdentity | InstrumentIdentity:
    """Build the identity variant for one unit.

    Args:
        drawing_norm: Normalized drawing number
        size: Raw or normalized size text (normalized here)
        commodity_code: Commodity code
        index: 1-based sequence within the drawing/size/commodity group
        component_type: Canonical component type

    Returns:
        InstrumentIdentity for instruments, DiscreteIdentity otherwise

    Raises:
        ValueError: If index is outside 1..999
    """
    if not 1 <= index <= MAX_SEQUENCE:
        raise ValueError(f"index must be between 1 and {MAX_SEQUENCE}, got {index}")

    size_norm = normalize_size(size)

    if component_type.lower() == INSTRUMENT.lower():
        return InstrumentIdentity(drawing=drawing_norm, size=size_norm, commodity=commodity_code)

    return DiscreteIdentity(
        drawing=drawing_norm, size=size_norm, commodity=commodity_code, seq=index
    )


def generate_identity_key(
    drawing_norm: str,
    size: str | None,
    commodity_code: str,
    index: int,
    qty: int | float,
    component_type: str,
) -> str:
    """Generate the canonical identity key string.

    ``qty`` is accepted for call-site symmetry and does not affect the key.
    """
    return build_identity(drawing_norm, size, commodity_code, index, component_type).key


def aggregate_identity(
    drawing_norm: str,
    size: str | None,
    commodity_code: str,
    total_length: float | None = None,
) -> AggregateIdentity:
    """Identity of a threaded-pipe aggregate."""
    size_norm = normalize_size(size)
    return AggregateIdentity(
        pipe_id=f"{drawing_norm}-{size_norm}-{commodity_code}-AGG",
        size=size_norm,
        total_length=total_length,
    )
