"""Turn validated take-off rows into component records.

Discrete types are exploded into one component per unit of quantity.
Threaded pipe is tracked by length: rows sharing drawing, size and
commodity fold into a single aggregate whose ``total_linear_feet`` is
the sum of their quantities.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from mtocalc.canonical.key_generator import aggregate_identity, build_identity
from mtocalc.canonical.normalize import is_threaded_pipe
from mtocalc.models import Component, NormalizedRecord, ValidationOutcome


def _shared_attributes(record: NormalizedRecord) -> dict[str, Any]:
    return {
        "spec": record.spec or "",
        "description": record.description or "",
        "size": record.size,
        "cmdty_code": record.cmdty_code,
        "comments": record.comments or "",
        "original_qty": record.qty,
    }


def explode_quantity(record: NormalizedRecord, drawing_context_id: str) -> list[Component]:
    """Expand one valid record into ``qty`` components, sequenced 1..qty.

    Args:
        record: A record produced by the row validator
        drawing_context_id: Datastore identifier of the record's drawing

    Returns:
        Exactly ``record.qty`` components sharing the same attributes

    Raises:
        ValueError: If qty is not a positive whole number
    """
    qty = record.qty
    if isinstance(qty, float):
        if not qty.is_integer():
            raise ValueError(
                f"Cannot explode fractional quantity {qty} for {record.type}; "
                "aggregate linear-run rows instead"
            )
        qty = int(qty)
    if qty < 1:
        raise ValueError(f"Cannot explode non-positive quantity {qty}")

    attributes = _shared_attributes(record)
    component_type = record.type.lower()

    components = []
    for index in range(1, qty + 1):
        identity = build_identity(
            record.drawing, record.size, record.cmdty_code, index, record.type
        )
        components.append(
            Component(
                identity_key=identity.key,
                identity=identity,
                component_type=component_type,
                drawing_context_id=drawing_context_id,
                attributes=dict(attributes),
                unmapped_fields=dict(record.unmapped_fields),
            )
        )
    return components


def aggregate_threaded_pipe(
    outcomes: Iterable[ValidationOutcome],
    drawing_ids: Mapping[str, str] | None = None,
) -> list[Component]:
    """Fold valid Threaded_Pipe rows into one aggregate per pipe id.

    The first row of a group supplies the shared attributes; later rows
    add their quantity to ``total_linear_feet`` and their row number to
    ``line_numbers``.
    """
    drawing_ids = drawing_ids or {}
    aggregates: dict[str, Component] = {}

    for outcome in outcomes:
        record = outcome.record
        if not outcome.is_valid or record is None or not is_threaded_pipe(record.type):
            continue

        identity = aggregate_identity(record.drawing, record.size, record.cmdty_code)
        existing = aggregates.get(identity.pipe_id)

        if existing is None:
            attributes = _shared_attributes(record)
            attributes["total_linear_feet"] = record.qty
            attributes["line_numbers"] = [outcome.row_number]
            aggregates[identity.pipe_id] = Component(
                identity_key=identity.key,
                identity=identity,
                component_type=record.type.lower(),
                drawing_context_id=drawing_ids.get(record.drawing, record.drawing),
                attributes=attributes,
                unmapped_fields=dict(record.unmapped_fields),
            )
            continue

        existing.attributes["total_linear_feet"] += record.qty
        if outcome.row_number not in existing.attributes["line_numbers"]:
            existing.attributes["line_numbers"].append(outcome.row_number)

    return list(aggregates.values())


def build_components(
    outcomes: Iterable[ValidationOutcome],
    drawing_ids: Mapping[str, str] | None = None,
) -> list[Component]:
    """Build every component for a validated batch.

    Args:
        outcomes: Validation outcomes of the batch (non-valid ones are ignored)
        drawing_ids: Normalized drawing -> datastore id; the normalized
            drawing itself is used when a drawing is missing

    Returns:
        Exploded discrete components followed by threaded-pipe aggregates
    """
    drawing_ids = drawing_ids or {}
    outcomes = list(outcomes)
    components: list[Component] = []

    for outcome in outcomes:
        record = outcome.record
        if not outcome.is_valid or record is None or is_threaded_pipe(record.type):
            continue
        components.extend(
            explode_quantity(record, drawing_ids.get(record.drawing, record.drawing))
        )

    components.extend(aggregate_threaded_pipe(outcomes, drawing_ids))
    return components
