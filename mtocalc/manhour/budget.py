"""Distribute a labor-hour budget across components in proportion to weight."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from mtocalc.config import WeightingConfig, get_config
from mtocalc.manhour.weights import calculate_weight
from mtocalc.models import (
    BudgetAllocation,
    Component,
    ComponentAllocation,
    WeightBasis,
)

logger = logging.getLogger(__name__)


def distribute_budget(
    components: Sequence[Component],
    total_manhours: float,
    *,
    config: WeightingConfig | None = None,
) -> BudgetAllocation:
    """Allocate ``total_manhours`` by each component's share of the total weight.

    Budgeted hours per component are ``weight / total_weight * total_manhours``
    rounded to ``config.allocation_precision`` decimal places. Components
    that fell back to a fixed weight are reported as warnings.

    Raises:
        ValueError: If the budget is not positive or there are no components
    """
    config = config or get_config().weighting

    if total_manhours <= 0:
        raise ValueError("Total budgeted manhours must be greater than 0")
    if not components:
        raise ValueError("Cannot distribute a budget over zero components")

    weighted = []
    warnings: list[str] = []
    for component in components:
        result = calculate_weight(
            component.identity,
            component.component_type,
            component.attributes,
            config=config,
        )
        weighted.append((component, result))
        if result.basis is WeightBasis.FIXED:
            warnings.append(
                f"{component.identity_key}: fixed weight {result.weight} "
                f"({result.metadata.get('reason', 'unknown')})"
            )

    total_weight = sum(result.weight for _, result in weighted)

    allocations = [
        ComponentAllocation(
            identity_key=component.identity_key,
            component_type=component.component_type,
            weight=result.weight,
            basis=result.basis,
            budgeted_manhours=round(
                result.weight / total_weight * total_manhours, config.allocation_precision
            ),
        )
        for component, result in weighted
    ]

    logger.info(
        "Distributed %s manhours over %d components (total weight %.4f, %d warnings)",
        total_manhours,
        len(allocations),
        total_weight,
        len(warnings),
    )

    return BudgetAllocation(
        total_manhours=total_manhours,
        total_weight=round(total_weight, config.allocation_precision),
        allocations=allocations,
        warnings=warnings,
    )
