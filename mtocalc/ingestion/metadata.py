"""Collect the area/system/test package values a batch refers to."""

from __future__ import annotations

from collections.abc import Iterable

from mtocalc.models import ImportMetadata, NormalizedRecord


def extract_unique_metadata(records: Iterable[NormalizedRecord]) -> ImportMetadata:
    """Sorted unique non-empty metadata values across ``records``."""
    areas: set[str] = set()
    systems: set[str] = set()
    test_packages: set[str] = set()

    for record in records:
        if record.area and record.area.strip():
            areas.add(record.area.strip())
        if record.system and record.system.strip():
            systems.add(record.system.strip())
        if record.test_package and record.test_package.strip():
            test_packages.add(record.test_package.strip())

    return ImportMetadata(
        areas=sorted(areas),
        systems=sorted(systems),
        test_packages=sorted(test_packages),
    )
