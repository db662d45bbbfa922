"""Layout planning: region boundaries of a volume before anything is written.

The writer consumes the immutable :class:`ArchivePlan` as the single source
of truth for where the catalog and data regions start. Expected data size is
estimated from ``ContentSource.size()``; the packer later records the sizes
actually read.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..logging import get_logger
from .catalog import iter_file_records
from .constants import CATALOG_ENTRY_SIZE, HEADER_SIZE
from .errors import io_error
from .models import CatalogRecord

__all__ = [
    "RegionPlan",
    "ArchivePlan",
    "compute_archive_plan",
    "to_plan_dict",
]


@dataclass(frozen=True, slots=True)
class RegionPlan:
    name: str
    offset: int
    size: int


@dataclass(frozen=True, slots=True)
class ArchivePlan:
    entry_count: int
    file_count: int
    directory_count: int
    header: RegionPlan
    catalog: RegionPlan
    data: RegionPlan
    # Sum of source sizes at planning time; None when not resolved.
    expected_data_size: Optional[int] = None

    @property
    def catalog_offset(self) -> int:
        return self.catalog.offset

    @property
    def data_offset(self) -> int:
        return self.data.offset

    @property
    def expected_file_size(self) -> Optional[int]:
        if self.expected_data_size is None:
            return None
        return self.data.offset + self.expected_data_size

    @property
    def regions(self) -> List[RegionPlan]:
        return [self.header, self.catalog, self.data]


def compute_archive_plan(
    records: List[CatalogRecord], resolve_sizes: bool = True
) -> ArchivePlan:
    file_records = list(iter_file_records(records))
    expected: Optional[int] = None
    if resolve_sizes:
        expected = 0
        for rec in file_records:
            try:
                expected += rec.source.size()  # type: ignore[union-attr]
            except OSError as exc:
                raise io_error(
                    f"Cannot stat '{rec.path}'",
                    exc,
                    path=rec.path,
                    source=rec.source.describe(),  # type: ignore[union-attr]
                ) from exc
    catalog_size = len(records) * CATALOG_ENTRY_SIZE
    data_offset = HEADER_SIZE + catalog_size
    plan = ArchivePlan(
        entry_count=len(records),
        file_count=len(file_records),
        directory_count=len(records) - len(file_records),
        header=RegionPlan("header", 0, HEADER_SIZE),
        catalog=RegionPlan("catalog", HEADER_SIZE, catalog_size),
        data=RegionPlan("data", data_offset, expected or 0),
        expected_data_size=expected,
    )
    get_logger().debug(
        "Planned layout: entries=%d catalog=%d@%d data@%d",
        plan.entry_count,
        catalog_size,
        HEADER_SIZE,
        data_offset,
    )
    return plan


def to_plan_dict(plan: ArchivePlan) -> Dict[str, Any]:
    return {
        "entry_count": plan.entry_count,
        "file_count": plan.file_count,
        "directory_count": plan.directory_count,
        "regions": [
            {"name": r.name, "offset": r.offset, "size": r.size}
            for r in plan.regions
        ],
        "expected_data_size": plan.expected_data_size,
        "expected_file_size": plan.expected_file_size,
    }
