"""
Result Aggregator

Tallies per-student allocations into the run summary.
"""

from typing import Dict, Iterable

from .constants import AllocationStatus
from .contracts import AllocationResult, StudentAllocation


def aggregate_results(allocations: Iterable[StudentAllocation]) -> AllocationResult:
    """
    Count processed/allotted/not-allotted students and build the
    district -> allotted count histogram.

    Args:
        allocations: One entry per processed student

    Returns:
        AllocationResult
    """
    total = 0
    allotted = 0
    not_allotted = 0
    by_district: Dict[str, int] = {}

    for allocation in allocations:
        total += 1
        if allocation.allocation_status == AllocationStatus.ALLOTTED:
            allotted += 1
            district = allocation.allotted_district
            by_district[district] = by_district.get(district, 0) + 1
        else:
            not_allotted += 1

    return AllocationResult(
        total_students=total,
        allotted_students=allotted,
        not_allotted_students=not_allotted,
        allocations_by_district=by_district,
    )
