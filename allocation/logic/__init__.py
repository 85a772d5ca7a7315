"""
Allocation Logic Module

Provides the deterministic merit-order seat allocation engine.
"""

from .contracts import (
    StudentRecord,
    EntranceRecord,
    VacancyEntry,
    PoolKey,
    StudentAllocation,
    AllocationResult,
    AllocationOutcome,
    EligibleStudent,
)
from .engine import (
    AllocationEngine,
    AllocationCancelled,
    allocate,
    allocate_student,
    run_allocation_core,
)
from .constants import AllocationStatus, Stream, Gender, Category

__all__ = [
    # Main engine
    "AllocationEngine",
    "AllocationCancelled",
    "allocate",
    "allocate_student",
    "run_allocation_core",

    # Contracts
    "StudentRecord",
    "EntranceRecord",
    "VacancyEntry",
    "PoolKey",
    "StudentAllocation",
    "AllocationResult",
    "AllocationOutcome",
    "EligibleStudent",

    # Enums
    "AllocationStatus",
    "Stream",
    "Gender",
    "Category",
]
