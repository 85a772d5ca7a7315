"""
Data Contracts for the Seat Allocation Engine

Defines Pydantic models for the three allocation inputs (students, entrance
records, vacancy pools) and the allocation output. These contracts are the
boundary between the storage adapter and the pure allocation core.

Input fields are plain strings on purpose: pool matching is an exact,
case-sensitive comparison and the core does not normalise or re-validate
values that ingestion already checked.
"""

from typing import Dict, List, NamedTuple, Optional
from pydantic import BaseModel, ConfigDict, Field

from .constants import AllocationStatus


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class StudentRecord(BaseModel):
    """
    A student with ranked district preferences.
    `choices` holds choice 1..10 in order; gaps are None or "".
    """
    id: str
    app_no: Optional[str] = None
    merit_number: int
    stream: str
    choices: List[Optional[str]] = Field(default_factory=list)

    @property
    def first_choice(self) -> Optional[str]:
        return self.choices[0] if self.choices else None


class EntranceRecord(BaseModel):
    """Entrance exam result. Only gender and category feed allocation."""
    application_no: str
    gender: str
    category: str
    merit_no: Optional[int] = None
    roll_no: Optional[str] = None
    marks: Optional[int] = None
    stream: Optional[str] = None


class VacancyEntry(BaseModel):
    """One quota bucket of seats."""
    district: str
    stream: str
    gender: str
    category: str
    total_seats: Optional[int] = 0
    available_seats: Optional[int] = None


class PoolKey(NamedTuple):
    """Composite key of a quota bucket. Compared structurally, field by field."""
    district: str
    stream: str
    gender: str
    category: str


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class StudentAllocation(BaseModel):
    """The three output fields written back for one eligible student."""
    student_id: str
    merit_number: int
    allotted_district: Optional[str] = None
    allotted_stream: Optional[str] = None
    allocation_status: AllocationStatus
    choice_rank: Optional[int] = None  # 1-based position of the allotted choice

    model_config = ConfigDict(use_enum_values=True)


class AllocationResult(BaseModel):
    """
    Summary of one allocation run.
    Returned to the caller and stored as the audit log payload.
    """
    total_students: int = 0
    allotted_students: int = 0
    not_allotted_students: int = 0
    allocations_by_district: Dict[str, int] = Field(default_factory=dict)


class AllocationOutcome(BaseModel):
    """Everything the core produced for one run."""
    allocations: List[StudentAllocation] = Field(default_factory=list)
    result: AllocationResult = Field(default_factory=AllocationResult)


# =============================================================================
# INTERMEDIATE DATA STRUCTURES
# =============================================================================

class EligibleStudent(BaseModel):
    """
    A student paired with the entrance record that made them eligible.
    Used between eligibility filtering and the allocation loop.
    """
    student: StudentRecord
    entrance: EntranceRecord


class AllocationSnapshot(BaseModel):
    """The three input collections, read once up front for a run."""
    students: List[StudentRecord] = Field(default_factory=list)
    entrance_records: List[EntranceRecord] = Field(default_factory=list)
    vacancies: List[VacancyEntry] = Field(default_factory=list)
