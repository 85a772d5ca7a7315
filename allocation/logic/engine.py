"""
Allocation Engine

Single-pass greedy seat matching. Students are processed strictly in merit
order; each one takes the first ranked district choice that still has a
seat in the pool matching their declared stream and their entrance gender
and category.

Pipeline flow:
1. Vacancy Pool Index - remaining capacity per PoolKey
2. Eligibility Filter - students with app no, choice 1 and an entrance record
3. Merit Ordering - ascending merit number
4. Allocation Loop - first feasible choice wins, pool decremented by one
5. Aggregation - totals and per-district histogram

The engine never touches the database. Callers hand in plain contracts and
write the outcome back themselves.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from .aggregator import aggregate_results
from .constants import AllocationStatus, MAX_CHOICES
from .contracts import (
    AllocationOutcome,
    EligibleStudent,
    EntranceRecord,
    PoolKey,
    StudentAllocation,
    StudentRecord,
    VacancyEntry,
)
from .eligibility import filter_eligible
from .ranker import order_by_merit
from .vacancy_index import build_vacancy_index

logger = logging.getLogger(__name__)


class AllocationCancelled(Exception):
    """Raised between two students when the caller asked the run to stop."""

    def __init__(self, processed: List[StudentAllocation]):
        super().__init__(f"Allocation cancelled after {len(processed)} students")
        self.processed = processed


def allocate_student(
    eligible: EligibleStudent,
    capacity: Dict[PoolKey, int]
) -> StudentAllocation:
    """
    Walk one student's choices and commit the first feasible seat.

    Empty choices are skipped without ending the scan. The matching pool
    uses the student's declared stream, not the stream on the entrance
    record.

    Args:
        eligible: Student with their entrance record
        capacity: Remaining seats per pool, decremented in place on commit

    Returns:
        StudentAllocation in a terminal state
    """
    student = eligible.student
    entrance = eligible.entrance

    for rank, choice in enumerate(student.choices[:MAX_CHOICES], start=1):
        if not choice:
            continue

        key = PoolKey(choice, student.stream, entrance.gender, entrance.category)
        if capacity.get(key, 0) > 0:
            capacity[key] -= 1
            logger.debug(f"Merit {student.merit_number} -> {choice} (choice {rank})")
            return StudentAllocation(
                student_id=student.id,
                merit_number=student.merit_number,
                allotted_district=choice,
                allotted_stream=student.stream,
                allocation_status=AllocationStatus.ALLOTTED,
                choice_rank=rank,
            )

    logger.debug(f"Merit {student.merit_number} -> not allotted")
    return StudentAllocation(
        student_id=student.id,
        merit_number=student.merit_number,
        allocation_status=AllocationStatus.NOT_ALLOTTED,
    )


def allocate(
    students: Iterable[StudentRecord],
    entrance_records: Iterable[EntranceRecord],
    capacity: Dict[PoolKey, int],
    should_cancel: Optional[Callable[[], bool]] = None
) -> AllocationOutcome:
    """
    Run the allocation loop against a capacity table owned by the caller.

    Args:
        students: All student records
        entrance_records: All entrance records
        capacity: Remaining seats per pool (mutated in place)
        should_cancel: Optional check made before each student

    Returns:
        AllocationOutcome with one allocation per eligible student

    Raises:
        AllocationCancelled: should_cancel returned True between students
    """
    ordered = order_by_merit(filter_eligible(students, entrance_records))
    logger.info(f"📈 Processing {len(ordered)} students in merit order")

    allocations: List[StudentAllocation] = []
    for eligible in ordered:
        if should_cancel is not None and should_cancel():
            logger.warning(f"⚠️ Allocation cancelled after {len(allocations)} students")
            raise AllocationCancelled(allocations)
        allocations.append(allocate_student(eligible, capacity))

    result = aggregate_results(allocations)
    logger.info(
        f"🏆 Allotted: {result.allotted_students}, "
        f"not allotted: {result.not_allotted_students}"
    )
    return AllocationOutcome(allocations=allocations, result=result)


class AllocationEngine:
    """
    Holds the capacity table for one run.

    Example:
        engine = AllocationEngine(vacancies)
        outcome = engine.run(students, entrance_records)
        engine.consumed_seats()  # {PoolKey: seats taken}
    """

    def __init__(self, vacancies: Iterable[VacancyEntry]):
        self.capacity = build_vacancy_index(vacancies)
        self.initial_capacity = dict(self.capacity)

    def run(
        self,
        students: Iterable[StudentRecord],
        entrance_records: Iterable[EntranceRecord],
        should_cancel: Optional[Callable[[], bool]] = None
    ) -> AllocationOutcome:
        return allocate(students, entrance_records, self.capacity, should_cancel)

    def consumed_seats(self) -> Dict[PoolKey, int]:
        """Seats taken per pool so far, only for pools that lost seats."""
        return {
            key: self.initial_capacity[key] - remaining
            for key, remaining in self.capacity.items()
            if remaining != self.initial_capacity[key]
        }


def run_allocation_core(
    students: Iterable[StudentRecord],
    entrance_records: Iterable[EntranceRecord],
    vacancies: Iterable[VacancyEntry]
) -> AllocationOutcome:
    """Convenience wrapper: fresh capacity table, one run."""
    return AllocationEngine(vacancies).run(students, entrance_records)
