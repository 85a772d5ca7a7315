"""
Storage Adapter

Reads the allocation inputs from the database as contracts and writes the
per-student outcome and remaining pool capacity back.

This is the only module in logic/ that queries the database.
"""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import EntranceResult, Student, Vacancy
from .constants import MAX_CHOICES
from .contracts import (
    AllocationSnapshot,
    EntranceRecord,
    PoolKey,
    StudentAllocation,
    StudentRecord,
    VacancyEntry,
)

logger = logging.getLogger(__name__)


def student_choices(row: Student) -> List[str]:
    return [getattr(row, f"choice{i}") for i in range(1, MAX_CHOICES + 1)]


def _student_to_record(row: Student) -> StudentRecord:
    return StudentRecord(
        id=row.id,
        app_no=row.app_no,
        merit_number=row.merit_number,
        stream=row.stream,
        choices=student_choices(row),
    )


def _entrance_to_record(row: EntranceResult) -> EntranceRecord:
    return EntranceRecord(
        application_no=row.application_no,
        gender=row.gender,
        category=row.category,
        merit_no=row.merit_no,
        roll_no=row.roll_no,
        marks=row.marks,
        stream=row.stream,
    )


def _vacancy_to_entry(row: Vacancy) -> VacancyEntry:
    return VacancyEntry(
        district=row.district,
        stream=row.stream,
        gender=row.gender,
        category=row.category,
        total_seats=row.total_seats,
        available_seats=row.available_seats,
    )


# =============================================================================
# READ SIDE
# =============================================================================

def list_all_students(db: Session) -> List[StudentRecord]:
    """Complete, unpaginated student list in merit order."""
    rows = db.execute(select(Student).order_by(Student.merit_number)).scalars().all()
    return [_student_to_record(r) for r in rows]


def list_all_entrance_records(db: Session) -> List[EntranceRecord]:
    rows = db.execute(select(EntranceResult)).scalars().all()
    return [_entrance_to_record(r) for r in rows]


def list_all_vacancies(db: Session) -> List[VacancyEntry]:
    rows = db.execute(select(Vacancy)).scalars().all()
    return [_vacancy_to_entry(r) for r in rows]


def begin_consistent_read(db: Session) -> None:
    """
    On PostgreSQL, switch the session's transaction to REPEATABLE READ so the
    guard check and the three input reads see one snapshot.

    Must be called before any other statement of the transaction.
    """
    if db.get_bind().dialect.name == "postgresql":
        db.connection(execution_options={"isolation_level": "REPEATABLE READ"})


def load_snapshot(db: Session) -> AllocationSnapshot:
    """Read all three inputs inside the caller's transaction."""
    snapshot = AllocationSnapshot(
        students=list_all_students(db),
        entrance_records=list_all_entrance_records(db),
        vacancies=list_all_vacancies(db),
    )
    logger.info(
        f"📦 Snapshot loaded: {len(snapshot.students)} students, "
        f"{len(snapshot.entrance_records)} entrance records, "
        f"{len(snapshot.vacancies)} vacancy pools"
    )
    return snapshot


# =============================================================================
# WRITE SIDE
# =============================================================================

def write_student_allocation(db: Session, student_id: str, allocation: StudentAllocation) -> None:
    """Write the three output fields of one student."""
    student = db.get(Student, student_id)
    if student is None:
        raise LookupError(f"Student {student_id} disappeared during allocation")

    student.allotted_district = allocation.allotted_district
    student.allotted_stream = allocation.allotted_stream
    student.allocation_status = allocation.allocation_status


def write_remaining_seats(db: Session, capacity: Dict[PoolKey, int], keys) -> int:
    """
    Persist available_seats for the given pools from the capacity table.

    Returns:
        Number of vacancy rows updated
    """
    wanted = set(keys)
    if not wanted:
        return 0

    updated = 0
    for row in db.execute(select(Vacancy)).scalars():
        key = PoolKey(row.district, row.stream, row.gender, row.category)
        if key in wanted:
            row.available_seats = capacity[key]
            updated += 1
    return updated
