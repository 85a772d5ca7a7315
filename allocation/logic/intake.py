"""
Data Intake

Validated upserts for the three allocation inputs. Row schemas reject
unknown streams, genders and categories and negative seat counts, so the
allocation core can trust what it reads.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import EntranceResult, Student, Vacancy
from .constants import Category, Gender, MAX_CHOICES, Stream
from .contracts import PoolKey

logger = logging.getLogger(__name__)


class IntakeConflict(ValueError):
    """A batch would give two applications the same unique value."""
    pass


# =============================================================================
# ROW SCHEMAS
# =============================================================================

class VacancyIn(BaseModel):
    district: str = Field(min_length=1)
    stream: Stream
    gender: Gender
    category: Category
    total_seats: int = Field(default=0, ge=0)
    available_seats: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(use_enum_values=True)

    @model_validator(mode="after")
    def default_available_to_total(self):
        if self.available_seats is None:
            self.available_seats = self.total_seats
        return self


class StudentIn(BaseModel):
    app_no: str = Field(min_length=1)
    merit_number: int = Field(ge=1)
    name: str
    gender: Gender
    category: Category
    stream: Stream
    choices: List[Optional[str]] = Field(default_factory=list, max_length=MAX_CHOICES)
    counseling_district: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)


class EntranceResultIn(BaseModel):
    application_no: str = Field(min_length=1)
    merit_no: int = Field(ge=1)
    roll_no: str
    student_name: str
    marks: int
    gender: Gender
    category: Category
    stream: Optional[Stream] = None

    model_config = ConfigDict(use_enum_values=True)


class PreferencesIn(BaseModel):
    choices: List[Optional[str]] = Field(default_factory=list, max_length=MAX_CHOICES)
    counseling_district: Optional[str] = None


def _check_unique(owners: Dict[str, object], field: str) -> None:
    """
    owners maps application number -> value after the batch is applied.
    Raises IntakeConflict if two applications end up sharing a value.
    """
    seen: Dict[object, str] = {}
    for app_no, value in owners.items():
        other = seen.get(value)
        if other is not None:
            raise IntakeConflict(f"Duplicate {field} {value} for applications {other} and {app_no}")
        seen[value] = app_no


def _set_choices(student: Student, choices: List[Optional[str]]) -> None:
    padded = list(choices) + [None] * (MAX_CHOICES - len(choices))
    for i, choice in enumerate(padded, start=1):
        setattr(student, f"choice{i}", choice or None)


# =============================================================================
# UPSERTS
# =============================================================================

def upsert_vacancies(db: Session, rows: List[VacancyIn]) -> int:
    """
    Insert or update vacancy pools keyed on (district, stream, gender,
    category). A key repeated in the same batch updates the same row, so a
    pool is never stored twice.
    """
    existing: Dict[PoolKey, Vacancy] = {
        PoolKey(v.district, v.stream, v.gender, v.category): v
        for v in db.execute(select(Vacancy)).scalars()
    }

    for row in rows:
        key = PoolKey(row.district, row.stream, row.gender, row.category)
        vacancy = existing.get(key)
        if vacancy is None:
            vacancy = Vacancy(
                district=row.district,
                stream=row.stream,
                gender=row.gender,
                category=row.category,
            )
            db.add(vacancy)
            existing[key] = vacancy
        else:
            logger.info(f"Updating vacancy pool {key}")
        vacancy.total_seats = row.total_seats
        vacancy.available_seats = row.available_seats

    return len(rows)


def upsert_students(db: Session, rows: List[StudentIn]) -> int:
    """
    Insert or update students keyed on application number.
    Raises IntakeConflict before touching any row if a merit number would
    be shared by two applications.
    """
    existing: Dict[str, Student] = {
        s.app_no: s for s in db.execute(select(Student)).scalars()
    }

    merits = {app_no: s.merit_number for app_no, s in existing.items()}
    merits.update({row.app_no: row.merit_number for row in rows})
    _check_unique(merits, "merit_number")

    for row in rows:
        student = existing.get(row.app_no)
        if student is None:
            student = Student(app_no=row.app_no, allocation_status="pending")
            db.add(student)
            existing[row.app_no] = student

        student.merit_number = row.merit_number
        student.name = row.name
        student.gender = row.gender
        student.category = row.category
        student.stream = row.stream
        student.counseling_district = row.counseling_district

        _set_choices(student, row.choices)

    return len(rows)


def upsert_entrance_results(db: Session, rows: List[EntranceResultIn]) -> int:
    """Insert or update entrance results keyed on application number."""
    existing: Dict[str, EntranceResult] = {
        r.application_no: r for r in db.execute(select(EntranceResult)).scalars()
    }

    merits = {app_no: r.merit_no for app_no, r in existing.items()}
    merits.update({row.application_no: row.merit_no for row in rows})
    _check_unique(merits, "merit_no")

    rolls = {app_no: r.roll_no for app_no, r in existing.items()}
    rolls.update({row.application_no: row.roll_no for row in rows})
    _check_unique(rolls, "roll_no")

    for row in rows:
        record = existing.get(row.application_no)
        if record is None:
            record = EntranceResult(application_no=row.application_no)
            db.add(record)
            existing[row.application_no] = record

        record.merit_no = row.merit_no
        record.roll_no = row.roll_no
        record.student_name = row.student_name
        record.marks = row.marks
        record.gender = row.gender
        record.category = row.category
        record.stream = row.stream

    return len(rows)


def update_student_preferences(db: Session, student_id: str, prefs: PreferencesIn) -> Optional[Student]:
    """Replace a student's choice list. Returns None if the student does not exist."""
    student = db.get(Student, student_id)
    if student is None:
        return None
    _set_choices(student, prefs.choices)
    if prefs.counseling_district is not None:
        student.counseling_district = prefs.counseling_district
    return student
