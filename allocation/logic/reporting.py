"""
Reporting

CSV export of allocation results and the dashboard summary, both read from
the persisted student and vacancy tables.
"""

import csv
import io
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Student, Vacancy
from .adapter import student_choices
from .constants import AllocationStatus, MAX_CHOICES

CSV_HEADERS = (
    ["Merit Number", "Application Number", "Name", "Stream"]
    + [f"Choice {i}" for i in range(1, MAX_CHOICES + 1)]
    + ["Allotted District", "Allotted Stream", "Status"]
)


def export_results_csv(db: Session) -> str:
    """
    All students in merit order, one row each, every cell quoted.
    Students never touched by a run show as pending.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    students = db.execute(select(Student).order_by(Student.merit_number)).scalars()
    for s in students:
        writer.writerow(
            [s.merit_number, s.app_no or "", s.name, s.stream]
            + [c or "" for c in student_choices(s)]
            + [
                s.allotted_district or "",
                s.allotted_stream or "",
                s.allocation_status or AllocationStatus.PENDING.value,
            ]
        )

    return buffer.getvalue()


def build_summary(db: Session) -> Dict[str, Any]:
    """Status counts, seat totals and allotted-per-district histogram."""
    status_counts = {status.value: 0 for status in AllocationStatus}
    rows = db.execute(
        select(Student.allocation_status, func.count(Student.id))
        .group_by(Student.allocation_status)
    ).all()
    for status, count in rows:
        key = status or AllocationStatus.PENDING.value
        status_counts[key] = status_counts.get(key, 0) + count

    by_district = dict(
        db.execute(
            select(Student.allotted_district, func.count(Student.id))
            .where(Student.allocation_status == AllocationStatus.ALLOTTED.value)
            .group_by(Student.allotted_district)
            .order_by(Student.allotted_district)
        ).all()
    )

    total_seats, available_seats = db.execute(
        select(
            func.coalesce(func.sum(Vacancy.total_seats), 0),
            func.coalesce(func.sum(Vacancy.available_seats), 0),
        )
    ).one()

    return {
        "total_students": sum(status_counts.values()),
        "status_counts": status_counts,
        "total_seats": int(total_seats),
        "available_seats": int(available_seats),
        "allocations_by_district": by_district,
    }
