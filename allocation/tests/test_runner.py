"""
Tests for the persisted allocation run: guard, lock, write-back, audit.
Uses the in-memory SQLite database set up in conftest.py.
"""

import pytest
from sqlalchemy import select

from db import get_db
from allocation.models import AuditLog, Student, Vacancy
from allocation.logic import AllocationCancelled
from allocation.logic import runner
from allocation.logic.intake import (
    EntranceResultIn,
    StudentIn,
    VacancyIn,
    upsert_entrance_results,
    upsert_students,
    upsert_vacancies,
)
from allocation.logic.runner import (
    AllocationAlreadyCompleted,
    AllocationInProgress,
    is_allocation_completed,
    run_allocation,
)


def seed(students, entrance_app_nos, vacancies):
    with get_db() as db:
        upsert_students(db, [
            StudentIn(
                app_no=f"APP{merit}",
                merit_number=merit,
                name=f"Student {merit}",
                gender="Male",
                category="Open",
                stream=stream,
                choices=choices,
            )
            for merit, stream, choices in students
        ])
        upsert_entrance_results(db, [
            EntranceResultIn(
                application_no=app_no,
                merit_no=i,
                roll_no=f"R{i}",
                student_name=app_no,
                marks=100 - i,
                gender="Male",
                category="Open",
            )
            for i, app_no in enumerate(entrance_app_nos, start=1)
        ])
        upsert_vacancies(db, [
            VacancyIn(district=d, stream=s, gender="Male", category="Open", total_seats=n)
            for d, s, n in vacancies
        ])


def students_by_merit():
    with get_db() as db:
        rows = db.execute(select(Student).order_by(Student.merit_number)).scalars().all()
        return {
            s.merit_number: (s.allocation_status, s.allotted_district, s.allotted_stream)
            for s in rows
        }


def vacancy_seats():
    with get_db() as db:
        return {
            (v.district, v.stream): (v.total_seats, v.available_seats)
            for v in db.execute(select(Vacancy)).scalars()
        }


def test_run_persists_outcomes_and_decrements_pools():
    seed(
        students=[
            (1, "Medical", ["Mohali"]),
            (2, "Medical", ["Mohali"]),
            (3, "Medical", ["Mohali"]),
            (4, "Medical", ["Moga"]),
        ],
        entrance_app_nos=["APP1", "APP2", "APP3"],
        vacancies=[("Mohali", "Medical", 2), ("Moga", "Medical", 1)],
    )

    result = run_allocation(get_db(), user_id="u1")

    assert result.total_students == 3
    assert result.allotted_students == 2
    assert result.allocations_by_district == {"Mohali": 2}

    outcomes = students_by_merit()
    assert outcomes[1] == ("allotted", "Mohali", "Medical")
    assert outcomes[2] == ("allotted", "Mohali", "Medical")
    assert outcomes[3] == ("not_allotted", None, None)
    # no entrance record: left untouched
    assert outcomes[4] == ("pending", None, None)

    seats = vacancy_seats()
    assert seats[("Mohali", "Medical")] == (2, 0)
    assert seats[("Moga", "Medical")] == (1, 1)


def test_run_sets_guard_and_writes_audit_record():
    seed([(1, "Commerce", ["Moga"])], ["APP1"], [("Moga", "Commerce", 1)])

    result = run_allocation(get_db(), user_id="u1", ip_address="10.0.0.1", user_agent="pytest")

    with get_db() as db:
        assert is_allocation_completed(db)
        entry = db.execute(select(AuditLog)).scalar_one()
        assert entry.action == "allocation_run"
        assert entry.resource == "allocation"
        assert entry.user_id == "u1"
        assert entry.ip_address == "10.0.0.1"
        assert entry.details == {"result": result.model_dump()}


def test_second_run_is_refused():
    seed([(1, "Medical", ["Moga"])], ["APP1"], [("Moga", "Medical", 1)])
    run_allocation(get_db())

    with pytest.raises(AllocationAlreadyCompleted):
        run_allocation(get_db())

    assert students_by_merit()[1] == ("allotted", "Moga", "Medical")
    assert vacancy_seats()[("Moga", "Medical")] == (1, 0)


def test_cancelled_run_rolls_back_everything():
    seed(
        [(1, "Medical", ["Moga"]), (2, "Medical", ["Moga"])],
        ["APP1", "APP2"],
        [("Moga", "Medical", 2)],
    )
    calls = []

    def cancel_on_second():
        calls.append(1)
        return len(calls) == 2

    with pytest.raises(AllocationCancelled):
        run_allocation(get_db(), should_cancel=cancel_on_second)

    assert students_by_merit() == {
        1: ("pending", None, None),
        2: ("pending", None, None),
    }
    assert vacancy_seats()[("Moga", "Medical")] == (2, 2)
    with get_db() as db:
        assert not is_allocation_completed(db)

    # guard was not set, so a retry goes through
    assert run_allocation(get_db()).allotted_students == 2


def test_concurrent_trigger_is_rejected():
    seed([(1, "Medical", ["Moga"])], ["APP1"], [("Moga", "Medical", 1)])

    runner._RUN_LOCK.acquire()
    try:
        with pytest.raises(AllocationInProgress):
            run_allocation(get_db())
    finally:
        runner._RUN_LOCK.release()

    assert students_by_merit()[1] == ("pending", None, None)
