"""
Tests for the pure allocation core: pool index, eligibility, merit order
and the allocation loop. No database involved.
"""

import pytest

from allocation.logic import (
    AllocationCancelled,
    AllocationEngine,
    AllocationStatus,
    EntranceRecord,
    PoolKey,
    StudentRecord,
    VacancyEntry,
    allocate,
    run_allocation_core,
)
from allocation.logic.eligibility import filter_eligible
from allocation.logic.ranker import order_by_merit
from allocation.logic.vacancy_index import build_vacancy_index


def student(merit, *choices, stream="Medical", app_no=None, sid=None):
    return StudentRecord(
        id=sid or f"s{merit}",
        app_no=app_no if app_no is not None else f"APP{merit}",
        merit_number=merit,
        stream=stream,
        choices=list(choices),
    )


def entrance(app_no, gender="Male", category="Open", stream=None):
    return EntranceRecord(application_no=app_no, gender=gender, category=category, stream=stream)


def vacancy(district, seats, stream="Medical", gender="Male", category="Open"):
    return VacancyEntry(
        district=district,
        stream=stream,
        gender=gender,
        category=category,
        total_seats=seats,
        available_seats=seats,
    )


def by_id(outcome):
    return {a.student_id: a for a in outcome.allocations}


# =============================================================================
# VACANCY POOL INDEX
# =============================================================================

def test_index_keys_on_all_four_fields():
    capacity = build_vacancy_index([
        vacancy("Mohali", 2),
        vacancy("Mohali", 1, gender="Female"),
    ])
    assert capacity[PoolKey("Mohali", "Medical", "Male", "Open")] == 2
    assert capacity[PoolKey("Mohali", "Medical", "Female", "Open")] == 1


def test_index_defaults_missing_available_seats_to_zero():
    entry = VacancyEntry(district="Moga", stream="Commerce", gender="Male", category="Open")
    assert build_vacancy_index([entry]) == {PoolKey("Moga", "Commerce", "Male", "Open"): 0}


def test_index_duplicate_key_last_write_wins():
    capacity = build_vacancy_index([vacancy("Mohali", 5), vacancy("Mohali", 1)])
    assert capacity == {PoolKey("Mohali", "Medical", "Male", "Open"): 1}


def test_pool_key_does_not_collide_on_delimiters():
    a = PoolKey("A|Medical", "Male", "Open", "x")
    b = PoolKey("A", "Medical|Male", "Open", "x")
    assert a != b


# =============================================================================
# ELIGIBILITY & ORDERING
# =============================================================================

def test_empty_first_choice_is_excluded_even_with_second_choice():
    students = [student(1, "", "Mohali"), student(2, None, "Mohali")]
    records = [entrance("APP1"), entrance("APP2")]
    assert filter_eligible(students, records) == []


def test_missing_app_no_or_entrance_record_is_excluded():
    students = [student(1, "Mohali", app_no=""), student(2, "Mohali")]
    records = [entrance("")]
    assert filter_eligible(students, records) == []


def test_order_by_merit_ascending_and_stable():
    records = [entrance("A"), entrance("B"), entrance("C")]
    eligible = filter_eligible(
        [
            student(7, "Moga", app_no="A", sid="x"),
            student(3, "Moga", app_no="B", sid="y"),
            student(7, "Moga", app_no="C", sid="z"),
        ],
        records,
    )
    ordered = [e.student.id for e in order_by_merit(eligible)]
    assert ordered == ["y", "x", "z"]


# =============================================================================
# ALLOCATION LOOP
# =============================================================================

def test_two_seats_three_students():
    students = [student(m, "Mohali") for m in (1, 2, 3)]
    records = [entrance(f"APP{m}") for m in (1, 2, 3)]

    outcome = run_allocation_core(students, records, [vacancy("Mohali", 2)])
    allocations = by_id(outcome)

    assert allocations["s1"].allotted_district == "Mohali"
    assert allocations["s2"].allotted_district == "Mohali"
    assert allocations["s3"].allocation_status == AllocationStatus.NOT_ALLOTTED
    assert allocations["s3"].allotted_district is None
    assert allocations["s3"].allotted_stream is None
    assert outcome.result.total_students == 3
    assert outcome.result.allotted_students == 2
    assert outcome.result.not_allotted_students == 1
    assert outcome.result.allocations_by_district == {"Mohali": 2}


def test_falls_through_to_next_choice_with_seats():
    outcome = run_allocation_core(
        [student(1, "X", "Y")],
        [entrance("APP1")],
        [vacancy("X", 0), vacancy("Y", 1)],
    )
    allocation = outcome.allocations[0]
    assert allocation.allotted_district == "Y"
    assert allocation.allotted_stream == "Medical"
    assert allocation.choice_rank == 2


def test_gap_in_choices_does_not_stop_scan():
    outcome = run_allocation_core(
        [student(1, "X", "", None, "Z")],
        [entrance("APP1")],
        [vacancy("Z", 1)],
    )
    assert outcome.allocations[0].allotted_district == "Z"
    assert outcome.allocations[0].choice_rank == 4


def test_student_without_entrance_record_is_not_in_result():
    outcome = run_allocation_core(
        [student(1, "Mohali"), student(2, "Mohali")],
        [entrance("APP2")],
        [vacancy("Mohali", 5)],
    )
    assert [a.student_id for a in outcome.allocations] == ["s2"]
    assert outcome.result.total_students == 1
    assert outcome.result.not_allotted_students == 0


def test_merit_priority_regardless_of_input_order():
    students = [student(10, "D", sid="B"), student(5, "D", sid="A")]
    records = [entrance("APP10"), entrance("APP5")]

    outcome = run_allocation_core(students, records, [vacancy("D", 1)])
    allocations = by_id(outcome)

    assert allocations["A"].allocation_status == AllocationStatus.ALLOTTED
    assert allocations["B"].allocation_status == AllocationStatus.NOT_ALLOTTED
    assert [a.merit_number for a in outcome.allocations] == [5, 10]


def test_matches_declared_stream_not_entrance_stream():
    commerce_student = student(1, "Mohali", stream="Commerce")
    record = entrance("APP1", stream="Medical")

    outcome = run_allocation_core([commerce_student], [record], [vacancy("Mohali", 3, stream="Medical")])
    assert outcome.allocations[0].allocation_status == AllocationStatus.NOT_ALLOTTED

    outcome = run_allocation_core(
        [commerce_student],
        [record],
        [vacancy("Mohali", 3, stream="Medical"), vacancy("Mohali", 1, stream="Commerce")],
    )
    assert outcome.allocations[0].allotted_stream == "Commerce"


def test_gender_and_category_come_from_entrance_record():
    outcome = run_allocation_core(
        [student(1, "Patiala"), student(2, "Patiala")],
        [entrance("APP1", gender="Female", category="WHH"), entrance("APP2")],
        [vacancy("Patiala", 1, gender="Female", category="WHH")],
    )
    allocations = by_id(outcome)
    assert allocations["s1"].allotted_district == "Patiala"
    assert allocations["s2"].allocation_status == AllocationStatus.NOT_ALLOTTED


def test_district_match_is_case_sensitive():
    outcome = run_allocation_core([student(1, "mohali")], [entrance("APP1")], [vacancy("Mohali", 1)])
    assert outcome.allocations[0].allocation_status == AllocationStatus.NOT_ALLOTTED


def test_capacity_never_exceeded_and_decrements_by_one_per_commit():
    districts = ["Amritsar", "Moga", "Mansa"]
    students = []
    records = []
    for merit in range(1, 31):
        choices = districts[merit % 3:] + districts[:merit % 3]
        students.append(student(merit, *choices, stream=["Medical", "Commerce"][merit % 2]))
        records.append(entrance(f"APP{merit}", gender=["Male", "Female"][merit % 4 // 2]))
    vacancies = [
        vacancy(d, seats, stream=s, gender=g)
        for d, seats in zip(districts, (2, 3, 1))
        for s in ("Medical", "Commerce")
        for g in ("Male", "Female")
    ]

    engine = AllocationEngine(vacancies)
    outcome = engine.run(students, records)

    entrance_by_app = {r.application_no: r for r in records}
    stream_by_id = {s.id: s for s in students}
    taken = {}
    for a in outcome.allocations:
        if a.allocation_status == AllocationStatus.ALLOTTED:
            s = stream_by_id[a.student_id]
            e = entrance_by_app[s.app_no]
            key = PoolKey(a.allotted_district, s.stream, e.gender, e.category)
            taken[key] = taken.get(key, 0) + 1

    for key, count in taken.items():
        assert count <= engine.initial_capacity[key]
    assert taken == engine.consumed_seats()
    assert all(remaining >= 0 for remaining in engine.capacity.values())
    assert outcome.result.allotted_students == sum(taken.values())


def test_every_eligible_student_written_exactly_once():
    students = [student(m, "Moga", "Mansa") for m in range(1, 8)]
    records = [entrance(f"APP{m}") for m in range(1, 8)]
    outcome = run_allocation_core(students, records, [vacancy("Moga", 2), vacancy("Mansa", 2)])

    ids = [a.student_id for a in outcome.allocations]
    assert len(ids) == len(set(ids)) == 7
    assert outcome.result.allotted_students + outcome.result.not_allotted_students == 7
    assert outcome.result.allocations_by_district == {"Moga": 2, "Mansa": 2}


def test_identical_inputs_give_identical_outcomes():
    students = [student(m, "Moga", "Mansa", stream="Commerce") for m in (4, 2, 9, 1)]
    records = [entrance(f"APP{m}") for m in (4, 2, 9, 1)]
    vacancies = [vacancy("Moga", 1, stream="Commerce"), vacancy("Mansa", 2, stream="Commerce")]

    first = run_allocation_core(students, records, vacancies)
    second = run_allocation_core(list(reversed(students)), records, vacancies)
    assert first == second


def test_capacity_table_is_shared_across_calls():
    capacity = build_vacancy_index([vacancy("Mohali", 1)])
    allocate([student(1, "Mohali")], [entrance("APP1")], capacity)
    outcome = allocate([student(2, "Mohali")], [entrance("APP2")], capacity)
    assert outcome.allocations[0].allocation_status == AllocationStatus.NOT_ALLOTTED


def test_cancellation_checked_between_students():
    calls = []

    def cancel_after_first():
        calls.append(1)
        return len(calls) > 1

    capacity = build_vacancy_index([vacancy("Mohali", 5)])
    with pytest.raises(AllocationCancelled) as exc:
        allocate(
            [student(1, "Mohali"), student(2, "Mohali")],
            [entrance("APP1"), entrance("APP2")],
            capacity,
            should_cancel=cancel_after_first,
        )

    assert [a.student_id for a in exc.value.processed] == ["s1"]
    assert capacity[PoolKey("Mohali", "Medical", "Male", "Open")] == 4
