"""
Eligibility Filter

Selects the students that take part in an allocation run. A student is
eligible when they have an application number, a first choice, and an
entrance record with the same application number. Everyone else is left
untouched by the run.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .contracts import EligibleStudent, EntranceRecord, StudentRecord

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or value == ""


def index_entrance_records(records: Iterable[EntranceRecord]) -> Dict[str, EntranceRecord]:
    """Map application number -> entrance record."""
    return {record.application_no: record for record in records}


def check_eligibility(
    student: StudentRecord,
    entrance_by_app_no: Dict[str, EntranceRecord]
) -> Optional[EligibleStudent]:
    """
    Return the student paired with their entrance record, or None.

    Only choice 1 gates eligibility. Later choices are optional and are
    walked during allocation.
    """
    if _is_blank(student.app_no):
        return None
    if _is_blank(student.first_choice):
        return None

    entrance = entrance_by_app_no.get(student.app_no)
    if entrance is None:
        return None

    return EligibleStudent(student=student, entrance=entrance)


def filter_eligible(
    students: Iterable[StudentRecord],
    entrance_records: Iterable[EntranceRecord]
) -> List[EligibleStudent]:
    """
    Filter students down to allocation candidates, keeping input order.

    Args:
        students: All student records
        entrance_records: All entrance exam records

    Returns:
        List of EligibleStudent
    """
    entrance_by_app_no = index_entrance_records(entrance_records)

    eligible: List[EligibleStudent] = []
    skipped = 0
    for student in students:
        paired = check_eligibility(student, entrance_by_app_no)
        if paired is None:
            skipped += 1
            logger.debug(f"Skipping student {student.id} (merit {student.merit_number}): not eligible")
            continue
        eligible.append(paired)

    logger.info(f"✅ Eligible students: {len(eligible)} (excluded: {skipped})")
    return eligible
