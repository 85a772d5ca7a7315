"""
Ranker

Imposes merit order on eligible students. Lower merit number is a better
rank and gets the first claim on scarce seats.
"""

from typing import List

from .contracts import EligibleStudent


def order_by_merit(eligible: List[EligibleStudent]) -> List[EligibleStudent]:
    """
    Sort eligible students by merit number (ascending).

    sorted() is stable, so students sharing a merit number keep their
    input order.
    """
    return sorted(eligible, key=lambda e: e.student.merit_number)
