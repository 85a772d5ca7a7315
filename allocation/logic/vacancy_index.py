"""
Vacancy Pool Index

Turns the flat list of vacancy rows into an exact-match capacity table
keyed by PoolKey(district, stream, gender, category).
"""

import logging
from typing import Dict, Iterable

from .contracts import PoolKey, VacancyEntry

logger = logging.getLogger(__name__)


def pool_key(vacancy: VacancyEntry) -> PoolKey:
    return PoolKey(vacancy.district, vacancy.stream, vacancy.gender, vacancy.category)


def build_vacancy_index(vacancies: Iterable[VacancyEntry]) -> Dict[PoolKey, int]:
    """
    Build the remaining-capacity table for one run.

    Keys are compared exactly (case-sensitive, no trimming). A missing or
    null available_seats counts as 0. If the same key appears twice the
    later row wins.

    Args:
        vacancies: The complete set of vacancy rows

    Returns:
        Mutable dict of PoolKey -> remaining seats
    """
    capacity: Dict[PoolKey, int] = {}

    for vacancy in vacancies:
        key = pool_key(vacancy)
        if key in capacity:
            logger.warning(f"⚠️ Duplicate vacancy pool {key}, later row overrides earlier one")
        capacity[key] = vacancy.available_seats or 0

    logger.info(f"🏫 Vacancy pools indexed: {len(capacity)} ({sum(capacity.values())} seats)")
    return capacity
