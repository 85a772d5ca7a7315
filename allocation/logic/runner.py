"""
Allocation Runner

Orchestrates one allocation run against the database:
1. Takes the process-wide run lock
2. Checks the "allocation completed" guard
3. Reads students, entrance records and vacancies once
4. Runs the allocation engine
5. Writes every student outcome and the remaining pool capacity
6. Sets the guard and records the audit entry

All of steps 2-6 happen in one transaction. Any failure rolls everything
back and leaves the guard unset, so the run can be retried.

This is a pure orchestration layer - NO matching logic lives here.
"""

import logging
import threading
import time
from typing import Callable, ContextManager, Optional

from sqlalchemy.orm import Session

from utils.crud_settings import is_flag_set, set_setting

from .adapter import (
    begin_consistent_read,
    load_snapshot,
    write_remaining_seats,
    write_student_allocation,
)
from .audit import log_action
from .constants import (
    ALLOCATION_COMPLETED_DESCRIPTION,
    ALLOCATION_COMPLETED_KEY,
    AUDIT_ACTION_ALLOCATION_RUN,
)
from .contracts import AllocationResult
from .engine import AllocationEngine

logger = logging.getLogger(__name__)

_RUN_LOCK = threading.Lock()


class AllocationError(Exception):
    """Base class for run-level refusals."""


class AllocationAlreadyCompleted(AllocationError):
    def __init__(self):
        super().__init__("Allocation has already been completed")


class AllocationInProgress(AllocationError):
    def __init__(self):
        super().__init__("An allocation run is already in progress")


def is_allocation_completed(db: Session) -> bool:
    return is_flag_set(db, ALLOCATION_COMPLETED_KEY)


def run_allocation(
    db_session: ContextManager[Session],
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> AllocationResult:
    """
    Main entry point: run the allocation once and persist it.

    The lock is held until the transaction has committed, so a second
    trigger can never read the guard before the first run made it durable.

    Args:
        db_session: Transaction scope, e.g. db.get_db()
        user_id: Who triggered the run (for the audit log)
        ip_address: Request origin (for the audit log)
        user_agent: Request client (for the audit log)
        should_cancel: Optional check made between students

    Returns:
        AllocationResult

    Raises:
        AllocationInProgress: another run holds the lock
        AllocationAlreadyCompleted: the guard is already set
        AllocationCancelled: should_cancel stopped the run (nothing persisted)
    """
    if not _RUN_LOCK.acquire(blocking=False):
        raise AllocationInProgress()

    try:
        with db_session as db:
            begin_consistent_read(db)

            if is_allocation_completed(db):
                raise AllocationAlreadyCompleted()

            logger.info(f"🚀 Starting allocation run (triggered by {user_id or 'system'})")
            start_time = time.perf_counter()

            snapshot = load_snapshot(db)
            engine = AllocationEngine(snapshot.vacancies)
            outcome = engine.run(snapshot.students, snapshot.entrance_records, should_cancel)

            for allocation in outcome.allocations:
                write_student_allocation(db, allocation.student_id, allocation)

            consumed = engine.consumed_seats()
            updated = write_remaining_seats(db, engine.capacity, consumed.keys())
            logger.info(f"💺 Vacancy pools updated: {updated}")

            set_setting(
                db,
                ALLOCATION_COMPLETED_KEY,
                "true",
                ALLOCATION_COMPLETED_DESCRIPTION,
            )

            result = outcome.result
            log_action(
                db,
                user_id,
                AUDIT_ACTION_ALLOCATION_RUN,
                "allocation",
                "system",
                {"result": result.model_dump()},
                ip_address,
                user_agent,
            )

            processing_time = (time.perf_counter() - start_time) * 1000
            logger.info(f"✨ Allocation run complete ({processing_time:.2f}ms)")

        return result
    finally:
        _RUN_LOCK.release()
