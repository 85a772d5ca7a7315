"""
Allocation API Routes

Exposes intake, preference edits, settings, the one-shot allocation run,
status, reporting, export and the audit log. Only central admins may
upload data, change settings or trigger a run.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from db import get_db_session
from models.schemas_user import UserOut
from utils.auth_deps import auth_user, central_admin, district_admin
from utils.crud_settings import deadline_passed, get_setting, list_settings, parse_deadline, set_setting

from .logic.audit import list_audit_logs, log_action
from .logic.constants import (
    ALLOCATION_COMPLETED_KEY,
    ALLOCATION_DEADLINE_KEY,
    AUDIT_ACTION_ENTRANCE_UPLOAD,
    AUDIT_ACTION_EXPORT_CSV,
    AUDIT_ACTION_PREFERENCES_UPDATE,
    AUDIT_ACTION_SETTING_UPDATE,
    AUDIT_ACTION_STUDENT_UPLOAD,
    AUDIT_ACTION_VACANCY_UPLOAD,
    DISTRICTS,
)
from .logic.intake import (
    EntranceResultIn,
    IntakeConflict,
    PreferencesIn,
    StudentIn,
    VacancyIn,
    update_student_preferences,
    upsert_entrance_results,
    upsert_students,
    upsert_vacancies,
)
from .logic.reporting import build_summary, export_results_csv
from .logic.runner import (
    AllocationAlreadyCompleted,
    AllocationInProgress,
    is_allocation_completed,
    run_allocation,
)
from .logic.adapter import student_choices
from .models import Student, Vacancy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["allocation"])


# =============================================================================
# REQUEST/RESPONSE SCHEMAS
# =============================================================================

class VacancyBulkRequest(BaseModel):
    vacancies: List[VacancyIn] = Field(..., min_length=1)


class StudentBulkRequest(BaseModel):
    students: List[StudentIn] = Field(..., min_length=1)


class EntranceResultBulkRequest(BaseModel):
    results: List[EntranceResultIn] = Field(..., min_length=1)


def _client_info(request: Request):
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


def _refuse_after_completion(db: Session) -> None:
    if is_allocation_completed(db):
        raise HTTPException(status_code=400, detail="Allocation has already been completed")


def _serialize_student(s: Student) -> dict:
    return {
        "id": s.id,
        "app_no": s.app_no,
        "merit_number": s.merit_number,
        "name": s.name,
        "gender": s.gender,
        "category": s.category,
        "stream": s.stream,
        "choices": student_choices(s),
        "allotted_district": s.allotted_district,
        "allotted_stream": s.allotted_stream,
        "allocation_status": s.allocation_status,
    }


def _serialize_vacancy(v: Vacancy) -> dict:
    return {
        "id": v.id,
        "district": v.district,
        "stream": v.stream,
        "gender": v.gender,
        "category": v.category,
        "total_seats": v.total_seats,
        "available_seats": v.available_seats,
    }


# =============================================================================
# INTAKE
# =============================================================================

@router.post("/vacancies/bulk", summary="Upsert vacancy pools")
def upload_vacancies(
    payload: VacancyBulkRequest,
    request: Request,
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    db: Session
    try:
        with db_session as db:
            _refuse_after_completion(db)
            count = upsert_vacancies(db, payload.vacancies)
            ip, agent = _client_info(request)
            log_action(db, current.id, AUDIT_ACTION_VACANCY_UPLOAD, "vacancies", None, {"rows": count}, ip, agent)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Vacancy upload error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload vacancies")
    return {"processed": count}


@router.post("/students/bulk", summary="Upsert students with preferences")
def upload_students(
    payload: StudentBulkRequest,
    request: Request,
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    db: Session
    try:
        with db_session as db:
            _refuse_after_completion(db)
            count = upsert_students(db, payload.students)
            ip, agent = _client_info(request)
            log_action(db, current.id, AUDIT_ACTION_STUDENT_UPLOAD, "students", None, {"rows": count}, ip, agent)
    except IntakeConflict as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Student upload error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload students")
    return {"processed": count}


@router.post("/entrance-results/bulk", summary="Upsert entrance exam results")
def upload_entrance_results(
    payload: EntranceResultBulkRequest,
    request: Request,
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    db: Session
    try:
        with db_session as db:
            count = upsert_entrance_results(db, payload.results)
            ip, agent = _client_info(request)
            log_action(db, current.id, AUDIT_ACTION_ENTRANCE_UPLOAD, "entrance_results", None, {"rows": count}, ip, agent)
    except IntakeConflict as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Entrance result upload error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload entrance results")
    return {"processed": count}


@router.get("/students", summary="List students in merit order")
def list_students(
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    status: Optional[str] = None,
    current: UserOut = Depends(auth_user),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        query = select(Student).order_by(Student.merit_number)
        if status:
            query = query.where(Student.allocation_status == status)
        rows = db.execute(query.limit(limit).offset(offset)).scalars().all()
        return [_serialize_student(s) for s in rows]


@router.get("/students/{merit_number}", summary="Look up a student by merit number")
def get_student(
    merit_number: int,
    current: UserOut = Depends(auth_user),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        student = db.execute(
            select(Student).where(Student.merit_number == merit_number)
        ).scalar_one_or_none()
        if student is None:
            raise HTTPException(status_code=404, detail="Student not found")
        return _serialize_student(student)


@router.put("/students/{student_id}/preferences", summary="Replace a student's district choices")
def update_preferences(
    student_id: str,
    payload: PreferencesIn,
    request: Request,
    current: UserOut = Depends(district_admin),
    db_session=Depends(get_db_session)
):
    """
    District and central admins may edit choices until the allocation
    deadline passes (403) or the allocation has run (400).
    """
    db: Session
    try:
        with db_session as db:
            _refuse_after_completion(db)
            if deadline_passed(db, ALLOCATION_DEADLINE_KEY):
                raise HTTPException(status_code=403, detail="Deadline has passed. Cannot modify preferences.")
            student = update_student_preferences(db, student_id, payload)
            if student is None:
                raise HTTPException(status_code=404, detail="Student not found")
            ip, agent = _client_info(request)
            log_action(
                db, current.id, AUDIT_ACTION_PREFERENCES_UPDATE, "students", student_id,
                {"preferences": payload.model_dump(), "user_district": current.district}, ip, agent,
            )
            db.flush()
            return _serialize_student(student)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Update student preferences error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update preferences")


@router.get("/vacancies", summary="List vacancy pools")
def list_vacancies(
    current: UserOut = Depends(auth_user),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        query = select(Vacancy).order_by(
            Vacancy.district, Vacancy.stream, Vacancy.gender, Vacancy.category
        )
        return [_serialize_vacancy(v) for v in db.execute(query).scalars().all()]


@router.get("/districts", summary="Known district names")
def list_districts(current: UserOut = Depends(auth_user)):
    return DISTRICTS


# =============================================================================
# ALLOCATION
# =============================================================================

@router.post("/allocation/run", summary="Run the one-shot seat allocation")
def run_allocation_route(
    request: Request,
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    """
    Allot seats to every eligible student in merit order.

    **Response:** totals and the allotted-per-district histogram.
    Refused with 400 once allocation has completed, 409 while a run is
    in progress.
    """
    ip, agent = _client_info(request)
    try:
        result = run_allocation(db_session, user_id=current.id, ip_address=ip, user_agent=agent)
    except AllocationAlreadyCompleted as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AllocationInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Run allocation error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to run allocation")

    return result.model_dump()


@router.get("/allocation/status", summary="Allocation guard and deadline")
def allocation_status(
    current: UserOut = Depends(auth_user),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        deadline = get_setting(db, ALLOCATION_DEADLINE_KEY)
        return {
            "completed": is_allocation_completed(db),
            "deadline": deadline.value if deadline else None,
        }


@router.get("/allocation/summary", summary="Allocation dashboard summary")
def allocation_summary(
    current: UserOut = Depends(auth_user),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        return build_summary(db)


# =============================================================================
# SETTINGS
# =============================================================================

class SettingRequest(BaseModel):
    key: str = Field(min_length=1)
    value: str
    description: Optional[str] = None


def _serialize_setting(s) -> dict:
    return {
        "id": s.id,
        "key": s.key,
        "value": s.value,
        "description": s.description,
        "updated_at": s.updated_at,
    }


@router.get("/settings", summary="List settings")
def get_settings(
    current: UserOut = Depends(auth_user),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        return [_serialize_setting(s) for s in list_settings(db)]


@router.post("/settings", summary="Create or update a setting")
def update_setting(
    payload: SettingRequest,
    request: Request,
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    """
    The completion flag belongs to the allocation run and cannot be written
    here. A deadline must be an ISO 8601 timestamp.
    """
    if payload.key == ALLOCATION_COMPLETED_KEY:
        raise HTTPException(status_code=400, detail="allocation_completed is set by the allocation run")
    if payload.key == ALLOCATION_DEADLINE_KEY:
        try:
            parse_deadline(payload.value)
        except ValueError:
            raise HTTPException(status_code=422, detail="allocation_deadline must be an ISO 8601 timestamp")

    db: Session
    try:
        with db_session as db:
            setting = set_setting(db, payload.key, payload.value, payload.description)
            ip, agent = _client_info(request)
            log_action(
                db, current.id, AUDIT_ACTION_SETTING_UPDATE, "settings", payload.key,
                {"key": payload.key, "value": payload.value}, ip, agent,
            )
            db.flush()
            return _serialize_setting(setting)
    except Exception as e:
        logger.error(f"Set setting error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update setting")


# =============================================================================
# EXPORT & AUDIT
# =============================================================================

@router.get("/export/csv", summary="Download allocation results as CSV")
def export_csv(
    request: Request,
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        csv_data = export_results_csv(db)
        ip, agent = _client_info(request)
        log_action(db, current.id, AUDIT_ACTION_EXPORT_CSV, "export", "results", {"format": "csv"}, ip, agent)

    return Response(
        content=csv_data,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=allocation_results.csv"},
    )


@router.get("/audit-logs", summary="List audit log entries")
def audit_logs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        return [
            {
                "id": entry.id,
                "user_id": entry.user_id,
                "action": entry.action,
                "resource": entry.resource,
                "resource_id": entry.resource_id,
                "details": entry.details,
                "ip_address": entry.ip_address,
                "timestamp": entry.timestamp,
            }
            for entry in list_audit_logs(db, limit, offset)
        ]
