"""
Audit Log

Records who did what. Entries are added to the caller's session so they
commit or roll back together with the action they describe.
"""

from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import AuditLog


def log_action(
    db: Session,
    user_id: Optional[str],
    action: str,
    resource: str,
    resource_id: Optional[str] = None,
    details: Optional[Any] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    return entry


def list_audit_logs(db: Session, limit: int = 50, offset: int = 0) -> List[AuditLog]:
    """Newest first."""
    query = (
        select(AuditLog)
        .order_by(AuditLog.timestamp.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.execute(query).scalars().all())
