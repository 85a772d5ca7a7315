# Export all allocation models for easy imports
from .base import Base
from .student import Student
from .entrance_result import EntranceResult
from .vacancy import Vacancy
from .setting import Setting
from .audit_log import AuditLog

__all__ = [
    "Base",
    "Student",
    "EntranceResult",
    "Vacancy",
    "Setting",
    "AuditLog",
]
