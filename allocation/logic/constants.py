"""
Allocation Constants

Enumerations, district list, setting keys and audit action names used by the
seat allocation pipeline.
"""

from enum import Enum
from typing import List


# =============================================================================
# ENUMERATIONS
# =============================================================================

class Stream(str, Enum):
    """Academic track a student applies for."""
    MEDICAL = "Medical"
    COMMERCE = "Commerce"
    NON_MEDICAL = "NonMedical"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class Category(str, Enum):
    """Reservation category of a seat or a candidate."""
    OPEN = "Open"
    WHH = "WHH"
    DISABLED = "Disabled"
    PRIVATE = "Private"


class AllocationStatus(str, Enum):
    """Per-student outcome. Only ALLOTTED and NOT_ALLOTTED are terminal."""
    PENDING = "pending"
    ALLOTTED = "allotted"
    NOT_ALLOTTED = "not_allotted"


class UserRole(str, Enum):
    CENTRAL_ADMIN = "central_admin"
    DISTRICT_ADMIN = "district_admin"


# =============================================================================
# DISTRICTS
# =============================================================================

# Conventional district names. Vacancy districts are an open set, this list
# only seeds dropdowns and reports.
DISTRICTS: List[str] = [
    "Amritsar",
    "Barnala",
    "Bathinda",
    "Faridkot",
    "Fatehgarh Sahib",
    "Fazilka",
    "Ferozepur",
    "Gurdaspur",
    "Hoshiarpur",
    "Jalandhar",
    "Kapurthala",
    "Ludhiana",
    "Mansa",
    "Moga",
    "Muktsar",
    "Nawanshahr",
    "Pathankot",
    "Patiala",
    "Rupnagar",
    "SAS Nagar",
    "Sangrur",
    "Tarn Taran",
    "Talwara",
]

# =============================================================================
# ALGORITHM LIMITS
# =============================================================================

MAX_CHOICES = 10

# =============================================================================
# SETTINGS & AUDIT
# =============================================================================

ALLOCATION_COMPLETED_KEY = "allocation_completed"
ALLOCATION_COMPLETED_DESCRIPTION = "Indicates if the final allocation has been run"
ALLOCATION_DEADLINE_KEY = "allocation_deadline"

AUDIT_ACTION_ALLOCATION_RUN = "allocation_run"
AUDIT_ACTION_EXPORT_CSV = "export_csv"
AUDIT_ACTION_VACANCY_UPLOAD = "vacancies_upload"
AUDIT_ACTION_STUDENT_UPLOAD = "students_upload"
AUDIT_ACTION_ENTRANCE_UPLOAD = "entrance_results_upload"
AUDIT_ACTION_PREFERENCES_UPDATE = "student_preferences_update"
AUDIT_ACTION_SETTING_UPDATE = "setting_update"
AUDIT_ACTION_USER_CREATE = "user_create"
