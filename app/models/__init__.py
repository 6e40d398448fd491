from app.models.api_key import ApiKey
from app.models.audit_log import AuditLog
from app.models.classroom import Classroom
from app.models.school import School
from app.models.student import Student
from app.models.user import User

__all__ = [
    "User",
    "ApiKey",
    "School",
    "Classroom",
    "Student",
    "AuditLog",
]
