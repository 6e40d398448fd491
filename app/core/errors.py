from fastapi import status


class AppError(Exception):
    """Base for errors that are rendered as ``{ok: false, code, message}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class CapacityExceeded(Conflict):
    code = "CAPACITY_EXCEEDED"

    def __init__(self, message: str = "Classroom is at full capacity") -> None:
        super().__init__(message)


class DuplicateEnrollment(Conflict):
    code = "DUPLICATE_ENROLLMENT"

    def __init__(self, message: str = "Student already enrolled in this school") -> None:
        super().__init__(message)


class ClassroomNotFound(NotFound):
    code = "CLASSROOM_NOT_FOUND"

    def __init__(self, message: str = "Classroom not found") -> None:
        super().__init__(message)
