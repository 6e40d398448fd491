import logging
from enum import StrEnum

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AppError, CapacityExceeded, ClassroomNotFound, DuplicateEnrollment, NotFound
from app.db.soft_delete import find_deleted, restore, soft_delete
from app.models.classroom import Classroom
from app.models.student import Student
from app.schemas.common import Page
from app.schemas.students import StudentEnrollRequest, StudentOut
from app.services import audit as audit_actions
from app.services.audit import AuditService
from app.services.cache import EntityCache, classroom_key, classroom_list_key
from app.services.pagination import paginate

logger = logging.getLogger(__name__)

RESOURCE = "Student"


class EnrollmentState(StrEnum):
    REQUESTED = "requested"
    CAPACITY_RESERVED = "capacity_reserved"
    VALIDATED = "validated"
    COMMITTED = "committed"
    ABORTED = "aborted"


class StudentService:
    def __init__(self, db: Session, cache: EntityCache, audit: AuditService) -> None:
        self.db = db
        self.cache = cache
        self.audit = audit

    def enroll(self, payload: StudentEnrollRequest, school_id: str, actor_id: str) -> StudentOut:
        """Enroll a student, reserving a classroom seat in the same transaction.

        The seat is taken with a single conditional increment so concurrent
        enrollments into one classroom never exceed its capacity. Any failure
        after the increment rolls the whole transaction back, so
        ``student_count`` always matches the committed students.
        """
        email = payload.email.strip().lower()
        state = EnrollmentState.REQUESTED
        try:
            self._reserve_seat(payload.classroom_id, school_id)
            state = EnrollmentState.CAPACITY_RESERVED

            self._ensure_email_free(school_id, email)
            state = EnrollmentState.VALIDATED

            student = Student(
                first_name=payload.first_name,
                last_name=payload.last_name,
                email=email,
                school_id=school_id,
                classroom_id=payload.classroom_id,
            )
            self.db.add(student)
            self.db.flush()
            self.db.commit()
            state = EnrollmentState.COMMITTED
        except IntegrityError as exc:
            self.db.rollback()
            logger.info("Enrollment aborted in state %s: unique constraint", state)
            raise DuplicateEnrollment() from exc
        except AppError as exc:
            self.db.rollback()
            logger.info("Enrollment aborted in state %s: %s", state, exc.code)
            raise
        except Exception:
            self.db.rollback()
            raise

        self.cache.invalidate(classroom_key(payload.classroom_id), classroom_list_key(school_id))
        self.audit.record(audit_actions.CREATE, RESOURCE, student.id, actor_id, school_id)
        return StudentOut.model_validate(student)

    def list(
        self,
        school_id: str,
        cursor: str | None,
        limit: int | None,
        include_deleted: bool = False,
    ) -> Page[StudentOut]:
        stmt = (
            select(Student)
            .where(Student.school_id == school_id)
            .execution_options(include_deleted=include_deleted)
        )
        return paginate(self.db, stmt, Student.id, StudentOut, cursor, limit)

    def get(self, student_id: str, school_id: str) -> StudentOut:
        student = self.db.scalar(
            select(Student)
            .where(Student.id == student_id, Student.school_id == school_id)
            .execution_options(populate_existing=True)
        )
        if not student:
            raise NotFound("Student not found")
        return StudentOut.model_validate(student)

    def remove(self, student_id: str, school_id: str, actor_id: str) -> StudentOut:
        """Tombstone the student and release its seat atomically."""
        student = self.db.scalar(select(Student).where(Student.id == student_id, Student.school_id == school_id))
        if not student:
            raise NotFound("Student not found")
        classroom_id = student.classroom_id

        try:
            deleted = soft_delete(
                self.db,
                Student,
                Student.id == student_id,
                Student.school_id == school_id,
                actor_id=actor_id,
            )
            if not deleted:
                raise NotFound("Student not found")
            self.db.execute(
                update(Classroom)
                .where(Classroom.id == classroom_id, Classroom.student_count > 0)
                .values(student_count=Classroom.student_count - 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.cache.invalidate(classroom_key(classroom_id), classroom_list_key(school_id))
        self.audit.record(audit_actions.SOFT_DELETE, RESOURCE, student_id, actor_id, school_id)
        return StudentOut.model_validate(find_deleted(self.db, Student, Student.id == student_id))

    def restore(self, student_id: str, school_id: str, actor_id: str) -> StudentOut:
        """Bring a removed student back, taking a seat in its classroom again."""
        criteria = (Student.id == student_id, Student.school_id == school_id)
        student = find_deleted(self.db, Student, *criteria)
        if student is None:
            raise NotFound("Student not found")
        classroom_id = student.classroom_id
        email = student.email

        try:
            self._reserve_seat(classroom_id, school_id)
            self._ensure_email_free(school_id, email)
            if not restore(self.db, Student, *criteria):
                raise NotFound("Student not found")
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateEnrollment() from exc
        except Exception:
            self.db.rollback()
            raise

        self.cache.invalidate(classroom_key(classroom_id), classroom_list_key(school_id))
        self.audit.record(audit_actions.RESTORE, RESOURCE, student_id, actor_id, school_id)
        return self.get(student_id, school_id)

    def _reserve_seat(self, classroom_id: str, school_id: str) -> None:
        result = self.db.execute(
            update(Classroom)
            .where(
                Classroom.id == classroom_id,
                Classroom.school_id == school_id,
                Classroom.active(),
                Classroom.student_count < Classroom.capacity,
            )
            .values(student_count=Classroom.student_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return

        self.db.rollback()
        exists = self.db.scalar(
            select(Classroom.id).where(
                Classroom.id == classroom_id, Classroom.school_id == school_id, Classroom.active()
            )
        )
        if exists:
            raise CapacityExceeded()
        raise ClassroomNotFound()

    def _ensure_email_free(self, school_id: str, email: str) -> None:
        duplicate = self.db.scalar(
            select(Student.id).where(Student.school_id == school_id, Student.email == email, Student.active())
        )
        if duplicate:
            raise DuplicateEnrollment()
