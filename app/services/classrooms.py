from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ValidationFailed
from app.db.soft_delete import find_deleted, restore, soft_delete
from app.models.classroom import Classroom
from app.models.school import School
from app.schemas.classrooms import ClassroomCreateRequest, ClassroomList, ClassroomOut, ClassroomUpdateRequest
from app.services import audit as audit_actions
from app.services.audit import AuditService
from app.services.cache import EntityCache, classroom_key, classroom_list_key

RESOURCE = "Classroom"


class ClassroomService:
    def __init__(self, db: Session, cache: EntityCache, audit: AuditService) -> None:
        self.db = db
        self.cache = cache
        self.audit = audit

    def create(self, payload: ClassroomCreateRequest, school_id: str, actor_id: str) -> ClassroomOut:
        if payload.capacity < 1:
            raise ValidationFailed("capacity must be a positive integer")
        school = self.db.scalar(select(School.id).where(School.id == school_id, School.active()))
        if not school:
            raise NotFound("School not found")

        classroom = Classroom(name=payload.name, school_id=school_id, capacity=payload.capacity, student_count=0)
        self.db.add(classroom)
        self.db.commit()

        result = ClassroomOut.model_validate(classroom)
        self.cache.invalidate(classroom_list_key(school_id))
        self.audit.record(audit_actions.CREATE, RESOURCE, classroom.id, actor_id, school_id)
        return result

    def list(self, school_id: str, include_deleted: bool = False) -> list[ClassroomOut]:
        if include_deleted:
            # recovery listing, tombstones are never cached
            return self._load_all(school_id, include_deleted=True)
        return self.cache.read_list(
            classroom_list_key(school_id), ClassroomList, lambda: self._load_all(school_id)
        )

    def get(self, classroom_id: str, school_id: str) -> ClassroomOut:
        result = self.cache.read_model(
            classroom_key(classroom_id),
            ClassroomOut,
            lambda: ClassroomOut.model_validate(self._load(classroom_id, school_id)),
        )
        # the point entry is shared by all tenants
        if result.school_id != school_id:
            raise NotFound("Classroom not found")
        return result

    def update(
        self, classroom_id: str, school_id: str, payload: ClassroomUpdateRequest, actor_id: str
    ) -> ClassroomOut:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"school_id"})
        if not changes:
            raise ValidationFailed("At least one field is required")
        if "capacity" in changes and changes["capacity"] < 1:
            raise ValidationFailed("capacity must be a positive integer")

        before = ClassroomOut.model_validate(self._load(classroom_id, school_id))

        stmt = update(Classroom).where(
            Classroom.id == classroom_id,
            Classroom.school_id == school_id,
            Classroom.active(),
        )
        if "capacity" in changes:
            # shrinking below current enrollment would break student_count <= capacity
            stmt = stmt.where(Classroom.student_count <= changes["capacity"])
        result = self.db.execute(stmt.values(**changes).execution_options(synchronize_session=False))
        if result.rowcount != 1:
            self.db.rollback()
            exists = self.db.scalar(
                select(Classroom.id).where(
                    Classroom.id == classroom_id, Classroom.school_id == school_id, Classroom.active()
                )
            )
            if exists:
                raise Conflict("Capacity is below the current number of students", code="CAPACITY_BELOW_ENROLLMENT")
            raise NotFound("Classroom not found")
        self.db.commit()

        after = ClassroomOut.model_validate(self._load(classroom_id, school_id))
        self.cache.invalidate(classroom_key(classroom_id), classroom_list_key(school_id))
        self.audit.record(
            audit_actions.UPDATE,
            RESOURCE,
            classroom_id,
            actor_id,
            school_id,
            changes={"before": before.model_dump(mode="json"), "after": after.model_dump(mode="json")},
        )
        return after

    def delete(self, classroom_id: str, school_id: str, actor_id: str) -> None:
        deleted = soft_delete(
            self.db,
            Classroom,
            Classroom.id == classroom_id,
            Classroom.school_id == school_id,
            actor_id=actor_id,
        )
        if not deleted:
            self.db.rollback()
            raise NotFound("Classroom not found")
        self.db.commit()

        self.cache.invalidate(classroom_key(classroom_id), classroom_list_key(school_id))
        self.audit.record(audit_actions.SOFT_DELETE, RESOURCE, classroom_id, actor_id, school_id)

    def restore(self, classroom_id: str, school_id: str, actor_id: str) -> ClassroomOut:
        criteria = (Classroom.id == classroom_id, Classroom.school_id == school_id)
        if find_deleted(self.db, Classroom, *criteria) is None:
            raise NotFound("Classroom not found")
        if not restore(self.db, Classroom, *criteria):
            self.db.rollback()
            raise NotFound("Classroom not found")
        self.db.commit()

        self.cache.invalidate(classroom_key(classroom_id), classroom_list_key(school_id))
        self.audit.record(audit_actions.RESTORE, RESOURCE, classroom_id, actor_id, school_id)
        return ClassroomOut.model_validate(self._load(classroom_id, school_id))

    def _load(self, classroom_id: str, school_id: str) -> Classroom:
        classroom = self.db.scalar(
            select(Classroom)
            .where(Classroom.id == classroom_id, Classroom.school_id == school_id)
            .execution_options(populate_existing=True)
        )
        if not classroom:
            raise NotFound("Classroom not found")
        return classroom

    def _load_all(self, school_id: str, include_deleted: bool = False) -> list[ClassroomOut]:
        rows = self.db.scalars(
            select(Classroom)
            .where(Classroom.school_id == school_id)
            .order_by(Classroom.id.asc())
            .execution_options(include_deleted=include_deleted)
        ).all()
        return [ClassroomOut.model_validate(row) for row in rows]
