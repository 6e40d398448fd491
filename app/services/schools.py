from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.claims import Role
from app.core.errors import NotFound, ValidationFailed
from app.db.soft_delete import find_deleted, restore, soft_delete
from app.models.school import School
from app.models.user import User
from app.schemas.common import Page
from app.schemas.schools import SchoolCreateRequest, SchoolOut, SchoolUpdateRequest
from app.services import audit as audit_actions
from app.services.audit import AuditService
from app.services.cache import EntityCache, school_key
from app.services.pagination import paginate

RESOURCE = "School"


class SchoolService:
    def __init__(self, db: Session, cache: EntityCache, audit: AuditService) -> None:
        self.db = db
        self.cache = cache
        self.audit = audit

    def create(self, payload: SchoolCreateRequest, actor_id: str) -> SchoolOut:
        admin = self.db.scalar(select(User).where(User.id == payload.admin_id))
        if not admin:
            raise NotFound("Admin user not found")

        school = School(name=payload.name, address=payload.address, admin_id=admin.id)
        self.db.add(school)
        self.db.flush()
        if admin.role == Role.SCHOOL_ADMIN and admin.school_id is None:
            admin.school_id = school.id
        self.db.commit()

        result = SchoolOut.model_validate(school)
        self.audit.record(audit_actions.CREATE, RESOURCE, school.id, actor_id, school.id)
        return result

    def get(self, school_id: str) -> SchoolOut:
        return self.cache.read_model(
            school_key(school_id), SchoolOut, lambda: SchoolOut.model_validate(self._load(school_id))
        )

    def list(self, cursor: str | None, limit: int | None, include_deleted: bool = False) -> Page[SchoolOut]:
        stmt = select(School).execution_options(include_deleted=include_deleted)
        return paginate(self.db, stmt, School.id, SchoolOut, cursor, limit)

    def update(self, school_id: str, payload: SchoolUpdateRequest, actor_id: str) -> SchoolOut:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationFailed("At least one field is required")

        school = self._load(school_id)
        before = SchoolOut.model_validate(school)
        for field, value in changes.items():
            setattr(school, field, value)
        self.db.commit()
        self.db.refresh(school)

        after = SchoolOut.model_validate(school)
        self.cache.invalidate(school_key(school_id))
        self.audit.record(
            audit_actions.UPDATE,
            RESOURCE,
            school_id,
            actor_id,
            school_id,
            changes={"before": before.model_dump(mode="json"), "after": after.model_dump(mode="json")},
        )
        return after

    def delete(self, school_id: str, actor_id: str) -> None:
        if not soft_delete(self.db, School, School.id == school_id, actor_id=actor_id):
            self.db.rollback()
            raise NotFound("School not found")
        self.db.commit()

        self.cache.invalidate(school_key(school_id))
        self.audit.record(audit_actions.SOFT_DELETE, RESOURCE, school_id, actor_id, school_id)

    def restore(self, school_id: str, actor_id: str) -> SchoolOut:
        if find_deleted(self.db, School, School.id == school_id) is None:
            raise NotFound("School not found")
        if not restore(self.db, School, School.id == school_id):
            self.db.rollback()
            raise NotFound("School not found")
        self.db.commit()

        self.cache.invalidate(school_key(school_id))
        self.audit.record(audit_actions.RESTORE, RESOURCE, school_id, actor_id, school_id)
        return SchoolOut.model_validate(self._load(school_id))

    def _load(self, school_id: str) -> School:
        school = self.db.scalar(
            select(School).where(School.id == school_id).execution_options(populate_existing=True)
        )
        if not school:
            raise NotFound("School not found")
        return school
