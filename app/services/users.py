from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.claims import Role
from app.core.errors import Conflict, NotFound, ValidationFailed
from app.core.security import hash_password
from app.models.school import School
from app.models.user import User
from app.schemas.users import UserCreateRequest, UserOut


class UserService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, payload: UserCreateRequest) -> UserOut:
        existing = self.db.scalar(select(User.id).where(User.email == payload.email))
        if existing:
            raise Conflict("Email already in use", code="EMAIL_TAKEN")

        school_id = payload.school_id
        if payload.role == Role.SUPER_ADMIN and school_id:
            raise ValidationFailed("SUPER_ADMIN accounts are not bound to a school")
        if school_id and not self.db.scalar(select(School.id).where(School.id == school_id, School.active())):
            raise NotFound("School not found")

        user = User(
            email=payload.email,
            password_hash=hash_password(payload.password),
            role=payload.role.value,
            school_id=school_id,
        )
        self.db.add(user)
        self.db.commit()
        return UserOut.model_validate(user)

    def list(self) -> list[UserOut]:
        rows = self.db.scalars(select(User).order_by(User.created_at.asc(), User.id.asc())).all()
        return [UserOut.model_validate(row) for row in rows]
