from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.common import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Classroom(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "classrooms"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_classrooms_capacity_positive"),
        CheckConstraint("student_count >= 0", name="ck_classrooms_student_count_non_negative"),
        CheckConstraint("student_count <= capacity", name="ck_classrooms_student_count_within_capacity"),
        Index("ix_classrooms_school_id_id", "school_id", "id"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    school_id: Mapped[str] = mapped_column(String(36), ForeignKey("schools.id", ondelete="RESTRICT"), nullable=False, index=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    student_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    school = relationship("School", back_populates="classrooms")
    students = relationship("Student", back_populates="classroom")
