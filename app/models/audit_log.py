from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.common import CreatedAtMixin, UUIDPrimaryKeyMixin


class AuditLog(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_resource", "resource_type", "resource_id", "created_at"),
        Index("ix_audit_logs_school_created", "school_id", "created_at"),
        Index("ix_audit_logs_performed_by_created", "performed_by", "created_at"),
    )

    action: Mapped[str] = mapped_column(String(16), nullable=False)  # CREATE | UPDATE | SOFT_DELETE | RESTORE
    resource_type: Mapped[str] = mapped_column(String(16), nullable=False)  # School | Classroom | Student
    resource_id: Mapped[str] = mapped_column(String(36), nullable=False)
    performed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    school_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    changes: Mapped[dict | None] = mapped_column(JSON, nullable=True)
