import logging
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.services.background import BackgroundRunner

logger = logging.getLogger(__name__)

CREATE = "CREATE"
UPDATE = "UPDATE"
SOFT_DELETE = "SOFT_DELETE"
RESTORE = "RESTORE"


class AuditService:
    """Fire-and-forget writer of audit records.

    ``record`` only schedules the write; the caller's outcome never depends on
    whether the row lands.
    """

    def __init__(self, session_factory: Callable[[], Session], runner: BackgroundRunner) -> None:
        self.session_factory = session_factory
        self.runner = runner

    def record(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        performed_by: str | None,
        school_id: str | None,
        changes: dict[str, Any] | None = None,
    ) -> None:
        entry = {
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "performed_by": performed_by,
            "school_id": school_id,
            "changes": changes,
        }
        if self.runner.submit("audit", self._write, entry) is None:
            logger.error("Audit record dropped: %s %s %s", action, resource_type, resource_id)

    def _write(self, entry: dict[str, Any]) -> None:
        with self.session_factory() as db:
            db.add(AuditLog(**entry))
            db.commit()
