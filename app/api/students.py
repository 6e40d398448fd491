from fastapi import APIRouter, Depends, Query, status

from app.api.deps import ALL_ADMINS, get_student_service, require_roles
from app.core.authorization import resolve_tenant
from app.core.claims import FullClaim
from app.schemas.common import DEFAULT_PAGE_SIZE, Envelope, Page
from app.schemas.students import StudentEnrollRequest, StudentOut
from app.services.students import StudentService

router = APIRouter(prefix="/students", tags=["students"])

any_admin = require_roles(*ALL_ADMINS)


@router.post("/enroll", response_model=Envelope[StudentOut], status_code=status.HTTP_201_CREATED)
def enroll_student(
    payload: StudentEnrollRequest,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    student_service: StudentService = Depends(get_student_service),
):
    tenant_id = resolve_tenant(claim, school_id, payload.school_id)
    return Envelope(data=student_service.enroll(payload, tenant_id, actor_id=claim.subject_id))


@router.get("", response_model=Envelope[Page[StudentOut]])
def list_students(
    school_id: str | None = Query(default=None),
    cursor: str | None = Query(default=None),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    include_deleted: bool = Query(default=False),
    claim: FullClaim = Depends(any_admin),
    student_service: StudentService = Depends(get_student_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    page = student_service.list(tenant_id, cursor, limit, include_deleted=include_deleted)
    return Envelope(data=page)


@router.get("/{student_id}", response_model=Envelope[StudentOut])
def get_student(
    student_id: str,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    student_service: StudentService = Depends(get_student_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    return Envelope(data=student_service.get(student_id, tenant_id))


@router.delete("/{student_id}", response_model=Envelope[StudentOut])
def remove_student(
    student_id: str,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    student_service: StudentService = Depends(get_student_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    return Envelope(data=student_service.remove(student_id, tenant_id, actor_id=claim.subject_id))


@router.post("/{student_id}/restore", response_model=Envelope[StudentOut])
def restore_student(
    student_id: str,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    student_service: StudentService = Depends(get_student_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    return Envelope(data=student_service.restore(student_id, tenant_id, actor_id=claim.subject_id))
