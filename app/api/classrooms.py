from fastapi import APIRouter, Depends, Query, status

from app.api.deps import ALL_ADMINS, get_classroom_service, require_roles
from app.core.authorization import resolve_tenant
from app.core.claims import FullClaim
from app.schemas.classrooms import ClassroomCreateRequest, ClassroomOut, ClassroomUpdateRequest
from app.schemas.common import Envelope, MessageResponse
from app.services.classrooms import ClassroomService

router = APIRouter(prefix="/classrooms", tags=["classrooms"])

any_admin = require_roles(*ALL_ADMINS)


@router.post("", response_model=Envelope[ClassroomOut], status_code=status.HTTP_201_CREATED)
def create_classroom(
    payload: ClassroomCreateRequest,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    classroom_service: ClassroomService = Depends(get_classroom_service),
):
    tenant_id = resolve_tenant(claim, school_id, payload.school_id)
    return Envelope(data=classroom_service.create(payload, tenant_id, actor_id=claim.subject_id))


@router.get("", response_model=Envelope[list[ClassroomOut]])
def list_classrooms(
    school_id: str | None = Query(default=None),
    include_deleted: bool = Query(default=False),
    claim: FullClaim = Depends(any_admin),
    classroom_service: ClassroomService = Depends(get_classroom_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    return Envelope(data=classroom_service.list(tenant_id, include_deleted=include_deleted))


@router.get("/{classroom_id}", response_model=Envelope[ClassroomOut])
def get_classroom(
    classroom_id: str,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    classroom_service: ClassroomService = Depends(get_classroom_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    return Envelope(data=classroom_service.get(classroom_id, tenant_id))


@router.put("/{classroom_id}", response_model=Envelope[ClassroomOut])
def update_classroom(
    classroom_id: str,
    payload: ClassroomUpdateRequest,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    classroom_service: ClassroomService = Depends(get_classroom_service),
):
    tenant_id = resolve_tenant(claim, school_id, payload.school_id)
    return Envelope(data=classroom_service.update(classroom_id, tenant_id, payload, actor_id=claim.subject_id))


@router.delete("/{classroom_id}", response_model=MessageResponse)
def delete_classroom(
    classroom_id: str,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    classroom_service: ClassroomService = Depends(get_classroom_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    classroom_service.delete(classroom_id, tenant_id, actor_id=claim.subject_id)
    return MessageResponse(message="Classroom deleted")


@router.post("/{classroom_id}/restore", response_model=Envelope[ClassroomOut])
def restore_classroom(
    classroom_id: str,
    school_id: str | None = Query(default=None),
    claim: FullClaim = Depends(any_admin),
    classroom_service: ClassroomService = Depends(get_classroom_service),
):
    tenant_id = resolve_tenant(claim, school_id)
    return Envelope(data=classroom_service.restore(classroom_id, tenant_id, actor_id=claim.subject_id))
