from fastapi import APIRouter, Depends, Query, status

from app.api.deps import ALL_ADMINS, get_school_service, require_roles
from app.core.authorization import check_tenant
from app.core.claims import FullClaim, Role
from app.schemas.common import DEFAULT_PAGE_SIZE, Envelope, MessageResponse, Page
from app.schemas.schools import SchoolCreateRequest, SchoolOut, SchoolUpdateRequest
from app.services.schools import SchoolService

router = APIRouter(prefix="/schools", tags=["schools"])

super_admin_only = require_roles(Role.SUPER_ADMIN)


@router.post("", response_model=Envelope[SchoolOut], status_code=status.HTTP_201_CREATED)
def create_school(
    payload: SchoolCreateRequest,
    claim: FullClaim = Depends(super_admin_only),
    school_service: SchoolService = Depends(get_school_service),
):
    return Envelope(data=school_service.create(payload, actor_id=claim.subject_id))


@router.get("", response_model=Envelope[Page[SchoolOut]], dependencies=[Depends(super_admin_only)])
def list_schools(
    cursor: str | None = Query(default=None),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    include_deleted: bool = Query(default=False),
    school_service: SchoolService = Depends(get_school_service),
):
    return Envelope(data=school_service.list(cursor, limit, include_deleted=include_deleted))


@router.get("/{school_id}", response_model=Envelope[SchoolOut])
def get_school(
    school_id: str,
    claim: FullClaim = Depends(require_roles(*ALL_ADMINS)),
    school_service: SchoolService = Depends(get_school_service),
):
    check_tenant(claim, school_id)
    return Envelope(data=school_service.get(school_id))


@router.put("/{school_id}", response_model=Envelope[SchoolOut])
def update_school(
    school_id: str,
    payload: SchoolUpdateRequest,
    claim: FullClaim = Depends(super_admin_only),
    school_service: SchoolService = Depends(get_school_service),
):
    return Envelope(data=school_service.update(school_id, payload, actor_id=claim.subject_id))


@router.delete("/{school_id}", response_model=MessageResponse)
def delete_school(
    school_id: str,
    claim: FullClaim = Depends(super_admin_only),
    school_service: SchoolService = Depends(get_school_service),
):
    school_service.delete(school_id, actor_id=claim.subject_id)
    return MessageResponse(message="School deleted")


@router.post("/{school_id}/restore", response_model=Envelope[SchoolOut])
def restore_school(
    school_id: str,
    claim: FullClaim = Depends(super_admin_only),
    school_service: SchoolService = Depends(get_school_service),
):
    return Envelope(data=school_service.restore(school_id, actor_id=claim.subject_id))
