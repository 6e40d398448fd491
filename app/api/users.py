from fastapi import APIRouter, Depends, status

from app.api.deps import get_user_service, require_roles
from app.core.claims import Role
from app.schemas.common import Envelope
from app.schemas.users import UserCreateRequest, UserOut
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_roles(Role.SUPER_ADMIN))])


@router.post("", response_model=Envelope[UserOut], status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreateRequest, user_service: UserService = Depends(get_user_service)):
    return Envelope(data=user_service.create(payload))


@router.get("", response_model=Envelope[list[UserOut]])
def list_users(user_service: UserService = Depends(get_user_service)):
    return Envelope(data=user_service.list())
