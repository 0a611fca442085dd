from fastapi import APIRouter, Depends

from ....application.services.auth_service import AuthService
from ....core.dependencies import get_auth_service
from ..dependencies import require_admin
from ..errors import unwrap
from ..schemas.admin import AdminVerifyUserRequest
from ..schemas.auth import MessageResponse

router = APIRouter(prefix="/api/admin", tags=["Administration"], dependencies=[Depends(require_admin)])


@router.post("/users/verify", response_model=MessageResponse)
def admin_verify_user(
    payload: AdminVerifyUserRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = unwrap(auth_service.admin_verify_email(payload.email))
    return MessageResponse(message=message)
