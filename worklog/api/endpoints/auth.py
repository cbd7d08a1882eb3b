from fastapi import Depends

from worklog.api.dependencies.services import get_auth_service
from worklog.api.router import create_router
from worklog.schemas.common import DataResponse
from worklog.schemas.technician import AuthSession, LoginRequest
from worklog.services.auth_services import AuthService

router = create_router(name="auth")


@router.post("/login", response_model=DataResponse[AuthSession])
def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[AuthSession]:
    """Authenticate a technician and return the bearer token with the user."""
    return DataResponse(data=auth_service.login(login_data))
