"""Bearer token dependencies for the task endpoints."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from worklog.api.dependencies.services import get_auth_service, get_correlation_id
from worklog.schemas.technician import Principal
from worklog.services.auth_services import AuthService

# auto_error off so a missing header goes through our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
	auth_service: AuthService = Depends(get_auth_service),
) -> Principal:
	token = credentials.credentials if credentials else None
	return auth_service.authenticate_token(token)


def require_admin(
	principal: Principal = Depends(get_current_principal),
	correlation_id: Optional[str] = Depends(get_correlation_id),
) -> Principal:
	AuthService.require_admin(principal, "perform this action", correlation_id=correlation_id)
	return principal
