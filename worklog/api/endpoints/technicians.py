from typing import List

from fastapi import Depends

from worklog.api.dependencies.services import get_auth_service
from worklog.api.router import create_router
from worklog.schemas.common import DataResponse
from worklog.schemas.technician import TechnicianPublic
from worklog.services.auth_services import AuthService

router = create_router(name="technicians")


@router.get("/technicians", response_model=DataResponse[List[TechnicianPublic]])
def list_technicians(
	auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[List[TechnicianPublic]]:
	"""Login roster: active technicians, admins first. No auth required."""
	return DataResponse(data=auth_service.list_technicians())
