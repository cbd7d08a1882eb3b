from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from worklog.api.dependencies.database import get_db
from worklog.api.dependencies.services import get_correlation_id
from worklog.api.router import create_router
from worklog.schemas.common import DataResponse
from worklog.schemas.task import HealthStatus
from worklog.services.exceptions import DatabaseUnavailableError

router = create_router(name="health")


@router.get("", response_model=DataResponse[HealthStatus])
def health(
	db: Session = Depends(get_db),
	correlation_id: Optional[str] = Depends(get_correlation_id),
) -> DataResponse[HealthStatus]:
	"""Liveness plus a round trip to the database."""
	try:
		db.execute(text("SELECT 1"))
	except SQLAlchemyError as e:
		raise DatabaseUnavailableError(reason=str(e.__class__.__name__), correlation_id=correlation_id)
	return DataResponse(data=HealthStatus(status="ok", now=datetime.now(timezone.utc)))
