"""Service dependency providers for FastAPI dependency injection."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from worklog.api.dependencies.database import get_db
from worklog.repositories.task import TaskRepository
from worklog.repositories.technician import TechnicianRepository
from worklog.services.auth_services import AuthService
from worklog.services.task_services import TaskService


def get_correlation_id(request: Request) -> Optional[str]:
	"""Extract or generate correlation ID for logging and tracing."""
	from worklog.core.observability import generate_correlation_id
	cid = getattr(request.state, "correlation_id", None)
	if not cid:
		cid = generate_correlation_id(request.headers.get("X-Correlation-ID"))
		setattr(request.state, "correlation_id", cid)
	return cid


# Repository Dependencies
def get_technician_repository(
    db: Session = Depends(get_db),
    correlation_id: Optional[str] = Depends(get_correlation_id)
) -> TechnicianRepository:
    """Provide TechnicianRepository instance."""
    return TechnicianRepository(db=db, correlation_id=correlation_id)


def get_task_repository(
    db: Session = Depends(get_db),
    correlation_id: Optional[str] = Depends(get_correlation_id)
) -> TaskRepository:
    """Provide TaskRepository instance."""
    return TaskRepository(db=db, correlation_id=correlation_id)


# Service Dependencies
def get_auth_service(
    technician_repo: TechnicianRepository = Depends(get_technician_repository),
    correlation_id: Optional[str] = Depends(get_correlation_id)
) -> AuthService:
    """Provide AuthService instance with technician repository and correlation ID.

    Args:
        technician_repo: Technician repository from dependency injection
        correlation_id: Optional correlation ID from request headers

    Returns:
        Configured AuthService instance
    """
    return AuthService(correlation_id=correlation_id, technician_repo=technician_repo)


def get_task_service(
    task_repo: TaskRepository = Depends(get_task_repository),
    correlation_id: Optional[str] = Depends(get_correlation_id)
) -> TaskService:
    """Provide TaskService instance with required repository."""
    return TaskService(task_repo=task_repo, correlation_id=correlation_id)
