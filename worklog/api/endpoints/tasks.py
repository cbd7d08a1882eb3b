from typing import Any, Dict, List

from fastapi import Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from worklog.api.dependencies.auth import get_current_principal, require_admin
from worklog.api.dependencies.database import get_db
from worklog.api.dependencies.services import get_task_service
from worklog.api.router import create_router
from worklog.schemas.common import DataResponse
from worklog.schemas.task import TaskDeleted, TaskPayload
from worklog.schemas.technician import Principal
from worklog.services.pdf_services import build_job_report_pdf, report_filename
from worklog.services.task_services import TaskService

router = create_router(name="tasks")


@router.get("", response_model=DataResponse[List[Dict[str, Any]]])
def list_tasks(
	include_deleted: bool = Query(False, alias="includeDeleted"),
	principal: Principal = Depends(get_current_principal),
	task_service: TaskService = Depends(get_task_service),
):
	jobs = task_service.list_tasks(include_deleted=include_deleted)
	return DataResponse(data=[job.to_remote() for job in jobs])


@router.put("/{task_id}", response_model=DataResponse[Dict[str, Any]])
def upsert_task(
	task_id: str,
	payload: TaskPayload,
	db: Session = Depends(get_db),
	principal: Principal = Depends(get_current_principal),
	task_service: TaskService = Depends(get_task_service),
):
	"""Create or update a task by id; `deleted: true` soft-deletes (admin only)."""
	job = task_service.upsert_task(task_id, payload, principal, db)
	return DataResponse(data=job.to_remote())


@router.delete("/{task_id}", response_model=DataResponse[TaskDeleted])
def delete_task(
	task_id: str,
	db: Session = Depends(get_db),
	principal: Principal = Depends(get_current_principal),
	task_service: TaskService = Depends(get_task_service),
):
	deleted_id = task_service.delete_task(task_id, principal, db)
	return DataResponse(data=TaskDeleted(id=deleted_id))


@router.get("/{task_id}/pdf", response_class=Response)
def export_task_pdf(
	task_id: str,
	principal: Principal = Depends(require_admin),
	task_service: TaskService = Depends(get_task_service),
):
	job = task_service.get_task(task_id)
	return Response(
		content=build_job_report_pdf(job),
		media_type="application/pdf",
		headers={"Content-Disposition": f'attachment; filename="{report_filename(job)}"'},
	)
