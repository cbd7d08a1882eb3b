"""Backend task service: the store of record behind the REST job source."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from worklog.core.config import settings
from worklog.db.models.task import Task
from worklog.repositories.task import TaskRepository
from worklog.schemas.job import Job, parse_timestamp
from worklog.schemas.task import TaskPayload, task_to_job
from worklog.schemas.technician import Principal
from worklog.services.auth_services import AuthService
from worklog.services.base import BaseService
from worklog.services.exceptions import MissingFieldsError, TaskNotFoundError, ValidationError


def normalize_text(value: Any, fallback: str = "") -> str:
	if not isinstance(value, str):
		return fallback
	return value.strip()


def normalize_optional_text(value: Any) -> Optional[str]:
	if not isinstance(value, str):
		return None
	trimmed = value.strip()
	return trimmed or None


def normalize_date(value: Any, fallback: Optional[datetime] = None) -> datetime:
	parsed = parse_timestamp(value) if isinstance(value, str) else None
	return parsed or fallback or datetime.now(timezone.utc)


def is_truthy(value: Any) -> bool:
	if isinstance(value, str):
		return value.strip().lower() in ("true", "1", "yes")
	return bool(value)


class TaskService(BaseService):
	def __init__(self, task_repo: TaskRepository, correlation_id: Optional[str] = None):
		super().__init__(correlation_id)
		self._set_repositories(task_repo=task_repo)

	def list_tasks(self, include_deleted: bool = False) -> List[Job]:
		tasks = self.task_repo.list_tasks(include_deleted=include_deleted)
		self.log_operation("list_tasks", count=len(tasks), include_deleted=include_deleted)
		return [task_to_job(t) for t in tasks]

	def get_task(self, task_id: str) -> Job:
		task = self.task_repo.get_by_id(normalize_text(task_id))
		if not task:
			raise TaskNotFoundError(task_id, correlation_id=self.correlation_id)
		return task_to_job(task)

	def upsert_task(self, task_id: str, payload: TaskPayload, principal: Principal, db: Session) -> Job:
		"""Insert or update a task by id.

		Deleting through an upsert is admin-only and requires an existing row.
		New rows take the technician from the token; updates keep the original
		technician and creation time.
		"""
		task_id = normalize_text(task_id)
		if not task_id:
			raise ValidationError(field="id", message="invalid task id", correlation_id=self.correlation_id)

		now = datetime.now(timezone.utc)
		fields = {
			"area": normalize_text(payload.area),
			"work_type": normalize_text(payload.work_type),
			"description": normalize_text(payload.description),
			"additional_comments": normalize_text(payload.additional_comments),
			"signature": normalize_text(payload.signature),
			"before_photo": normalize_optional_text(payload.before_photo),
			"after_photo": normalize_optional_text(payload.after_photo),
			"finished_at": normalize_date(payload.finished_at, now),
		}
		requested_delete = is_truthy(payload.deleted)

		missing = [
			wire for wire, attr in (("area", "area"), ("workType", "work_type"), ("description", "description"), ("signature", "signature"))
			if not fields[attr]
		]
		if missing:
			raise MissingFieldsError(missing, correlation_id=self.correlation_id)

		if requested_delete:
			AuthService.require_admin(principal, "delete tasks", correlation_id=self.correlation_id)

		def op() -> Task:
			existing = self.task_repo.get_any(task_id)
			if existing is None:
				if requested_delete:
					raise TaskNotFoundError(task_id, correlation_id=self.correlation_id)
				return self.task_repo.insert(task_id, {
					**fields,
					"technician_id": principal.sub,
					"technician_name": principal.name,
					"shift": principal.shift or settings.DEFAULT_SHIFT,
					"created_at": normalize_date(payload.created_at, now),
				})
			return self.task_repo.update(existing, {
				**fields,
				"is_deleted": requested_delete,
				"deleted_at": now if requested_delete else None,
			})

		task = self.run_in_transaction(db, op)
		self.log_operation("upsert_task", task_id=task_id, deleted=requested_delete, technician_id=principal.sub)
		return task_to_job(task)

	def delete_task(self, task_id: str, principal: Principal, db: Session) -> str:
		"""Soft-delete a task (admin only)."""
		AuthService.require_admin(principal, "delete tasks", correlation_id=self.correlation_id)
		task_id = normalize_text(task_id)
		if not task_id:
			raise ValidationError(field="id", message="invalid task id", correlation_id=self.correlation_id)

		def op() -> None:
			task = self.task_repo.get_any(task_id)
			if task is None:
				raise TaskNotFoundError(task_id, correlation_id=self.correlation_id)
			self.task_repo.update(task, {"is_deleted": True, "deleted_at": datetime.now(timezone.utc)})

		self.run_in_transaction(db, op)
		self.log_operation("delete_task", task_id=task_id, technician_id=principal.sub)
		return task_id
