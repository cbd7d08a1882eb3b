from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from worklog.schemas.job import Job


class TaskPayload(BaseModel):
	"""Body of `PUT /tasks/{id}`; values are normalized by the service, not here."""
	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	area: Any = None
	work_type: Any = Field(default=None, alias="workType")
	description: Any = None
	additional_comments: Any = Field(default=None, alias="additionalComments")
	created_at: Any = Field(default=None, alias="createdAt")
	finished_at: Any = Field(default=None, alias="finishedAt")
	signature: Any = None
	before_photo: Any = Field(default=None, alias="beforePhoto")
	after_photo: Any = Field(default=None, alias="afterPhoto")
	deleted: Any = False


class TaskDeleted(BaseModel):
	id: str
	deleted: bool = True


class HealthStatus(BaseModel):
	status: str
	now: Optional[datetime] = None


def _iso(value: Optional[datetime]) -> str:
	return value.isoformat() if value is not None else ""


def task_to_job(task: Any) -> Job:
	"""Map a backend row to the wire job shape."""
	return Job(
		id=task.id,
		area=task.area,
		work_type=task.work_type,
		description=task.description,
		additional_comments=task.additional_comments or "",
		technician_name=task.technician_name,
		shift=task.shift,
		created_at=_iso(task.created_at),
		finished_at=_iso(task.finished_at),
		signature=task.signature,
		before_photo=task.before_photo,
		after_photo=task.after_photo,
		deleted=bool(task.is_deleted),
	)
