from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

TEXT_FIELDS = (
	"id",
	"area",
	"work_type",
	"description",
	"additional_comments",
	"technician_name",
	"shift",
	"created_at",
	"finished_at",
	"signature",
)


class SyncStatus(str, Enum):
	PENDING = "pending"
	SYNCED = "synced"


class RecordState(str, Enum):
	"""Where a job id stands on this device."""
	PENDING = "pending"
	SYNCED = "synced"
	TOMBSTONED = "tombstoned"


class JobDraft(BaseModel):
	"""What a technician fills in before signing."""
	model_config = ConfigDict(populate_by_name=True)

	area: str = ""
	work_type: str = Field(default="", alias="workType")
	description: str = ""
	additional_comments: str = Field(default="", alias="additionalComments")
	before_photo: Optional[str] = Field(default=None, alias="beforePhoto")
	after_photo: Optional[str] = Field(default=None, alias="afterPhoto")


class Job(BaseModel):
	"""A maintenance job in its wire shape (camelCase aliases)."""
	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	id: str = ""
	area: str = ""
	work_type: str = Field(default="", alias="workType")
	description: str = ""
	additional_comments: str = Field(default="", alias="additionalComments")
	technician_name: str = Field(default="", alias="technicianName")
	shift: str = ""
	created_at: str = Field(default="", alias="createdAt")
	finished_at: str = Field(default="", alias="finishedAt")
	signature: str = ""
	before_photo: Optional[str] = Field(default=None, alias="beforePhoto")
	after_photo: Optional[str] = Field(default=None, alias="afterPhoto")
	deleted: bool = False
	sync_status: Optional[SyncStatus] = Field(default=None, alias="syncStatus")

	@field_validator(*TEXT_FIELDS, mode="before")
	@classmethod
	def coerce_text(cls, v: Any) -> str:
		# Spreadsheet cells come back as numbers or null
		if v is None:
			return ""
		if isinstance(v, datetime):
			return v.isoformat()
		return v if isinstance(v, str) else str(v)

	@field_validator("before_photo", "after_photo", mode="before")
	@classmethod
	def blank_photo_is_none(cls, v: Any) -> Optional[str]:
		if v is None or (isinstance(v, str) and not v.strip()):
			return None
		return v

	@field_validator("deleted", mode="before")
	@classmethod
	def blank_deleted_is_false(cls, v: Any) -> Any:
		if v is None or (isinstance(v, str) and not v.strip()):
			return False
		return v.strip() if isinstance(v, str) else v

	def to_remote(self) -> Dict[str, Any]:
		"""Wire record for a remote store; `syncStatus` never leaves the device."""
		return self.model_dump(by_alias=True, exclude={"sync_status"})

	def content(self) -> Dict[str, Any]:
		return self.model_dump(exclude={"sync_status"})


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
	if not value or not isinstance(value, str):
		return None
	text = value.strip()
	if text.endswith("Z") or text.endswith("z"):
		text = text[:-1] + "+00:00"
	try:
		parsed = datetime.fromisoformat(text)
	except ValueError:
		return None
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed


def get_job_timestamp(job: Job) -> datetime:
	"""Effective ordering timestamp: finishedAt, else createdAt, else the epoch."""
	return parse_timestamp(job.finished_at) or parse_timestamp(job.created_at) or EPOCH


def sort_jobs(jobs: list[Job]) -> list[Job]:
	return sorted(jobs, key=get_job_timestamp, reverse=True)
