"""Device-side job authoring: finalize signed drafts into the local store."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from worklog.core.config import settings
from worklog.schemas.job import Job, JobDraft, SyncStatus
from worklog.schemas.technician import SessionUser
from worklog.services.base import BaseService
from worklog.services.exceptions import ForbiddenError, JobNotFoundError, MissingFieldsError
from worklog.services.pdf_services import build_job_report_pdf


def utc_now_iso() -> str:
	return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JobService(BaseService):
	def __init__(self, correlation_id: Optional[str] = None, **repositories):
		super().__init__(correlation_id)
		if repositories:
			self._set_repositories(**repositories)
		self._require_repositories("local_store")

	def _require_admin(self, user: SessionUser, action: str) -> None:
		if not user.is_admin:
			raise ForbiddenError(action=action, role=user.role.value, correlation_id=self.correlation_id)

	def _get_or_raise(self, job_id: str) -> Job:
		job = self.local_store.get_job(job_id)
		if job is None:
			raise JobNotFoundError(job_id, correlation_id=self.correlation_id)
		return job

	def list_jobs(self) -> List[Job]:
		return self.local_store.list_jobs()

	def finalize_draft(
		self,
		draft: JobDraft,
		signature: str,
		user: SessionUser,
		db: Session,
		editing_job_id: Optional[str] = None,
	) -> Job:
		"""Turn a signed draft into a pending job.

		A new job gets a fresh id and `createdAt = finishedAt = now`, with the
		technician and shift taken from the session. Editing keeps the id,
		creation time and original technician, refreshes `finishedAt` and
		clears any deleted flag.
		"""
		signature = (signature or "").strip()
		missing = [
			wire for wire, value in (
				("area", draft.area),
				("workType", draft.work_type),
				("description", draft.description),
				("signature", signature),
			)
			if not (value or "").strip()
		]
		if missing:
			raise MissingFieldsError(missing, correlation_id=self.correlation_id)

		now = utc_now_iso()
		fields = {
			"area": draft.area.strip(),
			"work_type": draft.work_type.strip(),
			"description": draft.description.strip(),
			"additional_comments": (draft.additional_comments or "").strip(),
			"before_photo": draft.before_photo or None,
			"after_photo": draft.after_photo or None,
			"signature": signature,
			"finished_at": now,
			"deleted": False,
		}

		if editing_job_id:
			existing = self._get_or_raise(editing_job_id)
			job = existing.model_copy(update=fields)
		else:
			job = Job(
				id="",
				technician_name=user.name,
				shift=user.shift or settings.DEFAULT_SHIFT,
				created_at=now,
				**fields,
			)

		saved = self.run_in_transaction(db, lambda: self.local_store.save(job, sync_status=SyncStatus.PENDING))
		self.log_operation("finalize_draft", job_id=saved.id, edited=bool(editing_job_id), technician_id=user.id)
		return saved

	def delete_job(self, job_id: str, user: SessionUser, db: Session) -> None:
		"""Remove a job locally and queue its deletion for the next sync (admin only)."""
		self._require_admin(user, "delete tasks")
		self._get_or_raise(job_id)
		self.run_in_transaction(db, lambda: self.local_store.delete(job_id))
		self.log_operation("delete_job", job_id=job_id, technician_id=user.id)

	def export_pdf(self, job_id: str, user: SessionUser) -> bytes:
		self._require_admin(user, "export reports")
		job = self._get_or_raise(job_id)
		pdf = build_job_report_pdf(job)
		self.log_operation("export_pdf", job_id=job_id, size=len(pdf))
		return pdf
