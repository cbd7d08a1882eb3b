"""Device-local job store backed by an embedded SQLite database.

Holds every visible job with its sync status, plus the blacklist of job ids
deleted on (or observed deleted by) this device. The blacklist is consulted on
every merge so a deleted job can never be reintroduced by a remote listing.
"""

import uuid
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from worklog.repositories.base import BaseRepository
from worklog.db.models.local_job import LocalJob, DeletedJobId
from worklog.schemas.job import Job, RecordState, SyncStatus, sort_jobs


class LocalJobStore(BaseRepository[LocalJob]):
	"""Repository over `local_jobs` and `deleted_job_ids`."""

	def __init__(self, db: Session, correlation_id: Optional[str] = None):
		super().__init__(db, LocalJob, correlation_id)

	@staticmethod
	def _to_job(row: LocalJob) -> Job:
		job = Job.model_validate(row.payload)
		job.sync_status = SyncStatus(row.sync_status)
		return job

	# -- visible records -------------------------------------------------

	def list_jobs(self) -> List[Job]:
		"""All local records, most recent first by effective timestamp."""
		rows = self.db.query(self.model).order_by(self.model.created_at, self.model.id).all()
		return sort_jobs([self._to_job(row) for row in rows])

	def pending_jobs(self) -> List[Job]:
		return [job for job in self.list_jobs() if job.sync_status == SyncStatus.PENDING]

	def get_job(self, job_id: str) -> Optional[Job]:
		row = self.get_by_id(job_id)
		return self._to_job(row) if row else None

	def save(self, job: Job, sync_status: SyncStatus = SyncStatus.PENDING) -> Job:
		"""Insert or overwrite by id, assigning a fresh id when the job has none."""
		if not job.id:
			job = job.model_copy(update={"id": str(uuid.uuid4())})
		job = job.model_copy(update={"sync_status": sync_status})
		payload = job.to_remote()

		row = self.get_by_id(job.id)
		if row:
			self.update(row, {"payload": payload, "sync_status": sync_status.value})
		else:
			self.create({"id": job.id, "payload": payload, "sync_status": sync_status.value})
		return job

	def mark_synced(self, job_id: str) -> None:
		row = self.get_by_id(job_id)
		if row and row.sync_status != SyncStatus.SYNCED.value:
			self.update(row, {"sync_status": SyncStatus.SYNCED.value})

	def remove(self, job_id: str) -> bool:
		"""Physically drop a record without blacklisting it."""
		return super().delete(job_id, soft_delete=False)

	def delete(self, job_id: str) -> bool:
		"""Remove the record and blacklist its id until the deletion is pushed."""
		removed = self.remove(job_id)
		self.record_tombstone(job_id, propagated=False)
		return removed

	# -- tombstones ------------------------------------------------------

	def _tombstone(self, job_id: str) -> Optional[DeletedJobId]:
		return self.db.query(DeletedJobId).filter(DeletedJobId.job_id == job_id).first()

	def record_tombstone(self, job_id: str, propagated: bool) -> None:
		"""Blacklist an id; an already-propagated entry never goes back to unpropagated."""
		entry = self._tombstone(job_id)
		if entry is None:
			self.db.add(DeletedJobId(job_id=job_id, propagated=propagated))
		elif propagated and not entry.propagated:
			entry.propagated = True
		else:
			return
		self.db.flush()
		self._log_operation("record_tombstone", job_id=job_id, propagated=propagated)

	def deleted_ids(self) -> Set[str]:
		return {job_id for (job_id,) in self.db.query(DeletedJobId.job_id).all()}

	def pending_tombstones(self) -> List[str]:
		rows = self.db.query(DeletedJobId.job_id).filter(
			DeletedJobId.propagated == False  # noqa: E712
		).order_by(DeletedJobId.deleted_at, DeletedJobId.job_id).all()
		return [job_id for (job_id,) in rows]

	def mark_tombstone_propagated(self, job_id: str) -> None:
		self.record_tombstone(job_id, propagated=True)

	# -- state -----------------------------------------------------------

	def get_state(self, job_id: str) -> Optional[RecordState]:
		"""Tagged state of an id on this device, or None when unknown."""
		if self._tombstone(job_id) is not None:
			return RecordState.TOMBSTONED
		row = self.get_by_id(job_id)
		if row is None:
			return None
		return RecordState(row.sync_status)
