from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from worklog.db.base_class import LocalBase


class LocalJob(LocalBase):
	"""Device copy of a job: full wire record plus its local sync status."""

	__tablename__ = "local_jobs"

	id = Column(String, primary_key=True)
	payload = Column(JSON, nullable=False)
	sync_status = Column(String, nullable=False, index=True)  # pending, synced
	created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
	updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class DeletedJobId(LocalBase):
	"""Blacklist entry: a job id that must never come back from a remote listing."""

	__tablename__ = "deleted_job_ids"

	job_id = Column(String, primary_key=True)
	deleted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
	# False until the remote store has been told about the deletion
	propagated = Column(Boolean, default=False, nullable=False)
