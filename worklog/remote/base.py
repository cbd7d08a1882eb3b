"""Contract shared by every remote job source.

The reconciliation engine only ever sees this protocol; which transport sits
behind it is decided once, at configuration time (see `factory`).
"""

import logging
from typing import Any, Iterable, List, Protocol

from pydantic import ValidationError as PydanticValidationError

from worklog.schemas.job import Job
from worklog.services.exceptions import ParseError

logger = logging.getLogger(__name__)


class RemoteJobSource(Protocol):
	def list_jobs(self) -> List[Job]:
		"""Every record the remote knows, tombstones included where supported."""
		...

	def upsert_job(self, job: Job) -> None:
		"""Send a full record; idempotent by id."""
		...

	def delete_job(self, job_id: str) -> None:
		"""Soft-delete a record remotely."""
		...


def parse_job_rows(rows: Iterable[Any], target: str) -> List[Job]:
	"""Validate remote rows into jobs.

	Rows without an id cannot be joined to anything and are skipped. Any other
	malformed row fails the whole listing so a partial read is never mistaken
	for remote deletions.
	"""
	jobs: List[Job] = []
	for index, row in enumerate(rows):
		if not isinstance(row, dict):
			raise ParseError(target, f"row {index} is not an object")
		# syncStatus is device-local and never read from a remote
		row = {key: value for key, value in row.items() if key not in ("syncStatus", "sync_status")}
		try:
			job = Job.model_validate(row)
		except PydanticValidationError as e:
			raise ParseError(target, f"row {index} is invalid ({e.error_count()} error(s))")
		if not job.id.strip():
			logger.warning("Skipping remote row without id", extra={"target": target, "row_index": index})
			continue
		jobs.append(job.model_copy(update={"id": job.id.strip(), "sync_status": None}))
	return jobs
