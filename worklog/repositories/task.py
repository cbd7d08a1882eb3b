"""Task repository for backend job rows."""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from worklog.repositories.base import BaseRepository
from worklog.db.models.task import Task


class TaskRepository(BaseRepository[Task]):
	"""Repository for Task entity operations."""

	def __init__(self, db: Session, correlation_id: Optional[str] = None):
		super().__init__(db, Task, correlation_id)

	def list_tasks(self, include_deleted: bool = False) -> List[Task]:
		"""Tasks ordered by finish time, then creation time, newest first."""
		return self.get_multi(
			include_deleted=include_deleted,
			order_by=[self.model.finished_at.desc(), self.model.created_at.desc()],
		)

	def get_any(self, task_id: str) -> Optional[Task]:
		"""Get a task whether or not it is soft-deleted."""
		return self.get_by_id(task_id, include_deleted=True)

	def insert(self, task_id: str, fields: Dict[str, Any]) -> Task:
		return self.create(fields, id=task_id, is_deleted=False, deleted_at=None)
