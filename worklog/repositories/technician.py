"""Technician repository for login and roster queries."""

from typing import List, Optional
from sqlalchemy import case
from sqlalchemy.orm import Session

from worklog.repositories.base import BaseRepository
from worklog.db.models.technician import Technician


class TechnicianRepository(BaseRepository[Technician]):
	"""Repository for Technician entity operations."""

	def __init__(self, db: Session, correlation_id: Optional[str] = None):
		super().__init__(db, Technician, correlation_id)

	def get_active(self, technician_id: str) -> Optional[Technician]:
		"""Get an active technician by id."""
		result = self.db.query(self.model).filter(
			self.model.id == technician_id,
			self.model.is_active == True,  # noqa: E712
			self.model.is_deleted == False  # noqa: E712
		).first()
		self._log_operation("get_active", technician_id=technician_id, found=result is not None)
		return result

	def list_active(self) -> List[Technician]:
		"""Active technicians, administrators first, then by name."""
		admin_first = case((self.model.role == "admin", 0), else_=1)
		return self.get_multi(filters={"is_active": True}, order_by=[admin_first, self.model.name.asc()])

	def upsert(self, technician_id: str, name: str, role: str, hashed_password: str) -> Technician:
		"""Insert or refresh a roster entry and reactivate it."""
		existing = self.get_by_id(technician_id, include_deleted=True)
		fields = {
			"name": name,
			"role": role,
			"hashed_password": hashed_password,
			"is_active": True,
			"is_deleted": False,
		}
		if existing:
			return self.update(existing, fields)
		return self.create(fields, id=technician_id)
