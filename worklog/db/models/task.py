from sqlalchemy import Column, ForeignKey, Index, String, Text, DateTime
from sqlalchemy.orm import relationship
from worklog.db.base_class import AuditMixin, Base


class Task(Base, AuditMixin):
	"""A job as stored by the backend; `is_deleted` is the wire `deleted` tombstone."""

	__tablename__ = "tasks"
	__table_args__ = (
		Index("ix_tasks_active", "is_deleted", "finished_at"),
		Index("ix_tasks_updated", "updated_at"),
	)

	id = Column(String, primary_key=True, index=True)
	area = Column(Text, nullable=False)
	work_type = Column(Text, nullable=False)
	description = Column(Text, nullable=False)
	additional_comments = Column(Text, nullable=False, default="")
	technician_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
	technician_name = Column(Text, nullable=False)
	shift = Column(String, nullable=False)
	finished_at = Column(DateTime(timezone=True), nullable=False)
	signature = Column(Text, nullable=False)
	before_photo = Column(Text, nullable=True)
	after_photo = Column(Text, nullable=True)

	technician = relationship("Technician", back_populates="tasks")
