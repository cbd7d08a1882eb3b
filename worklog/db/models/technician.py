from sqlalchemy import Column, String, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from worklog.db.base_class import AuditMixin, Base

class Technician(Base, AuditMixin):
	__tablename__ = "users"
	__table_args__ = (CheckConstraint("role IN ('admin', 'tech')", name="ck_users_role"),)

	id = Column(String, primary_key=True, index=True)
	name = Column(String, nullable=False)
	role = Column(String, nullable=False)  # admin, tech
	hashed_password = Column(String, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)

	tasks = relationship("Task", back_populates="technician")
