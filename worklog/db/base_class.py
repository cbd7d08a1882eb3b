from sqlalchemy import Column, Boolean, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import declarative_base

# Backend (REST store) tables
Base = declarative_base()

# Device-local embedded store tables; kept on their own metadata so the
# backend schema never creates them and vice versa
LocalBase = declarative_base()

class AuditMixin:
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
