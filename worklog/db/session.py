from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from worklog.core.config import settings


def build_engine(url: str):
	"""Create an engine, giving SQLite the options it needs outside one thread."""
	if url.startswith("sqlite"):
		kwargs = {"connect_args": {"check_same_thread": False}}
		if url in ("sqlite://", "sqlite:///:memory:"):
			kwargs["poolclass"] = StaticPool
		return create_engine(url, **kwargs)
	return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def open_local_session(url: Optional[str] = None) -> Session:
	"""Session on the device-local store, creating its tables on first use."""
	from worklog.db.base_class import LocalBase
	from worklog.db.models import local_job  # noqa: F401

	local_engine = build_engine(url or settings.LOCAL_DATABASE_URL)
	LocalBase.metadata.create_all(bind=local_engine)
	return sessionmaker(autocommit=False, autoflush=False, bind=local_engine)()


def close_local_session(db: Session) -> None:
	"""Close a session from `open_local_session` and release its engine."""
	bind = db.get_bind()
	db.close()
	bind.dispose()
