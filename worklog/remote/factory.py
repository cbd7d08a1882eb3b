from typing import Optional

import httpx

from worklog.core.config import Settings, settings as default_settings
from worklog.remote.base import RemoteJobSource
from worklog.remote.rest import BackendClient, RestJobSource
from worklog.remote.sheets import SheetsJobSource
from worklog.schemas.technician import AuthSession


def build_remote_source(
	config: Optional[Settings] = None,
	session: Optional[AuthSession] = None,
	transport: Optional[httpx.BaseTransport] = None,
	correlation_id: Optional[str] = None,
) -> RemoteJobSource:
	"""Pick the configured transport (`REMOTE_SOURCE`: rest or sheets)."""
	config = config or default_settings
	if config.REMOTE_SOURCE == "sheets":
		return SheetsJobSource(
			url=config.GOOGLE_SHEETS_URL or "",
			timeout=config.REMOTE_TIMEOUT_SECONDS,
			transport=transport,
			correlation_id=correlation_id,
		)
	client = BackendClient(
		base_url=config.API_BASE_URL,
		session=session,
		timeout=config.REMOTE_TIMEOUT_SECONDS,
		transport=transport,
		correlation_id=correlation_id,
	)
	return RestJobSource(client)
