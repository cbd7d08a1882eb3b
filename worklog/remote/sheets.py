"""
Spreadsheet webhook job source (Google Apps Script web app).

Writes are fire-and-forget POSTs: only a transport failure counts as an
error. Reads are a GET that must answer `{success: true, data: [...]}`;
when the script itself crashes, Apps Script serves an HTML error page instead.
"""
import html
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from worklog.core.config import settings
from worklog.core.observability import log_outbound_call
from worklog.remote.base import parse_job_rows
from worklog.schemas.job import Job
from worklog.services.exceptions import ConfigurationError, NetworkError, ParseError

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_SCRIPT_ERROR_RE = re.compile(r"\b([A-Za-z]*(?:Error|Exception)\s*:\s*[^\n]+)")


def extract_script_error(body: str) -> Optional[str]:
    """Pull the script diagnostic (e.g. `TypeError: ...`) out of an HTML error page."""
    text = html.unescape(_TAG_RE.sub("\n", body or ""))
    match = _SCRIPT_ERROR_RE.search(text)
    return match.group(1).strip() if match else None


class SheetsJobSource:
    provider = "sheets"

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        correlation_id: Optional[str] = None,
    ):
        self.url = (url if url is not None else settings.GOOGLE_SHEETS_URL or "").strip()
        if not self.url:
            raise ConfigurationError("GOOGLE_SHEETS_URL", correlation_id=correlation_id)
        self.timeout = timeout or settings.REMOTE_TIMEOUT_SECONDS
        self.transport = transport
        self.correlation_id = correlation_id

    def _send(self, method: str, operation: str, **kwargs: Any) -> httpx.Response:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                return log_outbound_call(
                    self.provider, self.url, operation, self.correlation_id,
                    lambda: client.request(method, self.url, **kwargs),
                )
        except httpx.RequestError as e:
            raise NetworkError(
                target=self.url,
                reason=str(e) or type(e).__name__,
                correlation_id=self.correlation_id,
                user_message="Network failure while trying to reach Google Sheets.",
            )

    def _post(self, body: Dict[str, Any]) -> None:
        # The script replies with a redirect we never need to follow
        self._send("POST", body["action"], json=body, follow_redirects=False)

    def upsert_job(self, job: Job) -> None:
        self._post({"action": "upsert", **job.to_remote(), "beforePhoto": job.before_photo or "", "afterPhoto": job.after_photo or ""})

    def delete_job(self, job_id: str) -> None:
        self._post({"action": "delete", "id": job_id, "deleted": True})

    def list_jobs(self) -> List[Job]:
        response = self._send("GET", "list", follow_redirects=True)
        if response.is_error:
            raise NetworkError(
                target=self.url,
                reason=f"HTTP error {response.status_code}",
                correlation_id=self.correlation_id,
                user_message="Could not download the cloud records.",
            )

        try:
            payload = response.json()
        except ValueError:
            diagnostic = extract_script_error(response.text)
            logger.warning("Spreadsheet returned a non-JSON body", extra={"diagnostic": diagnostic})
            raise ParseError(
                target=self.url,
                reason=diagnostic or "response is not JSON",
                correlation_id=self.correlation_id,
                user_message=f"The spreadsheet script failed: {diagnostic}" if diagnostic else None,
            )

        if not isinstance(payload, dict) or payload.get("success") is not True or not isinstance(payload.get("data"), list):
            raise ParseError(
                target=self.url,
                reason="expected {success: true, data: [...]}",
                correlation_id=self.correlation_id,
            )
        return parse_job_rows(payload["data"], self.url)
