"""
REST backend client.
Handles login, bearer authentication and the `{data}` / `{error}` envelopes.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from worklog.core.config import settings
from worklog.core.observability import log_outbound_call
from worklog.remote.base import parse_job_rows
from worklog.schemas.job import Job
from worklog.schemas.technician import AuthSession, SessionUser, TechnicianPublic
from worklog.services.exceptions import (
    AuthError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    ParseError,
    PayloadTooLargeError,
    RemoteRequestError,
)

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Tuple[Any, bool]:
    """Return (payload, is_json). An empty body counts as JSON null."""
    text = response.text
    if not text:
        return None, True
    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type and "+json" not in content_type:
        return text, False
    try:
        return response.json(), True
    except ValueError:
        return text, False


def _error_envelope(payload: Any) -> Tuple[Optional[str], Optional[str]]:
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        message = error.get("message") if isinstance(error.get("message"), str) else None
        code = error.get("code") if isinstance(error.get("code"), str) else None
        return code, message
    return None, None


class BackendClient:
    """Client for the worklog REST backend.

    The auth session is explicit state owned by the caller; a 401 clears its
    token so the caller can send the technician back to login.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[AuthSession] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        correlation_id: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.session = session if session is not None else AuthSession()
        self.timeout = timeout or settings.REMOTE_TIMEOUT_SECONDS
        self.transport = transport
        self.correlation_id = correlation_id

    def _build_url(self, path: str) -> str:
        normalized = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{normalized}"

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
    ) -> Any:
        """Make HTTP request to the backend and unwrap the success envelope."""
        headers: Dict[str, str] = {}
        if self.correlation_id:
            headers["X-Correlation-ID"] = self.correlation_id
        if requires_auth and self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"

        url = self._build_url(path)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = log_outbound_call(
                    "backend", path, method, self.correlation_id,
                    lambda: client.request(method, url, headers=headers, json=json, params=params),
                )
        except httpx.RequestError as e:
            raise NetworkError(target=path, reason=str(e) or type(e).__name__, correlation_id=self.correlation_id)

        payload, is_json = _parse_body(response)

        if response.is_error:
            self._raise_for_status(response.status_code, path, payload, is_json)

        if not is_json:
            raise ParseError(
                target=path,
                reason="response is not JSON",
                correlation_id=self.correlation_id,
                user_message="The backend response is not valid JSON.",
            )

        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def _raise_for_status(self, status: int, path: str, payload: Any, is_json: bool) -> None:
        if status == 401:
            self.session.clear()
        if status == 413:
            raise PayloadTooLargeError(target=path, correlation_id=self.correlation_id)
        if not is_json:
            raise RemoteRequestError(
                status, None,
                f"HTTP error {status}. The server returned an unexpected format.",
                correlation_id=self.correlation_id,
            )

        code, message = _error_envelope(payload)
        message = message or f"HTTP error {status}"
        if status == 401:
            raise AuthError(
                message=f"Backend rejected credentials: {message}",
                error_code=code or "UNAUTHORIZED",
                correlation_id=self.correlation_id,
                user_message=message,
            )
        if status == 403:
            raise ForbiddenError(action=f"call {path}", correlation_id=self.correlation_id, user_message=message)
        if status == 404:
            raise NotFoundError(resource_id=path, message=message, correlation_id=self.correlation_id)
        raise RemoteRequestError(status, code, message, correlation_id=self.correlation_id)

    def fetch_technicians(self) -> List[TechnicianPublic]:
        data = self.request("GET", "/public/technicians", requires_auth=False)
        if not isinstance(data, list):
            raise ParseError(target="/public/technicians", reason="expected a list", correlation_id=self.correlation_id)
        return [TechnicianPublic.model_validate(item) for item in data]

    def login(self, technician_id: str, password: str, shift: str) -> AuthSession:
        """Exchange credentials for a token stored on this client's session."""
        data = self.request(
            "POST",
            "/auth/login",
            json={"technicianId": technician_id, "password": password, "shift": shift},
            requires_auth=False,
        )
        if not isinstance(data, dict) or "token" not in data or "user" not in data:
            raise ParseError(target="/auth/login", reason="missing token or user", correlation_id=self.correlation_id)
        self.session.token = data["token"]
        self.session.user = SessionUser.model_validate(data["user"])
        logger.info("Signed in against backend", extra={"technician_id": self.session.user.id})
        return self.session


class RestJobSource:
    """Remote job source over the backend's task endpoints."""

    provider = "backend"

    def __init__(self, client: BackendClient):
        self.client = client

    def _task_path(self, job_id: str) -> str:
        return f"/tasks/{quote(job_id, safe='')}"

    def list_jobs(self) -> List[Job]:
        data = self.client.request("GET", "/tasks", params={"includeDeleted": "true"})
        if not isinstance(data, list):
            raise ParseError(target="/tasks", reason="expected a list of tasks", correlation_id=self.client.correlation_id)
        return parse_job_rows(data, "/tasks")

    def upsert_job(self, job: Job) -> None:
        self.client.request("PUT", self._task_path(job.id), json=job.to_remote())

    def delete_job(self, job_id: str) -> None:
        self.client.request("DELETE", self._task_path(job_id))
