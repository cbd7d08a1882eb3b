from __future__ import annotations

import logging
import time
import uuid
from random import random
from typing import Callable, Optional, Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from worklog.core.config import settings


logger = logging.getLogger("worklog.requests")
outbound_logger = logging.getLogger("worklog.outbound")


def setup_logging() -> None:
	level = settings.LOG_LEVEL.upper()
	logging.basicConfig(
		format="%(asctime)s %(levelname)s %(name)s %(message)s",
		level=getattr(logging, level, logging.INFO),
	)


def generate_correlation_id(existing: Optional[str]) -> str:
	if existing and existing.strip():
		return existing.strip()
	return str(uuid.uuid4())


def _sampled_out() -> bool:
	return (settings.LOG_SAMPLE_RATE < 1.0) and (random() > float(settings.LOG_SAMPLE_RATE))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Middleware to log inbound HTTP requests with correlation IDs."""

	async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
		correlation_id = generate_correlation_id(request.headers.get("X-Correlation-ID"))
		setattr(request.state, "correlation_id", correlation_id)

		if not settings.ENABLE_REQUEST_LOGGING:
			response = await call_next(request)
			response.headers["X-Correlation-ID"] = correlation_id
			return response

		start_ns = time.monotonic_ns()
		status_code: int = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
		finally:
			duration_ms = int((time.monotonic_ns() - start_ns) / 1_000_000)
			if not _sampled_out():
				logger.info(
					"%s %s -> %s (%sms)",
					request.method,
					request.url.path,
					status_code,
					duration_ms,
					extra=_build_inbound_payload(request, correlation_id, status_code, duration_ms),
				)

		response.headers["X-Correlation-ID"] = correlation_id
		return response


def _build_inbound_payload(request: Request, correlation_id: str, status_code: int, duration_ms: int) -> dict:
	# Route template may be unavailable for 404 or early errors
	route = request.scope.get("route")
	path_template = getattr(route, "path", None) if route is not None else None

	xff = request.headers.get("x-forwarded-for")
	client_ip = (xff.split(",")[0].strip() if xff else (request.client.host if request.client else None))

	auth_header = request.headers.get("authorization") or ""
	auth_type = "bearer" if auth_header.lower().startswith("bearer ") else "none"

	return {
		"correlation_id": correlation_id,
		"method": request.method,
		"path_template": path_template or request.url.path,
		"status_code": status_code,
		"duration_ms": duration_ms,
		"client_ip": client_ip,
		"auth_type": auth_type,
	}


def log_outbound_call(provider: str, target: str, operation: str, correlation_id: Optional[str], call: Callable[[], Any]) -> Any:
	"""Execute outbound call and log its duration.

	Args:
		provider: Remote store name (e.g., backend, sheets)
		target: Target path or URL
		operation: Operation name (usually the HTTP method)
		correlation_id: Correlation ID for linkage
		call: Callable that performs the operation

	Returns:
		Result of `call()`
	"""
	if not settings.ENABLE_OUTBOUND_LOGGING:
		return call()

	start_ns = time.monotonic_ns()
	error_code: Optional[str] = None
	try:
		return call()
	except Exception as e:
		error_code = type(e).__name__
		raise
	finally:
		duration_ms = int((time.monotonic_ns() - start_ns) / 1_000_000)
		outbound_logger.info(
			"%s %s %s (%sms)",
			provider,
			operation,
			target,
			duration_ms,
			extra={
				"correlation_id": correlation_id or str(uuid.uuid4()),
				"provider": provider,
				"target": target,
				"operation": operation,
				"duration_ms": duration_ms,
				"error_code": error_code,
			},
		)
