# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from worklog.api.endpoints import auth, health, tasks, technicians
from worklog.core.config import settings
from worklog.core.observability import RequestLoggingMiddleware, setup_logging
# Import all models to ensure relationships are properly resolved
from worklog.db import base  # noqa: F401
from worklog.db.base_class import Base
from worklog.db.session import SessionLocal, engine
from worklog.repositories.technician import TechnicianRepository
from worklog.services.auth_services import AuthService, load_roster
from worklog.services.exceptions import ServiceError, ValidationError, create_error_response

logger = logging.getLogger("worklog.app")

HTTP_ERROR_CODES = {
	400: "BAD_REQUEST",
	401: "UNAUTHORIZED",
	403: "FORBIDDEN",
	404: "NOT_FOUND",
	405: "METHOD_NOT_ALLOWED",
	413: "PAYLOAD_TOO_LARGE",
}


def _correlation_id(request: Request):
	return getattr(request.state, "correlation_id", None)


def _error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
	return JSONResponse(
		status_code=status_code,
		content={"error": {"code": code, "message": message, "details": details}},
	)


def _bootstrap_database() -> None:
	Base.metadata.create_all(bind=engine)
	if not (settings.SEED_DEFAULT_USERS and settings.SEED_TECHNICIANS_FILE):
		return
	roster = load_roster(settings.SEED_TECHNICIANS_FILE)
	with SessionLocal() as db:
		service = AuthService(technician_repo=TechnicianRepository(db))
		service.seed_technicians(roster, db)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.INIT_DB_ON_STARTUP:
		_bootstrap_database()
	yield


def create_app() -> FastAPI:
	setup_logging()
	app = FastAPI(title="Shift Worklog API", lifespan=lifespan)

	app.add_middleware(
		CORSMiddleware,
		allow_origins=settings.cors_origins,
		allow_methods=["*"],
		allow_headers=["*"],
		expose_headers=["X-Correlation-ID", "Content-Disposition"],
	)
	app.add_middleware(RequestLoggingMiddleware)

	@app.exception_handler(ServiceError)
	async def service_error_handler(request: Request, exc: ServiceError):
		if exc.correlation_id is None:
			exc.correlation_id = _correlation_id(request)
		level = logging.ERROR if exc.http_status >= 500 else logging.INFO
		logger.log(level, str(exc), extra={"correlation_id": exc.correlation_id, "error_code": exc.error_code})
		return JSONResponse(
			status_code=int(exc.http_status),
			content=create_error_response(exc, include_details=isinstance(exc, ValidationError)),
		)

	@app.exception_handler(StarletteHTTPException)
	async def http_error_handler(request: Request, exc: StarletteHTTPException):
		message = exc.detail if isinstance(exc.detail, str) else "Request failed"
		return _error_response(exc.status_code, HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"), message)

	@app.exception_handler(RequestValidationError)
	async def request_validation_handler(request: Request, exc: RequestValidationError):
		details = [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]
		return _error_response(400, "VALIDATION_ERROR", "Invalid request.", details)

	app.include_router(health.router, prefix="/api/health", tags=["health"])
	app.include_router(technicians.router, prefix="/api/public", tags=["public"])
	app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
	app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
	return app


app = create_app()
