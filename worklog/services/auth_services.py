"""Authentication service for technician login and bearer token checks.

Login exchanges a technician id and password (bcrypt-compared) for a signed
token carrying `{sub, role, name, shift}` with an expiry. Every task
mutation on the backend resolves that token back into a `Principal`.
"""

import json
from pathlib import Path
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from worklog.core.config import settings
from worklog.core.security import create_access_token, decode_access_token, get_password_hash, verify_password
from worklog.repositories.technician import TechnicianRepository
from worklog.schemas.technician import (
    AuthSession,
    LoginRequest,
    Principal,
    SessionUser,
    TechnicianPublic,
    TechnicianSeed,
)
from worklog.services.base import BaseService
from worklog.services.exceptions import (
    ForbiddenError,
    InvalidCredentialsError,
    TokenError,
    ValidationError,
)


class AuthService(BaseService):
    """Service class for handling technician authentication.

    Login failures never reveal whether the id or the password was wrong;
    both surface as `InvalidCredentialsError`.
    """

    def __init__(self, correlation_id: Optional[str] = None, **repositories):
        """Initialize authentication service.

        Args:
            correlation_id: Optional request correlation ID for logging
            **repositories: Repository instances (technician_repo)
        """
        super().__init__(correlation_id)
        if repositories:
            self._set_repositories(**repositories)
        self._require_repositories("technician_repo")

    def list_technicians(self) -> List[TechnicianPublic]:
        """Public login roster."""
        technicians = self.technician_repo.list_active()
        self.log_operation("list_technicians", count=len(technicians))
        return [TechnicianPublic.model_validate(t) for t in technicians]

    def login(self, login_data: LoginRequest) -> AuthSession:
        """Authenticate a technician and issue a bearer token.

        Args:
            login_data: Technician id, password and the shift being worked

        Returns:
            AuthSession with the token and the signed-in technician

        Raises:
            ValidationError: If the id or the password is blank
            InvalidCredentialsError: Unknown/inactive technician or wrong password
        """
        if not login_data.technician_id or not login_data.password:
            raise ValidationError(
                field="technicianId",
                message="technician and password are required",
                correlation_id=self.correlation_id,
                user_message="Technician and password are required."
            )

        shift = login_data.shift or settings.DEFAULT_SHIFT
        self.log_operation("login_attempt", technician_id=login_data.technician_id)

        technician = self.technician_repo.get_active(login_data.technician_id)
        if not technician or not verify_password(login_data.password, technician.hashed_password):
            self.log_operation("login_failed", technician_id=login_data.technician_id)
            raise InvalidCredentialsError(correlation_id=self.correlation_id)

        token = create_access_token({
            "sub": technician.id,
            "role": technician.role,
            "name": technician.name,
            "shift": shift,
        })
        self.log_operation("login_success", technician_id=technician.id, role=technician.role)
        return AuthSession(
            token=token,
            user=SessionUser(id=technician.id, name=technician.name, role=technician.role, shift=shift),
        )

    def authenticate_token(self, token: Optional[str]) -> Principal:
        """Resolve a bearer token into its verified claims.

        Raises:
            TokenError: Token missing, malformed, badly signed or expired
        """
        if not token:
            raise TokenError("Token missing", correlation_id=self.correlation_id)
        claims = decode_access_token(token)
        if not claims:
            raise TokenError("Token invalid or expired", correlation_id=self.correlation_id)
        try:
            return Principal.model_validate(claims)
        except ValueError:
            raise TokenError("Token claims incomplete", correlation_id=self.correlation_id)

    @staticmethod
    def require_admin(principal: Principal, action: str, correlation_id: Optional[str] = None) -> None:
        if not principal.is_admin:
            raise ForbiddenError(action=action, role=principal.role.value, correlation_id=correlation_id)

    def seed_technicians(self, roster: Iterable[TechnicianSeed], db: Session) -> int:
        """Upsert roster entries with freshly hashed passwords."""
        entries = list(roster)

        def _seed() -> int:
            for entry in entries:
                self.technician_repo.upsert(
                    technician_id=entry.id,
                    name=entry.name,
                    role=entry.role.value,
                    hashed_password=get_password_hash(entry.password),
                )
            return len(entries)

        seeded = self.run_in_transaction(db, _seed)
        self.log_operation("seed_technicians", count=seeded)
        return seeded


def load_roster(path: str) -> List[TechnicianSeed]:
    """Read a JSON list of `{id, name, role, password}` roster entries."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return [TechnicianSeed.model_validate(item) for item in raw]
