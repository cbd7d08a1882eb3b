"""Technician, login and session schemas."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
	ADMIN = "admin"
	TECH = "tech"


class TechnicianPublic(BaseModel):
	"""Login roster entry; no credential material."""
	model_config = ConfigDict(from_attributes=True)

	id: str
	name: str
	role: Role


class TechnicianSeed(BaseModel):
	"""Roster entry used to seed the backend."""
	id: str
	name: str
	role: Role = Role.TECH
	password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	technician_id: str = Field(default="", alias="technicianId")
	password: str = ""
	shift: str = ""

	@field_validator("technician_id", "shift", mode="before")
	@classmethod
	def strip_text(cls, v: Any) -> str:
		return v.strip() if isinstance(v, str) else ""

	@field_validator("password", mode="before")
	@classmethod
	def password_text(cls, v: Any) -> str:
		return v if isinstance(v, str) else ""


class SessionUser(BaseModel):
	id: str
	name: str
	role: Role
	shift: str = ""

	@property
	def is_admin(self) -> bool:
		return self.role == Role.ADMIN


class AuthSession(BaseModel):
	"""Bearer credential plus the signed-in technician.

	Owned by the caller and handed to the REST transport; `token` is cleared
	when the backend answers 401.
	"""
	token: Optional[str] = None
	user: Optional[SessionUser] = None

	@property
	def is_authenticated(self) -> bool:
		return bool(self.token)

	def clear(self) -> None:
		self.token = None


class Principal(BaseModel):
	"""Verified token claims."""
	sub: str
	role: Role
	name: str
	shift: str = ""

	@property
	def is_admin(self) -> bool:
		return self.role == Role.ADMIN
