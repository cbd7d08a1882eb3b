from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
	"""Success envelope: `{data: ...}`."""
	data: T


class ErrorBody(BaseModel):
	code: str
	message: str
	details: Optional[Any] = None


class ErrorResponse(BaseModel):
	"""Error envelope: `{error: {code, message, details}}`."""
	error: ErrorBody
