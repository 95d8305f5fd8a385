from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class AppError(Exception):
	"""An error meant for the API client, carrying an error code and HTTP status."""

	def __init__(self, code: str, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None) -> None:
		super().__init__(message)
		self.code = code
		self.message = message
		self.status_code = status_code
		self.details = details

	@classmethod
	def validation(cls, message: str, details: Optional[Dict[str, Any]] = None) -> "AppError":
		return cls("VALIDATION_ERROR", message, 400, details)

	@classmethod
	def unauthorized(cls, message: str = "Unauthorized") -> "AppError":
		return cls("UNAUTHORIZED", message, 401)

	@classmethod
	def forbidden(cls, message: str = "Forbidden") -> "AppError":
		return cls("FORBIDDEN", message, 403)

	@classmethod
	def not_found(cls, message: str = "Resource not found") -> "AppError":
		return cls("NOT_FOUND", message, 404)

	@classmethod
	def rate_limit_exceeded(cls, message: str = "Rate limit exceeded") -> "AppError":
		return cls("RATE_LIMIT_EXCEEDED", message, 429)

	@classmethod
	def internal(cls, message: str = "Internal server error") -> "AppError":
		return cls("INTERNAL_ERROR", message, 500)

	@classmethod
	def service_unavailable(cls, message: str = "Service temporarily unavailable") -> "AppError":
		return cls("SERVICE_UNAVAILABLE", message, 503)

	def to_dict(self) -> Dict[str, Any]:
		error: Dict[str, Any] = {"code": self.code, "message": self.message}
		if self.details:
			error["details"] = self.details
		return {"success": False, "error": error}


def success_response(data: Any) -> Dict[str, Any]:
	return {"success": True, "data": data}


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
	return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
	fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
	error = AppError.validation("Invalid request", {"fields": fields})
	return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	error = AppError.internal()
	return JSONResponse(status_code=error.status_code, content=error.to_dict())


def install_error_handlers(app: FastAPI) -> None:
	app.add_exception_handler(AppError, _app_error_handler)
	app.add_exception_handler(RequestValidationError, _validation_error_handler)
	app.add_exception_handler(Exception, _unhandled_error_handler)
