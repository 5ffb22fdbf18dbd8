from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from labsite_admin.core.defaults import DEFAULT_LOGIN_PATH
from labsite_admin.core.env import LABADMIN_ERROR_INCLUDE_DETAILS, get_env_bool
from labsite_admin.core.errors import (
    AuthenticationRequired,
    BackendError,
    BackendUnavailableError,
    ConfirmationRequiredError,
    FormValidationError,
    PendingImportNotFoundError,
    PermissionDenied,
    UnsupportedFileTypeError,
    WorksheetSelectionError,
)

ERROR_CODE_VALIDATION = "VALIDATION_ERROR"
ERROR_CODE_BAD_REQUEST = "BAD_REQUEST"
ERROR_CODE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_UNAUTHORIZED = "UNAUTHORIZED"
ERROR_CODE_FORBIDDEN = "FORBIDDEN"
ERROR_CODE_UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
ERROR_CODE_WORKSHEET_SELECTION = "WORKSHEET_SELECTION_REQUIRED"
ERROR_CODE_CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"
ERROR_CODE_PENDING_IMPORT_NOT_FOUND = "PENDING_IMPORT_NOT_FOUND"
ERROR_CODE_BACKEND_REQUEST = "BACKEND_REQUEST_FAILED"
ERROR_CODE_BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
ERROR_CODE_INTERNAL = "INTERNAL_SERVER_ERROR"

# Field errors and the login URL drive the client, so they are always sent.
_ALWAYS_INCLUDE_DETAILS = {ERROR_CODE_VALIDATION, ERROR_CODE_UNAUTHORIZED}


@dataclass(frozen=True)
class ApiErrorSpec:
    status_code: int
    code: str
    message: str
    details: dict[str, Any] | None = None


class ApiError(RuntimeError):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = int(status_code)
        self.code = str(code)
        self.message = str(message)
        self.details = details


def is_api_request(request: Request) -> bool:
    path = str(getattr(request.url, "path", "") or "")
    return path.startswith("/api/")


def request_id_from_request(request: Request) -> str:
    request_id = str(getattr(request.state, "request_id", "") or "").strip()
    if request_id:
        return request_id
    from_header = str(request.headers.get("x-request-id", "")).strip()
    return from_header or "-"


def _include_details(code: str) -> bool:
    if code in _ALWAYS_INCLUDE_DETAILS:
        return True
    return get_env_bool(LABADMIN_ERROR_INCLUDE_DETAILS, default=False)


def build_api_error_payload(
    *,
    code: str,
    message: str,
    request_id: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ok": False,
        "error": {
            "code": str(code),
            "message": str(message),
        },
        "request_id": str(request_id or "-"),
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if details and _include_details(str(code)):
        payload["error"]["details"] = details
    return payload


def api_error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    request_id = request_id_from_request(request)
    payload = build_api_error_payload(
        code=code,
        message=message,
        request_id=request_id,
        details=details,
    )
    headers = {"X-Request-ID": request_id}
    return JSONResponse(payload, status_code=int(status_code), headers=headers)


def login_required_error(message: str = "Sign in to continue.") -> ApiError:
    return ApiError(
        status_code=401,
        code=ERROR_CODE_UNAUTHORIZED,
        message=message,
        details={"login_url": DEFAULT_LOGIN_PATH},
    )


def normalize_exception(exc: Exception) -> ApiErrorSpec:
    if isinstance(exc, ApiError):
        return ApiErrorSpec(
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            details=exc.details,
        )

    if isinstance(exc, FormValidationError):
        return ApiErrorSpec(
            status_code=422,
            code=ERROR_CODE_VALIDATION,
            message="Some fields are invalid. Fix them and try again.",
            details={"errors": dict(exc.errors)},
        )

    if isinstance(exc, RequestValidationError):
        return ApiErrorSpec(
            status_code=422,
            code=ERROR_CODE_VALIDATION,
            message="Request validation failed. Check field values and try again.",
            details={"errors": exc.errors()},
        )

    if isinstance(exc, UnsupportedFileTypeError):
        return ApiErrorSpec(status_code=400, code=ERROR_CODE_UNSUPPORTED_FILE_TYPE, message=str(exc))

    if isinstance(exc, WorksheetSelectionError):
        return ApiErrorSpec(status_code=400, code=ERROR_CODE_WORKSHEET_SELECTION, message=str(exc))

    if isinstance(exc, ConfirmationRequiredError):
        return ApiErrorSpec(status_code=409, code=ERROR_CODE_CONFIRMATION_REQUIRED, message=str(exc))

    if isinstance(exc, PendingImportNotFoundError):
        return ApiErrorSpec(status_code=404, code=ERROR_CODE_PENDING_IMPORT_NOT_FOUND, message=str(exc))

    if isinstance(exc, AuthenticationRequired):
        return ApiErrorSpec(
            status_code=401,
            code=ERROR_CODE_UNAUTHORIZED,
            message=exc.message,
            details={"login_url": DEFAULT_LOGIN_PATH},
        )

    if isinstance(exc, PermissionDenied):
        return ApiErrorSpec(status_code=403, code=ERROR_CODE_FORBIDDEN, message=exc.message)

    if isinstance(exc, BackendUnavailableError):
        return ApiErrorSpec(
            status_code=503,
            code=ERROR_CODE_BACKEND_UNAVAILABLE,
            message=exc.message,
            details={"reason": str(exc.__cause__ or exc)},
        )

    if isinstance(exc, BackendError):
        status_code = exc.status_code if 400 <= exc.status_code < 600 else 502
        return ApiErrorSpec(
            status_code=status_code,
            code=ERROR_CODE_BACKEND_REQUEST,
            message=exc.message,
            details={"backend_status": exc.status_code},
        )

    if isinstance(exc, PermissionError):
        return ApiErrorSpec(
            status_code=403,
            code=ERROR_CODE_FORBIDDEN,
            message="You do not have permission to perform this action.",
            details={"reason": str(exc)},
        )

    if isinstance(exc, ValueError):
        return ApiErrorSpec(
            status_code=400,
            code=ERROR_CODE_BAD_REQUEST,
            message=str(exc) or "Request parameters are invalid.",
            details={"reason": str(exc)},
        )

    if isinstance(exc, StarletteHTTPException):
        code = ERROR_CODE_INTERNAL
        if exc.status_code == 400:
            code = ERROR_CODE_BAD_REQUEST
        elif exc.status_code == 401:
            code = ERROR_CODE_UNAUTHORIZED
        elif exc.status_code == 403:
            code = ERROR_CODE_FORBIDDEN
        elif exc.status_code == 404:
            code = ERROR_CODE_NOT_FOUND
        elif exc.status_code == 422:
            code = ERROR_CODE_VALIDATION
        return ApiErrorSpec(
            status_code=int(exc.status_code),
            code=code,
            message=str(exc.detail or "HTTP request failed."),
            details={"reason": str(exc.detail or "")},
        )

    return ApiErrorSpec(
        status_code=500,
        code=ERROR_CODE_INTERNAL,
        message="An unexpected error occurred. Reload the page and try again.",
        details={"reason": str(exc), "type": exc.__class__.__name__},
    )
