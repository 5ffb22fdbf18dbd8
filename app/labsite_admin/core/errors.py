from __future__ import annotations


class LabAdminError(RuntimeError):
    """Base class for errors raised by the admin console."""


class FormValidationError(LabAdminError):
    """Raised when a submitted form fails client-side field checks."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors or {})
        fields = ", ".join(sorted(self.errors)) or "form"
        super().__init__(f"Form has invalid fields: {fields}.")


class UnsupportedFileTypeError(LabAdminError, ValueError):
    pass


class ParseError(LabAdminError):
    """Raised when an uploaded workbook cannot be decoded."""


class WorksheetSelectionError(LabAdminError, ValueError):
    pass


class ConfirmationRequiredError(LabAdminError):
    pass


class PendingImportNotFoundError(LabAdminError, LookupError):
    pass


class BackendError(LabAdminError):
    status_code = 0

    def __init__(self, message: str, *, status_code: int | None = None, payload=None) -> None:
        super().__init__(message)
        self.message = str(message)
        if status_code is not None:
            self.status_code = int(status_code)
        self.payload = payload


class AuthenticationRequired(BackendError):
    status_code = 401


class PermissionDenied(BackendError):
    status_code = 403


class BackendRequestError(BackendError):
    """Any other non-2xx backend response."""


class BackendUnavailableError(BackendError):
    """The backend could not be reached at all."""
