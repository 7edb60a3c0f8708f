# portal/errors.py
# ----------------
# Exceptions raised by the portal and mapped to user-facing messages by the UI
# and the download service.

from typing import List, Optional


class PortalError(Exception):
    """Base class for all portal errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendError(PortalError):
    """The forecasting backend answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendConnectionError(BackendError):
    """The forecasting backend could not be reached."""


class ValidationError(PortalError):
    """An uploaded file failed local validation."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors) if errors else "Validation failed")
        self.errors = list(errors)


class ExportError(PortalError):
    """Spreadsheet / archive export failed."""
