"""
Error taxonomy for the clinic integration.

Internal layers (token cache, clinic client, orchestrator client) raise these.
Service boundaries catch them and turn them into ActionResult failures.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    UPSTREAM_AUTH = "upstream_auth"
    UPSTREAM_HTTP = "upstream_http"
    VALIDATION = "validation"
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    NOTHING_TO_DO = "nothing_to_do"
    INTERNAL = "internal"


class ClinicSyncError(Exception):
    """Base class for integration failures"""

    kind = ErrorKind.INTERNAL


class ConfigurationError(ClinicSyncError):
    """Raised when a required setting is absent"""

    kind = ErrorKind.CONFIGURATION


class UpstreamAuthError(ClinicSyncError):
    """Raised when the clinic token endpoint rejects the client credentials"""

    kind = ErrorKind.UPSTREAM_AUTH

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Clinic authentication failed: HTTP {status_code}")


class UpstreamHttpError(ClinicSyncError):
    """Raised when an external API answers with a non-success status"""

    kind = ErrorKind.UPSTREAM_HTTP

    def __init__(
        self, status_code: Optional[int], service: str = "clinic", detail: Optional[str] = None
    ):
        # status_code is None when the request never got an HTTP answer
        self.status_code = status_code
        self.service = service
        self.detail = detail
        if status_code is None:
            super().__init__(f"{service} API unreachable: {detail}")
        else:
            super().__init__(f"{service} API HTTP error: {status_code}")


class ContractValidationError(ClinicSyncError):
    """Raised when an external response does not match the expected contract"""

    kind = ErrorKind.VALIDATION
