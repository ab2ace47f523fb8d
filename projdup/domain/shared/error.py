"""Error hierarchy for projdup.

Error layers:
- ProjdupError: Base class for all projdup errors
- DomainError: Transfer rule violations, invalid state, malformed snapshots
- InfrastructureError: Host-level failures (host unreachable, workspace file unreadable)

Per-item host failures are converted to TransferWarning by the transfer services;
only phase-level failures surface as exceptions.
"""


class ProjdupError(Exception):
    """Base class for all projdup errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(ProjdupError):
    """Base class for domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class ConflictError(DomainError):
    """Resource already exists."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(ProjdupError):
    """Base class for infrastructure/system errors."""


class HostUnavailableError(InfrastructureError):
    """The host application could not answer a request."""


class StorageUnavailableError(InfrastructureError):
    """Workspace storage is unreadable or unwritable."""


class ExternalServiceError(InfrastructureError):
    """External service is unavailable or failed."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
