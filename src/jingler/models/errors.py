"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class JinglerError(Exception):
    """Base error for all Jingler errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class ValidationError(JinglerError):
    """Bad source kind, URL or missing fields."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="validation", details=details)


class QuotaExceeded(JinglerError):
    """A plan limit was hit. The message is shown to the user verbatim."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="quota", details=details)


class ForbiddenError(JinglerError):
    """Access to a resource owned by another user."""

    def __init__(self, message: str, component: str = "access", details: dict | None = None):
        super().__init__(message, component=component, details=details)


class NotFoundError(JinglerError):
    """A source, staging entry or record does not exist."""

    def __init__(self, message: str, component: str = "lookup", details: dict | None = None):
        super().__init__(message, component=component, details=details)


class PayloadTooLarge(JinglerError):
    """Downloaded or uploaded payload exceeds the size cap."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="ingest", details=details)


class UnsupportedFormat(JinglerError):
    """Payload is not a recognised audio format."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="ingest", details=details)


class UpstreamError(JinglerError):
    """External engine or platform failure after exhausting fallbacks."""

    def __init__(self, message: str, component: str = "upstream", details: dict | None = None):
        super().__init__(message, component=component, details=details)


class ConfigurationError(UpstreamError):
    """An upstream call needs credentials that are not configured."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="configuration", details=details)


class MixEngineError(JinglerError):
    """The media engine failed to produce a mix."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="mixing", details=details)


class TagWriteError(JinglerError):
    """Writing tags to the output container failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="tagging", details=details)


class TagVerifyError(JinglerError):
    """Read-back after a tag write did not find the embedded cover art."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="tagging", details=details)


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: JinglerError, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance,
            retry_possible=retry,
        )
