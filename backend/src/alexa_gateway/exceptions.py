"""Custom exception classes for the gateway.

Every exception in this module is invocation-fatal: it aborts the Lambda
invocation and the host reports it as a failure. Backend errors that the
voice platform must see are not exceptions, they are returned as
``ErrorEnvelope`` values (see ``alexa_gateway.models``).
"""

from __future__ import annotations

from typing import Any
from typing import Optional


class GatewayError(Exception):
    """Base exception for gateway errors.

    Attributes:
        message: Human-readable error message.
        code: Stable machine-readable error code.
        detail: Optional additional context.
    """

    code = "GatewayError"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a log-friendly dictionary."""
        result: dict[str, Any] = {"code": self.code, "error": self.message}
        if self.detail:
            result["detail"] = self.detail
        return result


class ConfigurationError(GatewayError):
    """Raised when required configuration is missing or invalid."""

    code = "ConfigurationError"

    def __init__(self, config_name: str, reason: Optional[str] = None):
        message = reason or f"Missing required configuration: {config_name}"
        super().__init__(message)
        self.config_name = config_name


class DirectiveValidationError(GatewayError):
    """Raised when the inbound directive breaks the Smart Home v3 contract."""

    code = "DirectiveValidationError"


class MissingDirectiveError(DirectiveValidationError):
    code = "MissingDirective"

    def __init__(self) -> None:
        super().__init__("Malformed request - missing directive")


class UnsupportedVersionError(DirectiveValidationError):
    """Raised when ``directive.header.payloadVersion`` is not ``"3"``."""

    code = "UnsupportedVersion"

    def __init__(self, got: Any):
        super().__init__(
            f'Only payloadVersion == "3" is supported, got {got!r}',
        )
        self.got = got


class MissingScopeError(DirectiveValidationError):
    code = "MissingScope"

    def __init__(self) -> None:
        super().__init__(
            "Malformed request - missing one between endpoint.scope, "
            "payload.grantee, or payload.scope"
        )


class UnsupportedScopeTypeError(DirectiveValidationError):
    code = "UnsupportedScopeType"

    def __init__(self, scope_type: Any):
        super().__init__(
            "Malformed request - scope.type only supports BearerToken",
            detail=f"Got scope.type: {scope_type!r}",
        )
        self.scope_type = scope_type


class MissingTokenError(DirectiveValidationError):
    code = "MissingToken"

    def __init__(self) -> None:
        super().__init__("Malformed request - missing auth token")


class MissingFallbackTokenError(DirectiveValidationError):
    """Raised when the fallback credential is enabled but not configured."""

    code = "MissingFallbackToken"

    def __init__(self) -> None:
        super().__init__(
            "No token found in event, please provide a "
            "LONG_LIVED_ACCESS_TOKEN instead"
        )


class TransportError(GatewayError):
    """Raised when the backend cannot be reached or does not answer in time."""

    code = "TransportError"

    def __init__(self, detail: str):
        super().__init__(f"Backend request failed: {detail}", detail=detail)


class ResponseDecodeError(GatewayError):
    """Raised when a successful backend response is not valid JSON."""

    code = "ResponseDecodeError"

    def __init__(self, detail: str):
        super().__init__(
            f"Backend returned an unparseable success body: {detail}",
            detail=detail,
        )
