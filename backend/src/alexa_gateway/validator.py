"""Smart Home v3 directive validation and credential extraction."""

from __future__ import annotations

from typing import Any
from typing import Mapping
from typing import Optional

from alexa_gateway.config import Settings
from alexa_gateway.exceptions import MissingDirectiveError
from alexa_gateway.exceptions import MissingFallbackTokenError
from alexa_gateway.exceptions import MissingScopeError
from alexa_gateway.exceptions import MissingTokenError
from alexa_gateway.exceptions import UnsupportedScopeTypeError
from alexa_gateway.exceptions import UnsupportedVersionError
from alexa_gateway.models import ValidatedDirective
from alexa_gateway.utils.logging import Timer
from alexa_gateway.utils.logging import get_logger
from alexa_gateway.utils.logging import log_directive

logger = get_logger(__name__)

SUPPORTED_PAYLOAD_VERSION = "3"
BEARER_TOKEN = "BearerToken"

# Device directives carry the scope on the endpoint, account linking
# (AcceptGrant) and discovery directives carry it in the payload.
SCOPE_PATHS: tuple[tuple[str, ...], ...] = (
    ("endpoint", "scope"),
    ("payload", "grantee"),
    ("payload", "scope"),
)


def _lookup(document: Any, path: tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(document, Mapping):
            return None
        document = document.get(key)
    return document


def resolve_scope(directive: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    """Return the first non-null scope found along SCOPE_PATHS."""
    for path in SCOPE_PATHS:
        scope = _lookup(directive, path)
        if scope is not None:
            logger.debug("Using scope at directive.%s", ".".join(path))
            return scope
    return None


def extract_token(scope: Mapping[str, Any], settings: Settings) -> tuple[str, str]:
    """Return ``(token, source)`` for a BearerToken scope.

    A token carried by the directive always wins. The configured
    long-lived token is only consulted when the fallback is enabled.
    """
    token = scope.get("token")
    if isinstance(token, str):
        return token, "scope"

    if not settings.allow_fallback_token:
        raise MissingTokenError()
    if not settings.long_lived_access_token:
        raise MissingFallbackTokenError()

    logger.warning("No token in directive scope, using LONG_LIVED_ACCESS_TOKEN")
    return settings.long_lived_access_token, "fallback"


def validate(event: Mapping[str, Any], settings: Settings) -> ValidatedDirective:
    """Validate an inbound event and extract its bearer credential.

    Args:
        event: The raw Lambda event.
        settings: Gateway settings.

    Returns:
        The untouched event paired with the credential to forward.

    Raises:
        DirectiveValidationError: a subclass naming the failed check.
    """
    with Timer(logger, "validate() completed"):
        log_directive(logger, event)

        directive = event.get("directive") if isinstance(event, Mapping) else None
        if directive is None:
            raise MissingDirectiveError()

        payload_version = _lookup(directive, ("header", "payloadVersion"))
        if payload_version != SUPPORTED_PAYLOAD_VERSION:
            raise UnsupportedVersionError(payload_version)

        scope = resolve_scope(directive)
        if scope is None:
            raise MissingScopeError()

        scope_type = scope.get("type") if isinstance(scope, Mapping) else None
        if scope_type != BEARER_TOKEN:
            raise UnsupportedScopeTypeError(scope_type)

        token, source = extract_token(scope, settings)

    return ValidatedDirective(event=dict(event), token=token, token_source=source)
