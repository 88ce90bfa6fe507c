"""Outbound dispatch of validated directives to the backend.

A single POST is issued per invocation, without retries. Backend
responses are translated as follows:

**2xx**
    The body is parsed as JSON and returned verbatim.

**401 / 403**
    ``ErrorEnvelope`` with type ``INVALID_AUTHORIZATION_CREDENTIAL``.

**any other status**
    ``ErrorEnvelope`` with type ``INTERNAL_ERROR``.

In both error cases the envelope message is the raw response text.
Transport failures and unparseable success bodies raise, aborting the
invocation.
"""

from __future__ import annotations

import socket
from typing import Any
from typing import Mapping
from urllib.parse import urlparse

import requests

from alexa_gateway.config import Settings
from alexa_gateway.exceptions import ResponseDecodeError
from alexa_gateway.exceptions import TransportError
from alexa_gateway.models import ErrorEnvelope
from alexa_gateway.models import ErrorType
from alexa_gateway.utils.logging import Timer
from alexa_gateway.utils.logging import get_logger
from alexa_gateway.utils.logging import mask_token

logger = get_logger(__name__)

SMART_HOME_PATH = "/api/alexa/smart_home"

# (connect, read) in seconds
CONNECT_TIMEOUT = 2
READ_TIMEOUT = 10
REQUEST_TIMEOUT = (CONNECT_TIMEOUT, READ_TIMEOUT)

_AUTH_ERROR_STATUSES = frozenset({401, 403})
_DEFAULT_PORTS = {"https": 443, "http": 80}


def backend_url(base_url: str) -> str:
    """Return the Smart Home endpoint for a backend root URL."""
    return base_url.rstrip("/") + SMART_HOME_PATH


def resolve_backend_host(url: str) -> list[str]:
    """Resolve the backend host ahead of the POST.

    Returns:
        The resolved addresses.

    Raises:
        TransportError: if the name does not resolve.
    """
    parsed = urlparse(url)
    host = parsed.hostname
    if not host:
        raise TransportError(f"cannot parse host part of {url}")
    port = parsed.port or _DEFAULT_PORTS.get(parsed.scheme, 443)

    with Timer(logger, "resolve_backend_host() resolved IP"):
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except OSError as exc:
            raise TransportError(f"cannot resolve {host}:{port}: {exc}") from exc

    return sorted({info[4][0] for info in infos})


def build_session(settings: Settings) -> requests.Session:
    """Create the HTTP session used for the backend call."""
    with Timer(logger, "build_session() completed"):
        session = requests.Session()
        session.headers.update({"Content-Type": "application/json"})
        session.verify = settings.verify_ssl
        if not settings.verify_ssl:
            logger.warning(
                "TLS certificate verification is DISABLED for backend requests"
            )
    return session


def classify_status(status_code: int) -> ErrorType:
    if status_code in _AUTH_ERROR_STATUSES:
        return ErrorType.INVALID_AUTHORIZATION_CREDENTIAL
    return ErrorType.INTERNAL_ERROR


def translate_response(response: requests.Response) -> Any:
    """Map a backend response to the invocation result."""
    if 200 <= response.status_code < 300:
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseDecodeError(str(exc)) from exc

    error_type = classify_status(response.status_code)
    logger.warning(
        f"Backend returned {response.status_code}, replying {error_type.value}"
    )
    return ErrorEnvelope.build(error_type, response.text).to_dict()


def forward(
    session: requests.Session,
    url: str,
    token: str,
    event: Mapping[str, Any],
) -> Any:
    """POST the event to the backend and translate the response.

    Args:
        session: Session from ``build_session``.
        url: Backend endpoint from ``backend_url``.
        token: Bearer credential.
        event: The original inbound event, sent unmodified.

    Returns:
        The backend JSON on success, otherwise an error envelope dict.

    Raises:
        TransportError: on connection failure or timeout.
        ResponseDecodeError: on a 2xx response that is not JSON.
    """
    logger.info(f"Forwarding directive to {url}")
    logger.debug("Using bearer token %s", mask_token(token))

    with Timer(logger, "forward() completed"):
        try:
            response = session.post(
                url,
                json=dict(event),
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=REQUEST_TIMEOUT,
                # Per-request value; REQUESTS_CA_BUNDLE would override session.verify
                verify=session.verify,
            )
        except requests.RequestException as exc:
            logger.warning(f"Backend request failed: {type(exc).__name__}: {exc}")
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    return translate_response(response)
