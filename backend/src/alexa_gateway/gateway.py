"""Invocation entrypoint for the Smart Home gateway.

Each invocation runs two independent pre-flight tasks concurrently:

- resolving the backend host name (DNS warm-up)
- validating the directive and building the HTTP session

Both must succeed before the POST is issued. The first failure aborts
the invocation and no request reaches the backend.
"""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import wait
from contextvars import copy_context
from typing import Any
from typing import Mapping
from typing import Optional

import requests

from alexa_gateway.config import Settings
from alexa_gateway.config import get_settings
from alexa_gateway.exceptions import GatewayError
from alexa_gateway.forwarder import backend_url
from alexa_gateway.forwarder import build_session
from alexa_gateway.forwarder import forward
from alexa_gateway.forwarder import resolve_backend_host
from alexa_gateway.models import ValidatedDirective
from alexa_gateway.utils.logging import clear_request_context
from alexa_gateway.utils.logging import configure_logging
from alexa_gateway.utils.logging import get_logger
from alexa_gateway.utils.logging import set_request_context
from alexa_gateway.validator import validate

configure_logging()
logger = get_logger(__name__)


def _prepare(
    event: Mapping[str, Any],
    settings: Settings,
) -> tuple[ValidatedDirective, requests.Session]:
    validated = validate(event, settings)
    return validated, build_session(settings)


def _raise_first_failure(*futures: Future) -> None:
    for future in futures:
        if future.done() and future.exception() is not None:
            raise future.exception()  # type: ignore[misc]


def handle_directive(event: Mapping[str, Any], settings: Settings) -> Any:
    """Validate a directive and forward it to the backend.

    Returns:
        The backend JSON, or an error envelope dict when the backend
        answered with a non-2xx status.

    Raises:
        GatewayError: on any invocation-fatal failure.
    """
    url = backend_url(settings.base_url)

    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="preflight")
    try:
        # Each task runs in its own copy of the logging context
        prepare_future = executor.submit(copy_context().run, _prepare, event, settings)
        resolve_future = executor.submit(copy_context().run, resolve_backend_host, url)
        wait([prepare_future, resolve_future], return_when=FIRST_EXCEPTION)
        _raise_first_failure(prepare_future, resolve_future)
        validated, session = prepare_future.result()
        addresses = resolve_future.result()
    finally:
        # A DNS warm-up still running after a validation failure is abandoned
        executor.shutdown(wait=False, cancel_futures=True)

    logger.debug(f"Backend host resolved to {addresses}")
    if validated.message_id:
        set_request_context(corr_id=validated.message_id)

    with session:
        return forward(session, url, validated.token, validated.event)


def lambda_handler(
    event: Mapping[str, Any],
    context: Any,
    settings: Optional[Settings] = None,
) -> Any:
    """Lambda entrypoint for Smart Home directives."""
    set_request_context(req_id=getattr(context, "aws_request_id", None))
    try:
        return handle_directive(event, settings or get_settings())
    except GatewayError as exc:
        logger.error(
            f"Invocation failed: {exc.message}",
            extra={"extra": exc.to_dict()},
        )
        raise
    finally:
        clear_request_context()
