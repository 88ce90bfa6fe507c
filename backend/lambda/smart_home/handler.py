"""Lambda entrypoint for Alexa Smart Home directives."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from alexa_gateway.gateway import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> Any:
    """Delegate to the gateway handler."""
    return _handler(event, context)
