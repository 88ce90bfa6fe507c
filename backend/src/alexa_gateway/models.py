"""Result types shared by the validator and the forwarder."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict


class ErrorType(str, enum.Enum):
    """Smart Home error types reported back to the voice platform."""

    INVALID_AUTHORIZATION_CREDENTIAL = "INVALID_AUTHORIZATION_CREDENTIAL"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorPayload(BaseModel):
    """Error payload schema."""

    model_config = ConfigDict(frozen=True)

    type: ErrorType
    message: str


class ErrorEvent(BaseModel):
    """Error event schema."""

    model_config = ConfigDict(frozen=True)

    payload: ErrorPayload


class ErrorEnvelope(BaseModel):
    """Smart Home error response returned when the backend fails.

    Serializes to ``{"event": {"payload": {"type": ..., "message": ...}}}``.
    """

    model_config = ConfigDict(frozen=True)

    event: ErrorEvent

    @classmethod
    def build(cls, error_type: ErrorType, message: str) -> "ErrorEnvelope":
        return cls(event=ErrorEvent(payload=ErrorPayload(type=error_type, message=message)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json")


@dataclass(frozen=True)
class ValidatedDirective:
    """An inbound event that passed validation, with its credential.

    ``event`` is the untouched inbound document; it is forwarded as is.
    """

    event: dict[str, Any]
    token: str
    token_source: str = "scope"

    @property
    def message_id(self) -> str:
        header = (self.event.get("directive") or {}).get("header") or {}
        message_id = header.get("messageId")
        return message_id if isinstance(message_id, str) else ""
