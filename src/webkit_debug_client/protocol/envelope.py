"""Message envelopes.

One wire shape carries three kinds of message:

- Request (outbound):  {"id": 1, "method": "Debugger.stepOver", "params": {...}}
- Response (inbound):  {"id": 1, "result": {...}}
- Event (inbound):     {"method": "Debugger.paused", "params": {...}}

They are told apart only by a truthy `id` versus a `method`.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MessageKind(str, Enum):
    """Classification of an inbound message."""

    RESPONSE = "response"
    EVENT = "event"
    UNKNOWN = "unknown"


class Request(BaseModel):
    """An outbound request.

    `params` is left off the wire when absent, and None-valued entries
    inside it are dropped, so optional arguments never reach the backend
    as explicit nulls.
    """

    id: int = Field(gt=0)
    method: str
    params: dict[str, Any] | None = None

    @classmethod
    def create(cls, request_id: int, method: str, params: dict[str, Any] | None = None) -> Request:
        if params is not None:
            params = {k: v for k, v in params.items() if v is not None}
        return cls(id=request_id, method=method, params=params)

    def to_envelope(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_envelope())


def classify(message: Any) -> MessageKind:
    """Decide how an inbound, already-decoded message is routed."""
    if not isinstance(message, dict):
        return MessageKind.UNKNOWN
    if message.get("id"):
        return MessageKind.RESPONSE
    if message.get("method"):
        return MessageKind.EVENT
    return MessageKind.UNKNOWN


def encode(envelope: dict[str, Any]) -> str:
    return json.dumps(envelope)


def decode(text: str | bytes) -> Any:
    """Decode one frame. Raises json.JSONDecodeError on malformed input."""
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    return json.loads(text)
