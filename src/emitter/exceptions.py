from __future__ import annotations

from typing import Any, Optional


class EmitterError(Exception):
    """Base exception for the emitter package."""


class PayloadEncodeError(EmitterError):
    """Raised when an emitted value cannot be serialized into a payload."""

    def __init__(self, event: str, value: Any, cause: Optional[BaseException] = None) -> None:
        self.event = event
        self.value = value
        super().__init__(f"Cannot encode value of type {type(value).__name__} for event '{event}': {cause}")


class PayloadDecodeError(EmitterError):
    """Raised when a payload does not match the type a listener declared."""

    def __init__(self, payload_type: Any, payload: bytes, cause: Optional[BaseException] = None) -> None:
        self.payload_type = payload_type
        self.payload = payload
        super().__init__(f"Cannot decode payload as {_type_name(payload_type)}: {cause}")


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
