"""Serialization boundary between emitters and listeners.

Every emitted value is encoded once into JSON bytes. Each listener decodes
those bytes independently into the type it declared, so the registry only
ever handles opaque ``bytes`` payloads.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic import ConfigDict, PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .exceptions import PayloadDecodeError, PayloadEncodeError

logger = logging.getLogger(__name__)

# Non-finite floats travel as Infinity/NaN literals so they decode back to floats
_ANY: TypeAdapter[Any] = TypeAdapter(Any, config=ConfigDict(ser_json_inf_nan="constants"))


@lru_cache(maxsize=256)
def _cached_adapter(payload_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(payload_type)


def adapter_for(payload_type: Any) -> TypeAdapter[Any]:
    """Return a (cached) pydantic TypeAdapter for ``payload_type``."""
    if payload_type is Any:
        return _ANY
    try:
        return _cached_adapter(payload_type)
    except TypeError:
        # Unhashable type expressions cannot be cached
        return TypeAdapter(payload_type)


def encode(value: Any, *, event: str = "") -> bytes:
    """Serialize ``value`` into a JSON byte payload.

    Raises:
        PayloadEncodeError: if the value has no JSON representation.
    """
    try:
        return _ANY.dump_json(value)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise PayloadEncodeError(event, value, exc) from exc


def decode(payload: bytes, payload_type: Any = Any, *, strict: bool = False) -> Any:
    """Deserialize a JSON byte payload into ``payload_type``.

    Raises:
        PayloadDecodeError: if the payload does not validate against the type,
            or the type cannot be described as a pydantic schema.
    """
    try:
        adapter = adapter_for(payload_type)
    except PydanticSchemaGenerationError as exc:
        raise PayloadDecodeError(payload_type, payload, exc) from exc
    try:
        return adapter.validate_json(payload, strict=strict)
    except ValidationError as exc:
        logger.debug("Payload %r failed validation as %r", payload, payload_type)
        raise PayloadDecodeError(payload_type, payload, exc) from exc
