"""Process-wide EventEmitter for code that cannot easily share an instance.

The global emitter is created on first use from ``EmitterConfig.from_sources()``
and lives until the process exits. Prefer passing an explicit
:class:`~emitter.emitter.EventEmitter` around where that is practical.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .config import EmitterConfig
from .emitter import EventEmitter

logger = logging.getLogger(__name__)

_GLOBAL_EMITTER: Optional[EventEmitter] = None
_INIT_LOCK = threading.Lock()


def get_emitter() -> EventEmitter:
    """Return the process-global EventEmitter, creating it if necessary."""
    global _GLOBAL_EMITTER
    if _GLOBAL_EMITTER is None:
        with _INIT_LOCK:
            if _GLOBAL_EMITTER is None:
                _GLOBAL_EMITTER = EventEmitter(EmitterConfig.from_sources())
                logger.debug("Created global emitter with config %s", _GLOBAL_EMITTER.config.as_dict())
    return _GLOBAL_EMITTER


@contextmanager
def locked() -> Iterator[EventEmitter]:
    """Hold the global emitter's lock across several operations.

    Other threads cannot register, remove or emit on the global emitter
    until the block exits. Calling ``emit`` inside the block waits for
    listeners while the lock is held, so those listeners must not use the
    global emitter themselves.
    """
    emitter = get_emitter()
    with emitter.lock:
        yield emitter


def on(event: str, callback: Callable[[Any], Any], *, payload_type: Any = None) -> str:
    return get_emitter().on(event, callback, payload_type=payload_type)


def once(event: str, callback: Callable[[Any], Any], *, payload_type: Any = None) -> str:
    return get_emitter().once(event, callback, payload_type=payload_type)


def on_limited(
    event: str,
    limit: Optional[int],
    callback: Callable[[Any], Any],
    *,
    payload_type: Any = None,
) -> str:
    return get_emitter().on_limited(event, limit, callback, payload_type=payload_type)


def emit(event: str, value: Any = None) -> None:
    get_emitter().emit(event, value)


def sync_emit(event: str, value: Any = None) -> None:
    get_emitter().sync_emit(event, value)


def remove_listener(listener_id: str) -> Optional[str]:
    return get_emitter().remove_listener(listener_id)


__all__ = [
    "get_emitter",
    "locked",
    "on",
    "once",
    "on_limited",
    "emit",
    "sync_emit",
    "remove_listener",
]
