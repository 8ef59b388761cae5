from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Optional

from .codec import encode
from .config import EmitterConfig
from .listener import Listener, TypedCallback, infer_payload_type
from .registry import ListenerRegistry

logger = logging.getLogger(__name__)


def _check_event(event: str) -> None:
    if not isinstance(event, str) or not event:
        raise ValueError(f"event name must be a non-empty string, got {event!r}")


class EventEmitter:
    """In-process publish/subscribe emitter with typed listeners.

    Listeners declare the type of value they accept (via the annotation of
    their first parameter, or ``payload_type=``). Emitted values are encoded
    to JSON once and decoded separately by each listener, so listeners of
    one event may each see the value as a different type.

    Two dispatch strategies are offered:

    - :meth:`emit` runs listeners concurrently on a bounded thread pool and
      returns once every one of them has finished. Call limits are consumed
      and exhausted listeners pruned here.
    - :meth:`sync_emit` runs listeners one after another, in registration
      order, on the calling thread. It never touches call limits.

    A failing listener (bad payload for its type, or an exception from its
    body) is logged and does not affect the others.
    """

    def __init__(self, config: Optional[EmitterConfig] = None) -> None:
        self.config = config or EmitterConfig()
        self.config.validate()
        self._registry = ListenerRegistry()
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The lock guarding the listener registry."""
        return self._lock

    # ------------------------ Registration ------------------------
    def on(self, event: str, callback: Callable[[Any], Any], *, payload_type: Any = None) -> str:
        """Register ``callback`` for every emission of ``event``. Returns the listener id."""
        return self.on_limited(event, None, callback, payload_type=payload_type)

    def once(self, event: str, callback: Callable[[Any], Any], *, payload_type: Any = None) -> str:
        """Register ``callback`` for the next emission of ``event`` only."""
        return self.on_limited(event, 1, callback, payload_type=payload_type)

    def on_limited(
        self,
        event: str,
        limit: Optional[int],
        callback: Callable[[Any], Any],
        *,
        payload_type: Any = None,
    ) -> str:
        """Register ``callback`` for at most ``limit`` emissions of ``event``.

        Args:
            event: Event name to listen for.
            limit: Number of times the listener may fire through :meth:`emit`.
                None means unlimited; 0 registers a listener that never fires
                and is pruned by the next emit.
            callback: Callable taking one value.
            payload_type: Type to decode payloads into. Defaults to the
                annotation of the callback's first parameter, or Any.

        Returns:
            The new listener's id, for use with :meth:`remove_listener`.
        """
        _check_event(event)
        if payload_type is None:
            payload_type = infer_payload_type(callback)
        typed = TypedCallback(callback, payload_type, strict=self.config.strict_decoding)
        listener = Listener(event=event, callback=typed, limit=limit)
        with self._lock:
            return self._registry.add(listener)

    def remove_listener(self, listener_id: str) -> Optional[str]:
        """Remove the listener with ``listener_id``.

        Returns:
            The id if a listener was removed, otherwise None.
        """
        with self._lock:
            removed = self._registry.remove(listener_id)
        if removed is None:
            logger.debug("No listener with id %s to remove", listener_id)
        return removed

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        """Remove every listener of ``event``, or of all events when None."""
        with self._lock:
            self._registry.clear(event)

    # ------------------------ Introspection ------------------------
    def listeners(self, event: str) -> List[Listener]:
        """Snapshot of the listeners registered for ``event``, in registration order."""
        with self._lock:
            return list(self._registry.get(event))

    def listener_count(self, event: Optional[str] = None) -> int:
        with self._lock:
            return self._registry.count(event)

    def event_names(self) -> List[str]:
        with self._lock:
            return self._registry.events()

    # ------------------------ Dispatch ------------------------
    def emit(self, event: str, value: Any = None) -> None:
        """Deliver ``value`` to every listener of ``event`` concurrently.

        Blocks until all scheduled listeners have completed. Exhausted
        listeners are pruned first; if none remain, nothing is encoded and
        the call does nothing.

        Raises:
            PayloadEncodeError: if ``value`` cannot be serialized. No listener
                runs and no call limit is consumed in that case, but exhausted
                listeners have already been pruned.
        """
        with self._lock:
            listeners = self._registry.get(event)
            if not listeners:
                logger.debug("Emitting '%s' with no listeners", event)
                return
            # Exhausted listeners go first so a failed encode cannot keep them around
            self._registry.prune(event, [item.id for item in listeners if item.exhausted])
            scheduled = list(self._registry.get(event))
            if not scheduled:
                return
            payload = encode(value, event=event)
            for listener in scheduled:
                if listener.limit is not None:
                    listener.limit -= 1

        self._log_dispatch("emit", event, len(scheduled), payload)
        workers = min(len(scheduled), self.config.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="emitter") as pool:
            futures = {pool.submit(listener.invoke, payload): listener for listener in scheduled}
            for future in as_completed(futures):
                try:
                    future.result()
                except Exception:
                    self._log_failure(event, futures[future])

    def sync_emit(self, event: str, value: Any = None) -> None:
        """Deliver ``value`` to every listener of ``event`` one at a time, in registration order.

        Runs on the calling thread. Call limits are neither consumed nor
        enforced, except that exhausted listeners (limit 0) are skipped.

        Raises:
            PayloadEncodeError: if ``value`` cannot be serialized.
        """
        with self._lock:
            listeners = [item for item in self._registry.get(event) if not item.exhausted]
        if not listeners:
            logger.debug("Sync-emitting '%s' with no listeners", event)
            return
        payload = encode(value, event=event)
        self._log_dispatch("sync_emit", event, len(listeners), payload)
        for listener in listeners:
            try:
                listener.invoke(payload)
            except Exception:
                self._log_failure(event, listener)

    # ------------------------ Helpers ------------------------
    def _log_dispatch(self, mode: str, event: str, count: int, payload: bytes) -> None:
        if self.config.log_payloads:
            logger.debug("%s '%s' to %d listener(s) with payload: %r", mode, event, count, payload)
        else:
            logger.debug("%s '%s' to %d listener(s)", mode, event, count)

    def _log_failure(self, event: str, listener: Listener) -> None:
        logger.exception("Error in listener %s (%r) for event '%s'", listener.id, listener.callback, event)

    def __repr__(self) -> str:
        return f"EventEmitter(events={len(self._registry.events())}, listeners={len(self._registry)})"
