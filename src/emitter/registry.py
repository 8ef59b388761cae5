from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .listener import Listener

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """Ordered listener sequences keyed by event name.

    The registry is not synchronized; callers hold their own lock while
    mutating it (EventEmitter does).
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def add(self, listener: Listener) -> str:
        """Append a listener to its event's sequence, creating the sequence on first use."""
        self._listeners.setdefault(listener.event, []).append(listener)
        logger.debug("Registered listener %s on '%s' (limit=%s)", listener.id, listener.event, listener.limit)
        return listener.id

    def remove(self, listener_id: str) -> Optional[str]:
        """Remove the first listener whose id matches, across all events.

        Returns:
            The removed id, or None if no listener had it.
        """
        for event, listeners in self._listeners.items():
            for index, listener in enumerate(listeners):
                if listener.id == listener_id:
                    del listeners[index]
                    logger.debug("Removed listener %s from '%s'", listener_id, event)
                    return listener_id
        return None

    def prune(self, event: str, listener_ids: Iterable[str]) -> int:
        """Drop the given listeners from one event, keeping survivors in order."""
        doomed = set(listener_ids)
        listeners = self._listeners.get(event)
        if not listeners or not doomed:
            return 0
        survivors = [item for item in listeners if item.id not in doomed]
        removed = len(listeners) - len(survivors)
        listeners[:] = survivors
        if removed:
            logger.debug("Pruned %d exhausted listener(s) from '%s'", removed, event)
        return removed

    def get(self, event: str) -> List[Listener]:
        """Return the live sequence for ``event`` (an empty list if none was ever registered)."""
        return self._listeners.get(event, [])

    def events(self) -> List[str]:
        return list(self._listeners)

    def count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, ()))
        return sum(len(listeners) for listeners in self._listeners.values())

    def clear(self, event: Optional[str] = None) -> None:
        """Remove all listeners of one event, or of every event."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def __contains__(self, listener_id: object) -> bool:
        return any(item.id == listener_id for item in self)

    def __iter__(self) -> Iterator[Listener]:
        for listeners in self._listeners.values():
            yield from listeners

    def __len__(self) -> int:
        return self.count()
