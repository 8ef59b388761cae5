"""
In-process event emitter with typed listeners.

Listeners subscribe to named events and receive emitted values decoded into
the type they declare. Values travel between emitter and listeners as JSON
bytes, encoded once per emission.
"""

from .config import EmitterConfig
from .emitter import EventEmitter
from .exceptions import EmitterError, PayloadDecodeError, PayloadEncodeError
from .global_emitter import get_emitter, locked
from .listener import Listener
from .registry import ListenerRegistry

__version__ = "0.1.0"

__all__ = [
    "EmitterConfig",
    "EmitterError",
    "EventEmitter",
    "Listener",
    "ListenerRegistry",
    "PayloadDecodeError",
    "PayloadEncodeError",
    "get_emitter",
    "locked",
]
