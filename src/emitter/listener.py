from __future__ import annotations

import inspect
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .codec import decode

logger = logging.getLogger(__name__)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.VAR_POSITIONAL,
)


def _closure_namespace(target: Callable[..., Any]) -> Dict[str, Any]:
    """Names visible to ``target``'s body: referenced globals plus closure cells."""
    try:
        closure = inspect.getclosurevars(target)
    except (TypeError, ValueError):
        return {}
    namespace: Dict[str, Any] = dict(closure.globals)
    namespace.update(closure.nonlocals)
    return namespace


def _unresolved(func: Callable[..., Any], exc: BaseException) -> TypeError:
    return TypeError(f"Cannot resolve payload annotation of {func!r} ({exc}); pass payload_type= explicitly")


def infer_payload_type(func: Callable[..., Any]) -> Any:
    """Return the annotation of the first positional parameter of ``func``.

    Unannotated callables (lambdas, builtins such as ``list.append``) yield
    ``Any``. String annotations are resolved against the callable's module
    and, failing that, against the variables its body closes over.

    Raises:
        TypeError: if the annotation names something that cannot be resolved,
            e.g. a class local to another function that the callback never
            references. Pass ``payload_type=`` explicitly in that case.
    """
    try:
        sig = inspect.signature(func, eval_str=True)
    except (NameError, SyntaxError) as exc:
        target = inspect.unwrap(getattr(func, "__func__", func))
        if not inspect.isfunction(target):
            raise _unresolved(func, exc) from exc
        try:
            sig = inspect.signature(
                func, globals=target.__globals__, locals=_closure_namespace(target), eval_str=True
            )
        except (NameError, SyntaxError) as retry_exc:
            raise _unresolved(func, retry_exc) from retry_exc
        logger.debug("Resolved annotations of %r from its closure", func)
    except (TypeError, ValueError):
        return Any
    params = [p for p in sig.parameters.values() if p.kind in _POSITIONAL]
    if not params or params[0].annotation is inspect.Parameter.empty:
        return Any
    return params[0].annotation


def new_listener_id() -> str:
    return str(uuid.uuid4())


class TypedCallback:
    """Type-erased listener body: accepts a byte payload, calls ``func`` with the decoded value."""

    __slots__ = ("func", "payload_type", "strict")

    def __init__(self, func: Callable[[Any], Any], payload_type: Any = Any, strict: bool = False) -> None:
        if not callable(func):
            raise TypeError("callback must be callable")
        self.func = func
        self.payload_type = payload_type
        self.strict = strict

    def __call__(self, payload: bytes) -> None:
        value = decode(payload, self.payload_type, strict=self.strict)
        self.func(value)

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", None) or repr(self.func)
        return f"TypedCallback({name}, payload_type={self.payload_type!r})"


@dataclass
class Listener:
    """A callback registered for one event.

    Attributes:
        event: Event name the listener is bound to.
        callback: Type-erased body invoked with the encoded payload.
        limit: Remaining invocations. None means unlimited, 0 means exhausted
            and waiting to be pruned by the next emit of ``event``.
        id: Unique identifier used for removal.
    """

    event: str
    callback: TypedCallback
    limit: Optional[int] = None
    id: str = field(default_factory=new_listener_id)

    def __post_init__(self) -> None:
        if not callable(self.callback):
            raise TypeError("listener callback must be callable")
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"listener limit must be >= 0 or None, got {self.limit}")
        if not self.id:
            raise ValueError("listener id must be a non-empty string")

    @property
    def exhausted(self) -> bool:
        return self.limit == 0

    def invoke(self, payload: bytes) -> None:
        self.callback(payload)
