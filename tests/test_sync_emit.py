from __future__ import annotations

import logging
import threading
from typing import Any, List

import pytest

from emitter import EventEmitter, PayloadEncodeError


def test_sync_emit_runs_listeners_in_registration_order(emitter: EventEmitter):
    log: List[str] = []

    def make(name: str):
        def listener(value: int) -> None:
            log.append(f"{name}-start:{value}")
            log.append(f"{name}-end")

        return listener

    for name in ("D", "E", "F"):
        emitter.on("Y", make(name))

    for _ in range(20):
        log.clear()
        emitter.sync_emit("Y", 1)
        assert log == ["D-start:1", "D-end", "E-start:1", "E-end", "F-start:1", "F-end"]


def test_sync_emit_runs_on_caller_thread(emitter: EventEmitter):
    threads: List[int] = []
    emitter.on("where", lambda _: threads.append(threading.get_ident()))
    emitter.sync_emit("where", None)
    assert threads == [threading.get_ident()]


def test_sync_emit_does_not_consume_limits(emitter: EventEmitter):
    seen: List[Any] = []
    emitter.once("e", seen.append)

    emitter.sync_emit("e", "a")
    emitter.sync_emit("e", "b")

    assert seen == ["a", "b"]
    assert emitter.listeners("e")[0].limit == 1


def test_sync_emit_skips_exhausted_without_pruning(emitter: EventEmitter):
    seen: List[Any] = []
    emitter.on_limited("e", 0, seen.append)

    emitter.sync_emit("e", "a")

    assert seen == []
    assert emitter.listener_count("e") == 1


def test_sync_emit_isolates_failures(emitter: EventEmitter, caplog: pytest.LogCaptureFixture):
    log: List[str] = []

    def first(value: str) -> None:
        log.append("first")
        raise ValueError("bad")

    def second(value: str) -> None:
        log.append("second")

    emitter.on("e", first)
    emitter.on("e", second)

    with caplog.at_level(logging.ERROR, logger="emitter.emitter"):
        emitter.sync_emit("e", "x")

    assert log == ["first", "second"]
    assert len([r for r in caplog.records if r.exc_info]) == 1


def test_sync_emit_encode_failure_raises(emitter: EventEmitter):
    emitter.on("e", lambda _: None)
    with pytest.raises(PayloadEncodeError):
        emitter.sync_emit("e", {1, object()})
