from __future__ import annotations

import threading
import time
from typing import List

from emitter import EmitterConfig, EventEmitter


def test_listeners_of_one_emit_run_concurrently(emitter: EventEmitter):
    barrier = threading.Barrier(3, timeout=5)
    passed: List[int] = []
    lock = threading.Lock()

    def make(idx: int):
        def listener(value: int) -> None:
            # Only returns if all three listeners are running at the same time
            barrier.wait()
            with lock:
                passed.append(idx)

        return listener

    for idx in range(3):
        emitter.on("together", make(idx))

    emitter.emit("together", 1)

    assert sorted(passed) == [0, 1, 2]


def test_emit_blocks_until_all_listeners_finish(emitter: EventEmitter):
    done: List[str] = []

    def slow(value: str) -> None:
        time.sleep(0.05)
        done.append(value)

    emitter.on("slow", slow)
    emitter.on("slow", slow)
    emitter.emit("slow", "finished")

    assert done == ["finished", "finished"]


def test_max_workers_bounds_fan_out():
    emitter = EventEmitter(EmitterConfig(max_workers=2))
    active = 0
    peak = 0
    lock = threading.Lock()

    def listener(value: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1

    for _ in range(6):
        emitter.on("bounded", listener)
    emitter.emit("bounded", 0)

    assert 1 <= peak <= 2
    assert active == 0


def test_limit_is_consumed_before_listener_body_runs(emitter: EventEmitter):
    observed: List[object] = []

    def check(value: int) -> None:
        observed.append(emitter.listeners("e")[0].limit)

    emitter.on_limited("e", 1, check)
    emitter.emit("e", 1)

    assert observed == [0]


def test_listener_can_emit_and_register_without_deadlock(emitter: EventEmitter):
    inner: List[int] = []

    def outer(value: int) -> None:
        emitter.on("late", lambda _: None)
        emitter.emit("inner", value + 1)

    emitter.on("inner", inner.append)
    emitter.on("outer", outer)

    worker = threading.Thread(target=emitter.emit, args=("outer", 1))
    worker.start()
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert inner == [2]
    assert emitter.listener_count("late") == 1


def test_once_fires_once_under_concurrent_emits(emitter: EventEmitter):
    calls: List[int] = []
    lock = threading.Lock()

    def record(value: int) -> None:
        with lock:
            calls.append(value)

    emitter.once("race", record)
    start = threading.Barrier(8, timeout=5)

    def fire(i: int) -> None:
        start.wait()
        emitter.emit("race", i)

    threads = [threading.Thread(target=fire, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert len(calls) == 1
    assert emitter.listener_count("race") == 0


def test_slow_listener_does_not_hold_registry_lock(emitter: EventEmitter):
    release = threading.Event()
    entered = threading.Event()

    def blocking(value: int) -> None:
        entered.set()
        release.wait(timeout=5)

    emitter.on("slow", blocking)
    worker = threading.Thread(target=emitter.emit, args=("slow", 1))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        # Registration and unrelated emits proceed while the slow listener runs
        seen: List[int] = []
        emitter.on("fast", seen.append)
        emitter.emit("fast", 2)
        assert seen == [2]
    finally:
        release.set()
        worker.join(timeout=5)
    assert not worker.is_alive()
