from __future__ import annotations

import threading

import pytest

from engine.runtime.worker import StrokeWorkerPool, WorkerTaskError


@pytest.mark.parametrize("workers", [0, 3])
def test_filter_map_preserves_order_and_drops_none(workers: int) -> None:
    items = [(k, k * 10) for k in range(20)]
    with StrokeWorkerPool(workers) as pool:
        out = pool.filter_map(lambda k, v: v + 1 if k % 2 == 0 else None, items)
    assert out == [(k, k * 10 + 1) for k in range(0, 20, 2)]


def test_threaded_pool_uses_worker_threads() -> None:
    names: set[str] = set()
    lock = threading.Lock()

    def fn(_k: int, _v: int) -> None:
        with lock:
            names.add(threading.current_thread().name)

    with StrokeWorkerPool(2) as pool:
        assert not pool.inline
        assert pool.num_workers == 2
        pool.filter_map(fn, [(i, i) for i in range(8)])
    assert names and all(n.startswith("StrokeWorker") for n in names)


def test_inline_pool_runs_on_caller_thread() -> None:
    caller = threading.current_thread().name
    seen: list[str] = []
    with StrokeWorkerPool(0) as pool:
        assert pool.inline
        pool.filter_map(lambda k, v: seen.append(threading.current_thread().name), [(1, 1), (2, 2)])
    assert seen == [caller, caller]


@pytest.mark.parametrize("workers", [0, 3])
def test_failure_is_wrapped_with_key(workers: int) -> None:
    def fn(k: int, v: int) -> int:
        if k == 4:
            raise RuntimeError("boom")
        return v

    with StrokeWorkerPool(workers) as pool:
        with pytest.raises(WorkerTaskError) as ei:
            pool.filter_map(fn, [(k, k) for k in range(8)])
    assert ei.value.key == 4
    assert isinstance(ei.value.original, RuntimeError)
    assert ei.value.__cause__ is ei.value.original


def test_close_is_idempotent_and_blocks_reuse() -> None:
    pool: StrokeWorkerPool[int, int] = StrokeWorkerPool(2)
    pool.close()
    pool.close()
    with pytest.raises(RuntimeError):
        pool.filter_map(lambda k, v: v, [(1, 1)])
