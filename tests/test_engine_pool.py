import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from staged_ocr.pipeline.engine_pool import EnginePool


class _Engine:
    def __init__(self) -> None:
        self.loaded = False

    def load(self) -> None:
        self.loaded = True


class _ConcurrencyProbe:
    def __init__(self) -> None:
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, pool: EnginePool) -> int:
        with pool.acquire() as engine:
            with self._lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            time.sleep(0.02)
            with self._lock:
                self.active -= 1
            return id(engine)


def test_shared_pool_always_hands_out_the_same_engine():
    engine = _Engine()
    pool = EnginePool.shared(engine)

    with pool.acquire() as first:
        pass
    with pool.acquire() as second:
        pass

    assert first is engine and second is engine
    assert pool.size == 1
    assert pool.is_shared


def test_shared_pool_serialises_callers():
    pool = EnginePool.shared(_Engine())
    probe = _ConcurrencyProbe()

    with ThreadPoolExecutor(max_workers=4) as executor:
        list(executor.map(lambda _: probe(pool), range(8)))

    assert probe.peak == 1


def test_per_worker_pool_bounds_live_engines():
    created = []

    def factory():
        engine = _Engine()
        created.append(engine)
        return engine

    pool = EnginePool.per_worker(factory, size=2)
    probe = _ConcurrencyProbe()

    with ThreadPoolExecutor(max_workers=6) as executor:
        used = set(executor.map(lambda _: probe(pool), range(12)))

    assert len(created) == 2
    assert probe.peak <= 2
    assert used <= {id(engine) for engine in created}
    assert not pool.is_shared


def test_engine_is_returned_after_an_error():
    pool = EnginePool.per_worker(_Engine, size=1)

    with pytest.raises(RuntimeError):
        with pool.acquire():
            raise RuntimeError("boom")

    with pool.acquire() as engine:
        assert isinstance(engine, _Engine)


def test_load_reaches_every_engine():
    pool = EnginePool.per_worker(_Engine, size=3)
    pool.load()

    assert all(engine.loaded for engine in pool.engines)


@pytest.mark.parametrize("size", [0, -1])
def test_per_worker_pool_rejects_empty_sizes(size):
    with pytest.raises(ValueError):
        EnginePool.per_worker(_Engine, size=size)
