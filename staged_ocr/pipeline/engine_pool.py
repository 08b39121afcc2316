"""Bounded access to inference engines that may not be thread-safe."""
from __future__ import annotations

import queue
import threading
from contextlib import contextmanager
from typing import Any, Callable, Generator, Generic, List, Optional, TypeVar

EngineT = TypeVar("EngineT")


class EnginePool(Generic[EngineT]):
    """Hands out engine instances to workers.

    A shared pool serialises every call on one instance behind a lock. A
    per-worker pool owns ``size`` independent instances and blocks callers
    until one is free, so the number of live engines does not depend on the
    number of regions being processed.
    """

    def __init__(self, engines: List[EngineT], *, shared: bool) -> None:
        if not engines:
            raise ValueError("EnginePool needs at least one engine")
        self._engines = list(engines)
        self._shared = shared
        self._lock = threading.Lock()
        self._idle: "queue.Queue[EngineT]" = queue.Queue()
        for engine in self._engines:
            self._idle.put(engine)

    @classmethod
    def shared(cls, engine: EngineT) -> "EnginePool[EngineT]":
        return cls([engine], shared=True)

    @classmethod
    def per_worker(cls, factory: Callable[[], EngineT], size: int) -> "EnginePool[EngineT]":
        if size < 1:
            raise ValueError(f"Pool size must be >= 1, got {size}")
        return cls([factory() for _ in range(size)], shared=False)

    @property
    def size(self) -> int:
        return len(self._engines)

    @property
    def is_shared(self) -> bool:
        return self._shared

    @property
    def engines(self) -> List[EngineT]:
        return list(self._engines)

    def load(self) -> None:
        for engine in self._engines:
            load: Optional[Callable[[], Any]] = getattr(engine, "load", None)
            if load is not None:
                load()

    @contextmanager
    def acquire(self) -> Generator[EngineT, None, None]:
        """Borrow an engine for the duration of the ``with`` block."""

        if self._shared:
            with self._lock:
                yield self._engines[0]
            return
        engine = self._idle.get()
        try:
            yield engine
        finally:
            self._idle.put(engine)


__all__ = ["EnginePool"]
