"""
Shared test fixtures and utilities.
"""

import threading
from typing import Generator

import pytest
from opentelemetry.sdk.trace.id_generator import IdGenerator

from rumsessionlib.open_telemetry.otel_initializer import OtelInitializer


class FakeClock:
    """Manually advanced clock for session tests"""

    def __init__(self, start_nanos: int = 1_000_000_000) -> None:
        self._nanos = start_nanos
        self._lock = threading.Lock()

    def nano_time(self) -> int:
        with self._lock:
            return self._nanos

    def advance_seconds(self, seconds: float) -> None:
        with self._lock:
            self._nanos += int(seconds * 1_000_000_000)


class SequentialIdGenerator(IdGenerator):
    """Id generator producing 1, 2, 3, ... as trace ids"""

    def __init__(self) -> None:
        self._next = 0
        self._lock = threading.Lock()

    def generate_span_id(self) -> int:
        raise NotImplementedError

    def generate_trace_id(self) -> int:
        with self._lock:
            self._next += 1
            return self._next


@pytest.fixture(scope="function")
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="function")
def sequential_ids() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture(scope="function")
def reset_otel_initializer() -> Generator[None, None, None]:
    OtelInitializer.reset()
    yield
    OtelInitializer.reset()
