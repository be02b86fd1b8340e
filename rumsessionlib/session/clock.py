import time


class MonotonicClock:
    """
    Clock backed by a single monotonic source.

    Session lifetime and inactivity are both measured with ``time.monotonic_ns()``,
    so neither is affected by wall-clock adjustments.
    """

    def nano_time(self) -> int:
        return time.monotonic_ns()


DEFAULT_CLOCK: MonotonicClock = MonotonicClock()
