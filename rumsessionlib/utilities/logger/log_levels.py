"""Per-source log levels.

Every module sets its logger level from ``SRC_LOG_LEVELS[<source>]``. A source level
is read from ``<SOURCE>_LOG_LEVEL`` and falls back to the global ``LOG_LEVEL``.
"""

import logging
import os

_VALID_LEVELS: frozenset[str] = frozenset(logging.getLevelNamesMapping().keys())


def _level_or_default(value: str, default: str) -> str:
    value = value.strip().upper()
    return value if value in _VALID_LEVELS else default


GLOBAL_LOG_LEVEL: str = _level_or_default(os.environ.get("LOG_LEVEL", "INFO"), "INFO")

log_sources: list[str] = [
    "SESSION",
    "SPAN_FILTER",
    "OPEN_TELEMETRY",
    "INITIALIZATION",
]

SRC_LOG_LEVELS: dict[str, str] = {}

for source in log_sources:
    SRC_LOG_LEVELS[source] = _level_or_default(
        os.environ.get(f"{source}_LOG_LEVEL", ""), GLOBAL_LOG_LEVEL
    )
