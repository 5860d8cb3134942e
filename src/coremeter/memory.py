"""Memory statistics derived from a single meminfo sample."""

import logging

from coremeter.errors import MissingCounterError
from coremeter.models import MemoryCounters, MemorySnapshot

logger = logging.getLogger(__name__)

REQUIRED_COUNTERS = (
    "MemTotal",
    "MemFree",
    "MemAvailable",
    "Buffers",
    "Cached",
    "Dirty",
    "Writeback",
    "SwapTotal",
    "SwapFree",
)


def _ratio(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return min(1.0, max(0.0, part / whole))


def build_memory_snapshot(counters: MemoryCounters) -> MemorySnapshot:
    """
    Derive used, cached, dirty and swap figures from raw meminfo counters.

    Raises:
        MissingCounterError: If any of REQUIRED_COUNTERS is absent.
    """
    missing = tuple(sorted(key for key in REQUIRED_COUNTERS if key not in counters))
    if missing:
        raise MissingCounterError(missing)

    total = counters["MemTotal"]
    available = counters["MemAvailable"]
    used = total - available
    swap_total = counters["SwapTotal"]
    swap_free = counters["SwapFree"]
    swap_used = swap_total - swap_free

    return MemorySnapshot(
        total=total,
        used=used,
        free=counters["MemFree"],
        available=available,
        buffers=counters["Buffers"],
        cached=counters["Cached"],
        dirty=counters["Dirty"],
        writeback=counters["Writeback"],
        dirty_writeback=counters["Dirty"] + counters["Writeback"],
        swap_total=swap_total,
        swap_used=swap_used,
        swap_free=swap_free,
        usage=_ratio(used, total),
        swap_usage=_ratio(swap_used, swap_total),
    )


def try_build_memory_snapshot(counters: MemoryCounters) -> MemorySnapshot | None:
    """Like build_memory_snapshot, but returns None when counters are missing."""
    if not counters:
        return None
    try:
        return build_memory_snapshot(counters)
    except MissingCounterError as exc:
        logger.debug("No memory snapshot this tick: %s", exc)
        return None
