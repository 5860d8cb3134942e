"""CPU usage delta computation from cumulative tick counters."""

import logging
import threading
from collections.abc import Iterable

from coremeter.models import CoreCounterSample, CoreUsageState, CpuUsage

logger = logging.getLogger(__name__)


class UsageDeltaEngine:
    """
    Converts successive cumulative tick samples into usage ratios.

    Keeps the last busy/total tick counts per core index. State is created the
    first time a core index is seen and is never dropped: a core that goes
    offline simply stops being updated until it comes back.
    """

    def __init__(self) -> None:
        self._state: dict[int, CoreUsageState] = {}
        self._lock = threading.Lock()

    @property
    def known_cores(self) -> list[int]:
        """Core indices with retained state, including stale ones."""
        with self._lock:
            return sorted(self._state)

    def state_for(self, core_index: int) -> CoreUsageState | None:
        with self._lock:
            state = self._state.get(core_index)
            if state is None:
                return None
            return CoreUsageState(state.last_busy_ticks, state.last_total_ticks)

    def reset(self) -> None:
        """Forget every baseline; the next sample of each core yields 0."""
        with self._lock:
            self._state.clear()

    def update(self, sample: CoreCounterSample) -> float:
        """
        Compute the usage of one core since its previous sample.

        The first observation of a core index has no baseline and returns 0.
        The sample always becomes the new baseline, even when the counters
        went backwards.

        Returns:
            Usage ratio clamped to 0.0 - 1.0.
        """
        with self._lock:
            return self._update(sample)

    def compute(self, samples: Iterable[CoreCounterSample]) -> CpuUsage:
        """Feed one tick of samples through the engine atomically."""
        total: float | None = None
        per_core: dict[int, float] = {}
        with self._lock:
            for sample in samples:
                usage = self._update(sample)
                if sample.is_aggregate:
                    total = usage
                else:
                    per_core[sample.core_index] = usage
        return CpuUsage(total=total, per_core=per_core)

    def _update(self, sample: CoreCounterSample) -> float:
        busy_time = sample.busy_time
        total_time = sample.total_time
        previous = self._state.get(sample.core_index)

        if previous is None:
            self._state[sample.core_index] = CoreUsageState(busy_time, total_time)
            return 0.0

        busy_delta = busy_time - previous.last_busy_ticks
        total_delta = total_time - previous.last_total_ticks
        previous.last_busy_ticks = busy_time
        previous.last_total_ticks = total_time

        if busy_delta < 0 or total_delta < 0:
            # Counter reset or wraparound: the new sample is the baseline now.
            logger.debug(
                "Counters went backwards on core %d (busy %d, total %d)",
                sample.core_index,
                busy_delta,
                total_delta,
            )
        if total_delta <= 0:
            return 0.0
        return min(1.0, max(0.0, busy_delta / total_delta))
