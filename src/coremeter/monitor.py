"""Periodic sampling engine for coremeter."""

import logging
import threading
import time
from collections.abc import Callable

from coremeter.config import DEFAULT_INTERVAL_MS, MIN_INTERVAL_MS
from coremeter.counters import CounterReader
from coremeter.formatting import debug_lines
from coremeter.memory import try_build_memory_snapshot
from coremeter.models import Snapshot
from coremeter.usage import UsageDeltaEngine

logger = logging.getLogger(__name__)

SnapshotConsumer = Callable[[Snapshot], object]


class SystemMonitor:
    """
    Samples CPU and memory counters on a fixed interval.

    Runs in a separate daemon thread and hands every snapshot to a consumer
    callback (``Queue.put`` works). A tick that produces no data publishes
    nothing; errors in the consumer are logged and the schedule carries on.
    """

    def __init__(
        self,
        consumer: SnapshotConsumer,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        reader: CounterReader | None = None,
        engine: UsageDeltaEngine | None = None,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            consumer: Called with each new snapshot from the monitor thread.
            interval_ms: Time between ticks in milliseconds. Default 1500.
            reader: Counter source. Defaults to the live procfs.
            engine: Usage state holder. A fresh one is created if omitted.
        """
        self._consumer = consumer
        self._interval_ms = max(MIN_INTERVAL_MS, interval_ms)
        self._reader = reader or CounterReader()
        self._engine = engine or UsageDeltaEngine()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_snapshot: Snapshot | None = None

    @property
    def interval_ms(self) -> int:
        """Get the current sampling interval."""
        return self._interval_ms

    @interval_ms.setter
    def interval_ms(self, value: int) -> None:
        """Set the sampling interval."""
        self._interval_ms = max(MIN_INTERVAL_MS, value)

    @property
    def engine(self) -> UsageDeltaEngine:
        return self._engine

    @property
    def last_snapshot(self) -> Snapshot | None:
        """The most recent non-empty snapshot, kept across empty ticks."""
        return self._last_snapshot

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SystemMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread. Safe to call more than once.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def sample(self) -> Snapshot | None:
        """
        Run one sampling pass.

        Returns:
            The new snapshot, or None when neither CPU nor memory counters
            could be read this tick.
        """
        cpu_samples = self._reader.read_cpu_counters()
        cpu = self._engine.compute(cpu_samples)
        memory = try_build_memory_snapshot(self._reader.read_memory_counters())

        snapshot = Snapshot(
            total_usage=cpu.total,
            per_core_usage=list(cpu.per_core.values()),
            core_indices=list(cpu.per_core),
            memory=memory,
            timestamp=time.time(),
        )
        if snapshot.is_empty:
            logger.debug("No counters available this tick")
            return None

        if logger.isEnabledFor(logging.DEBUG):
            for line in debug_lines(snapshot):
                logger.debug(line)
        self._last_snapshot = snapshot
        return snapshot

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        deadline = time.monotonic()
        while not self._stop_event.is_set():
            try:
                snapshot = self.sample()
                if snapshot is not None:
                    self._consumer(snapshot)
            except Exception:
                # A failed tick must not end the schedule
                logger.exception("Sampling tick failed")

            # Schedule against the previous deadline; skip any ticks we overran.
            interval = self._interval_ms / 1000
            deadline += interval
            now = time.monotonic()
            if deadline <= now:
                missed = int((now - deadline) // interval) + 1
                logger.debug("Sampling overran the interval, skipping %d tick(s)", missed)
                deadline += missed * interval
            self._stop_event.wait(timeout=deadline - now)
