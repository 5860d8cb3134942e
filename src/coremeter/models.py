"""Data models for coremeter."""

from dataclasses import dataclass, field

# Core index of the aggregate "cpu" row, distinct from any physical core.
AGGREGATE_CORE = -1

MemoryCounters = dict[str, int]


@dataclass(slots=True, frozen=True)
class CoreCounterSample:
    """Cumulative tick counters for one cpu row at one poll instant."""

    core_index: int
    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0
    guest_nice: int = 0

    @property
    def is_aggregate(self) -> bool:
        return self.core_index == AGGREGATE_CORE

    @property
    def busy_time(self) -> int:
        """Ticks spent doing work (everything except idle and iowait)."""
        return (
            self.user
            + self.nice
            + self.system
            + self.irq
            + self.softirq
            + self.steal
            + self.guest
            + self.guest_nice
        )

    @property
    def total_time(self) -> int:
        return self.busy_time + self.idle + self.iowait


@dataclass(slots=True)
class CoreUsageState:
    """Last observed counters for one core index."""

    last_busy_ticks: int
    last_total_ticks: int


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    """Memory statistics derived from one meminfo sample (values in KiB)."""

    total: int
    used: int
    free: int
    available: int
    buffers: int
    cached: int
    dirty: int
    writeback: int
    dirty_writeback: int
    swap_total: int
    swap_used: int
    swap_free: int
    usage: float  # 0.0 - 1.0
    swap_usage: float  # 0.0 - 1.0


@dataclass(slots=True, frozen=True)
class CpuUsage:
    """Usage ratios computed from one tick of cpu counters."""

    total: float | None
    per_core: dict[int, float] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Snapshot:
    """One fully-derived reading produced by a single scheduler tick."""

    total_usage: float | None
    per_core_usage: list[float]
    core_indices: list[int]
    memory: MemorySnapshot | None
    timestamp: float

    @property
    def is_empty(self) -> bool:
        return self.total_usage is None and not self.per_core_usage and self.memory is None
