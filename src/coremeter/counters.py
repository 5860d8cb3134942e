"""Readers and parsers for the kernel's textual CPU and memory counters."""

import logging
import os

import psutil

from coremeter.errors import MalformedLine, SourceUnavailable
from coremeter.models import AGGREGATE_CORE, CoreCounterSample, MemoryCounters

logger = logging.getLogger(__name__)

CPU_PREFIX = "cpu"
# Label plus user, nice, system, idle, iowait, irq, softirq, steal, guest, guest_nice
MIN_CPU_TOKENS = 11

CPU_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)


def _parse_tick(token: str) -> int:
    """Parse a tick counter, treating garbage or negative values as 0."""
    if not (token.isascii() and token.isdigit()):
        logger.debug("Non-numeric counter token %r treated as 0", token)
        return 0
    return int(token)


def _core_index(label: str) -> int | None:
    if label == CPU_PREFIX:
        return AGGREGATE_CORE
    suffix = label[len(CPU_PREFIX):]
    if not label.startswith(CPU_PREFIX) or not (suffix.isascii() and suffix.isdigit()):
        return None
    return int(suffix)


def parse_cpu_line(line: str) -> CoreCounterSample:
    """
    Parse one ``/proc/stat`` cpu row.

    Raises:
        MalformedLine: If the label is not ``cpu``/``cpuN`` or the row has
            fewer than 11 tokens.
    """
    parts = line.split()
    if not parts:
        raise MalformedLine(line, "empty line")
    core_index = _core_index(parts[0])
    if core_index is None:
        raise MalformedLine(line, "not a cpu row label")
    if len(parts) < MIN_CPU_TOKENS:
        raise MalformedLine(line, f"expected at least {MIN_CPU_TOKENS} tokens")

    ticks = {name: _parse_tick(token) for name, token in zip(CPU_FIELDS, parts[1:])}
    return CoreCounterSample(core_index=core_index, **ticks)


def parse_cpu_counters(text: str) -> list[CoreCounterSample]:
    """Parse every valid cpu row of a stat file, in kernel order."""
    samples: list[CoreCounterSample] = []
    for line in text.splitlines():
        line = line.strip()
        if not line.startswith(CPU_PREFIX):
            continue
        try:
            samples.append(parse_cpu_line(line))
        except MalformedLine as exc:
            logger.debug("Skipping cpu row: %s", exc)
    return samples


def parse_meminfo_line(line: str) -> tuple[str, int]:
    """
    Parse a ``<Key>: <value> [kB]`` meminfo line.

    Raises:
        MalformedLine: If the line does not have that shape.
    """
    parts = line.split()
    if len(parts) not in (2, 3) or not parts[0].endswith(":"):
        raise MalformedLine(line, "expected '<key>: <value> [kB]'")
    try:
        value = int(parts[1])
    except ValueError:
        raise MalformedLine(line, "non-numeric value") from None
    return parts[0][:-1], value


def parse_memory_counters(text: str) -> MemoryCounters:
    """Parse a meminfo file into raw values keyed by field name."""
    counters: MemoryCounters = {}
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            key, value = parse_meminfo_line(line)
        except MalformedLine as exc:
            logger.debug("Skipping meminfo line: %s", exc)
            continue
        counters[key] = value
    return counters


def read_source(path: str) -> str:
    """
    Read a counter file in one go.

    Undecodable bytes become U+FFFD so only the affected token is lost.

    Raises:
        SourceUnavailable: If the file cannot be opened.
    """
    try:
        with open(path, encoding="ascii", errors="replace") as handle:
            return handle.read()
    except OSError as exc:
        raise SourceUnavailable(path, str(exc)) from exc


class CounterReader:
    """
    Reads CPU and memory counters from a procfs tree.

    An unreadable source yields an empty result rather than an error, which
    the scheduler treats as "no data this tick".
    """

    def __init__(self, procfs_root: str | None = None) -> None:
        """
        Initialize the CounterReader.

        Args:
            procfs_root: Directory holding ``stat`` and ``meminfo``.
                Defaults to psutil's procfs path.
        """
        self._procfs_root = procfs_root or psutil.PROCFS_PATH

    @property
    def procfs_root(self) -> str:
        return self._procfs_root

    @property
    def stat_path(self) -> str:
        return os.path.join(self._procfs_root, "stat")

    @property
    def meminfo_path(self) -> str:
        return os.path.join(self._procfs_root, "meminfo")

    def read_cpu_counters(self) -> list[CoreCounterSample]:
        """Read the aggregate row followed by each core row."""
        try:
            text = read_source(self.stat_path)
        except SourceUnavailable as exc:
            logger.debug("CPU counters unavailable: %s", exc)
            return []
        return parse_cpu_counters(text)

    def read_memory_counters(self) -> MemoryCounters:
        """Read raw meminfo values (KiB)."""
        try:
            text = read_source(self.meminfo_path)
        except SourceUnavailable as exc:
            logger.debug("Memory counters unavailable: %s", exc)
            return {}
        return parse_memory_counters(text)
