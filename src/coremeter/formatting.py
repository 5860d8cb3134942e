"""Human-readable rendering of snapshots."""

from coremeter.models import Snapshot


def format_bytes(kbs: int) -> str:
    """Format a KiB count as KiB, MiB or GiB."""
    if kbs < 1024:
        return f"{kbs} KiB"
    if kbs < 1024 * 1024:
        return f"{kbs / 1024:.2f} MiB"
    return f"{kbs / 1024 / 1024:.2f} GiB"


def format_percent(ratio: float) -> str:
    """Format a 0.0 - 1.0 ratio as a 2-decimal percentage (without the sign)."""
    return f"{ratio * 100:.2f}"


def build_label(snapshot: Snapshot) -> str:
    """
    Build the multi-line summary shown next to the graphs.

    The CPU line is present once a total usage is known; the memory lines once
    a memory snapshot is available.
    """
    lines = []
    if snapshot.total_usage is not None:
        lines.append(f"CPU usage: {format_percent(snapshot.total_usage)}%")

    mem = snapshot.memory
    if mem is not None:
        lines.append(
            f"Memory usage: {format_bytes(mem.used)} / {format_bytes(mem.total)} "
            f"({format_percent(mem.usage)}%)"
        )
        lines.append(f"Cached: {format_bytes(mem.cached)}")
        lines.append(f"Buffers: {format_bytes(mem.buffers)}")
        lines.append(f"Dirty / Writeback: {format_bytes(mem.dirty_writeback)}")
        lines.append(
            f"Swap: {format_bytes(mem.swap_used)} / {format_bytes(mem.swap_total)} "
            f"({format_percent(mem.swap_usage)}%)"
        )
    return "\n".join(lines)


def debug_lines(snapshot: Snapshot) -> list[str]:
    """Per-core usage lines for diagnostic logging."""
    return [
        f"CPU Core {core} usage: {usage:.2f}"
        for core, usage in zip(snapshot.core_indices, snapshot.per_core_usage)
    ]
