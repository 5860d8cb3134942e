"""Shared fixtures: a fake procfs tree the reader can be pointed at."""

from pathlib import Path

import pytest

MEMINFO = """\
MemTotal:        8000000 kB
MemFree:         2000000 kB
MemAvailable:    5000000 kB
Buffers:          100000 kB
Cached:          2500000 kB
SwapCached:            0 kB
Dirty:              1200 kB
Writeback:           300 kB
SwapTotal:       2000000 kB
SwapFree:        1500000 kB
HugePages_Total:       0
"""


def stat_text(rows: list[tuple[str, list[int]]]) -> str:
    """Render cpu rows plus the usual non-cpu trailer of a stat file."""
    lines = [" ".join([label, *map(str, ticks)]) for label, ticks in rows]
    lines += ["intr 1234 0 0", "ctxt 98765", "btime 1700000000", "processes 4242"]
    return "\n".join(lines) + "\n"


class FakeProcfs:
    """Writable stand-in for /proc holding stat and meminfo."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write_stat(self, rows: list[tuple[str, list[int]]]) -> None:
        (self.root / "stat").write_text(stat_text(rows))

    def write_meminfo(self, text: str = MEMINFO) -> None:
        (self.root / "meminfo").write_text(text)

    def remove(self, name: str) -> None:
        (self.root / name).unlink()


@pytest.fixture
def procfs(tmp_path: Path) -> FakeProcfs:
    fake = FakeProcfs(tmp_path)
    fake.write_stat(
        [
            ("cpu", [100, 0, 50, 850, 0, 0, 0, 0, 0, 0]),
            ("cpu0", [50, 0, 25, 425, 0, 0, 0, 0, 0, 0]),
            ("cpu1", [50, 0, 25, 425, 0, 0, 0, 0, 0, 0]),
        ]
    )
    fake.write_meminfo()
    return fake
