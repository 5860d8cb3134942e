"""coremeter - Textual front end consuming monitor snapshots."""

import argparse
import logging
import sys
import time
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Footer, Static

from coremeter.config import (
    COLOR_MEM_BUFFERS,
    COLOR_MEM_CACHED,
    COLOR_MEM_DIRTY,
    COLOR_MEM_USED,
    COLOR_SWAP,
    MIN_INTERVAL_MS,
    GraphConfig,
    RefreshConfig,
    Settings,
    core_color,
    load_config,
)
from coremeter.counters import CounterReader
from coremeter.formatting import build_label
from coremeter.models import MemorySnapshot, Snapshot
from coremeter.monitor import SystemMonitor

EMPTY_CELL = "[dim]░[/dim]"


def _cells(ratio: float, width: int) -> int:
    return min(width, max(0, int(round(ratio * width))))


class CoreBars(Static):
    """One usage bar per core, coloured per core position."""

    DEFAULT_CSS = """
    CoreBars {
        width: 1fr;
        padding-right: 2;
    }
    """

    def __init__(self, width: int = GraphConfig.cpu_width, **kwargs) -> None:
        super().__init__("Loading CPU info...", **kwargs)
        self._bar_width = width

    def render_usage(self, snapshot: Snapshot) -> str:
        """Build the markup for every per-core bar."""
        if not snapshot.per_core_usage:
            return "No CPU counters"
        lines = []
        for position, (core, usage) in enumerate(
            zip(snapshot.core_indices, snapshot.per_core_usage)
        ):
            filled = _cells(usage, self._bar_width)
            color = core_color(position)
            bar = f"[{color}]" + "█" * filled + "[/]" + EMPTY_CELL * (self._bar_width - filled)
            lines.append(f"CPU{core:<2} \\[{bar}] {usage * 100:5.1f}%")
        return "\n".join(lines)

    def update_usage(self, snapshot: Snapshot) -> None:
        self.update(self.render_usage(snapshot))


class MemoryBar(Static):
    """Stacked used/cached/buffers/dirty bar plus a swap bar."""

    DEFAULT_CSS = """
    MemoryBar {
        width: 1fr;
        padding-left: 2;
    }
    """

    def __init__(self, width: int = GraphConfig.memory_width, **kwargs) -> None:
        super().__init__("Loading memory info...", **kwargs)
        self._bar_width = width

    def render_memory(self, memory: MemorySnapshot | None) -> str:
        """Build the markup for the memory and swap bars."""
        if memory is None or memory.total <= 0:
            return "No memory counters"

        segments = (
            (COLOR_MEM_USED, memory.used),
            (COLOR_MEM_CACHED, memory.cached),
            (COLOR_MEM_BUFFERS, memory.buffers),
            (COLOR_MEM_DIRTY, memory.dirty_writeback),
        )
        remaining = self._bar_width
        parts = []
        for color, value in segments:
            cells = min(remaining, _cells(value / memory.total, self._bar_width))
            if cells:
                parts.append(f"[{color}]" + "█" * cells + "[/]")
            remaining -= cells
        mem_bar = "".join(parts) + EMPTY_CELL * remaining

        swap_cells = _cells(memory.swap_usage, self._bar_width)
        swap_bar = (
            f"[{COLOR_SWAP}]" + "█" * swap_cells + "[/]"
            + EMPTY_CELL * (self._bar_width - swap_cells)
        )
        return f"Mem\\[{mem_bar}]\nSwp\\[{swap_bar}]"

    def update_memory(self, memory: MemorySnapshot | None) -> None:
        self.update(self.render_memory(memory))


class UsageLabel(Static):
    """Multi-line text summary of the latest snapshot."""

    DEFAULT_CSS = """
    UsageLabel {
        padding: 1;
        background: $surface;
    }
    """

    def update_label(self, snapshot: Snapshot) -> None:
        self.update(build_label(snapshot))


class CoremeterApp(App):
    """Main coremeter application."""

    TITLE = "coremeter"
    SUB_TITLE = "Per-core CPU and memory usage"

    CSS = """
    Screen {
        layout: vertical;
    }

    #graphs {
        height: auto;
        padding: 1;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the CoremeterApp."""
        super().__init__()
        self._settings = settings or Settings()
        self._update_queue: Queue[Snapshot] = Queue()
        self._monitor = SystemMonitor(
            self._update_queue.put,
            interval_ms=self._settings.refresh.interval_ms,
            reader=CounterReader(self._settings.procfs_root),
        )
        self._snapshot: Snapshot | None = None

    @property
    def snapshot(self) -> Snapshot | None:
        """The snapshot currently on screen."""
        return self._snapshot

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        graphs = self._settings.graphs
        yield Horizontal(
            CoreBars(width=graphs.cpu_width, id="core-bars"),
            MemoryBar(width=graphs.memory_width, id="memory-bar"),
            id="graphs",
        )
        yield UsageLabel("", id="usage-label")
        yield Footer()

    def on_mount(self) -> None:
        """Start the system monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def on_unmount(self) -> None:
        """Stop the system monitor on every exit path."""
        self._monitor.stop()

    def _check_for_updates(self) -> None:
        """Drain the queue and show the most recent snapshot, if any."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        # Nothing new: the previous snapshot stays on screen.
        if snapshot is not None:
            self.show_snapshot(snapshot)

    def show_snapshot(self, snapshot: Snapshot) -> None:
        """Update every widget from one snapshot."""
        self._snapshot = snapshot
        self.query_one("#core-bars", CoreBars).update_usage(snapshot)
        self.query_one("#memory-bar", MemoryBar).update_memory(snapshot.memory)
        self.query_one("#usage-label", UsageLabel).update_label(snapshot)

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coremeter",
        description="Show per-core CPU usage and memory statistics.",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        metavar="MS",
        help="refresh interval in milliseconds (default: 1500)",
    )
    parser.add_argument("--procfs", default=None, help="procfs root to read counters from")
    parser.add_argument(
        "--once",
        action="store_true",
        help="take two samples one interval apart, print the summary and exit",
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings) -> Settings:
    """Apply command line overrides on top of environment settings."""
    interval_ms = base.refresh.interval_ms
    if args.interval is not None:
        interval_ms = max(MIN_INTERVAL_MS, args.interval)
    return Settings(
        refresh=RefreshConfig(interval_ms=interval_ms),
        graphs=base.graphs,
        procfs_root=args.procfs or base.procfs_root,
        debug=args.debug or base.debug,
    )


def run_once(settings: Settings) -> str:
    """Sample twice, one interval apart, and return the summary label."""
    monitor = SystemMonitor(
        lambda snapshot: None,
        interval_ms=settings.refresh.interval_ms,
        reader=CounterReader(settings.procfs_root),
    )
    monitor.sample()
    time.sleep(monitor.interval_ms / 1000)
    monitor.sample()
    snapshot = monitor.last_snapshot
    return build_label(snapshot) if snapshot is not None else ""


def main(argv: list[str] | None = None) -> int:
    """Entry point for the coremeter application."""
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args, load_config())
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.once:
        label = run_once(settings)
        if not label:
            print("coremeter: no counters available", file=sys.stderr)
            return 1
        print(label)
        return 0

    CoremeterApp(settings).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
