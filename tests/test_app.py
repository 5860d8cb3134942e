"""Tests for the coremeter application."""

import pytest

from coremeter.app import (
    CoreBars,
    CoremeterApp,
    MemoryBar,
    build_parser,
    main,
    resolve_settings,
    run_once,
)
from coremeter.config import RefreshConfig, Settings
from coremeter.models import MemorySnapshot, Snapshot

MEMORY = MemorySnapshot(
    total=1000,
    used=500,
    free=100,
    available=500,
    buffers=100,
    cached=200,
    dirty=50,
    writeback=50,
    dirty_writeback=100,
    swap_total=100,
    swap_used=50,
    swap_free=50,
    usage=0.5,
    swap_usage=0.5,
)

SNAPSHOT = Snapshot(
    total_usage=0.5,
    per_core_usage=[0.0, 1.0],
    core_indices=[0, 1],
    memory=MEMORY,
    timestamp=0.0,
)


def fake_settings(procfs, interval_ms: int = 100) -> Settings:
    return Settings(refresh=RefreshConfig(interval_ms=interval_ms), procfs_root=str(procfs.root))


def quiesce(app: CoremeterApp) -> None:
    """Stop the monitor and drop anything it already queued."""
    app._monitor.stop()
    while not app._update_queue.empty():
        app._update_queue.get_nowait()


class TestCoreBars:
    """Tests for per-core bar rendering."""

    def test_render_usage(self):
        markup = CoreBars(width=10).render_usage(SNAPSHOT)
        lines = markup.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("CPU0 ")
        assert lines[0].endswith("  0.0%")
        assert lines[1].endswith("100.0%")
        assert lines[1].count("█") == 10

    def test_render_without_cores(self):
        snapshot = Snapshot(
            total_usage=None, per_core_usage=[], core_indices=[], memory=MEMORY, timestamp=0.0
        )
        assert CoreBars().render_usage(snapshot) == "No CPU counters"


class TestMemoryBar:
    """Tests for the memory bar rendering."""

    def test_render_memory(self):
        mem_line, swap_line = MemoryBar(width=10).render_memory(MEMORY).splitlines()
        # used 5 + cached 2 + buffers 1 + dirty 1 cells
        assert mem_line.count("█") == 9
        assert swap_line.count("█") == 5

    def test_render_memory_unavailable(self):
        assert MemoryBar().render_memory(None) == "No memory counters"


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.interval is None
    assert args.procfs is None
    assert not args.once
    assert not args.debug


def test_resolve_settings():
    args = build_parser().parse_args(["--interval", "10", "--procfs", "/x", "--debug"])
    settings = resolve_settings(args, Settings())
    assert settings.refresh.interval_ms == 100
    assert settings.procfs_root == "/x"
    assert settings.debug


def test_run_once(procfs):
    label = run_once(fake_settings(procfs))
    assert label.startswith("CPU usage: 0.00%")
    assert "Memory usage: 2.86 GiB / 7.63 GiB (37.50%)" in label


def test_main_once(procfs, capsys):
    assert main(["--once", "--interval", "100", "--procfs", str(procfs.root)]) == 0
    assert "CPU usage: " in capsys.readouterr().out


def test_main_once_without_counters(tmp_path, capsys):
    assert main(["--once", "--interval", "100", "--procfs", str(tmp_path)]) == 1
    assert "no counters" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_app_creation(procfs):
    """Test CoremeterApp can be instantiated."""
    app = CoremeterApp(fake_settings(procfs))
    assert app.title == "coremeter"
    assert app._monitor is not None
    assert app._update_queue is not None
    assert app.snapshot is None


@pytest.mark.asyncio
async def test_app_compose(procfs):
    """Test CoremeterApp composes correctly."""
    app = CoremeterApp(fake_settings(procfs))
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#core-bars") is not None
        assert pilot.app.query_one("#memory-bar") is not None
        assert pilot.app.query_one("#usage-label") is not None
        assert pilot.app._monitor.is_running


@pytest.mark.asyncio
async def test_app_shows_snapshot(procfs):
    app = CoremeterApp(fake_settings(procfs))
    async with app.run_test() as pilot:
        quiesce(pilot.app)
        pilot.app.show_snapshot(SNAPSHOT)
        await pilot.pause()
        assert pilot.app.snapshot is SNAPSHOT


@pytest.mark.asyncio
async def test_app_drains_queue(procfs):
    app = CoremeterApp(fake_settings(procfs))
    async with app.run_test() as pilot:
        quiesce(pilot.app)
        pilot.app._update_queue.put(SNAPSHOT)
        pilot.app._check_for_updates()
        assert pilot.app.snapshot is SNAPSHOT
        # An empty queue keeps the previous snapshot on screen.
        pilot.app._check_for_updates()
        assert pilot.app.snapshot is SNAPSHOT


@pytest.mark.asyncio
async def test_app_exit_stops_monitor(procfs):
    """Leaving the app by any path releases the monitor thread."""
    app = CoremeterApp(fake_settings(procfs))
    async with app.run_test() as pilot:
        assert pilot.app._monitor.is_running
        pilot.app.exit()
    assert not app._monitor.is_running


@pytest.mark.asyncio
async def test_app_quit_binding(procfs):
    """Test that 'q' binding triggers quit and stops the monitor."""
    app = CoremeterApp(fake_settings(procfs))
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert not pilot.app._monitor.is_running
