"""Configuration values for coremeter."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1500
MIN_INTERVAL_MS = 100


@dataclass(frozen=True)
class RefreshConfig:
    """Sampling cadence."""

    interval_ms: int = DEFAULT_INTERVAL_MS


@dataclass(frozen=True)
class GraphConfig:
    """Graph sizing, in terminal cells (presentation only)."""

    cpu_width: int = 48
    memory_width: int = 40


@dataclass(frozen=True)
class Settings:
    """Everything the command line and environment can override."""

    refresh: RefreshConfig = RefreshConfig()
    graphs: GraphConfig = GraphConfig()
    procfs_root: str | None = None  # None means psutil.PROCFS_PATH
    debug: bool = False


CORE_COLORS = (
    "#E03D45",  # grapefruit
    "#F18A00",  # tangerine
    "#F3FF72",  # pastel yellow
    "#EAF6B7",  # cream
    "#00AA1F",  # green
    "#1564C0",  # cornflower blue
    "#9C42BA",  # purply
    "#F85C51",  # coral
    "#D3E379",  # greenish beige
    "#E3E3E3",  # pale grey
    "#FF8BA0",  # rose pink
    "#54BD6C",  # dark mint
    "#5BD8D2",  # topaz
    "#F2D868",  # pale gold
    "#134D30",  # evergreen
    "#33008E",  # indigo
)
COLOR_MEM_USED = "#E3E3E3"
COLOR_MEM_CACHED = "#FFCB85"
COLOR_MEM_BUFFERS = "#767676"
COLOR_MEM_DIRTY = "#E03D45"
COLOR_SWAP = "#1F4130"


def core_color(position: int) -> str:
    """Colour for the core drawn at ``position``, cycling through CORE_COLORS."""
    return CORE_COLORS[position % len(CORE_COLORS)]


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(env: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from COREMETER_* environment variables.

    Invalid values are logged and replaced by their defaults.
    """
    if env is None:
        env = os.environ

    interval_ms = DEFAULT_INTERVAL_MS
    raw_interval = env.get("COREMETER_INTERVAL_MS")
    if raw_interval:
        try:
            interval_ms = int(raw_interval)
        except ValueError:
            logger.warning("Ignoring invalid COREMETER_INTERVAL_MS=%r", raw_interval)
        else:
            if interval_ms < MIN_INTERVAL_MS:
                logger.warning(
                    "COREMETER_INTERVAL_MS=%d is below %d ms, using %d",
                    interval_ms,
                    MIN_INTERVAL_MS,
                    MIN_INTERVAL_MS,
                )
                interval_ms = MIN_INTERVAL_MS

    return Settings(
        refresh=RefreshConfig(interval_ms=interval_ms),
        procfs_root=env.get("COREMETER_PROCFS") or None,
        debug=_env_flag(env.get("COREMETER_DEBUG", "")),
    )
