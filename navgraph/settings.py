from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .logger import LoggingMode

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ASSETS_DIR = PROJECT_ROOT / "assets"
DEFAULT_GEOMETRY_DIR = ASSETS_DIR

# Decimal degrees kept when deduplicating coordinates (~11 cm).
DEFAULT_PRECISION = 6
# Upper bound on settled nodes per search.
DEFAULT_MAX_EXPANSIONS = 100_000


@dataclass(frozen=True, slots=True)
class RoutingConfig:
    """Tunable policies for graph building and query serving.

    Parameters
    ----------
    precision:
        Decimal places used for the coordinate deduplication key.
    max_snap_distance_m:
        Reject snaps farther than this many meters from any node. `None`
        always snaps to the nearest node regardless of distance.
    closest_fallback:
        When the goal is unreachable, return the path to the reachable node
        closest to the goal instead of failing.
    max_expansions:
        Stop a search after settling this many nodes. `None` disables the cap.
    logging_mode:
        Verbosity of the routing pipeline logger.

    """

    precision: int = DEFAULT_PRECISION
    max_snap_distance_m: float | None = None
    closest_fallback: bool = False
    max_expansions: int | None = DEFAULT_MAX_EXPANSIONS
    logging_mode: LoggingMode = LoggingMode.NONE

    def __post_init__(self) -> None:
        if self.precision < 0:
            msg = f"precision must be non-negative, got {self.precision}."
            raise ValueError(msg)
        if self.max_snap_distance_m is not None and self.max_snap_distance_m < 0:
            msg = "max_snap_distance_m must be non-negative or None."
            raise ValueError(msg)
        if self.max_expansions is not None and self.max_expansions < 1:
            msg = "max_expansions must be positive or None."
            raise ValueError(msg)
        object.__setattr__(
            self,
            "logging_mode",
            LoggingMode.from_value(self.logging_mode),
        )
