"""Error and typed-failure values surfaced by the navigation engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


class InputGeometryError(ValueError):
    """Raised when source geometry is malformed and a graph cannot be built."""


@dataclass(frozen=True, slots=True)
class NotFound:
    """Base for lookups that resolve to no graph node."""

    phase: ClassVar[str] = "NotFound"

    reason: str

    def to_dict(self) -> dict[str, str]:  # noqa: D102
        return {"phase": self.phase, "error": self.reason}


@dataclass(frozen=True, slots=True)
class SnapFailed(NotFound):
    """No node could be selected for a query coordinate."""

    phase: ClassVar[str] = "SnapFailed"

    distance_m: float | None = None


@dataclass(frozen=True, slots=True)
class POIUnresolved(NotFound):
    """The requested POI key is not bound to any node."""

    phase: ClassVar[str] = "POIUnresolved"

    poi_id: str = ""


@dataclass(frozen=True, slots=True)
class NoPathFound:
    """The goal cannot be reached from the start node."""

    phase: ClassVar[str] = "NoPathFound"

    reason: str
    start: int | None = None
    goal: int | None = None

    def to_dict(self) -> dict[str, str]:  # noqa: D102
        return {"phase": self.phase, "error": self.reason}


RouteFailure = SnapFailed | POIUnresolved | NoPathFound
