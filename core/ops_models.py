"""Models for runtime health tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class HealthStatus(str, Enum):
    """Overall health classification for the runtime."""

    OK = "ok"
    DEGRADED = "degraded"
    FAILING = "failing"


@dataclass(frozen=True)
class HealthSnapshot:
    """Aggregated health of all probed subsystems."""

    timestamp: float
    status: HealthStatus
    summary: str
    details: Mapping[str, str | float | int] = field(default_factory=dict)
