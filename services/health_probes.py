"""Health probes for operational monitoring."""

from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import Any, Iterable, Mapping

from core.ops_models import HealthSnapshot, HealthStatus


@dataclass(frozen=True)
class HealthProbeResult:
    """Result of a single subsystem health probe."""

    name: str
    status: HealthStatus
    summary: str
    details: Mapping[str, str | float | int] = field(default_factory=dict)


def probe_pipeline(status: Mapping[str, Any] | None) -> HealthProbeResult:
    """Probe the detection pipeline actor from its runtime status."""

    if not status:
        return HealthProbeResult(
            name="pipeline",
            status=HealthStatus.DEGRADED,
            summary="Pipeline not started",
        )

    loop_alive = bool(status.get("loop_alive"))
    details: dict[str, str | float | int] = {
        "gate_state": str(status.get("gate_state", "unknown")),
        "announcements": int(status.get("announcements", 0)),
        "detections_received": int(status.get("detections_received", 0)),
        "commands_rejected": int(status.get("commands_rejected", 0)),
        "queue_dropped": int(status.get("queue_dropped", 0)),
        "total": int(status.get("total", 0)),
    }
    if not loop_alive:
        return HealthProbeResult(
            name="pipeline",
            status=HealthStatus.FAILING,
            summary="Pipeline loop stopped",
            details=details,
        )
    if details["queue_dropped"]:
        return HealthProbeResult(
            name="pipeline",
            status=HealthStatus.DEGRADED,
            summary="Pipeline dropping detection events",
            details=details,
        )
    return HealthProbeResult(
        name="pipeline",
        status=HealthStatus.OK,
        summary=f"Pipeline {details['gate_state']}",
        details=details,
    )


def probe_analyzer(status: Mapping[str, Any] | None) -> HealthProbeResult:
    """Probe the frame analyzer worker from its runtime status."""

    if not status:
        return HealthProbeResult(
            name="analyzer",
            status=HealthStatus.DEGRADED,
            summary="Frame analyzer not started",
        )

    loop_alive = bool(status.get("loop_alive"))
    analyzed = int(status.get("frames_analyzed", 0))
    failures = int(status.get("detector_failures", 0))
    details: dict[str, str | float | int] = {
        "loop_alive": int(loop_alive),
        "frames_analyzed": analyzed,
        "frames_dropped": int(status.get("frames_dropped", 0)),
        "detector_failures": failures,
        "last_inference_ms": int(status.get("last_inference_ms", 0)),
    }
    if not loop_alive:
        health = HealthStatus.FAILING
        summary = "Frame analyzer loop inactive"
    elif failures and failures >= analyzed:
        health = HealthStatus.FAILING
        summary = "Detector failing on every frame"
    elif failures:
        health = HealthStatus.DEGRADED
        summary = "Detector failing intermittently"
    else:
        health = HealthStatus.OK
        summary = "Frame analyzer active"
    return HealthProbeResult(name="analyzer", status=health, summary=summary, details=details)


def probe_speech(status: Mapping[str, Any] | None) -> HealthProbeResult:
    """Probe speech output from the speech player status."""

    if not status:
        return HealthProbeResult(
            name="speech",
            status=HealthStatus.DEGRADED,
            summary="Speech player not initialized",
        )

    available = bool(status.get("available"))
    failures = int(status.get("failures", 0))
    details: dict[str, str | float | int] = {
        "available": int(available),
        "spoken": int(status.get("spoken", 0)),
        "failures": failures,
        "queued": int(status.get("queued", 0)),
    }
    if not available:
        health = HealthStatus.FAILING
        summary = "Speech engine unavailable"
    elif failures:
        health = HealthStatus.DEGRADED
        summary = "Speech engine reported failures"
    else:
        health = HealthStatus.OK
        summary = "Speech output ready"
    return HealthProbeResult(name="speech", status=health, summary=summary, details=details)


def summarize(results: Iterable[HealthProbeResult], timestamp: float | None = None) -> HealthSnapshot:
    """Fold probe results into one snapshot using the worst status."""

    results = list(results)
    if any(result.status is HealthStatus.FAILING for result in results):
        overall = HealthStatus.FAILING
    elif any(result.status is HealthStatus.DEGRADED for result in results):
        overall = HealthStatus.DEGRADED
    else:
        overall = HealthStatus.OK
    summary = "; ".join(f"{result.name}: {result.summary}" for result in results)
    return HealthSnapshot(
        timestamp=time.time() if timestamp is None else timestamp,
        status=overall,
        summary=summary,
        details={result.name: result.status.value for result in results},
    )
