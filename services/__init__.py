"""Runtime services: subsystem health probes."""

from services.health_probes import HealthProbeResult, summarize

__all__ = ["HealthProbeResult", "summarize"]
