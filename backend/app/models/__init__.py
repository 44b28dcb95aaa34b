"""Pydantic models for API responses."""

from .responses import TargetGroup, StaticConfig, RelabelConfig, ScrapeConfig, HealthStatus

__all__ = ["TargetGroup", "StaticConfig", "RelabelConfig", "ScrapeConfig", "HealthStatus"]
