"""
Response models for API endpoints.

TargetGroup is the Prometheus HTTP service discovery wire format; ScrapeConfig
mirrors the Prometheus scrape_config block.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class TargetGroup(BaseModel):
    """One entry of a Prometheus HTTP SD response."""
    targets: List[str]
    labels: Dict[str, str] = Field(default_factory=dict)


class StaticConfig(BaseModel):
    """Static targets of a scrape configuration."""
    targets: List[str]
    labels: Dict[str, str] = Field(default_factory=dict)


class RelabelConfig(BaseModel):
    """Relabeling rule of a scrape configuration."""
    source_labels: List[str] = Field(default_factory=list)
    target_label: str
    regex: str
    replacement: str


class ScrapeConfig(BaseModel):
    """A Prometheus scrape configuration."""
    job_name: str
    static_configs: List[StaticConfig] = Field(default_factory=list)
    metrics_path: str
    scrape_interval: str
    scrape_timeout: str
    scheme: str
    relabel_configs: Optional[List[RelabelConfig]] = None

    def to_wire(self) -> dict:
        """Serialize for JSON responses, omitting relabel_configs when empty."""
        data = self.model_dump()
        if not data.get("relabel_configs"):
            data.pop("relabel_configs", None)
        return data


class HealthStatus(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    error: Optional[str] = None
