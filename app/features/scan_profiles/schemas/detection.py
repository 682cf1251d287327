"""
Enterprise Detection Schemas
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class DetectionReason(str, Enum):
    url_threshold = "url_threshold"
    time_frontier = "time_frontier"


class DetectionInput(BaseModel):
    """Per-tick crawl telemetry fed to the enterprise detector."""
    discovered_urls: int = Field(ge=0)
    elapsed_minutes: float = Field(ge=0)
    # True if the crawl queue grew since the previous tick
    frontier_growing: bool

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "discovered_urls": 175,
                "elapsed_minutes": 4,
                "frontier_growing": True,
            }
        }


class DetectionResult(BaseModel):
    is_enterprise: bool
    reason: Optional[DetectionReason] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _reason_matches_flag(self):
        if self.is_enterprise != (self.reason is not None):
            raise ValueError("reason must be set if and only if is_enterprise is true")
        return self


class EnterpriseDetection(DetectionResult):
    """Detection details attached to a crawl stopped by enterprise detection."""
    estimated_pages: Optional[int] = None
    scanned_pages: int = 0
    discovered_urls: int = 0
    elapsed_minutes: float = 0.0
