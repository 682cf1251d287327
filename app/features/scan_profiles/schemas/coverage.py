"""
Coverage Schemas

The coverage summary persisted at the end of a crawl, and the partial
results notice shown to users when a crawl was cut short.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.features.scan_profiles.schemas.crawl import StopReason
from app.features.scan_profiles.schemas.detection import EnterpriseDetection
from app.features.scan_profiles.schemas.profile import ScanProfile


class CoverageSummary(BaseModel):
    profile: ScanProfile
    scanned_urls: int
    estimated_total_urls: Optional[int] = None
    coverage_percent: int = Field(ge=0, le=100)
    reached_limit: bool
    stop_reason: StopReason
    enterprise_detection: Optional[EnterpriseDetection] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    pages_crawled: int
    discovered_urls: int

    class Config:
        frozen = True
        from_attributes = True


class GatingNotice(BaseModel):
    """Banner copy for scans that show partial results."""
    title: str
    body: str
    cta_label: str
    upgrade_url: str


class CoverageResponse(BaseModel):
    scan_id: str
    summary: CoverageSummary
    gating_notice: Optional[GatingNotice] = None
