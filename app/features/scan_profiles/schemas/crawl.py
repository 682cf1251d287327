"""
Crawl Budget Schemas

Progress events consumed by the budget tracker and the state it owns.
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, HttpUrl, computed_field

from app.features.scan_profiles.schemas.detection import EnterpriseDetection
from app.features.scan_profiles.schemas.profile import ProfileBudget, ScanProfile, UserTier


class StopReason(str, Enum):
    """Why a crawl stopped, listed in evaluation priority order."""
    enterprise_detected = "enterprise_detected"
    url_limit = "url_limit"
    time_limit = "time_limit"
    complete = "complete"
    # Forced by an external caller for other resource reasons
    budget = "budget"


LIMIT_STOP_REASONS = frozenset(
    {StopReason.url_limit, StopReason.time_limit, StopReason.enterprise_detected}
)


class TrackerStatus(str, Enum):
    running = "running"
    stopped = "stopped"


class CrawlProgressEvent(BaseModel):
    """
    One logical tick reported by the crawl loop.

    discovered_urls is the running total of URLs seen so far, crawled_delta
    the pages crawled since the previous tick. elapsed_seconds is optional
    wall-clock time since the scan started; the tracker reads its own clock
    when it is omitted. Range checks happen in the tracker so that bad
    events surface as ValidationError.
    """
    discovered_urls: int
    crawled_delta: int
    frontier_size_now: int
    elapsed_seconds: Optional[float] = None


class CrawlBudgetState(BaseModel):
    """Budget state of one scan. Mutated only by its CrawlBudgetTracker."""
    profile: ScanProfile
    budget: ProfileBudget
    urls_crawled: int = 0
    urls_discovered: int = 0
    started_at: datetime
    elapsed: timedelta = timedelta(0)
    frontier_history: List[int] = Field(default_factory=list)
    stopped: bool = False
    stop_reason: Optional[StopReason] = None
    enterprise_detection: Optional[EnterpriseDetection] = None
    ended_at: Optional[datetime] = None
    sitemap_url_count: Optional[int] = None
    estimated_total_urls: Optional[int] = None

    @computed_field
    @property
    def status(self) -> TrackerStatus:
        return TrackerStatus.stopped if self.stopped else TrackerStatus.running

    @property
    def elapsed_minutes(self) -> float:
        return self.elapsed.total_seconds() / 60


# ============================================================================
# API Schemas
# ============================================================================

class CrawlLaunchRequest(BaseModel):
    """Request to run a budgeted crawl in the background."""
    url: HttpUrl
    user_tier: UserTier
    user_override: Optional[ScanProfile] = None
    site_id: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com",
                "user_tier": "free",
            }
        }


class CrawlLaunchResponse(BaseModel):
    scan_id: str
    task_id: str
    status: str
