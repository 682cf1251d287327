"""
Scan Profile Schemas

Profile identifiers, budgets and the request/response models of the
profile selection endpoints.
"""
from datetime import timedelta
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field, computed_field


class ScanProfile(str, Enum):
    """Crawl budget preset, selected once per scan."""
    QUICK = "QUICK"
    SMART = "SMART"
    DEEP = "DEEP"


class UserTier(str, Enum):
    free = "free"
    pro = "pro"
    enterprise = "enterprise"


class CrawlStrategy(str, Enum):
    complete = "complete"                    # Exhaust all URLs
    priority_sampling = "priority-sampling"  # Sample based on priority
    comprehensive = "comprehensive"          # Full coverage with prioritization


class PagePriority(str, Enum):
    """Page categories for crawl queue ordering, highest first in the default order."""
    homepage = "homepage"
    product = "product"
    navigation = "navigation"
    content = "content"
    utility = "utility"


class ProfileBudget(BaseModel):
    """Budget limits and strategy for one scan profile. Never mutated at runtime."""
    max_urls: int = Field(gt=0)
    max_duration: timedelta
    strategy: CrawlStrategy
    sitemap_first: bool
    priority_order: Tuple[PagePriority, ...]
    enterprise_detection_threshold: Optional[int] = None
    resumable: Optional[bool] = None
    checkpoint_interval: Optional[int] = None

    class Config:
        frozen = True

    @computed_field
    @property
    def max_duration_ms(self) -> int:
        return int(self.max_duration.total_seconds() * 1000)


class ScanFeatureFlags(BaseModel):
    """
    Rollout switches for profile budgeting and enterprise gating.

    Passed explicitly into the catalog and tracker; build one from
    settings at the edge with ScanFeatureFlags.from_settings().
    """
    scan_profiles: bool = True
    enterprise_gating: bool = True

    class Config:
        frozen = True

    @classmethod
    def from_settings(cls, settings) -> "ScanFeatureFlags":
        return cls(
            scan_profiles=settings.FEATURE_SCAN_PROFILES,
            enterprise_gating=settings.FEATURE_ENTERPRISE_GATING,
        )


class CrawlOptions(BaseModel):
    """Parameters handed to the crawl engine for one scan."""
    max_pages: int
    max_depth: int
    timeout_ms: int
    same_origin_only: bool = True
    budget: Optional[ProfileBudget] = None
    profile: Optional[ScanProfile] = None


# ============================================================================
# API Schemas
# ============================================================================

class ProfileSelectionRequest(BaseModel):
    """Request to resolve the scan profile for a user and site."""
    user_tier: UserTier
    sitemap_url_count: Optional[int] = Field(default=None, ge=0)
    user_override: Optional[ScanProfile] = None

    class Config:
        json_schema_extra = {
            "example": {
                "user_tier": "pro",
                "sitemap_url_count": 120,
            }
        }


class ProfileSelectionResponse(BaseModel):
    profile: ScanProfile
    budget: ProfileBudget
    crawl_options: CrawlOptions


class ProfileAccessResponse(BaseModel):
    profile: ScanProfile
    user_tier: UserTier
    allowed: bool


class ProfileBudgetsResponse(BaseModel):
    budgets: Dict[ScanProfile, ProfileBudget]
