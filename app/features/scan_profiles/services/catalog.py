"""
Profile Catalog

Static budgets for QUICK/SMART/DEEP and the crawl options derived from them.
"""
from datetime import timedelta
from typing import Dict, Optional, Union

from app.features.scan_profiles.schemas.profile import (
    CrawlOptions,
    CrawlStrategy,
    PagePriority,
    ProfileBudget,
    ScanFeatureFlags,
    ScanProfile,
)
from app.features.scan_profiles.services.detection import URL_THRESHOLD

# Per-page URL discovery cap for budgeted crawls
PER_PAGE_URL_CAP = 30

# Frontier is trimmed to max_urls * FRONTIER_CAP_MULTIPLIER
FRONTIER_CAP_MULTIPLIER = 2

# Depth used for every budgeted profile; the URL and time budgets do the limiting
BUDGETED_MAX_DEPTH = 2

PROFILE_BUDGETS: Dict[ScanProfile, ProfileBudget] = {
    ScanProfile.QUICK: ProfileBudget(
        max_urls=50,
        max_duration=timedelta(minutes=5),
        strategy=CrawlStrategy.complete,
        sitemap_first=True,
        # QUICK crawls navigation before product pages
        priority_order=(
            PagePriority.homepage,
            PagePriority.navigation,
            PagePriority.product,
            PagePriority.content,
            PagePriority.utility,
        ),
    ),
    ScanProfile.SMART: ProfileBudget(
        max_urls=150,
        max_duration=timedelta(minutes=10),
        strategy=CrawlStrategy.priority_sampling,
        sitemap_first=True,
        priority_order=(
            PagePriority.homepage,
            PagePriority.product,
            PagePriority.navigation,
            PagePriority.content,
            PagePriority.utility,
        ),
        enterprise_detection_threshold=URL_THRESHOLD,
    ),
    ScanProfile.DEEP: ProfileBudget(
        max_urls=1000,
        max_duration=timedelta(minutes=30),
        strategy=CrawlStrategy.comprehensive,
        sitemap_first=True,
        priority_order=(
            PagePriority.homepage,
            PagePriority.product,
            PagePriority.navigation,
            PagePriority.content,
            PagePriority.utility,
        ),
        resumable=True,
        checkpoint_interval=100,
    ),
}

# Pre-budget presets, still served when scan profiles are switched off
LEGACY_PROFILE_CONFIGS = {
    "quick": {"max_pages": 1, "max_depth": 0, "timeout_ms": 60_000},
    "standard": {"max_pages": 3, "max_depth": 1, "timeout_ms": 120_000},
    "deep": {"max_pages": 5, "max_depth": 2, "timeout_ms": 180_000},
}


def get_profile_budget(profile: ScanProfile) -> ProfileBudget:
    """
    Get budget configuration for a profile.

    The lookup is keyed by the ScanProfile enum. Coerce untrusted strings with
    ScanProfile(value) first; an unknown name fails there with ValueError.
    """
    return PROFILE_BUDGETS[ScanProfile(profile)]


def frontier_cap(budget: ProfileBudget) -> int:
    return budget.max_urls * FRONTIER_CAP_MULTIPLIER


def get_scan_profile_config(
    profile: Union[ScanProfile, str],
    flags: Optional[ScanFeatureFlags] = None,
) -> CrawlOptions:
    """
    Crawl options for a profile.

    Upper-case profiles use their budget while scan profiles are enabled.
    Lower-case legacy names ("quick", "standard", "deep"), and any profile
    while the flag is off, get the legacy presets without a budget.
    """
    flags = flags or ScanFeatureFlags()
    name = profile.value if isinstance(profile, ScanProfile) else str(profile)

    if flags.scan_profiles and name in ScanProfile.__members__:
        budget = PROFILE_BUDGETS[ScanProfile(name)]
        return CrawlOptions(
            max_pages=budget.max_urls,
            max_depth=BUDGETED_MAX_DEPTH,
            timeout_ms=budget.max_duration_ms,
            same_origin_only=True,
            budget=budget,
            profile=ScanProfile(name),
        )

    legacy = LEGACY_PROFILE_CONFIGS.get(name.lower(), LEGACY_PROFILE_CONFIGS["standard"])
    return CrawlOptions(**legacy, same_origin_only=True)
