"""
Scan Profile Selection

Picks the scan profile for a user and site, and gates DEEP behind the
enterprise tier.
"""
from typing import Optional

from app.features.scan_profiles.exceptions import TierRequiredError
from app.features.scan_profiles.schemas.profile import ScanProfile, UserTier
from app.platform.logger import get_logger

logger = get_logger(__name__)

# Sitemaps at or below this size get a QUICK scan
QUICK_SITEMAP_MAX_URLS = 50


def select_scan_profile(
    user_tier: UserTier,
    sitemap_url_count: Optional[int] = None,
    user_override: Optional[ScanProfile] = None,
) -> ScanProfile:
    """
    Select the scan profile for a user tier and optional site hints.

    Args:
        user_tier: User's subscription tier
        sitemap_url_count: Number of URLs in the site's sitemap, if known
        user_override: Manual profile choice; always wins when allowed

    Returns:
        The selected ScanProfile

    Raises:
        TierRequiredError: DEEP override without the enterprise tier
    """
    user_tier = UserTier(user_tier)

    if user_override is not None:
        user_override = ScanProfile(user_override)
        if not can_use_profile(user_override, user_tier):
            logger.warning(f"Rejected {user_override.value} override for {user_tier.value} tier")
            raise TierRequiredError(user_override, user_tier)
        return user_override

    if user_tier == UserTier.enterprise:
        return ScanProfile.DEEP

    if sitemap_url_count is not None:
        if sitemap_url_count <= QUICK_SITEMAP_MAX_URLS:
            return ScanProfile.QUICK
        return ScanProfile.SMART

    return ScanProfile.SMART if user_tier == UserTier.pro else ScanProfile.QUICK


def can_use_profile(profile: ScanProfile, user_tier: UserTier) -> bool:
    """QUICK and SMART are open to every tier; DEEP needs enterprise."""
    if ScanProfile(profile) == ScanProfile.DEEP:
        return UserTier(user_tier) == UserTier.enterprise
    return True
