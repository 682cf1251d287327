"""
Coverage Reporting

Turns a stopped crawl's budget state into the CoverageSummary that is
persisted and shown in reports, plus the partial results banner copy.
"""
import math
from typing import Optional

from app.features.scan_profiles.exceptions import IncompleteStateError
from app.features.scan_profiles.schemas.coverage import CoverageSummary, GatingNotice
from app.features.scan_profiles.schemas.crawl import LIMIT_STOP_REASONS, CrawlBudgetState, StopReason
from app.features.scan_profiles.schemas.profile import ScanFeatureFlags

ENTERPRISE_BANNER_TITLE = "Partial Results Shown"
ENTERPRISE_BANNER_BODY = (
    "This scan was stopped early because it exceeds the limits of your current plan. "
    "You're seeing the top results, but full coverage requires an Enterprise upgrade."
)
ENTERPRISE_BANNER_CTA_UPGRADE = "Upgrade to Enterprise"
ENTERPRISE_BANNER_UPGRADE_URL = "/pricing#enterprise"


def compute_coverage_percent(
    scanned_urls: int,
    estimated_total_urls: Optional[int],
    stop_reason: StopReason,
) -> int:
    """Whole percent, half rounded up, clamped to 0..100."""
    if not estimated_total_urls:
        # Nothing known to crawl: a completed crawl covered all of it
        return 100 if stop_reason == StopReason.complete else 0

    percent = math.floor(100 * scanned_urls / estimated_total_urls + 0.5)
    return max(0, min(100, percent))


class CoverageReporter:
    @staticmethod
    def summarize(state: CrawlBudgetState) -> CoverageSummary:
        """
        Build the coverage summary of a stopped crawl.

        Raises:
            IncompleteStateError: the crawl is still running
        """
        if not state.stopped or state.stop_reason is None:
            raise IncompleteStateError(
                f"Cannot summarize a running {state.profile.value} crawl "
                f"({state.urls_crawled} crawled so far)"
            )

        return CoverageSummary(
            profile=state.profile,
            scanned_urls=state.urls_crawled,
            estimated_total_urls=state.estimated_total_urls,
            coverage_percent=compute_coverage_percent(
                state.urls_crawled, state.estimated_total_urls, state.stop_reason
            ),
            reached_limit=state.stop_reason in LIMIT_STOP_REASONS,
            stop_reason=state.stop_reason,
            enterprise_detection=state.enterprise_detection,
            started_at=state.started_at,
            ended_at=state.ended_at,
            pages_crawled=state.urls_crawled,
            discovered_urls=state.urls_discovered,
        )

    @staticmethod
    def gating_notice(
        summary: CoverageSummary,
        flags: Optional[ScanFeatureFlags] = None,
    ) -> Optional[GatingNotice]:
        """
        Enterprise upgrade banner for scans stopped by enterprise detection.

        Shown only while both rollout flags are on. Scans that ran into their
        own URL or time budget get no banner.
        """
        flags = flags or ScanFeatureFlags()
        if not (flags.scan_profiles and flags.enterprise_gating):
            return None
        if summary.stop_reason != StopReason.enterprise_detected:
            return None
        return GatingNotice(
            title=ENTERPRISE_BANNER_TITLE,
            body=ENTERPRISE_BANNER_BODY,
            cta_label=ENTERPRISE_BANNER_CTA_UPGRADE,
            upgrade_url=ENTERPRISE_BANNER_UPGRADE_URL,
        )


def summarize(state: CrawlBudgetState) -> CoverageSummary:
    return CoverageReporter.summarize(state)
