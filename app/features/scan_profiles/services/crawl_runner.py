"""
Budgeted Crawl Runner

The crawl loop: picks a profile, walks the site breadth-first in priority
order through an injected link crawler, and feeds one progress event per
page into a CrawlBudgetTracker until it stops.

Capabilities are plain callables so the loop runs against Selenium in the
worker and against fakes in tests:
- link_crawler(url) -> list of links on the page (raises if the page fails)
- sitemap_counter(url) -> number of sitemap URLs, or None
"""
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel

from app.features.scan_profiles.schemas.coverage import CoverageSummary
from app.features.scan_profiles.schemas.crawl import CrawlBudgetState, CrawlProgressEvent
from app.features.scan_profiles.schemas.profile import (
    CrawlOptions,
    CrawlStrategy,
    ProfileBudget,
    ScanFeatureFlags,
    ScanProfile,
    UserTier,
)
from app.features.scan_profiles.services.catalog import (
    PER_PAGE_URL_CAP,
    PROFILE_BUDGETS,
    frontier_cap,
    get_scan_profile_config,
)
from app.features.scan_profiles.services.coverage import CoverageReporter
from app.features.scan_profiles.services.detection import EnterpriseDetector
from app.features.scan_profiles.services.estimation import TotalEstimator
from app.features.scan_profiles.services.prioritization import order_frontier
from app.features.scan_profiles.services.selector import select_scan_profile
from app.features.scan_profiles.services.telemetry import ScanTelemetry
from app.features.scan_profiles.services.tracker import CrawlBudgetTracker
from app.features.scan_profiles.utils.urls import normalize_link, same_origin
from app.platform.logger import get_logger

logger = get_logger(__name__)

LinkCrawler = Callable[[str], List[str]]
SitemapCounter = Callable[[str], Optional[int]]


class CrawlRunResult(BaseModel):
    profile: ScanProfile
    crawl_options: CrawlOptions
    pages: List[str]
    summary: CoverageSummary
    state: CrawlBudgetState


def legacy_budget(options: CrawlOptions) -> ProfileBudget:
    """Budget equivalent of a legacy preset, used while scan profiles are off."""
    return ProfileBudget(
        max_urls=options.max_pages,
        max_duration=timedelta(milliseconds=options.timeout_ms),
        strategy=CrawlStrategy.complete,
        sitemap_first=False,
        priority_order=PROFILE_BUDGETS[ScanProfile.QUICK].priority_order,
    )


class BudgetedCrawlRunner:
    def __init__(
        self,
        link_crawler: LinkCrawler,
        sitemap_counter: Optional[SitemapCounter] = None,
        *,
        flags: Optional[ScanFeatureFlags] = None,
        detector: Optional[EnterpriseDetector] = None,
        estimator: Optional[TotalEstimator] = None,
        telemetry: Optional[ScanTelemetry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.link_crawler = link_crawler
        self.sitemap_counter = sitemap_counter
        self.flags = flags or ScanFeatureFlags()
        self.detector = detector
        self.estimator = estimator
        self.telemetry = telemetry or ScanTelemetry()
        self.clock = clock

    def run(
        self,
        start_url: str,
        user_tier: UserTier,
        user_override: Optional[ScanProfile] = None,
        scan_id: Optional[str] = None,
        site_id: Optional[str] = None,
        on_checkpoint: Optional[Callable[[CrawlBudgetState], None]] = None,
    ) -> CrawlRunResult:
        """
        Crawl start_url within the budget of the profile selected for user_tier.

        Raises:
            TierRequiredError: user_override is not allowed for user_tier
        """
        start_url = normalize_link(start_url)
        sitemap_url_count = self._count_sitemap(start_url)

        profile = select_scan_profile(user_tier, sitemap_url_count, user_override)
        options = get_scan_profile_config(profile, self.flags)
        budget = options.budget or legacy_budget(options)

        logger.info(
            f"Starting {profile.value} crawl of {start_url} "
            f"(max {budget.max_urls} pages, {budget.max_duration_ms} ms, sitemap={sitemap_url_count})"
        )

        tracker = CrawlBudgetTracker(
            profile,
            budget=budget,
            detector=self.detector,
            flags=self.flags,
            estimator=self.estimator,
            sitemap_url_count=sitemap_url_count,
            clock=self.clock,
            telemetry=self.telemetry,
            on_checkpoint=on_checkpoint,
            scan_id=scan_id,
            site_id=site_id,
        )

        depths: Dict[str, int] = {start_url: 0}
        frontier: List[str] = [start_url]
        max_frontier = frontier_cap(budget)
        pages: List[str] = []

        state = tracker.state
        while frontier and not state.stopped:
            url = frontier.pop(0)
            crawled_delta = 0
            links: List[str] = []
            try:
                links = self.link_crawler(url)
                pages.append(url)
                crawled_delta = 1
            except Exception as e:
                logger.warning(f"Failed to crawl {url}: {e}")

            if depths[url] < options.max_depth:
                self._enqueue(url, links, depths, frontier, options, len(pages))

            frontier = order_frontier(frontier, budget.priority_order)
            if len(frontier) > max_frontier:
                logger.warning(f"Frontier cap ({max_frontier}) reached, trimming queue")
                del frontier[max_frontier:]

            state = tracker.on_progress(CrawlProgressEvent(
                discovered_urls=len(depths),
                crawled_delta=crawled_delta,
                frontier_size_now=len(frontier),
            ))

        summary = CoverageReporter.summarize(state)
        self.telemetry.crawl_summary(summary, scan_id=scan_id, site_id=site_id)

        return CrawlRunResult(
            profile=profile,
            crawl_options=options,
            pages=pages,
            summary=summary,
            state=state,
        )

    def _count_sitemap(self, start_url: str) -> Optional[int]:
        if self.sitemap_counter is None:
            return None
        try:
            return self.sitemap_counter(start_url)
        except Exception as e:
            logger.warning(f"Sitemap count failed for {start_url}, selecting without it: {e}")
            return None

    def _enqueue(
        self,
        url: str,
        links: List[str],
        depths: Dict[str, int],
        frontier: List[str],
        options: CrawlOptions,
        pages_crawled: int,
    ) -> None:
        if options.budget is not None:
            link_limit = PER_PAGE_URL_CAP
        else:
            link_limit = max((options.max_pages - pages_crawled) * 5, 10)

        added = 0
        for link in links:
            if added >= link_limit:
                break
            link = normalize_link(link)
            if link in depths:
                continue
            if options.same_origin_only and not same_origin(link, url):
                continue
            depths[link] = depths[url] + 1
            frontier.append(link)
            added += 1
