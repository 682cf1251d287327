"""
Total Page Estimation

Strategies for estimating how many pages a site has, used for the
enterprise detection details and the coverage percentage. Any callable
taking a CrawlBudgetState and returning an optional int can be plugged
into the tracker.
"""
import math
from typing import Callable, Optional

from app.features.scan_profiles.schemas.crawl import CrawlBudgetState

TotalEstimator = Callable[[CrawlBudgetState], Optional[int]]


class SitemapOrDiscoveredEstimator:
    """Largest of the sitemap size and the URLs seen or crawled so far."""

    def __call__(self, state: CrawlBudgetState) -> Optional[int]:
        candidates = [state.urls_discovered, state.urls_crawled]
        if state.sitemap_url_count is not None:
            candidates.append(state.sitemap_url_count)
        estimate = max(candidates)
        return estimate or None


class DiscoveryRateEstimator:
    """
    Linear extrapolation of the discovery rate over the whole duration budget.

    Falls back to SitemapOrDiscoveredEstimator before min_elapsed_seconds have
    passed, when the rate is still noise. Never estimates below what the
    fallback gives.
    """

    def __init__(self, min_elapsed_seconds: float = 30.0):
        self.min_elapsed_seconds = min_elapsed_seconds
        self._fallback = SitemapOrDiscoveredEstimator()

    def __call__(self, state: CrawlBudgetState) -> Optional[int]:
        floor = self._fallback(state)
        elapsed_seconds = state.elapsed.total_seconds()
        if elapsed_seconds < self.min_elapsed_seconds or not state.urls_discovered:
            return floor

        rate = state.urls_discovered / elapsed_seconds
        projected = math.ceil(rate * state.budget.max_duration.total_seconds())
        return max(projected, floor or 0) or None
