"""
Crawl Budget Tracker

State machine enforcing one scan's profile budget:

    running --(stop condition | force_stop)--> stopped(reason)

Stop conditions are evaluated on every progress event in priority order:
enterprise_detected, url_limit, time_limit, complete. "budget" is only
reached through force_stop. The first stop wins; later events and stops
return the same terminal snapshot.

Enterprise detection only applies to budgets with an
enterprise_detection_threshold and only while both rollout flags are on;
DEEP scans are bounded by their own URL and time budgets.

One tracker belongs to one scan and one caller. It performs no I/O and
schedules no timers, so the time budget is only checked when the crawl
loop reports progress.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Union

from app.features.scan_profiles.exceptions import ValidationError
from app.features.scan_profiles.schemas.crawl import (
    CrawlBudgetState,
    CrawlProgressEvent,
    StopReason,
)
from app.features.scan_profiles.schemas.detection import (
    DetectionInput,
    DetectionResult,
    EnterpriseDetection,
)
from app.features.scan_profiles.schemas.profile import ProfileBudget, ScanFeatureFlags, ScanProfile
from app.features.scan_profiles.services.catalog import get_profile_budget
from app.features.scan_profiles.services.detection import EnterpriseDetector
from app.features.scan_profiles.services.estimation import SitemapOrDiscoveredEstimator, TotalEstimator
from app.features.scan_profiles.services.telemetry import ScanTelemetry
from app.platform.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CrawlBudgetTracker:
    def __init__(
        self,
        profile: ScanProfile,
        *,
        budget: Optional[ProfileBudget] = None,
        detector: Optional[EnterpriseDetector] = None,
        flags: Optional[ScanFeatureFlags] = None,
        estimator: Optional[TotalEstimator] = None,
        sitemap_url_count: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
        telemetry: Optional[ScanTelemetry] = None,
        on_checkpoint: Optional[Callable[[CrawlBudgetState], None]] = None,
        scan_id: Optional[str] = None,
        site_id: Optional[str] = None,
    ):
        profile = ScanProfile(profile)
        if sitemap_url_count is not None and sitemap_url_count < 0:
            raise ValidationError(f"sitemap_url_count must be >= 0, got {sitemap_url_count}")

        self.detector = detector
        self.flags = flags or ScanFeatureFlags()
        self.estimator = estimator or SitemapOrDiscoveredEstimator()
        self.telemetry = telemetry or ScanTelemetry()
        self.on_checkpoint = on_checkpoint
        self.scan_id = scan_id
        self.site_id = site_id
        self._clock = clock or _utcnow

        self._state = CrawlBudgetState(
            profile=profile,
            budget=budget or get_profile_budget(profile),
            started_at=self._clock(),
            sitemap_url_count=sitemap_url_count,
        )
        self._terminal: Optional[CrawlBudgetState] = None
        self._last_checkpoint = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> CrawlBudgetState:
        """Snapshot of the current state. Mutating it does not affect the tracker."""
        if self._terminal is not None:
            return self._terminal
        return self._state.model_copy(deep=True)

    @property
    def stopped(self) -> bool:
        return self._terminal is not None

    @property
    def profile(self) -> ScanProfile:
        return self._state.profile

    @property
    def budget(self) -> ProfileBudget:
        return self._state.budget

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def on_progress(self, event: Union[CrawlProgressEvent, Dict[str, Any]]) -> CrawlBudgetState:
        """
        Apply one progress tick and evaluate the stop conditions.

        Returns a snapshot of the state after the tick. Once stopped, the
        event is ignored and the terminal snapshot is returned as is.

        Raises:
            ValidationError: negative counts or elapsed time going backwards.
                The state is left untouched.
        """
        if self._terminal is not None:
            return self._terminal

        if not isinstance(event, CrawlProgressEvent):
            event = CrawlProgressEvent.model_validate(event)

        elapsed = self._validate(event)
        state = self._state

        history = state.frontier_history
        frontier_growing = bool(history) and event.frontier_size_now > history[-1]

        state.urls_crawled += event.crawled_delta
        state.urls_discovered = max(state.urls_discovered, event.discovered_urls)
        state.elapsed = elapsed
        history.append(event.frontier_size_now)

        detector = self._active_detector()
        if detector is not None:
            detection_input = DetectionInput(
                discovered_urls=state.urls_discovered,
                elapsed_minutes=state.elapsed_minutes,
                frontier_growing=frontier_growing,
            )
            result = detector.detect(detection_input)
            if result.is_enterprise:
                self.telemetry.enterprise_detected(
                    detection_input, result, scan_id=self.scan_id, site_id=self.site_id
                )
                return self._stop(StopReason.enterprise_detected, detection=result)

        if state.urls_crawled >= state.budget.max_urls:
            return self._stop(StopReason.url_limit)

        if state.elapsed >= state.budget.max_duration:
            return self._stop(StopReason.time_limit)

        if event.frontier_size_now == 0:
            return self._stop(StopReason.complete)

        self._maybe_checkpoint()
        return state.model_copy(deep=True)

    def force_stop(self, reason: StopReason = StopReason.budget) -> CrawlBudgetState:
        """
        Stop the crawl from outside, e.g. a timeout watchdog.

        Only the owner driving on_progress may call this. A tracker that has
        already stopped keeps its original reason.

        Raises:
            ValueError: reason is enterprise_detected, which only detection
                during on_progress may set
        """
        reason = StopReason(reason)
        if reason == StopReason.enterprise_detected:
            raise ValueError("enterprise_detected cannot be forced, it requires a detection result")

        if self._terminal is not None:
            logger.debug(
                f"force_stop({reason.value}) ignored, already stopped: "
                f"{self._terminal.stop_reason.value}"
            )
            return self._terminal

        state = self._state
        state.elapsed = max(state.elapsed, self._clock() - state.started_at)
        return self._stop(reason)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _active_detector(self) -> Optional[EnterpriseDetector]:
        """
        Detector for this scan, or None when detection is off.

        Detection needs both rollout flags and a budget with an
        enterprise_detection_threshold (SMART only). An injected detector
        keeps its own thresholds.
        """
        threshold = self._state.budget.enterprise_detection_threshold
        if not (self.flags.scan_profiles and self.flags.enterprise_gating) or threshold is None:
            return None
        return self.detector or EnterpriseDetector(url_threshold=threshold)

    def _validate(self, event: CrawlProgressEvent) -> timedelta:
        for field_name in ("discovered_urls", "crawled_delta", "frontier_size_now"):
            value = getattr(event, field_name)
            if value < 0:
                raise ValidationError(f"{field_name} must be >= 0, got {value}")

        previous = self._state.elapsed
        if event.elapsed_seconds is None:
            # Clock skew must not move elapsed time backwards
            return max(previous, self._clock() - self._state.started_at)

        if event.elapsed_seconds < 0:
            raise ValidationError(f"elapsed_seconds must be >= 0, got {event.elapsed_seconds}")
        elapsed = timedelta(seconds=event.elapsed_seconds)
        if elapsed < previous:
            raise ValidationError(
                f"elapsed_seconds went backwards: {event.elapsed_seconds} < {previous.total_seconds()}"
            )
        return elapsed

    def _maybe_checkpoint(self) -> None:
        budget = self._state.budget
        if not budget.resumable or not budget.checkpoint_interval:
            return
        due = self._state.urls_crawled // budget.checkpoint_interval
        if due > self._last_checkpoint:
            self._last_checkpoint = due
            logger.info(
                f"Checkpoint {due} for {self._state.profile.value} scan {self.scan_id}: "
                f"{self._state.urls_crawled} crawled"
            )
            if self.on_checkpoint is not None:
                self.on_checkpoint(self._state.model_copy(deep=True))

    def _stop(self, reason: StopReason, detection: Optional[DetectionResult] = None) -> CrawlBudgetState:
        state = self._state
        state.stopped = True
        state.stop_reason = reason
        state.ended_at = state.started_at + state.elapsed
        state.estimated_total_urls = self.estimator(state)

        if detection is not None:
            state.enterprise_detection = EnterpriseDetection(
                is_enterprise=detection.is_enterprise,
                reason=detection.reason,
                estimated_pages=state.estimated_total_urls,
                scanned_pages=state.urls_crawled,
                discovered_urls=state.urls_discovered,
                elapsed_minutes=round(state.elapsed_minutes, 2),
            )

        logger.info(
            f"{state.profile.value} crawl stopped: {reason.value} "
            f"({state.urls_crawled} crawled, {state.urls_discovered} discovered, "
            f"{state.elapsed_minutes:.2f} min)"
        )
        self._terminal = state.model_copy(deep=True)
        return self._terminal
