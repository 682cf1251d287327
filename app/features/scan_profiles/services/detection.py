"""
Enterprise Site Detection

Flags a site as enterprise scale mid-crawl, from URL discovery and crawl
duration telemetry.

Rules, first match wins:
- Rule A: discovered_urls > URL_THRESHOLD -> "url_threshold"
- Rule B: elapsed_minutes > TIME_THRESHOLD_MIN and the frontier is still
  growing -> "time_frontier"
"""
from typing import Optional

from app.features.scan_profiles.schemas.detection import (
    DetectionInput,
    DetectionReason,
    DetectionResult,
)

# SMART's enterprise_detection_threshold is derived from URL_THRESHOLD
URL_THRESHOLD = 150
TIME_THRESHOLD_MIN = 5

NOT_ENTERPRISE = DetectionResult(is_enterprise=False, reason=None)


class EnterpriseDetector:
    """
    Stateless detector with tunable thresholds.

    A threshold left as None follows the module constant at call time, so
    patching URL_THRESHOLD / TIME_THRESHOLD_MIN retunes every default detector.
    """

    def __init__(self, url_threshold: Optional[int] = None, time_threshold_min: Optional[float] = None):
        if (url_threshold is not None and url_threshold < 0) or (
            time_threshold_min is not None and time_threshold_min < 0
        ):
            raise ValueError("detection thresholds must be non-negative")
        self._url_threshold = url_threshold
        self._time_threshold_min = time_threshold_min

    @property
    def url_threshold(self) -> int:
        return URL_THRESHOLD if self._url_threshold is None else self._url_threshold

    @property
    def time_threshold_min(self) -> float:
        return TIME_THRESHOLD_MIN if self._time_threshold_min is None else self._time_threshold_min

    def detect(self, detection_input: DetectionInput) -> DetectionResult:
        if detection_input.discovered_urls > self.url_threshold:
            return DetectionResult(is_enterprise=True, reason=DetectionReason.url_threshold)

        if detection_input.elapsed_minutes > self.time_threshold_min and detection_input.frontier_growing:
            return DetectionResult(is_enterprise=True, reason=DetectionReason.time_frontier)

        return NOT_ENTERPRISE

    def __repr__(self):
        return (
            f"EnterpriseDetector(url_threshold={self.url_threshold}, "
            f"time_threshold_min={self.time_threshold_min})"
        )


def detect_enterprise(detection_input: DetectionInput) -> DetectionResult:
    """
    Classify a crawl as enterprise using the module thresholds.

    Example:
        detect_enterprise(DetectionInput(discovered_urls=175, elapsed_minutes=4, frontier_growing=True))
        # DetectionResult(is_enterprise=True, reason=DetectionReason.url_threshold)
    """
    return EnterpriseDetector().detect(detection_input)
