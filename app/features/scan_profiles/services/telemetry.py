"""
Scan Telemetry

Named, versioned crawl events written as structured log lines. Emitting an
event never raises into the crawl.
"""
import json
from typing import Any, Dict, Optional

from app.features.scan_profiles.schemas.coverage import CoverageSummary
from app.features.scan_profiles.schemas.detection import DetectionInput, DetectionResult
from app.platform.logger import get_logger

logger = get_logger(__name__)

ENTERPRISE_DETECTED_EVENT = "enterprise.detect.v1"
CRAWL_SUMMARY_EVENT = "crawl.summary.v1"


class ScanTelemetry:
    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def track(self, event_name: str, data: Dict[str, Any]) -> None:
        if not self.enabled:
            return
        try:
            logger.info(f"[telemetry] {event_name} {json.dumps(data, sort_keys=True, default=str)}")
        except Exception as e:
            logger.warning(f"Failed to emit {event_name}: {e}")

    def enterprise_detected(
        self,
        detection_input: DetectionInput,
        result: DetectionResult,
        scan_id: Optional[str] = None,
        site_id: Optional[str] = None,
    ) -> None:
        self.track(ENTERPRISE_DETECTED_EVENT, {
            "site_id": site_id,
            "scan_id": scan_id,
            "discovered_urls": detection_input.discovered_urls,
            "elapsed_minutes": round(detection_input.elapsed_minutes, 2),
            "frontier_growing": detection_input.frontier_growing,
            "reason": result.reason.value if result.reason else None,
        })

    def crawl_summary(
        self,
        summary: CoverageSummary,
        scan_id: Optional[str] = None,
        site_id: Optional[str] = None,
    ) -> None:
        elapsed_minutes = None
        if summary.ended_at is not None:
            elapsed_minutes = round((summary.ended_at - summary.started_at).total_seconds() / 60, 2)
        self.track(CRAWL_SUMMARY_EVENT, {
            "site_id": site_id,
            "scan_id": scan_id,
            "profile": summary.profile.value,
            "pages_crawled": summary.pages_crawled,
            "discovered_urls": summary.discovered_urls,
            "elapsed_minutes": elapsed_minutes,
            "stopped_reason": summary.stop_reason.value,
        })
