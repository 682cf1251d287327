from datetime import datetime, timedelta, timezone

import pytest

from app.features.scan_profiles.models.scan_coverage import ScanCoverage
from app.features.scan_profiles.schemas.coverage import CoverageSummary
from app.features.scan_profiles.schemas.crawl import StopReason
from app.features.scan_profiles.schemas.detection import DetectionReason, EnterpriseDetection
from app.features.scan_profiles.schemas.profile import ScanProfile
from app.features.scan_profiles.services.persistence import (
    build_coverage_row,
    coverage_row_to_summary,
    get_coverage_for_scan,
    save_coverage_summary,
)
from app.platform.db.session import SessionLocal

STARTED_AT = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _summary(coverage_percent=25, detection=None):
    return CoverageSummary(
        profile=ScanProfile.SMART,
        scanned_urls=150,
        estimated_total_urls=600,
        coverage_percent=coverage_percent,
        reached_limit=True,
        stop_reason=StopReason.enterprise_detected if detection else StopReason.url_limit,
        enterprise_detection=detection,
        started_at=STARTED_AT,
        ended_at=STARTED_AT + timedelta(minutes=4),
        pages_crawled=150,
        discovered_urls=420,
    )


class TestCoverageRows:

    def test_build_row(self):
        detection = EnterpriseDetection(
            is_enterprise=True,
            reason=DetectionReason.time_frontier,
            estimated_pages=600,
            scanned_pages=150,
            discovered_urls=420,
            elapsed_minutes=5.5,
        )
        row = build_coverage_row("scan-1", _summary(detection=detection), site_id="site-1")

        assert row.scan_id == "scan-1"
        assert row.site_id == "site-1"
        assert row.profile == ScanProfile.SMART
        assert row.enterprise_detection["reason"] == "time_frontier"

    def test_row_round_trips_to_summary(self):
        summary = _summary()
        assert coverage_row_to_summary(build_coverage_row("scan-1", summary)) == summary

    def test_save(self, sync_db):
        row = save_coverage_summary(sync_db, "scan-save", _summary(), site_id="site-9")

        assert row.id is not None
        stored = sync_db.query(ScanCoverage).filter_by(scan_id="scan-save").one()
        assert stored.coverage_percent == 25
        assert stored.stop_reason == StopReason.url_limit
        assert stored.site_id == "site-9"

    def test_first_summary_is_kept(self, sync_db):
        save_coverage_summary(sync_db, "scan-once", _summary(coverage_percent=25))
        row = save_coverage_summary(sync_db, "scan-once", _summary(coverage_percent=90))

        assert row.coverage_percent == 25
        assert sync_db.query(ScanCoverage).filter_by(scan_id="scan-once").count() == 1

    @pytest.mark.asyncio
    async def test_get_coverage_for_scan(self, sync_db):
        save_coverage_summary(sync_db, "scan-async", _summary())

        async with SessionLocal() as db:
            row = await get_coverage_for_scan(db, "scan-async")
            missing = await get_coverage_for_scan(db, "scan-unknown")

        assert row.coverage_percent == 25
        assert coverage_row_to_summary(row).discovered_urls == 420
        assert missing is None
