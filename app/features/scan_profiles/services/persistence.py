"""
Coverage Persistence

Stores and loads CoverageSummary rows. The worker writes through a sync
session, the API reads through the async one.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import Session

from app.features.scan_profiles.models.scan_coverage import ScanCoverage
from app.features.scan_profiles.schemas.coverage import CoverageSummary
from app.platform.logger import get_logger

logger = get_logger(__name__)


def build_coverage_row(scan_id: str, summary: CoverageSummary, site_id: Optional[str] = None) -> ScanCoverage:
    detection = None
    if summary.enterprise_detection is not None:
        detection = summary.enterprise_detection.model_dump(mode="json")

    return ScanCoverage(
        scan_id=scan_id,
        site_id=site_id,
        profile=summary.profile,
        stop_reason=summary.stop_reason,
        reached_limit=summary.reached_limit,
        scanned_urls=summary.scanned_urls,
        estimated_total_urls=summary.estimated_total_urls,
        coverage_percent=summary.coverage_percent,
        pages_crawled=summary.pages_crawled,
        discovered_urls=summary.discovered_urls,
        enterprise_detection=detection,
        started_at=summary.started_at,
        ended_at=summary.ended_at,
    )


def coverage_row_to_summary(row: ScanCoverage) -> CoverageSummary:
    return CoverageSummary.model_validate(row)


def save_coverage_summary(
    db: Session,
    scan_id: str,
    summary: CoverageSummary,
    site_id: Optional[str] = None,
) -> ScanCoverage:
    """Insert the coverage row for a scan. A scan's coverage is written once."""
    existing = db.execute(select(ScanCoverage).where(ScanCoverage.scan_id == scan_id)).scalars().first()
    if existing is not None:
        logger.warning(f"Coverage for scan {scan_id} already stored, keeping the first summary")
        return existing

    row = build_coverage_row(scan_id, summary, site_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(
        f"Stored coverage for scan {scan_id}: {summary.coverage_percent}% "
        f"({summary.stop_reason.value})"
    )
    return row


async def get_coverage_for_scan(db: AsyncSession, scan_id: str) -> Optional[ScanCoverage]:
    result = await db.execute(select(ScanCoverage).where(ScanCoverage.scan_id == scan_id))
    return result.scalars().first()
