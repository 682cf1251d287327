from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, Index, Integer, String, CheckConstraint

from app.features.scan_profiles.schemas.crawl import StopReason
from app.features.scan_profiles.schemas.profile import ScanProfile
from app.platform.db.base import BaseModel


class ScanCoverage(BaseModel):
    """Coverage summary of one finished crawl. Written once, never updated."""

    __tablename__ = "scan_coverage"

    scan_id = Column(String, nullable=False, unique=True, index=True)
    site_id = Column(String, nullable=True, index=True)

    profile = Column(Enum(ScanProfile), nullable=False)
    stop_reason = Column(Enum(StopReason), nullable=False)
    reached_limit = Column(Boolean, default=False, nullable=False)

    scanned_urls = Column(Integer, default=0, nullable=False)
    estimated_total_urls = Column(Integer, nullable=True)
    coverage_percent = Column(Integer, nullable=False)  # 0-100
    pages_crawled = Column(Integer, default=0, nullable=False)
    discovered_urls = Column(Integer, default=0, nullable=False)

    # EnterpriseDetection as JSON, only set when stop_reason is enterprise_detected
    enterprise_detection = Column(JSON, nullable=True)

    started_at = Column(DateTime(timezone=True), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            'coverage_percent >= 0 AND coverage_percent <= 100',
            name='check_coverage_percent_range'
        ),
        Index('idx_scan_coverage_site_profile', 'site_id', 'profile'),
    )
