import logging
from typing import Any, Dict, Optional

from selenium.common.exceptions import WebDriverException

from app.features.scan_profiles.schemas.profile import ScanFeatureFlags, ScanProfile, UserTier
from app.features.scan_profiles.services.browser import SeleniumLinkCrawler
from app.features.scan_profiles.services.crawl_runner import BudgetedCrawlRunner
from app.features.scan_profiles.services.persistence import save_coverage_summary
from app.features.scan_profiles.services.sitemap import SitemapService
from app.platform.celery_app import celery_app
from app.platform.config import settings

logger = logging.getLogger(__name__)

# Create a single shared sync engine for all Celery tasks
_sync_engine = None
_sync_session_factory = None


def get_sync_db():
    """Get a database session for Celery tasks."""
    global _sync_engine, _sync_session_factory

    if _sync_engine is None:
        from sqlalchemy import create_engine
        from sqlalchemy.orm import sessionmaker

        # Convert async URL to sync if needed
        db_url = settings.DATABASE_URL
        if db_url.startswith("postgresql+asyncpg://"):
            db_url = db_url.replace("postgresql+asyncpg://", "postgresql://")
        elif db_url.startswith("sqlite+aiosqlite://"):
            db_url = db_url.replace("sqlite+aiosqlite://", "sqlite://")

        _sync_engine = create_engine(db_url, pool_pre_ping=True)
        _sync_session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_sync_engine)

    return _sync_session_factory()


@celery_app.task(
    bind=True,
    name="app.features.scan_profiles.workers.tasks.run_budgeted_crawl",
    max_retries=2,
    default_retry_delay=30,
)
def run_budgeted_crawl(
    self,
    scan_id: str,
    url: str,
    user_tier: str,
    user_override: Optional[str] = None,
    site_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crawl a site within its profile budget and store the coverage summary.

    Args:
        scan_id: Scan identifier the coverage row is keyed by
        url: Root URL to crawl
        user_tier: Subscription tier of the requesting user
        user_override: Optional manual profile choice
        site_id: Optional site the scan belongs to

    Returns:
        Dict with the profile, crawled pages and the coverage summary
    """
    flags = ScanFeatureFlags.from_settings(settings)
    override = ScanProfile(user_override) if user_override else None

    logger.info(f"[{scan_id}] Starting budgeted crawl for {url} ({user_tier} tier)")

    try:
        with SeleniumLinkCrawler() as crawler:
            runner = BudgetedCrawlRunner(crawler, SitemapService.count_urls, flags=flags)
            result = runner.run(
                url,
                UserTier(user_tier),
                user_override=override,
                scan_id=scan_id,
                site_id=site_id,
            )
    except WebDriverException as e:
        # Browser could not start; nothing was crawled yet
        logger.error(f"[{scan_id}] Browser session failed: {e}")
        raise self.retry(exc=e)

    db = get_sync_db()
    try:
        save_coverage_summary(db, scan_id, result.summary, site_id=site_id)
    finally:
        db.close()

    logger.info(
        f"[{scan_id}] Crawl finished: {result.summary.stop_reason.value}, "
        f"{result.summary.coverage_percent}% coverage"
    )
    return {
        "scan_id": scan_id,
        "profile": result.profile.value,
        "pages": result.pages,
        "summary": result.summary.model_dump(mode="json"),
    }
