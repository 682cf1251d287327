from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extension import uuid7

from app.features.scan_profiles.exceptions import TierRequiredError
from app.features.scan_profiles.schemas.coverage import CoverageResponse
from app.features.scan_profiles.schemas.crawl import CrawlLaunchRequest, CrawlLaunchResponse
from app.features.scan_profiles.schemas.detection import DetectionInput
from app.features.scan_profiles.schemas.profile import (
    ProfileAccessResponse,
    ProfileBudgetsResponse,
    ProfileSelectionRequest,
    ProfileSelectionResponse,
    ScanFeatureFlags,
    ScanProfile,
    UserTier,
)
from app.features.scan_profiles.services.catalog import (
    PROFILE_BUDGETS,
    get_profile_budget,
    get_scan_profile_config,
)
from app.features.scan_profiles.services.coverage import CoverageReporter
from app.features.scan_profiles.services.detection import detect_enterprise
from app.features.scan_profiles.services.persistence import coverage_row_to_summary, get_coverage_for_scan
from app.features.scan_profiles.services.selector import can_use_profile, select_scan_profile
from app.features.scan_profiles.workers.tasks import run_budgeted_crawl
from app.platform.config import settings
from app.platform.db.session import get_db
from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)

router = APIRouter(prefix="/scan-profiles", tags=["scan-profiles"])


def get_feature_flags() -> ScanFeatureFlags:
    return ScanFeatureFlags.from_settings(settings)


@router.get("/budgets")
async def list_budgets():
    return api_response(
        data=ProfileBudgetsResponse(budgets=PROFILE_BUDGETS),
        message="Profile budgets retrieved",
    )


@router.get("/budgets/{profile}")
async def get_budget(profile: ScanProfile):
    return api_response(
        data=get_profile_budget(profile),
        message=f"{profile.value} budget retrieved",
    )


@router.post("/select")
async def select_profile(
    request: ProfileSelectionRequest,
    flags: ScanFeatureFlags = Depends(get_feature_flags),
):
    """
    Resolve the scan profile for a user tier and optional sitemap size.

    A DEEP override without the enterprise tier is rejected with 403.
    """
    profile = select_scan_profile(
        request.user_tier,
        sitemap_url_count=request.sitemap_url_count,
        user_override=request.user_override,
    )
    return api_response(
        data=ProfileSelectionResponse(
            profile=profile,
            budget=get_profile_budget(profile),
            crawl_options=get_scan_profile_config(profile, flags),
        ),
        message=f"{profile.value} profile selected",
    )


@router.get("/access")
async def check_profile_access(profile: ScanProfile, user_tier: UserTier):
    allowed = can_use_profile(profile, user_tier)
    return api_response(
        data=ProfileAccessResponse(profile=profile, user_tier=user_tier, allowed=allowed),
        message="Profile available" if allowed else f"{profile.value} requires Enterprise tier",
    )


@router.post("/detect")
async def detect(detection_input: DetectionInput):
    result = detect_enterprise(detection_input)
    return api_response(
        data=result,
        message="Enterprise site detected" if result.is_enterprise else "Not an enterprise site",
    )


@router.post("/crawls", status_code=status.HTTP_202_ACCEPTED)
async def launch_crawl(request: CrawlLaunchRequest):
    """Queue a budgeted crawl. Coverage is available once the task finishes."""
    if request.user_override is not None and not can_use_profile(request.user_override, request.user_tier):
        raise TierRequiredError(request.user_override, request.user_tier)

    scan_id = str(uuid7())
    task = run_budgeted_crawl.delay(
        scan_id,
        str(request.url),
        request.user_tier.value,
        request.user_override.value if request.user_override else None,
        request.site_id,
    )
    logger.info(f"[{scan_id}] Queued budgeted crawl for {request.url} (task {task.id})")

    return api_response(
        data=CrawlLaunchResponse(scan_id=scan_id, task_id=task.id, status="queued"),
        message="Crawl queued",
        status_code=status.HTTP_202_ACCEPTED,
    )


@router.get("/coverage/{scan_id}")
async def get_scan_coverage(
    scan_id: str,
    db: AsyncSession = Depends(get_db),
    flags: ScanFeatureFlags = Depends(get_feature_flags),
):
    row = await get_coverage_for_scan(db, scan_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No coverage recorded for scan {scan_id}",
        )

    summary = coverage_row_to_summary(row)
    return api_response(
        data=CoverageResponse(
            scan_id=scan_id,
            summary=summary,
            gating_notice=CoverageReporter.gating_notice(summary, flags),
        ),
        message="Partial coverage" if summary.reached_limit else "Full coverage",
    )
