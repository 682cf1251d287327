from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from app.features.scan_profiles.schemas.coverage import CoverageSummary
from app.features.scan_profiles.schemas.crawl import StopReason
from app.features.scan_profiles.schemas.detection import DetectionReason, EnterpriseDetection
from app.features.scan_profiles.schemas.profile import ScanFeatureFlags, ScanProfile
from app.features.scan_profiles.services.persistence import save_coverage_summary

BASE = "/api/v1/scan-profiles"


def _summary(**overrides):
    started_at = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    values = dict(
        profile=ScanProfile.QUICK,
        scanned_urls=12,
        estimated_total_urls=12,
        coverage_percent=100,
        reached_limit=False,
        stop_reason=StopReason.complete,
        started_at=started_at,
        ended_at=started_at + timedelta(minutes=1),
        pages_crawled=12,
        discovered_urls=12,
    )
    values.update(overrides)
    return CoverageSummary(**values)


class TestBudgetEndpoints:

    def test_list_budgets(self, client):
        response = client.get(f"{BASE}/budgets")

        assert response.status_code == 200
        budgets = response.json()["data"]["budgets"]
        assert set(budgets) == {"QUICK", "SMART", "DEEP"}
        assert budgets["SMART"]["max_urls"] == 150
        assert budgets["SMART"]["strategy"] == "priority-sampling"
        assert budgets["DEEP"]["max_duration_ms"] == 1_800_000

    def test_get_budget(self, client):
        response = client.get(f"{BASE}/budgets/QUICK")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["max_urls"] == 50
        assert data["priority_order"][:2] == ["homepage", "navigation"]

    def test_unknown_profile(self, client):
        response = client.get(f"{BASE}/budgets/HUGE")

        assert response.status_code == 422
        assert response.json()["status"] == "error"


class TestSelectEndpoint:

    def test_select_by_sitemap_size(self, client):
        response = client.post(f"{BASE}/select", json={"user_tier": "pro", "sitemap_url_count": 120})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["profile"] == "SMART"
        assert data["crawl_options"]["max_pages"] == 150
        assert data["crawl_options"]["max_depth"] == 2
        assert data["crawl_options"]["timeout_ms"] == 600_000

    def test_deep_override_requires_enterprise(self, client):
        response = client.post(f"{BASE}/select", json={"user_tier": "free", "user_override": "DEEP"})

        assert response.status_code == 403
        payload = response.json()
        assert payload["status"] == "error"
        assert payload["error_code"] == "tier_required"

    def test_negative_sitemap_count_rejected(self, client):
        response = client.post(f"{BASE}/select", json={"user_tier": "pro", "sitemap_url_count": -1})
        assert response.status_code == 422

    def test_legacy_options_when_profiles_disabled(self, client, test_app):
        from app.features.scan_profiles.routes.profiles import get_feature_flags

        test_app.dependency_overrides[get_feature_flags] = lambda: ScanFeatureFlags(scan_profiles=False)
        try:
            response = client.post(f"{BASE}/select", json={"user_tier": "free"})
        finally:
            test_app.dependency_overrides.clear()

        data = response.json()["data"]
        assert data["profile"] == "QUICK"
        assert data["crawl_options"]["budget"] is None
        assert data["crawl_options"]["max_pages"] == 1


class TestAccessAndDetectEndpoints:

    def test_access_denied(self, client):
        response = client.get(f"{BASE}/access", params={"profile": "DEEP", "user_tier": "pro"})

        assert response.status_code == 200
        assert response.json()["data"]["allowed"] is False

    def test_access_allowed(self, client):
        response = client.get(f"{BASE}/access", params={"profile": "DEEP", "user_tier": "enterprise"})
        assert response.json()["data"]["allowed"] is True

    def test_detect_enterprise(self, client):
        response = client.post(
            f"{BASE}/detect",
            json={"discovered_urls": 151, "elapsed_minutes": 1, "frontier_growing": False},
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"is_enterprise": True, "reason": "url_threshold"}

    def test_detect_small_site(self, client):
        response = client.post(
            f"{BASE}/detect",
            json={"discovered_urls": 20, "elapsed_minutes": 6, "frontier_growing": False},
        )
        assert response.json()["data"]["is_enterprise"] is False


class TestCrawlEndpoints:

    @patch("app.features.scan_profiles.routes.profiles.run_budgeted_crawl")
    def test_launch_crawl(self, mock_task, client):
        mock_task.delay.return_value = MagicMock(id="task-123")

        response = client.post(f"{BASE}/crawls", json={"url": "https://example.com", "user_tier": "pro"})

        assert response.status_code == 202
        data = response.json()["data"]
        assert data["task_id"] == "task-123"
        assert data["status"] == "queued"
        args = mock_task.delay.call_args.args
        assert args[0] == data["scan_id"]
        assert args[1].startswith("https://example.com")
        assert args[2:] == ("pro", None, None)

    @patch("app.features.scan_profiles.routes.profiles.run_budgeted_crawl")
    def test_launch_crawl_rejects_disallowed_override(self, mock_task, client):
        response = client.post(
            f"{BASE}/crawls",
            json={"url": "https://example.com", "user_tier": "free", "user_override": "DEEP"},
        )

        assert response.status_code == 403
        mock_task.delay.assert_not_called()

    def test_coverage_not_found(self, client, sync_db):
        response = client.get(f"{BASE}/coverage/missing-scan")

        assert response.status_code == 404
        assert response.json()["status"] == "error"

    def test_full_coverage(self, client, sync_db):
        save_coverage_summary(sync_db, "scan-full", _summary())

        response = client.get(f"{BASE}/coverage/scan-full")

        assert response.status_code == 200
        payload = response.json()
        assert payload["message"] == "Full coverage"
        assert payload["data"]["summary"]["coverage_percent"] == 100
        assert payload["data"]["gating_notice"] is None

    def test_partial_coverage_has_gating_notice(self, client, sync_db):
        detection = EnterpriseDetection(
            is_enterprise=True,
            reason=DetectionReason.url_threshold,
            estimated_pages=400,
            scanned_pages=40,
            discovered_urls=151,
            elapsed_minutes=1.5,
        )
        save_coverage_summary(sync_db, "scan-partial", _summary(
            profile=ScanProfile.SMART,
            scanned_urls=40,
            estimated_total_urls=400,
            coverage_percent=10,
            reached_limit=True,
            stop_reason=StopReason.enterprise_detected,
            enterprise_detection=detection,
            pages_crawled=40,
            discovered_urls=151,
        ))

        response = client.get(f"{BASE}/coverage/scan-partial")

        payload = response.json()
        assert payload["message"] == "Partial coverage"
        summary = payload["data"]["summary"]
        assert summary["stop_reason"] == "enterprise_detected"
        assert summary["enterprise_detection"]["estimated_pages"] == 400
        assert payload["data"]["gating_notice"]["cta_label"] == "Upgrade to Enterprise"

    def test_deep_time_limit_has_no_gating_notice(self, client, sync_db):
        save_coverage_summary(sync_db, "scan-deep", _summary(
            profile=ScanProfile.DEEP,
            scanned_urls=640,
            estimated_total_urls=900,
            coverage_percent=71,
            reached_limit=True,
            stop_reason=StopReason.time_limit,
            pages_crawled=640,
            discovered_urls=900,
        ))

        response = client.get(f"{BASE}/coverage/scan-deep")

        payload = response.json()
        assert payload["message"] == "Partial coverage"
        assert payload["data"]["gating_notice"] is None

    def test_gating_notice_hidden_when_gating_disabled(self, client, test_app, sync_db):
        from app.features.scan_profiles.routes.profiles import get_feature_flags

        save_coverage_summary(sync_db, "scan-gated", _summary(
            profile=ScanProfile.SMART,
            scanned_urls=40,
            estimated_total_urls=400,
            coverage_percent=10,
            reached_limit=True,
            stop_reason=StopReason.enterprise_detected,
            pages_crawled=40,
            discovered_urls=151,
        ))

        test_app.dependency_overrides[get_feature_flags] = lambda: ScanFeatureFlags(enterprise_gating=False)
        try:
            response = client.get(f"{BASE}/coverage/scan-gated")
        finally:
            test_app.dependency_overrides.clear()

        assert response.json()["data"]["gating_notice"] is None
