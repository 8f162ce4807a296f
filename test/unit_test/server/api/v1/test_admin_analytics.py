"""
Unit tests for the admin dashboard and analytics endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from ngurra_pathways.server.services.analytics import month_start

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def hiring(client: AsyncClient, register):
    employer, employer_headers = await register("employer@example.com", user_type="COMPANY", company_name="Acme")
    job = (
        await client.post(
            "/api/v1/jobs",
            json={"title": "Youth Worker", "description": "Support young people in Broome."},
            headers=employer_headers,
        )
    ).json()
    _, applicant_headers = await register("applicant@example.com")
    await client.post("/api/v1/applications", json={"job_id": job["id"]}, headers=applicant_headers)
    return employer, employer_headers, job


def test_month_start():
    now = datetime(2026, 3, 17, 13, 45, 12, 999)
    assert month_start(now) == datetime(2026, 3, 1)


class TestAdminDashboard:
    async def test_dashboard(self, client: AsyncClient, admin, hiring, register):
        _, admin_headers = admin
        await register("mentor@example.com", user_type="MENTOR")

        response = await client.get("/api/v1/admin/dashboard", headers=admin_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["stats"] == {
            "total_users": 4,
            "active_jobs": 1,
            "companies": 1,
            "mentors": 1,
            "applications_this_month": 1,
            "placements_this_month": 0,
        }
        assert body["applications_last_24h"] == 1
        assert body["pending"] == {"unverified_mentors": 1}
        assert {item["type"] for item in body["recent_activity"]} == {"user_registered", "job_posted"}

    async def test_members_forbidden(self, client: AsyncClient, register):
        _, headers = await register("member@example.com")
        assert (await client.get("/api/v1/admin/dashboard", headers=headers)).status_code == 403
        assert (await client.get("/api/v1/admin/system-health", headers=headers)).status_code == 403

    async def test_system_health(self, client: AsyncClient, admin):
        _, admin_headers = admin
        body = (await client.get("/api/v1/admin/system-health", headers=admin_headers)).json()
        assert body["status"] == "healthy"
        assert body["database"]["status"] == "healthy"
        assert body["database"]["latency_ms"] >= 0


class TestAdminAnalytics:
    async def test_overview(self, client: AsyncClient, admin, hiring):
        _, admin_headers = admin
        body = (await client.get("/api/v1/analytics/admin/overview", headers=admin_headers)).json()
        assert body["users_by_type"]["COMPANY"] == 1
        assert body["users_by_type"]["ADMIN"] == 1
        assert body["users_by_type"]["INSTITUTION"] == 0
        assert body["jobs"] == {"total": 1, "active": 1}
        assert body["applications_by_status"]["pending"] == 1

    async def test_job_funnel(self, client: AsyncClient, admin, hiring):
        _, admin_headers = admin
        body = (await client.get("/api/v1/analytics/admin/job-funnel", headers=admin_headers)).json()
        assert body["total_applications"] == 1
        assert body["stages"][0] == {"stage": "pending", "count": 1, "conversion_rate": 100.0}
        assert [stage["stage"] for stage in body["stages"]] == [
            "pending",
            "reviewed",
            "shortlisted",
            "interview",
            "offered",
            "hired",
        ]
        assert body["rejected"] == 0

    async def test_job_funnel_empty(self, client: AsyncClient, admin):
        _, admin_headers = admin
        body = (await client.get("/api/v1/analytics/admin/job-funnel", headers=admin_headers)).json()
        assert body["total_applications"] == 0
        assert all(stage["conversion_rate"] == 0.0 for stage in body["stages"])


class TestEmployerAnalytics:
    async def test_free_tier_has_no_analytics(self, client: AsyncClient, hiring):
        _, employer_headers, _ = hiring
        response = await client.get("/api/v1/analytics/employer/overview", headers=employer_headers)
        assert response.status_code == 403

    async def test_paid_tier_overview(self, client: AsyncClient, hiring):
        employer, employer_headers, job = hiring
        await client.post("/api/v1/subscriptions/upgrade", json={"tier": "STARTER"}, headers=employer_headers)

        body = (await client.get("/api/v1/analytics/employer/overview", headers=employer_headers)).json()
        assert body["employer_id"] == employer["id"]
        assert body["total_jobs"] == 1
        assert body["total_applications"] == 1
        assert body["applications_per_job"] == [{"job_id": job["id"], "title": "Youth Worker", "applications": 1}]
        assert body["applications_by_status"]["pending"] == 1

    async def test_admin_inspects_employer(self, client: AsyncClient, admin, hiring):
        _, admin_headers = admin
        employer, _, _ = hiring
        response = await client.get(
            "/api/v1/analytics/employer/overview", params={"employer_id": employer["id"]}, headers=admin_headers
        )
        assert response.json()["total_jobs"] == 1

    async def test_member_forbidden(self, client: AsyncClient, register):
        _, headers = await register("member@example.com")
        response = await client.get("/api/v1/analytics/employer/overview", headers=headers)
        assert response.status_code == 403


class TestMentorAnalytics:
    async def test_mentor_overview(self, client: AsyncClient, register):
        mentor, mentor_headers = await register("mentor@example.com", user_type="MENTOR")
        _, mentee_headers = await register("mentee@example.com")
        when = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()
        await client.post(
            "/api/v1/mentorship/sessions", json={"mentor_id": mentor["id"], "scheduled_at": when}, headers=mentee_headers
        )

        body = (await client.get("/api/v1/analytics/mentor/overview", headers=mentor_headers)).json()
        assert body["total_sessions"] == 1
        assert body["sessions_by_status"]["SCHEDULED"] == 1
        assert body["unique_mentees"] == 1
        assert body["average_rating"] is None

    async def test_non_mentor_forbidden(self, client: AsyncClient, register):
        _, headers = await register("member@example.com")
        response = await client.get("/api/v1/analytics/mentor/overview", headers=headers)
        assert response.status_code == 403
