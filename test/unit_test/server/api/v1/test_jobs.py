"""
Unit tests for job listing endpoints.

Tests cover posting permissions, subscription job limits, search filters and
visibility of deactivated listings.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

JOB = {
    "title": "Ranger Trainee",
    "description": "Work on country with the ranger program.",
    "location": "Alice Springs",
    "employment_type": "FULL_TIME",
}


async def _post_job(client: AsyncClient, headers, **overrides):
    return await client.post("/api/v1/jobs", json={**JOB, **overrides}, headers=headers)


class TestCreateJob:
    async def test_company_posts_job(self, client: AsyncClient, register):
        _, headers = await register("co@example.com", user_type="COMPANY", company_name="Desert Co")
        response = await _post_job(client, headers)
        assert response.status_code == 201
        data = response.json()
        assert data["company_name"] == "Desert Co"
        assert data["is_active"] is True

    async def test_member_cannot_post(self, client: AsyncClient, register):
        _, headers = await register("member@example.com")
        assert (await _post_job(client, headers)).status_code == 403

    async def test_free_tier_limit(self, client: AsyncClient, register):
        _, headers = await register("co@example.com", user_type="COMPANY")
        assert (await _post_job(client, headers)).status_code == 201
        response = await _post_job(client, headers, title="Second Role")
        assert response.status_code == 403
        assert "Job limit reached" in response.json()["detail"]

    async def test_closing_date_stored_as_utc(self, client: AsyncClient, register):
        _, headers = await register("co@example.com", user_type="COMPANY")
        response = await _post_job(client, headers, closes_at="2030-01-01T20:00:00+10:00")
        assert response.status_code == 201
        assert response.json()["closes_at"] == "2030-01-01T10:00:00"

    async def test_invalid_salary_range(self, client: AsyncClient, register):
        _, headers = await register("co@example.com", user_type="COMPANY")
        response = await _post_job(client, headers, salary_min=90000, salary_max=50000)
        assert response.status_code == 422


class TestSearchJobs:
    async def test_filters(self, client: AsyncClient, register, admin):
        _, admin_headers = admin
        await _post_job(client, admin_headers)
        await _post_job(client, admin_headers, title="Remote Designer", location="Perth", is_remote=True,
                        employment_type="CONTRACT")

        everything = await client.get("/api/v1/jobs")
        assert everything.json()["pagination"]["total"] == 2

        remote = await client.get("/api/v1/jobs", params={"is_remote": True})
        assert [j["title"] for j in remote.json()["data"]] == ["Remote Designer"]

        by_location = await client.get("/api/v1/jobs", params={"location": "alice"})
        assert [j["title"] for j in by_location.json()["data"]] == ["Ranger Trainee"]

        by_type = await client.get("/api/v1/jobs", params={"employment_type": "CONTRACT"})
        assert by_type.json()["pagination"]["total"] == 1

        by_text = await client.get("/api/v1/jobs", params={"q": "ranger"})
        assert by_text.json()["pagination"]["total"] == 1


class TestManageJob:
    async def test_deactivated_job_hidden_from_public(self, client: AsyncClient, register):
        _, headers = await register("co@example.com", user_type="COMPANY")
        job = (await _post_job(client, headers)).json()

        assert (await client.delete(f"/api/v1/jobs/{job['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"/api/v1/jobs/{job['id']}")).status_code == 404
        assert (await client.get(f"/api/v1/jobs/{job['id']}", headers=headers)).status_code == 200
        assert (await client.get("/api/v1/jobs")).json()["pagination"]["total"] == 0

    async def test_deactivation_frees_tier_slot(self, client: AsyncClient, register):
        _, headers = await register("co@example.com", user_type="COMPANY")
        job = (await _post_job(client, headers)).json()
        await client.delete(f"/api/v1/jobs/{job['id']}", headers=headers)
        assert (await _post_job(client, headers, title="Replacement")).status_code == 201

    async def test_only_owner_updates(self, client: AsyncClient, register):
        _, owner_headers = await register("owner@example.com", user_type="COMPANY")
        _, other_headers = await register("rival@example.com", user_type="COMPANY")
        job = (await _post_job(client, owner_headers)).json()

        forbidden = await client.patch(f"/api/v1/jobs/{job['id']}", json={"title": "Hijacked"}, headers=other_headers)
        assert forbidden.status_code == 403

        updated = await client.patch(f"/api/v1/jobs/{job['id']}", json={"salary_min": 60000}, headers=owner_headers)
        assert updated.status_code == 200
        assert updated.json()["salary_min"] == 60000
