"""
Admin API Endpoints.

Platform dashboard and health figures. Admin accounts only.
"""

from typing import Any, Dict

from fastapi import APIRouter

from ngurra_pathways.server.services.analytics import AnalyticsService
from ngurra_pathways.server.services.deps import AdminUser, DBSession

router = APIRouter()


@router.get(
    "/dashboard",
    summary="Admin Dashboard",
    description="Headline counts, recent registrations and job postings, and pending review items.",
    responses={403: {"description": "Admin only"}},
)
async def dashboard(admin: AdminUser, session: DBSession) -> Dict[str, Any]:
    """
    Admin dashboard.

    - **stats**: Users, active jobs, companies, mentors, applications and placements this month.
    - **recent_activity**: Latest registrations and job postings, newest first.
    - **pending**: Items waiting for admin review.
    """
    return await AnalyticsService(session).dashboard()


@router.get(
    "/system-health",
    summary="System Health",
    description="Database round trip check with its latency.",
    responses={403: {"description": "Admin only"}},
)
async def system_health(admin: AdminUser, session: DBSession) -> Dict[str, Any]:
    return await AnalyticsService(session).system_health()
