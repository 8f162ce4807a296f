"""
Analytics API Endpoints.

Aggregated figures for admins, employers and mentors.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from ngurra_pathways.server.services.analytics import AnalyticsService
from ngurra_pathways.server.services.deps import AdminUser, CurrentUser, DBSession

router = APIRouter()


@router.get(
    "/admin/overview",
    summary="Platform Overview",
    description="Users by type, jobs, applications by status, posts, sessions and subscriptions by tier.",
    responses={403: {"description": "Admin only"}},
)
async def admin_overview(admin: AdminUser, session: DBSession) -> Dict[str, Any]:
    return await AnalyticsService(session).admin_overview()


@router.get(
    "/admin/job-funnel",
    summary="Hiring Funnel",
    description="Applications per pipeline stage and their share of all applications.",
    responses={403: {"description": "Admin only"}},
)
async def job_funnel(admin: AdminUser, session: DBSession) -> Dict[str, Any]:
    return await AnalyticsService(session).job_funnel()


@router.get(
    "/employer/overview",
    summary="Employer Overview",
    description="Jobs and applications of an employer. Requires a tier with analytics.",
    responses={403: {"description": "Not an employer, or the tier has no analytics"}},
)
async def employer_overview(
    user: CurrentUser,
    session: DBSession,
    employer_id: Optional[str] = Query(default=None, description="Admins only: employer to inspect"),
) -> Dict[str, Any]:
    return await AnalyticsService(session).employer_overview(user, employer_id)


@router.get(
    "/mentor/overview",
    summary="Mentor Overview",
    description="Session counts, average rating and unique mentees of the calling mentor.",
    responses={403: {"description": "Mentors only"}},
)
async def mentor_overview(user: CurrentUser, session: DBSession) -> Dict[str, Any]:
    return await AnalyticsService(session).mentor_overview(user)
