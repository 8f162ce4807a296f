"""
Admin dashboard and analytics aggregates.

All figures are computed with ``COUNT``/``AVG`` queries at request time.
"""

import time
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.billing import Subscription, SubscriptionTier
from ngurra_pathways.core.database.entities.jobs import ApplicationStatus, Job, JobApplication
from ngurra_pathways.core.database.entities.mentorship import MentorSession, SessionStatus
from ngurra_pathways.core.database.entities.social import SocialPost
from ngurra_pathways.core.database.entities.users import User, UserType
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import ForbiddenError
from ngurra_pathways.core.logging_config import get_logger

from .billing import BillingService
from .deps import is_admin

logger = get_logger(__name__)

FUNNEL_STAGES = (
    ApplicationStatus.PENDING,
    ApplicationStatus.REVIEWED,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.OFFERED,
    ApplicationStatus.HIRED,
)
RECENT_ACTIVITY_LIMIT = 10


def month_start(now=None):
    now = now or utc_now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class AnalyticsService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _count(self, stmt) -> int:
        return int((await self.session.execute(stmt)).scalar_one())

    async def _grouped(self, column, keys: List[str], *where) -> Dict[str, int]:
        stmt = select(column, func.count()).where(*where).group_by(column)
        counts = {key: 0 for key in keys}
        for key, count in (await self.session.execute(stmt)).all():
            counts[key] = int(count)
        return counts

    # -----------------------------------------------------------------
    # Admin dashboard
    # -----------------------------------------------------------------

    async def dashboard(self) -> Dict[str, Any]:
        since_month = month_start()
        stats = {
            "total_users": await self._count(select(func.count()).select_from(User)),
            "active_jobs": await self._count(
                select(func.count()).select_from(Job).where(Job.is_active.is_(True))
            ),
            "companies": await self._count(
                select(func.count()).select_from(User).where(User.user_type == UserType.COMPANY.value)
            ),
            "mentors": await self._count(
                select(func.count()).select_from(User).where(User.user_type == UserType.MENTOR.value)
            ),
            "applications_this_month": await self._count(
                select(func.count()).select_from(JobApplication).where(JobApplication.created_at >= since_month)
            ),
            "placements_this_month": await self._count(
                select(func.count())
                .select_from(JobApplication)
                .where(
                    JobApplication.status == ApplicationStatus.HIRED.value,
                    JobApplication.updated_at >= since_month,
                )
            ),
        }

        recent_users = (
            await self.session.execute(select(User).order_by(User.created_at.desc()).limit(5))
        ).scalars().all()
        recent_jobs = (
            await self.session.execute(select(Job).order_by(Job.created_at.desc()).limit(5))
        ).scalars().all()
        activity: List[Dict[str, Any]] = [
            {"type": "user_registered", "id": u.id, "title": u.name, "created_at": u.created_at}
            for u in recent_users
        ]
        activity += [
            {"type": "job_posted", "id": j.id, "title": j.title, "created_at": j.created_at} for j in recent_jobs
        ]
        activity.sort(key=lambda item: item["created_at"], reverse=True)

        applications_24h = await self._count(
            select(func.count())
            .select_from(JobApplication)
            .where(JobApplication.created_at >= utc_now() - timedelta(hours=24))
        )
        unverified_mentors = await self._count(
            select(func.count())
            .select_from(User)
            .where(User.user_type == UserType.MENTOR.value, User.email_verified.is_(False))
        )
        return {
            "stats": stats,
            "recent_activity": activity[:RECENT_ACTIVITY_LIMIT],
            "applications_last_24h": applications_24h,
            "pending": {"unverified_mentors": unverified_mentors},
        }

    async def system_health(self) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            await self.session.execute(text("SELECT 1"))
            database = {"status": "healthy"}
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            database = {"status": "unhealthy", "error": str(e)}
        database["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
        overall = "healthy" if database["status"] == "healthy" else "degraded"
        return {"status": overall, "database": database, "checked_at": utc_now()}

    # -----------------------------------------------------------------
    # Analytics
    # -----------------------------------------------------------------

    async def admin_overview(self) -> Dict[str, Any]:
        return {
            "users_by_type": await self._grouped(User.user_type, [t.value for t in UserType]),
            "jobs": {
                "total": await self._count(select(func.count()).select_from(Job)),
                "active": await self._count(select(func.count()).select_from(Job).where(Job.is_active.is_(True))),
            },
            "applications_by_status": await self._grouped(
                JobApplication.status, [s.value for s in ApplicationStatus]
            ),
            "posts": await self._count(
                select(func.count()).select_from(SocialPost).where(SocialPost.is_active.is_(True))
            ),
            "sessions_by_status": await self._grouped(MentorSession.status, [s.value for s in SessionStatus]),
            "subscriptions_by_tier": await self._grouped(Subscription.tier, [t.value for t in SubscriptionTier]),
        }

    async def job_funnel(self) -> Dict[str, Any]:
        by_status = await self._grouped(JobApplication.status, [s.value for s in ApplicationStatus])
        total = sum(by_status.values())
        stages = [
            {
                "stage": stage.value,
                "count": by_status[stage.value],
                "conversion_rate": round(by_status[stage.value] / total * 100, 1) if total else 0.0,
            }
            for stage in FUNNEL_STAGES
        ]
        return {
            "total_applications": total,
            "stages": stages,
            "rejected": by_status[ApplicationStatus.REJECTED.value],
            "withdrawn": by_status[ApplicationStatus.WITHDRAWN.value],
        }

    async def employer_overview(self, user: User, employer_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Job and application figures for one employer.

        Admins may pass ``employer_id``; companies always see their own jobs
        and need a tier that includes analytics.
        """
        if is_admin(user):
            owner_id = employer_id or user.id
        elif user.user_type == UserType.COMPANY:
            if not await BillingService(self.session).has_analytics(user.id):
                raise ForbiddenError("Analytics are not included in your subscription tier")
            owner_id = user.id
        else:
            raise ForbiddenError("Insufficient permissions")

        jobs = (
            await self.session.execute(
                select(Job).where(Job.employer_id == owner_id).order_by(Job.created_at.desc())
            )
        ).scalars().all()
        job_ids = [job.id for job in jobs]

        per_job: Dict[str, int] = {job_id: 0 for job_id in job_ids}
        by_status = {s.value: 0 for s in ApplicationStatus}
        if job_ids:
            rows = await self.session.execute(
                select(JobApplication.job_id, JobApplication.status, func.count())
                .where(JobApplication.job_id.in_(job_ids))
                .group_by(JobApplication.job_id, JobApplication.status)
            )
            for job_id, status, count in rows.all():
                per_job[job_id] += int(count)
                by_status[status] = by_status.get(status, 0) + int(count)

        return {
            "employer_id": owner_id,
            "total_jobs": len(jobs),
            "active_jobs": sum(1 for job in jobs if job.is_active),
            "total_applications": sum(per_job.values()),
            "applications_per_job": [
                {"job_id": job.id, "title": job.title, "applications": per_job[job.id]} for job in jobs
            ],
            "applications_by_status": by_status,
        }

    async def mentor_overview(self, user: User) -> Dict[str, Any]:
        if user.user_type != UserType.MENTOR:
            raise ForbiddenError("Insufficient permissions")
        by_status = await self._grouped(
            MentorSession.status, [s.value for s in SessionStatus], MentorSession.mentor_id == user.id
        )
        average = (
            await self.session.execute(
                select(func.avg(MentorSession.rating)).where(
                    MentorSession.mentor_id == user.id, MentorSession.rating.is_not(None)
                )
            )
        ).scalar_one()
        mentees = await self._count(
            select(func.count(func.distinct(MentorSession.mentee_id))).where(MentorSession.mentor_id == user.id)
        )
        return {
            "mentor_id": user.id,
            "sessions_by_status": by_status,
            "total_sessions": sum(by_status.values()),
            "average_rating": round(float(average), 2) if average is not None else None,
            "unique_mentees": mentees,
        }
