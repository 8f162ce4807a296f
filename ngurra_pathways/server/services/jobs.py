"""
Job listing service.
"""

from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.jobs import Job
from ngurra_pathways.core.database.entities.users import User, UserType
from ngurra_pathways.core.database.repositories import PageParams, QueryBuilder, paginate
from ngurra_pathways.core.database.utils import to_naive_utc
from ngurra_pathways.core.errors import ForbiddenError, NotFoundError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.jobs import JobCreate, JobUpdate
from ngurra_pathways.core.monitoring import log_domain_event

from .billing import BillingService
from .deps import is_admin

logger = get_logger(__name__)


class JobService:
    """Listing, posting and maintaining job listings."""

    def __init__(self, session: AsyncSession, billing: Optional[BillingService] = None):
        self.session = session
        self.billing = billing or BillingService(session)

    async def search(
        self,
        params: PageParams,
        q: Optional[str] = None,
        location: Optional[str] = None,
        employment_type: Optional[str] = None,
        is_remote: Optional[bool] = None,
        employer_id: Optional[str] = None,
    ) -> Tuple[List[Job], int]:
        """Active jobs, newest first."""
        stmt = select(Job).where(Job.is_active.is_(True))
        stmt = QueryBuilder.apply_filters(
            stmt, Job, {"employment_type": employment_type, "is_remote": is_remote, "employer_id": employer_id}
        )
        if q:
            like = f"%{q.strip()}%"
            stmt = stmt.where(or_(Job.title.ilike(like), Job.description.ilike(like), Job.company_name.ilike(like)))
        if location:
            stmt = stmt.where(Job.location.ilike(f"%{location.strip()}%"))
        return await paginate(self.session, stmt.order_by(Job.created_at.desc()), params)

    async def get(self, job_id: str, viewer: Optional[User] = None) -> Job:
        """Inactive jobs are only visible to their employer and admins."""
        job = await self.session.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job")
        if not job.is_active and not (viewer and (viewer.id == job.employer_id or is_admin(viewer))):
            raise NotFoundError("Job")
        return job

    async def create(self, employer: User, data: JobCreate) -> Job:
        """
        Post a job.

        Raises:
            ForbiddenError: The employer's subscription tier job limit is reached
        """
        if employer.user_type == UserType.COMPANY:
            await self.billing.ensure_can_post_job(employer.id)
        values = data.model_dump()
        values["employment_type"] = data.employment_type.value
        values["company_name"] = data.company_name or employer.company_name
        if data.closes_at is not None:
            values["closes_at"] = to_naive_utc(data.closes_at)
        job = Job(employer_id=employer.id, **values)
        self.session.add(job)
        await self.session.commit()
        await self.session.refresh(job)
        log_domain_event("job.created", job_id=job.id, employer_id=employer.id)
        return job

    async def _get_owned(self, actor: User, job_id: str) -> Job:
        job = await self.session.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job")
        if job.employer_id != actor.id and not is_admin(actor):
            raise ForbiddenError("You can only manage your own job listings")
        return job

    async def update(self, actor: User, job_id: str, data: JobUpdate) -> Job:
        job = await self._get_owned(actor, job_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("closes_at") is not None:
            changes["closes_at"] = to_naive_utc(changes["closes_at"])
        if changes.get("is_active") and not job.is_active and actor.user_type == UserType.COMPANY:
            await self.billing.ensure_can_post_job(job.employer_id)
        for field, value in changes.items():
            setattr(job, field, getattr(value, "value", value))
        self.session.add(job)
        await self.session.commit()
        await self.session.refresh(job)
        return job

    async def deactivate(self, actor: User, job_id: str) -> None:
        job = await self._get_owned(actor, job_id)
        job.is_active = False
        self.session.add(job)
        await self.session.commit()
        logger.info(f"Job {job_id} deactivated by {actor.id}")
