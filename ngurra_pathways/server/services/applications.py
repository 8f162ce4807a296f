"""
Job application service.

Applicants apply and may withdraw; employers (and admins) move applications
through the hiring pipeline. Every status change notifies the applicant.
"""

from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.jobs import ApplicationStatus, Job, JobApplication
from ngurra_pathways.core.database.entities.notifications import NotificationPriority, NotificationType
from ngurra_pathways.core.database.entities.users import User, UserType
from ngurra_pathways.core.database.repositories import PageParams, QueryBuilder, paginate
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import BadRequestError, ForbiddenError, NotFoundError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.jobs import ApplicationCreate, ApplicationUpdate
from ngurra_pathways.core.monitoring import log_domain_event

from .deps import is_admin
from .notifications import notify, publish_notifications
from .realtime import manager

logger = get_logger(__name__)

HIGH_PRIORITY_STATUSES = {
    ApplicationStatus.SHORTLISTED.value,
    ApplicationStatus.INTERVIEW.value,
    ApplicationStatus.OFFERED.value,
}


def status_notification_type(status: str) -> str:
    if status == ApplicationStatus.INTERVIEW.value:
        return NotificationType.INTERVIEW_SCHEDULED.value
    if status == ApplicationStatus.OFFERED.value:
        return NotificationType.OFFER_RECEIVED.value
    return NotificationType.JOB_APPLICATION_UPDATE.value


class ApplicationService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(
        self,
        viewer: User,
        params: PageParams,
        status: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> Tuple[List[JobApplication], int]:
        """
        Applications visible to ``viewer``: admins see all, companies see
        applications to their jobs, everyone else sees their own.
        """
        stmt = select(JobApplication)
        if is_admin(viewer):
            pass
        elif viewer.user_type == UserType.COMPANY:
            stmt = stmt.join(Job, Job.id == JobApplication.job_id).where(Job.employer_id == viewer.id)
        else:
            stmt = stmt.where(JobApplication.applicant_id == viewer.id)
        stmt = QueryBuilder.apply_filters(stmt, JobApplication, {"status": status, "job_id": job_id})
        return await paginate(self.session, stmt.order_by(JobApplication.created_at.desc()), params)

    async def apply(self, applicant: User, data: ApplicationCreate) -> JobApplication:
        job = await self.session.get(Job, data.job_id)
        if job is None:
            raise NotFoundError("Job")
        if not job.is_active or (job.closes_at is not None and job.closes_at < utc_now()):
            raise BadRequestError("This job is no longer accepting applications")

        result = await self.session.execute(
            select(JobApplication).where(
                JobApplication.job_id == job.id, JobApplication.applicant_id == applicant.id
            )
        )
        if result.scalars().first() is not None:
            raise BadRequestError("You have already applied for this job")

        application = JobApplication(
            job_id=job.id,
            applicant_id=applicant.id,
            cover_letter=data.cover_letter,
            resume_url=data.resume_url,
        )
        self.session.add(application)
        await self.session.flush()

        notification = await notify(
            self.session,
            job.employer_id,
            NotificationType.JOB_APPLICATION.value,
            "New job application",
            f"{applicant.name} applied for {job.title}",
            data={"application_id": application.id, "job_id": job.id, "applicant_id": applicant.id},
            action_url=f"/employer/applications/{application.id}",
            commit=False,
        )
        await self.session.commit()
        await publish_notifications(notification)
        await self.session.refresh(application)

        await manager.send_to_user(
            job.employer_id,
            "job:application",
            {"application_id": application.id, "job_id": job.id, "job_title": job.title, "applicant_name": applicant.name},
        )
        log_domain_event("application.created", application_id=application.id, job_id=job.id)
        return application

    async def _load(self, application_id: str) -> Tuple[JobApplication, Job]:
        application = await self.session.get(JobApplication, application_id)
        if application is None:
            raise NotFoundError("Application")
        job = await self.session.get(Job, application.job_id)
        if job is None:
            raise NotFoundError("Job")
        return application, job

    async def get(self, viewer: User, application_id: str) -> JobApplication:
        application, job = await self._load(application_id)
        if viewer.id not in (application.applicant_id, job.employer_id) and not is_admin(viewer):
            raise ForbiddenError("You do not have access to this application")
        return application

    async def update(self, actor: User, application_id: str, data: ApplicationUpdate) -> JobApplication:
        """
        Employers and admins may set any status and notes. Applicants may only
        withdraw their own application.
        """
        application, job = await self._load(application_id)
        is_employer = actor.id == job.employer_id or is_admin(actor)
        is_applicant = actor.id == application.applicant_id
        if not is_employer and not is_applicant:
            raise ForbiddenError("You do not have access to this application")

        changes = data.model_dump(exclude_unset=True)
        new_status = data.status.value if data.status is not None else None
        if not is_employer:
            if "notes" in changes or new_status != ApplicationStatus.WITHDRAWN.value:
                raise ForbiddenError("Applicants can only withdraw their application")

        previous = application.status
        if "notes" in changes:
            application.notes = data.notes
        if new_status is not None:
            application.status = new_status
        self.session.add(application)

        notification = None
        if new_status is not None and new_status != previous and is_employer:
            notification = await notify(
                self.session,
                application.applicant_id,
                status_notification_type(new_status),
                "Application update",
                f"Your application for {job.title} is now {new_status}",
                data={"application_id": application.id, "job_id": job.id, "status": new_status},
                action_url=f"/applications/{application.id}",
                priority=(
                    NotificationPriority.HIGH.value
                    if new_status in HIGH_PRIORITY_STATUSES
                    else NotificationPriority.MEDIUM.value
                ),
                commit=False,
            )

        await self.session.commit()
        await publish_notifications(notification)
        await self.session.refresh(application)

        if new_status is not None and new_status != previous:
            await manager.send_to_user(
                application.applicant_id,
                "job:status-change",
                {"application_id": application.id, "job_id": job.id, "status": new_status, "previous_status": previous},
            )
            log_domain_event("application.status_changed", application_id=application.id, status=new_status)
        return application

    async def withdraw(self, actor: User, application_id: str) -> None:
        application, _job = await self._load(application_id)
        if actor.id != application.applicant_id and not is_admin(actor):
            raise ForbiddenError("You can only withdraw your own application")
        application.status = ApplicationStatus.WITHDRAWN.value
        self.session.add(application)
        await self.session.commit()

    async def stats(self) -> Dict[str, object]:
        total = (await self.session.execute(select(func.count()).select_from(JobApplication))).scalar_one()
        recent = (
            await self.session.execute(
                select(func.count())
                .select_from(JobApplication)
                .where(JobApplication.created_at >= utc_now() - timedelta(days=7))
            )
        ).scalar_one()
        rows = await self.session.execute(
            select(JobApplication.status, func.count()).group_by(JobApplication.status)
        )
        by_status = {status.value: 0 for status in ApplicationStatus}
        by_status.update({status: int(count) for status, count in rows.all()})
        return {"total": int(total), "recent_applications": int(recent), "by_status": by_status}
