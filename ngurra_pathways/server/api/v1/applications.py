"""
Job Application API Endpoints.

Applicants apply and withdraw; employers review and move applications
through the hiring pipeline.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from ngurra_pathways.core.database.entities.jobs import ApplicationStatus
from ngurra_pathways.core.models.io.jobs import (
    ApplicationCreate,
    ApplicationList,
    ApplicationRead,
    ApplicationStats,
    ApplicationUpdate,
)
from ngurra_pathways.server.services.applications import ApplicationService
from ngurra_pathways.server.services.deps import AdminUser, CurrentUser, DBSession, Paging

router = APIRouter()


@router.get(
    "",
    response_model=ApplicationList,
    summary="List Applications",
    description=(
        "Applications visible to the caller: their own, those for their jobs (companies), or all (admins)."
    ),
)
async def list_applications(
    user: CurrentUser,
    session: DBSession,
    paging: Paging,
    status_filter: Optional[ApplicationStatus] = Query(default=None, alias="status"),
    job_id: Optional[str] = Query(default=None),
) -> ApplicationList:
    rows, total = await ApplicationService(session).list(
        user, paging, status=status_filter.value if status_filter else None, job_id=job_id
    )
    return ApplicationList(
        data=[ApplicationRead.model_validate(a) for a in rows],
        pagination=paging.envelope(total),
    )


@router.post(
    "",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Apply for Job",
    description="Submit an application. The employer is notified.",
    responses={
        400: {"description": "Job closed or already applied"},
        404: {"description": "Job not found"},
    },
)
async def apply(data: ApplicationCreate, user: CurrentUser, session: DBSession) -> ApplicationRead:
    """
    Apply for a job.

    - **job_id**: The job to apply for.
    - **cover_letter**: Optional cover letter text.
    - **resume_url**: Optional URL of an uploaded resume.
    """
    return ApplicationRead.model_validate(await ApplicationService(session).apply(user, data))


@router.get(
    "/stats",
    response_model=ApplicationStats,
    summary="Application Statistics",
    description="Totals by status and the number of applications in the last 7 days.",
    responses={403: {"description": "Admin only"}},
)
async def application_stats(admin: AdminUser, session: DBSession) -> ApplicationStats:
    return ApplicationStats.model_validate(await ApplicationService(session).stats())


@router.get(
    "/{application_id}",
    response_model=ApplicationRead,
    summary="Get Application",
    responses={403: {"description": "Not your application"}, 404: {"description": "Application not found"}},
)
async def get_application(application_id: str, user: CurrentUser, session: DBSession) -> ApplicationRead:
    return ApplicationRead.model_validate(await ApplicationService(session).get(user, application_id))


@router.patch(
    "/{application_id}",
    response_model=ApplicationRead,
    summary="Update Application",
    description=(
        "Employers and admins may set any status and notes. "
        "The applicant may only withdraw."
    ),
    responses={403: {"description": "Change not allowed"}, 404: {"description": "Application not found"}},
)
async def update_application(
    application_id: str, data: ApplicationUpdate, user: CurrentUser, session: DBSession
) -> ApplicationRead:
    """
    Update an application.

    - **status**: New pipeline status; the applicant is notified.
    - **notes**: Private employer notes.
    """
    return ApplicationRead.model_validate(await ApplicationService(session).update(user, application_id, data))


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Withdraw Application",
    responses={403: {"description": "Not your application"}, 404: {"description": "Application not found"}},
)
async def withdraw_application(application_id: str, user: CurrentUser, session: DBSession):
    await ApplicationService(session).withdraw(user, application_id)
