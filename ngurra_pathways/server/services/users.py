"""
User profile service.
"""

from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.jobs import JobApplication
from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.database.repositories import PageParams, QueryBuilder, paginate
from ngurra_pathways.core.errors import ForbiddenError, NotFoundError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.users import AdminUserUpdate, ProfileUpdate

from .auth import AuthService
from .deps import is_admin

logger = get_logger(__name__)

ADMIN_ONLY_FIELDS = {"user_type", "is_active"}


class UserService:
    """Profile reads, search and admin account management."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User")
        return user

    async def get_any(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def search(
        self, query: Optional[str], params: PageParams, user_type: Optional[str] = None
    ) -> Tuple[List[User], int]:
        """Active users matching a name, headline or email prefix."""
        stmt = select(User).where(User.is_active.is_(True))
        stmt = QueryBuilder.apply_filters(stmt, User, {"user_type": user_type})
        if query:
            like = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(
                    User.display_name.ilike(like),
                    User.first_name.ilike(like),
                    User.last_name.ilike(like),
                    User.headline.ilike(like),
                    User.email.ilike(f"{query.strip().lower()}%"),
                )
            )
        return await paginate(self.session, stmt.order_by(User.created_at.desc()), params)

    async def list_all(
        self, params: PageParams, user_type: Optional[str] = None, search: Optional[str] = None
    ) -> Tuple[List[User], int]:
        """Admin listing including inactive accounts."""
        stmt = QueryBuilder.apply_filters(select(User), User, {"user_type": user_type})
        if search:
            like = f"%{search.strip()}%"
            stmt = stmt.where(or_(User.email.ilike(like), User.display_name.ilike(like)))
        return await paginate(self.session, stmt.order_by(User.created_at.desc()), params)

    async def update_profile(self, actor: User, user_id: str, data: AdminUserUpdate | ProfileUpdate) -> User:
        """
        Apply a partial profile update.

        Users may edit themselves; admins may edit anyone and are the only ones
        allowed to change ``user_type`` or ``is_active``.
        """
        if actor.id != user_id and not is_admin(actor):
            raise ForbiddenError("You can only update your own profile")
        user = await self.get_any(user_id)

        changes = data.model_dump(exclude_unset=True)
        if ADMIN_ONLY_FIELDS & changes.keys() and not is_admin(actor):
            raise ForbiddenError("Only administrators can change account type or status")

        for field, value in changes.items():
            if field == "user_type" and value is not None:
                value = str(getattr(value, "value", value))
            setattr(user, field, value)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def deactivate(self, user_id: str) -> User:
        """Soft-delete an account and revoke its sessions."""
        user = await self.get_any(user_id)
        user.is_active = False
        self.session.add(user)
        await AuthService(self.session).revoke_all(user.id, commit=False)
        await self.session.commit()
        await self.session.refresh(user)
        logger.info(f"Deactivated user {user_id}")
        return user

    async def applications_of(self, actor: User, user_id: str, params: PageParams) -> Tuple[List[JobApplication], int]:
        if actor.id != user_id and not is_admin(actor):
            raise ForbiddenError("You can only view your own applications")
        stmt = (
            select(JobApplication)
            .where(JobApplication.applicant_id == user_id)
            .order_by(JobApplication.created_at.desc())
        )
        return await paginate(self.session, stmt, params)
