"""
Authentication service.

Issues opaque access/refresh token pairs at login and registration and
resolves bearer tokens back to users. A session is rejected when revoked,
expired, or idle for longer than ``SESSION_IDLE_TIMEOUT_MINUTES``.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.billing import Subscription, SubscriptionTier
from ngurra_pathways.core.database.entities.users import AuthSession, User, UserType
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import AuthenticationError, BadRequestError, ConflictError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.users import RegisterRequest
from ngurra_pathways.core.monitoring import log_domain_event
from ngurra_pathways.server.core.config import settings
from ngurra_pathways.server.core.security import generate_token, hash_password, hash_token, verify_password

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass
class IssuedTokens:
    """Plain-text token pair handed to the client exactly once."""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


class AuthService:
    """Registration, login and token session lifecycle."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.config = settings.auth

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalars().first()

    async def register(self, data: RegisterRequest) -> tuple[User, IssuedTokens]:
        """
        Create an account and open a session for it.

        Raises:
            BadRequestError: Self-registration as ADMIN
            ConflictError: The email is already registered
        """
        if data.user_type == UserType.ADMIN:
            raise BadRequestError("Cannot self-register as an administrator")
        email = data.email.strip().lower()
        if await self.get_user_by_email(email):
            raise ConflictError("An account with this email already exists")

        user = User(
            email=email,
            password_hash=hash_password(data.password, self.config.bcrypt_rounds),
            user_type=data.user_type.value,
            display_name=data.display_name,
            first_name=data.first_name,
            last_name=data.last_name,
            company_name=data.company_name,
        )
        self.session.add(user)
        await self.session.flush()

        if user.user_type == UserType.COMPANY:
            self.session.add(Subscription(user_id=user.id, tier=SubscriptionTier.FREE.value))

        tokens = self._open_session(user)
        await self.session.commit()
        await self.session.refresh(user)
        log_domain_event("user.registered", user_id=user.id, user_type=user.user_type)
        return user, tokens

    async def login(self, email: str, password: str, user_agent: Optional[str] = None) -> tuple[User, IssuedTokens]:
        """
        Verify credentials and open a new session.

        Unknown emails, wrong passwords and deactivated accounts all produce the
        same error so callers cannot tell which accounts exist.
        """
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash) or not user.is_active:
            logger.info("Rejected login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        user.last_login_at = utc_now()
        self.session.add(user)
        tokens = self._open_session(user, user_agent)
        await self.session.commit()
        await self.session.refresh(user)
        return user, tokens

    def _open_session(self, user: User, user_agent: Optional[str] = None) -> IssuedTokens:
        now = utc_now()
        access_token = generate_token()
        refresh_token = generate_token()
        self.session.add(
            AuthSession(
                user_id=user.id,
                access_token_hash=hash_token(access_token),
                refresh_token_hash=hash_token(refresh_token),
                access_expires_at=now + timedelta(minutes=self.config.access_token_ttl_minutes),
                refresh_expires_at=now + timedelta(days=self.config.refresh_token_ttl_days),
                last_activity_at=now,
                user_agent=user_agent[:255] if user_agent else None,
            )
        )
        return IssuedTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.config.access_token_ttl_minutes * 60,
        )

    async def _session_for_access_token(self, access_token: str) -> Optional[AuthSession]:
        result = await self.session.execute(
            select(AuthSession).where(AuthSession.access_token_hash == hash_token(access_token))
        )
        return result.scalars().first()

    async def authenticate(self, access_token: Optional[str]) -> User:
        """
        Resolve a bearer token to its user and record activity.

        Raises:
            AuthenticationError: Missing, unknown, revoked, expired or idle token,
                or a deactivated user
        """
        if not access_token:
            raise AuthenticationError("Authentication required")

        auth_session = await self._session_for_access_token(access_token)
        if auth_session is None or auth_session.revoked:
            raise AuthenticationError("Invalid or expired token")

        now = utc_now()
        if auth_session.access_expires_at <= now:
            raise AuthenticationError("Invalid or expired token")
        if now - auth_session.last_activity_at > timedelta(minutes=self.config.idle_timeout_minutes):
            auth_session.revoked = True
            self.session.add(auth_session)
            await self.session.commit()
            raise AuthenticationError("Session expired due to inactivity")

        user = await self.session.get(User, auth_session.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid or expired token")

        auth_session.last_activity_at = now
        self.session.add(auth_session)
        await self.session.commit()
        return user

    async def refresh(self, refresh_token: str) -> tuple[User, IssuedTokens]:
        """Rotate a session: the old token pair stops working."""
        result = await self.session.execute(
            select(AuthSession).where(AuthSession.refresh_token_hash == hash_token(refresh_token))
        )
        auth_session = result.scalars().first()
        if auth_session is None or auth_session.revoked or auth_session.refresh_expires_at <= utc_now():
            raise AuthenticationError("Invalid or expired refresh token")

        user = await self.session.get(User, auth_session.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid or expired refresh token")

        auth_session.revoked = True
        self.session.add(auth_session)
        tokens = self._open_session(user, auth_session.user_agent)
        await self.session.commit()
        return user, tokens

    async def logout(self, access_token: str) -> None:
        auth_session = await self._session_for_access_token(access_token)
        if auth_session is not None and not auth_session.revoked:
            auth_session.revoked = True
            self.session.add(auth_session)
            await self.session.commit()

    async def revoke_all(self, user_id: str, commit: bool = True) -> None:
        """Revoke every open session of a user."""
        await self.session.execute(
            update(AuthSession).where(AuthSession.user_id == user_id, AuthSession.revoked.is_(False)).values(revoked=True)
        )
        if commit:
            await self.session.commit()
