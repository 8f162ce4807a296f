"""
Authentication API Endpoints.

Registration, login, token refresh and logout. Access and refresh tokens are
opaque strings; clients send the access token as ``Authorization: Bearer``.
"""

from fastapi import APIRouter, Request, status

from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.users import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserRead,
)
from ngurra_pathways.server.services.auth import AuthService, IssuedTokens
from ngurra_pathways.server.services.deps import BearerCredentials, CurrentUser, DBSession

logger = get_logger(__name__)
router = APIRouter()


def auth_response(user, tokens: IssuedTokens) -> AuthResponse:
    return AuthResponse(
        user=UserRead.model_validate(user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
    description="Create a new account and open a session for it.",
    response_description="The new user and a token pair.",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Account type not allowed"},
        409: {"description": "Email already registered"},
        422: {"description": "Invalid email or password too short"},
    },
)
async def register(data: RegisterRequest, session: DBSession) -> AuthResponse:
    """
    Register a new account.

    - **email**: Login email, unique across accounts.
    - **password**: At least 8 characters.
    - **user_type**: MEMBER, MENTOR, COMPANY, INSTITUTION or GOVERNMENT.
    - **display_name**: Optional public name.
    """
    user, tokens = await AuthService(session).register(data)
    return auth_response(user, tokens)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log In",
    description="Exchange email and password for a token pair.",
    response_description="The user and a token pair.",
    responses={401: {"description": "Invalid email or password"}},
)
async def login(data: LoginRequest, request: Request, session: DBSession) -> AuthResponse:
    """
    Log in with email and password.

    - **email**: Account email.
    - **password**: Account password.
    """
    user, tokens = await AuthService(session).login(
        data.email, data.password, user_agent=request.headers.get("user-agent")
    )
    return auth_response(user, tokens)


@router.post(
    "/refresh",
    response_model=AuthResponse,
    summary="Refresh Tokens",
    description="Rotate the token pair. The previous access and refresh tokens stop working.",
    response_description="The user and a new token pair.",
    responses={401: {"description": "Refresh token invalid, revoked or expired"}},
)
async def refresh(data: RefreshRequest, session: DBSession) -> AuthResponse:
    user, tokens = await AuthService(session).refresh(data.refresh_token)
    return auth_response(user, tokens)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log Out",
    description="Revoke the session of the presented access token.",
    responses={401: {"description": "Not authenticated"}},
)
async def logout(user: CurrentUser, credentials: BearerCredentials, session: DBSession):
    await AuthService(session).logout(credentials.credentials)
    logger.info(f"User {user.id} logged out")


@router.get(
    "/me",
    response_model=UserRead,
    summary="Current User",
    description="Return the account of the presented access token.",
    responses={401: {"description": "Not authenticated"}},
)
async def me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)
