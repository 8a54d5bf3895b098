from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from lms.core.config import settings
from lms.core.database import get_db
from lms.core.exceptions import (
    AccountInactiveError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserInactiveOrMissingError,
)
from lms.core.logging_config import logger, set_user_id
from lms.core.rate_limiter import login_rate_limit
from lms.core.security import (
    constant_time_equals,
    decode_access_token,
    decode_refresh_token,
    issue_token_pair,
    verify_password,
)
from lms.models.user import User
from lms.modules.auth.dependencies import bearer_scheme, get_current_principal
from lms.modules.auth.principal import Principal, SuperAdminPrincipal, SUPERADMIN_ID
from lms.schemas.auth import (
    AuthUser,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RefreshTokenRequest,
    TokenPair,
)
from lms.services.audit import log_activity

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _is_superadmin_login(credentials: LoginRequest) -> bool:
    return (
        settings.superadmin_enabled
        and constant_time_equals(credentials.login, settings.SUPERADMIN_UID)
        and constant_time_equals(credentials.password, settings.SUPERADMIN_PASSWORD)
    )


@router.post("/login", response_model=LoginResponse)
@login_rate_limit()
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login with email or uid (rate limited)"""
    client_ip = _client_ip(request)

    if _is_superadmin_login(credentials):
        principal = SuperAdminPrincipal()
        logger.log_auth_event(event="login", success=True, user_email=principal.email, client_ip=client_ip)
        return LoginResponse(
            user=AuthUser.from_identity(principal),
            **issue_token_pair(principal.to_claims()),
        )

    result = await db.execute(
        select(User).where(or_(User.email == credentials.login, User.uid == credentials.login))
    )
    user = result.scalars().first()

    if user is None:
        logger.log_auth_event(
            event="login", success=False, user_email=credentials.login,
            reason="Unknown user", client_ip=client_ip
        )
        raise InvalidCredentialsError()

    if not user.active:
        logger.log_auth_event(
            event="login", success=False, user_email=user.email,
            reason="Account inactive", client_ip=client_ip
        )
        raise AccountInactiveError()

    if not await run_in_threadpool(verify_password, credentials.password, user.password_hash):
        logger.log_auth_event(
            event="login", success=False, user_email=user.email,
            reason="Bad password", client_ip=client_ip
        )
        raise InvalidCredentialsError()

    set_user_id(str(user.id))
    tokens = issue_token_pair(user.to_claims())

    logger.log_auth_event(
        event="login", success=True, user_email=user.email,
        client_ip=client_ip, user_roles=user.roles
    )
    await log_activity(db, user.id, "USER_LOGIN", request=request)

    return LoginResponse(user=AuthUser.from_identity(user), **tokens)


@router.post("/refresh", response_model=TokenPair)
async def refresh_token(
    token_request: RefreshTokenRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Exchange a refresh token for a new pair.

    Claims are re-read from the store, so a user deactivated (or whose roles
    changed) since the refresh token was issued cannot replay stale privileges.
    """
    client_ip = _client_ip(request)
    payload = decode_refresh_token(token_request.refresh_token)
    user_id = payload["userId"]

    if user_id == SUPERADMIN_ID:
        if not settings.superadmin_enabled:
            raise InvalidTokenError("Invalid refresh token")
        return TokenPair(**issue_token_pair(SuperAdminPrincipal().to_claims()))

    user = await db.get(User, user_id, populate_existing=True)
    if user is None or not user.active:
        logger.log_auth_event(
            event="token_refresh", success=False, user_email=payload.get("email"),
            reason="User not found or inactive", client_ip=client_ip
        )
        raise UserInactiveOrMissingError()

    logger.log_auth_event(event="token_refresh", success=True, user_email=user.email, client_ip=client_ip)
    return TokenPair(**issue_token_pair(user.to_claims()))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
):
    """
    Stateless logout: the client drops its tokens. Always 200.

    When a valid access token is presented the logout is recorded.
    """
    if credentials is not None:
        try:
            payload = decode_access_token(credentials.credentials)
        except InvalidTokenError:
            payload = None

        if payload and payload["userId"] != SUPERADMIN_ID:
            user = await db.get(User, payload["userId"])
            if user is not None:
                await log_activity(db, user.id, "USER_LOGOUT", request=request)
                logger.log_auth_event(event="logout", success=True, user_email=user.email)

    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Fresh profile of the authenticated principal"""
    if principal.is_superadmin:
        return MeResponse(
            id=principal.id,
            email=principal.email,
            name=principal.name,
            uid=principal.uid,
            roles=principal.roles,
            is_active="ACTIVE",
            default_dashboard=principal.default_dashboard,
        )

    user = await db.get(User, principal.id)
    return MeResponse.model_validate(user)
