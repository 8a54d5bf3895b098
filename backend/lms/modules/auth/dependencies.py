from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from lms.core.database import get_db
from lms.core.exceptions import MissingTokenError, UserInactiveOrMissingError, InsufficientRoleError
from lms.core.logging_config import logger, set_user_id
from lms.core.security import decode_access_token
from lms.models.user import User
from lms.modules.auth.principal import Principal, SuperAdminPrincipal, SUPERADMIN_ID
from lms.modules.auth.roles import Role

# auto_error=False so a missing header surfaces as our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """
    Authenticate the request.

    The user row is re-read on every request, so deactivation and role
    changes apply immediately instead of at the next token refresh.
    """
    if credentials is None or not credentials.credentials:
        raise MissingTokenError()

    payload = decode_access_token(credentials.credentials)
    user_id = payload["userId"]

    if user_id == SUPERADMIN_ID:
        principal = SuperAdminPrincipal()
    else:
        user = await db.get(User, user_id, populate_existing=True)
        if user is None or not user.active:
            logger.log_auth_event(
                event="authorize",
                success=False,
                user_email=payload.get("email"),
                reason="User not found or inactive",
            )
            raise UserInactiveOrMissingError()
        principal = Principal.from_user(user)

    set_user_id(principal.id)
    request.state.user_id = principal.id
    return principal


def require_role(minimum: Role):
    """
    Dependency factory: authenticate, then require the highest held role
    to rank at least ``minimum``.

    Usage:
        @router.get("/stats")
        async def stats(principal: Principal = Depends(require_role(Role.TEACHER))):
            ...
    """
    async def dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal)
    ) -> Principal:
        if not principal.satisfies(minimum):
            logger.log_access_denied(
                minimum.value,
                [r.value for r in principal.roles],
                path=request.url.path,
            )
            raise InsufficientRoleError()
        return principal

    dependency.__name__ = f"require_{minimum.value.lower()}"
    return dependency


require_superadmin = require_role(Role.SUPERADMIN)
require_admin = require_role(Role.ADMIN)
require_teacher = require_role(Role.TEACHER)
require_student = require_role(Role.STUDENT)
