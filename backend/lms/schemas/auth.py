from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from lms.models.user import UserStatus
from lms.modules.auth.roles import Role


class APIModel(BaseModel):
    """Base schema: camelCase aliases on the wire, snake_case accepted on input"""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class LoginRequest(APIModel):
    """Login with email or uid"""
    login: str = Field(..., min_length=1, description="Email or UID")
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(APIModel):
    refresh_token: str = Field(..., min_length=1, alias="refreshToken")


class TokenPair(APIModel):
    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")


class AuthUser(APIModel):
    id: str
    email: str
    name: Optional[str] = None
    uid: Optional[str] = None
    roles: List[Role]
    default_dashboard: Role = Field(..., alias="defaultDashboard")

    @classmethod
    def from_identity(cls, identity) -> "AuthUser":
        """Build from a User row or a Principal"""
        return cls(
            id=str(identity.id),
            email=identity.email,
            name=identity.name,
            uid=identity.uid,
            roles=identity.roles,
            default_dashboard=identity.default_dashboard,
        )


class LoginResponse(TokenPair):
    user: AuthUser


class MeResponse(BaseModel):
    """Current principal profile (field names as stored)"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    uid: Optional[str] = None
    roles: List[Role]
    is_active: UserStatus
    default_dashboard: Role


class MessageResponse(BaseModel):
    message: str
