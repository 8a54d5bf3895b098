"""
Admin (superadmin) request/response schemas.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, field_validator

from lms.models.user import UserStatus
from lms.modules.auth.roles import ASSIGNABLE_ROLES, Role
from lms.schemas.auth import APIModel, AuthUser, TokenPair


class UserCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    uid: str = Field(..., min_length=1, max_length=64)
    role: Role
    phone: Optional[str] = Field(None, max_length=20)
    # Defaults to the uid when omitted
    password: Optional[str] = Field(None, min_length=6)

    @field_validator("role")
    @classmethod
    def role_is_assignable(cls, v: Role) -> Role:
        if v not in ASSIGNABLE_ROLES:
            raise ValueError("Valid role is required")
        return v


class UserUpdate(APIModel):
    status: Optional[UserStatus] = None
    roles: Optional[List[Role]] = None

    @field_validator("roles")
    @classmethod
    def at_least_one_role(cls, v: Optional[List[Role]]) -> Optional[List[Role]]:
        if v is not None and len(v) == 0:
            raise ValueError("At least one role must be assigned")
        return v


class UserSummary(APIModel):
    id: str
    name: str
    email: str
    uid: str
    roles: List[Role]
    status: UserStatus
    default_dashboard: Role = Field(..., alias="defaultDashboard")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_user(cls, user) -> "UserSummary":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            uid=user.uid,
            roles=user.roles,
            status=user.is_active,
            default_dashboard=user.default_dashboard,
            created_at=user.created_at,
        )


class UserCreatedResponse(UserSummary):
    default_password: bool = Field(..., alias="defaultPassword")


class UserUpdatedResponse(APIModel):
    message: str
    user: UserSummary


class DepartmentCreate(APIModel):
    dept_name: str = Field(..., min_length=1, max_length=255)


class DepartmentResponse(APIModel):
    id: str
    dept_name: str
    dean_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


class DepartmentSummary(APIModel):
    id: str
    name: str
    dean_id: Optional[str] = Field(None, alias="deanId")
    dean_name: Optional[str] = Field(None, alias="deanName")
    total_courses: int = Field(0, alias="totalCourses")
    created_at: datetime = Field(..., alias="createdAt")


class AssignDeanRequest(APIModel):
    dean_id: str = Field(..., min_length=1, alias="deanId")
    department_id: str = Field(..., min_length=1, alias="departmentId")


class RemoveDeanRequest(APIModel):
    department_id: str = Field(..., min_length=1, alias="departmentId")


class DeanAssignmentResponse(APIModel):
    message: str
    department: DepartmentResponse


class DirectLoginRequest(APIModel):
    uid: str = Field(..., min_length=1)


class DirectLoginResponse(TokenPair):
    user: AuthUser


class LogEntry(APIModel):
    id: str
    timestamp: datetime
    action: str
    category: str
    message: str
    user_id: Optional[str] = Field(None, alias="userId")
    user_name: Optional[str] = Field(None, alias="userName")
    metadata: Optional[Dict[str, Any]] = None


class AdminStats(APIModel):
    total_users: int = Field(..., alias="totalUsers")
    total_departments: int = Field(..., alias="totalDepartments")
    total_courses: int = Field(..., alias="totalCourses")
    active_users: int = Field(..., alias="activeUsers")
