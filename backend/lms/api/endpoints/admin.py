"""
SuperAdmin API Endpoints

Provides endpoints for:
- User management (create, list, activate/deactivate, role changes)
- Department management and dean assignment
- Activity log and platform stats
- Direct login (impersonation) for support
"""
from typing import List

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.config import settings
from lms.core.database import get_db
from lms.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from lms.core.logging_config import logger
from lms.core.security import get_password_hash, issue_token_pair
from lms.models.academic import Course, Department
from lms.models.user import User, UserStatus
from lms.modules.auth.dependencies import require_superadmin
from lms.modules.auth.principal import Principal
from lms.modules.auth.roles import Role
from lms.schemas.admin import (
    AdminStats,
    AssignDeanRequest,
    DeanAssignmentResponse,
    DepartmentCreate,
    DepartmentResponse,
    DepartmentSummary,
    DirectLoginRequest,
    DirectLoginResponse,
    LogEntry,
    RemoveDeanRequest,
    UserCreate,
    UserCreatedResponse,
    UserSummary,
    UserUpdate,
    UserUpdatedResponse,
)
from lms.schemas.auth import AuthUser
from lms.services.academic import active_users_with_role
from lms.services.audit import log_activity, recent_activity

router = APIRouter(tags=["Admin"])

LOG_PAGE_SIZE = 100


# ==================== Stats ====================

@router.get("/stats", response_model=AdminStats)
async def get_stats(
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    return AdminStats(
        total_users=await db.scalar(select(func.count(User.id))) or 0,
        total_departments=await db.scalar(select(func.count(Department.id))) or 0,
        total_courses=await db.scalar(select(func.count(Course.id))) or 0,
        active_users=await db.scalar(
            select(func.count(User.id)).where(User.is_active == UserStatus.ACTIVE)
        ) or 0,
    )


# ==================== Users ====================

@router.get("/users", response_model=List[UserSummary])
async def list_users(
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    users = (await db.execute(select(User).order_by(User.created_at.desc()))).scalars().all()
    return [UserSummary.from_user(u) for u in users]


@router.post("/users", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    request: Request,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a user with a single role.

    When no password is supplied the uid becomes the initial password and
    ``defaultPassword`` is true in the response.
    """
    existing = await db.scalar(
        select(User.id).where(or_(User.email == data.email, User.uid == data.uid))
    )
    if existing:
        raise ConflictError("User with this email or UID already exists")

    password = data.password or data.uid
    user = User(
        uid=data.uid,
        name=data.name,
        email=data.email,
        phone=data.phone,
        password_hash=await run_in_threadpool(get_password_hash, password),
    )
    user.assign_roles([data.role])
    db.add(user)
    await db.commit()

    logger.info(f"User created: {user.uid} ({data.role.value})")
    await log_activity(
        db, principal, "USER_CREATED",
        {"targetUserId": user.id, "targetUserUid": user.uid, "role": data.role.value},
        request=request,
    )

    summary = UserSummary.from_user(user)
    return UserCreatedResponse(**summary.model_dump(), default_password=data.password is None)


@router.put("/users/{user_id}", response_model=UserUpdatedResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    request: Request,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """
    Activate/deactivate a user and/or replace their roles.

    Every non-superadmin keeps STUDENT; the default dashboard follows the
    highest role. Takes effect on the user's next request.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.uid == settings.SUPERADMIN_UID:
        raise AuthorizationError("Cannot modify SuperAdmin user")

    changes = {}
    if data.status is not None:
        user.is_active = data.status
        changes["status"] = data.status.value

    if data.roles is not None:
        roles = set(data.roles)
        if Role.SUPERADMIN not in roles:
            roles.add(Role.STUDENT)
        user.assign_roles(roles)
        changes["roles"] = list(user.roles)

    # An assigned dean must stay ADMIN and ACTIVE
    headed = []
    if not user.active or not user.has_role(Role.ADMIN):
        headed = (
            await db.execute(select(Department).where(Department.dean_id == user.id))
        ).scalars().all()
        for department in headed:
            department.dean_id = None
        if headed:
            changes["removedFromDepartments"] = [d.id for d in headed]

    await db.commit()

    logger.info(f"User updated: {user.uid} {changes}")
    await log_activity(
        db, principal, "USER_UPDATED",
        {"targetUserId": user.id, "targetUserUid": user.uid, "changes": changes},
        request=request,
    )
    for department in headed:
        await log_activity(
            db, principal, "REMOVE_DEAN",
            {"deanId": user.id, "departmentId": department.id},
            request=request,
        )
    return UserUpdatedResponse(message="User updated successfully", user=UserSummary.from_user(user))


@router.post("/direct-login", response_model=DirectLoginResponse)
async def direct_login(
    data: DirectLoginRequest,
    request: Request,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Issue a token pair for another user (support impersonation)"""
    user = await db.scalar(select(User).where(User.uid == data.uid))
    if user is None:
        raise NotFoundError("User not found")
    if not user.active:
        raise ValidationError("User is not active")

    tokens = issue_token_pair(user.to_claims())

    logger.log_auth_event(event="direct_login", success=True, user_email=user.email, actor=principal.id)
    await log_activity(
        db, principal, "DIRECT_LOGIN",
        {"targetUserId": user.id, "targetUserUid": user.uid},
        request=request,
    )
    return DirectLoginResponse(user=AuthUser.from_identity(user), **tokens)


# ==================== Departments ====================

@router.get("/departments", response_model=List[DepartmentSummary])
async def list_departments(
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    course_totals = (
        select(Course.dept_id, func.count(Course.id).label("total"))
        .group_by(Course.dept_id)
        .subquery()
    )
    rows = await db.execute(
        select(Department, User.name, func.coalesce(course_totals.c.total, 0))
        .outerjoin(User, Department.dean_id == User.id)
        .outerjoin(course_totals, course_totals.c.dept_id == Department.id)
        .order_by(Department.created_at.desc())
    )
    return [
        DepartmentSummary(
            id=dept.id,
            name=dept.dept_name,
            dean_id=dept.dean_id,
            dean_name=dean_name,
            total_courses=total,
            created_at=dept.created_at,
        )
        for dept, dean_name, total in rows.all()
    ]


@router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    data: DepartmentCreate,
    request: Request,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    existing = await db.scalar(select(Department.id).where(Department.dept_name == data.dept_name))
    if existing:
        raise ConflictError("Department with this name already exists")

    department = Department(dept_name=data.dept_name, created_by=principal.user_id)
    db.add(department)
    await db.commit()

    await log_activity(
        db, principal, "DEPARTMENT_CREATED",
        {"departmentId": department.id, "deptName": department.dept_name},
        request=request,
    )
    return DepartmentResponse.model_validate(department)


@router.get("/deans-departments")
async def list_deans_and_departments(
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Active deans with the departments they head, and every department with its dean"""
    deans = await active_users_with_role(db, Role.ADMIN)
    rows = (
        await db.execute(
            select(Department, User.name)
            .outerjoin(User, Department.dean_id == User.id)
            .order_by(Department.dept_name)
        )
    ).all()

    headed = {}
    for dept, _ in rows:
        if dept.dean_id:
            headed.setdefault(dept.dean_id, []).append({"id": dept.id, "name": dept.dept_name})

    return {
        "deans": [
            {
                "id": d.id,
                "name": d.name,
                "email": d.email,
                "uid": d.uid,
                "departments": headed.get(d.id, []),
            }
            for d in deans
        ],
        "departments": [
            {"id": dept.id, "name": dept.dept_name, "deanId": dept.dean_id, "deanName": dean_name}
            for dept, dean_name in rows
        ],
    }


@router.post("/assign-dean", response_model=DeanAssignmentResponse)
async def assign_dean(
    data: AssignDeanRequest,
    request: Request,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    # Dean eligibility is re-read in the same transaction as the update
    dean = await db.get(User, data.dean_id, populate_existing=True)
    if dean is None:
        raise NotFoundError("Dean not found")
    if not dean.has_role(Role.ADMIN):
        raise ValidationError("User is not a dean (ADMIN role required)")
    if not dean.active:
        raise ValidationError("Dean account is not active")

    department = await db.scalar(
        select(Department).where(Department.id == data.department_id).with_for_update()
    )
    if department is None:
        raise NotFoundError("Department not found")

    department.dean_id = dean.id
    await db.commit()

    logger.info(f"Dean {dean.uid} assigned to department {department.dept_name}")
    await log_activity(
        db, principal, "ASSIGN_DEAN",
        {"deanId": dean.id, "deanUid": dean.uid, "departmentId": department.id},
        request=request,
    )
    return DeanAssignmentResponse(
        message="Dean assigned successfully",
        department=DepartmentResponse.model_validate(department),
    )


@router.post("/remove-dean", response_model=DeanAssignmentResponse)
async def remove_dean(
    data: RemoveDeanRequest,
    request: Request,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    department = await db.get(Department, data.department_id)
    if department is None:
        raise NotFoundError("Department not found")
    if department.dean_id is None:
        raise ValidationError("Department does not have an assigned dean")

    previous_dean = department.dean_id
    department.dean_id = None
    await db.commit()

    await log_activity(
        db, principal, "REMOVE_DEAN",
        {"deanId": previous_dean, "departmentId": department.id},
        request=request,
    )
    return DeanAssignmentResponse(
        message="Dean removed successfully",
        department=DepartmentResponse.model_validate(department),
    )


# ==================== Activity log ====================

@router.get("/logs", response_model=List[LogEntry])
async def list_logs(
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Latest activity, newest first"""
    return [LogEntry(**entry) for entry in await recent_activity(db, LOG_PAGE_SIZE)]
