"""
Dean API Endpoints

Deans hold ADMIN and manage the departments assigned to them: courses,
sections, section staffing and enrollment, teacher accounts and
announcements. Superadmins see every department.
"""
from typing import List

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.config import settings
from lms.core.database import get_db
from lms.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from lms.core.logging_config import logger
from lms.core.security import get_password_hash
from lms.models.academic import Course, CourseStatus, Department, Section
from lms.models.announcement import Announcement
from lms.models.user import User
from lms.modules.auth.dependencies import require_admin
from lms.modules.auth.principal import Principal
from lms.modules.auth.roles import Role
from lms.schemas.academic import (
    AddStudentRequest,
    AnnouncementCreate,
    AssignTeacherRequest,
    CourseCreate,
    SectionCreate,
    TeacherCreate,
)
from lms.schemas.admin import LogEntry, UserSummary
from lms.services import academic
from lms.services.announcements import sent_announcements, serialize_announcement, target_for_audience
from lms.services.audit import log_activity, recent_activity

router = APIRouter(tags=["Dean"])

ACTIVITY_PAGE_SIZE = 20


def _person(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "uid": user.uid}


# ==================== Dashboard ====================

@router.get("/stats")
async def get_stats(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    courses = select(func.count(Course.id)).select_from(Course)
    total_courses = await db.scalar(academic.scope_courses(courses, principal)) or 0
    pending = await db.scalar(
        academic.scope_courses(courses.where(Course.status == CourseStatus.INACTIVE), principal)
    ) or 0

    return {
        "totalCourses": total_courses,
        "totalTeachers": len(await academic.active_users_with_role(db, Role.TEACHER)),
        "totalStudents": len(await academic.active_users_with_role(db, Role.STUDENT)),
        "pendingApprovals": pending,
    }


@router.get("/departments")
async def list_departments(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    departments = await academic.scoped_departments(db, principal)
    return [{"id": d.id, "dept_name": d.dept_name} for d in departments]


@router.get("/activity", response_model=List[LogEntry])
async def recent_department_activity(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Own recent activity (everything for superadmins)"""
    user_id = None if principal.unscoped else principal.user_id
    return [LogEntry(**e) for e in await recent_activity(db, ACTIVITY_PAGE_SIZE, user_id=user_id)]


# ==================== Courses ====================

@router.get("/courses")
async def list_courses(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    query = (
        select(Course, Department.dept_name)
        .join(Department, Course.dept_id == Department.id)
        .order_by(Course.created_at.desc())
    )
    if not principal.unscoped:
        query = query.where(Department.dean_id == principal.user_id)
    rows = (await db.execute(query)).all()

    counts = await academic.course_counts(db, [course.id for course, _ in rows])
    return [
        {
            "id": course.id,
            "name": course.course_name,
            "code": course.course_code,
            "department": dept_name,
            "sections": counts[course.id]["sections"],
            "students": counts[course.id]["students"],
            "teachers": counts[course.id]["teachers"],
            "status": course.status.value,
            "createdAt": course.created_at,
        }
        for course, dept_name in rows
    ]


@router.post("/courses", status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    department = await db.get(Department, data.dept_id)
    if department is None:
        raise NotFoundError("Department not found")
    if not principal.unscoped and department.dean_id != principal.user_id:
        raise AuthorizationError("You can only create courses in departments you are assigned to as dean")

    existing = await db.scalar(select(Course.id).where(Course.course_code == data.course_code))
    if existing:
        raise ConflictError("Course code already exists")

    course = Course(
        course_name=data.course_name,
        course_code=data.course_code,
        description=data.description,
        dept_id=department.id,
        status=data.status,
        created_by=principal.user_id,
    )
    db.add(course)
    await db.commit()

    logger.info(f"Course created: {course.course_code} in {department.dept_name}")
    await log_activity(
        db, principal, "CREATE_COURSE",
        {"courseId": course.id, "courseCode": course.course_code, "departmentId": department.id},
        request=request,
    )
    return academic.serialize_course(course, department.dept_name)


# ==================== People ====================

@router.get("/teachers")
async def list_teachers(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return [_person(u) for u in await academic.active_users_with_role(db, Role.TEACHER)]


@router.get("/students")
async def list_students(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return [_person(u) for u in await academic.active_users_with_role(db, Role.STUDENT)]


@router.post("/teachers", response_model=UserSummary, status_code=status.HTTP_201_CREATED)
async def create_teacher(
    data: TeacherCreate,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    existing = await db.scalar(
        select(User.id).where(or_(User.email == data.email, User.uid == data.uid))
    )
    if existing:
        raise ConflictError("User with this email or UID already exists")

    teacher = User(
        uid=data.uid,
        name=data.name,
        email=data.email,
        phone=data.phone,
        password_hash=await run_in_threadpool(get_password_hash, data.password),
    )
    teacher.assign_roles([Role.TEACHER])
    db.add(teacher)
    await db.commit()

    await log_activity(
        db, principal, "CREATE_TEACHER",
        {"targetUserId": teacher.id, "targetUserUid": teacher.uid},
        request=request,
    )
    return UserSummary.from_user(teacher)


# ==================== Announcements ====================

@router.get("/announcements")
async def list_announcements(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await sent_announcements(db, principal.user_id, principal.unscoped)


@router.post("/announcements", status_code=status.HTTP_201_CREATED)
async def create_announcement(
    data: AnnouncementCreate,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    course_id = data.course_id
    if data.section_id:
        section = await academic.get_scoped_section(db, principal, data.section_id)
        course_id = section.course_id
    elif course_id:
        await academic.get_scoped_course(db, principal, course_id)

    announcement = Announcement(
        title=data.title,
        content=data.content,
        sender_id=principal.user_id,
        target_role=target_for_audience(data.target_audience),
        course_id=course_id,
        section_id=data.section_id,
        expiry_date=data.expiry_date,
    )
    db.add(announcement)
    await db.commit()

    await log_activity(
        db, principal, "CREATE_ANNOUNCEMENT",
        {"announcementId": announcement.id, "target": announcement.target_role.value},
        request=request,
    )
    return serialize_announcement(announcement, principal.name)


# ==================== Sections ====================

@router.get("/courses/{course_id}/sections")
async def list_sections(
    course_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    course = await academic.get_scoped_course(db, principal, course_id)
    sections = (
        await db.execute(
            select(Section).where(Section.course_id == course.id).order_by(Section.section_name)
        )
    ).scalars().all()

    result = []
    for section in sections:
        teacher, students = await academic.section_members(db, section.id)
        result.append(academic.serialize_section(section, enrolled=len(students), teacher=teacher))
    return result


@router.post("/courses/{course_id}/sections", status_code=status.HTTP_201_CREATED)
async def create_section(
    course_id: str,
    data: SectionCreate,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    course = await academic.get_scoped_course(db, principal, course_id)
    section = Section(
        section_name=data.name,
        course_id=course.id,
        capacity=data.capacity or settings.DEFAULT_SECTION_CAPACITY,
    )
    db.add(section)
    await db.commit()

    await log_activity(
        db, principal, "CREATE_SECTION",
        {"sectionId": section.id, "courseId": course.id},
        request=request,
    )
    return academic.serialize_section(section)


@router.get("/sections/{section_id}")
async def get_section(
    section_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    section = await academic.get_scoped_section(db, principal, section_id)
    course = await db.get(Course, section.course_id)
    teacher, students = await academic.section_members(db, section.id)

    data = academic.serialize_section(section, enrolled=len(students), teacher=teacher)
    data["course"] = {"id": course.id, "name": course.course_name, "code": course.course_code}
    data["students"] = students
    return data


@router.post("/sections/{section_id}/assign-teacher")
async def assign_section_teacher(
    section_id: str,
    data: AssignTeacherRequest,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Make ``teacherId`` the section's only teacher"""
    section = await academic.get_scoped_section(db, principal, section_id, for_update=True)
    teacher = await academic.get_user_with_role(db, data.teacher_id, Role.TEACHER, "Teacher")
    await academic.assign_teacher(db, section, teacher)

    await log_activity(
        db, principal, "ASSIGN_TEACHER",
        {"sectionId": section.id, "teacherId": teacher.id},
        request=request,
    )
    return {
        "message": "Teacher assigned successfully",
        "section": academic.serialize_section(
            section,
            enrolled=await academic.count_students(db, section.id),
            teacher=_person(teacher),
        ),
    }


@router.post("/sections/{section_id}/add-student", status_code=status.HTTP_201_CREATED)
async def add_section_student(
    section_id: str,
    data: AddStudentRequest,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    section = await academic.get_scoped_section(db, principal, section_id, for_update=True)
    student = await academic.get_user_with_role(db, data.student_id, Role.STUDENT, "Student")
    enrollment = await academic.enroll_student(db, section, student)

    await log_activity(
        db, principal, "ENROLL_STUDENT",
        {"sectionId": section.id, "studentId": student.id},
        request=request,
    )
    return {
        "message": "Student added successfully",
        "enrollment": {
            "id": enrollment.id,
            "section_id": section.id,
            "student": _person(student),
            "enrolled_at": enrollment.enrolled_at,
        },
    }


@router.delete("/sections/{section_id}/students/{student_id}")
async def remove_section_student(
    section_id: str,
    student_id: str,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    section = await academic.get_scoped_section(db, principal, section_id)
    await academic.remove_student(db, section, student_id)

    await log_activity(
        db, principal, "REMOVE_STUDENT",
        {"sectionId": section.id, "studentId": student_id},
        request=request,
    )
    return {"message": "Student removed successfully"}
