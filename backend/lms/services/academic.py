"""
Department-scoped lookups and enrollment changes for the dean surface.

A dean (ADMIN) only sees the departments whose ``dean_id`` is them and the
courses and sections below those. Superadmins are unscoped.
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.exceptions import ConflictError, NotFoundError
from lms.core.logging_config import logger
from lms.models.academic import Course, Department, Enrollment, EnrollmentRole, Section
from lms.models.user import User, UserStatus
from lms.modules.auth.principal import Principal
from lms.modules.auth.roles import Role


def scope_courses(query, principal: Principal):
    """Restrict a query selecting Course to the principal's departments"""
    if principal.unscoped:
        return query
    return query.join(Department, Course.dept_id == Department.id).where(
        Department.dean_id == principal.user_id
    )


async def scoped_departments(db: AsyncSession, principal: Principal) -> List[Department]:
    query = select(Department).order_by(Department.dept_name)
    if not principal.unscoped:
        query = query.where(Department.dean_id == principal.user_id)
    return list((await db.execute(query)).scalars().all())


async def get_scoped_course(db: AsyncSession, principal: Principal, course_id: str) -> Course:
    course = (
        await db.execute(scope_courses(select(Course).where(Course.id == course_id), principal))
    ).scalar_one_or_none()
    if course is None:
        raise NotFoundError("Course not found or access denied")
    return course


async def get_scoped_section(
    db: AsyncSession, principal: Principal, section_id: str, for_update: bool = False
) -> Section:
    query = select(Section).join(Course, Section.course_id == Course.id).where(Section.id == section_id)
    query = scope_courses(query, principal)
    if for_update:
        # Serializes concurrent enrollments into the same section (no-op on SQLite)
        query = query.with_for_update(of=Section)
    section = (await db.execute(query)).scalar_one_or_none()
    if section is None:
        raise NotFoundError("Section not found or access denied")
    return section


async def count_students(db: AsyncSession, section_id: str) -> int:
    return await db.scalar(
        select(func.count(Enrollment.id)).where(
            Enrollment.section_id == section_id,
            Enrollment.role == EnrollmentRole.STUDENT,
        )
    ) or 0


async def section_members(db: AsyncSession, section_id: str):
    """Return (teacher, students) for a section, users as plain dicts"""
    rows = (
        await db.execute(
            select(Enrollment.role, User)
            .join(User, Enrollment.user_id == User.id)
            .where(Enrollment.section_id == section_id)
            .order_by(User.name)
        )
    ).all()
    teacher = None
    students = []
    for role, user in rows:
        summary = {"id": user.id, "name": user.name, "email": user.email}
        if role == EnrollmentRole.TEACHER:
            teacher = summary
        else:
            students.append(summary)
    return teacher, students


async def get_user_with_role(db: AsyncSession, user_id: str, role: Role, label: str) -> User:
    user = await db.get(User, user_id)
    # Inactive accounts cannot be given new enrollments
    if user is None or not user.active or not user.has_role(role):
        raise NotFoundError(f"{label} not found")
    return user


async def assign_teacher(db: AsyncSession, section: Section, teacher: User) -> Enrollment:
    """Replace the section's teacher in a single transaction"""
    await db.execute(
        delete(Enrollment).where(
            Enrollment.section_id == section.id,
            Enrollment.role == EnrollmentRole.TEACHER,
        )
    )
    enrollment = Enrollment(user_id=teacher.id, section_id=section.id, role=EnrollmentRole.TEACHER)
    db.add(enrollment)
    await db.commit()
    logger.info(f"Assigned teacher {teacher.uid} to section {section.id}")
    return enrollment


async def enroll_student(db: AsyncSession, section: Section, student: User) -> Enrollment:
    """
    Enroll a student, enforcing capacity and uniqueness.

    ``section`` must have been loaded with ``for_update=True`` in the current
    transaction so the count and the insert see the same state. The unique
    constraint on (user, section, role) backs the duplicate check.
    """
    existing = await db.scalar(
        select(Enrollment.id).where(
            Enrollment.user_id == student.id,
            Enrollment.section_id == section.id,
            Enrollment.role == EnrollmentRole.STUDENT,
        )
    )
    if existing:
        raise ConflictError("Student is already enrolled in this section")

    if await count_students(db, section.id) >= section.capacity:
        raise ConflictError("Section is at full capacity")

    enrollment = Enrollment(user_id=student.id, section_id=section.id, role=EnrollmentRole.STUDENT)
    db.add(enrollment)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Student is already enrolled in this section")
    return enrollment


async def remove_student(db: AsyncSession, section: Section, student_id: str) -> None:
    result = await db.execute(
        delete(Enrollment).where(
            Enrollment.user_id == student_id,
            Enrollment.section_id == section.id,
            Enrollment.role == EnrollmentRole.STUDENT,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Student enrollment not found")
    await db.commit()


async def teacher_section_ids(db: AsyncSession, user_id: Optional[str]) -> List[str]:
    if user_id is None:
        return []
    return list(
        (
            await db.execute(
                select(Enrollment.section_id).where(
                    Enrollment.user_id == user_id,
                    Enrollment.role == EnrollmentRole.TEACHER,
                )
            )
        ).scalars().all()
    )


async def active_users_with_role(db: AsyncSession, role: Role) -> List[User]:
    # roles is a JSON column, so membership is checked in Python
    users = (
        await db.execute(select(User).where(User.is_active == UserStatus.ACTIVE).order_by(User.name))
    ).scalars().all()
    return [u for u in users if u.has_role(role)]


async def course_counts(db: AsyncSession, course_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
    """Per course: number of sections and distinct enrolled students/teachers"""
    course_ids = list(course_ids)
    counts = {cid: {"sections": 0, "students": 0, "teachers": 0} for cid in course_ids}
    if not course_ids:
        return counts

    section_rows = await db.execute(
        select(Section.course_id, func.count(Section.id))
        .where(Section.course_id.in_(course_ids))
        .group_by(Section.course_id)
    )
    for course_id, n in section_rows.all():
        counts[course_id]["sections"] = n

    member_rows = await db.execute(
        select(Section.course_id, Enrollment.role, func.count(distinct(Enrollment.user_id)))
        .join(Enrollment, Enrollment.section_id == Section.id)
        .where(Section.course_id.in_(course_ids))
        .group_by(Section.course_id, Enrollment.role)
    )
    for course_id, role, n in member_rows.all():
        key = "teachers" if role == EnrollmentRole.TEACHER else "students"
        counts[course_id][key] = n
    return counts


def serialize_course(course: Course, department_name: Optional[str] = None) -> dict:
    return {
        "id": course.id,
        "course_name": course.course_name,
        "course_code": course.course_code,
        "description": course.description,
        "dept_id": course.dept_id,
        "department": department_name,
        "status": course.status.value,
        "created_by": course.created_by,
        "created_at": course.created_at,
    }


def serialize_section(section: Section, enrolled: int = 0, teacher: Optional[dict] = None) -> dict:
    return {
        "id": section.id,
        "name": section.section_name,
        "course_id": section.course_id,
        "capacity": section.capacity,
        "enrolled": enrolled,
        "teacher": teacher,
        "created_at": section.created_at,
    }
