"""
Course content access.

Whether a principal may see a course's videos and quizzes depends only on
its enrollments in that course's sections, never on its global roles:

- a STUDENT enrollment in any section: approved videos, standalone quizzes
  and quizzes attached to an approved video (answer key withheld)
- otherwise a TEACHER enrollment in any section: everything
- otherwise: NotEnrolledError
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.exceptions import NotEnrolledError, NotFoundError
from lms.models.academic import Course, Enrollment, EnrollmentRole, Section
from lms.models.content import ContentType, Quiz, Video, VideoStatus
from lms.modules.auth.principal import Principal


async def get_course(db: AsyncSession, course_id: str) -> Course:
    course = await db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    return course


async def has_course_enrollment(
    db: AsyncSession, user_id: Optional[str], course_id: str, role: EnrollmentRole
) -> bool:
    if user_id is None:
        return False
    result = await db.execute(
        select(Enrollment.id)
        .join(Section, Enrollment.section_id == Section.id)
        .where(
            Enrollment.user_id == user_id,
            Enrollment.role == role,
            Section.course_id == course_id,
        )
        .limit(1)
    )
    return result.first() is not None


async def resolve_course_role(db: AsyncSession, principal: Principal, course_id: str) -> Optional[EnrollmentRole]:
    """STUDENT enrollment wins over TEACHER when a user holds both"""
    for role in (EnrollmentRole.STUDENT, EnrollmentRole.TEACHER):
        if await has_course_enrollment(db, principal.user_id, course_id, role):
            return role
    return None


async def require_course_role(
    db: AsyncSession,
    principal: Principal,
    course_id: str,
    required: Optional[EnrollmentRole] = None,
) -> EnrollmentRole:
    """
    Resolve the principal's role in the course, 404 for unknown courses.

    With ``required`` set, only an enrollment in exactly that role passes.
    """
    await get_course(db, course_id)

    if required is not None:
        if await has_course_enrollment(db, principal.user_id, course_id, required):
            return required
        if required == EnrollmentRole.TEACHER:
            raise NotEnrolledError("You are not assigned to teach this course")
        raise NotEnrolledError()

    role = await resolve_course_role(db, principal, course_id)
    if role is None:
        raise NotEnrolledError()
    return role


def is_visible_to_students(quiz: Quiz, approved_video_ids) -> bool:
    """Standalone quizzes are always visible; attached ones follow their video"""
    return quiz.is_standalone or quiz.video_id in approved_video_ids


def serialize_video(video: Video) -> dict:
    return {
        "id": video.id,
        "type": ContentType.VIDEO.value,
        "title": video.title,
        "description": video.description,
        "video_url": video.video_url,
        "thumbnail": video.thumbnail,
        "duration": video.duration,
        "status": video.status.value,
        "deadline": video.deadline,
        "course_id": video.course_id,
        "uploaded_by": video.uploaded_by,
        "created_at": video.created_at,
    }


def serialize_quiz(quiz: Quiz, include_answers: bool = True) -> dict:
    questions = quiz.questions or []
    if not include_answers:
        questions = [{k: v for k, v in q.items() if k != "answer"} for q in questions]
    return {
        "id": quiz.id,
        "type": ContentType.QUIZ.value,
        "title": quiz.title,
        "description": quiz.description,
        "questions": questions,
        "video_id": quiz.video_id,
        "course_id": quiz.course_id,
        "unit_id": quiz.unit_id,
        "unit_name": quiz.unit_name,
        "created_at": quiz.created_at,
    }


async def list_course_content(db: AsyncSession, principal: Principal, course_id: str) -> List[dict]:
    """Videos and quizzes the principal may see, oldest first"""
    role = await require_course_role(db, principal, course_id)
    as_student = role == EnrollmentRole.STUDENT

    video_query = select(Video).where(Video.course_id == course_id)
    if as_student:
        video_query = video_query.where(Video.status == VideoStatus.APPROVED)
    videos = (await db.execute(video_query)).scalars().all()

    quizzes = (await db.execute(select(Quiz).where(Quiz.course_id == course_id))).scalars().all()
    if as_student:
        approved = {v.id for v in videos}
        quizzes = [q for q in quizzes if is_visible_to_students(q, approved)]

    items = [serialize_video(v) for v in videos]
    items.extend(serialize_quiz(q, include_answers=not as_student) for q in quizzes)
    items.sort(key=lambda item: item["created_at"])
    return items
