"""
Student API Endpoints

Course listings, course content, quiz attempts and the announcement feed,
all keyed on the student's STUDENT enrollments.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.database import get_db
from lms.core.exceptions import NotFoundError
from lms.core.logging_config import logger
from lms.models.academic import Course, Enrollment, EnrollmentRole, Section
from lms.models.announcement import AnnouncementTarget
from lms.models.content import Quiz, QuizAttempt, Video, VideoStatus
from lms.modules.auth.dependencies import require_student
from lms.modules.auth.principal import Principal
from lms.schemas.academic import QuizAttemptRequest
from lms.services import academic
from lms.services.announcements import announcements_for
from lms.services.audit import log_activity
from lms.services.content_access import is_visible_to_students, list_course_content, require_course_role
from lms.services.quiz_scoring import score_quiz

router = APIRouter(tags=["Student"])


def _serialize_attempt(attempt: QuizAttempt) -> dict:
    return {
        "id": attempt.id,
        "score": attempt.score,
        "maxScore": attempt.max_score,
        "correctAnswers": attempt.correct_answers,
        "totalQuestions": attempt.total_questions,
        "percentage": round(attempt.score),
        "completed_at": attempt.completed_at,
    }


async def _visible_quiz(db: AsyncSession, principal: Principal, quiz_id: str) -> Quiz:
    """Load a quiz the student may take: enrolled in its course, and its video (if any) approved"""
    quiz = await db.get(Quiz, quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found")
    await require_course_role(db, principal, quiz.course_id, EnrollmentRole.STUDENT)

    approved = set()
    if quiz.video_id:
        approved = set(
            (await db.execute(
                select(Video.id).where(Video.id == quiz.video_id, Video.status == VideoStatus.APPROVED)
            )).scalars().all()
        )
    if not is_visible_to_students(quiz, approved):
        raise NotFoundError("Quiz not found")
    return quiz


@router.get("/courses")
async def list_courses(
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """One entry per enrolled section"""
    rows = (
        await db.execute(
            select(Section, Course)
            .join(Course, Section.course_id == Course.id)
            .join(Enrollment, Enrollment.section_id == Section.id)
            .where(Enrollment.user_id == principal.user_id, Enrollment.role == EnrollmentRole.STUDENT)
            .order_by(Course.course_name)
        )
    ).all()
    if not rows:
        return []

    course_ids = list({course.id for _, course in rows})
    video_counts = dict(
        (await db.execute(
            select(Video.course_id, func.count(Video.id))
            .where(Video.course_id.in_(course_ids), Video.status == VideoStatus.APPROVED)
            .group_by(Video.course_id)
        )).all()
    )

    courses = []
    for section, course in rows:
        teacher, _ = await academic.section_members(db, section.id)
        courses.append({
            "id": course.id,
            "name": course.course_name,
            "code": course.course_code,
            "section": {"id": section.id, "name": section.section_name},
            "instructor": teacher["name"] if teacher else None,
            "totalVideos": video_counts.get(course.id, 0),
        })
    return courses


@router.get("/stats")
async def get_stats(
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    enrolled_courses = await db.scalar(
        select(func.count(distinct(Section.course_id)))
        .join(Enrollment, Enrollment.section_id == Section.id)
        .where(Enrollment.user_id == principal.user_id, Enrollment.role == EnrollmentRole.STUDENT)
    ) or 0
    attempts, average = (
        await db.execute(
            select(func.count(QuizAttempt.id), func.avg(QuizAttempt.score))
            .where(QuizAttempt.user_id == principal.user_id)
        )
    ).one()

    return {
        "enrolledCourses": enrolled_courses,
        "quizAttempts": attempts or 0,
        "averageScore": round(average, 2) if average is not None else None,
    }


@router.get("/courses/{course_id}/content")
async def get_course_content(
    course_id: str,
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    return await list_course_content(db, principal, course_id)


@router.post("/quizzes/{quiz_id}/attempt", status_code=status.HTTP_201_CREATED)
async def attempt_quiz(
    quiz_id: str,
    data: QuizAttemptRequest,
    request: Request,
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Score a submission against the stored key and record the attempt"""
    quiz = await _visible_quiz(db, principal, quiz_id)
    result = score_quiz(quiz.answer_key, data.answers)

    attempt = QuizAttempt(
        quiz_id=quiz.id,
        user_id=principal.user_id,
        answers=data.answers,
        score=result.score,
        max_score=result.max_score,
        correct_answers=result.correct_answers,
        total_questions=result.total_questions,
    )
    db.add(attempt)
    await db.commit()

    logger.info(
        f"Quiz {quiz.id} attempted: {result.correct_answers}/{result.total_questions}",
        extra={"event_type": "quiz_attempt", "quiz_id": quiz.id, "score": result.score},
    )
    await log_activity(
        db, principal, "QUIZ_ATTEMPT",
        {"quizId": quiz.id, "attemptId": attempt.id, "score": result.score},
        request=request,
    )
    return {"message": "Quiz submitted successfully", "attempt": _serialize_attempt(attempt)}


@router.get("/quizzes/{quiz_id}/attempts")
async def list_quiz_attempts(
    quiz_id: str,
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """The principal's own attempts at a quiz, newest first"""
    quiz = await _visible_quiz(db, principal, quiz_id)
    attempts = (
        await db.execute(
            select(QuizAttempt)
            .where(QuizAttempt.quiz_id == quiz.id, QuizAttempt.user_id == principal.user_id)
            .order_by(QuizAttempt.completed_at.desc())
        )
    ).scalars().all()
    return [_serialize_attempt(a) for a in attempts]


@router.get("/announcements")
async def list_announcements(
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    return await announcements_for(db, principal.user_id, AnnouncementTarget.STUDENT)
