"""
Teacher API Endpoints

Everything here is keyed on TEACHER enrollments: a teacher sees and edits
only the courses and sections they are assigned to teach.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.database import get_db
from lms.core.exceptions import NotEnrolledError, NotFoundError, ValidationError
from lms.core.logging_config import logger
from lms.models.academic import Course, Enrollment, EnrollmentRole, Section
from lms.models.announcement import AnnouncementTarget
from lms.models.content import Quiz, Video
from lms.models.user import User
from lms.modules.auth.dependencies import require_teacher
from lms.modules.auth.principal import Principal
from lms.schemas.academic import QuizCreate, VideoUpdate, VideoUpload
from lms.services import academic
from lms.services.announcements import announcements_for
from lms.services.audit import log_activity
from lms.services.content_access import (
    list_course_content,
    require_course_role,
    serialize_quiz,
    serialize_video,
)

router = APIRouter(tags=["Teacher"])


async def _taught_sections(db: AsyncSession, principal: Principal):
    """(Section, Course) pairs the principal teaches"""
    section_ids = await academic.teacher_section_ids(db, principal.user_id)
    if not section_ids:
        return []
    rows = await db.execute(
        select(Section, Course)
        .join(Course, Section.course_id == Course.id)
        .where(Section.id.in_(section_ids))
        .order_by(Course.course_name, Section.section_name)
    )
    return rows.all()


@router.get("/stats")
async def get_stats(
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    section_ids = await academic.teacher_section_ids(db, principal.user_id)
    total_students = 0
    total_courses = 0
    if section_ids:
        total_students = await db.scalar(
            select(func.count(distinct(Enrollment.user_id))).where(
                Enrollment.section_id.in_(section_ids),
                Enrollment.role == EnrollmentRole.STUDENT,
            )
        ) or 0
        total_courses = await db.scalar(
            select(func.count(distinct(Section.course_id))).where(Section.id.in_(section_ids))
        ) or 0

    videos_uploaded = 0
    if principal.user_id is not None:
        videos_uploaded = await db.scalar(
            select(func.count(Video.id)).where(Video.uploaded_by == principal.user_id)
        ) or 0

    return {
        "totalCourses": total_courses,
        "totalSections": len(section_ids),
        "totalStudents": total_students,
        "videosUploaded": videos_uploaded,
    }


@router.get("/courses")
async def list_courses(
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    courses = {}
    taught = {}
    for section, course in await _taught_sections(db, principal):
        courses[course.id] = course
        taught[course.id] = taught.get(course.id, 0) + 1

    if not courses:
        return []
    course_ids = list(courses)

    video_counts = dict(
        (await db.execute(
            select(Video.course_id, func.count(Video.id))
            .where(Video.course_id.in_(course_ids))
            .group_by(Video.course_id)
        )).all()
    )
    quiz_counts = dict(
        (await db.execute(
            select(Quiz.course_id, func.count(Quiz.id))
            .where(Quiz.course_id.in_(course_ids))
            .group_by(Quiz.course_id)
        )).all()
    )
    counts = await academic.course_counts(db, course_ids)

    return [
        {
            "id": course.id,
            "name": course.course_name,
            "code": course.course_code,
            "sections": taught[course.id],
            "students": counts[course.id]["students"],
            "videos": video_counts.get(course.id, 0),
            "quizzes": quiz_counts.get(course.id, 0),
            "status": course.status.value,
        }
        for course in courses.values()
    ]


@router.get("/sections")
async def list_sections(
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    result = []
    for section, course in await _taught_sections(db, principal):
        data = academic.serialize_section(section, enrolled=await academic.count_students(db, section.id))
        data["course"] = {"id": course.id, "name": course.course_name, "code": course.course_code}
        result.append(data)
    return result


@router.get("/sections/{section_id}/students")
async def list_section_students(
    section_id: str,
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    section = await db.get(Section, section_id)
    if section is None:
        raise NotFoundError("Section not found")
    if section.id not in await academic.teacher_section_ids(db, principal.user_id):
        raise NotEnrolledError("You are not assigned to teach this section")

    rows = await db.execute(
        select(User, Enrollment.enrolled_at)
        .join(Enrollment, Enrollment.user_id == User.id)
        .where(Enrollment.section_id == section.id, Enrollment.role == EnrollmentRole.STUDENT)
        .order_by(User.name)
    )
    return [
        {"id": u.id, "name": u.name, "email": u.email, "uid": u.uid, "enrolledAt": enrolled_at}
        for u, enrolled_at in rows.all()
    ]


# ==================== Content ====================

@router.post("/upload-video", status_code=status.HTTP_201_CREATED)
async def upload_video(
    data: VideoUpload,
    request: Request,
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Attach a video link to a course the principal teaches"""
    await require_course_role(db, principal, data.course_id, EnrollmentRole.TEACHER)

    video = Video(
        title=data.title,
        description=data.description or "",
        video_url=str(data.youtube_link),
        thumbnail=data.thumbnail,
        duration=data.duration,
        deadline=data.deadline,
        status=data.status,
        course_id=data.course_id,
        uploaded_by=principal.user_id,
    )
    db.add(video)
    await db.commit()

    logger.info(f"Video uploaded to course {video.course_id}: {video.title}")
    await log_activity(
        db, principal, "UPLOAD_VIDEO",
        {"videoId": video.id, "courseId": video.course_id},
        request=request,
    )
    return {"message": "Video uploaded successfully", "video": serialize_video(video)}


@router.patch("/videos/{video_id}")
async def update_video(
    video_id: str,
    data: VideoUpdate,
    request: Request,
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    video = await db.get(Video, video_id)
    if video is None:
        raise NotFoundError("Video not found")
    await require_course_role(db, principal, video.course_id, EnrollmentRole.TEACHER)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(video, field, value)
    await db.commit()

    await log_activity(
        db, principal, "UPDATE_VIDEO",
        {"videoId": video.id, "fields": sorted(changes)},
        request=request,
    )
    return {"message": "Video updated successfully", "video": serialize_video(video)}


@router.post("/create-quiz", status_code=status.HTTP_201_CREATED)
async def create_quiz(
    data: QuizCreate,
    request: Request,
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Create a quiz, standalone or attached to one of the course's videos"""
    await require_course_role(db, principal, data.course_id, EnrollmentRole.TEACHER)

    if data.video_id:
        video = await db.get(Video, data.video_id)
        if video is None:
            raise NotFoundError("Video not found")
        if video.course_id != data.course_id:
            raise ValidationError("Video does not belong to this course")

    quiz = Quiz(
        title=data.title,
        description=data.description or "",
        course_id=data.course_id,
        video_id=data.video_id or None,
        questions=[q.model_dump() for q in data.questions],
        unit_id=data.unit_id,
        unit_name=data.unit_name,
        created_by=principal.user_id,
    )
    db.add(quiz)
    await db.commit()

    await log_activity(
        db, principal, "CREATE_QUIZ",
        {"quizId": quiz.id, "courseId": quiz.course_id, "questions": len(quiz.questions)},
        request=request,
    )
    return {"message": "Quiz created successfully", "quiz": serialize_quiz(quiz)}


@router.get("/courses/{course_id}/content")
async def get_course_content(
    course_id: str,
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    return await list_course_content(db, principal, course_id)


@router.get("/announcements")
async def list_announcements(
    principal: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    return await announcements_for(db, principal.user_id, AnnouncementTarget.TEACHER)
