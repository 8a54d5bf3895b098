"""
Request schemas for the dean, teacher and student surfaces.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, HttpUrl, StrictInt, field_validator

from lms.models.academic import CourseStatus
from lms.models.content import VideoStatus
from lms.schemas.auth import APIModel


# ---------- Dean ----------

class CourseCreate(APIModel):
    course_name: str = Field(..., min_length=1, max_length=255)
    course_code: str = Field(..., min_length=1, max_length=50)
    dept_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: CourseStatus = CourseStatus.ACTIVE


class TeacherCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    uid: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=6)
    phone: Optional[str] = Field(None, max_length=20)


class SectionCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=100)
    capacity: Optional[int] = Field(None, ge=1, le=1000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Section name is required")
        return v


class AssignTeacherRequest(APIModel):
    teacher_id: str = Field(..., min_length=1, alias="teacherId")


class AddStudentRequest(APIModel):
    student_id: str = Field(..., min_length=1, alias="studentId")


class AnnouncementCreate(APIModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    # STUDENTS, TEACHERS, anything else means everyone
    target_audience: Optional[str] = None
    course_id: Optional[str] = None
    section_id: Optional[str] = None
    expiry_date: Optional[datetime] = None


# ---------- Teacher ----------

class VideoUpload(APIModel):
    title: str = Field(..., min_length=1, max_length=255)
    course_id: str = Field(..., min_length=1, alias="courseId")
    description: Optional[str] = ""
    youtube_link: HttpUrl = Field(..., alias="youtubeLink")
    thumbnail: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    deadline: Optional[datetime] = None
    # Linked videos are published straight away unless staged as PENDING
    status: VideoStatus = VideoStatus.APPROVED


class VideoUpdate(APIModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[VideoStatus] = None
    deadline: Optional[datetime] = None


class QuizQuestion(APIModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    answer: int = Field(..., ge=0)

    @field_validator("answer")
    @classmethod
    def answer_in_range(cls, v: int, info) -> int:
        options = info.data.get("options")
        if options is not None and v >= len(options):
            raise ValueError("answer must index one of the options")
        return v


class QuizCreate(APIModel):
    title: str = Field(..., min_length=1, max_length=255)
    course_id: str = Field(..., min_length=1)
    description: Optional[str] = ""
    # Omitted for a standalone quiz
    video_id: Optional[str] = None
    questions: List[QuizQuestion] = Field(..., min_length=1)
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None


# ---------- Student ----------

class QuizAttemptRequest(APIModel):
    # Selected option indices; None for an unanswered question
    answers: List[Optional[StrictInt]] = Field(default_factory=list)
