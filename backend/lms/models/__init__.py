# Re-export all models for convenient imports
from lms.models.user import User, UserStatus
from lms.models.academic import Department, Course, CourseStatus, Section, Enrollment, EnrollmentRole
from lms.models.content import Video, VideoStatus, Quiz, QuizAttempt, ContentType
from lms.models.announcement import Announcement, AnnouncementTarget
from lms.models.log import Log

__all__ = [
    # Identity
    "User",
    "UserStatus",
    # Academic structure
    "Department",
    "Course",
    "CourseStatus",
    "Section",
    "Enrollment",
    "EnrollmentRole",
    # Content
    "Video",
    "VideoStatus",
    "Quiz",
    "QuizAttempt",
    "ContentType",
    # Communication / audit
    "Announcement",
    "AnnouncementTarget",
    "Log",
]
