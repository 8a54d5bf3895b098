"""
Course content: videos, quizzes and quiz attempts.

A quiz either hangs off a video of the same course or stands alone
(``video_id`` is NULL).
"""
from sqlalchemy import Column, String, DateTime, Text, Integer, Float, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from lms.core.database import Base
from lms.core.types import GUID, JSONType, generate_uuid


class VideoStatus(str, enum.Enum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    REJECTED = "REJECTED"


class ContentType(str, enum.Enum):
    VIDEO = "video"
    QUIZ = "quiz"


class Video(Base):
    __tablename__ = "videos"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True, default="")
    video_url = Column(Text, nullable=False)
    thumbnail = Column(Text, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    uploaded_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # Only APPROVED videos are visible to students
    status = Column(SQLEnum(VideoStatus), default=VideoStatus.PENDING, nullable=False)
    deadline = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    quizzes = relationship("Quiz", back_populates="video")

    def __repr__(self):
        return f"<Video {self.title} ({self.status})>"


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(GUID, ForeignKey("videos.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True, default="")
    # [{"question": str, "options": [str], "answer": int}, ...]
    questions = Column(JSONType, nullable=False, default=list)
    unit_id = Column(String(100), nullable=True)
    unit_name = Column(String(255), nullable=True)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    video = relationship("Video", back_populates="quizzes")

    @property
    def is_standalone(self) -> bool:
        return self.video_id is None

    @property
    def answer_key(self) -> list:
        return [q.get("answer") for q in (self.questions or [])]

    def __repr__(self):
        return f"<Quiz {self.title}>"


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    quiz_id = Column(GUID, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    answers = Column(JSONType, nullable=False, default=list)
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False, default=100)
    correct_answers = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<QuizAttempt {self.quiz_id} by {self.user_id}: {self.score}>"
