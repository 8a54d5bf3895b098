from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from lms.core.database import Base
from lms.core.types import GUID, generate_uuid


class AnnouncementTarget(str, enum.Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    BOTH = "BOTH"


class Announcement(Base):
    """Broadcast message, optionally scoped to one course or section"""
    __tablename__ = "announcements"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    # NULL when sent by the superadmin principal
    sender_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    target_role = Column(SQLEnum(AnnouncementTarget), default=AnnouncementTarget.BOTH, nullable=False)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=True, index=True)
    section_id = Column(GUID, ForeignKey("sections.id", ondelete="CASCADE"), nullable=True, index=True)
    expiry_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    sender = relationship("User")

    def __repr__(self):
        return f"<Announcement {self.title} -> {self.target_role}>"
