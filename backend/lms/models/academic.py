"""
Academic structure: departments own courses, courses are split into
sections, and enrollments attach users to sections in a per-section role.
"""
from sqlalchemy import (
    Column, String, DateTime, Text, Integer, ForeignKey, UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from lms.core.database import Base
from lms.core.types import GUID, generate_uuid


class CourseStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EnrollmentRole(str, enum.Enum):
    """Role a user holds inside one section (independent of global roles)"""
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"


class Department(Base):
    __tablename__ = "departments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    dept_name = Column(String(255), unique=True, nullable=False)
    # Dean must hold ADMIN and be ACTIVE; checked on assignment
    dean_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    # NULL when created by the superadmin principal
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    dean = relationship("User", foreign_keys=[dean_id])
    courses = relationship("Course", back_populates="department")

    def __repr__(self):
        return f"<Department {self.dept_name}>"


class Course(Base):
    __tablename__ = "courses"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    course_name = Column(String(255), nullable=False)
    course_code = Column(String(50), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    dept_id = Column(GUID, ForeignKey("departments.id"), nullable=False, index=True)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(SQLEnum(CourseStatus), default=CourseStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = relationship("Department", back_populates="courses")
    sections = relationship("Section", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course {self.course_code}>"


class Section(Base):
    __tablename__ = "sections"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    section_name = Column(String(100), nullable=False)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    capacity = Column(Integer, default=50, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="sections")
    enrollments = relationship("Enrollment", back_populates="section", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Section {self.section_name}>"


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "section_id", "role", name="uq_enrollment_user_section_role"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(GUID, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(EnrollmentRole), nullable=False)
    enrolled_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User")
    section = relationship("Section", back_populates="enrollments")

    def __repr__(self):
        return f"<Enrollment {self.user_id} {self.role} in {self.section_id}>"
