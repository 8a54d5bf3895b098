"""
Announcement feeds.

An announcement targets STUDENT, TEACHER or BOTH and may be narrowed to one
course or one section. A reader sees an unexpired announcement aimed at
their audience when it is global, or when they are enrolled (in their
audience's role) in its course or section.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.models.academic import Enrollment, EnrollmentRole, Section
from lms.models.announcement import Announcement, AnnouncementTarget
from lms.models.user import User

AUDIENCE_TARGETS = {
    "STUDENTS": AnnouncementTarget.STUDENT,
    "TEACHERS": AnnouncementTarget.TEACHER,
}


def target_for_audience(audience: Optional[str]) -> AnnouncementTarget:
    """STUDENTS / TEACHERS map to a single audience, anything else is BOTH"""
    return AUDIENCE_TARGETS.get((audience or "").upper(), AnnouncementTarget.BOTH)


def serialize_announcement(announcement: Announcement, sender_name: Optional[str] = None) -> dict:
    return {
        "id": announcement.id,
        "title": announcement.title,
        "content": announcement.content,
        "type": announcement.target_role.value,
        "target_audience": announcement.target_role.value,
        "course_id": announcement.course_id,
        "section_id": announcement.section_id,
        "expiry_date": announcement.expiry_date,
        "created_at": announcement.created_at,
        "created_by": sender_name,
    }


def _with_sender(query):
    return query.add_columns(User.name).outerjoin(User, Announcement.sender_id == User.id)


async def sent_announcements(db: AsyncSession, sender_id: Optional[str], unscoped: bool) -> List[dict]:
    """Dean view: what they sent plus everything addressed to BOTH"""
    query = _with_sender(select(Announcement)).order_by(Announcement.created_at.desc())
    if not unscoped:
        query = query.where(
            or_(Announcement.sender_id == sender_id, Announcement.target_role == AnnouncementTarget.BOTH)
        )
    rows = (await db.execute(query)).all()
    return [serialize_announcement(a, name) for a, name in rows]


async def announcements_for(
    db: AsyncSession,
    user_id: Optional[str],
    audience: AnnouncementTarget,
    now: Optional[datetime] = None,
) -> List[dict]:
    """Reader feed for ``audience`` (STUDENT or TEACHER), newest first"""
    now = now or datetime.utcnow()
    enrollment_role = (
        EnrollmentRole.TEACHER if audience == AnnouncementTarget.TEACHER else EnrollmentRole.STUDENT
    )

    section_ids = select(Enrollment.section_id).where(
        Enrollment.user_id == user_id,
        Enrollment.role == enrollment_role,
    )
    course_ids = select(Section.course_id).where(Section.id.in_(section_ids))

    query = (
        _with_sender(select(Announcement))
        .where(
            Announcement.target_role.in_([audience, AnnouncementTarget.BOTH]),
            or_(Announcement.expiry_date.is_(None), Announcement.expiry_date > now),
            or_(
                Announcement.section_id.in_(section_ids),
                and_(
                    Announcement.section_id.is_(None),
                    or_(Announcement.course_id.is_(None), Announcement.course_id.in_(course_ids)),
                ),
            ),
        )
        .order_by(Announcement.created_at.desc())
    )
    rows = (await db.execute(query)).all()
    return [serialize_announcement(a, name) for a, name in rows]
