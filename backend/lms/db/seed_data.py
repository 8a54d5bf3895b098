"""
Database Seed Data Module

Demo university: three departments, a dean, an HOD, a course coordinator,
two teachers, ten students, three Computer Science courses with sections,
enrollments, videos, quizzes, announcements and a few quiz attempts.

The superadmin is configuration (SUPERADMIN_UID / SUPERADMIN_PASSWORD) and is
not seeded.

Run with: python -m lms.db.seed_data [clear]
"""
import asyncio
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.database import Base, get_session_local, init_db
from lms.core.security import get_password_hash
from lms.models.academic import Course, Department, Enrollment, EnrollmentRole, Section
from lms.models.announcement import Announcement, AnnouncementTarget
from lms.models.content import Quiz, QuizAttempt, Video, VideoStatus
from lms.models.log import Log
from lms.models.user import User
from lms.modules.auth.roles import Role
from lms.services.quiz_scoring import score_quiz

DEFAULT_PASSWORD = "password123"


# ==================== Sample Data Constants ====================

SAMPLE_DEPARTMENTS = ["Computer Science", "Mathematics", "Physics"]

SAMPLE_STAFF = {
    "dean": {"uid": "DEAN001", "name": "Dr. Alice Johnson", "email": "dean@university.edu", "roles": [Role.ADMIN]},
    "hod": {"uid": "HOD001", "name": "Prof. Bob Smith", "email": "hod@university.edu", "roles": [Role.HOD, Role.TEACHER]},
    "cc": {"uid": "CC001", "name": "Dr. Carol Williams", "email": "cc@university.edu", "roles": [Role.CC, Role.TEACHER]},
    "teacher1": {"uid": "TEACH001", "name": "Prof. David Brown", "email": "teacher1@university.edu", "roles": [Role.TEACHER]},
    "teacher2": {"uid": "TEACH002", "name": "Dr. Emily Davis", "email": "teacher2@university.edu", "roles": [Role.TEACHER]},
}

STUDENT_COUNT = 10

SAMPLE_COURSES = [
    {"course_code": "CS301", "course_name": "Data Structures and Algorithms",
     "description": "Introduction to fundamental data structures and algorithms"},
    {"course_code": "CS302", "course_name": "Database Management Systems",
     "description": "Comprehensive study of database design and management"},
    {"course_code": "CS303", "course_name": "Web Development",
     "description": "Modern web development with React and Node.js"},
]

# (course code, section name, teacher key, student index range)
SAMPLE_SECTIONS = [
    ("CS301", "Section A", "teacher1", range(0, 5)),
    ("CS301", "Section B", "teacher2", range(5, 10)),
    ("CS302", "Section A", "teacher1", range(0, 7)),
    ("CS303", "Section A", "cc", range(2, 8)),
]

SAMPLE_VIDEOS = [
    {"key": "arrays", "course_code": "CS301", "title": "Introduction to Arrays",
     "description": "Basic concepts of arrays and their operations",
     "video_url": "https://example.com/video1.mp4"},
    {"key": "lists", "course_code": "CS301", "title": "Linked Lists Fundamentals",
     "description": "Understanding linked lists and their implementation",
     "video_url": "https://example.com/video2.mp4"},
    {"key": "db_design", "course_code": "CS302", "title": "Database Design Principles",
     "description": "Core principles of database design and normalization",
     "video_url": "https://example.com/video3.mp4"},
]

SAMPLE_QUIZZES = [
    {
        "video_key": "arrays",
        "title": "Arrays Quiz",
        "questions": [
            {"question": "What is the time complexity of accessing an element in an array?",
             "options": ["O(1)", "O(n)", "O(log n)", "O(n^2)"], "answer": 0},
            {"question": "Which of the following is true about arrays?",
             "options": ["Elements are stored in contiguous memory", "Size can be changed dynamically",
                         "Elements can be of different types", "Random access is not possible"],
             "answer": 0},
        ],
    },
    {
        "video_key": "lists",
        "title": "Linked Lists Quiz",
        "questions": [
            {"question": "What is the main advantage of linked lists over arrays?",
             "options": ["Faster access time", "Dynamic size", "Less memory usage", "Better cache performance"],
             "answer": 1},
            {"question": "In a singly linked list, each node contains:",
             "options": ["Only data", "Data and pointer to next node",
                         "Data and pointer to previous node", "Two pointers"],
             "answer": 1},
        ],
    },
]


# ==================== Seed Functions ====================

async def seed_departments(db: AsyncSession) -> Dict[str, Department]:
    departments = {name: Department(dept_name=name) for name in SAMPLE_DEPARTMENTS}
    db.add_all(departments.values())
    await db.flush()
    print(f"  Created {len(departments)} departments")
    return departments


async def seed_users(db: AsyncSession) -> Dict[str, User]:
    """Staff keyed by role name, students keyed student1..student10"""
    password_hash = get_password_hash(DEFAULT_PASSWORD)
    users = {}

    for key, data in SAMPLE_STAFF.items():
        user = User(uid=data["uid"], name=data["name"], email=data["email"], password_hash=password_hash)
        user.assign_roles(data["roles"])
        users[key] = user

    for i in range(1, STUDENT_COUNT + 1):
        student = User(
            uid=f"STU{i:03d}",
            name=f"Student {i}",
            email=f"student{i}@university.edu",
            password_hash=password_hash,
        )
        student.assign_roles([Role.STUDENT])
        users[f"student{i}"] = student

    db.add_all(users.values())
    await db.flush()
    print(f"  Created {len(users)} users")
    return users


async def seed_courses(db: AsyncSession, department: Department, dean: User) -> Dict[str, Course]:
    department.dean_id = dean.id
    courses = {
        data["course_code"]: Course(dept_id=department.id, created_by=dean.id, **data)
        for data in SAMPLE_COURSES
    }
    db.add_all(courses.values())
    await db.flush()
    print(f"  Created {len(courses)} courses in {department.dept_name}")
    return courses


async def seed_sections(db: AsyncSession, courses: Dict[str, Course], users: Dict[str, User]) -> List[Section]:
    students = [users[f"student{i}"] for i in range(1, STUDENT_COUNT + 1)]
    sections = []
    enrollments = []

    for course_code, name, teacher_key, student_range in SAMPLE_SECTIONS:
        section = Section(section_name=name, course_id=courses[course_code].id)
        db.add(section)
        await db.flush()
        sections.append(section)

        enrollments.append(
            Enrollment(user_id=users[teacher_key].id, section_id=section.id, role=EnrollmentRole.TEACHER)
        )
        for i in student_range:
            enrollments.append(
                Enrollment(user_id=students[i].id, section_id=section.id, role=EnrollmentRole.STUDENT)
            )

    db.add_all(enrollments)
    await db.flush()
    print(f"  Created {len(sections)} sections and {len(enrollments)} enrollments")
    return sections


async def seed_content(db: AsyncSession, courses: Dict[str, Course], uploader: User) -> List[Quiz]:
    deadline = datetime.utcnow() + timedelta(days=30)
    videos = {}
    for data in SAMPLE_VIDEOS:
        videos[data["key"]] = Video(
            title=data["title"],
            description=data["description"],
            video_url=data["video_url"],
            course_id=courses[data["course_code"]].id,
            uploaded_by=uploader.id,
            status=VideoStatus.APPROVED,
            deadline=deadline,
        )
    db.add_all(videos.values())
    await db.flush()

    quizzes = []
    for data in SAMPLE_QUIZZES:
        video = videos[data["video_key"]]
        quizzes.append(
            Quiz(
                title=data["title"],
                course_id=video.course_id,
                video_id=video.id,
                questions=data["questions"],
                created_by=uploader.id,
            )
        )
    db.add_all(quizzes)
    await db.flush()
    print(f"  Created {len(videos)} videos and {len(quizzes)} quizzes")
    return quizzes


async def seed_announcements(
    db: AsyncSession, users: Dict[str, User], course: Course, section: Section
) -> None:
    expiry = datetime.utcnow() + timedelta(days=60)
    db.add_all([
        Announcement(
            title="Welcome to Data Structures Course",
            content="Welcome everyone! Please make sure to complete all video assignments on time.",
            sender_id=users["teacher1"].id,
            target_role=AnnouncementTarget.STUDENT,
            course_id=course.id,
            section_id=section.id,
            expiry_date=expiry,
        ),
        Announcement(
            title="Mid-term Exam Schedule",
            content="Mid-term exams will be conducted in the third week of December.",
            sender_id=users["dean"].id,
            target_role=AnnouncementTarget.BOTH,
            course_id=course.id,
            expiry_date=expiry,
        ),
    ])
    await db.flush()
    print("  Created 2 announcements")


async def seed_quiz_attempts(db: AsyncSession, quiz: Quiz, users: Dict[str, User]) -> None:
    """Students 1-3 answer everything right, students 4-5 miss the second question"""
    key = quiz.answer_key
    attempts = []
    for i in range(1, 6):
        answers = list(key) if i <= 3 else [key[0], (key[1] + 1) % 4]
        result = score_quiz(key, answers)
        attempts.append(
            QuizAttempt(
                quiz_id=quiz.id,
                user_id=users[f"student{i}"].id,
                answers=answers,
                score=result.score,
                max_score=result.max_score,
                correct_answers=result.correct_answers,
                total_questions=result.total_questions,
            )
        )
    db.add_all(attempts)
    await db.flush()
    print(f"  Created {len(attempts)} quiz attempts")


async def seed_logs(db: AsyncSession, users: Dict[str, User], course: Course, quiz: Quiz) -> None:
    db.add_all([
        Log(user_id=users["dean"].id, action="CREATE_COURSE",
            context={"courseId": course.id, "courseCode": course.course_code}),
        Log(user_id=users["teacher1"].id, action="UPLOAD_VIDEO",
            context={"courseId": course.id}),
        Log(user_id=users["student1"].id, action="QUIZ_ATTEMPT",
            context={"quizId": quiz.id, "score": 100.0}),
    ])
    await db.flush()


async def seed_university(db: AsyncSession) -> Dict[str, object]:
    """Seed everything into ``db`` (flushed, not committed)"""
    departments = await seed_departments(db)
    users = await seed_users(db)
    courses = await seed_courses(db, departments["Computer Science"], users["dean"])
    sections = await seed_sections(db, courses, users)
    quizzes = await seed_content(db, courses, users["teacher1"])
    await seed_announcements(db, users, courses["CS301"], sections[0])
    await seed_quiz_attempts(db, quizzes[0], users)
    await seed_logs(db, users, courses["CS301"], quizzes[0])
    return {
        "departments": departments,
        "users": users,
        "courses": courses,
        "sections": sections,
        "quizzes": quizzes,
    }


# ==================== Main Seed Function ====================

async def seed_all():
    """Seed all sample data"""
    print("=" * 50)
    print("Starting database seeding...")
    print("=" * 50)

    await init_db()

    async with get_session_local()() as db:
        try:
            await seed_university(db)
            await db.commit()
        except Exception as e:
            await db.rollback()
            print(f"Error seeding database: {e}")
            raise

    print("=" * 50)
    print("Database seeding completed successfully!")
    print(f"Staff and students log in with password: {DEFAULT_PASSWORD}")
    print("=" * 50)


async def clear_all():
    """Clear all data from database"""
    print("Clearing all data...")
    async with get_session_local()() as db:
        # Children before parents
        for table in reversed(Base.metadata.sorted_tables):
            await db.execute(delete(table))
        await db.commit()
    print("All data cleared!")


def main():
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all())


if __name__ == "__main__":
    main()
