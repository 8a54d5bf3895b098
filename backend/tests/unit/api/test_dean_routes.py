"""
Unit Tests for Dean API Endpoints
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from lms.models.academic import Course, Department, Enrollment, EnrollmentRole
from lms.modules.auth.roles import Role


class TestDeanScope:
    """Deans only see the departments they head"""

    @pytest.mark.asyncio
    async def test_teacher_forbidden(self, client: AsyncClient, teacher_headers):
        response = await client.get('/api/dean/stats', headers=teacher_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, dean_headers, campus):
        response = await client.get('/api/dean/stats', headers=dean_headers)

        assert response.status_code == 200
        assert response.json() == {
            'totalCourses': 1,
            'totalTeachers': 1,
            # dean and teacher fixtures also hold STUDENT
            'totalStudents': 3,
            'pendingApprovals': 0,
        }

    @pytest.mark.asyncio
    async def test_other_dean_sees_nothing(self, client: AsyncClient, campus, make_user, headers_for):
        other = await make_user([Role.ADMIN])
        headers = headers_for(other)

        courses = await client.get('/api/dean/courses', headers=headers)
        assert courses.json() == []

        sections = await client.get(f'/api/dean/courses/{campus.course.id}/sections', headers=headers)
        assert sections.status_code == 404
        assert sections.json()['error'] == 'Course not found or access denied'

    @pytest.mark.asyncio
    async def test_superadmin_sees_everything(self, client: AsyncClient, superadmin_headers, campus):
        response = await client.get('/api/dean/courses', headers=superadmin_headers)

        [course] = response.json()
        assert course['id'] == campus.course.id
        assert course['department'] == campus.department.dept_name
        assert course['sections'] == 1
        assert course['students'] == 1
        assert course['teachers'] == 1

    @pytest.mark.asyncio
    async def test_departments(self, client: AsyncClient, dean_headers, campus, db_session):
        db_session.add(Department(dept_name='Unassigned'))
        await db_session.commit()

        response = await client.get('/api/dean/departments', headers=dean_headers)

        assert response.json() == [{'id': campus.department.id, 'dept_name': campus.department.dept_name}]


class TestDeanCourses:
    """Test course creation"""

    @pytest.mark.asyncio
    async def test_create_course(self, client: AsyncClient, dean_headers, campus, db_session):
        payload = {
            'course_name': 'Operating Systems',
            'course_code': 'CS401',
            'dept_id': campus.department.id,
        }

        response = await client.post('/api/dean/courses', json=payload, headers=dean_headers)

        assert response.status_code == 201
        data = response.json()
        assert data['course_code'] == 'CS401'
        assert data['created_by'] == campus.dean.id
        assert await db_session.scalar(select(Course.id).where(Course.course_code == 'CS401'))

    @pytest.mark.asyncio
    async def test_create_course_duplicate_code(self, client: AsyncClient, dean_headers, campus):
        payload = {
            'course_name': 'Clone',
            'course_code': campus.course.course_code,
            'dept_id': campus.department.id,
        }

        response = await client.post('/api/dean/courses', json=payload, headers=dean_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_create_course_outside_scope(self, client: AsyncClient, dean_headers, campus, db_session):
        other = Department(dept_name='Law')
        db_session.add(other)
        await db_session.commit()

        payload = {'course_name': 'Torts', 'course_code': 'LAW101', 'dept_id': other.id}
        response = await client.post('/api/dean/courses', json=payload, headers=dean_headers)

        assert response.status_code == 403
        assert response.json()['error'] == (
            'You can only create courses in departments you are assigned to as dean'
        )


class TestDeanPeople:
    """Test teacher and student listings"""

    @pytest.mark.asyncio
    async def test_create_teacher(self, client: AsyncClient, dean_headers):
        payload = {
            'name': 'Prof. David Brown',
            'email': 'david.brown@university.edu',
            'uid': 'TEACH900',
            'password': 'secret123',
        }

        response = await client.post('/api/dean/teachers', json=payload, headers=dean_headers)

        assert response.status_code == 201
        data = response.json()
        assert data['roles'] == ['TEACHER']
        assert 'password' not in data
        assert 'password_hash' not in data

        login = await client.post('/api/auth/login', json={'login': 'TEACH900', 'password': 'secret123'})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_list_teachers_and_students(self, client: AsyncClient, dean_headers, campus):
        teachers = await client.get('/api/dean/teachers', headers=dean_headers)
        students = await client.get('/api/dean/students', headers=dean_headers)

        assert [t['id'] for t in teachers.json()] == [campus.teacher.id]
        assert campus.student.id in {s['id'] for s in students.json()}


class TestSections:
    """Test section management"""

    @pytest.mark.asyncio
    async def test_create_section_default_capacity(self, client: AsyncClient, dean_headers, campus):
        response = await client.post(
            f'/api/dean/courses/{campus.course.id}/sections', json={'name': '  Section B '}, headers=dean_headers
        )

        assert response.status_code == 201
        assert response.json()['name'] == 'Section B'
        assert response.json()['capacity'] == 50

    @pytest.mark.asyncio
    async def test_list_sections(self, client: AsyncClient, dean_headers, campus):
        response = await client.get(f'/api/dean/courses/{campus.course.id}/sections', headers=dean_headers)

        [section] = response.json()
        assert section['enrolled'] == 1
        assert section['teacher']['id'] == campus.teacher.id

    @pytest.mark.asyncio
    async def test_section_detail(self, client: AsyncClient, dean_headers, campus):
        response = await client.get(f'/api/dean/sections/{campus.section.id}', headers=dean_headers)

        data = response.json()
        assert data['course']['id'] == campus.course.id
        assert [s['id'] for s in data['students']] == [campus.student.id]

    @pytest.mark.asyncio
    async def test_assign_teacher_replaces_existing(self, client: AsyncClient, dean_headers, campus, make_user, db_session):
        replacement = await make_user([Role.TEACHER])

        response = await client.post(
            f'/api/dean/sections/{campus.section.id}/assign-teacher',
            json={'teacherId': replacement.id},
            headers=dean_headers,
        )

        assert response.status_code == 200
        teacher_ids = (await db_session.execute(
            select(Enrollment.user_id).where(
                Enrollment.section_id == campus.section.id,
                Enrollment.role == EnrollmentRole.TEACHER,
            )
        )).scalars().all()
        assert teacher_ids == [replacement.id]

    @pytest.mark.asyncio
    async def test_assign_non_teacher(self, client: AsyncClient, dean_headers, campus):
        response = await client.post(
            f'/api/dean/sections/{campus.section.id}/assign-teacher',
            json={'teacherId': campus.student.id},
            headers=dean_headers,
        )

        assert response.status_code == 404
        assert response.json()['error'] == 'Teacher not found'

    @pytest.mark.asyncio
    async def test_add_student_until_full(self, client: AsyncClient, dean_headers, campus, make_user):
        second = await make_user([Role.STUDENT])
        third = await make_user([Role.STUDENT])
        url = f'/api/dean/sections/{campus.section.id}/add-student'

        ok = await client.post(url, json={'studentId': second.id}, headers=dean_headers)
        assert ok.status_code == 201

        full = await client.post(url, json={'studentId': third.id}, headers=dean_headers)
        assert full.status_code == 409
        assert full.json()['error'] == 'Section is at full capacity'

    @pytest.mark.asyncio
    async def test_add_student_twice(self, client: AsyncClient, dean_headers, campus):
        response = await client.post(
            f'/api/dean/sections/{campus.section.id}/add-student',
            json={'studentId': campus.student.id},
            headers=dean_headers,
        )

        assert response.status_code == 409
        assert response.json()['error'] == 'Student is already enrolled in this section'

    @pytest.mark.asyncio
    async def test_remove_student(self, client: AsyncClient, dean_headers, campus):
        url = f'/api/dean/sections/{campus.section.id}/students/{campus.student.id}'

        response = await client.delete(url, headers=dean_headers)
        assert response.status_code == 200

        again = await client.delete(url, headers=dean_headers)
        assert again.status_code == 404
        assert again.json()['error'] == 'Student enrollment not found'


class TestAnnouncements:
    """Test announcement creation and listing"""

    @pytest.mark.asyncio
    async def test_create_and_list(self, client: AsyncClient, dean_headers, campus):
        response = await client.post(
            '/api/dean/announcements',
            json={'title': 'Exams', 'content': 'Mid-terms next week', 'target_audience': 'STUDENTS',
                  'course_id': campus.course.id},
            headers=dean_headers,
        )

        assert response.status_code == 201
        assert response.json()['target_audience'] == 'STUDENT'

        listed = await client.get('/api/dean/announcements', headers=dean_headers)
        [item] = listed.json()
        assert item['title'] == 'Exams'
        assert item['created_by'] == campus.dean.name

    @pytest.mark.asyncio
    async def test_unknown_audience_means_both(self, client: AsyncClient, dean_headers):
        response = await client.post(
            '/api/dean/announcements',
            json={'title': 'Holiday', 'content': 'Campus closed', 'target_audience': 'everyone'},
            headers=dean_headers,
        )

        assert response.json()['target_audience'] == 'BOTH'

    @pytest.mark.asyncio
    async def test_activity(self, client: AsyncClient, dean_headers, campus):
        await client.post(
            f'/api/dean/courses/{campus.course.id}/sections', json={'name': 'Section C'}, headers=dean_headers
        )

        response = await client.get('/api/dean/activity', headers=dean_headers)

        assert [entry['action'] for entry in response.json()] == ['CREATE_SECTION']
