"""
Unit Tests for SuperAdmin API Endpoints
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from lms.core.security import verify_password
from lms.models.academic import Department
from lms.models.log import Log
from lms.models.user import User, UserStatus
from lms.modules.auth.roles import Role


class TestAdminGate:
    """Only SUPERADMIN reaches the admin surface"""

    @pytest.mark.asyncio
    async def test_dean_forbidden(self, client: AsyncClient, dean_headers):
        response = await client.get('/api/admin/stats', headers=dean_headers)

        assert response.status_code == 403
        assert response.json() == {'error': 'Insufficient permissions'}

    @pytest.mark.asyncio
    async def test_stored_superadmin_allowed(self, client: AsyncClient, make_user, headers_for):
        ops = await make_user([Role.SUPERADMIN])

        response = await client.get('/api/admin/stats', headers=headers_for(ops))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, superadmin_headers, campus, make_user):
        await make_user(status=UserStatus.INACTIVE)

        response = await client.get('/api/admin/stats', headers=superadmin_headers)

        assert response.json() == {
            'totalUsers': 4,
            'totalDepartments': 1,
            'totalCourses': 1,
            'activeUsers': 3,
        }


class TestUserManagement:
    """Test user CRUD"""

    @pytest.mark.asyncio
    async def test_create_user_with_default_password(self, client: AsyncClient, superadmin_headers, db_session):
        payload = {'name': 'Dana Scully', 'email': 'dana@university.edu', 'uid': 'HOD777', 'role': 'HOD'}

        response = await client.post('/api/admin/users', json=payload, headers=superadmin_headers)

        assert response.status_code == 201
        data = response.json()
        assert data['roles'] == ['HOD']
        assert data['defaultDashboard'] == 'HOD'
        assert data['defaultPassword'] is True
        assert 'password_hash' not in data

        user = await db_session.get(User, data['id'])
        assert verify_password('HOD777', user.password_hash)

        log = await db_session.scalar(select(Log).where(Log.action == 'USER_CREATED'))
        assert log.user_id is None
        assert log.context['actor'] == 'superadmin'
        assert log.context['targetUserUid'] == 'HOD777'

    @pytest.mark.asyncio
    async def test_create_user_duplicate(self, client: AsyncClient, superadmin_headers, student_user):
        payload = {'name': 'Copy', 'email': student_user.email, 'uid': 'NEW001', 'role': 'STUDENT'}

        response = await client.post('/api/admin/users', json=payload, headers=superadmin_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_create_superadmin_role_rejected(self, client: AsyncClient, superadmin_headers):
        payload = {'name': 'Root', 'email': 'root@university.edu', 'uid': 'ROOT', 'role': 'SUPERADMIN'}

        response = await client.post('/api/admin/users', json=payload, headers=superadmin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_users(self, client: AsyncClient, superadmin_headers, student_user):
        response = await client.get('/api/admin/users', headers=superadmin_headers)

        assert response.status_code == 200
        users = response.json()
        assert users[0]['uid'] == student_user.uid
        assert users[0]['status'] == 'ACTIVE'

    @pytest.mark.asyncio
    async def test_update_roles_keeps_student(self, client: AsyncClient, superadmin_headers, student_user):
        response = await client.put(
            f'/api/admin/users/{student_user.id}',
            json={'roles': ['HOD', 'TEACHER']},
            headers=superadmin_headers,
        )

        assert response.status_code == 200
        user = response.json()['user']
        assert user['roles'] == ['HOD', 'TEACHER', 'STUDENT']
        assert user['defaultDashboard'] == 'HOD'

    @pytest.mark.asyncio
    async def test_update_to_superadmin_does_not_add_student(self, client: AsyncClient, superadmin_headers, student_user):
        response = await client.put(
            f'/api/admin/users/{student_user.id}',
            json={'roles': ['SUPERADMIN']},
            headers=superadmin_headers,
        )

        assert response.json()['user']['roles'] == ['SUPERADMIN']

    @pytest.mark.asyncio
    async def test_update_empty_roles_rejected(self, client: AsyncClient, superadmin_headers, student_user):
        response = await client.put(
            f'/api/admin/users/{student_user.id}', json={'roles': []}, headers=superadmin_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_deactivate_user(self, client: AsyncClient, superadmin_headers, student_user, student_headers):
        response = await client.put(
            f'/api/admin/users/{student_user.id}', json={'status': 'INACTIVE'}, headers=superadmin_headers
        )

        assert response.status_code == 200
        assert response.json()['user']['status'] == 'INACTIVE'

        me = await client.get('/api/auth/me', headers=student_headers)
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_update_missing_user(self, client: AsyncClient, superadmin_headers):
        response = await client.put('/api/admin/users/missing', json={'status': 'ACTIVE'}, headers=superadmin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_configured_superadmin_row_protected(self, client: AsyncClient, superadmin_headers, make_user):
        shadow = await make_user([Role.SUPERADMIN], uid='root-admin')

        response = await client.put(
            f'/api/admin/users/{shadow.id}', json={'status': 'INACTIVE'}, headers=superadmin_headers
        )

        assert response.status_code == 403
        assert response.json()['error'] == 'Cannot modify SuperAdmin user'

    @pytest.mark.asyncio
    async def test_direct_login(self, client: AsyncClient, superadmin_headers, teacher_user):
        response = await client.post(
            '/api/admin/direct-login', json={'uid': teacher_user.uid}, headers=superadmin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data['user']['id'] == teacher_user.id

        me = await client.get('/api/auth/me', headers={'Authorization': f"Bearer {data['accessToken']}"})
        assert me.json()['id'] == teacher_user.id

    @pytest.mark.asyncio
    async def test_direct_login_inactive(self, client: AsyncClient, superadmin_headers, make_user):
        user = await make_user(status=UserStatus.INACTIVE)

        response = await client.post('/api/admin/direct-login', json={'uid': user.uid}, headers=superadmin_headers)

        assert response.status_code == 400
        assert response.json()['error'] == 'User is not active'


class TestDepartments:
    """Test departments and dean assignment"""

    @pytest.mark.asyncio
    async def test_create_department(self, client: AsyncClient, superadmin_headers):
        response = await client.post(
            '/api/admin/departments', json={'dept_name': 'Physics'}, headers=superadmin_headers
        )

        assert response.status_code == 201
        assert response.json()['dept_name'] == 'Physics'
        assert response.json()['created_by'] is None

        duplicate = await client.post(
            '/api/admin/departments', json={'dept_name': 'Physics'}, headers=superadmin_headers
        )
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_list_departments(self, client: AsyncClient, superadmin_headers, campus):
        response = await client.get('/api/admin/departments', headers=superadmin_headers)

        [dept] = response.json()
        assert dept['name'] == campus.department.dept_name
        assert dept['deanName'] == campus.dean.name
        assert dept['totalCourses'] == 1

    @pytest.mark.asyncio
    async def test_assign_and_remove_dean(self, client: AsyncClient, superadmin_headers, dean_user, db_session):
        department = Department(dept_name='Mathematics')
        db_session.add(department)
        await db_session.commit()

        response = await client.post(
            '/api/admin/assign-dean',
            json={'deanId': dean_user.id, 'departmentId': department.id},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        assert response.json()['department']['dean_id'] == dean_user.id

        overview = await client.get('/api/admin/deans-departments', headers=superadmin_headers)
        [dean] = overview.json()['deans']
        assert dean['departments'] == [{'id': department.id, 'name': 'Mathematics'}]

        removed = await client.post(
            '/api/admin/remove-dean', json={'departmentId': department.id}, headers=superadmin_headers
        )
        assert removed.status_code == 200
        assert removed.json()['department']['dean_id'] is None

        again = await client.post(
            '/api/admin/remove-dean', json={'departmentId': department.id}, headers=superadmin_headers
        )
        assert again.status_code == 400
        assert again.json()['error'] == 'Department does not have an assigned dean'

    @pytest.mark.asyncio
    async def test_demoted_dean_released(self, client: AsyncClient, superadmin_headers, campus, db_session):
        response = await client.put(
            f'/api/admin/users/{campus.dean.id}', json={'roles': ['TEACHER']}, headers=superadmin_headers
        )

        assert response.status_code == 200
        assert response.json()['user']['roles'] == ['TEACHER', 'STUDENT']

        [department] = (await client.get('/api/admin/departments', headers=superadmin_headers)).json()
        assert department['deanId'] is None
        assert department['deanName'] is None

        log = await db_session.scalar(select(Log).where(Log.action == 'REMOVE_DEAN'))
        assert log.context['deanId'] == campus.dean.id
        assert log.context['departmentId'] == campus.department.id

    @pytest.mark.asyncio
    async def test_deactivated_dean_released(self, client: AsyncClient, superadmin_headers, campus, db_session):
        response = await client.put(
            f'/api/admin/users/{campus.dean.id}', json={'status': 'INACTIVE'}, headers=superadmin_headers
        )

        assert response.status_code == 200

        [department] = (await client.get('/api/admin/departments', headers=superadmin_headers)).json()
        assert department['deanId'] is None

        overview = await client.get('/api/admin/deans-departments', headers=superadmin_headers)
        assert overview.json()['deans'] == []

    @pytest.mark.asyncio
    async def test_dean_keeps_department_on_unrelated_update(self, client: AsyncClient, superadmin_headers, campus):
        response = await client.put(
            f'/api/admin/users/{campus.dean.id}', json={'roles': ['ADMIN', 'HOD']}, headers=superadmin_headers
        )

        assert response.status_code == 200

        [department] = (await client.get('/api/admin/departments', headers=superadmin_headers)).json()
        assert department['deanId'] == campus.dean.id

    @pytest.mark.asyncio
    async def test_assign_non_dean_rejected(self, client: AsyncClient, superadmin_headers, teacher_user, db_session):
        department = Department(dept_name='Chemistry')
        db_session.add(department)
        await db_session.commit()

        response = await client.post(
            '/api/admin/assign-dean',
            json={'deanId': teacher_user.id, 'departmentId': department.id},
            headers=superadmin_headers,
        )

        assert response.status_code == 400
        assert response.json()['error'] == 'User is not a dean (ADMIN role required)'

    @pytest.mark.asyncio
    async def test_assign_inactive_dean_rejected(self, client: AsyncClient, superadmin_headers, make_user, db_session):
        dean = await make_user([Role.ADMIN], status=UserStatus.INACTIVE)
        department = Department(dept_name='Biology')
        db_session.add(department)
        await db_session.commit()

        response = await client.post(
            '/api/admin/assign-dean',
            json={'deanId': dean.id, 'departmentId': department.id},
            headers=superadmin_headers,
        )

        assert response.status_code == 400
        assert response.json()['error'] == 'Dean account is not active'

    @pytest.mark.asyncio
    async def test_logs(self, client: AsyncClient, superadmin_headers):
        await client.post('/api/admin/departments', json={'dept_name': 'History'}, headers=superadmin_headers)

        response = await client.get('/api/admin/logs', headers=superadmin_headers)

        [entry] = response.json()
        assert entry['action'] == 'DEPARTMENT_CREATED'
        assert entry['category'] == 'DEPARTMENT'
        assert entry['message'] == 'department created'
        assert entry['userName'] == 'Super Administrator'
