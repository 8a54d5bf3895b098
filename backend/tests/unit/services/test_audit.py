"""
Unit Tests for the activity log writer
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, inspect, select

from lms.models.log import Log
from lms.models.user import User
from lms.modules.auth.principal import SuperAdminPrincipal
from lms.services import audit


@pytest.fixture
def failing_log_writes(monkeypatch):
    """Every activity row violates NOT NULL on ``action``"""
    def broken_log(**fields):
        return Log(**{**fields, 'action': None})

    monkeypatch.setattr(audit, 'Log', broken_log)


class TestLogActivity:
    """Test best-effort log writes"""

    @pytest.mark.asyncio
    async def test_writes_superadmin_actor(self, db_session):
        entry = await audit.log_activity(db_session, SuperAdminPrincipal(), 'DEPARTMENT_CREATED', {'x': 1})

        assert entry is not None
        assert entry.user_id is None
        assert entry.context == {'actor': 'superadmin', 'x': 1}

    @pytest.mark.asyncio
    async def test_failure_keeps_loaded_objects(self, db_session, student_user, failing_log_writes):
        entry = await audit.log_activity(db_session, student_user.id, 'USER_LOGIN')

        assert entry is None
        assert inspect(student_user).expired_attributes == set()
        assert student_user.name
        assert await db_session.scalar(select(func.count(Log.id))) == 0

    @pytest.mark.asyncio
    async def test_failure_does_not_fail_request(self, client: AsyncClient, superadmin_headers,
                                                db_session, failing_log_writes):
        payload = {'name': 'Dana Scully', 'email': 'dana@university.edu', 'uid': 'HOD777', 'role': 'HOD'}

        response = await client.post('/api/admin/users', json=payload, headers=superadmin_headers)

        assert response.status_code == 201
        assert response.json()['uid'] == 'HOD777'
        assert response.json()['roles'] == ['HOD']
        assert await db_session.scalar(select(User.id).where(User.uid == 'HOD777'))
        assert await db_session.scalar(select(func.count(Log.id))) == 0

    @pytest.mark.asyncio
    async def test_failure_does_not_fail_quiz_attempt(self, client: AsyncClient, student_headers,
                                                     campus, db_session, failing_log_writes):
        from lms.models.content import Quiz

        quiz = Quiz(title='Warm-up', course_id=campus.course.id,
                    questions=[{'question': 'Pick', 'options': ['a', 'b'], 'answer': 1}])
        db_session.add(quiz)
        await db_session.commit()

        response = await client.post(
            f'/api/student/quizzes/{quiz.id}/attempt', json={'answers': [1]}, headers=student_headers
        )

        assert response.status_code == 201
        assert response.json()['attempt']['score'] == 100.0
