"""
University LMS - Test Configuration and Fixtures
"""
import os
from types import SimpleNamespace
from typing import AsyncGenerator, Iterable
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-access-secret-key-for-testing-only'
os.environ['JWT_REFRESH_SECRET_KEY'] = 'test-refresh-secret-key-for-testing-only'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['SUPERADMIN_UID'] = 'root-admin'
os.environ['SUPERADMIN_PASSWORD'] = 'root-admin-password'

from lms.main import app
from lms.core.database import Base, get_db
from lms.core.security import get_password_hash, create_access_token
from lms.models.academic import Course, Department, Enrollment, EnrollmentRole, Section
from lms.models.user import User, UserStatus
from lms.modules.auth.principal import SuperAdminPrincipal
from lms.modules.auth.roles import Role

fake = Faker()

DEFAULT_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


def auth_headers_for(user_or_principal) -> dict:
    """Bearer header carrying a fresh access token for a user row or principal"""
    token = create_access_token(user_or_principal.to_claims())
    return {'Authorization': f'Bearer {token}'}


@pytest_asyncio.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory: create and commit a user holding ``roles``"""
    async def _make_user(
        roles: Iterable[Role] = (Role.STUDENT,),
        status: UserStatus = UserStatus.ACTIVE,
        password: str = DEFAULT_PASSWORD,
        **fields,
    ) -> User:
        user = User(
            uid=fields.pop('uid', fake.unique.bothify('U-#####')),
            name=fields.pop('name', fake.name()),
            email=fields.pop('email', fake.unique.email()),
            password_hash=get_password_hash(password),
            is_active=status,
            **fields,
        )
        user.assign_roles(list(roles))
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def student_user(make_user) -> User:
    return await make_user([Role.STUDENT])


@pytest_asyncio.fixture
async def teacher_user(make_user) -> User:
    return await make_user([Role.TEACHER, Role.STUDENT])


@pytest_asyncio.fixture
async def dean_user(make_user) -> User:
    return await make_user([Role.ADMIN, Role.STUDENT])


@pytest.fixture
def student_headers(student_user: User) -> dict:
    return auth_headers_for(student_user)


@pytest.fixture
def teacher_headers(teacher_user: User) -> dict:
    return auth_headers_for(teacher_user)


@pytest.fixture
def dean_headers(dean_user: User) -> dict:
    return auth_headers_for(dean_user)


@pytest.fixture
def superadmin_headers() -> dict:
    return auth_headers_for(SuperAdminPrincipal())


@pytest_asyncio.fixture
async def campus(db_session: AsyncSession, dean_user: User, teacher_user: User, student_user: User):
    """
    One department headed by ``dean_user`` with one course and one section,
    taught by ``teacher_user`` with ``student_user`` enrolled.
    """
    department = Department(dept_name=f'{fake.unique.word().title()} Studies', dean_id=dean_user.id)
    db_session.add(department)
    await db_session.flush()

    course = Course(
        course_name='Data Structures and Algorithms',
        course_code=fake.unique.bothify('CS-###'),
        dept_id=department.id,
        created_by=dean_user.id,
    )
    db_session.add(course)
    await db_session.flush()

    section = Section(section_name='Section A', course_id=course.id, capacity=2)
    db_session.add(section)
    await db_session.flush()

    db_session.add_all([
        Enrollment(user_id=teacher_user.id, section_id=section.id, role=EnrollmentRole.TEACHER),
        Enrollment(user_id=student_user.id, section_id=section.id, role=EnrollmentRole.STUDENT),
    ])
    await db_session.commit()

    return SimpleNamespace(
        department=department,
        course=course,
        section=section,
        dean=dean_user,
        teacher=teacher_user,
        student=student_user,
    )


@pytest.fixture
def headers_for():
    """Expose ``auth_headers_for`` to tests that mint tokens for their own users"""
    return auth_headers_for
