from collections.abc import AsyncGenerator
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from letrus_care.core.auth.jwt import create_access_token
from letrus_care.core.auth.models import User, UserRole
from letrus_care.core.auth.service import AuthService
from letrus_care.core.database import get_db
from letrus_care.main import app
from letrus_care.models import metadata
from letrus_care.modules.centers.models import Center
from letrus_care.modules.courses.ledger import TuitionFeeLedger
from letrus_care.modules.courses.models import Course, SchoolClass
from letrus_care.modules.courses.schemas import TuitionFeeFields
from letrus_care.modules.enrollments.schemas import EnrollmentCreate
from letrus_care.modules.enrollments.service import EnrollmentService
from letrus_care.modules.school_years.models import SchoolYear
from letrus_care.modules.students.models import Student

# In-memory SQLite shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

FEE_EPOCH = datetime(2025, 12, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


class Factory:
    """Builds committed test rows. Every method commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def center(self, name: str = "Centro Letrus") -> Center:
        center = Center(name=name, is_active=True)
        self.db.add(center)
        await self.db.commit()
        return center

    async def user(
        self,
        username: str = "admin",
        role: UserRole = UserRole.ADMIN,
        center_id: int | None = None,
        phone: str | None = "+244923000000",
    ) -> User:
        user = await AuthService(self.db).create_user(
            username=username,
            password="Password123",
            full_name=username.title(),
            role=role,
            phone=phone,
            center_id=center_id,
        )
        await self.db.commit()
        return user

    async def student(self, center: Center, code: str = "ALU-001") -> Student:
        student = Student(center_id=center.id, student_code=code, full_name=f"Aluno {code}")
        self.db.add(student)
        await self.db.commit()
        return student

    async def course(
        self,
        center: Center,
        fee: str = "5000",
        fee_effective_at: datetime = FEE_EPOCH,
        name: str = "Inglês",
    ) -> Course:
        """Course whose first fee version takes effect at fee_effective_at."""
        course = Course(center_id=center.id, name=name)
        self.db.add(course)
        await self.db.flush()
        await TuitionFeeLedger(self.db).replace_fee(
            course.id, TuitionFeeFields(fee=Decimal(fee)), effective_at=fee_effective_at
        )
        await self.db.commit()
        return course

    async def school_class(self, course: Course, name: str = "Turma A") -> SchoolClass:
        school_class = SchoolClass(center_id=course.center_id, course_id=course.id, name=name)
        self.db.add(school_class)
        await self.db.commit()
        return school_class

    async def school_year(
        self,
        center: Center,
        start: date = date(2026, 1, 1),
        end: date = date(2026, 12, 31),
        is_current: bool = True,
        description: str = "2026",
    ) -> SchoolYear:
        school_year = SchoolYear(
            center_id=center.id,
            description=description,
            start_date=start,
            end_date=end,
            is_current=is_current,
        )
        self.db.add(school_year)
        await self.db.commit()
        return school_year

    async def enrollment(self, student: Student, school_class: SchoolClass, enrollment_date: date):
        """Enrollment created through the service, plan included."""
        return await EnrollmentService(self.db).create_enrollment(
            EnrollmentCreate(
                center_id=student.center_id,
                student_id=student.id,
                class_id=school_class.id,
                enrollment_date=enrollment_date,
            )
        )


@pytest.fixture
def factory(db_session: AsyncSession) -> Factory:
    return Factory(db_session)


@pytest.fixture
async def admin_user(factory: Factory) -> User:
    return await factory.user()


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    token = create_access_token(admin_user.id, admin_user.role, admin_user.center_id)
    return {"Authorization": f"Bearer {token}"}
