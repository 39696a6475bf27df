import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["VALIDATE_CONFIG_ON_IMPORT"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "text"

import uuid
from datetime import date

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from club_manager.clubs.models import Club, Mandat, RoleType, UserAccount, UserClub
from club_manager.core.database import Base, get_session
from club_manager.core.jwt_auth import jwt_manager
from club_manager.core.passwords import hash_password
from club_manager.main import app

PASSWORD = "secret-password"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(user: UserAccount) -> dict:
    token = jwt_manager.create_access_token(user.id, user.roles or [])
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def make_user(session_factory):
    async def _make(
        *roles: RoleType,
        email: str = None,
        first_name: str = "Jean",
        last_name: str = "Dupont",
        is_active: bool = True,
    ):
        async with session_factory() as session:
            user = UserAccount(
                email=email or f"{uuid.uuid4().hex[:12]}@example.com",
                password_hash=PASSWORD_HASH,
                first_name=first_name,
                last_name=last_name,
                roles=[role.value for role in roles],
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make


@pytest_asyncio.fixture
async def make_club(session_factory):
    numbers = iter(range(1000, 100000))

    async def _make(name: str = "Rotary Club Abidjan", *members: UserAccount):
        async with session_factory() as session:
            club = Club(name=name, number=next(numbers))
            session.add(club)
            await session.flush()
            for user in members:
                session.add(UserClub(club_id=club.id, user_id=user.id))
            await session.commit()
            await session.refresh(club)
            return club

    return _make


@pytest_asyncio.fixture
async def add_member(session_factory):
    async def _add(club: Club, user: UserAccount):
        async with session_factory() as session:
            session.add(UserClub(club_id=club.id, user_id=user.id))
            await session.commit()

    return _add


@pytest_asyncio.fixture
async def make_mandat(session_factory):
    async def _make(
        club: Club, year: int = 2025, is_current: bool = True, dues_amount=0
    ):
        async with session_factory() as session:
            mandat = Mandat(
                club_id=club.id,
                year=year,
                start_date=date(year, 7, 1),
                end_date=date(year + 1, 6, 30),
                is_current=is_current,
                dues_amount=dues_amount,
            )
            session.add(mandat)
            await session.commit()
            await session.refresh(mandat)
            return mandat

    return _make


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(RoleType.admin, first_name="Admin", last_name="Root")


@pytest_asyncio.fixture
async def president(make_user):
    return await make_user(RoleType.president, first_name="Paul", last_name="Kouassi")


@pytest_asyncio.fixture
async def treasurer(make_user):
    return await make_user(RoleType.treasurer, first_name="Awa", last_name="Traore")


@pytest_asyncio.fixture
async def member(make_user):
    return await make_user(first_name="Marc", last_name="Yao")


@pytest_asyncio.fixture
async def club(make_club, president, treasurer, member):
    return await make_club("Rotary Club Abidjan", president, treasurer, member)


@pytest_asyncio.fixture
async def auth():
    return auth_headers
