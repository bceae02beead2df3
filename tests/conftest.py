"""Pytest configuration and fixtures."""
import os
import uuid
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Ensure the application uses a dedicated SQLite database during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["ENVIRONMENT"] = "test"

from codebreaker.config import get_settings
from codebreaker.services.auth_service import AuthService


BASE_DIR = Path(__file__).resolve().parent.parent
TEST_DB_PATH = BASE_DIR / "test.db"
settings = get_settings()

ADMIN_EMAIL = "admin@example.com"
WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Apply database migrations against the test database."""
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

    alembic_cfg = AlembicConfig(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BASE_DIR / "codebreaker" / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(alembic_cfg, "head")

    yield

    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            # Still open on Windows, cleaned up on the next run
            pass


@pytest.fixture
async def test_engine():
    """Engine bound to the migrated test database."""
    engine = create_async_engine(settings.database_url, echo=False)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory configured like the application's."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_app(session_factory):
    """Create test app with database override."""
    from codebreaker.main import app
    from codebreaker.database import get_db

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def active_round(db_session):
    """Start a fresh round, closing whatever round earlier tests left open."""
    from codebreaker.services import RoundService

    return await RoundService(db_session).start_round()


@pytest.fixture
def auth_headers():
    """Factory building bearer headers for a player identity."""

    def _headers(player_id: uuid.UUID | None = None, email: str | None = None) -> dict[str, str]:
        player_id = player_id or uuid.uuid4()
        token, _ = AuthService().create_access_token(player_id, email or f"player_{player_id.hex[:8]}@example.com")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(auth_headers):
    return auth_headers(email=ADMIN_EMAIL)


@pytest.fixture
async def player_factory(db_session):
    """Factory assigning a code in the active round to a fresh player.

    Returns the player id and the stored ``UserCode`` so tests can read the secret.
    """
    from sqlalchemy import select
    from codebreaker.models.user_code import UserCode
    from codebreaker.services import CodeAssignmentService

    async def _create_player(email: str | None = None):
        player_id = uuid.uuid4()
        assignment = await CodeAssignmentService(db_session).assign_code(
            player_id, email or f"player_{player_id.hex[:8]}@example.com"
        )
        result = await db_session.execute(
            select(UserCode).where(
                UserCode.player_id == player_id,
                UserCode.round_id == assignment.round_id,
            )
        )
        return player_id, result.scalar_one()

    return _create_player
