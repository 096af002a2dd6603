import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from pn_filer.config import Settings
from pn_filer.document_builder.formats import FormatVersion
from pn_filer.models.base import Base
# Import all models so they register with Base.metadata for create_all
import pn_filer.models  # noqa: F401

# In-memory SQLite, one database per test (no Postgres needed for unit tests)
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@compiles(PG_UUID, "sqlite")
def _compile_pg_uuid_sqlite(type_, compiler, **kw):
    # A column declared "UUID" gets NUMERIC affinity in SQLite, which coerces
    # hex strings such as "...123e456..." to REAL; store them as text instead.
    return "CHAR(32)"


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        shopify_store_domain="test-store.myshopify.com",
        shopify_access_token="shpat_test",
        customscity_api_key="cc-test-key",
        customscity_api_base_url="https://api.customscity.test",
        customscity_status_base_url="https://app.customscity.test/api",
        filing_format_version=FormatVersion.FDA_PN,
    )


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session):
    from pn_filer.database import get_db
    from pn_filer.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
