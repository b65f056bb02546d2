"""
Pytest configuration and fixtures for the multilingual engine tests
"""

import os
import sys
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

import cms_multilingual.models  # noqa: E402, F401  registers every table
from cms_multilingual.content_types import ContentTypeDefinition, ContentTypeRegistry  # noqa: E402
from cms_multilingual.database import Base, get_db  # noqa: E402
from cms_multilingual.models.content_item import ContentItem  # noqa: E402
from cms_multilingual.models.taxonomy_term import TaxonomyTerm  # noqa: E402
from cms_multilingual.services.field_registry import FieldRegistry  # noqa: E402
from cms_multilingual.services.multilingual_service import MultilingualService  # noqa: E402
from cms_multilingual.services.routing_service import RouteTable  # noqa: E402
from cms_multilingual.services.settings_service import MultilingualConfig  # noqa: E402

# Single shared in-memory database; StaticPool keeps one connection alive.
TEST_DATABASE_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,  # Set to True for SQL debugging
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture(scope="function")
async def setup_test_database():
    """Create a fresh schema for each test function that needs it."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def test_db(setup_test_database) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session on the fresh schema."""
    async with TestSessionLocal() as session:
        yield session


class StatementCounter:
    """Counts SELECT statements sent to the test engine while active."""

    def __init__(self) -> None:
        self.statements: list[str] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany) -> None:
        if statement.lstrip().upper().startswith("SELECT"):
            self.statements.append(statement)

    @property
    def count(self) -> int:
        return len(self.statements)

    def reset(self) -> None:
        self.statements.clear()


@pytest.fixture
def statement_counter():
    counter = StatementCounter()
    event.listen(test_engine.sync_engine, "before_cursor_execute", counter)
    yield counter
    event.remove(test_engine.sync_engine, "before_cursor_execute", counter)


# ── Engine fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def ml_config() -> MultilingualConfig:
    """Active configuration: de (default), en, fr with localized bases."""
    return MultilingualConfig(
        enabled=True,
        default_language="de",
        languages=[{"code": "de"}, {"code": "en"}, {"code": "fr"}],
        permalinks_enabled=True,
        permalink_bases={"product": {"fr": "produits", "en": "products"}},
        taxonomy_bases={"category": {"fr": "categorie"}},
    )


@pytest.fixture
def types() -> ContentTypeRegistry:
    """Fresh type registry: built-ins plus a routable 'product' type."""
    registry = ContentTypeRegistry()
    registry.register_type(ContentTypeDefinition("product", base="product", taxonomies=["category"]))
    return registry


@pytest.fixture
def fields() -> FieldRegistry:
    return FieldRegistry()


@pytest.fixture
def routes() -> RouteTable:
    return RouteTable()


@pytest.fixture
def engine(test_db, ml_config, types, fields, routes) -> MultilingualService:
    service = MultilingualService(test_db, ml_config, route_table=routes, types=types, fields=fields)
    service.init()
    return service


# ── Row factories ─────────────────────────────────────────────────────────────


@pytest.fixture
def make_content(test_db: AsyncSession):
    """Insert a content item directly, bypassing hooks."""

    async def _make(
        title: str = "Hello World",
        content_type: str = "post",
        language: str | None = None,
        group: str | None = None,
        status: str = "published",
        **fields,
    ) -> ContentItem:
        item = ContentItem(
            content_type=content_type,
            title=title,
            slug=fields.pop("slug", title.lower().replace(" ", "-")),
            status=status,
            language=language,
            translation_group=group,
            **fields,
        )
        test_db.add(item)
        await test_db.commit()
        await test_db.refresh(item)
        return item

    return _make


@pytest.fixture
def make_term(test_db: AsyncSession):
    """Insert a taxonomy term directly, bypassing hooks."""

    async def _make(
        name: str,
        taxonomy: str = "category",
        language: str | None = None,
        group: str | None = None,
        slug: str | None = None,
    ) -> TaxonomyTerm:
        term = TaxonomyTerm(
            taxonomy=taxonomy,
            name=name,
            slug=slug or f"{name.lower().replace(' ', '-')}-{language or 'x'}",
            language=language,
            translation_group=group,
        )
        test_db.add(term)
        await test_db.commit()
        await test_db.refresh(term)
        return term

    return _make


# ── HTTP client ───────────────────────────────────────────────────────────────


def override_get_db():
    """Override database dependency for testing"""

    async def _override():
        async with TestSessionLocal() as session:
            yield session

    return _override


@pytest.fixture
async def client(setup_test_database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against a fresh app bound to the test database."""
    from main import create_app

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
