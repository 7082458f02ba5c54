"""
Pytest configuration for the Transactional Record Store.

Provides fixtures for:
- In-memory backend, coordinator and application context (unit tests)
- Database connection management for the PostgreSQL backend (integration tests)
- Settings override for integration tests
"""

from __future__ import annotations

import os
from typing import Generator, List, Tuple

import psycopg
import pytest

from record_store.config import Settings
from record_store.context import AppContext, build_context
from record_store.domain.models import Book
from record_store.repository.memory import MemoryBackend
from record_store.transactions.coordinator import TransactionCoordinator


class RecordingNotifier:
    """Notifier that keeps every message in memory."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append((recipient, subject, body))


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def coordinator(backend: MemoryBackend) -> TransactionCoordinator:
    return TransactionCoordinator(backend)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def ctx(backend: MemoryBackend, notifier: RecordingNotifier) -> Generator[AppContext, None, None]:
    context = build_context(Settings(), backend=backend, notifier=notifier)
    try:
        yield context
    finally:
        context.close()


@pytest.fixture
def sample_books() -> List[Book]:
    return [
        Book.build(title="Java Basics", author="Herbert Schildt", price=29.99),
        Book.build(title="Spring in Action", author="Craig Walls", price=39.99),
        Book.build(title="Effective Java", author="Joshua Bloch", price=45.00),
    ]


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        store_backend="postgres",
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "record_store"),
        db_pool_min_size=1,
        db_pool_max_size=4,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def pg_backend_session(test_settings: Settings, test_dsn: str, db_connection_available: bool):
    """
    Session-scoped PostgreSQL backend with the schema created.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    from record_store.repository.postgres import PostgresBackend

    pg = PostgresBackend(dsn_override=test_dsn, settings=test_settings)
    pg.init_schema()
    try:
        yield pg
    finally:
        pg.drop_schema()
        pg.close()


@pytest.fixture
def pg_backend(pg_backend_session):
    """
    Clean every table before and after each test function.
    """
    pg_backend_session.truncate()
    yield pg_backend_session
    pg_backend_session.truncate()
