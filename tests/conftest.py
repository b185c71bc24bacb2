"""
Pytest configuration and fixtures for draft-reconciler tests

This module provides shared fixtures for unit and integration tests.
"""
import os
from datetime import datetime
from typing import Generator

import pytest

from draft_reconciler.core.lifecycle import DraftLifecycleManager, DraftService
from draft_reconciler.core.normalization import normalize
from draft_reconciler.warehouse import InMemoryDraftRepository

ROOT_DIR = os.path.dirname(os.path.dirname(__file__))


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests across components or against PostgreSQL"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(autouse=True, scope="session")
def test_env_vars():
    """Load config/test.env into the environment."""
    from dotenv import load_dotenv

    env_path = os.path.join(ROOT_DIR, "config", "test.env")
    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)


@pytest.fixture(scope="session")
def policy_path() -> str:
    return os.path.join(ROOT_DIR, "config", "validation_policy.yaml")


# =======================
# LIFECYCLE FIXTURES
# =======================

FIXED_NOW = datetime(2025, 3, 1, 9, 30, 0)


@pytest.fixture
def clock():
    """Clock frozen at 2025-03-01 09:30 so past_usage_date checks are deterministic."""
    return lambda: FIXED_NOW


@pytest.fixture
def sequential_numbers():
    """Deterministic reservation number factory: AUTO_TEST_0001, AUTO_TEST_0002, ..."""
    counter = {"n": 0}

    def factory() -> str:
        counter["n"] += 1
        return f"AUTO_TEST_{counter['n']:04d}"

    return factory


@pytest.fixture
def repository() -> InMemoryDraftRepository:
    return InMemoryDraftRepository()


@pytest.fixture
def manager(repository, clock, sequential_numbers) -> DraftLifecycleManager:
    return DraftLifecycleManager(
        repository,
        normalizer=lambda parsed: normalize(parsed, reservation_number_factory=sequential_numbers),
        clock=clock,
    )


@pytest.fixture
def service(manager) -> DraftService:
    return DraftService(manager)


@pytest.fixture
def complete_parsed() -> dict:
    """An extractor guess that normalizes into a fully valid, unflagged record."""
    return {
        "reservation_number": "NOL-88231",
        "channel": "nol",
        "platform_name": "NOL",
        "product_name": "괌 돌핀 크루즈",
        "total_amount": "₩300,000",
        "adult_unit_price": "100,000원",
        "child_unit_price": "100000",
        "adults": "2명",
        "children": 1,
        "korean_name": " 김철수 ",
        "english_first_name": "chulsoo",
        "english_last_name": "KIM",
        "email": "Chulsoo.Kim@Example.com",
        "phone": "+82 10-1234-5678",
        "usage_date": "2025년 3월 15일",
        "usage_time": "오후 2시 30분",
        "payment_status": "예약확정",
    }


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator:
    """
    Start a PostgreSQL container for repository integration tests

    Skips the requesting tests when Docker is not available.
    """
    try:
        from testcontainers.postgres import PostgresContainer

        container = PostgresContainer(
            image=os.getenv("POSTGRES_IMAGE", "postgres:16-alpine"),
            username=os.getenv("DB_USER", "reconciler"),
            password=os.getenv("DB_PASSWORD", "reconciler_test"),
            dbname=os.getenv("DB_NAME", "reservations_test"),
            driver=None,
        )
        container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL container unavailable: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def pg_pool(postgres_container):
    """Open connection pool with the draft schema created."""
    from draft_reconciler.warehouse.connection import DatabaseConnectionPool
    from draft_reconciler.warehouse.postgres_repository import ensure_schema

    pool = DatabaseConnectionPool(conninfo=postgres_container.get_connection_url())
    pool.open()
    ensure_schema(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_db(pg_pool):
    """Truncate all draft tables before a test."""
    pg_pool.execute_command(
        "TRUNCATE TABLE reservation_audits, reservations, drafts RESTART IDENTITY CASCADE"
    )
    return pg_pool
