"""
Pytest configuration and fixtures for wage-pipeline tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import json
import os
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest

from wage_pipeline.core.config import PipelineSettings
from wage_pipeline.core.models import Partition, WageRecord
from wage_pipeline.warehouse import (
    DatabaseConnectionPool,
    InMemoryArtifactStore,
    InMemoryProgressLedger,
    InMemoryWageStore,
    SchemaManager,
)


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL container for integration tests

    Skips every dependent test when Docker is not available.

    Yields:
        PostgresContainer instance
    """
    from testcontainers.postgres import PostgresContainer

    container = PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_wages",
        password="test_password",
        dbname="test_wages",
    )
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available for PostgreSQL tests: {e}")

    yield container

    container.stop()


@pytest.fixture(scope="session")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Connection pool against the test container with the schema created

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_wages",
        user="test_wages",
        password="test_password",
        min_size=1,
        max_size=8,
    )
    pool.open()
    SchemaManager(pool).create_tables()

    yield pool

    pool.close()


@pytest.fixture(scope="function")
def clean_db(db_pool) -> DatabaseConnectionPool:
    """
    Provide a clean database by truncating all tables before each test

    Returns:
        Open DatabaseConnectionPool over empty tables
    """
    SchemaManager(db_pool).truncate_tables()
    return db_pool


# =======================
# IN-MEMORY STORE FIXTURES
# =======================

@pytest.fixture
def wage_store() -> InMemoryWageStore:
    return InMemoryWageStore()


@pytest.fixture
def progress_ledger() -> InMemoryProgressLedger:
    return InMemoryProgressLedger()


@pytest.fixture
def artifact_store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def settings() -> PipelineSettings:
    """Default settings, independent of any config file on disk"""
    return PipelineSettings()


# =======================
# DATA FIXTURES
# =======================

@pytest.fixture
def partition() -> Partition:
    return Partition(location="ucla", year=2023)


@pytest.fixture
def make_record(partition) -> Callable[..., WageRecord]:
    """
    Factory for WageRecords in the default partition

    Usage:
        make_record(1, grosspay="100.00", title="CLERK")
    """

    def _make(employee_id: int | None = None, grosspay="0.00", **fields) -> WageRecord:
        fields.setdefault("location", partition.location)
        fields.setdefault("year", partition.year)
        fields.setdefault("scraped_at", datetime(2024, 3, 1, tzinfo=timezone.utc))
        return WageRecord(employee_id=employee_id, grosspay=Decimal(str(grosspay)), **fields)

    return _make


@pytest.fixture
def wage_payload() -> dict:
    """A small wage file payload with messy but recoverable values"""
    return {
        "location": "ucla",
        "year": 2023,
        "scraped_at": "2024-03-01T12:00:00Z",
        "records": [
            {
                "employee_id": 1,
                "firstname": "JANE",
                "lastname": "DOE",
                "title": "PROF-AY",
                "basepay": "150,000.00",
                "overtimepay": "0",
                "adjustpay": "1,200.50",
                "grosspay": "151,200.50",
            },
            {
                "employee_id": 2,
                "firstname": "JOHN",
                "lastname": "ROE",
                "title": "CLERK",
                "basepay": 40000,
                "overtimepay": "2,500.00",
                "adjustpay": "N/A",
                "grosspay": "42,500.00",
            },
            {
                "id": "3",
                "firstname": "ANA",
                "lastname": "LI",
                "title": "CLERK",
                "basepay": "$38,000",
                "grosspay": "$38,000",
            },
            {
                "employee_id": 4,
                "firstname": "*****",
                "lastname": "*****",
                "title": "*****",
                "basepay": "*****",
                "grosspay": "12,000.00",
            },
        ],
    }


@pytest.fixture
def wage_data_dir(tmp_path, wage_payload) -> Path:
    """
    Data directory laid out as <location>/wages_<year>.json

    Returns:
        Path to the data directory holding ucla/2023 and ucla/2022
    """
    data_dir = tmp_path / "data"
    (data_dir / "ucla").mkdir(parents=True)

    (data_dir / "ucla" / "wages_2023.json").write_text(json.dumps(wage_payload))

    older = dict(wage_payload, year=2022, records=wage_payload["records"][:2])
    (data_dir / "ucla" / "wages_2022.json").write_text(json.dumps(older))

    (data_dir / "ucla" / "notes.txt").write_text("not a wage file")
    return data_dir


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_env_vars():
    """
    Set test environment variables

    This fixture loads test.env and sets environment variables
    """
    from dotenv import load_dotenv

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)
