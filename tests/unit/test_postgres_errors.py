"""
Unit tests for how the PostgreSQL stores surface database errors.

Uses a stand-in pool, so no database is needed.
"""

from contextlib import contextmanager

import psycopg
import pytest
from psycopg_pool import PoolTimeout

from wage_pipeline.core.errors import StorageError, StorageWriteFailure
from wage_pipeline.core.models import Partition
from wage_pipeline.warehouse import PostgresProgressLedger, PostgresWageStore

PARTITION = Partition(location="ucla", year=2023)


class BrokenPool:
    """Pool whose every database call fails."""

    def __init__(self):
        self.error = psycopg.OperationalError("server closed the connection unexpectedly")

    def execute_query(self, query, params=None):
        raise self.error

    def execute_command(self, command, params=None):
        raise self.error

    @contextmanager
    def get_connection(self):
        raise self.error
        yield


@pytest.mark.unit
class TestPostgresReadErrors:
    """Read paths raise StorageError instead of raw psycopg errors"""

    @pytest.mark.parametrize("call", [
        lambda store: store.fetch_partition(PARTITION),
        lambda store: store.count(PARTITION),
        lambda store: store.list_partitions(),
    ])
    def test_wage_store_reads(self, call):
        with pytest.raises(StorageError) as exc_info:
            call(PostgresWageStore(BrokenPool()))

        assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)

    @pytest.mark.parametrize("call", [
        lambda ledger: ledger.get(PARTITION),
        lambda ledger: ledger.list_progress(),
        lambda ledger: ledger.list_progress(location="ucla"),
    ])
    def test_ledger_reads(self, call):
        with pytest.raises(StorageError) as exc_info:
            call(PostgresProgressLedger(BrokenPool()))

        assert "server closed the connection" in str(exc_info.value)


@pytest.mark.unit
class TestPartitionLockErrors:
    """Lock acquisition failures"""

    def test_unreachable_database(self):
        store = PostgresWageStore(BrokenPool())

        with pytest.raises(StorageWriteFailure) as exc_info:
            with store.partition_lock(PARTITION):
                pass

        assert exc_info.value.operation == "partition_lock"
        assert "ucla/2023" in str(exc_info.value)

    def test_pool_timeout(self):
        pool = BrokenPool()
        pool.error = PoolTimeout("couldn't get a connection after 30.00 sec")

        with pytest.raises(StorageWriteFailure):
            with PostgresWageStore(pool).partition_lock(PARTITION):
                pass
