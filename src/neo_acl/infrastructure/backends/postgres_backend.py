"""PostgreSQL storage backend.

ONLY PostgreSQL implementation - each member of each set is one row of a
single table keyed by ``(bucket, key, value)``. An absent key and an empty
set are the same thing: no rows.

Batches are lists of statements executed inside one transaction at commit.
"""

import logging
import re
from typing import Dict, Iterable, Optional, Set

from ...config.constants import StorageDefaults
from ...core.exceptions import ConfigurationError, StorageNotConfiguredError
from ...core.protocols.storage import (
    Batch,
    BatchedUnionsBackend,
    ValuesInput,
    as_value_set,
)
from ...database.connection import DatabaseManager

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class PostgresBackend(BatchedUnionsBackend):
    """PostgreSQL implementation of the storage contract.

    Args:
        database: DatabaseManager owning the asyncpg pool (injected)
        table_name: Table holding the bucket rows
    """

    def __init__(
        self,
        database: Optional[DatabaseManager],
        table_name: str = StorageDefaults.POSTGRES_TABLE,
    ):
        if not _IDENTIFIER_RE.match(table_name):
            raise ConfigurationError(
                f"Invalid table name: {table_name!r}",
                details={"table_name": table_name},
            )
        self._db = database
        self._table = table_name

    def _get_database(self) -> DatabaseManager:
        if self._db is None:
            raise StorageNotConfiguredError("Database manager not configured")
        return self._db

    async def ensure_schema(self) -> None:
        """Create the bucket table if it does not exist."""
        await self._get_database().execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                bucket TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (bucket, key, value)
            )
            """
        )
        logger.info(f"Ensured ACL table {self._table}")

    async def commit_batch(self, batch: Batch) -> None:
        """Run every queued statement in one transaction."""
        self._claim_batch(batch)
        if not batch.operations:
            return
        try:
            async with self._get_database().transaction() as connection:
                for query, args in batch.operations:
                    await connection.executemany(query, args)
        except Exception as e:
            logger.error(f"Failed to commit PostgreSQL batch of {len(batch)} statements: {e}")
            raise
        logger.debug(f"Committed PostgreSQL batch of {len(batch)} statements")

    async def get(self, bucket: str, key: str) -> Set[str]:
        rows = await self._get_database().fetch(
            f"SELECT value FROM {self._table} WHERE bucket = $1 AND key = $2",
            bucket, key,
        )
        return {row["value"] for row in rows}

    async def union(self, bucket: str, keys: Iterable[str]) -> Set[str]:
        keys = list(keys)
        if not keys:
            return set()
        rows = await self._get_database().fetch(
            f"SELECT DISTINCT value FROM {self._table} WHERE bucket = $1 AND key = ANY($2::text[])",
            bucket, keys,
        )
        return {row["value"] for row in rows}

    async def unions(self, buckets: Iterable[str], keys: Iterable[str]) -> Dict[str, Set[str]]:
        buckets = list(buckets)
        keys = list(keys)
        result: Dict[str, Set[str]] = {bucket: set() for bucket in buckets}
        if not buckets or not keys:
            return result

        rows = await self._get_database().fetch(
            f"SELECT DISTINCT bucket, value FROM {self._table} "
            f"WHERE bucket = ANY($1::text[]) AND key = ANY($2::text[])",
            buckets, keys,
        )
        for row in rows:
            result[row["bucket"]].add(row["value"])
        return result

    def add(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        values = as_value_set(values)
        if not values:
            return
        batch.operations.append((
            f"INSERT INTO {self._table} (bucket, key, value) VALUES ($1, $2, $3) "
            f"ON CONFLICT DO NOTHING",
            [(bucket, key, value) for value in sorted(values)],
        ))

    def remove(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        values = as_value_set(values)
        if not values:
            return
        batch.operations.append((
            f"DELETE FROM {self._table} WHERE bucket = $1 AND key = $2 AND value = ANY($3::text[])",
            [(bucket, key, sorted(values))],
        ))

    def delete(self, batch: Batch, bucket: str, keys: ValuesInput) -> None:
        keys = as_value_set(keys)
        if not keys:
            return
        batch.operations.append((
            f"DELETE FROM {self._table} WHERE bucket = $1 AND key = ANY($2::text[])",
            [(bucket, sorted(keys))],
        ))

    async def clean(self) -> None:
        """Delete every row of the bucket table."""
        await self._get_database().execute(f"DELETE FROM {self._table}")
        logger.debug(f"PostgreSQL backend cleaned table {self._table}")

    async def close(self) -> None:
        """Close the connection pool."""
        if self._db is not None:
            await self._db.close_pool()
