from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2 import pool as pg_pool

from ..models.config_models import DatabaseConfig
from ..models.records import CutoffRecord, EntityKind, ImportContext, NaturalKey
from .batch_upsert import CUTOFF_TABLE, NATURAL_KEY_COLUMNS, batch_upsert
from .store import StoreError, StoreUnavailableError

"""PostgreSQL store.

Every public method runs in its own transaction on a connection borrowed from
a ThreadedConnectionPool, so column workers can share one store. Connection
level failures (OperationalError / InterfaceError) surface as
StoreUnavailableError; any other driver error becomes StoreError after a
rollback.
"""

__all__ = [
    "PostgresStore",
    "resolve_dsn",
]

logger = logging.getLogger(__name__)

ENTITY_TABLES = {
    EntityKind.INSTITUTION: "institutions",
    EntityKind.PROGRAM: "programs",
}
NATURAL_KEY_INDEX = "cutoff_records_natural_key"

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS institutions (
        id BIGSERIAL PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        location TEXT,
        state TEXT,
        institution_type TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS programs (
        id BIGSERIAL PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        program_type TEXT,
        duration_years INTEGER,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {CUTOFF_TABLE} (
        id BIGSERIAL PRIMARY KEY,
        institution_id BIGINT NOT NULL REFERENCES institutions(id),
        program_id BIGINT NOT NULL REFERENCES programs(id),
        counselling_type TEXT NOT NULL,
        year INTEGER NOT NULL,
        round TEXT NOT NULL,
        category TEXT NOT NULL,
        quota TEXT NOT NULL,
        rank INTEGER NOT NULL CHECK (rank >= 0),
        source_file TEXT,
        imported_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    f"CREATE INDEX IF NOT EXISTS cutoff_records_context "
    f"ON {CUTOFF_TABLE} (counselling_type, year, round)",
)

_KEY_SQL = ", ".join(f'"{c}"' for c in NATURAL_KEY_COLUMNS)
_CONNECTION_ERRORS = (psycopg2.OperationalError, psycopg2.InterfaceError)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Build a DSN; environment variables win over the YAML database section.

    Order: DATABASE_URL / PGDSN, then PGHOST, PGPORT, PGUSER, PGPASSWORD,
    PGDATABASE, each falling back to the config value.
    """
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


class PostgresStore:
    def __init__(
        self,
        dsn: str,
        max_connections: int = 4,
        page_size: int = 1000,
    ) -> None:
        try:
            self._pool = pg_pool.ThreadedConnectionPool(1, max(1, max_connections), dsn)
        except _CONNECTION_ERRORS as e:
            raise StoreUnavailableError(f"cannot connect: {e}") from e
        self.page_size = page_size

    @contextmanager
    def _transaction(self) -> Iterator[Any]:
        try:
            conn = self._pool.getconn()
        except pg_pool.PoolError as e:
            raise StoreUnavailableError(f"connection pool: {e}") from e
        broken = False
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except _CONNECTION_ERRORS as e:
            broken = True
            raise StoreUnavailableError(str(e)) from e
        except psycopg2.Error as e:
            conn.rollback()
            raise StoreError(str(e).strip()) from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn, close=broken)

    def ensure_schema(self, enforce_unique_key: bool = True) -> None:
        with self._transaction() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        if enforce_unique_key:
            self.create_unique_key_index()

    def create_unique_key_index(self) -> None:
        """Enforce one row per natural key; fails while duplicates remain."""
        try:
            with self._transaction() as cur:
                cur.execute(
                    f"CREATE UNIQUE INDEX IF NOT EXISTS {NATURAL_KEY_INDEX} "
                    f"ON {CUTOFF_TABLE} ({_KEY_SQL})"
                )
        except StoreUnavailableError:
            raise
        except StoreError as e:
            raise StoreError(
                f"cannot enforce natural key (duplicates present? run --dedupe): {e}"
            ) from e

    def find_or_create_entity(self, kind: EntityKind, name: str) -> tuple[int, bool]:
        table = ENTITY_TABLES[kind]
        with self._transaction() as cur:
            cur.execute(
                f"INSERT INTO {table} (name) VALUES (%s) "
                f"ON CONFLICT (name) DO NOTHING RETURNING id",
                (name,),
            )
            row = cur.fetchone()
            if row is not None:
                return int(row[0]), True
            cur.execute(f"SELECT id FROM {table} WHERE name = %s", (name,))
            row = cur.fetchone()
        if row is None:
            raise StoreError(f"{kind.value} vanished after conflict: {name}")
        return int(row[0]), False

    def upsert_records(self, records: Sequence[CutoffRecord]) -> int:
        with self._transaction() as cur:
            result = batch_upsert(cur, records, page_size=self.page_size)
        return result.submitted_rows

    def duplicate_groups(self) -> list[list[int]]:
        with self._transaction() as cur:
            cur.execute(
                f"SELECT array_agg(id ORDER BY id) FROM {CUTOFF_TABLE} "
                f"GROUP BY {_KEY_SQL} HAVING COUNT(*) > 1 ORDER BY MIN(id)"
            )
            return [list(r[0]) for r in cur.fetchall()]

    def delete_records(self, ids: Sequence[int]) -> int:
        wanted = sorted(set(ids))
        if not wanted:
            return 0
        with self._transaction() as cur:
            cur.execute(f"LOCK TABLE {CUTOFF_TABLE} IN SHARE ROW EXCLUSIVE MODE")
            cur.execute(f"DELETE FROM {CUTOFF_TABLE} WHERE id = ANY(%s)", (wanted,))
            if cur.rowcount != len(wanted):
                # raising inside the transaction rolls the delete back
                raise StoreError(
                    f"expected to delete {len(wanted)} rows, matched {cur.rowcount}"
                )
        return len(wanted)

    def delete_context(self, context: ImportContext) -> int:
        with self._transaction() as cur:
            cur.execute(
                f"DELETE FROM {CUTOFF_TABLE} "
                f"WHERE counselling_type = %s AND year = %s AND round = %s",
                (context.counselling_type, context.year, context.round),
            )
            return cur.rowcount

    def count_records(self) -> int:
        with self._transaction() as cur:
            cur.execute(f"SELECT COUNT(*) FROM {CUTOFF_TABLE}")
            return int(cur.fetchone()[0])

    def natural_keys(self) -> set[NaturalKey]:
        with self._transaction() as cur:
            cur.execute(f"SELECT {_KEY_SQL} FROM {CUTOFF_TABLE}")
            return {tuple(r) for r in cur.fetchall()}  # type: ignore[misc]

    def close(self) -> None:
        self._pool.closeall()
