"""
adapters/postgres_store.py
──────────────────────────────────────────────────────────────────────────────
Implements CustomerStorePort using psycopg2.

Database layout (created by ensure_schema() on first use):
  Table : customers
  Cols  : id BIGSERIAL PK, name, email (UNIQUE), postal_code CHAR(8),
          street, city, region, created_at, updated_at
  Index : customers_email_key (unique), ix_customers_postal_code

Connection management:
  - A single connection is opened lazily and reused, in autocommit mode.
    Each port method is one statement, so no explicit transactions.
  - On OperationalError the connection is reset and one retry is attempted.
  - Sufficient for one worker process; for several workers switch to a
    psycopg2.pool.ThreadedConnectionPool — change only this file.

To swap the database engine:
  1. Write a new adapter implementing CustomerStorePort
  2. Change ONE import in services/container.py
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Optional

import psycopg2
import psycopg2.errors
import psycopg2.extras

from cep_registry.config.settings import Settings
from cep_registry.domain.exceptions import DatabaseError
from cep_registry.domain.models import Customer

logger = logging.getLogger(__name__)

# Columns returned for every customer row (must match domain/models.py Customer)
_RECORD_COLS = (
    "id",
    "name",
    "email",
    "postal_code",
    "street",
    "city",
    "region",
    "created_at",
    "updated_at",
)
_SELECT_COLS = ", ".join(_RECORD_COLS)

_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS customers (
        id           BIGSERIAL    PRIMARY KEY,
        name         VARCHAR(100) NOT NULL,
        email        VARCHAR(150) NOT NULL UNIQUE,
        postal_code  CHAR(8)      NOT NULL,
        street       VARCHAR(200),
        city         VARCHAR(100),
        region       VARCHAR(2),
        created_at   TIMESTAMPTZ  NOT NULL,
        updated_at   TIMESTAMPTZ
    );
    CREATE INDEX IF NOT EXISTS ix_customers_postal_code ON customers (postal_code);
"""


class PostgresCustomerStore:
    """psycopg2 implementation of CustomerStorePort.

    Injected into CustomerService via services/container.py when
    ``STORE_BACKEND=postgres``.
    """

    def __init__(self, settings: Settings) -> None:
        self._dsn = settings.db_dsn
        self._conn: Any = None
        self._lock = threading.Lock()
        self._schema_ready = False
        logger.debug("PostgresCustomerStore ready | dsn=%s", self._dsn)

    # ── CustomerStorePort implementation ───────────────────────────────────

    def list_all(self) -> list[Customer]:
        sql = f"SELECT {_SELECT_COLS} FROM customers ORDER BY name, id"
        try:
            rows = self._execute(sql, ())
        except psycopg2.Error as exc:
            raise DatabaseError(f"list_all failed: {exc}") from exc
        return [Customer(**row) for row in rows]

    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        sql = f"SELECT {_SELECT_COLS} FROM customers WHERE id = %s"
        try:
            rows = self._execute(sql, (customer_id,))
        except psycopg2.Error as exc:
            raise DatabaseError(f"get_by_id failed: {exc}") from exc
        return Customer(**rows[0]) if rows else None

    def insert(self, customer: Customer) -> Customer:
        sql = f"""
            INSERT INTO customers
                   (name, email, postal_code, street, city, region, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {_SELECT_COLS}
        """
        params = (
            customer.name,
            customer.email,
            customer.postal_code,
            customer.street,
            customer.city,
            customer.region,
            customer.created_at,
            customer.updated_at,
        )
        try:
            rows = self._execute(sql, params)
        except psycopg2.errors.UniqueViolation as exc:
            raise DatabaseError(f"duplicate e-mail: {customer.email}") from exc
        except psycopg2.Error as exc:
            raise DatabaseError(f"insert failed: {exc}") from exc
        return Customer(**rows[0])

    def replace(self, customer: Customer) -> Customer:
        """UPDATE every mutable column.  created_at is not in the SET list."""
        sql = f"""
            UPDATE customers
               SET name = %s, email = %s, postal_code = %s,
                   street = %s, city = %s, region = %s, updated_at = %s
             WHERE id = %s
            RETURNING {_SELECT_COLS}
        """
        params = (
            customer.name,
            customer.email,
            customer.postal_code,
            customer.street,
            customer.city,
            customer.region,
            customer.updated_at,
            customer.id,
        )
        try:
            rows = self._execute(sql, params)
        except psycopg2.errors.UniqueViolation as exc:
            raise DatabaseError(f"duplicate e-mail: {customer.email}") from exc
        except psycopg2.Error as exc:
            raise DatabaseError(f"replace failed: {exc}") from exc
        if not rows:
            raise DatabaseError(f"replace failed: no customer with id={customer.id}")
        return Customer(**rows[0])

    def delete_by_id(self, customer_id: int) -> bool:
        sql = "DELETE FROM customers WHERE id = %s RETURNING id"
        try:
            rows = self._execute(sql, (customer_id,))
        except psycopg2.Error as exc:
            raise DatabaseError(f"delete_by_id failed: {exc}") from exc
        return bool(rows)

    def exists_by_id(self, customer_id: int) -> bool:
        sql = "SELECT EXISTS (SELECT 1 FROM customers WHERE id = %s) AS present"
        try:
            rows = self._execute(sql, (customer_id,))
        except psycopg2.Error as exc:
            raise DatabaseError(f"exists_by_id failed: {exc}") from exc
        return bool(rows and rows[0]["present"])

    # ── Schema ─────────────────────────────────────────────────────────────

    def ensure_schema(self) -> None:
        """Create the customers table and indexes if they are missing."""
        conn = self._get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute(_SCHEMA_SQL)
        except psycopg2.Error as exc:
            raise DatabaseError(f"Cannot create schema: {exc}") from exc
        self._schema_ready = True
        logger.info("PostgresCustomerStore: schema ready")

    # ── Connection helpers ─────────────────────────────────────────────────

    def _get_conn(self) -> Any:
        """Return an open connection, creating or reusing one."""
        if self._conn is None or self._conn.closed:
            self._conn = self._new_conn()
        return self._conn

    def _new_conn(self) -> Any:
        try:
            conn = psycopg2.connect(self._dsn)
            conn.autocommit = True
            logger.debug("PostgresCustomerStore: new connection opened")
            return conn
        except psycopg2.Error as exc:
            raise DatabaseError(f"Cannot connect to database: {exc}") from exc

    def _execute(self, sql: str, params: tuple) -> list[dict]:
        """Execute one statement and return rows as dicts, with one auto-reconnect."""
        with self._lock:
            if not self._schema_ready:
                self.ensure_schema()
            for attempt in (1, 2):
                conn = self._get_conn()
                try:
                    with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                        cur.execute(sql, params)
                        return list(cur.fetchall()) if cur.description else []
                except psycopg2.OperationalError as exc:
                    if attempt == 1:
                        logger.warning("DB OperationalError — reconnecting: %s", exc)
                        self._conn = None
                    else:
                        raise DatabaseError(f"DB query failed after reconnect: {exc}") from exc
            return []  # unreachable

    def close(self) -> None:
        """Close the connection; the next query reopens it."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            logger.debug("PostgresCustomerStore: connection closed")
