"""
关系型存储适配器 - Relational Store Adapters

每个适配器声明自己的占位符风格，执行只读查询，并对单次调用施加超时。
Each adapter declares its placeholder style, runs read-only queries, and bounds every call with a timeout.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, List, Protocol

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from ..errors import StoreError
from .query import SelectQuery

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class ComponentStore(Protocol):
    placeholder: str

    def fetch_all(self, query: SelectQuery, operation: str) -> List[Row]: ...

    def ping(self) -> None: ...

    def close(self) -> None: ...


class SQLiteStore:
    """SQLite 只读存储 - Read-only SQLite store"""

    placeholder = "?"

    def __init__(self, db_path: Path, timeout_seconds: float = 5.0):
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds

    def _connect(self) -> sqlite3.Connection:
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        conn = sqlite3.connect(uri, uri=True, timeout=self.timeout_seconds)
        conn.row_factory = sqlite3.Row
        return conn

    def fetch_all(self, query: SelectQuery, operation: str) -> List[Row]:
        deadline = time.monotonic() + self.timeout_seconds
        try:
            with closing(self._connect()) as conn:
                # 超过截止时间时中断语句 - abort the statement once the deadline passes
                conn.set_progress_handler(lambda: 1 if time.monotonic() > deadline else 0, 1000)
                rows = conn.execute(query.text, query.params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(operation, str(exc)) from exc
        return [dict(r) for r in rows]

    def ping(self) -> None:
        try:
            with closing(self._connect()) as conn:
                conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as exc:
            raise StoreError("ping", str(exc)) from exc

    def close(self) -> None:
        return None


class PostgresStore:
    """PostgreSQL 连接池存储 - Pooled PostgreSQL store"""

    placeholder = "%s"

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        dbname: str,
        sslmode: str = "disable",
        timeout_seconds: float = 5.0,
        max_connections: int = 25,
    ):
        self.timeout_seconds = timeout_seconds
        try:
            self._pool = ThreadedConnectionPool(
                1,
                max_connections,
                host=host,
                port=port,
                user=user,
                password=password,
                dbname=dbname,
                sslmode=sslmode,
                connect_timeout=max(2, int(timeout_seconds)),
                options=f"-c statement_timeout={int(timeout_seconds * 1000)}",
            )
        except psycopg2.Error as exc:
            raise StoreError("connect", str(exc)) from exc
        logger.info("connected to PostgreSQL at %s:%s/%s", host, port, dbname)

    def fetch_all(self, query: SelectQuery, operation: str) -> List[Row]:
        try:
            conn = self._pool.getconn()
        except psycopg2.Error as exc:
            raise StoreError(operation, str(exc)) from exc
        broken = False
        try:
            conn.autocommit = True
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query.text, query.params)
                rows = cur.fetchall()
        except psycopg2.Error as exc:
            broken = conn.closed != 0
            raise StoreError(operation, str(exc)) from exc
        finally:
            self._pool.putconn(conn, close=broken)
        return [dict(r) for r in rows]

    def ping(self) -> None:
        self.fetch_all(SelectQuery("SELECT 1"), "ping")

    def close(self) -> None:
        self._pool.closeall()
