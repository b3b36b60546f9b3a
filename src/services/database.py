"""
SQL execution backends.

Both backends expose `query(sql, params) -> QueryResult` with `?` placeholders:
- RemoteDatabase sends the statement to a SQL-over-JSON-RPC proxy
  (tool DATABASES_RUN_SQL). The proxy takes plain SQL text, so parameters are
  rendered into literals client-side.
- SQLiteDatabase runs against a local file through aiosqlite with native
  parameter binding. Used for local runs and tests.
"""
import json
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence

import aiosqlite
import httpx

from services.config import Config
from services.errors import ConfigurationError

logger = logging.getLogger(__name__)

SQL_TOOL_NAME = "DATABASES_RUN_SQL"


@dataclass
class QueryResult:
    success: bool
    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[int] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @classmethod
    def ok(cls, rows: Optional[List[Dict[str, Any]]] = None) -> "QueryResult":
        return cls(success=True, rows=rows or [])

    @classmethod
    def failure(cls, message: str, code: int = -1) -> "QueryResult":
        return cls(success=False, error=message, error_code=code)


class Database(Protocol):
    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        ...


# ---------------------------------------------------------------------------
# Literal rendering for the remote proxy
# ---------------------------------------------------------------------------

def escape_string(value: str) -> str:
    return value.replace("'", "''")


def to_sql_value(value: Any) -> str:
    if value is None:
        return "NULL"
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value) if isinstance(value, float) else str(value)
    if isinstance(value, str):
        return f"'{escape_string(value)}'"
    if isinstance(value, (list, tuple, dict)):
        return f"'{escape_string(json.dumps(value))}'"
    return f"'{escape_string(str(value))}'"


def render_sql(sql: str, params: Sequence[Any] = ()) -> str:
    """
    Replace each `?` outside a quoted literal with the next parameter.
    """
    if not params:
        return sql

    values = iter(params)
    consumed = 0
    out: List[str] = []
    in_literal = False

    for char in sql:
        if char == "'":
            in_literal = not in_literal
            out.append(char)
        elif char == "?" and not in_literal:
            try:
                out.append(to_sql_value(next(values)))
            except StopIteration:
                raise ValueError("Not enough parameters for SQL statement") from None
            consumed += 1
        else:
            out.append(char)

    if consumed != len(params):
        raise ValueError(f"SQL statement has {consumed} placeholders, got {len(params)} parameters")

    return "".join(out)


# ---------------------------------------------------------------------------
# Remote proxy
# ---------------------------------------------------------------------------

def parse_sse(text: str) -> Any:
    """
    Concatenate the `data:` lines of an event-stream body and decode them.
    Falls back to decoding the whole body when there are none.
    """
    data = ""
    for line in text.split("\n"):
        if line.startswith("data: "):
            data += line[6:]
        elif line.startswith("data:"):
            data += line[5:]

    return json.loads(data or text)


def parse_response_body(text: str, content_type: str = "") -> Any:
    if "text/event-stream" in content_type or text.startswith("event:") or text.startswith("data:"):
        return parse_sse(text)
    return json.loads(text)


def normalize_envelope(envelope: Dict[str, Any]) -> QueryResult:
    """
    Turn a JSON-RPC reply from the SQL tool into a QueryResult.

    Two result shapes exist: `result.structuredContent.result[0].results`,
    and an older one where `result.content[0].text` holds JSON text.
    """
    error = envelope.get("error")
    if error:
        return QueryResult.failure(error.get("message", "Unknown error"), error.get("code", -1))

    result = envelope.get("result") or {}

    structured = result.get("structuredContent") or {}
    batches = structured.get("result") or []
    if batches and isinstance(batches[0], dict):
        rows = batches[0].get("results")
        if rows is not None:
            return QueryResult.ok(list(rows))

    content = result.get("content") or []
    text = content[0].get("text") if content and isinstance(content[0], dict) else None
    if text:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return QueryResult.ok([{"result": text}])

        if isinstance(data, dict) and data.get("name") == "Error" and "message" in data:
            return QueryResult.failure(str(data["message"]))

        if result.get("isError"):
            return QueryResult.failure(data if isinstance(data, str) else json.dumps(data))

        if isinstance(data, list):
            return QueryResult.ok(data)
        return QueryResult.ok([data])

    return QueryResult.ok()


class RemoteDatabase:
    def __init__(self, client: httpx.AsyncClient, url: str, token: str):
        self.client = client
        self.url = url
        self.token = token
        self._message_id = 0

    def _next_id(self) -> int:
        self._message_id += 1
        return self._message_id

    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        request_body = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": "tools/call",
            "params": {
                "name": SQL_TOOL_NAME,
                "arguments": {"sql": render_sql(sql, params)},
            },
        }

        try:
            resp = await self.client.post(
                self.url,
                json=request_body,
                headers={
                    "Accept": "application/json,text/event-stream",
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.token}",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Database request failed: {e}")
            return QueryResult.failure(str(e))

        if not resp.is_success:
            return QueryResult.failure(f"HTTP {resp.status_code}: {resp.reason_phrase}", resp.status_code)

        try:
            envelope = parse_response_body(resp.text, resp.headers.get("content-type", ""))
        except json.JSONDecodeError as e:
            return QueryResult.failure(f"Unreadable database response: {e}")

        if not isinstance(envelope, dict):
            return QueryResult.failure("Unexpected database response shape")

        return normalize_envelope(envelope)


# ---------------------------------------------------------------------------
# Local SQLite
# ---------------------------------------------------------------------------

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS blog_sources (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        url TEXT NOT NULL UNIQUE,
        feed_url TEXT,
        authority REAL NOT NULL DEFAULT 0.5,
        type TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS articles (
        id TEXT PRIMARY KEY,
        blog_id TEXT NOT NULL REFERENCES blog_sources(id),
        title TEXT NOT NULL,
        url TEXT NOT NULL UNIQUE,
        published_at TEXT,
        publication_week TEXT,
        summary TEXT,
        key_points TEXT,
        post_score REAL,
        scraped_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS linkedin_sources (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        profile_url TEXT NOT NULL UNIQUE,
        authority REAL NOT NULL DEFAULT 0.5,
        type TEXT NOT NULL,
        active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS linkedin_content_scrape (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        post_id TEXT NOT NULL UNIQUE,
        url TEXT,
        author_name TEXT,
        author_headline TEXT,
        author_profile_url TEXT,
        author_profile_image TEXT,
        content TEXT,
        num_likes INTEGER DEFAULT 0,
        num_comments INTEGER DEFAULT 0,
        num_reposts INTEGER DEFAULT 0,
        post_type TEXT DEFAULT 'text',
        media_url TEXT,
        published_at TEXT,
        post_score INTEGER DEFAULT 0,
        type TEXT DEFAULT 'community',
        week_date TEXT,
        summary TEXT,
        key_points TEXT,
        scraped_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reddit_sources (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        subreddit TEXT NOT NULL UNIQUE,
        authority REAL NOT NULL DEFAULT 0.5,
        type TEXT NOT NULL,
        active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reddit_content_scrape (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        author TEXT,
        subreddit TEXT,
        selftext TEXT,
        url TEXT,
        permalink TEXT NOT NULL UNIQUE,
        score INTEGER DEFAULT 0,
        num_comments INTEGER DEFAULT 0,
        created_at INTEGER,
        type TEXT,
        authority REAL,
        post_score REAL,
        week_date TEXT,
        content_hash TEXT,
        summary TEXT,
        key_points TEXT,
        scraped_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_articles_week ON articles(publication_week)",
    "CREATE INDEX IF NOT EXISTS idx_reddit_content_hash ON reddit_content_scrape(content_hash)",
)


class SQLiteDatabase:
    def __init__(self, path: str):
        self.path = path

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = await aiosqlite.connect(self.path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL;")
        await conn.execute("PRAGMA foreign_keys=ON;")
        try:
            yield conn
        finally:
            await conn.close()

    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        try:
            async with self.connect() as conn:
                cursor = await conn.execute(sql, tuple(params))
                rows = await cursor.fetchall()
                await conn.commit()
        except aiosqlite.Error as e:
            logger.error(f"SQLite query failed: {e}")
            return QueryResult.failure(str(e))

        return QueryResult.ok([dict(row) for row in rows])

    async def init_tables(self) -> None:
        """Create the content tables if they do not exist."""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        async with self.connect() as conn:
            for statement in SCHEMA:
                await conn.execute(statement)
            await conn.commit()
            logger.info("Database tables initialized")


def create_database(config: Config, client: Optional[httpx.AsyncClient] = None) -> Database:
    backend = config.DATABASE_BACKEND.lower()

    if backend == "sqlite":
        return SQLiteDatabase(config.DATABASE_PATH)

    if backend == "remote":
        if client is None:
            raise ConfigurationError("The remote database backend needs an HTTP client")
        return RemoteDatabase(client, config.DATABASE_URL, config.require_db_token())

    raise ConfigurationError(f"Unknown DATABASE_BACKEND: {config.DATABASE_BACKEND}")
