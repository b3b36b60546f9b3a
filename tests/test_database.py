"""
Unit tests for the SQL backends.
"""

import json

import httpx
import pytest

from services.config import Config
from services.database import (
    SQL_TOOL_NAME,
    RemoteDatabase,
    SQLiteDatabase,
    create_database,
    normalize_envelope,
    parse_response_body,
    parse_sse,
    render_sql,
    to_sql_value,
)
from services.errors import ConfigurationError

PROXY_URL = "https://db.example.com/mcp/tool/DATABASES_RUN_SQL"


class TestSqlLiterals:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "NULL"),
            (True, "TRUE"),
            (False, "FALSE"),
            (42, "42"),
            (0.71, "0.71"),
            ("plain", "'plain'"),
            ("O'Reilly", "'O''Reilly'"),
            (["a", "b's"], """'["a", "b''s"]'"""),
            ({"k": 1}, """'{"k": 1}'"""),
        ],
    )
    def test_to_sql_value(self, value, expected):
        assert to_sql_value(value) == expected

    def test_render_replaces_placeholders_in_order(self):
        sql = render_sql("SELECT * FROM t WHERE a = ? AND b = ?", ("x", 3))
        assert sql == "SELECT * FROM t WHERE a = 'x' AND b = 3"

    def test_render_ignores_question_marks_in_literals(self):
        sql = render_sql("SELECT '?' AS q, ? AS v", ("value?",))
        assert sql == "SELECT '?' AS q, 'value?' AS v"

    def test_render_without_params_is_unchanged(self):
        assert render_sql("SELECT 1") == "SELECT 1"

    def test_render_rejects_count_mismatch(self):
        with pytest.raises(ValueError):
            render_sql("SELECT ?", (1, 2))
        with pytest.raises(ValueError):
            render_sql("SELECT ?, ?", (1,))


class TestResponseParsing:
    def test_parse_sse_joins_data_lines(self):
        body = 'event: message\ndata: {"jsonrpc": "2.0",\ndata: "id": 1}\n\n'
        assert parse_sse(body) == {"jsonrpc": "2.0", "id": 1}

    def test_parse_body_by_content_type(self):
        assert parse_response_body('data: {"a": 1}\n', "text/event-stream") == {"a": 1}
        assert parse_response_body('{"a": 2}', "application/json") == {"a": 2}

    def test_error_envelope(self):
        result = normalize_envelope({"error": {"code": -32602, "message": "bad sql"}})
        assert not result.success
        assert result.error == "bad sql"
        assert result.error_code == -32602

    def test_structured_content(self):
        envelope = {"result": {"structuredContent": {"result": [{"results": [{"id": 1}, {"id": 2}]}]}}}
        result = normalize_envelope(envelope)
        assert result.success
        assert result.rows == [{"id": 1}, {"id": 2}]

    def test_text_content_list(self):
        envelope = {"result": {"content": [{"type": "text", "text": json.dumps([{"count": 3}])}]}}
        assert normalize_envelope(envelope).rows == [{"count": 3}]

    def test_text_content_single_row(self):
        envelope = {"result": {"content": [{"type": "text", "text": json.dumps({"id": "a"})}]}}
        assert normalize_envelope(envelope).rows == [{"id": "a"}]

    def test_text_content_error_object(self):
        text = json.dumps({"name": "Error", "message": "no such table: foo"})
        result = normalize_envelope({"result": {"content": [{"type": "text", "text": text}]}})
        assert not result.success
        assert result.error == "no such table: foo"

    def test_is_error_flag(self):
        envelope = {"result": {"isError": True, "content": [{"type": "text", "text": '"permission denied"'}]}}
        result = normalize_envelope(envelope)
        assert not result.success
        assert result.error == "permission denied"

    def test_unparsable_text_is_wrapped(self):
        envelope = {"result": {"content": [{"type": "text", "text": "OK"}]}}
        assert normalize_envelope(envelope).rows == [{"result": "OK"}]

    def test_empty_result(self):
        result = normalize_envelope({"result": {}})
        assert result.success
        assert result.rows == []


class TestRemoteDatabase:
    async def test_sends_rendered_sql_as_tool_call(self):
        requests = []

        def handler(request):
            requests.append(request)
            body = {"jsonrpc": "2.0", "id": 1, "result": {"structuredContent": {"result": [{"results": [{"n": 1}]}]}}}
            return httpx.Response(200, json=body)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            db = RemoteDatabase(client, PROXY_URL, "secret")
            first = await db.query("SELECT * FROM t WHERE name = ?", ("it's",))
            await db.query("SELECT 1")

        assert first.rows == [{"n": 1}]
        payload = json.loads(requests[0].content)
        assert payload["method"] == "tools/call"
        assert payload["params"]["name"] == SQL_TOOL_NAME
        assert payload["params"]["arguments"]["sql"] == "SELECT * FROM t WHERE name = 'it''s'"
        assert requests[0].headers["authorization"] == "Bearer secret"
        assert "text/event-stream" in requests[0].headers["accept"]
        assert [json.loads(r.content)["id"] for r in requests] == [1, 2]

    async def test_reads_event_stream_replies(self):
        envelope = {"jsonrpc": "2.0", "id": 1, "result": {"content": [{"type": "text", "text": "[{\"id\": 7}]"}]}}

        def handler(request):
            return httpx.Response(
                200,
                text=f"event: message\ndata: {json.dumps(envelope)}\n\n",
                headers={"content-type": "text/event-stream"},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await RemoteDatabase(client, PROXY_URL, "secret").query("SELECT 7")

        assert result.rows == [{"id": 7}]

    async def test_http_error_status_is_a_failure(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500))) as client:
            result = await RemoteDatabase(client, PROXY_URL, "secret").query("SELECT 1")

        assert not result.success
        assert result.error_code == 500

    async def test_transport_error_is_a_failure(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await RemoteDatabase(client, PROXY_URL, "secret").query("SELECT 1")

        assert not result.success
        assert "unreachable" in result.error

    async def test_unreadable_body_is_a_failure(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>"))) as client:
            result = await RemoteDatabase(client, PROXY_URL, "secret").query("SELECT 1")

        assert not result.success


class TestSQLiteDatabase:
    async def test_query_returns_dict_rows(self, db):
        result = await db.query("SELECT ? AS a, ? AS b", (1, "two"))
        assert result.rows == [{"a": 1, "b": "two"}]

    async def test_bad_sql_is_a_failure(self, db):
        result = await db.query("SELECT * FROM missing_table")
        assert not result.success
        assert "missing_table" in result.error

    async def test_init_tables_is_idempotent(self, db):
        await db.init_tables()
        result = await db.query("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name")
        names = {row["name"] for row in result.rows}
        assert {
            "blog_sources",
            "articles",
            "linkedin_sources",
            "linkedin_content_scrape",
            "reddit_sources",
            "reddit_content_scrape",
        } <= names


class TestCreateDatabase:
    def test_sqlite_backend(self, tmp_path):
        config = Config(DATABASE_BACKEND="sqlite", DATABASE_PATH=str(tmp_path / "x.db"))
        assert isinstance(create_database(config), SQLiteDatabase)

    async def test_remote_backend(self):
        config = Config(DATABASE_BACKEND="remote", ADMIN_DB_TOKEN="token")
        async with httpx.AsyncClient() as client:
            assert isinstance(create_database(config, client), RemoteDatabase)

    async def test_remote_backend_requires_token(self):
        config = Config(DATABASE_BACKEND="remote")
        async with httpx.AsyncClient() as client:
            with pytest.raises(ConfigurationError):
                create_database(config, client)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_database(Config(DATABASE_BACKEND="oracle"))
