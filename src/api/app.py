"""
Quart application for the Content Radar control endpoint.

POST /mcp speaks JSON-RPC 2.0 (initialize, tools/list, tools/call, ping).
GET /mcp/health and GET /mcp/tools are plain JSON helpers.
/api/blogs, /api/linkedin-sources, /api/reddit-sources, /api/articles and
/api/scrape manage sources and scrape a single blog.
"""
import json
import logging
from functools import wraps
from typing import Any, Dict, Optional

from quart import Quart, jsonify, request
from quart_cors import cors

from api.admin import (
    BLOG_FIELDS,
    LINKEDIN_FIELDS,
    REDDIT_FIELDS,
    InvalidRequest,
    article_json,
    require,
    source_json,
    validate_changes,
)
from api.tools import TOOLS, UnknownToolError, call_tool
from core.entities import SourceType
from services.context import AppContext
from services.errors import StoreError
from workflows.pipeline_factory import create_pipeline

logger = logging.getLogger(__name__)

SERVER_NAME = "content-scraper"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000


def _result(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


async def handle_rpc(context: AppContext, message: Dict[str, Any]) -> Dict[str, Any]:
    request_id = message.get("id")
    method = message.get("method")
    params = message.get("params") or {}

    try:
        if method == "initialize":
            return _result(request_id, {
                "protocolVersion": PROTOCOL_VERSION,
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
                "capabilities": {"tools": {}},
            })

        if method == "tools/list":
            return _result(request_id, {"tools": [tool.describe() for tool in TOOLS]})

        if method == "tools/call":
            name = params.get("name")
            logger.info("Tool call", extra={"tool": name})
            try:
                result = await call_tool(context, name, params.get("arguments"))
            except UnknownToolError as e:
                return _error(request_id, METHOD_NOT_FOUND, str(e))
            return _result(request_id, {
                "content": [{"type": "text", "text": json.dumps(result, indent=2, default=str)}],
            })

        if method == "ping":
            return _result(request_id, {})

        return _error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    except Exception as e:
        logger.exception(f"JSON-RPC method failed: {method}")
        return _error(request_id, SERVER_ERROR, str(e))


def create_app(context: Optional[AppContext] = None) -> Quart:
    """
    Build the application. Without an explicit context, one is created from
    the configuration when serving starts and closed when it stops.
    """
    app = Quart(__name__)
    app = cors(app, allow_origin="*")

    state: Dict[str, Optional[AppContext]] = {"context": context}
    owns_context = context is None

    def get_context() -> AppContext:
        current = state["context"]
        if current is None:
            raise RuntimeError("Application context is not initialized")
        return current

    def api_key_required(f):
        """Require a bearer key from the allowlist when one is configured."""
        @wraps(f)
        async def decorated_function(*args, **kwargs):
            allowed = get_context().config.api_keys
            if allowed:
                header = request.headers.get("Authorization", "")
                scheme, _, token = header.partition(" ")
                if scheme.lower() != "bearer" or token.strip() not in allowed:
                    logger.warning("Rejected request with missing or invalid API key")
                    return jsonify({"error": "Unauthorized"}), 401
            return await f(*args, **kwargs)
        return decorated_function

    # ==================== Startup ====================

    @app.before_serving
    async def startup():
        if state["context"] is None:
            state["context"] = AppContext.create()
        config = state["context"].config
        logger.info(
            "Control endpoint started",
            extra={"auth_enabled": bool(config.api_keys), "tools": len(TOOLS)},
        )

    @app.after_serving
    async def shutdown():
        if owns_context and state["context"] is not None:
            await state["context"].aclose()
            state["context"] = None

    # ==================== Routes ====================

    @app.route("/")
    async def index():
        return jsonify({
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "mcp_endpoint": "/mcp",
            "health_endpoint": "/mcp/health",
            "tools_endpoint": "/mcp/tools",
            "admin_endpoint": "/api/blogs",
        })

    @app.route("/mcp/health")
    async def health():
        return jsonify({
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "tools": len(TOOLS),
        })

    @app.route("/mcp/tools")
    async def list_tools():
        return jsonify({
            "total": len(TOOLS),
            "tools": [{"name": tool.name, "description": tool.description} for tool in TOOLS],
        })

    @app.route("/mcp", methods=["POST"])
    @api_key_required
    async def mcp():
        message = await request.get_json(force=True, silent=True)
        if not isinstance(message, dict):
            return jsonify(_error(None, PARSE_ERROR, "Parse error")), 400

        response = await handle_rpc(get_context(), message)
        return jsonify(response)

    # ==================== Source administration ====================

    async def json_body() -> Dict[str, Any]:
        body = await request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            raise InvalidRequest("Request body must be a JSON object")
        return body

    @app.errorhandler(InvalidRequest)
    async def invalid_request(error):
        return jsonify({"error": str(error)}), 400

    @app.route("/api/blogs", methods=["GET"])
    @api_key_required
    async def list_blogs():
        store = get_context().store
        blogs = await store.list_blogs()
        return jsonify([source_json(blog, await store.count_articles_by_blog(blog.id)) for blog in blogs])

    @app.route("/api/blogs", methods=["POST"])
    @api_key_required
    async def create_blog():
        fields = validate_changes(await json_body(), BLOG_FIELDS)
        require(fields, "name", "url")
        try:
            blog = await get_context().store.create_blog(
                name=fields["name"],
                url=fields["url"],
                authority=fields.get("authority", 0.5),
                type=fields.get("type", SourceType.COMMUNITY),
                feed_url=fields.get("feed_url"),
            )
        except StoreError as e:
            logger.error(f"Blog creation failed: {e}")
            return jsonify({"error": "Failed to create blog"}), 500
        logger.info("Blog created", extra={"blog_id": blog.id})
        return jsonify(source_json(blog)), 201

    @app.route("/api/blogs/<blog_id>", methods=["GET"])
    @api_key_required
    async def get_blog(blog_id: str):
        store = get_context().store
        blog = await store.get_blog(blog_id)
        if blog is None:
            return jsonify({"error": "Blog not found"}), 404
        return jsonify(source_json(blog, await store.count_articles_by_blog(blog_id)))

    @app.route("/api/blogs/<blog_id>", methods=["PUT"])
    @api_key_required
    async def update_blog(blog_id: str):
        changes = validate_changes(await json_body(), BLOG_FIELDS)
        blog = await get_context().store.update_blog(blog_id, **changes)
        if blog is None:
            return jsonify({"error": "Blog not found"}), 404
        return jsonify(source_json(blog))

    @app.route("/api/blogs/<blog_id>", methods=["DELETE"])
    @api_key_required
    async def delete_blog(blog_id: str):
        store = get_context().store
        if await store.get_blog(blog_id) is None:
            return jsonify({"error": "Blog not found"}), 404
        if not await store.delete_blog(blog_id):
            return jsonify({"error": "Failed to delete blog"}), 500
        logger.info("Blog deleted", extra={"blog_id": blog_id})
        return jsonify({"success": True})

    @app.route("/api/blogs/<blog_id>/articles", methods=["GET"])
    @api_key_required
    async def list_blog_articles(blog_id: str):
        store = get_context().store
        if await store.get_blog(blog_id) is None:
            return jsonify({"error": "Blog not found"}), 404
        return jsonify([article_json(article) for article in await store.list_articles_by_blog(blog_id)])

    @app.route("/api/articles/<article_id>", methods=["GET"])
    @api_key_required
    async def get_article(article_id: str):
        article = await get_context().store.get_article(article_id)
        if article is None:
            return jsonify({"error": "Article not found"}), 404
        return jsonify(article_json(article))

    @app.route("/api/scrape", methods=["POST"])
    @api_key_required
    async def scrape_blog():
        body = await json_body()
        pipeline = create_pipeline("blogs", get_context())

        if isinstance(body.get("blog_id"), str):
            result = await pipeline.scrape_blog(body["blog_id"])
            if result is None:
                return jsonify({"error": f"Blog with ID {body['blog_id']} not found"}), 404
        elif "url" in body:
            fields = validate_changes(body, BLOG_FIELDS)
            result = await pipeline.scrape_url(
                fields["url"],
                name=fields.get("name"),
                authority=fields.get("authority", 0.5),
                type=SourceType.parse(fields.get("type")),
            )
        else:
            raise InvalidRequest("Provide blog_id or url")

        return jsonify({"success": result.error is None, **result.to_dict()})

    def source_routes(path: str, kind: str, allowed: tuple) -> None:
        """PUT and DELETE for LinkedIn profiles and subreddits."""
        label = "LinkedIn source" if kind == "linkedin" else "Reddit source"

        async def update_source(source_id: str):
            changes = validate_changes(await json_body(), allowed)
            update = getattr(get_context().store, f"update_{kind}_source")
            source = await update(source_id, **changes)
            if source is None:
                return jsonify({"error": f"{label} not found"}), 404
            return jsonify(source_json(source))

        async def delete_source(source_id: str):
            store = get_context().store
            if await getattr(store, f"get_{kind}_source")(source_id) is None:
                return jsonify({"error": f"{label} not found"}), 404
            if not await getattr(store, f"delete_{kind}_source")(source_id):
                return jsonify({"error": f"Failed to delete {label}"}), 500
            logger.info(f"{label} deleted", extra={"source_id": source_id})
            return jsonify({"success": True})

        app.add_url_rule(
            f"{path}/<source_id>", f"update_{kind}_source", api_key_required(update_source), methods=["PUT"],
        )
        app.add_url_rule(
            f"{path}/<source_id>", f"delete_{kind}_source", api_key_required(delete_source), methods=["DELETE"],
        )

    source_routes("/api/linkedin-sources", "linkedin", LINKEDIN_FIELDS)
    source_routes("/api/reddit-sources", "reddit", REDDIT_FIELDS)

    return app
