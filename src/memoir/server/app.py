"""aiohttp application factory: middleware, API routes, static files, startup migration."""

from __future__ import annotations

import logging

from aiohttp import web

from memoir.ai.gateway import AIGateway
from memoir.config import MemoirConfig
from memoir.errors import MemoirError
from memoir.server.api import CONFIG_KEY, GATEWAY_KEY, STORE_KEY, register_routes
from memoir.store.migration import migrate_legacy_layout
from memoir.store.projects import ProjectStore

logger = logging.getLogger(__name__)

HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
    413: "Request body too large",
}


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Render every failure as ``{"error": message}`` with a matching status."""
    try:
        return await handler(request)
    except MemoirError as e:
        return web.json_response({"error": e.message}, status=e.status)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        headers = {"Allow": e.headers["Allow"]} if "Allow" in e.headers else None
        message = HTTP_ERROR_MESSAGES.get(e.status, e.reason)
        return web.json_response({"error": message}, status=e.status, headers=headers)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return web.json_response({"error": "Internal server error"}, status=500)


async def _migrate_on_startup(app: web.Application) -> None:
    migrate_legacy_layout(app[CONFIG_KEY].data_dir)


def _spa_handler(config: MemoirConfig):
    root = config.public_dir.resolve()

    async def serve_public(request: web.Request) -> web.StreamResponse:
        """Serve a file from the public dir, else the SPA's index.html."""
        candidate = (root / request.match_info["tail"]).resolve()
        if candidate.is_relative_to(root) and candidate.is_file():
            return web.FileResponse(candidate)
        index = root / "index.html"
        if not index.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(index)

    return serve_public


def create_app(
    config: MemoirConfig,
    *,
    store: ProjectStore | None = None,
    gateway: AIGateway | None = None,
) -> web.Application:
    app = web.Application(
        middlewares=[error_middleware],
        client_max_size=config.server.client_max_size,
    )
    app[CONFIG_KEY] = config
    app[STORE_KEY] = store or ProjectStore(config.data_dir)
    app[GATEWAY_KEY] = gateway or AIGateway(config.ai)

    register_routes(app)

    config.uploads_dir.mkdir(parents=True, exist_ok=True)
    app.router.add_static("/uploads/", config.uploads_dir)

    if config.public_dir.is_dir():
        app.router.add_get(r"/{tail:(?!api/).*}", _spa_handler(config))

    app.on_startup.append(_migrate_on_startup)
    return app
