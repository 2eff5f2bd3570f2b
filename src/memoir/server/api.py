"""JSON API routes: projects, memories, chapters, uploads, AI actions, exports."""

from __future__ import annotations

import functools
import json
import logging
from typing import Awaitable, Callable

from aiohttp import web

from memoir import interview
from memoir.ai.gateway import AIGateway
from memoir.ai.prompts import get_template
from memoir.config import MemoirConfig
from memoir.errors import NotFoundError, ValidationError
from memoir.export import download_filename, export_html, export_json, export_text
from memoir.store.projects import CHAPTERS, MEMORIES, Collection, ProjectStore, validate_project_id
from memoir.uploads import save_image, upload_error

logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", MemoirConfig)
STORE_KEY = web.AppKey("store", ProjectStore)
GATEWAY_KEY = web.AppKey("gateway", AIGateway)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

_dumps = functools.partial(json.dumps, ensure_ascii=False)


def _json(data, **kwargs) -> web.Response:
    return web.json_response(data, dumps=_dumps, **kwargs)


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def _project_id(request: web.Request) -> str:
    return validate_project_id(request.match_info["project_id"])


async def _json_body(request: web.Request) -> dict:
    """Parsed JSON object body; an empty body counts as ``{}``."""
    raw = await request.text()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON body") from None
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


# ── Projects ──────────────────────────────────────────────────


async def list_projects(request: web.Request) -> web.Response:
    return _json(request.app[STORE_KEY].list_projects())


async def create_project(request: web.Request) -> web.Response:
    body = await _json_body(request)
    return _json(request.app[STORE_KEY].create_project(body))


async def get_project(request: web.Request) -> web.Response:
    return _json(request.app[STORE_KEY].get_project(_project_id(request)))


async def update_project(request: web.Request) -> web.Response:
    project_id = _project_id(request)
    body = await _json_body(request)
    return _json(request.app[STORE_KEY].update_project(project_id, body))


async def delete_project(request: web.Request) -> web.Response:
    request.app[STORE_KEY].delete_project(_project_id(request))
    return _json({"ok": True})


# ── Memories & chapters ───────────────────────────────────────


def _collection_handlers(collection: Collection) -> dict[str, Handler]:
    item_key = f"{collection.label.lower()}_id"

    async def list_items(request: web.Request) -> web.Response:
        return _json(request.app[STORE_KEY].list_items(_project_id(request), collection))

    async def create_item(request: web.Request) -> web.Response:
        project_id = _project_id(request)
        body = await _json_body(request)
        return _json(request.app[STORE_KEY].create_item(project_id, collection, body))

    async def update_item(request: web.Request) -> web.Response:
        project_id = _project_id(request)
        body = await _json_body(request)
        item = request.app[STORE_KEY].update_item(
            project_id, collection, request.match_info[item_key], body
        )
        return _json(item)

    async def delete_item(request: web.Request) -> web.Response:
        request.app[STORE_KEY].delete_item(
            _project_id(request), collection, request.match_info[item_key]
        )
        return _json({"ok": True})

    return {"list": list_items, "create": create_item, "update": update_item, "delete": delete_item}


async def reorder_chapters(request: web.Request) -> web.Response:
    project_id = _project_id(request)
    body = await _json_body(request)
    return _json(request.app[STORE_KEY].reorder_chapters(project_id, body.get("order")))


# ── Uploads ───────────────────────────────────────────────────


async def upload_image(request: web.Request) -> web.Response:
    project_id = _project_id(request)
    request.app[STORE_KEY].get_project(project_id)
    config = request.app[CONFIG_KEY]

    if not request.content_type.startswith("multipart/"):
        raise upload_error("not_multipart")
    try:
        reader = await request.multipart()
    except (KeyError, ValueError, AssertionError) as e:
        raise upload_error("not_multipart") from e

    part = await reader.next()
    while part is not None and getattr(part, "name", None) != "image":
        part = await reader.next()

    url = await save_image(part, project_id, config.uploads_dir, config.upload)
    return _json({"url": url})


# ── AI ────────────────────────────────────────────────────────


async def ai_action(request: web.Request) -> web.Response:
    """Upstream failures are reported as ``{error}`` with status 200."""
    project_id = _project_id(request)
    template = get_template(request.match_info["action"])
    request.app[STORE_KEY].get_project(project_id)
    body = await _json_body(request)

    result = await request.app[GATEWAY_KEY].complete(
        template.system_prompt, template.build_user_content(body)
    )
    if result.ok:
        logger.debug("AI %s for project %s answered by %s", template.action, project_id, result.model)
    else:
        logger.warning("AI %s failed for project %s: %s", template.action, project_id, result.error)
    return _json(result.as_payload())


# ── Export ────────────────────────────────────────────────────


async def export_project(request: web.Request) -> web.Response:
    project_id = _project_id(request)
    fmt = request.match_info["fmt"]
    if fmt not in ("json", "text", "html"):
        raise NotFoundError(f"Unknown export format: {fmt}")

    project, memories, chapters = request.app[STORE_KEY].load_bundle(project_id)
    title = project.get("title")

    if fmt == "json":
        return _json(
            export_json(project, memories, chapters),
            headers=_attachment("memoir-backup.json"),
        )
    if fmt == "text":
        return web.Response(
            text=export_text(project, chapters),
            content_type="text/plain",
            charset="utf-8",
            headers=_attachment(download_filename(title, "txt")),
        )
    return web.Response(
        text=export_html(project, chapters, request.app[CONFIG_KEY].uploads_dir),
        content_type="text/html",
        charset="utf-8",
        headers=_attachment(download_filename(title, "html")),
    )


# ── Interview ─────────────────────────────────────────────────


async def interview_stages(request: web.Request) -> web.Response:
    return _json(interview.catalogue())


async def interview_progress(request: web.Request) -> web.Response:
    memories = request.app[STORE_KEY].list_items(_project_id(request), MEMORIES)
    return _json(interview.progress(memories))


def register_routes(app: web.Application) -> None:
    """Register the API on ``app``. ``chapters/reorder`` precedes ``chapters/{id}``."""
    memories = _collection_handlers(MEMORIES)
    chapters = _collection_handlers(CHAPTERS)
    p = "/api/projects/{project_id}"

    app.router.add_get("/api/interview/stages", interview_stages)

    app.router.add_get("/api/projects", list_projects)
    app.router.add_post("/api/projects", create_project)
    app.router.add_get(p, get_project)
    app.router.add_put(p, update_project)
    app.router.add_delete(p, delete_project)

    app.router.add_get(f"{p}/memories", memories["list"])
    app.router.add_post(f"{p}/memories", memories["create"])
    app.router.add_put(p + "/memories/{memory_id}", memories["update"])
    app.router.add_delete(p + "/memories/{memory_id}", memories["delete"])

    app.router.add_get(f"{p}/chapters", chapters["list"])
    app.router.add_post(f"{p}/chapters", chapters["create"])
    app.router.add_put(f"{p}/chapters/reorder", reorder_chapters)
    app.router.add_put(p + "/chapters/{chapter_id}", chapters["update"])
    app.router.add_delete(p + "/chapters/{chapter_id}", chapters["delete"])

    app.router.add_get(f"{p}/interview/progress", interview_progress)
    app.router.add_post(f"{p}/upload", upload_image)
    app.router.add_post(p + "/ai/{action}", ai_action)
    app.router.add_get(p + "/export/{fmt}", export_project)
