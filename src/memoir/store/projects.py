"""Project, memory and chapter persistence over per-project JSON files."""

from __future__ import annotations

import copy
import json
import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from memoir.errors import NotFoundError, ValidationError
from memoir.store.jsonio import new_id, now_iso, read_json, write_json

logger = logging.getLogger(__name__)

PROJECT_ID_RE = re.compile(r"^\d+$")

PROJECT_FILE = "project.json"

# Project fields a client update may not overwrite
SERVER_MANAGED_FIELDS = frozenset({"id", "createdAt", "updatedAt"})


@dataclass(frozen=True)
class Collection:
    """One JSON-array file inside a project directory."""

    name: str
    label: str
    fields: frozenset[str]
    defaults: dict = field(default_factory=dict)

    @property
    def filename(self) -> str:
        return f"{self.name}.json"

    def fresh_defaults(self) -> dict:
        return copy.deepcopy(self.defaults)

    def patch(self, data: dict, *, allow_created: bool = False) -> dict:
        """Keep only the named fields of ``data``."""
        allowed = self.fields | {"createdAt"} if allow_created else self.fields
        return {k: v for k, v in data.items() if k in allowed}


MEMORIES = Collection(
    name="memories",
    label="Memory",
    fields=frozenset({"stage", "stageId", "stageIndex", "questionIndex", "question", "answer"}),
)

CHAPTERS = Collection(
    name="chapters",
    label="Chapter",
    fields=frozenset({"title", "memoryIds", "content", "summary"}),
    defaults={"memoryIds": [], "content": ""},
)

COLLECTIONS = {c.name: c for c in (MEMORIES, CHAPTERS)}


def validate_project_id(project_id: str) -> str:
    if not PROJECT_ID_RE.match(project_id or ""):
        raise ValidationError("Invalid project ID")
    return project_id


class ProjectStore:
    """Read/write access to the project directories under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    # ── Paths ─────────────────────────────────────────────────

    def project_dir(self, project_id: str) -> Path:
        return self.root / validate_project_id(project_id)

    def _require_project(self, project_id: str) -> Path:
        d = self.project_dir(project_id)
        if not (d / PROJECT_FILE).exists():
            raise NotFoundError("Project not found")
        return d

    # ── Projects ──────────────────────────────────────────────

    def list_projects(self) -> list[dict]:
        """All projects, newest ``createdAt`` first; unset timestamps sort last."""
        projects: list[dict] = []
        for entry in self.root.iterdir():
            if not entry.is_dir() or not PROJECT_ID_RE.match(entry.name):
                continue
            try:
                project = read_json(entry / PROJECT_FILE, None)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping unreadable project %s: %s", entry.name, e)
                continue
            if isinstance(project, dict):
                projects.append({**project, "id": entry.name})
        projects.sort(key=lambda p: str(p.get("createdAt") or ""), reverse=True)
        return projects

    def get_project(self, project_id: str) -> dict:
        d = self._require_project(project_id)
        return {**read_json(d / PROJECT_FILE, {}), "id": project_id}

    def create_project(self, data: dict) -> dict:
        project_id = new_id()
        while (self.root / project_id).exists():
            project_id = new_id()
        project = {
            "id": project_id,
            "createdAt": now_iso(),
            "interviewStage": 0,
            "interviewQuestion": 0,
            **data,
        }
        project["id"] = project_id
        d = self.root / project_id
        d.mkdir(parents=True)
        write_json(d / PROJECT_FILE, project)
        for collection in COLLECTIONS.values():
            write_json(d / collection.filename, [])
        logger.info("Created project %s", project_id)
        return project

    def update_project(self, project_id: str, data: dict) -> dict:
        d = self._require_project(project_id)
        existing = read_json(d / PROJECT_FILE, {})
        patch = {k: v for k, v in data.items() if k not in SERVER_MANAGED_FIELDS}
        updated = {**existing, **patch, "id": project_id, "updatedAt": now_iso()}
        write_json(d / PROJECT_FILE, updated)
        logger.debug("Updated project %s (%s)", project_id, ", ".join(sorted(patch)))
        return updated

    def delete_project(self, project_id: str) -> None:
        """Remove the whole project directory. Unknown ids are a no-op."""
        d = self.project_dir(project_id)
        if not d.is_dir():
            return
        # Hide the directory from listings before removing its contents
        tombstone = self.root / f".deleted-{project_id}-{new_id()}"
        d.rename(tombstone)
        shutil.rmtree(tombstone)
        logger.info("Deleted project %s", project_id)

    # ── Collections ───────────────────────────────────────────

    def list_items(self, project_id: str, collection: Collection) -> list[dict]:
        d = self._require_project(project_id)
        return read_json(d / collection.filename, [])

    def create_item(self, project_id: str, collection: Collection, data: dict) -> dict:
        d = self._require_project(project_id)
        path = d / collection.filename
        items = read_json(path, [])
        item_id = new_id()
        record = {
            "id": item_id,
            "createdAt": now_iso(),
            **collection.fresh_defaults(),
            **collection.patch(data, allow_created=True),
        }
        items.append(record)
        write_json(path, items)
        logger.debug("Created %s %s in project %s", collection.label.lower(), item_id, project_id)
        return record

    def update_item(
        self, project_id: str, collection: Collection, item_id: str, data: dict
    ) -> dict:
        d = self._require_project(project_id)
        path = d / collection.filename
        items = read_json(path, [])
        for idx, item in enumerate(items):
            if item.get("id") == item_id:
                break
        else:
            raise NotFoundError(f"{collection.label} not found")
        items[idx] = {**item, **collection.patch(data), "id": item_id, "updatedAt": now_iso()}
        write_json(path, items)
        return items[idx]

    def delete_item(self, project_id: str, collection: Collection, item_id: str) -> None:
        """Drop ``item_id`` from the collection. Absent ids are not an error."""
        d = self._require_project(project_id)
        path = d / collection.filename
        items = read_json(path, [])
        remaining = [item for item in items if item.get("id") != item_id]
        if len(remaining) != len(items):
            write_json(path, remaining)
            logger.debug("Deleted %s %s in project %s", collection.label.lower(), item_id, project_id)

    def reorder_chapters(self, project_id: str, order: Any) -> list[dict]:
        """Put chapters named in ``order`` first, then every chapter not mentioned.

        Unknown and repeated ids in ``order`` are ignored, so no chapter is
        dropped or duplicated.
        """
        if not isinstance(order, list):
            raise ValidationError("order must be a list of chapter ids")
        d = self._require_project(project_id)
        path = d / CHAPTERS.filename
        chapters = read_json(path, [])
        by_id = {c.get("id"): c for c in chapters}

        placed: set[str] = set()
        result: list[dict] = []
        for chapter_id in (str(x) for x in order):
            if chapter_id in by_id and chapter_id not in placed:
                result.append(by_id[chapter_id])
                placed.add(chapter_id)
        result.extend(c for c in chapters if c.get("id") not in placed)

        write_json(path, result)
        return result

    # ── Export ────────────────────────────────────────────────

    def load_bundle(self, project_id: str) -> tuple[dict, list[dict], list[dict]]:
        """Project record plus both collections, as stored."""
        d = self._require_project(project_id)
        return (
            read_json(d / PROJECT_FILE, {}),
            read_json(d / MEMORIES.filename, []),
            read_json(d / CHAPTERS.filename, []),
        )
