"""One-time move of the legacy flat data layout into a project directory.

Before multi-project support, ``data/`` held a single project's
``project.json``, ``memories.json`` and ``chapters.json`` directly. On boot
those files are moved into ``data/<new id>/``. Running again is a no-op.

The chosen id is recorded in ``data/.migration-target`` before anything
moves, and the legacy ``project.json`` is moved last, so an interrupted run
resumes into the same directory instead of creating a second project.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from memoir.store.jsonio import new_id, read_json, write_json
from memoir.store.projects import PROJECT_FILE, PROJECT_ID_RE

logger = logging.getLogger(__name__)

LEGACY_COLLECTIONS = ("memories.json", "chapters.json")
MIGRATION_MARKER = ".migration-target"


def _target_id(data_dir: Path) -> str:
    """Id of an interrupted migration, or a fresh one (recorded in the marker)."""
    marker = data_dir / MIGRATION_MARKER
    recorded = read_json(marker, None) if marker.exists() else None
    if isinstance(recorded, str) and PROJECT_ID_RE.match(recorded):
        logger.info("Resuming interrupted migration into project %s", recorded)
        return recorded

    project_id = new_id()
    while (data_dir / project_id).exists():
        project_id = new_id()
    write_json(marker, project_id)
    return project_id


def migrate_legacy_layout(data_dir: Path) -> str | None:
    """Migrate ``data_dir/project.json`` and siblings. Returns the new project id.

    A legacy file that is unreadable or not a JSON object is left in place
    and logged; startup continues without migrating.
    """
    legacy_project = data_dir / PROJECT_FILE
    marker = data_dir / MIGRATION_MARKER
    if not legacy_project.exists():
        if marker.exists():
            marker.unlink()
        return None

    try:
        project = read_json(legacy_project, None)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Cannot migrate %s: %s", legacy_project, e)
        return None
    if not isinstance(project, dict):
        logger.error("Cannot migrate %s: expected a JSON object", legacy_project)
        return None

    project_id = _target_id(data_dir)
    target = data_dir / project_id
    target.mkdir(parents=True, exist_ok=True)

    for name in LEGACY_COLLECTIONS:
        src = data_dir / name
        if src.exists():
            os.replace(src, target / name)
        elif not (target / name).exists():
            write_json(target / name, [])

    # The project becomes visible and the legacy file disappears in one rename
    write_json(legacy_project, {**project, "id": project_id})
    os.replace(legacy_project, target / PROJECT_FILE)
    marker.unlink()

    logger.info("Migrated legacy data layout into project %s", project_id)
    return project_id
