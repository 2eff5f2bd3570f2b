"""JSON file helpers, timestamp ids and ISO timestamps."""

from __future__ import annotations

import json
import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_id_lock = threading.Lock()
_last_id = 0


def read_json(path: Path, default: Any) -> Any:
    """Return the parsed file, or ``default`` when the file does not exist."""
    if not path.exists():
        return default
    return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, data: Any) -> None:
    """Replace ``path`` with ``data`` serialized as indented JSON.

    The payload goes to a sibling temp file first, so a failed write leaves
    the previous contents intact.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, path)


def new_id() -> str:
    """Millisecond timestamp as a decimal string, strictly increasing per process."""
    global _last_id
    with _id_lock:
        candidate = int(time.time() * 1000)
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
    return str(candidate)


def now_iso() -> str:
    """UTC timestamp like ``2024-06-10T08:15:30.123Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
