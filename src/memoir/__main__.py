"""Entry point: python -m memoir [serve|migrate]

- No args / "serve": Run the HTTP API (and the SPA in ./public when present)
- "migrate":         Move a legacy flat data/ layout into a project directory
"""

from __future__ import annotations

import asyncio
import logging
import sys

from memoir.config import load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_serve() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from memoir.server.runner import MemoirServer

    server = MemoirServer(config)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        pass


def _run_migrate() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from memoir.store.migration import migrate_legacy_layout

    project_id = migrate_legacy_layout(config.data_dir)
    if project_id:
        print(f"Migrated legacy data into project {project_id}")
    else:
        print("Nothing to migrate.")


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "serve"

    if cmd == "serve":
        _run_serve()
    elif cmd == "migrate":
        _run_migrate()
    else:
        print("Usage: python -m memoir [serve|migrate]")
        print("  serve    Run the memoir API server (default)")
        print("  migrate  Move legacy data/project.json into a project directory")
        sys.exit(1)


if __name__ == "__main__":
    main()
