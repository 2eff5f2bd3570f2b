"""Long-running server process.

Usage: python -m memoir serve

Manages:
- Startup of the aiohttp site (legacy data migration runs in on_startup)
- Graceful shutdown (SIGTERM/SIGINT)
"""

from __future__ import annotations

import asyncio
import logging
import signal

from aiohttp import web

from memoir.config import MemoirConfig, load_config
from memoir.server.app import create_app

logger = logging.getLogger(__name__)


class MemoirServer:
    """Serve the API until a termination signal arrives."""

    def __init__(self, config: MemoirConfig | None = None) -> None:
        self.config = config or load_config()
        self._shutdown_event = asyncio.Event()

    # ── Signal handling ──────────────────────────────────────

    def _setup_signals(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down...", sig.name)
        self._shutdown_event.set()

    # ── Main run loop ────────────────────────────────────────

    async def run(self) -> None:
        self._setup_signals()

        app = create_app(self.config)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.config.server.host, self.config.server.port)
        await site.start()

        logger.info(
            "Memoir writing assistant running at http://%s:%d (data=%s)",
            self.config.server.host,
            self.config.server.port,
            self.config.data_dir,
        )
        if not self.config.ai.configured:
            logger.warning("ANTHROPIC_API_KEY not set; AI actions will report 'not configured'")

        try:
            await self._shutdown_event.wait()
        finally:
            await runner.cleanup()
            logger.info("Memoir server stopped.")
