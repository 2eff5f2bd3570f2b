"""Configuration loading from environment variables and memoir.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "memoir.toml"
_PLACEHOLDER_KEY = "your-api-key-here"

DEFAULT_ALLOWED_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]


@dataclass
class ServerConfig:
    """HTTP listener configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    client_max_size: int = 10 * 1024 * 1024


@dataclass
class AIConfig:
    """Anthropic gateway configuration."""

    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 2048
    timeout: int = 60

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and self.api_key != _PLACEHOLDER_KEY


@dataclass
class UploadConfig:
    """Image upload limits."""

    max_bytes: int = 5 * 1024 * 1024
    allowed_types: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_TYPES))


@dataclass
class MemoirConfig:
    """Top-level configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    data_dir: Path = Path("data")
    uploads_dir: Path = Path("uploads")
    public_dir: Path = Path("public")
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> MemoirConfig:
    """Load configuration from environment variables and optional memoir.toml.

    Priority: environment variables > memoir.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.memoir/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".memoir" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    server_data = file_data.get("server", {})
    ai_data = file_data.get("ai", {})
    upload_data = file_data.get("upload", {})

    port = os.getenv("MEMOIR_PORT") or os.getenv("PORT") or server_data.get("port", 3000)

    config = MemoirConfig(
        server=ServerConfig(
            host=os.getenv("MEMOIR_HOST", server_data.get("host", "0.0.0.0")),
            port=int(port),
            client_max_size=int(server_data.get("client_max_size", 10 * 1024 * 1024)),
        ),
        ai=AIConfig(
            api_key=os.getenv("ANTHROPIC_API_KEY", ai_data.get("api_key", "")),
            model=os.getenv("MEMOIR_MODEL", ai_data.get("model", "claude-sonnet-4-5-20250929")),
            max_tokens=int(os.getenv("MEMOIR_MAX_TOKENS", ai_data.get("max_tokens", 2048))),
            timeout=int(os.getenv("MEMOIR_AI_TIMEOUT", ai_data.get("timeout", 60))),
        ),
        upload=UploadConfig(
            max_bytes=int(upload_data.get("max_bytes", 5 * 1024 * 1024)),
            allowed_types=upload_data.get("allowed_types", list(DEFAULT_ALLOWED_TYPES)),
        ),
        data_dir=Path(os.getenv("MEMOIR_DATA_DIR", file_data.get("data_dir", "data"))),
        uploads_dir=Path(os.getenv("MEMOIR_UPLOADS_DIR", file_data.get("uploads_dir", "uploads"))),
        public_dir=Path(os.getenv("MEMOIR_PUBLIC_DIR", file_data.get("public_dir", "public"))),
        log_level=os.getenv("MEMOIR_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
