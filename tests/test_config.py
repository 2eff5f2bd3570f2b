"""Tests for configuration loading."""

import pytest
from pathlib import Path

from memoir.config import AIConfig, load_config

ENV_KEYS = [
    "ANTHROPIC_API_KEY",
    "PORT",
    "MEMOIR_PORT",
    "MEMOIR_HOST",
    "MEMOIR_MODEL",
    "MEMOIR_MAX_TOKENS",
    "MEMOIR_AI_TIMEOUT",
    "MEMOIR_DATA_DIR",
    "MEMOIR_UPLOADS_DIR",
    "MEMOIR_PUBLIC_DIR",
    "MEMOIR_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.server.port == 3000
        assert config.ai.model == "claude-sonnet-4-5-20250929"
        assert config.ai.max_tokens == 2048
        assert config.ai.timeout == 60
        assert config.upload.max_bytes == 5 * 1024 * 1024
        assert "image/webp" in config.upload.allowed_types
        assert config.data_dir == Path("data")
        assert config.ai.configured is False

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        monkeypatch.setenv("MEMOIR_DATA_DIR", "/srv/memoir")

        config = load_config()
        assert config.server.port == 8080
        assert config.ai.api_key == "sk-test"
        assert config.ai.configured is True
        assert config.data_dir == Path("/srv/memoir")

    def test_memoir_port_wins_over_port(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("MEMOIR_PORT", "9090")
        assert load_config().server.port == 9090

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "custom.toml"
        toml_path.write_text("""
data_dir = "/var/lib/memoir"

[server]
port = 4000

[ai]
model = "claude-haiku"
max_tokens = 512

[upload]
max_bytes = 1024
""")
        config = load_config(toml_path)
        assert config.server.port == 4000
        assert config.ai.model == "claude-haiku"
        assert config.ai.max_tokens == 512
        assert config.upload.max_bytes == 1024
        assert config.data_dir == Path("/var/lib/memoir")

    def test_toml_discovered_in_cwd(self, tmp_path: Path):
        (tmp_path / "memoir.toml").write_text("log_level = \"DEBUG\"\n")
        assert load_config().log_level == "DEBUG"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MEMOIR_MODEL", "from-env")
        toml_path = tmp_path / "memoir.toml"
        toml_path.write_text("""
[ai]
model = "from-toml"
""")
        config = load_config(toml_path)
        assert config.ai.model == "from-env"  # env wins


class TestAIConfig:
    def test_placeholder_key_is_not_configured(self):
        assert AIConfig(api_key="your-api-key-here").configured is False

    def test_empty_key_is_not_configured(self):
        assert AIConfig(api_key="").configured is False
