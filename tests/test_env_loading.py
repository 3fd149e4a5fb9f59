"""
Test .env file loading functionality.
"""

import os
from pathlib import Path

from dotenv import dotenv_values, load_dotenv

ROOT = Path(__file__).parent.parent


class TestEnvLoading:
    """Test .env file loading functionality."""

    def test_env_example_exists(self):
        """Test that .env.example file exists."""
        assert (ROOT / ".env.example").exists(), ".env.example file not found"

    def test_env_example_lists_config_keys(self):
        """Every variable the config reads is documented in .env.example."""
        values = dotenv_values(ROOT / ".env.example")

        for key in (
            "OPENAI_API_KEY",
            "OPENAI_BASE_URL",
            "OPENAI_MODEL",
            "POLYGON_API_KEY",
            "MAX_TICKERS",
            "START_DAYS_AGO",
            "END_DAYS_AGO",
            "REQUEST_TIMEOUT",
            "WARNING_DELAY_SECONDS",
            "GENERATE_HTML",
            "OPEN_IN_BROWSER",
        ):
            assert key in values, f"{key} missing from .env.example"

    def test_config_loads_dotenv(self):
        """Test that config.py loads .env file."""
        config_source = (ROOT / "config.py").read_text(encoding="utf-8")

        assert "from dotenv import load_dotenv" in config_source
        assert "load_dotenv(" in config_source

    def test_override_behavior(self, tmp_path, monkeypatch):
        """Test that .env doesn't override existing environment variables."""
        monkeypatch.setenv("TEST_ENV_OVERRIDE", "from_environment")
        env_file = tmp_path / ".env"
        env_file.write_text("TEST_ENV_OVERRIDE=from_dotenv_file\n", encoding="utf-8")

        load_dotenv(dotenv_path=env_file, override=False)

        assert os.getenv("TEST_ENV_OVERRIDE") == "from_environment"
