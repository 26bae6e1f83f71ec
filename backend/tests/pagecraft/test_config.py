"""
Unit tests for RecorderConfig and the runtime step helper.
"""

import logging
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from pagecraft.config import RecorderConfig
from pagecraft.runtime import step

ENV_VARS = (
    "URL_PATH",
    "DATA_ID_VALUE_PATH",
    "OUTPUT_DIR",
    "BROWSER_CHANNEL",
    "RECORDING_TIMEOUT",
    "RUN_GENERATED_TEST",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so teardown also removes values load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # Keep load_dotenv away from any real .env file
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestRecorderConfig:
    """Test environment-driven configuration."""

    def test_defaults(self, clean_env, tmp_path):
        """Test defaults when nothing is set."""
        config = RecorderConfig.from_env(str(tmp_path / "missing.env"))

        assert config.url == "https://example.com"
        assert config.locator_file == Path("data/locators.json")
        assert config.output_dir == Path(".")
        assert config.browser_channel is None
        assert config.recording_timeout is None

    def test_reads_environment(self, clean_env, tmp_path):
        """Test that environment variables override defaults."""
        clean_env.setenv("URL_PATH", "https://x.test/")
        clean_env.setenv("OUTPUT_DIR", str(tmp_path / "out"))
        clean_env.setenv("BROWSER_CHANNEL", "msedge")
        clean_env.setenv("RECORDING_TIMEOUT", "90")

        config = RecorderConfig.from_env(str(tmp_path / "missing.env"))

        assert config.url == "https://x.test/"
        assert config.browser_channel == "msedge"
        assert config.recording_timeout == 90.0
        assert config.pages_dir == tmp_path / "out" / "pages"
        assert config.tests_dir == tmp_path / "out" / "tests"

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        """Test that a .env file is honoured."""
        env_file = tmp_path / ".env"
        env_file.write_text("URL_PATH=https://from-dotenv.test/\n", encoding="utf-8")

        config = RecorderConfig.from_env(str(env_file))

        assert config.url == "https://from-dotenv.test/"

    def test_zero_or_invalid_timeout_means_none(self, clean_env, tmp_path):
        """Test that 0 and garbage disable the timeout."""
        clean_env.setenv("RECORDING_TIMEOUT", "0")
        assert RecorderConfig.from_env(str(tmp_path / "missing.env")).recording_timeout is None

        clean_env.setenv("RECORDING_TIMEOUT", "soon")
        assert RecorderConfig.from_env(str(tmp_path / "missing.env")).recording_timeout is None

    def test_run_generated_test_flag(self, clean_env, tmp_path):
        """Test that RUN_GENERATED_TEST switches the post-generation run on."""
        assert RecorderConfig.from_env(str(tmp_path / "missing.env")).run_generated_test is False

        clean_env.setenv("RUN_GENERATED_TEST", "true")
        assert RecorderConfig.from_env(str(tmp_path / "missing.env")).run_generated_test is True


class TestStepHelper:
    """Test the step() context manager used by generated scripts."""

    def test_logs_pass(self, caplog):
        """Test that a passing step is logged."""
        with caplog.at_level(logging.INFO, logger="pagecraft.steps"):
            with step("Click save"):
                pass

        assert "[Step] Click save passed" in caplog.text

    def test_failure_propagates(self, caplog):
        """Test that failures are logged and re-raised."""
        with caplog.at_level(logging.INFO, logger="pagecraft.steps"):
            with pytest.raises(AssertionError):
                with step("Verify title"):
                    raise AssertionError("boom")

        assert "[Step] Verify title failed" in caplog.text
