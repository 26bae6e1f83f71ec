"""
Recorder configuration, read from the environment and an optional .env file.
"""

import os
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://example.com"
DEFAULT_LOCATOR_FILE = "data/locators.json"
TRUTHY = ("1", "true", "yes", "on")


@dataclass
class RecorderConfig:
    """Settings for one record-and-generate run"""
    url: str = DEFAULT_URL
    locator_file: Path = Path(DEFAULT_LOCATOR_FILE)
    output_dir: Path = Path(".")
    browser_channel: Optional[str] = None
    recording_timeout: Optional[float] = None  # seconds; None waits forever
    headless: bool = False
    run_generated_test: bool = False  # run pytest on the new script after writing it

    @property
    def pages_dir(self) -> Path:
        return self.output_dir / "pages"

    @property
    def tests_dir(self) -> Path:
        return self.output_dir / "tests"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "RecorderConfig":
        """
        Build a config from environment variables.

        URL_PATH, DATA_ID_VALUE_PATH, OUTPUT_DIR, BROWSER_CHANNEL,
        RECORDING_TIMEOUT (seconds, 0 or unset for none) and
        RUN_GENERATED_TEST (1/true/yes to run the new test).
        """
        load_dotenv(env_file)

        timeout = None
        raw_timeout = os.getenv("RECORDING_TIMEOUT", "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout) or None
            except ValueError:
                logger.warning(f"Ignoring invalid RECORDING_TIMEOUT '{raw_timeout}'")

        return cls(
            url=os.getenv("URL_PATH", DEFAULT_URL),
            locator_file=Path(os.getenv("DATA_ID_VALUE_PATH", DEFAULT_LOCATOR_FILE)),
            output_dir=Path(os.getenv("OUTPUT_DIR", ".")),
            browser_channel=os.getenv("BROWSER_CHANNEL") or None,
            recording_timeout=timeout,
            run_generated_test=os.getenv("RUN_GENERATED_TEST", "").strip().lower() in TRUTHY
        )
