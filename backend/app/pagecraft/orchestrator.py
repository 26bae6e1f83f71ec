"""
Agent Orchestrator

Drives one session end to end:

1. Load the locator store
2. Record interactively (or take events from the caller)
3. Synthesize page objects and the test script
4. Write the script and fixture file next to the page objects
5. Optionally run the new test once to check it passes
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field

from .config import RecorderConfig
from .knowledge.locator_store import LocatorStore
from .generator.code_synthesizer import CodeSynthesizer, GeneratedResult
from .generator.reusable_steps import get_existing_scenarios
from .recorder.event_recorder import RecordedEvent
from .recorder.interactive_recorder import InteractiveRecorder

logger = logging.getLogger(__name__)


@dataclass
class GenerationOutput:
    """Files written by one generation"""
    script_path: Path
    fixture_path: Path
    page_object_paths: List[Path] = field(default_factory=list)
    result: Optional[GeneratedResult] = None
    test_exit_code: Optional[int] = None  # set when the new test was run


class AgentOrchestrator:
    """
    Owns the locator store for one session and hands it to the
    recorder-facing and generator-facing components.
    """

    def __init__(self, config: Optional[RecorderConfig] = None, store: Optional[LocatorStore] = None):
        self.config = config or RecorderConfig.from_env()
        self.store = store or LocatorStore()
        self._store_loaded = store is not None

    def _ensure_store(self):
        if not self._store_loaded:
            self.store.load(self.config.locator_file)
            self._store_loaded = True

    def list_scenarios(self):
        return [s.to_dict() for s in get_existing_scenarios(self.config.tests_dir)]

    async def run_interactive_mode(self, feature_name: str = "") -> Optional[GenerationOutput]:
        """
        Record in a live browser, then generate.

        Returns:
            None when the recording was cancelled or captured nothing
        """
        self._ensure_store()

        recorder = InteractiveRecorder(
            start_url=self.config.url,
            feature_name=feature_name,
            scenario_provider=self.list_scenarios,
            headless=self.config.headless,
            browser_channel=self.config.browser_channel,
            timeout=self.config.recording_timeout
        )
        result = await recorder.record()

        if result.cancelled:
            logger.warning(f"Recording cancelled with {len(result.events)} events; nothing generated")
            return None
        if not result.events:
            logger.warning("No events recorded; nothing generated")
            return None

        output = self.generate_from_events(result.feature_name, result.events)
        if self.config.run_generated_test:
            output.test_exit_code = await self.run_generated_test(output.script_path)
        return output

    def generate_from_events(self, feature_name: str, events: List[RecordedEvent]) -> GenerationOutput:
        """Synthesize and write all artifacts for an event log"""
        self._ensure_store()

        synthesizer = CodeSynthesizer(
            store=self.store,
            pages_dir=self.config.pages_dir,
            start_url=self.config.url,
            locator_file=self.config.locator_file
        )
        result = synthesizer.generate(feature_name, events)

        self.config.tests_dir.mkdir(parents=True, exist_ok=True)
        script_path = self.config.tests_dir / f"test_{result.test_name}.py"
        script_path.write_text(result.script_content, encoding="utf-8")

        fixture_path = self.config.output_dir / "conftest.py"
        fixture_path.write_text(result.fixture_content, encoding="utf-8")

        package_init = self.config.pages_dir / "__init__.py"
        if self.config.pages_dir.is_dir() and not package_init.exists():
            package_init.write_text("", encoding="utf-8")

        logger.info(f"Generated {script_path} with {len(result.page_objects)} page objects")
        return GenerationOutput(
            script_path=script_path,
            fixture_path=fixture_path,
            page_object_paths=[po.file_path for po in result.page_objects.values()],
            result=result
        )

    async def run_generated_test(self, script_path: Path) -> int:
        """
        Run one generated test with pytest from the output directory.

        Returns:
            pytest's exit code (0 when the test passed)
        """
        args = [sys.executable, "-m", "pytest", str(script_path.resolve())]
        if not self.config.headless:
            args.append("--headed")

        logger.info(f"Running generated test {script_path.name}...")
        process = await asyncio.create_subprocess_exec(*args, cwd=str(self.config.output_dir))
        exit_code = await process.wait()

        if exit_code == 0:
            logger.info(f"Generated test {script_path.name} passed")
        else:
            logger.error(f"Generated test {script_path.name} failed with exit code {exit_code}")
        return exit_code
