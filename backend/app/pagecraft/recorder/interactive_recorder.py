"""
Interactive Recorder

Hosts an EventRecorder inside a live Playwright browser: exposes the
bridge functions to the page, injects the capture script and panel,
turns main-frame navigations into events and waits until the user hits
Generate, closes the page, or the optional timeout runs out.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set
from dataclasses import dataclass, field

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Frame
from playwright.async_api import Error as PlaywrightError

from ..core.page_scripts import RECORDER_INIT_SCRIPT, SYNC_UI_SCRIPT
from .event_recorder import EventRecorder, RecordedEvent, RecorderError

logger = logging.getLogger(__name__)

# Delay before navigating after a reset, so the controlAction call returns first
RESET_NAVIGATION_DELAY = 0.1


@dataclass
class RecordingResult:
    """What a finished (or abandoned) recording hands back"""
    feature_name: str
    events: List[RecordedEvent] = field(default_factory=list)
    cancelled: bool = False


class InteractiveRecorder:
    """Runs one recording session in a headed browser"""

    def __init__(
        self,
        start_url: str,
        feature_name: str = "",
        scenario_provider: Optional[Callable[[], List[Dict[str, Any]]]] = None,
        headless: bool = False,
        browser_channel: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.start_url = start_url
        self.scenario_provider = scenario_provider
        self.headless = headless
        self.browser_channel = browser_channel
        self.timeout = timeout

        self.recorder = EventRecorder(
            feature_name=feature_name,
            on_change=self._schedule_ui_sync,
            on_generate=self._on_generate,
            on_reset=self._on_reset
        )

        self._playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

        self._control_lock = asyncio.Lock()
        self._completion: Optional[asyncio.Future] = None
        self._tasks: Set[asyncio.Task] = set()

    # ==================== Browser Lifecycle ====================

    async def initialize(self):
        """Launch the browser and open the recording page"""
        logger.info("Launching browser for recording...")

        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(
            headless=self.headless,
            channel=self.browser_channel,
            args=["--start-maximized"] if not self.headless else []
        )
        self.context = await self.browser.new_context(no_viewport=not self.headless)
        page = await self.context.new_page()

        await self.attach(page)

    async def attach(self, page: Page):
        """Wire the bridge and listeners into a page"""
        self.page = page
        self._completion = asyncio.get_running_loop().create_future()

        await page.expose_function("recordAction", self._handle_record_action)
        await page.expose_function("getRecordingState", self._handle_get_state)
        await page.expose_function("controlAction", self._handle_control_action)
        await page.expose_function("getExistingScenarios", self._handle_get_scenarios)
        await page.add_init_script(RECORDER_INIT_SCRIPT)

        page.on("framenavigated", self._on_frame_navigated)
        page.on("close", lambda _: self.cancel())

        logger.info("Recorder attached to page")

    async def cleanup(self):
        """Cleanup resources."""
        for task in list(self._tasks):
            task.cancel()

        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
            if self._playwright:
                await self._playwright.stop()
            logger.info("Browser closed")
        except PlaywrightError as e:
            logger.warning(f"Error during cleanup: {e}")

    # ==================== Recording ====================

    async def record(self) -> RecordingResult:
        """Open the start URL and block until the session finishes"""
        if not self.page:
            await self.initialize()

        try:
            await self.page.goto(self.start_url)
            logger.info(f"Recording on {self.start_url}; use the panel to start")
            return await self.wait_for_completion()
        finally:
            await self.cleanup()

    async def wait_for_completion(self) -> RecordingResult:
        if self._completion is None:
            raise RecorderError("No browser session; call initialize() or attach() first")

        if self.timeout:
            try:
                await asyncio.wait_for(asyncio.shield(self._completion), self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Recording timed out after {self.timeout}s")
                self.cancel()

        return await self._completion

    def cancel(self):
        """Finish the session without generating"""
        if self._completion and not self._completion.done():
            logger.info("Recording cancelled")
            self._completion.set_result(RecordingResult(
                feature_name=self.recorder.feature_name,
                events=list(self.recorder.events),
                cancelled=True
            ))

    def _on_generate(self, events: List[RecordedEvent]):
        if self._completion and not self._completion.done():
            self._completion.set_result(RecordingResult(
                feature_name=self.recorder.feature_name,
                events=events
            ))

    # ==================== Bridge Handlers ====================

    async def _handle_record_action(self, payload: Dict[str, Any]):
        self.recorder.record_action(payload)

    async def _handle_get_state(self) -> Dict[str, Any]:
        return self.recorder.get_recording_state()

    async def _handle_control_action(self, action: Dict[str, Any]) -> bool:
        async with self._control_lock:
            return self.recorder.control_action(action)

    async def _handle_get_scenarios(self) -> List[Dict[str, Any]]:
        if not self.scenario_provider:
            return []
        return self.scenario_provider()

    def _on_frame_navigated(self, frame: Frame):
        if self.page is None or frame != self.page.main_frame:
            return
        self.recorder.record_navigation(frame.url)

    # ==================== UI Sync ====================

    async def sync_ui_state(self):
        """Ask the page panel to re-render; a page mid-navigation is skipped"""
        if not self.page or self.page.is_closed():
            return
        try:
            await self.page.evaluate(SYNC_UI_SCRIPT)
        except PlaywrightError as e:
            logger.debug(f"UI sync skipped: {e}")

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _schedule_ui_sync(self):
        self._spawn(self.sync_ui_state())

    def _on_reset(self):
        loop = asyncio.get_running_loop()
        loop.call_later(RESET_NAVIGATION_DELAY, lambda: self._spawn(self._reload_start_page()))

    async def _reload_start_page(self):
        if not self.page or self.page.is_closed():
            return
        try:
            await self.page.goto(self.start_url)
        except PlaywrightError as e:
            logger.warning(f"Could not reload {self.start_url} after reset: {e}")
