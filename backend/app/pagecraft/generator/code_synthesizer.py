"""
Code Synthesizer

Turns a finished event log into runnable pytest-playwright code.

Pass 1 builds one Step per event, minting or reusing locator ids in the
locator store. Pass 2 groups steps by scenario key and merges each group
into its page-object file. Finally the test script is rendered: one
page-object instance per scenario and one `with step(...)` block per
step, in event order.

For a fixed event log, store and set of existing files the output is
deterministic; a rerun with nothing new writes nothing.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Union
from dataclasses import dataclass, field

from ..knowledge.locator_store import LocatorStore
from ..recorder.bridge_models import EventType
from ..recorder.event_recorder import RecordedEvent
from .page_object import PageObjectDescriptor, class_name_for, module_name_for
from .steps import (
    ElementRef,
    Step,
    StepKind,
    literal,
    render_inline,
    render_method,
    strip_transient_classes,
    unwrap_braces,
)

logger = logging.getLogger(__name__)

# Events that address an element and therefore get a locator id
LOCATOR_EVENT_TITLES = {
    EventType.CLICK: (StepKind.CLICK, "Click {id}"),
    EventType.INPUT: (StepKind.FILL, "Type into {id}"),
    EventType.DRAG_SELECT: (StepKind.DRAG_SELECT, "Select text in {id}"),
    EventType.ASSERT: (StepKind.ASSERT_TEXT, "Verify text in {id}"),
    EventType.DRAG_DROP: (StepKind.DRAG_DROP, "Drag {id} to target"),
}

INITIAL_NAVIGATION_TITLE = "Initial navigation"
DEFAULT_TEST_NAME = "new_feature"


def feature_slug(feature_name: str) -> str:
    """'Login Flow!' -> 'login_flow'"""
    slug = re.sub(r"[^a-z0-9]+", "_", (feature_name or "").lower()).strip("_")
    return slug or DEFAULT_TEST_NAME


def scenario_key_for_import(step_id: str) -> str:
    """Imported step ids are '<scenario>_<index>'"""
    return re.sub(r"_\d+$", "", step_id)


@dataclass
class PageObjectResult:
    """Outcome of merging one scenario into its page object"""
    class_name: str
    module_name: str
    file_path: Path
    method_names: List[str] = field(default_factory=list)
    new_methods: List[str] = field(default_factory=list)
    new_properties: List[str] = field(default_factory=list)
    written: bool = False

    @property
    def variable(self) -> str:
        return self.module_name


@dataclass
class GeneratedResult:
    """Everything one synthesis run produced"""
    feature_name: str
    test_name: str
    script_content: str
    fixture_content: str
    steps: List[Step] = field(default_factory=list)
    page_objects: Dict[str, PageObjectResult] = field(default_factory=dict)


class CodeSynthesizer:
    """
    Generates page objects and a test script from recorded events.

    The locator store is injected and saved to locator_file (when given)
    at the end of every run.
    """

    def __init__(
        self,
        store: LocatorStore,
        pages_dir: Union[str, Path],
        start_url: Optional[str] = None,
        locator_file: Optional[Union[str, Path]] = None
    ):
        self.store = store
        self.pages_dir = Path(pages_dir)
        self.start_url = start_url
        self.locator_file = Path(locator_file) if locator_file else None

    def generate(self, feature_name: str, events: List[RecordedEvent]) -> GeneratedResult:
        logger.info(f"Synthesizing '{feature_name}' from {len(events)} events")

        steps = self.build_steps(feature_name, events)
        page_objects = {
            key: self.generate_page_object(key, group)
            for key, group in self.group_by_scenario(steps).items()
        }

        if self.locator_file:
            self.store.save(self.locator_file)

        test_name = feature_slug(feature_name)
        return GeneratedResult(
            feature_name=feature_name,
            test_name=test_name,
            script_content=self.render_script(feature_name, test_name, steps, page_objects),
            fixture_content=self.render_fixture(),
            steps=steps,
            page_objects=page_objects
        )

    # ==================== Pass 1: Steps ====================

    def build_steps(self, feature_name: str, events: List[RecordedEvent]) -> List[Step]:
        feature_key = feature_slug(feature_name)
        steps: List[Step] = []

        if self.start_url and (not events or events[0].type != EventType.NAVIGATION):
            steps.append(Step(
                StepKind.NAVIGATE,
                INITIAL_NAVIGATION_TITLE,
                scenario_key=feature_name,
                url=self.start_url
            ))

        locator_count = 0
        for event in events:
            if event.type in LOCATOR_EVENT_TITLES:
                if not event.selector:
                    logger.warning(f"Skipping {event.type.value} event {event.id} without a selector")
                    continue
                locator_count += 1
                steps.append(self._locator_step(event, feature_name, feature_key, locator_count))
                continue

            step = self._plain_step(event, feature_name)
            if step:
                steps.append(step)

        return steps

    def _plain_step(self, event: RecordedEvent, feature_name: str) -> Optional[Step]:
        if event.type in (EventType.NAVIGATION, EventType.URL_CHANGE):
            if not event.url or event.url == "about:blank":
                return None
            if event.type == EventType.NAVIGATION:
                return Step(StepKind.NAVIGATE, f"Navigate to {event.url}", feature_name, url=event.url)
            return Step(StepKind.URL_CHANGE, f"Verify URL {event.url}", feature_name, url=event.url)

        if event.type == EventType.MANUAL:
            return Step(
                StepKind.MANUAL,
                f"Manual step: {event.value or ''}".strip(),
                feature_name,
                element=ElementRef(unwrap_braces(event.selector or "")),
                value=event.value
            )

        if event.type == EventType.IMPORTED:
            return Step(
                StepKind.RAW,
                event.value or "Imported step",
                scenario_key_for_import(event.source_id or event.id),
                raw_code=event.raw_code
            )

        logger.warning(f"No step for event type {event.type.value}")
        return None

    def _locator_step(
        self,
        event: RecordedEvent,
        feature_name: str,
        feature_key: str,
        count: int
    ) -> Step:
        kind, title = LOCATOR_EVENT_TITLES[event.type]
        selector = event.selector
        if kind == StepKind.DRAG_DROP:
            selector = strip_transient_classes(selector)

        locator_id = self.assign_locator_id(event, feature_key, count, selector)
        step = Step(
            kind,
            title.format(id=locator_id),
            feature_name,
            element=ElementRef(selector, locator_id),
            value=event.value,
            locator_id=locator_id
        )
        if kind == StepKind.DRAG_DROP:
            step.target = ElementRef(event.value or "", locator_id, from_value=True)
        return step

    def assign_locator_id(
        self,
        event: RecordedEvent,
        feature_key: str,
        count: int,
        selector: str
    ) -> str:
        """
        Locator id for an element event.

        A user-assigned id is trusted and upserted. Otherwise identical
        (selector, value) content reuses its id, and a fresh id skips
        past candidates already holding different content.
        """
        if event.locator_id:
            self.store.register(event.locator_id, selector, event.value)
            return event.locator_id

        existing = self.store.find_by_selector_and_value(selector, event.value)
        if existing:
            logger.debug(f"Reusing locator {existing} for {selector}")
            return existing

        type_key = event.type.value.replace("-", "_")
        candidate = f"{feature_key}_{type_key}_{count}"
        while candidate in self.store:
            count += 1
            candidate = f"{feature_key}_{type_key}_{count}"

        self.store.register(candidate, selector, event.value)
        return candidate

    # ==================== Pass 2: Page Objects ====================

    @staticmethod
    def group_by_scenario(steps: List[Step]) -> Dict[str, List[Step]]:
        groups: Dict[str, List[Step]] = {}
        for step in steps:
            if not step.inline_only:
                groups.setdefault(step.scenario_key, []).append(step)
        return groups

    def generate_page_object(self, scenario_key: str, steps: List[Step]) -> PageObjectResult:
        class_name = class_name_for(scenario_key)
        file_path = self.pages_dir / f"{module_name_for(scenario_key)}.py"

        descriptor = PageObjectDescriptor.load(file_path, class_name)
        result = PageObjectResult(
            class_name=descriptor.class_name if descriptor else class_name,
            module_name=file_path.stem,
            file_path=file_path
        )

        if descriptor is None:
            logger.warning(f"Leaving {file_path} untouched; calls to its methods are still generated")
            result.method_names = [step.method_name for step in steps]
            return result

        for step in steps:
            if step.carries_url:
                # URLs differing only in case or punctuation share a title-derived name
                body = render_method(step, descriptor.add_property)
                name = descriptor.free_method_name(step.method_name, body)
                if name != step.method_name:
                    step.name = name
                descriptor.add_method(name, body)
            elif not descriptor.has_method(step.method_name):
                descriptor.add_method(step.method_name, render_method(step, descriptor.add_property))
            result.method_names.append(step.method_name)

        result.new_methods = list(descriptor.new_methods)
        result.new_properties = list(descriptor.new_properties)
        if descriptor.has_changes:
            descriptor.write()
            result.written = True
        else:
            logger.info(f"{file_path.name} is up to date")
        return result

    # ==================== Script ====================

    def render_script(
        self,
        feature_name: str,
        test_name: str,
        steps: List[Step],
        page_objects: Dict[str, PageObjectResult]
    ) -> str:
        lines = [
            '"""',
            f"{feature_name}: recorded test.",
            '"""',
            "",
            "from playwright.sync_api import Error as PlaywrightError, Page, expect",
            "",
            "from pagecraft.knowledge import LocatorStore",
            "from pagecraft.runtime import step",
        ]
        for result in page_objects.values():
            lines.append(f"from pages.{result.module_name} import {result.class_name}")

        lines += ["", "", f"def test_{test_name}(page: Page, locators: LocatorStore):"]
        for result in page_objects.values():
            lines.append(f"    {result.variable} = {result.class_name}(page, locators)")
        if page_objects:
            lines.append("")

        for s in steps:
            lines.append(f"    with step({literal(s.title)}):")
            for statement in self._script_statements(s, page_objects) or ["pass"]:
                lines.append(f"        {statement}" if statement.strip() else "")

        if not steps:
            lines.append("    pass")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _script_statements(s: Step, page_objects: Dict[str, PageObjectResult]) -> List[str]:
        if s.inline_only:
            return render_inline(s)
        return [f"{page_objects[s.scenario_key].variable}.{s.method_name}()"]

    def render_fixture(self) -> str:
        """conftest.py providing the session-wide locator store"""
        locator_path = self._fixture_locator_path()
        return "\n".join([
            '"""',
            "Fixtures for generated tests.",
            '"""',
            "",
            "from pathlib import Path",
            "",
            "import pytest",
            "",
            "from pagecraft.knowledge import LocatorStore",
            "",
            f"LOCATOR_FILE = Path(__file__).parent / {literal(locator_path)}",
            "",
            "",
            '@pytest.fixture(scope="session")',
            "def locators() -> LocatorStore:",
            "    store = LocatorStore()",
            "    store.load(LOCATOR_FILE)",
            "    return store",
            "",
        ])

    def _fixture_locator_path(self) -> str:
        if not self.locator_file:
            return "data/locators.json"
        output_root = self.pages_dir.parent
        try:
            relative = os.path.relpath(self.locator_file.resolve(), output_root.resolve())
        except ValueError:
            relative = str(self.locator_file.resolve())
        return Path(relative).as_posix()
