"""
Locator Store - Persistent registry of named element locators

Maps a logical locator id to a primary selector, an ordered list of
fallback selectors and an optional expected/fill value. Generated page
objects resolve their selectors through this store at run time, so
editing the locator file re-targets a test without regenerating it.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class LocatorDef:
    """A single locator definition"""
    id: str
    primary: str
    fallbacks: Optional[List[str]] = None  # tried in order when primary fails
    value: Optional[str] = None  # expected / fill value
    score: Optional[float] = None  # only set by the healing path


class LocatorStore:
    """
    Keyed registry of locator definitions.

    The (primary, value) pair acts as a content key: the code synthesizer
    looks it up with find_by_selector_and_value() before minting a new id,
    so the same element/value recorded twice shares one id.

    Accepted file shapes on load:
    - {"id": {"primary" | "css": "...", "value": ..., "fallbacks": [...]}}
    - {"id": [{"css": "...", "score": ...}, ...]}  (first candidate wins)
    - {"locators": [{"id": "...", "primary": "...", ...}]}
    """

    def __init__(self):
        self.locators: Dict[str, LocatorDef] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.locators)

    def __contains__(self, locator_id: str) -> bool:
        return locator_id in self.locators

    def ids(self) -> List[str]:
        return list(self.locators.keys())

    # ==================== Persistence ====================

    def load(self, file_path: Union[str, Path]) -> int:
        """
        Load definitions from a locator file.

        A missing or malformed file leaves the store as it was; the
        failure is logged, never raised.

        Returns:
            Number of definitions read from the file
        """
        path = Path(file_path)
        if not path.exists():
            logger.warning(f"Locator file not found at {path}")
            return 0

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load locator map from {path}: {e}")
            return 0

        if not isinstance(data, dict):
            logger.error(f"Locator file {path} does not hold a JSON object")
            return 0

        loaded = 0
        for locator_id, entry in self._iter_entries(data):
            definition = self._definition_from_entry(locator_id, entry)
            if definition is None:
                logger.warning(f"Skipping locator '{locator_id}': no usable selector")
                continue
            with self._lock:
                self.locators[locator_id] = definition
            loaded += 1

        logger.info(f"Loaded {loaded} definitions from {path}")
        return loaded

    def _iter_entries(self, data: Dict[str, Any]):
        """Yield (id, raw entry) pairs for any of the accepted shapes"""
        listed = data.get("locators")
        if len(data) == 1 and isinstance(listed, list) and all(
            isinstance(item, dict) and "id" in item for item in listed
        ):
            for item in listed:
                yield item["id"], item
            return

        for key, value in data.items():
            if isinstance(value, list):
                # Legacy candidate list: first candidate is authoritative
                if value:
                    yield key, value[0]
            else:
                yield key, value

    def _definition_from_entry(self, locator_id: str, entry: Any) -> Optional[LocatorDef]:
        if isinstance(entry, str):
            return LocatorDef(id=locator_id, primary=entry)
        if not isinstance(entry, dict):
            return None

        primary = entry.get("primary") or entry.get("css") or entry.get("xpath")
        if not primary:
            return None

        fallbacks = entry.get("fallbacks")
        return LocatorDef(
            id=locator_id,
            primary=primary,
            fallbacks=list(fallbacks) if fallbacks is not None else None,
            value=entry.get("value"),
            score=entry.get("score")
        )

    def save(self, file_path: Union[str, Path]) -> bool:
        """
        Write the full store to disk.

        Absent value/fallbacks stay absent in the file. An I/O failure is
        logged and leaves the in-memory store untouched.

        Returns:
            True if the file was written
        """
        path = Path(file_path)

        with self._lock:
            data = {}
            for locator_id, definition in self.locators.items():
                entry: Dict[str, Any] = {"primary": definition.primary}
                if definition.value is not None:
                    entry["value"] = definition.value
                if definition.fallbacks is not None:
                    entry["fallbacks"] = list(definition.fallbacks)
                if definition.score is not None:
                    entry["score"] = definition.score
                data[locator_id] = entry

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save locator map to {path}: {e}")
            return False

        logger.info(f"Saved {len(data)} definitions to {path}")
        return True

    # ==================== Lookup ====================

    def get(self, locator_id: str) -> Optional[LocatorDef]:
        """Exact lookup, None if absent"""
        return self.locators.get(locator_id)

    def find_by_selector_and_value(
        self,
        selector: Optional[str],
        value: Optional[str] = None
    ) -> Optional[str]:
        """
        Find the id whose stored primary and value both match exactly.

        None and "" are different values here.
        """
        for locator_id, definition in self.locators.items():
            if definition.primary == selector and definition.value == value:
                return locator_id
        return None

    def get_playwright_selector(self, locator_id: str, default_selector: str) -> str:
        """
        Selector to hand to page.locator().

        With fallbacks recorded, returns a selector list joining primary and
        every fallback; Playwright matches the union, and generated code takes
        .first of it. Unknown ids get default_selector back (not registered).
        """
        definition = self.locators.get(locator_id)
        if not definition:
            return default_selector

        if definition.fallbacks:
            return ", ".join([definition.primary, *definition.fallbacks])
        return definition.primary

    def get_expected_value(self, locator_id: str, default_value: Optional[str]) -> Optional[str]:
        """Stored value (empty string included), else default_value"""
        definition = self.locators.get(locator_id)
        if not definition:
            return default_value
        return definition.value if definition.value is not None else default_value

    # ==================== Mutation ====================

    def register(self, locator_id: str, selector: str, value: Optional[str] = None) -> LocatorDef:
        """Upsert a definition, replacing whatever the id held before"""
        definition = LocatorDef(id=locator_id, primary=selector, value=value)
        with self._lock:
            self.locators[locator_id] = definition
        logger.debug(f"Registered locator {locator_id} -> {selector}")
        return definition

    def add_fallback(self, locator_id: str, selector: str) -> bool:
        """Append a fallback selector to an existing definition"""
        with self._lock:
            definition = self.locators.get(locator_id)
            if not definition or selector == definition.primary:
                return False
            fallbacks = definition.fallbacks or []
            if selector in fallbacks:
                return False
            definition.fallbacks = [*fallbacks, selector]
        return True
