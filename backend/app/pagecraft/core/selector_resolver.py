"""
Selector Resolver

Turns a DOM element into the most stable selector that matches it and
nothing else. The same priority pipeline runs inside the recorded page
(see page_scripts.RESOLVER_JS); this module runs it against a parsed
HTML document, e.g. a page.content() snapshot.

Priority (first unique match wins):
1. Test-id attribute      [data-testid="..."]
2. Element id             #id
3. name attribute         [name="..."]
4. role attribute         [role="..."]
5. Full class list        .a.b.c
6. Exact visible text     text="..."   (< 30 chars, one element only)
7. Positional path        div#main > ul > li:nth-of-type(3)
8. Bare tag name          (not guaranteed unique)
"""

import logging
import re
from typing import List, Optional, Union
from dataclasses import dataclass
from enum import Enum

import soupsieve
from bs4 import BeautifulSoup, NavigableString, Tag
from soupsieve import SelectorSyntaxError

logger = logging.getLogger(__name__)


class SelectorStrategy(Enum):
    """Which resolution strategy produced a selector (informational)"""
    DATA_TESTID = "Data-testid"
    ID = "ID"
    NAME = "Name"
    ROLE = "Role"
    CLASS_LIST = "CSS"
    TEXT = "Text"
    POSITIONAL_PATH = "Path"
    TAG = "Tag"
    MANUAL = "Manual"


@dataclass
class ResolvedSelector:
    """Outcome of a resolution"""
    strategy: SelectorStrategy
    selector: str
    unique: bool = True


# Attribute names treated as test ids, in lookup order
TEST_ID_ATTRIBUTES = ("data-testid", "data-test-id", "data-test", "data-cy")

# Clicks on inner nodes (icons, spans) bubble up to the nearest of these
CLICKABLE_SELECTOR = 'button, a, [role="button"], [role="link"], [type="button"], [type="submit"]'

MAX_TEXT_LENGTH = 30


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace and trim"""
    return " ".join(text.split())


def quote_attribute_value(value: str) -> str:
    """Quote a value for use inside an attribute selector"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote_attribute_value(quoted: str) -> str:
    """Inverse of quote_attribute_value for the text between the quotes"""
    return re.sub(r"\\(.)", r"\1", quoted, flags=re.DOTALL)


class SelectorResolver:
    """
    Resolves stable, unique selectors against an HTML document.

    Uniqueness means the document answers the selector with exactly one
    node. Resolution never raises: when nothing unique is found the bare
    tag name comes back with unique=False.
    """

    def __init__(self, document: BeautifulSoup):
        self.document = document

    @classmethod
    def from_html(cls, html: str) -> "SelectorResolver":
        return cls(BeautifulSoup(html, "html.parser"))

    # ==================== Queries ====================

    def query(self, selector: str) -> List[Tag]:
        """
        Evaluate a selector produced by this resolver.

        Handles CSS and the text="..." form; invalid CSS yields no nodes.
        """
        if selector.startswith('text="') and selector.endswith('"'):
            return self._elements_with_exact_text(unquote_attribute_value(selector[6:-1]))

        try:
            return self.document.select(selector)
        except SelectorSyntaxError:
            logger.debug(f"Invalid selector ignored: {selector}")
            return []

    def is_unique(self, selector: str) -> bool:
        try:
            return len(self.document.select(selector, limit=2)) == 1
        except SelectorSyntaxError:
            return False

    def _elements_with_exact_text(self, text: str) -> List[Tag]:
        wanted = normalize_whitespace(text).casefold()
        return [
            element for element in self.document.find_all(True)
            if self._own_text(element).casefold() == wanted
        ]

    @staticmethod
    def _own_text(element: Tag) -> str:
        return normalize_whitespace("".join(element.find_all(string=True, recursive=False)))

    # ==================== Target Selection ====================

    def find_clickable_ancestor(self, element: Tag) -> Tag:
        """Nearest self-or-ancestor that is a button/link-like control"""
        candidate: Optional[Tag] = element
        while isinstance(candidate, Tag) and not isinstance(candidate, BeautifulSoup):
            if soupsieve.match(CLICKABLE_SELECTOR, candidate):
                return candidate
            candidate = candidate.parent
        return element

    def resolve_click_target(self, element: Tag) -> ResolvedSelector:
        """Resolve a click, lifting inner nodes to their clickable ancestor"""
        return self.resolve(self.find_clickable_ancestor(element))

    def resolve_selection(self, anchor: Union[Tag, NavigableString]) -> Optional[ResolvedSelector]:
        """Resolve a text selection on the element holding its anchor node"""
        node = anchor
        while node is not None and not isinstance(node, Tag):
            node = node.parent
        if node is None or isinstance(node, BeautifulSoup):
            return None
        return self.resolve(node)

    # ==================== Resolution Pipeline ====================

    def resolve(self, element: Tag) -> ResolvedSelector:
        """Run the priority pipeline on one element"""
        for attribute in TEST_ID_ATTRIBUTES:
            test_id = element.get(attribute)
            if test_id:
                selector = f"[{attribute}={quote_attribute_value(test_id)}]"
                if self.is_unique(selector):
                    return ResolvedSelector(SelectorStrategy.DATA_TESTID, selector)

        element_id = element.get("id")
        if element_id:
            selector = f"#{soupsieve.escape(element_id)}"
            if self.is_unique(selector):
                return ResolvedSelector(SelectorStrategy.ID, selector)

        for attribute, strategy in (("name", SelectorStrategy.NAME), ("role", SelectorStrategy.ROLE)):
            attr_value = element.get(attribute)
            if attr_value:
                selector = f"[{attribute}={quote_attribute_value(attr_value)}]"
                if self.is_unique(selector):
                    return ResolvedSelector(strategy, selector)

        class_selector = self._class_list_selector(element)
        if class_selector and self.is_unique(class_selector):
            return ResolvedSelector(SelectorStrategy.CLASS_LIST, class_selector)

        text_selector = self._text_selector(element)
        if text_selector:
            return ResolvedSelector(SelectorStrategy.TEXT, text_selector)

        return self._positional_path(element)

    def _class_list_selector(self, element: Tag) -> Optional[str]:
        classes = element.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        # Utility-framework tokens like hover:bg-red read as pseudo-classes
        usable = [c for c in classes if c and ":" not in c]
        if not usable:
            return None
        return "." + ".".join(soupsieve.escape(c) for c in usable)

    def _text_selector(self, element: Tag) -> Optional[str]:
        text = normalize_whitespace(element.get_text())
        if not text or len(text) >= MAX_TEXT_LENGTH:
            return None

        matches = self._elements_with_exact_text(text)
        if len(matches) != 1 or matches[0] is not element:
            return None
        return f'text={quote_attribute_value(text)}'

    def _positional_path(self, element: Tag) -> ResolvedSelector:
        path: List[str] = []
        current: Optional[Tag] = element

        while isinstance(current, Tag) and not isinstance(current, BeautifulSoup) and current.name != "html":
            segment = current.name

            if current.get("id"):
                # Anchor on the nearest id and stop climbing
                path.insert(0, f"{segment}#{soupsieve.escape(current['id'])}")
                break

            nth = 1 + sum(
                1 for sibling in current.find_previous_siblings(current.name)
            )
            if nth != 1:
                segment += f":nth-of-type({nth})"

            path.insert(0, segment)
            current = current.parent

            full_path = " > ".join(path)
            if self.is_unique(full_path):
                return ResolvedSelector(SelectorStrategy.POSITIONAL_PATH, full_path)

        if path:
            final_path = " > ".join(path)
            return ResolvedSelector(
                SelectorStrategy.POSITIONAL_PATH,
                final_path,
                unique=self.is_unique(final_path)
            )

        logger.debug(f"No unique selector for <{element.name}>, falling back to tag name")
        return ResolvedSelector(SelectorStrategy.TAG, element.name, unique=self.is_unique(element.name))
