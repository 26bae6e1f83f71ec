"""
Unit tests for SelectorResolver.

Tests the selector priority pipeline against parsed HTML documents.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from pagecraft.core.selector_resolver import (
    SelectorResolver,
    SelectorStrategy,
    normalize_whitespace,
    quote_attribute_value,
)


@pytest.fixture
def resolver(login_form_html):
    return SelectorResolver.from_html(login_form_html)


class TestHelpers:
    """Test string helpers."""

    def test_normalize_whitespace(self):
        """Test that whitespace runs collapse and ends are trimmed."""
        assert normalize_whitespace("  Log \n\t in  ") == "Log in"

    def test_quote_attribute_value_escapes_quotes(self):
        """Test that embedded quotes and backslashes are escaped."""
        assert quote_attribute_value('say "hi"') == '"say \\"hi\\""'
        assert quote_attribute_value("a\\b") == '"a\\\\b"'


class TestPriority:
    """Test the strategy priority order."""

    def test_test_id_wins(self, resolver):
        """Test that a unique data-testid is used first."""
        element = resolver.document.find("input", attrs={"data-testid": "username"})

        result = resolver.resolve(element)

        assert result.strategy == SelectorStrategy.DATA_TESTID
        assert result.selector == '[data-testid="username"]'
        assert result.unique

    def test_test_id_beats_id(self):
        """Test that data-testid is preferred over an element id."""
        resolver = SelectorResolver.from_html('<button data-testid="save" id="save-btn">Save</button>')

        result = resolver.resolve(resolver.document.find("button"))

        assert result.selector == '[data-testid="save"]'

    def test_duplicate_test_id_falls_through_to_id(self):
        """Test that a non-unique test id is skipped."""
        resolver = SelectorResolver.from_html(
            '<button data-testid="dup" id="first">A</button><button data-testid="dup">B</button>'
        )

        result = resolver.resolve(resolver.document.find(id="first"))

        assert result.strategy == SelectorStrategy.ID
        assert result.selector == "#first"

    def test_name_attribute(self, resolver):
        """Test that a unique name attribute is used."""
        element = resolver.document.find("input", attrs={"name": "password"})

        result = resolver.resolve(element)

        assert result.strategy == SelectorStrategy.NAME
        assert result.selector == '[name="password"]'

    def test_role_attribute(self, resolver):
        """Test that a unique role attribute is used."""
        element = resolver.document.find("a")

        result = resolver.resolve(element)

        assert result.strategy == SelectorStrategy.ROLE
        assert result.selector == '[role="link"]'

    def test_class_list(self):
        """Test that the full class list is used when unique."""
        resolver = SelectorResolver.from_html('<div class="card wide"></div><div class="card"></div>')

        result = resolver.resolve(resolver.document.find("div"))

        assert result.strategy == SelectorStrategy.CLASS_LIST
        assert result.selector == ".card.wide"

    def test_class_list_skips_pseudo_like_tokens(self):
        """Test that utility tokens containing ':' are left out."""
        resolver = SelectorResolver.from_html('<div class="hover:bg-red card"></div>')

        result = resolver.resolve(resolver.document.find("div"))

        assert result.selector == ".card"

    def test_exact_text(self, resolver):
        """Test that short unique text is used when no attribute helps."""
        element = resolver.document.find("li")

        result = resolver.resolve(element)

        assert result.strategy == SelectorStrategy.TEXT
        assert result.selector == 'text="One"'
        assert resolver.query(result.selector) == [element]

    def test_text_is_case_insensitive(self, resolver):
        """Test that text matching ignores case and spacing."""
        element = resolver.document.find("p", string="Terms apply")

        assert resolver.query('text="  TERMS   apply "') == [element]

    def test_text_with_quotes_and_backslash_finds_itself(self):
        """Test that escaped text selectors match their element."""
        resolver = SelectorResolver.from_html('<div><span>Say "hi" \\ now</span></div>')
        element = resolver.document.find("span")

        result = resolver.resolve(element)

        assert result.selector == 'text="Say \\"hi\\" \\\\ now"'
        assert resolver.query(result.selector) == [element]

    def test_long_text_is_not_used(self):
        """Test that text of 30 characters or more is not a selector."""
        text = "x" * 30
        resolver = SelectorResolver.from_html(f"<div><p>{text}</p></div>")

        result = resolver.resolve(resolver.document.find("p"))

        assert result.strategy != SelectorStrategy.TEXT


class TestPositionalPath:
    """Test the positional fallback."""

    def test_duplicate_text_uses_nth_of_type(self, resolver):
        """Test that elements sharing text get a positional path."""
        second, third = resolver.document.find_all("li")[1:]

        result_second = resolver.resolve(second)
        result_third = resolver.resolve(third)

        assert result_second.strategy == SelectorStrategy.POSITIONAL_PATH
        assert resolver.query(result_second.selector) == [second]
        assert resolver.query(result_third.selector) == [third]

    def test_path_anchors_on_ancestor_id(self):
        """Test that the walk stops at the nearest ancestor with an id."""
        resolver = SelectorResolver.from_html(
            '<div id="a"><b>x</b></div><div id="c"><b>x</b></div>'
        )
        element = resolver.document.find(id="c").find("b")

        result = resolver.resolve(element)

        assert result.selector == "div#c > b"
        assert result.unique
        assert resolver.query(result.selector) == [element]

    def test_ambiguous_element_degrades_without_raising(self):
        """Test that no unique handle yields a non-unique selector."""
        resolver = SelectorResolver.from_html("<p></p><p></p>")

        result = resolver.resolve(resolver.document.find("p"))

        assert result.unique is False
        assert result.selector == "p"


class TestTargets:
    """Test click and selection target handling."""

    def test_click_on_icon_lifts_to_button(self, resolver):
        """Test that clicks on inner nodes resolve the clickable ancestor."""
        icon = resolver.document.find("span", class_="icon")

        result = resolver.resolve_click_target(icon)

        assert result.selector == "#login-button"

    def test_click_on_plain_element_is_unchanged(self, resolver):
        """Test that non-interactive elements resolve themselves."""
        element = resolver.document.find("li")

        assert resolver.find_clickable_ancestor(element) is element

    def test_selection_resolves_parent_element(self, resolver):
        """Test that a text-node anchor resolves its element."""
        anchor = resolver.document.find("p", string="Terms apply").string

        result = resolver.resolve_selection(anchor)

        assert result.selector == 'text="Terms apply"'

    def test_invalid_selector_queries_nothing(self, resolver):
        """Test that malformed CSS yields no nodes instead of raising."""
        assert resolver.query("div[") == []
        assert resolver.is_unique("div[") is False
