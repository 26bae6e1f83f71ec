"""
Unit tests for reusable step discovery.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from pagecraft.generator.reusable_steps import get_existing_scenarios, scan_source


TEST_MODULE = '''
from pagecraft.runtime import step


def helper():
    with step("Not a test"):
        pass


def test_login(page, locators):
    login_page = LoginPage(page, locators)

    with step("Open login"):
        page.goto("https://x.test/login")
    if True:
        with step("Type user"):
            page.locator("#user").fill("alice")


def test_empty(page):
    page.goto("/")
'''


class TestScanSource:
    """Test step extraction from one module."""

    def test_finds_steps_in_test_functions(self):
        """Test that only test functions with step blocks are returned."""
        scenarios = scan_source(TEST_MODULE, "test_login.py")

        assert [s.name for s in scenarios] == ["test_login"]
        titles = [step.title for step in scenarios[0].steps]
        assert titles == ["Open login", "Type user"]

    def test_step_ids_and_raw_code(self):
        """Test ids and dedented source of each block."""
        steps = scan_source(TEST_MODULE, "test_login.py")[0].steps

        assert steps[0].id == "test_login_py_test_login_0"
        assert steps[1].id == "test_login_py_test_login_1"
        assert steps[0].raw_code == 'with step("Open login"):\n    page.goto("https://x.test/login")'

    def test_to_dict_uses_bridge_names(self):
        """Test the camelCase form sent to the page."""
        scenario = scan_source(TEST_MODULE, "test_login.py")[0]

        data = scenario.to_dict()

        assert data["file"] == "test_login.py"
        assert set(data["steps"][0]) == {"id", "title", "rawCode"}


class TestGetExistingScenarios:
    """Test directory scanning."""

    def test_missing_directory(self, tmp_path):
        """Test that a missing tests directory yields nothing."""
        assert get_existing_scenarios(tmp_path / "missing") == []

    def test_scans_test_modules_only(self, tmp_path):
        """Test that only test_*.py files are read."""
        (tmp_path / "test_login.py").write_text(TEST_MODULE, encoding="utf-8")
        (tmp_path / "helpers.py").write_text(TEST_MODULE, encoding="utf-8")

        scenarios = get_existing_scenarios(tmp_path)

        assert [s.file for s in scenarios] == ["test_login.py"]

    def test_broken_module_is_skipped(self, tmp_path):
        """Test that a syntax error does not hide other modules."""
        (tmp_path / "test_broken.py").write_text("def test_x(:\n", encoding="utf-8")
        (tmp_path / "test_login.py").write_text(TEST_MODULE, encoding="utf-8")

        scenarios = get_existing_scenarios(tmp_path)

        assert [s.file for s in scenarios] == ["test_login.py"]
