"""
Pytest configuration and shared fixtures for pagecraft tests.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import Mock, AsyncMock
from typing import List

# Add backend app to path
sys.path.insert(0, str(Path(__file__).parent.parent / "app"))

from pagecraft.recorder.bridge_models import EventType
from pagecraft.recorder.event_recorder import RecordedEvent


# ==================== Mock Page Fixture ====================

@pytest.fixture
def mock_page():
    """Create a mock Playwright page object."""
    page = AsyncMock()

    # Basic properties
    page.url = "https://example.com/test"
    page.main_frame = Mock()
    page.main_frame.url = page.url

    # Sync API surface
    page.on = Mock()
    page.is_closed = Mock(return_value=False)

    # Navigation
    page.goto = AsyncMock(return_value=None)

    # Bridge wiring
    page.expose_function = AsyncMock(return_value=None)
    page.add_init_script = AsyncMock(return_value=None)

    # Evaluation
    page.evaluate = AsyncMock(return_value=None)

    return page


# ==================== Sample Events ====================

def make_event(event_type: EventType, **fields) -> RecordedEvent:
    return RecordedEvent.create(event_type, **fields)


@pytest.fixture
def login_events() -> List[RecordedEvent]:
    """Navigate, click #login, type alice into [name=user]."""
    return [
        make_event(EventType.NAVIGATION, url="https://x.test/a"),
        make_event(EventType.CLICK, selector_type="ID", selector="#login"),
        make_event(EventType.INPUT, selector_type="Name", selector="[name=user]", value="alice"),
    ]


# ==================== HTML Documents ====================

@pytest.fixture
def login_form_html() -> str:
    """A small login page with a mix of stable and unstable handles."""
    return """
    <html><body>
      <div id="main">
        <form>
          <input data-testid="username" class="field">
          <input name="password" type="password" class="field">
          <button id="login-button" type="submit"><span class="icon">&gt;</span> Log in</button>
          <a role="link" class="nav-link">Forgot password?</a>
        </form>
        <ul>
          <li>One</li>
          <li>Two</li>
          <li>Two</li>
        </ul>
      </div>
      <section>
        <p class="note">Terms apply</p>
        <p class="note">Cookies apply</p>
      </section>
    </body></html>
    """


# ==================== Temp Directory Fixture ====================

@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory for generated files."""
    out = tmp_path / "out"
    (out / "pages").mkdir(parents=True)
    (out / "tests").mkdir(parents=True)
    return out
