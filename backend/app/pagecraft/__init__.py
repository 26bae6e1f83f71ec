"""
pagecraft - record browser interactions and turn them into page objects
and pytest-playwright scripts.

Components:
- core: selector resolution (Python and in-page JavaScript)
- recorder: recording session state machine and its browser host
- knowledge: persistent locator store
- generator: step AST, page-object merge, code synthesis
"""

from .config import RecorderConfig
from .knowledge import LocatorStore, LocatorDef
from .recorder import EventRecorder, InteractiveRecorder, RecordedEvent, RecorderError
from .generator import CodeSynthesizer
from .orchestrator import AgentOrchestrator

__version__ = "0.1.0"

__all__ = [
    "RecorderConfig",
    "LocatorStore",
    "LocatorDef",
    "EventRecorder",
    "InteractiveRecorder",
    "RecordedEvent",
    "RecorderError",
    "CodeSynthesizer",
    "AgentOrchestrator"
]
