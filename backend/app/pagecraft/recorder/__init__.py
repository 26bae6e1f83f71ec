"""
Recording: the session state machine and its live-browser host.
"""

from .bridge_models import EventType, ControlActionType
from .event_recorder import EventRecorder, RecordedEvent, RecorderError, SessionState
from .interactive_recorder import InteractiveRecorder, RecordingResult

__all__ = [
    "EventType",
    "ControlActionType",
    "EventRecorder",
    "RecordedEvent",
    "RecorderError",
    "SessionState",
    "InteractiveRecorder",
    "RecordingResult"
]
