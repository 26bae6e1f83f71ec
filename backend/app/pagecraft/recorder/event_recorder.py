"""
Event Recorder

Session state machine that turns raw page interactions into an ordered
event log. The page reaches it through three bridge calls:

- recordAction(event)    fire-and-forget, ignored unless recording
- getRecordingState()    snapshot {state, featureName, events, ...}
- controlAction(action)  start/stop/generate/reset and event editing

States: idle -start-> recording -stop-> paused -start-> recording;
recording|paused -generate-> completed (terminal); reset -> idle.
"""

import time
import uuid
import logging
from datetime import datetime
from typing import Dict, List, Any, Optional, Callable
from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError

from .bridge_models import (
    ControlAction,
    ControlActionType,
    EventType,
    EventUpdate,
    ImportedStep,
    ManualEventRequest,
    RecordActionPayload,
)

logger = logging.getLogger(__name__)

DEFAULT_FEATURE_NAME = "NewFeature"
DEFAULT_MANUAL_SELECTOR = "{#id}"
DEFAULT_MANUAL_VALUE = "Action value"

# Bridge field name -> RecordedEvent attribute, for updateEvent
EDITABLE_FIELDS = {
    "type": "type",
    "selectorType": "selector_type",
    "selector": "selector",
    "value": "value",
    "url": "url",
    "locatorId": "locator_id",
}


class SessionState(Enum):
    """Recording session lifecycle"""
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    COMPLETED = "completed"


class RecorderError(RuntimeError):
    """Raised when recording cannot proceed at all (e.g. no browser session)"""


@dataclass
class RecordedEvent:
    """A single captured interaction"""
    id: str
    type: EventType
    timestamp: int  # epoch milliseconds
    selector_type: Optional[str] = None
    selector: Optional[str] = None
    value: Optional[str] = None
    url: Optional[str] = None

    # User-assigned locator id; trusted verbatim by the synthesizer
    locator_id: Optional[str] = None

    # Source of an imported step and the scenario step it was taken from
    raw_code: Optional[str] = None
    source_id: Optional[str] = None

    @classmethod
    def create(cls, event_type: EventType, **fields) -> "RecordedEvent":
        return cls(
            id=str(uuid.uuid4()),
            type=event_type,
            timestamp=int(time.time() * 1000),
            **fields
        )

    def to_dict(self) -> Dict[str, Any]:
        """Bridge (camelCase) representation"""
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp,
            "selectorType": self.selector_type,
            "selector": self.selector,
            "value": self.value,
            "url": self.url,
            "locatorId": self.locator_id,
            "rawCode": self.raw_code,
            "sourceId": self.source_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecordedEvent":
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            type=EventType(data["type"]),
            timestamp=data.get("timestamp", 0),
            selector_type=data.get("selectorType"),
            selector=data.get("selector"),
            value=data.get("value"),
            url=data.get("url"),
            locator_id=data.get("locatorId"),
            raw_code=data.get("rawCode"),
            source_id=data.get("sourceId"),
        )


@dataclass
class RecordingSession:
    """The state owned by one recorder"""
    feature_name: str = DEFAULT_FEATURE_NAME
    state: SessionState = SessionState.IDLE
    events: List[RecordedEvent] = field(default_factory=list)
    is_expanded: bool = True
    started_at: Optional[str] = None
    completed_at: Optional[str] = None


class EventRecorder:
    """
    Host-side recording session.

    Every mutation calls on_change so the page UI can re-render; the
    host decides how (and how safely) to do that. on_generate fires once
    when the session completes, on_reset when the page should be sent
    back to the start URL.
    """

    def __init__(
        self,
        feature_name: str = "",
        on_change: Optional[Callable[[], None]] = None,
        on_generate: Optional[Callable[[List[RecordedEvent]], None]] = None,
        on_reset: Optional[Callable[[], None]] = None
    ):
        self.session = RecordingSession(feature_name=feature_name or DEFAULT_FEATURE_NAME)
        self.on_change = on_change
        self.on_generate = on_generate
        self.on_reset = on_reset

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def events(self) -> List[RecordedEvent]:
        return self.session.events

    @property
    def feature_name(self) -> str:
        return self.session.feature_name

    def is_recording(self) -> bool:
        return self.session.state == SessionState.RECORDING

    def is_completed(self) -> bool:
        return self.session.state == SessionState.COMPLETED

    def _notify(self):
        if self.on_change:
            self.on_change()

    # ==================== Session Management ====================

    def start(self, feature_name: Optional[str] = None) -> bool:
        """Begin or resume recording; events are kept across pause/resume"""
        if self.session.state not in (SessionState.IDLE, SessionState.PAUSED):
            return False

        if feature_name:
            self.session.feature_name = feature_name
        if not self.session.started_at:
            self.session.started_at = datetime.utcnow().isoformat()

        self.session.state = SessionState.RECORDING
        logger.info(f"Recording started for {self.session.feature_name}")
        self._notify()
        return True

    def stop(self) -> bool:
        """Pause recording"""
        if self.session.state != SessionState.RECORDING:
            return False

        self.session.state = SessionState.PAUSED
        logger.info("Recording paused")
        self._notify()
        return True

    def generate(self) -> Optional[List[RecordedEvent]]:
        """
        Complete the session and hand the event log over.

        Returns:
            The recorded events, or None if the session cannot complete
        """
        if self.session.state not in (SessionState.RECORDING, SessionState.PAUSED):
            logger.warning(f"Cannot generate from a {self.session.state.value} session")
            return None

        self.session.state = SessionState.COMPLETED
        self.session.completed_at = datetime.utcnow().isoformat()
        events = list(self.session.events)

        logger.info(f"Generating test files from {len(events)} events")
        if self.on_generate:
            self.on_generate(events)
        return events

    def reset(self):
        """Clear the log and return to idle; the host reloads the start page"""
        self.session.events = []
        self.session.state = SessionState.IDLE
        logger.info("Recording reset")
        self._notify()
        if self.on_reset:
            self.on_reset()

    # ==================== Event Capture ====================

    def record_action(self, raw_action: Dict[str, Any]) -> Optional[RecordedEvent]:
        """Handle recordAction(event); ignored unless recording"""
        if not self.is_recording():
            return None

        try:
            payload = RecordActionPayload.model_validate(raw_action)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed recorded action: {e}")
            return None

        event = RecordedEvent.create(
            payload.type,
            selector_type=payload.selector_type,
            selector=payload.selector,
            value=payload.value,
            url=payload.url
        )
        self.session.events.append(event)
        logger.debug(f"[Captured] {event.type.value}: {event.selector or event.url}")
        self._notify()
        return event

    def record_navigation(self, url: str) -> Optional[RecordedEvent]:
        """
        Record a main-frame navigation.

        It counts as an explicit navigation when the previous event was a
        navigation or a click, otherwise as a passive url-change.
        """
        if not self.is_recording():
            return None

        url = (url or "").strip()
        if not url or url == "about:blank":
            return None

        event_type = self.classify_navigation(self.session.events)
        event = RecordedEvent.create(event_type, url=url)
        self.session.events.append(event)
        logger.debug(f"[Captured] {event_type.value}: {url}")
        self._notify()
        return event

    @staticmethod
    def classify_navigation(events: List[RecordedEvent]) -> EventType:
        if events and events[-1].type in (EventType.NAVIGATION, EventType.CLICK):
            return EventType.NAVIGATION
        return EventType.URL_CHANGE

    # ==================== Event Editing ====================

    def update_name(self, feature_name: str):
        self.session.feature_name = feature_name or DEFAULT_FEATURE_NAME
        self._notify()

    def toggle_expand(self):
        self.session.is_expanded = not self.session.is_expanded
        self._notify()

    def find_event(self, event_id: str) -> Optional[RecordedEvent]:
        for event in self.session.events:
            if event.id == event_id:
                return event
        return None

    def update_event(self, event_id: str, field_name: str, value: Optional[str]) -> bool:
        """Edit one user-editable field of a recorded event"""
        attribute = EDITABLE_FIELDS.get(field_name)
        if not attribute:
            logger.warning(f"Field '{field_name}' is not editable")
            return False

        event = self.find_event(event_id)
        if not event:
            logger.warning(f"No event with id {event_id}")
            return False

        if attribute == "type":
            try:
                value = EventType(value)
            except ValueError:
                logger.warning(f"Unknown event type '{value}'")
                return False

        setattr(event, attribute, value)
        self._notify()
        return True

    def delete_event(self, event_id: str) -> bool:
        before = len(self.session.events)
        self.session.events = [e for e in self.session.events if e.id != event_id]
        deleted = len(self.session.events) != before
        self._notify()
        return deleted

    def add_manual_event(
        self,
        selector: Optional[str] = None,
        value: Optional[str] = None
    ) -> RecordedEvent:
        """Append a placeholder step; a {braced} selector means 'fill me in'"""
        event = RecordedEvent.create(
            EventType.MANUAL,
            selector_type="Manual",
            selector=selector or DEFAULT_MANUAL_SELECTOR,
            value=value or DEFAULT_MANUAL_VALUE
        )
        self.session.events.append(event)
        self._notify()
        return event

    def import_steps(self, steps: List[ImportedStep]) -> List[RecordedEvent]:
        """Append steps taken from an existing test script"""
        imported = []
        for step in steps:
            event = RecordedEvent.create(
                EventType.IMPORTED,
                value=step.title,
                raw_code=step.raw_code,
                source_id=step.id
            )
            self.session.events.append(event)
            imported.append(event)

        logger.info(f"Imported {len(imported)} steps")
        self._notify()
        return imported

    # ==================== Bridge ====================

    def get_recording_state(self) -> Dict[str, Any]:
        """Snapshot for the page UI"""
        return {
            "state": self.session.state.value,
            "isRecording": self.is_recording(),
            "isExpanded": self.session.is_expanded,
            "featureName": self.session.feature_name,
            "events": [e.to_dict() for e in self.session.events],
        }

    def control_action(self, raw_action: Dict[str, Any]) -> bool:
        """
        Dispatch one controlAction message.

        Returns:
            True if the action was applied
        """
        if self.is_completed():
            logger.warning("Session already completed; control action ignored")
            return False

        try:
            action = ControlAction.model_validate(raw_action)
            return self._dispatch(action)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed control action: {e}")
            return False

    def _dispatch(self, action: ControlAction) -> bool:
        action_type = action.type
        payload = action.payload

        if action_type == ControlActionType.START:
            return self.start(payload if isinstance(payload, str) else None)
        elif action_type == ControlActionType.STOP:
            return self.stop()
        elif action_type == ControlActionType.GENERATE:
            return self.generate() is not None
        elif action_type == ControlActionType.RESET:
            self.reset()
            return True
        elif action_type == ControlActionType.UPDATE_NAME:
            self.update_name(payload or "")
            return True
        elif action_type == ControlActionType.TOGGLE_EXPAND:
            self.toggle_expand()
            return True
        elif action_type == ControlActionType.UPDATE_EVENT:
            update = EventUpdate.model_validate(payload)
            return self.update_event(update.id, update.field, update.value)
        elif action_type == ControlActionType.DELETE_EVENT:
            return self.delete_event(str(payload))
        elif action_type == ControlActionType.ADD_MANUAL_EVENT:
            request = ManualEventRequest.model_validate(payload or {})
            self.add_manual_event(request.selector, request.value)
            return True
        elif action_type == ControlActionType.IMPORT_STEPS:
            steps = [ImportedStep.model_validate(step) for step in payload or []]
            self.import_steps(steps)
            return True

        return False
