from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional
from enum import Enum


class EventType(str, Enum):
    CLICK = "click"
    INPUT = "input"
    DRAG_SELECT = "drag-select"
    DRAG_DROP = "drag-drop"
    NAVIGATION = "navigation"
    URL_CHANGE = "url-change"
    MANUAL = "manual"
    ASSERT = "assert"
    IMPORTED = "imported"


class ControlActionType(str, Enum):
    START = "start"
    STOP = "stop"
    GENERATE = "generate"
    RESET = "reset"
    UPDATE_NAME = "updateName"
    UPDATE_EVENT = "updateEvent"
    DELETE_EVENT = "deleteEvent"
    ADD_MANUAL_EVENT = "addManualEvent"
    TOGGLE_EXPAND = "toggleExpand"
    IMPORT_STEPS = "importSteps"


class RecordActionPayload(BaseModel):
    """Body of a recordAction(event) call from the page"""
    model_config = ConfigDict(populate_by_name=True)

    type: EventType
    selector_type: Optional[str] = Field(default=None, alias="selectorType")
    selector: Optional[str] = None
    value: Optional[str] = None
    url: Optional[str] = None


class ControlAction(BaseModel):
    """Body of a controlAction(action) call from the page"""
    type: ControlActionType
    payload: Any = None


class EventUpdate(BaseModel):
    """Payload of updateEvent"""
    id: str
    field: str
    value: Optional[str] = None


class ManualEventRequest(BaseModel):
    """Payload of addManualEvent"""
    selector: Optional[str] = None
    value: Optional[str] = None


class ImportedStep(BaseModel):
    """One entry of an importSteps payload"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    raw_code: str = Field(alias="rawCode")
