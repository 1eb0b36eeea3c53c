"""
Payload models for the attendance endpoint.
"""

from enum import Enum
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shared.logging import get_logger

logger = get_logger("attendance.models")

ModelT = TypeVar("ModelT", bound=BaseModel)


class HistoryItem(BaseModel):
    """One visit: check-in time, optional check-out time, event name."""

    model_config = ConfigDict(extra="ignore")

    checkin: str
    checkout: Optional[str] = None
    event: str = ""


class LeaderboardItem(BaseModel):
    """One leaderboard row as computed by the endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    total: int = 0
    time_str: str = Field(default="", alias="timeStr")


class TitleResult(BaseModel):
    """An awarded title and its current holder."""

    model_config = ConfigDict(extra="ignore")

    title: str
    winner: str = ""


class Invite(BaseModel):
    """A broadcast message shown in the banner."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    timestamp: Optional[str] = None
    type: str = ""
    sender: str = Field(default="", alias="from")
    msg: str = ""


class ScanStatus(str, Enum):
    """Outcome of a scan submission."""
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    INFO = "info"
    ERROR = "error"
    IGNORED = "ignored"


class Notification(BaseModel):
    """Transient message for the user (toast)."""

    message: str
    kind: str = "info"  # success | error | info


class ScanOutcome(BaseModel):
    """Result of submitting a scanned event code."""

    status: ScanStatus
    event: str = ""
    message: str = ""
    raw_response: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (ScanStatus.CHECKED_IN, ScanStatus.CHECKED_OUT)

    def to_notification(self) -> Notification:
        if self.succeeded:
            kind = "success"
        elif self.status == ScanStatus.ERROR:
            kind = "error"
        else:
            kind = "info"
        return Notification(message=self.message, kind=kind)


def parse_list(model: Type[ModelT], data: Any) -> List[ModelT]:
    """Validate cached or fetched JSON as a list of models; anything else is an empty list."""
    if not isinstance(data, list):
        return []
    try:
        return TypeAdapter(List[model]).validate_python(data)
    except PydanticValidationError as e:
        logger.warning("Discarding payload with unexpected shape", model=model.__name__, error=str(e))
        return []


def dump_list(items: List[BaseModel]) -> List[dict]:
    """JSON-ready form, using the endpoint's field names."""
    return [item.model_dump(by_alias=True) for item in items]
