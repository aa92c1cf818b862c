"""Data models for calendar event extraction."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterable, List, Optional, Protocol


class Source(str, Enum):
    """Extraction strategy that produced a candidate."""
    API = 'api'
    WIDGET_API = 'widget-api'
    DOM_FC_EVENT = 'dom-fc-event'
    DOM_TABLE = 'dom-table'
    DOM_LIST = 'dom-list'
    DOM_DAYCELL = 'dom-daycell'


@dataclass
class RawCandidate:
    """Raw event signal scraped from the portal."""
    title: str
    start_raw: Optional[str]
    end_raw: Optional[str]
    source: Source
    is_all_day_hint: bool = True


@dataclass(frozen=True)
class CanonicalEvent:
    """Normalized calendar event with an exclusive end date."""
    title: str
    start_date: date
    end_date: date
    all_day: bool
    description: str

    def __post_init__(self):
        if not self.title:
            raise ValueError("CanonicalEvent title must not be empty")
        if self.end_date <= self.start_date:
            raise ValueError(
                f"CanonicalEvent end_date {self.end_date} must be after "
                f"start_date {self.start_date}"
            )


@dataclass
class InterceptedResponse:
    """Decoded JSON body captured from a portal endpoint."""
    url: str
    data: Any


class CalendarWidget(Protocol):
    """Calendar widget exposing its in-memory event list."""

    def get_events(self) -> Iterable[Any]:
        ...


@dataclass
class PageSnapshot:
    """Everything captured from one visit to the portal calendar page."""
    responses: List[InterceptedResponse] = field(default_factory=list)
    widget: Optional[CalendarWidget] = None
    html: Optional[str] = None


@dataclass
class WriteResult:
    """Result of writing the calendar feed."""
    events_written: int
    output_path: str
