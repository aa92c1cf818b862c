"""Extraction of events straight from the calendar widget's event store."""
import logging
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from processor.models import CalendarWidget, RawCandidate, Source

logger = logging.getLogger(__name__)


def extract_from_widget(widget: Optional[CalendarWidget]) -> List[RawCandidate]:
    """
    Read events from a FullCalendar-like widget.

    Args:
        widget: Object exposing get_events(), or None

    Returns:
        List of RawCandidate objects tagged as widget-api
    """
    if widget is None:
        return []

    try:
        events = list(widget.get_events() or [])
    except Exception as e:
        logger.warning(f"Error reading calendar widget events: {e}")
        return []

    logger.info(f"Calendar widget returned {len(events)} events")

    candidates = []
    for event in events:
        title = _as_text(_field(event, 'title'))
        if not title:
            continue

        candidates.append(
            RawCandidate(
                title=title,
                start_raw=_as_text(_field(event, 'start', 'startStr')),
                end_raw=_as_text(_field(event, 'end', 'endStr')),
                source=Source.WIDGET_API,
                is_all_day_hint=_field(event, 'allDay') is not False
            )
        )

    return candidates


def _field(event: Any, *names: str) -> Any:
    """Return the first non-empty attribute or key among names."""
    for name in names:
        if isinstance(event, Mapping):
            value = event.get(name)
        else:
            value = getattr(event, name, None)
        if value is not None and value != '':
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    """Convert widget values, including date objects, to strings."""
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value).strip()
    return text or None
