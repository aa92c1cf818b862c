"""Extraction of events from intercepted JSON API responses."""
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from processor.models import InterceptedResponse, RawCandidate, Source

logger = logging.getLogger(__name__)

# Substrings identifying calendar endpoints among captured responses
CALENDAR_URL_KEYWORDS = (
    'calendar', 'event', 'vacacion', 'ausencia',
    'leave', 'time_off', 'holiday', 'feriado',
)

# Keys that wrap the event list in object payloads, in priority order
LIST_KEYS = ('events', 'data', 'results')

TITLE_ALIASES = (
    'title', 'name', 'nombre', 'employee_name', 'empleado',
    'description', 'descripcion',
)
START_ALIASES = (
    'start', 'start_date', 'fecha_inicio', 'startDate', 'begin', 'inicio',
)
END_ALIASES = (
    'end', 'end_date', 'fecha_fin', 'endDate', 'finish', 'fin',
)
ALL_DAY_ALIASES = ('allDay', 'all_day')


def first_alias(record: Mapping[str, Any], aliases: Sequence[str]) -> Optional[str]:
    """
    Return the first present, non-empty scalar value among alias keys.

    Args:
        record: Loosely typed payload record
        aliases: Candidate keys in priority order

    Returns:
        Value as a stripped string, or None
    """
    for key in aliases:
        value = record.get(key)
        if value is None or isinstance(value, (bool, dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def unwrap_records(data: Any) -> List[Any]:
    """
    Find the list of event records inside a payload.

    Args:
        data: Decoded JSON body

    Returns:
        List of records, empty if the shape is not recognized
    """
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping):
        for key in LIST_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
    return []


def is_calendar_url(url: str, keywords: Optional[Iterable[str]] = CALENDAR_URL_KEYWORDS) -> bool:
    """Check whether a response URL looks like a calendar endpoint."""
    if keywords is None:
        return True
    lowered = (url or '').lower()
    return any(keyword in lowered for keyword in keywords)


def extract_from_payloads(
    responses: List[InterceptedResponse],
    url_keywords: Optional[Iterable[str]] = CALENDAR_URL_KEYWORDS
) -> List[RawCandidate]:
    """
    Map intercepted API records to raw candidates.

    Args:
        responses: Captured JSON responses
        url_keywords: URL filter, None accepts every response

    Returns:
        List of RawCandidate objects tagged as api
    """
    candidates = []

    for response in responses:
        if not is_calendar_url(response.url, url_keywords):
            logger.debug(f"Ignoring non-calendar response: {response.url}")
            continue

        records = unwrap_records(response.data)
        logger.info(f"Found {len(records)} raw records in {response.url}")

        for record in records:
            candidate = _record_to_candidate(record)
            if candidate:
                candidates.append(candidate)
            else:
                logger.debug(f"Skipping payload record: {str(record)[:200]}")

    return candidates


def _record_to_candidate(record: Any) -> Optional[RawCandidate]:
    """
    Convert a single payload record.

    Args:
        record: One element of the payload list

    Returns:
        RawCandidate or None if title or start is missing
    """
    if not isinstance(record, Mapping):
        return None

    title = first_alias(record, TITLE_ALIASES)
    start = first_alias(record, START_ALIASES)
    if not title or not start:
        return None

    all_day = True
    for key in ALL_DAY_ALIASES:
        if record.get(key) is False:
            all_day = False
            break

    return RawCandidate(
        title=title,
        start_raw=start,
        end_raw=first_alias(record, END_ALIASES),
        source=Source.API,
        is_all_day_hint=all_day
    )
