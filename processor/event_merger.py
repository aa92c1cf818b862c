"""Merging of duplicated and fragmented calendar events."""
import logging
from dataclasses import replace
from typing import Dict, List

from processor.models import CanonicalEvent

logger = logging.getLogger(__name__)

# Spans separated by at most this many days are treated as one absence
MAX_GAP_DAYS = 1


def merge_events(events: List[CanonicalEvent]) -> List[CanonicalEvent]:
    """
    Merge same-title events whose date ranges overlap or nearly touch.

    Events are grouped by case-insensitive title. Groups keep the order in
    which their titles were first seen and each group is returned in
    chronological order.

    Args:
        events: Normalized events, possibly fragmented into single days

    Returns:
        New list of merged CanonicalEvent objects
    """
    groups: Dict[str, List[CanonicalEvent]] = {}
    for event in events:
        groups.setdefault(event.title.casefold(), []).append(event)

    merged: List[CanonicalEvent] = []
    for group in groups.values():
        merged.extend(_merge_group(sorted(group, key=lambda e: e.start_date)))

    if len(merged) != len(events):
        logger.info(f"Merged {len(events)} events into {len(merged)}")
    return merged


def _merge_group(events: List[CanonicalEvent]) -> List[CanonicalEvent]:
    """
    Sweep one chronologically sorted group, folding adjacent spans.

    Args:
        events: Events sharing a title, sorted by start_date

    Returns:
        Merged events for the group
    """
    result: List[CanonicalEvent] = []

    for event in events:
        if not result:
            result.append(event)
            continue

        current = result[-1]
        gap = (event.start_date - current.end_date).days

        if gap <= MAX_GAP_DAYS:
            if event.end_date > current.end_date:
                result[-1] = replace(current, end_date=event.end_date)
        else:
            result.append(event)

    return result
