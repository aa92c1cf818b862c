"""Event processor for cleaning, normalizing and merging scraped events."""
import logging
import re
from typing import List, Optional

from processor.date_normalizer import add_days, parse_date
from processor.event_merger import merge_events
from processor.models import CanonicalEvent, RawCandidate, Source

logger = logging.getLogger(__name__)

# Day numbers glued to the title by the calendar grid, e.g. "5Juan Pérez"
LEADING_DAY_NUMBER = re.compile(r'^[0-9]{1,2}(?=[^0-9])')
WHITESPACE_RUN = re.compile(r'\s+')


def clean_title(title: Optional[str]) -> str:
    """
    Strip day-number prefixes and collapse whitespace in an event title.

    Args:
        title: Raw title text

    Returns:
        Cleaned title, possibly empty
    """
    if not title:
        return ''

    cleaned = title
    while True:
        stripped = LEADING_DAY_NUMBER.sub('', cleaned, count=1)
        stripped = WHITESPACE_RUN.sub(' ', stripped).strip()
        if stripped == cleaned:
            return stripped
        cleaned = stripped


class EventProcessor:
    """Processor turning raw candidates into merged calendar events."""

    MAX_TITLE_LENGTH = 200

    def __init__(self, portal_label: str = 'BUK'):
        """
        Initialize the event processor.

        Args:
            portal_label: Portal name used in event descriptions
        """
        self.portal_label = portal_label

    def process_events(self, candidates: List[RawCandidate]) -> List[CanonicalEvent]:
        """
        Normalize raw candidates and merge the resulting events.

        Args:
            candidates: List of RawCandidate objects from the extractor

        Returns:
            List of merged CanonicalEvent objects
        """
        events = []

        for candidate in candidates:
            try:
                event = self.normalize(candidate)
                if event:
                    events.append(event)
            except Exception as e:
                logger.warning(
                    f"Failed to process candidate '{candidate.title}': {e}"
                )
                continue

        logger.info(
            f"Normalized {len(events)} valid events out of "
            f"{len(candidates)} candidates"
        )
        return merge_events(events)

    def normalize(self, candidate: RawCandidate) -> Optional[CanonicalEvent]:
        """
        Normalize a single candidate.

        Args:
            candidate: Raw candidate from one extraction strategy

        Returns:
            CanonicalEvent or None if the candidate must be dropped
        """
        start_date = parse_date(candidate.start_raw)
        if not start_date:
            logger.debug(
                f"Dropping '{candidate.title}': invalid start date "
                f"{candidate.start_raw!r}"
            )
            return None

        title = clean_title(candidate.title)[:self.MAX_TITLE_LENGTH].strip()
        if not title:
            logger.debug(f"Dropping candidate with empty title from {candidate.source.value}")
            return None

        return CanonicalEvent(
            title=title,
            start_date=start_date,
            end_date=self._resolve_end_date(candidate, start_date),
            all_day=candidate.is_all_day_hint,
            description=f"Imported from {self.portal_label} ({candidate.source.value})"
        )

    def _resolve_end_date(self, candidate: RawCandidate, start_date):
        """
        Resolve the exclusive end date for a candidate.

        API end dates are inclusive and get one day added. Widget and DOM end
        dates are already exclusive and are only kept when after the start.

        Args:
            candidate: Raw candidate
            start_date: Parsed start date

        Returns:
            Exclusive end date, always after start_date
        """
        end_date = parse_date(candidate.end_raw)

        if candidate.source is Source.API:
            if not end_date or end_date < start_date:
                end_date = start_date
            return add_days(end_date, 1)

        if not end_date or end_date <= start_date:
            return add_days(start_date, 1)
        return end_date
