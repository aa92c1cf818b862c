"""iCalendar feed writer for the normalized events."""
import hashlib
import logging
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import List, Union
from zoneinfo import ZoneInfo

from icalendar import Calendar, Event

from processor.models import CanonicalEvent, WriteResult

logger = logging.getLogger(__name__)


class IcsCalendarWriter:
    """Writer serializing events into an .ics file."""

    PRODID = '-//buk-calendar-sync//BUK Calendar//EN'

    def __init__(
        self,
        output_path: Union[str, Path],
        calendar_name: str = 'BUK Calendar',
        timezone_name: str = 'America/Santiago',
        uid_domain: str = 'buk-calendar-sync'
    ):
        """
        Initialize the calendar writer.

        Args:
            output_path: Destination .ics file
            calendar_name: Feed display name
            timezone_name: IANA zone the portal's civil dates belong to
            uid_domain: Domain suffix for event UIDs
        """
        self.output_path = Path(output_path)
        self.calendar_name = calendar_name
        self.timezone_name = timezone_name
        self.uid_domain = uid_domain
        logger.info(f"Initialized IcsCalendarWriter for file: {self.output_path}")

    def write_events(self, events: List[CanonicalEvent]) -> WriteResult:
        """
        Write the events to the output file, replacing its previous content.

        Args:
            events: Final list of merged events

        Returns:
            WriteResult with the number of events written
        """
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_bytes(self.render(events))

        logger.info(
            f"Generated ICS file with {len(events)} events at {self.output_path}"
        )
        return WriteResult(
            events_written=len(events),
            output_path=str(self.output_path)
        )

    def render(self, events: List[CanonicalEvent]) -> bytes:
        """
        Serialize events into iCalendar bytes.

        Args:
            events: Events to include

        Returns:
            Encoded VCALENDAR document
        """
        calendar = Calendar()
        calendar.add('prodid', self.PRODID)
        calendar.add('version', '2.0')
        calendar.add('calscale', 'GREGORIAN')
        calendar.add('x-wr-calname', self.calendar_name)
        calendar.add('x-wr-timezone', self.timezone_name)

        dtstamp = datetime.now(timezone.utc)
        for event in events:
            calendar.add_component(self._to_component(event, dtstamp))

        calendar.add_missing_timezones()
        return calendar.to_ical()

    def generate_uid(self, title: str, start_date: date) -> str:
        """
        Generate a UID that stays the same for an event across runs.

        Args:
            title: Event title
            start_date: Event start date

        Returns:
            UID in the form <md5 hex>@<uid_domain>
        """
        composite = f"{title}|{start_date.isoformat()}"
        digest = hashlib.md5(composite.encode('utf-8')).hexdigest()
        return f"{digest}@{self.uid_domain}"

    def _to_component(self, event: CanonicalEvent, dtstamp: datetime) -> Event:
        """
        Convert a CanonicalEvent to a VEVENT component.

        Args:
            event: Event to convert
            dtstamp: Generation timestamp

        Returns:
            icalendar Event
        """
        component = Event()
        component.add('uid', self.generate_uid(event.title, event.start_date))
        component.add('dtstamp', dtstamp)
        component.add('summary', event.title)
        component.add('description', event.description or '')

        if event.all_day:
            component.add('dtstart', event.start_date)
            component.add('dtend', event.end_date)
        else:
            zone = ZoneInfo(self.timezone_name)
            component.add('dtstart', datetime.combine(event.start_date, time.min, tzinfo=zone))
            component.add('dtend', datetime.combine(event.end_date, time.min, tzinfo=zone))

        return component
