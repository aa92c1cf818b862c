"""Job entry point for BUK Calendar Sync."""
import json
import logging
import os
import sys
import time
from typing import Any, Dict

from processor.event_processor import EventProcessor
from processor.models import PageSnapshot
from scraper.extractor import EventExtractor
from scraper.portal_calendar import PortalCalendarScraper
from storage.ics_writer import IcsCalendarWriter


# Attributes every LogRecord carries; anything else was passed via extra
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord('', logging.INFO, '', 0, '', None, None))
) | {'message', 'asctime', 'taskName'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _split_urls(value: str) -> list[str]:
    return [url.strip() for url in value.split(',') if url.strip()]


def run_sync() -> Dict[str, Any]:
    """
    Scrape the portal calendar and write the .ics feed.

    Configuration is read from environment variables. When the portal
    cannot be reached an empty calendar is still written so that
    subscribers keep a valid feed.

    Returns:
        Response dict with statusCode and summary statistics
    """
    calendar_url = os.environ.get('PORTAL_CALENDAR_URL', 'https://costasur.buk.cl/calendar')
    api_urls = _split_urls(os.environ.get('PORTAL_API_URLS', ''))
    cookie = os.environ.get('PORTAL_COOKIE')
    portal_label = os.environ.get('PORTAL_LABEL', 'BUK')
    output_path = os.environ.get('OUTPUT_PATH', 'public/calendar.ics')
    calendar_name = os.environ.get('CALENDAR_NAME', 'BUK Calendar - Costasur')
    timezone_name = os.environ.get('CALENDAR_TIMEZONE', 'America/Santiago')
    uid_domain = os.environ.get('UID_DOMAIN', 'buk-calendar-sync')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Calendar sync started",
        extra={
            'calendar_url': calendar_url,
            'api_urls': len(api_urls),
            'output_path': output_path,
            'timeout_seconds': timeout_seconds
        }
    )

    try:
        scraper = PortalCalendarScraper(
            calendar_url=calendar_url,
            api_urls=api_urls,
            cookie=cookie,
            timeout=timeout_seconds
        )
        extractor = EventExtractor()
        processor = EventProcessor(portal_label=portal_label)
        writer = IcsCalendarWriter(
            output_path=output_path,
            calendar_name=calendar_name,
            timezone_name=timezone_name,
            uid_domain=uid_domain
        )

        # A failed fetch still produces a feed, built from an empty snapshot
        fetch_error = None
        try:
            logger.info("Fetching calendar snapshot")
            snapshot = scraper.fetch_snapshot()
        except Exception as e:
            logger.error(
                f"Failed to fetch calendar snapshot: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            fetch_error = e
            snapshot = PageSnapshot()

        logger.info("Extracting events")
        candidates = extractor.extract(snapshot)
        logger.info(f"Extracted {len(candidates)} raw candidates")

        logger.info("Processing and merging events")
        events = processor.process_events(candidates)
        logger.info(f"Processed {len(events)} calendar events")

        if not events:
            logger.info("No events found. Creating empty calendar...")

        try:
            logger.info("Writing calendar file")
            write_result = writer.write_events(events)
        except Exception as e:
            logger.error(
                f"Error writing calendar file: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            duration = time.time() - start_time
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Failed to write calendar file',
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'duration_seconds': round(duration, 2)
                })
            }

        duration = time.time() - start_time

        if fetch_error is not None:
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Failed to fetch calendar snapshot',
                    'error': str(fetch_error),
                    'error_type': type(fetch_error).__name__,
                    'note': 'Empty calendar written',
                    'output_path': write_result.output_path,
                    'duration_seconds': round(duration, 2)
                })
            }

        logger.info(
            "Calendar sync completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'candidates_extracted': len(candidates),
                'events_written': write_result.events_written
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Sync completed successfully',
                'statistics': {
                    'candidates_extracted': len(candidates),
                    'events_written': write_result.events_written,
                    'output_path': write_result.output_path,
                    'duration_seconds': round(duration, 2)
                }
            })
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Calendar sync failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Sync failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }


def main() -> int:
    """Run the sync and translate its status into an exit code."""
    response = run_sync()
    return 0 if response['statusCode'] == 200 else 1


if __name__ == '__main__':
    sys.exit(main())
