"""HTTP snapshot fetcher for the BUK portal calendar."""
import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Sequence

import requests
from bs4 import BeautifulSoup

from processor.models import InterceptedResponse, PageSnapshot

logger = logging.getLogger(__name__)

INLINE_EVENTS_PATTERN = re.compile(
    r'__CALENDAR_EVENTS__\s*=\s*(\[.*?\])\s*;?\s*$', re.S | re.M
)


class InlineCalendarWidget:
    """Calendar widget backed by the event list embedded in the page."""

    def __init__(self, events: List[Dict[str, Any]]):
        self._events = events

    def get_events(self) -> List[Dict[str, Any]]:
        return list(self._events)


class PortalCalendarScraper:
    """Fetcher capturing the calendar page and its JSON endpoints."""

    USER_AGENT = (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    )
    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(
        self,
        calendar_url: str,
        api_urls: Sequence[str] = (),
        cookie: Optional[str] = None,
        timeout: int = 30
    ):
        """
        Initialize the portal scraper.

        Args:
            calendar_url: URL of the calendar page
            api_urls: JSON endpoints feeding the calendar
            cookie: Session cookie header value for an authenticated session
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.calendar_url = calendar_url
        self.api_urls = list(api_urls)
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers['User-Agent'] = self.USER_AGENT
        if cookie:
            self.session.headers['Cookie'] = cookie

    def fetch_snapshot(self) -> PageSnapshot:
        """
        Capture the calendar page and its API responses.

        Returns:
            PageSnapshot with HTML, decoded JSON responses and inline widget

        Raises:
            requests.RequestException: If the calendar page cannot be fetched
        """
        logger.info(f"Fetching calendar page {self.calendar_url}")
        html = self._get_with_retry(self.calendar_url).text

        responses = []
        for url in self.api_urls:
            response = self._fetch_json(url)
            if response:
                responses.append(response)

        snapshot = PageSnapshot(
            responses=responses,
            widget=self._find_inline_widget(html),
            html=html
        )
        logger.info(
            f"Captured snapshot with {len(responses)} API responses, "
            f"widget={'yes' if snapshot.widget else 'no'}"
        )
        return snapshot

    def _fetch_json(self, url: str) -> Optional[InterceptedResponse]:
        """
        Fetch one JSON endpoint.

        Args:
            url: Endpoint URL

        Returns:
            InterceptedResponse or None if the endpoint is unusable
        """
        try:
            response = self._get_with_retry(url)
        except requests.RequestException as e:
            logger.warning(f"Skipping API endpoint {url}: {e}")
            return None

        content_type = response.headers.get('Content-Type', '')
        if 'application/json' not in content_type:
            logger.warning(f"Skipping API endpoint {url}: content type {content_type!r}")
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Skipping API endpoint {url}: invalid JSON ({e})")
            return None

        logger.info(f"Captured calendar data from {url}")
        return InterceptedResponse(url=url, data=data)

    def _get_with_retry(self, url: str) -> requests.Response:
        """
        GET a URL with exponential backoff.

        Args:
            url: URL to fetch

        Returns:
            Successful response

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(f"GET {url} (attempt {attempt + 1}/{self.MAX_RETRIES})")
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise

    def _find_inline_widget(self, html: str) -> Optional[InlineCalendarWidget]:
        """
        Look for a calendar event list assigned in an inline script.

        Args:
            html: Calendar page HTML

        Returns:
            InlineCalendarWidget or None if no parseable list is embedded
        """
        soup = BeautifulSoup(html, 'html.parser')

        for script in soup.find_all('script'):
            source = script.string or ''
            match = INLINE_EVENTS_PATTERN.search(source)
            if not match:
                continue
            try:
                events = json.loads(match.group(1))
            except ValueError as e:
                logger.warning(f"Embedded calendar events are not valid JSON: {e}")
                continue
            if isinstance(events, list):
                logger.info(f"Found {len(events)} embedded calendar events")
                return InlineCalendarWidget(events)

        return None
