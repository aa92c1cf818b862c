"""Unit tests for PortalCalendarScraper."""
from unittest.mock import patch

import pytest
import responses
from requests.exceptions import RequestException, Timeout

from scraper.portal_calendar import InlineCalendarWidget, PortalCalendarScraper


CALENDAR_URL = "https://costasur.buk.cl/calendar"
API_URL = "https://costasur.buk.cl/api/vacaciones"

CALENDAR_HTML = """
<html>
    <head>
        <script>
            window.__CALENDAR_EVENTS__ = [{"title": "Ana", "start": "2024-02-01", "end": "2024-02-03"}];
        </script>
    </head>
    <body><div id="calendar" class="fc"></div></body>
</html>
"""


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip retry backoff delays."""
    with patch("scraper.portal_calendar.time.sleep") as mock_sleep:
        yield mock_sleep


class TestPortalCalendarScraper:
    """Test cases for PortalCalendarScraper class."""

    @responses.activate
    def test_fetch_snapshot_success(self):
        """Test capturing page HTML, API JSON and the inline widget."""
        responses.add(responses.GET, CALENDAR_URL, body=CALENDAR_HTML, status=200)
        responses.add(
            responses.GET,
            API_URL,
            json={"events": [{"title": "Luis", "start": "2024-03-01"}]},
            status=200
        )

        scraper = PortalCalendarScraper(CALENDAR_URL, api_urls=[API_URL], timeout=30)
        snapshot = scraper.fetch_snapshot()

        assert snapshot.html == CALENDAR_HTML
        assert len(snapshot.responses) == 1
        assert snapshot.responses[0].url == API_URL
        assert snapshot.responses[0].data["events"][0]["title"] == "Luis"
        assert isinstance(snapshot.widget, InlineCalendarWidget)
        assert snapshot.widget.get_events() == [
            {"title": "Ana", "start": "2024-02-01", "end": "2024-02-03"}
        ]

    @responses.activate
    def test_cookie_and_user_agent_are_sent(self):
        """Test that the session headers reach the portal."""
        responses.add(responses.GET, CALENDAR_URL, body="<html></html>", status=200)

        scraper = PortalCalendarScraper(CALENDAR_URL, cookie="_buk_session=abc")
        scraper.fetch_snapshot()

        headers = responses.calls[0].request.headers
        assert headers["Cookie"] == "_buk_session=abc"
        assert "Mozilla/5.0" in headers["User-Agent"]

    @responses.activate
    def test_fetch_snapshot_with_retry_success(self, no_sleep):
        """Test retry logic succeeds after initial failures."""
        responses.add(responses.GET, CALENDAR_URL, body="Server Error", status=500)
        responses.add(responses.GET, CALENDAR_URL, body="Server Error", status=500)
        responses.add(responses.GET, CALENDAR_URL, body=CALENDAR_HTML, status=200)

        scraper = PortalCalendarScraper(CALENDAR_URL)
        snapshot = scraper.fetch_snapshot()

        assert snapshot.html == CALENDAR_HTML
        assert len(responses.calls) == 3
        assert [c.args[0] for c in no_sleep.call_args_list] == [1, 2]

    @responses.activate
    def test_fetch_snapshot_all_retries_fail(self):
        """Test that exception is raised when all retries fail."""
        for _ in range(3):
            responses.add(responses.GET, CALENDAR_URL, body="Server Error", status=500)

        scraper = PortalCalendarScraper(CALENDAR_URL)

        with pytest.raises(RequestException):
            scraper.fetch_snapshot()

        assert len(responses.calls) == 3

    @responses.activate
    def test_fetch_snapshot_timeout(self):
        """Test timeout handling."""
        for _ in range(3):
            responses.add(responses.GET, CALENDAR_URL, body=Timeout("Request timed out"))

        scraper = PortalCalendarScraper(CALENDAR_URL)

        with pytest.raises(Timeout):
            scraper.fetch_snapshot()

        assert len(responses.calls) == 3

    @responses.activate
    def test_unusable_api_endpoints_are_skipped(self):
        """Test that failing or non-JSON endpoints do not abort the snapshot."""
        html_api = "https://costasur.buk.cl/api/calendar.html"
        broken_api = "https://costasur.buk.cl/api/ausencias"
        responses.add(responses.GET, CALENDAR_URL, body="<html></html>", status=200)
        responses.add(
            responses.GET, html_api, body="<html></html>",
            status=200, content_type="text/html"
        )
        responses.add(
            responses.GET, API_URL, body="{not json",
            status=200, content_type="application/json"
        )
        for _ in range(3):
            responses.add(responses.GET, broken_api, body="Forbidden", status=403)

        scraper = PortalCalendarScraper(
            CALENDAR_URL, api_urls=[html_api, API_URL, broken_api]
        )
        snapshot = scraper.fetch_snapshot()

        assert snapshot.responses == []
        assert snapshot.widget is None

    def test_inline_widget_with_invalid_json(self):
        """Test that a malformed embedded list is ignored."""
        html = "<script>window.__CALENDAR_EVENTS__ = [{title: 'Ana'}];</script>"

        scraper = PortalCalendarScraper(CALENDAR_URL)

        assert scraper._find_inline_widget(html) is None

    def test_no_inline_widget(self):
        """Test pages without embedded events."""
        scraper = PortalCalendarScraper(CALENDAR_URL)

        assert scraper._find_inline_widget("<script>var x = 1;</script>") is None
