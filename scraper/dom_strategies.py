"""Heuristic extraction of events from the rendered calendar markup."""
import logging
import re
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

from processor.models import RawCandidate, Source

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200

DATE_TOKEN = re.compile(
    r'\b(?:\d{4}[/-]\d{1,2}[/-]\d{1,2}|\d{1,2}[/-]\d{1,2}[/-]\d{2,4})\b'
)
NUMERIC_ONLY = re.compile(r'^\d+$')
EDGE_SEPARATORS = ' \t\r\n-\u2013\u2014:|,;()[]'

FC_EVENT_SELECTOR = '.fc-event, .fc-daygrid-event, .fc-timegrid-event'
FC_TITLE_SELECTOR = '.fc-event-title, .fc-title, .fc-event-title-container'
DAY_CELL_SELECTOR = '.fc-day, .fc-daygrid-day, td[data-date]'
DAY_CELL_CLASSES = {'fc-day', 'fc-daygrid-day'}
TABLE_ROW_SELECTOR = 'table tbody tr, .table tr'
EVENT_INDICATOR_SELECTOR = (
    '[class*="event"], [class*="vacation"], [class*="ausencia"], '
    '[class*="leave"], [class*="licencia"], [class*="permiso"], '
    '[class*="item"], .fc-event-title'
)


def is_plausible_title(title: Optional[str]) -> bool:
    """
    Check a DOM-derived title against common extraction noise.

    Args:
        title: Candidate title text

    Returns:
        False for empty, purely numeric or overly long titles
    """
    if not title:
        return False
    return not NUMERIC_ONLY.match(title) and len(title) <= MAX_TITLE_LENGTH


def extract_from_dom(html: Optional[str]) -> List[RawCandidate]:
    """
    Run every DOM heuristic over the page and combine their candidates.

    Args:
        html: Rendered page HTML

    Returns:
        List of RawCandidate objects from all DOM strategies
    """
    if not html or not html.strip():
        return []

    soup = BeautifulSoup(html, 'html.parser')
    strategies: List[Callable[[BeautifulSoup], List[RawCandidate]]] = [
        extract_fc_events,
        extract_table_rows,
        extract_list_items,
        extract_day_cells,
    ]

    candidates = []
    for strategy in strategies:
        try:
            found = strategy(soup)
        except Exception as e:
            logger.warning(f"DOM strategy {strategy.__name__} failed: {e}")
            continue
        logger.info(f"DOM strategy {strategy.__name__} found {len(found)} candidates")
        candidates.extend(found)

    return [
        c for c in candidates
        if is_plausible_title(c.title) and c.start_raw
    ]


def extract_fc_events(soup: BeautifulSoup) -> List[RawCandidate]:
    """
    Extract calendar widget event elements.

    Args:
        soup: Parsed page

    Returns:
        Candidates tagged as dom-fc-event
    """
    candidates = []

    for element in soup.select(FC_EVENT_SELECTOR):
        title_elem = element.select_one(FC_TITLE_SELECTOR)
        title = _text(title_elem) or _text(element)

        start = element.get('data-start') or element.get('data-date')
        end = element.get('data-end')

        if not start:
            day_cell = element.find_parent(_is_day_cell)
            start = day_cell.get('data-date') if day_cell else None

        if not start:
            time_elem = element.select_one('time[datetime]')
            start = time_elem.get('datetime') if time_elem else None

        candidates.append(
            RawCandidate(
                title=title,
                start_raw=start,
                end_raw=end,
                source=Source.DOM_FC_EVENT
            )
        )

    return candidates


def extract_table_rows(soup: BeautifulSoup) -> List[RawCandidate]:
    """
    Extract absences listed as table rows.

    Handles both [Name] [Start] [End] [Type] and [Date] [Name] [Type] rows.

    Args:
        soup: Parsed page

    Returns:
        Candidates tagged as dom-table
    """
    candidates = []

    for row in soup.select(TABLE_ROW_SELECTOR):
        cells = row.find_all('td')
        if len(cells) < 2:
            continue

        name = None
        start = None
        end = None

        for cell in cells:
            text = _text(cell)
            if not text:
                continue

            date_match = DATE_TOKEN.search(text)
            if date_match:
                if not start:
                    start = date_match.group(0)
                elif not end:
                    end = date_match.group(0)
            elif 3 < len(text) < 100 and not name:
                name = text

        if name and start:
            candidates.append(
                RawCandidate(
                    title=name,
                    start_raw=start,
                    end_raw=end,
                    source=Source.DOM_TABLE
                )
            )

    return candidates


def extract_list_items(soup: BeautifulSoup) -> List[RawCandidate]:
    """
    Extract list entries such as "Juan Pérez - 10/01/2024".

    Args:
        soup: Parsed page

    Returns:
        Candidates tagged as dom-list
    """
    candidates = []

    for item in soup.find_all('li'):
        if item.find('li'):
            continue

        text = item.get_text(' ', strip=True)
        tokens = DATE_TOKEN.findall(text)
        if len(tokens) != 1:
            continue

        title = DATE_TOKEN.sub(' ', text).strip(EDGE_SEPARATORS)
        if title:
            candidates.append(
                RawCandidate(
                    title=title,
                    start_raw=tokens[0],
                    end_raw=None,
                    source=Source.DOM_LIST
                )
            )

    return candidates


def extract_day_cells(soup: BeautifulSoup) -> List[RawCandidate]:
    """
    Extract absence indicators rendered inside dated day cells.

    Args:
        soup: Parsed page

    Returns:
        Candidates tagged as dom-daycell
    """
    candidates = []

    for cell in soup.select(DAY_CELL_SELECTOR):
        cell_date = cell.get('data-date')
        if not cell_date:
            continue

        for indicator in cell.select(EVENT_INDICATOR_SELECTOR):
            # Containers such as fc-daygrid-day-events hold several events
            if indicator.select_one(EVENT_INDICATOR_SELECTOR):
                continue
            title = _text(indicator)
            if title and len(title) > 2:
                candidates.append(
                    RawCandidate(
                        title=title,
                        start_raw=cell_date,
                        end_raw=None,
                        source=Source.DOM_DAYCELL
                    )
                )

    return candidates


def _is_day_cell(tag) -> bool:
    if tag.has_attr('data-date'):
        return True
    return bool(DAY_CELL_CLASSES.intersection(tag.get('class') or []))


def _text(element) -> str:
    if element is None:
        return ''
    return element.get_text().strip()
