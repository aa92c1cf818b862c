"""Prioritized extraction of raw event candidates from a page snapshot."""
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from processor.date_normalizer import parse_date
from processor.models import PageSnapshot, RawCandidate
from scraper.dom_strategies import extract_from_dom
from scraper.payload_strategy import extract_from_payloads
from scraper.widget_strategy import extract_from_widget

logger = logging.getLogger(__name__)

Strategy = Callable[[PageSnapshot], List[RawCandidate]]


class EventExtractor:
    """Extractor trying each strategy in order until one yields events."""

    def __init__(self, url_keywords: Optional[Iterable[str]] = None):
        """
        Initialize the extractor.

        Args:
            url_keywords: Keywords selecting calendar API responses when
                traffic was captured indiscriminately, None (default) maps
                every supplied response
        """
        self.url_keywords = url_keywords

    @property
    def strategies(self) -> List[Tuple[str, Strategy]]:
        return [
            ('api', lambda s: extract_from_payloads(s.responses, self.url_keywords)),
            ('widget', lambda s: extract_from_widget(s.widget)),
            ('dom', lambda s: extract_from_dom(s.html)),
        ]

    def extract(self, snapshot: Optional[PageSnapshot]) -> List[RawCandidate]:
        """
        Extract raw candidates from a snapshot.

        Args:
            snapshot: Captured page content, may be None or empty

        Returns:
            Candidates of the first strategy with a usable result, or []
        """
        if snapshot is None:
            return []

        for name, strategy in self.strategies:
            try:
                candidates = strategy(snapshot)
            except Exception as e:
                logger.warning(f"Extraction strategy '{name}' failed: {e}")
                continue

            if self.is_accepted(candidates):
                logger.info(
                    f"Extraction strategy '{name}' produced "
                    f"{len(candidates)} candidates"
                )
                return candidates

            logger.info(f"Extraction strategy '{name}' found no usable events")

        logger.info("No events found by any extraction strategy")
        return []

    @staticmethod
    def is_accepted(candidates: List[RawCandidate]) -> bool:
        """Check that at least one candidate has a title and a parseable start."""
        return any(
            c.title and c.title.strip() and parse_date(c.start_raw)
            for c in candidates
        )
