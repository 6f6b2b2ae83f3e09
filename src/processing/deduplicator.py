"""
Read-only view over episode memory used to avoid repeating coverage.
"""
import logging
from datetime import date, timedelta
from typing import Iterator, Optional, Set

from core.schemas import EpisodeMemory, EpisodeRecord

logger = logging.getLogger(__name__)

CONTINUITY_DAYS = 7
ARTICLE_LOOKBACK_DAYS = 30


def normalize_title(title: str) -> str:
    return title.strip().lower()


class DeduplicationIndex:
    """
    Built from one EpisodeMemory snapshot. Windows are whole days: a record
    is in window when its date is on or after `today - window_days`.
    """

    def __init__(self, memory: EpisodeMemory, today: Optional[date] = None):
        self.memory = memory
        self.today = today or date.today()

    def _in_window(self, window_days: int) -> Iterator[EpisodeRecord]:
        cutoff = self.today - timedelta(days=window_days)
        for record in self.memory.episodes:
            try:
                record_date = date.fromisoformat(record.date)
            except ValueError:
                logger.debug(f"Ignoring episode with unparseable date: {record.date!r}")
                continue
            if record_date >= cutoff:
                yield record

    def covered_articles(self, window_days: int = ARTICLE_LOOKBACK_DAYS) -> Set[str]:
        covered: Set[str] = set()
        for record in self._in_window(window_days):
            covered.update(record.articles or [])
        return covered

    def was_covered(self, title: str, window_days: int = ARTICLE_LOOKBACK_DAYS) -> bool:
        """Exact match after trimming and lowercasing. Near-duplicates are not detected."""
        needle = normalize_title(title)
        return any(normalize_title(covered) == needle for covered in self.covered_articles(window_days))

    def continuity_digest(self, window_days: int = CONTINUITY_DAYS) -> str:
        """
        One line per recent episode, newest first. Empty string when there is
        no recent history, which callers treat as "no prior context".
        """
        lines = []
        for record in self._in_window(window_days):
            line = f"{record.date}: {record.summary}"
            if record.key_topics:
                line += f" [Topics: {', '.join(record.key_topics)}]"
            lines.append(line)
        return "\n".join(lines)
