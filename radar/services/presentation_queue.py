"""
Presentation queue for trend insights.

Holds at most one shown pattern. Candidates offered while one is showing
are dropped, not queued: one insight per idle cycle.
"""

from typing import Optional, Set
import logging

from radar.models.insights import TrendPattern

logger = logging.getLogger(__name__)


class PresentationQueue:
    """Zero-or-one slot for the insight currently on screen."""

    def __init__(self):
        self._current: Optional[TrendPattern] = None
        self._shown_keys: Set[str] = set()

    @property
    def current(self) -> Optional[TrendPattern]:
        return self._current

    @property
    def is_showing(self) -> bool:
        return self._current is not None

    def offer(self, pattern: TrendPattern) -> bool:
        """
        Try to show `pattern`.

        Returns False (pattern discarded) when another pattern is showing or
        the same kind/category was already shown.
        """
        if self._current is not None:
            logger.debug(f"Dropping {pattern.key}: {self._current.key} is showing")
            return False
        if pattern.key in self._shown_keys:
            logger.debug(f"Dropping {pattern.key}: already shown")
            return False

        self._current = pattern
        self._shown_keys.add(pattern.key)
        return True

    def dismiss(self) -> Optional[TrendPattern]:
        """Clear the slot; returns the pattern that was showing."""
        pattern, self._current = self._current, None
        return pattern

    # Expiry and dismissal clear the slot the same way
    expire = dismiss

    def clear_history(self) -> None:
        self._shown_keys.clear()
