"""Fetch-and-aggregate state for the expense analysis view.

A session owns the derived totals shown for one user.  Each
:meth:`ExpenseAnalysisSession.refresh` fetches the user's records,
aggregates them and replaces the previous result wholesale.  Refreshes
are numbered; a response that resolves after a newer refresh has started
is dropped instead of overwriting fresher state, so toggling the view
mode quickly cannot leave stale totals on screen.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from . import db
from .expense_analysis import MONTHLY, AggregationResult, aggregate, normalize_view_mode

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], List[Any]]
Clock = Callable[[], datetime]


class ExpenseAnalysisSession:
    """Expense analysis state for one user."""

    def __init__(
        self,
        user_id: Optional[str],
        fetcher: Optional[Fetcher] = None,
        clock: Optional[Clock] = None,
        view_mode: str = MONTHLY,
    ):
        self.user_id = user_id
        self._fetcher = fetcher or db.fetch_expenses
        self._clock = clock or datetime.now
        self._view_mode = normalize_view_mode(view_mode)
        self._generation = 0
        self._pending = 0
        self._records: List[Any] = []
        self._result: Optional[AggregationResult] = None

    @property
    def view_mode(self) -> str:
        return self._view_mode

    @property
    def result(self) -> Optional[AggregationResult]:
        return self._result

    @property
    def records(self) -> List[Any]:
        return list(self._records)

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def generation(self) -> int:
        return self._generation

    async def _fetch(self) -> List[Any]:
        if not self.user_id:
            return []
        return list(await asyncio.to_thread(self._fetcher, self.user_id))

    async def refresh(self, view_mode: Optional[str] = None) -> Optional[AggregationResult]:
        """Fetch and aggregate; return the committed result.

        Returns ``None`` when a newer refresh started before this one
        finished.  Fetch failures are logged and treated as an empty
        record list.
        """
        if view_mode is not None:
            self._view_mode = normalize_view_mode(view_mode)
        mode = self._view_mode

        self._generation += 1
        generation = self._generation
        self._pending += 1
        try:
            try:
                records = await self._fetch()
            except Exception:
                logger.exception("Error fetching expenses for user %s", self.user_id)
                records = []

            if generation != self._generation:
                logger.debug(
                    "Discarding refresh %d for user %s; refresh %d is newer",
                    generation, self.user_id, self._generation,
                )
                return None

            result = aggregate(records, mode, self._clock())
            self._records = records
            self._result = result
            logger.info(
                "Refreshed %s analysis for user %s from %d records",
                mode, self.user_id, len(records),
            )
            return result
        finally:
            self._pending -= 1

    async def set_view_mode(self, view_mode: str) -> Optional[AggregationResult]:
        """Switch the view mode and refresh."""
        return await self.refresh(view_mode)

    def reset(self) -> AggregationResult:
        """Replace state with an empty result for the current view mode."""
        self._generation += 1
        self._records = []
        self._result = aggregate([], self._view_mode, self._clock())
        return self._result
