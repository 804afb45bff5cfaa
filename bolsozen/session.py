"""Dashboard session state.

One ``DashboardSession`` is created per browser session and passed
explicitly to every page and to the telemetry helpers; nothing is kept in
module globals.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .dates import MonthLike, add_months, month_key, month_start

NAVIGATE_PREV = 'prev'
NAVIGATE_NEXT = 'next'


def _new_session_id() -> str:
    return f"session_{uuid.uuid4().hex}"


@dataclass
class DashboardSession:
    user_id: str
    current_month: date = field(default_factory=lambda: month_start(date.today()))
    session_id: str = field(default_factory=_new_session_id)
    selected_category_id: Optional[str] = None
    refresh_counter: int = 0

    def __post_init__(self) -> None:
        self.current_month = month_start(self.current_month)

    @property
    def month_key(self) -> str:
        return month_key(self.current_month)

    def set_month(self, month: MonthLike) -> None:
        self.current_month = month_start(month)
        self.refresh()

    def navigate_month(self, direction: str) -> date:
        """Move one month back (``prev``) or forward (``next``).

        Raises:
            ValueError: For any other direction
        """
        if direction == NAVIGATE_PREV:
            step = -1
        elif direction == NAVIGATE_NEXT:
            step = 1
        else:
            raise ValueError(f"Unknown navigation direction: {direction!r}")
        self.set_month(add_months(self.current_month, step))
        return self.current_month

    def select_category(self, category_id: Optional[str]) -> None:
        self.selected_category_id = category_id

    def refresh(self) -> int:
        """Invalidate derived values; pages recompute when the counter changes."""
        self.refresh_counter += 1
        return self.refresh_counter


def new_session(user_id: str, month: Optional[MonthLike] = None) -> DashboardSession:
    if month is None:
        return DashboardSession(user_id=user_id)
    return DashboardSession(user_id=user_id, current_month=month_start(month))
