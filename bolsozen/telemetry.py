"""Event tracking for the dashboard.

Events are plain dictionaries emitted on the ``bolsozen.telemetry`` logger.
The session is always passed in; there is no hidden session registry.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .session import DashboardSession

logger = logging.getLogger("bolsozen.telemetry")


def build_event(session: DashboardSession, event_name: str, properties: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        'event_name': event_name,
        'properties': dict(properties or {}),
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'session_id': session.session_id,
        'user_id': session.user_id,
        'month': session.month_key,
    }


def track_event(session: DashboardSession, event_name: str, **properties: Any) -> Dict[str, Any]:
    """Build and log one event.

    Example:
        >>> track_event(session, 'goal_created', goal_type='save_by_date')
    """
    event = build_event(session, event_name, properties)
    logger.info("event %s %s", event_name, event)
    return event


def track_page_view(session: DashboardSession, page_name: str, **properties: Any) -> Dict[str, Any]:
    return track_event(session, 'page_view', page_name=page_name, **properties)


def track_month_navigation(session: DashboardSession, direction: str) -> Dict[str, Any]:
    return track_event(session, 'month_navigated', direction=direction)


def track_goal_created(session: DashboardSession, goal_type: str) -> Dict[str, Any]:
    return track_event(session, 'goal_created', goal_type=goal_type)


def track_contribution(session: DashboardSession, goal_id: str, amount: float) -> Dict[str, Any]:
    return track_event(session, 'goal_contribution', goal_id=goal_id, amount=amount)


def track_inbox_decision(session: DashboardSession, item_id: str, decision: str) -> Dict[str, Any]:
    return track_event(session, 'inbox_item_' + decision, item_id=item_id)


def track_simulation(session: DashboardSession, band: str, expense_count: int) -> Dict[str, Any]:
    return track_event(session, 'budget_simulated', band=band, expense_count=expense_count)


def track_error(session: DashboardSession, error: BaseException, context: str = 'unknown') -> Dict[str, Any]:
    return track_event(
        session,
        'error_occurred',
        error_type=type(error).__name__,
        error_message=str(error),
        context=context,
    )
