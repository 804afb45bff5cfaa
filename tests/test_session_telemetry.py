import logging
from datetime import date

import pytest

from bolsozen import telemetry
from bolsozen.session import DashboardSession, new_session


def test_session_normalises_month_and_ids_are_unique():
    first = new_session('u1', date(2024, 3, 17))
    second = new_session('u1', '2024-03')
    assert first.current_month == date(2024, 3, 1)
    assert first.month_key == '2024-03'
    assert first.session_id.startswith('session_')
    assert first.session_id != second.session_id


def test_navigate_month_crosses_year_and_refreshes():
    session = DashboardSession(user_id='u1', current_month=date(2024, 1, 1))
    assert session.navigate_month('prev') == date(2023, 12, 1)
    assert session.navigate_month('next') == date(2024, 1, 1)
    assert session.refresh_counter == 2


def test_navigate_month_rejects_unknown_direction():
    session = new_session('u1', '2024-01')
    with pytest.raises(ValueError):
        session.navigate_month('sideways')


def test_select_category():
    session = new_session('u1')
    session.select_category('cat-1')
    assert session.selected_category_id == 'cat-1'


def test_track_event_carries_session(caplog):
    session = new_session('u1', '2024-05')
    with caplog.at_level(logging.INFO, logger='bolsozen.telemetry'):
        event = telemetry.track_page_view(session, 'home', referrer='sidebar')
    assert event['event_name'] == 'page_view'
    assert event['session_id'] == session.session_id
    assert event['user_id'] == 'u1'
    assert event['month'] == '2024-05'
    assert event['properties'] == {'page_name': 'home', 'referrer': 'sidebar'}
    assert any('page_view' in record.getMessage() for record in caplog.records)


def test_track_error_describes_exception():
    session = new_session('u1')
    event = telemetry.track_error(session, LookupError('Goal not found: g1'), context='goals')
    assert event['event_name'] == 'error_occurred'
    assert event['properties']['error_type'] == 'LookupError'
    assert event['properties']['context'] == 'goals'


def test_funnel_helpers_name_events():
    session = new_session('u1')
    assert telemetry.track_goal_created(session, 'save_by_date')['event_name'] == 'goal_created'
    assert telemetry.track_inbox_decision(session, 'i1', 'rejected')['event_name'] == 'inbox_item_rejected'
    assert telemetry.track_month_navigation(session, 'prev')['properties'] == {'direction': 'prev'}
