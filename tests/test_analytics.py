from datetime import date

import pytest

from bolsozen.analytics import DashboardAnalytics, DomainSnapshot, fetch_snapshot
from bolsozen.db import FinanceStore
from bolsozen.models import Account, Category, Goal, GoalContribution, InboxItem, Transaction
from bolsozen.savings import BAND_EXCELLENT

USER = 'u1'
TODAY = date(2024, 3, 20)


@pytest.fixture
def store(tmp_path):
    store = FinanceStore(tmp_path / 'analytics.db')
    account = store.create_account(USER, 'Conta', balance=0.0)
    food = store.create_category(USER, 'Mercado', budgeted_amount=200.0)
    rent = store.create_category(USER, 'Aluguel', budgeted_amount=1000.0)
    store.upsert_budget(USER, rent.id, '2024-03', 1200.0)
    store.create_transaction(USER, account.id, 3000.0, 'income', date(2024, 2, 25), 'Salário')
    store.create_transaction(USER, account.id, 3000.0, 'income', date(2024, 3, 25), 'Salário')
    store.create_transaction(USER, account.id, -1200.0, 'expense', date(2024, 3, 1), 'Aluguel', rent.id)
    store.create_transaction(USER, account.id, -150.0, 'expense', date(2024, 3, 10), 'Mercado', food.id)
    store.create_transaction(USER, account.id, -80.0, 'expense', date(2024, 4, 2), 'Mercado', food.id)
    goal = store.create_goal(USER, {'name': 'Reserva', 'target_amount': 1000, 'type': 'save_monthly',
                                    'category_id': food.id})
    store.create_goal_contribution(USER, goal.id, 400.0, date(2024, 3, 5))
    store.create_inbox_item(USER, 'Uber', -25.0, date(2024, 3, 12))
    return store


def test_fetch_snapshot_reads_everything_up_front(store):
    snapshot = fetch_snapshot(store, USER, '2024-03')
    assert snapshot.month == date(2024, 3, 1)
    assert len(snapshot.categories) == 2
    assert len(snapshot.month_transactions) == 3
    assert all(t.date <= date(2024, 3, 31) for t in snapshot.history)
    assert len(snapshot.inbox_items) == 1
    assert [c.amount for c in snapshot.contributions[snapshot.goals[0].id]] == [400.0]


def test_dashboard_records(store):
    analytics = DashboardAnalytics(fetch_snapshot(store, USER, '2024-03'), today=TODAY)
    summary = analytics.budget_summary()
    assert summary.total_budgeted == 1400.0
    assert summary.total_spent == 1350.0
    assert summary.total_income == 3000.0
    assert summary.available_amount == 50.0
    assert summary.total_balance == pytest.approx(4570.0)
    # both expenses are paid from the February salary
    assert summary.age_of_money == 6

    progress = {row.name: row for row in analytics.category_progress()}
    assert progress['Aluguel'].status == 'near_limit'
    assert progress['Mercado'].spent == 150.0

    assert analytics.savings().band == BAND_EXCELLENT
    [goal] = analytics.goal_progress()
    assert goal.current_amount == 400.0
    assert goal.progress_percentage == 40.0
    assert analytics.pending_inbox_count() == 1
    assert list(analytics.goal_progress_by_category()) == [analytics.snapshot.goals[0].category_id]


def test_derived_values_are_computed_once():
    snapshot = DomainSnapshot(user_id=USER, month=date(2024, 3, 1))
    analytics = DashboardAnalytics(snapshot, today=TODAY)
    first = analytics.budget_summary()
    snapshot.accounts.append(Account(id='a1', user_id=USER, name='Conta', balance=10.0))
    assert analytics.budget_summary() is first
    assert DashboardAnalytics(snapshot, today=TODAY).budget_summary().total_balance == 10.0


def test_empty_snapshot_is_all_zero():
    analytics = DashboardAnalytics(DomainSnapshot(user_id=USER, month=date(2024, 2, 1)), today=TODAY)
    summary = analytics.budget_summary()
    assert summary.available_amount == 0
    assert summary.age_of_money == 0
    assert analytics.category_progress() == []
    assert analytics.goal_progress() == []
    assert analytics.pending_inbox_count() == 0
    daily = analytics.daily_spending()
    assert len(daily) == 29
    assert daily.sum() == 0


def test_daily_spending_groups_by_day():
    snapshot = DomainSnapshot(
        user_id=USER,
        month=date(2024, 4, 1),
        month_transactions=[
            Transaction(id='t1', user_id=USER, account_id='a', amount=-10.0, type='expense', date=date(2024, 4, 3)),
            Transaction(id='t2', user_id=USER, account_id='a', amount=-5.0, type='expense', date=date(2024, 4, 3)),
            Transaction(id='t3', user_id=USER, account_id='a', amount=100.0, type='income', date=date(2024, 4, 4)),
        ],
    )
    daily = DashboardAnalytics(snapshot, today=TODAY).daily_spending()
    assert len(daily) == 30
    assert daily.loc['2024-04-03'] == 15.0
    assert daily.sum() == 15.0


def test_goal_progress_uses_contribution_history():
    goal = Goal(id='g1', user_id=USER, name='Casa', target_amount=500.0, current_amount=0.0, initial_amount=50.0)
    snapshot = DomainSnapshot(
        user_id=USER,
        month=date(2024, 3, 1),
        categories=[Category(id='c1', user_id=USER, name='Casa', type='saving')],
        goals=[goal],
        contributions={'g1': [GoalContribution(id='k', goal_id='g1', amount=200.0, date=TODAY)]},
        inbox_items=[InboxItem(id='i', user_id=USER, description='x', amount=-1.0, date=TODAY, status='confirmed')],
    )
    analytics = DashboardAnalytics(snapshot, today=TODAY)
    assert analytics.goal_progress()[0].current_amount == 250.0
    assert analytics.pending_inbox_count() == 0
