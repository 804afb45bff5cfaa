"""Dashboard analytics over one fetched snapshot.

``fetch_snapshot`` performs every store read for a (user, month) up front;
``DashboardAnalytics`` then derives the dashboard records from that
snapshot with the pure functions, each at most once per refresh.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from . import budget
from .age_of_money import age_of_money_record
from .dates import MonthLike, in_month, month_bounds, month_start
from .goals import compute_goals_progress
from .models import (
    Account,
    AgeOfMoney,
    Budget,
    BudgetSummary,
    Category,
    CategoryGroup,
    CategoryProgress,
    Goal,
    GoalContribution,
    GoalProgress,
    InboxItem,
    SavingsClassification,
    Transaction,
)
from .savings import classify_savings

logger = logging.getLogger(__name__)


@dataclass
class DomainSnapshot:
    """All rows the dashboard needs for one user and month."""

    user_id: str
    month: date
    accounts: List[Account] = field(default_factory=list)
    category_groups: List[CategoryGroup] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    budgets: List[Budget] = field(default_factory=list)
    month_transactions: List[Transaction] = field(default_factory=list)
    history: List[Transaction] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    contributions: Dict[str, List[GoalContribution]] = field(default_factory=dict)
    inbox_items: List[InboxItem] = field(default_factory=list)


def fetch_snapshot(store, user_id: str, month: MonthLike) -> DomainSnapshot:
    """Read everything for ``user_id`` and ``month`` from ``store``.

    ``history`` holds every transaction up to the end of the month so the
    age-of-money lots include income received in earlier months.
    """
    first, last = month_bounds(month)
    goals = store.get_goals(user_id)
    snapshot = DomainSnapshot(
        user_id=user_id,
        month=first,
        accounts=store.get_accounts(user_id),
        category_groups=store.get_category_groups(user_id),
        categories=store.get_categories(user_id),
        budgets=store.get_budgets(user_id, first),
        history=store.get_transactions(user_id, None, last),
        goals=goals,
        contributions={goal.id: store.get_goal_contributions(goal.id) for goal in goals},
        inbox_items=store.get_inbox_items(user_id),
    )
    snapshot.month_transactions = [t for t in snapshot.history if in_month(t.date, first)]
    logger.debug(
        "Fetched snapshot for %s %s: %d categories, %d transactions, %d goals",
        user_id, first, len(snapshot.categories), len(snapshot.month_transactions), len(goals),
    )
    return snapshot


class DashboardAnalytics:
    """Derived dashboard values for one snapshot."""

    def __init__(self, snapshot: DomainSnapshot, today: Optional[date] = None):
        self.snapshot = snapshot
        self.today = today or date.today()
        self._cache: Dict[str, object] = {}

    def _cached(self, key: str, compute):
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]

    def age_of_money_detail(self) -> AgeOfMoney:
        return self._cached(
            'age_of_money',
            lambda: age_of_money_record(self.snapshot.history, self.snapshot.user_id),
        )

    def age_of_money(self) -> int:
        return self.age_of_money_detail().days

    def budget_summary(self) -> BudgetSummary:
        s = self.snapshot
        return self._cached('summary', lambda: budget.summarize_budget(
            s.accounts, s.categories, s.budgets, s.month_transactions, s.month,
            age_of_money=self.age_of_money(),
        ))

    def category_progress(self) -> List[CategoryProgress]:
        s = self.snapshot
        return self._cached('progress', lambda: budget.category_progress(
            s.categories, s.budgets, s.month_transactions, s.month,
        ))

    def progress_by_type(self) -> Dict[str, List[CategoryProgress]]:
        return budget.group_by_type(self.category_progress())

    def savings(self) -> SavingsClassification:
        summary = self.budget_summary()
        return self._cached('savings', lambda: classify_savings(summary.total_income, summary.total_spent))

    def goal_progress(self) -> List[GoalProgress]:
        s = self.snapshot
        return self._cached('goals', lambda: compute_goals_progress(
            s.goals, s.contributions or None, today=self.today,
        ))

    def goal_progress_by_category(self) -> Dict[str, GoalProgress]:
        """First goal per category, for the goal column of the category table."""
        by_category: Dict[str, GoalProgress] = {}
        for goal, progress in zip(self.snapshot.goals, self.goal_progress()):
            if goal.category_id and goal.category_id not in by_category:
                by_category[goal.category_id] = progress
        return by_category

    def pending_inbox_count(self) -> int:
        return sum(1 for item in self.snapshot.inbox_items if item.status == 'pending')

    def daily_spending(self) -> pd.Series:
        """Expense totals per day of the month, zero-filled."""
        first, last = month_bounds(month_start(self.snapshot.month))
        index = pd.date_range(first, last, freq='D')
        expenses = [t for t in self.snapshot.month_transactions if t.type == 'expense']
        if not expenses:
            return pd.Series(np.zeros(len(index)), index=index, name='spent')
        frame = pd.DataFrame({
            'date': pd.to_datetime([t.date for t in expenses]),
            'spent': np.abs([t.amount for t in expenses]),
        })
        daily = frame.groupby('date')['spent'].sum()
        return daily.reindex(index, fill_value=0.0).rename('spent')
