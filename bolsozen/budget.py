"""Monthly budget aggregation.

This module turns the category, budget and transaction rows of a single
user into the figures shown on the budget screen: total balance, total
budgeted, total spent, the available amount and the per-category progress
rows with their colour-coding status.

All functions are pure.  Month boundaries are true calendar boundaries.
"""

from __future__ import annotations

import math
from dataclasses import asdict
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .dates import MonthLike, month_bounds, month_start
from .models import (
    CATEGORY_TYPES,
    Account,
    Budget,
    BudgetSummary,
    Category,
    CategoryProgress,
    Transaction,
    UnknownCategoryTypeError,
)

STATUS_OVER_BUDGET = 'over_budget'
STATUS_NEAR_LIMIT = 'near_limit'
STATUS_WATCH = 'watch'
STATUS_ON_TRACK = 'on_track'

NEAR_LIMIT_THRESHOLD = 90.0
WATCH_THRESHOLD = 70.0

STATUS_COLORS = {
    STATUS_OVER_BUDGET: '#EF4444',
    STATUS_NEAR_LIMIT: '#F97316',
    STATUS_WATCH: '#EAB308',
    STATUS_ON_TRACK: '#22C55E',
}


def total_balance(accounts: Iterable[Account]) -> float:
    """Sum the balances of all active accounts."""
    return float(sum(account.balance for account in accounts if account.is_active))


def budgets_for_month(budgets: Iterable[Budget], month: MonthLike) -> Dict[str, Budget]:
    """Index the budget rows of ``month`` by category id."""
    first = month_start(month)
    return {b.category_id: b for b in budgets if month_start(b.month) == first}


def budgeted_for_category(category: Category, budget: Optional[Budget]) -> float:
    """Amount budgeted for a category in a month.

    A monthly Budget row overrides the category default and carries its
    rollover; without a row the category's default amount applies.
    """
    if budget is not None:
        return float(budget.budgeted_amount) + float(budget.rollover_amount or 0.0)
    return float(category.budgeted_amount or 0.0)


def total_budgeted(categories: Iterable[Category], budgets: Iterable[Budget], month: MonthLike) -> float:
    lookup = budgets_for_month(budgets, month)
    return float(sum(budgeted_for_category(c, lookup.get(c.id)) for c in categories))


def _month_expenses(transactions: Iterable[Transaction], month: MonthLike) -> pd.DataFrame:
    first, last = month_bounds(month)
    rows = [
        {'category_id': t.category_id, 'amount': abs(float(t.amount))}
        for t in transactions
        if t.type == 'expense' and first <= t.date <= last
    ]
    return pd.DataFrame(rows, columns=['category_id', 'amount'])


def spent_by_category(transactions: Iterable[Transaction], month: MonthLike) -> Dict[str, float]:
    """Absolute expense totals of ``month`` grouped by category id.

    Uncategorised expenses are left out here; they still count towards
    :func:`total_spent`.
    """
    expenses = _month_expenses(transactions, month)
    categorised = expenses.dropna(subset=['category_id'])
    if categorised.empty:
        return {}
    grouped = categorised.groupby('category_id')['amount'].sum()
    return {str(k): float(v) for k, v in grouped.items()}


def total_spent(transactions: Iterable[Transaction], month: MonthLike) -> float:
    expenses = _month_expenses(transactions, month)
    return float(expenses['amount'].sum()) if not expenses.empty else 0.0


def total_income(transactions: Iterable[Transaction], month: MonthLike) -> float:
    first, last = month_bounds(month)
    return float(sum(
        float(t.amount) for t in transactions
        if t.type == 'income' and first <= t.date <= last
    ))


def usage_ratio(spent: float, budgeted: float) -> float:
    """Spent as a percentage of budgeted, unclamped; 0 when nothing is budgeted."""
    if budgeted <= 0:
        return 0.0
    return spent / budgeted * 100.0


def progress_percentage(spent: float, budgeted: float) -> float:
    """Progress-bar width in percent, clamped to ``[0, 100]``."""
    return max(0.0, min(100.0, usage_ratio(spent, budgeted)))


def classify_budget_status(available: float, percentage: float) -> str:
    """Colour-coding state for a category row."""
    if available < 0:
        return STATUS_OVER_BUDGET
    if percentage >= NEAR_LIMIT_THRESHOLD:
        return STATUS_NEAR_LIMIT
    if percentage >= WATCH_THRESHOLD:
        return STATUS_WATCH
    return STATUS_ON_TRACK


def _check_category_type(category_type: str) -> None:
    if category_type not in CATEGORY_TYPES:
        raise UnknownCategoryTypeError(f"Unknown category type: {category_type!r}")


def category_progress(
    categories: Sequence[Category],
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    month: MonthLike,
) -> List[CategoryProgress]:
    """Build one progress row per category, in the order given."""
    lookup = budgets_for_month(budgets, month)
    spent_lookup = spent_by_category(transactions, month)

    rows: List[CategoryProgress] = []
    for category in categories:
        _check_category_type(category.type)
        budgeted = budgeted_for_category(category, lookup.get(category.id))
        spent = spent_lookup.get(category.id, 0.0)
        available = budgeted - spent
        ratio = usage_ratio(spent, budgeted)
        rows.append(CategoryProgress(
            category_id=category.id,
            name=category.name,
            type=category.type,
            budgeted=budgeted,
            spent=spent,
            available=available,
            usage_ratio=ratio,
            progress_percentage=progress_percentage(spent, budgeted),
            status=classify_budget_status(available, ratio),
        ))
    return rows


def group_by_type(rows: Iterable[CategoryProgress]) -> Dict[str, List[CategoryProgress]]:
    """Partition progress rows into the spending/saving/income classes."""
    grouped: Dict[str, List[CategoryProgress]] = {t: [] for t in CATEGORY_TYPES}
    for row in rows:
        _check_category_type(row.type)
        grouped[row.type].append(row)
    return grouped


def summarize_budget(
    accounts: Iterable[Account],
    categories: Sequence[Category],
    budgets: Iterable[Budget],
    transactions: Sequence[Transaction],
    month: MonthLike,
    age_of_money: int = 0,
) -> BudgetSummary:
    """Compute the monthly summary card figures.

    ``available_amount`` keeps its sign: an over-budget month reports a
    negative value.
    """
    budgeted = total_budgeted(categories, budgets, month)
    spent = total_spent(transactions, month)
    return BudgetSummary(
        month=month_start(month),
        total_balance=total_balance(accounts),
        total_budgeted=budgeted,
        total_spent=spent,
        total_income=total_income(transactions, month),
        available_amount=budgeted - spent,
        age_of_money=age_of_money,
    )


def overall_progress(summary: BudgetSummary) -> Optional[int]:
    """Share of the month's budget already spent, for the summary bar.

    Rounded half up and capped at 100; ``None`` when nothing is budgeted.
    """
    if summary.total_budgeted <= 0:
        return None
    ratio = summary.total_spent / summary.total_budgeted * 100.0
    return max(0, min(int(math.floor(ratio + 0.5)), 100))


def progress_dataframe(rows: Sequence[CategoryProgress]) -> pd.DataFrame:
    """Tabular view of progress rows for the category table and charts."""
    columns = [
        'category_id', 'name', 'type', 'budgeted', 'spent', 'available',
        'usage_ratio', 'progress_percentage', 'status',
    ]
    return pd.DataFrame([asdict(row) for row in rows], columns=columns)
