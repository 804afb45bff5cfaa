"""Age of Money: how long money sits in the accounts before it is spent.

Income transactions form a queue of money lots ordered by date.  Each
expense, taken in date order, consumes the oldest lots that were already
received on the expense date.  Every real consumed is weighted by the
number of days between the lot and the expense, and the result is the
amount-weighted mean of those ages.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, Iterable, List, Optional

from .models import AgeOfMoney, Transaction

# Amounts below half a centavo are treated as exhausted.
_EPSILON = 0.005


def _ordered(transactions: List[Transaction], kind: str) -> List[Transaction]:
    rows = [t for t in transactions if t.type == kind and t.amount != 0]
    return sorted(rows, key=lambda t: t.date)


def age_of_money_record(transactions: Iterable[Transaction], user_id: Optional[str] = None) -> AgeOfMoney:
    """FIFO lot matching over a user's ledger.

    Expense amounts that no earlier income can cover are reported as
    ``unmatched_amount`` and do not affect the average.
    """
    ledger = [t for t in transactions if user_id is None or t.user_id == user_id]
    incomes = _ordered(ledger, 'income')
    expenses = _ordered(ledger, 'expense')
    if not incomes or not expenses:
        return AgeOfMoney(days=0)

    pending: Deque[List] = deque()  # [date, remaining amount]
    income_iter = iter(incomes)
    next_income = next(income_iter, None)

    weighted_days = 0.0
    matched = 0.0
    unmatched = 0.0
    for expense in expenses:
        while next_income is not None and next_income.date <= expense.date:
            pending.append([next_income.date, abs(float(next_income.amount))])
            next_income = next(income_iter, None)

        to_cover = abs(float(expense.amount))
        while to_cover > _EPSILON and pending:
            lot = pending[0]
            used = min(lot[1], to_cover)
            weighted_days += used * (expense.date - lot[0]).days
            matched += used
            lot[1] -= used
            to_cover -= used
            if lot[1] <= _EPSILON:
                pending.popleft()
        if to_cover > _EPSILON:
            unmatched += to_cover

    if matched <= 0:
        return AgeOfMoney(days=0, unmatched_amount=unmatched)
    days = int(math.floor(weighted_days / matched + 0.5))
    return AgeOfMoney(days=max(0, days), matched_amount=matched, unmatched_amount=unmatched)


def calculate_age_of_money(transactions: Iterable[Transaction], user_id: Optional[str] = None) -> int:
    """Average age in days of the money spent; 0 without enough history."""
    return age_of_money_record(transactions, user_id).days
