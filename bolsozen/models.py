"""Domain records for the BolsoZen budgeting dashboard.

Rows fetched from the persistence store are represented by the dataclasses
in the first half of this module.  The second half holds the derived
records handed to the presentation layer.  Amounts are plain floats in
reais, dates are :class:`datetime.date` instances and identifiers are
strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

ACCOUNT_TYPES = ('checking', 'savings', 'credit_card', 'investment', 'cash', 'other')
CATEGORY_TYPES = ('spending', 'saving', 'income')
TRANSACTION_TYPES = ('income', 'expense', 'transfer')
INBOX_STATUSES = ('pending', 'confirmed', 'rejected')
GOAL_TYPES = ('save_by_date', 'save_monthly', 'spend_monthly')
GOAL_CADENCES = ('monthly', 'weekly')

# Goal type names used by the first version of the goals table.
LEGACY_GOAL_TYPES = {
    'saving_builder': 'save_monthly',
    'target_by_date': 'save_by_date',
    'monthly_funding': 'spend_monthly',
}

GOAL_TYPE_LABELS = {
    'save_by_date': 'Meta com Prazo',
    'save_monthly': 'Construtor de Poupança',
    'spend_monthly': 'Contribuição Mensal',
}


class UnknownGoalTypeError(ValueError):
    """Raised when a goal carries a type the engine does not know."""


class UnknownCategoryTypeError(ValueError):
    """Raised when a category carries a type outside ``CATEGORY_TYPES``."""


@dataclass
class Account:
    id: str
    user_id: str
    name: str
    type: str = 'checking'
    balance: float = 0.0
    is_active: bool = True


@dataclass
class Category:
    id: str
    user_id: str
    name: str
    type: str = 'spending'
    group_id: Optional[str] = None
    budgeted_amount: float = 0.0
    rollover_enabled: bool = False
    color: str = '#6B7280'
    icon: str = 'package'
    sort_order: int = 0
    is_hidden: bool = False


@dataclass
class CategoryGroup:
    id: str
    user_id: str
    name: str
    sort_order: int = 0
    categories: List[Category] = field(default_factory=list)


@dataclass
class Budget:
    id: str
    user_id: str
    category_id: str
    month: date         # first day of the month
    budgeted_amount: float = 0.0
    rollover_amount: float = 0.0
    notes: Optional[str] = None


@dataclass
class Transaction:
    id: str
    user_id: str
    account_id: str
    amount: float       # negative = expense
    type: str           # 'income' | 'expense' | 'transfer'
    date: date
    description: str = ''
    category_id: Optional[str] = None
    is_cleared: bool = False
    notes: Optional[str] = None


@dataclass
class InboxItem:
    id: str
    user_id: str
    description: str
    amount: float
    date: date
    source: str = 'manual'
    suggested_category_id: Optional[str] = None
    status: str = 'pending'


@dataclass
class Goal:
    id: str
    user_id: str
    name: str
    target_amount: float
    type: str = 'save_monthly'
    category_id: Optional[str] = None
    description: str = ''
    current_amount: float = 0.0
    initial_amount: float = 0.0
    due_date: Optional[date] = None
    cadence: Optional[str] = None
    monthly_contribution: float = 0.0
    is_achieved: bool = False
    is_active: bool = True
    note: str = ''
    color: str = '#10B981'


@dataclass
class GoalContribution:
    id: str
    goal_id: str
    amount: float       # positive = deposit, negative = withdrawal
    date: date
    note: Optional[str] = None


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BudgetSummary:
    month: date
    total_balance: float
    total_budgeted: float
    total_spent: float
    total_income: float
    available_amount: float
    age_of_money: int = 0


@dataclass(frozen=True)
class CategoryProgress:
    category_id: str
    name: str
    type: str
    budgeted: float
    spent: float
    available: float
    usage_ratio: float          # unclamped spent/budgeted in percent
    progress_percentage: float  # clamped to [0, 100] for the progress bar
    status: str


@dataclass(frozen=True)
class SavingsClassification:
    income: float
    total_expenses: float
    available: float
    savings_percentage: float
    band: str
    recommendation: str


@dataclass(frozen=True)
class GoalProgress:
    goal_id: str
    name: str
    type: str
    target_amount: float
    current_amount: float
    progress_percentage: float
    remaining_amount: float
    achieved: bool
    estimated_completion_date: Optional[date] = None
    days_remaining: Optional[int] = None
    due_status: Optional[str] = None
    monthly_required_amount: Optional[float] = None


@dataclass(frozen=True)
class AgeOfMoney:
    days: int
    matched_amount: float = 0.0
    unmatched_amount: float = 0.0
