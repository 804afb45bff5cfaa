"""Goal progress engine.

Turns a goal row (and optionally its contribution history) into the
figures shown on the goal cards: percent complete, remaining amount,
projected completion date and, for date-bound goals, the due-date urgency.

``today`` is always passed in by the caller so results depend only on the
inputs.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .currency import format_currency_display
from .dates import add_months
from .models import (
    GOAL_CADENCES,
    GOAL_TYPES,
    LEGACY_GOAL_TYPES,
    Goal,
    GoalContribution,
    GoalProgress,
    UnknownGoalTypeError,
)

DUE_ACHIEVED = 'achieved'
DUE_OVERDUE = 'overdue'
DUE_URGENT = 'urgent'
DUE_ON_TRACK = 'on_track'

URGENCY_WINDOW_DAYS = 30
DAYS_PER_MONTH = 30

MIN_TARGET_AMOUNT = 0.01
MAX_TARGET_AMOUNT = 999_999_999
_HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')


def normalize_goal_type(goal_type: str) -> str:
    """Map a stored goal type onto ``GOAL_TYPES``.

    Raises:
        UnknownGoalTypeError: If the type is neither current nor legacy
    """
    if goal_type in GOAL_TYPES:
        return goal_type
    if goal_type in LEGACY_GOAL_TYPES:
        return LEGACY_GOAL_TYPES[goal_type]
    raise UnknownGoalTypeError(f"Unknown goal type: {goal_type!r}")


def current_amount_for(goal: Goal, contributions: Optional[Iterable[GoalContribution]] = None) -> float:
    """Running total of a goal.

    Without contributions the stored ``current_amount`` is trusted; with
    them, the total is rebuilt from the initial amount.
    """
    if contributions is None:
        return float(goal.current_amount)
    return float(goal.initial_amount) + float(sum(c.amount for c in contributions if c.goal_id == goal.id))


def estimated_completion_date(remaining: float, monthly_contribution: float, today: date) -> Optional[date]:
    if monthly_contribution <= 0 or remaining <= 0:
        return None
    months = math.ceil(remaining / monthly_contribution)
    return add_months(today, months)


def due_status(days_remaining: int, achieved: bool) -> str:
    if achieved:
        return DUE_ACHIEVED
    if days_remaining <= 0:
        return DUE_OVERDUE
    if days_remaining <= URGENCY_WINDOW_DAYS:
        return DUE_URGENT
    return DUE_ON_TRACK


def monthly_required_amount(remaining: float, days_remaining: int) -> float:
    """Rough monthly saving needed to meet a due date, for guidance text."""
    return remaining / max(1, math.ceil(days_remaining / DAYS_PER_MONTH))


def compute_goal_progress(
    goal: Goal,
    contributions: Optional[Sequence[GoalContribution]] = None,
    *,
    today: date,
) -> GoalProgress:
    goal_type = normalize_goal_type(goal.type)
    current = current_amount_for(goal, contributions)
    target = float(goal.target_amount)

    if target > 0:
        percentage = min(100.0, current / target * 100.0)
        remaining = max(0.0, target - current)
        achieved = current >= target
    else:
        percentage = 0.0
        remaining = 0.0
        achieved = False

    days_remaining = None
    status = None
    required = None
    if goal_type == 'save_by_date' and goal.due_date is not None:
        days_remaining = (goal.due_date - today).days
        status = due_status(days_remaining, achieved)
        required = monthly_required_amount(remaining, days_remaining)

    return GoalProgress(
        goal_id=goal.id,
        name=goal.name,
        type=goal_type,
        target_amount=target,
        current_amount=current,
        progress_percentage=percentage,
        remaining_amount=remaining,
        achieved=achieved,
        estimated_completion_date=estimated_completion_date(
            remaining, float(goal.monthly_contribution or 0.0), today
        ),
        days_remaining=days_remaining,
        due_status=status,
        monthly_required_amount=required,
    )


def compute_goals_progress(
    goals: Iterable[Goal],
    contributions_by_goal: Optional[Mapping[str, Sequence[GoalContribution]]] = None,
    *,
    today: date,
) -> List[GoalProgress]:
    """Progress for several goals, keeping their order.

    Goals missing from ``contributions_by_goal`` fall back to their stored
    ``current_amount``.
    """
    results = []
    for goal in goals:
        history = contributions_by_goal.get(goal.id) if contributions_by_goal else None
        results.append(compute_goal_progress(goal, history, today=today))
    return results


def describe_goal_status(progress: Optional[GoalProgress]) -> str:
    """Short label for the goal column of the category table."""
    if progress is None:
        return 'Sem meta'
    if progress.achieved:
        return 'Meta atingida! 🎉'
    if progress.due_status == DUE_OVERDUE:
        return f"Prazo vencido · faltam {format_currency_display(progress.remaining_amount)}"
    return f"Faltam {format_currency_display(progress.remaining_amount)}"


def validate_goal(data: Mapping[str, Any]) -> List[str]:
    """Check user-entered goal fields.

    Returns:
        A list of Portuguese error messages, empty when the data is valid
    """
    errors: List[str] = []
    name = str(data.get('name') or '').strip()
    if len(name) < 2:
        errors.append('Nome deve ter pelo menos 2 caracteres')
    elif len(name) > 100:
        errors.append('Nome muito longo')

    if len(str(data.get('description') or '')) > 500:
        errors.append('Descrição muito longa')

    try:
        target = float(data.get('target_amount'))
    except (TypeError, ValueError):
        target = 0.0
    if target < MIN_TARGET_AMOUNT:
        errors.append('Valor deve ser maior que zero')
    elif target > MAX_TARGET_AMOUNT:
        errors.append('Valor muito alto')

    goal_type = data.get('type')
    if goal_type not in GOAL_TYPES and goal_type not in LEGACY_GOAL_TYPES:
        errors.append('Tipo de meta inválido')

    cadence = data.get('cadence')
    if cadence and cadence not in GOAL_CADENCES:
        errors.append('Periodicidade inválida')

    monthly = data.get('monthly_contribution')
    if monthly is not None:
        try:
            if float(monthly) < 0:
                errors.append('Contribuição não pode ser negativa')
        except (TypeError, ValueError):
            errors.append('Contribuição inválida')

    color = data.get('color')
    if color and not _HEX_COLOR.match(str(color)):
        errors.append('Cor inválida')
    return errors


def validate_contribution(amount: Any, when: Any) -> List[str]:
    errors: List[str] = []
    try:
        value = float(amount)
    except (TypeError, ValueError):
        value = 0.0
    if value == 0 or not math.isfinite(value):
        errors.append('Valor da contribuição deve ser diferente de zero')
    if not isinstance(when, date):
        errors.append('Data inválida')
    return errors


def format_validation_errors(errors: Iterable[str]) -> str:
    return ', '.join(errors)


def progress_records(rows: Sequence[GoalProgress]) -> List[Dict[str, Any]]:
    """Plain dictionaries for ``st.dataframe`` and the goal chart."""
    return [
        {
            'Meta': row.name,
            'Tipo': row.type,
            'Atual': row.current_amount,
            'Alvo': row.target_amount,
            'Progresso (%)': row.progress_percentage,
            'Restante': row.remaining_amount,
            'Conclusão estimada': row.estimated_completion_date,
            'Dias restantes': row.days_remaining,
        }
        for row in rows
    ]
