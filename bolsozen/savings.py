"""Savings-rate classification and the landing-page budget simulator."""

from __future__ import annotations

from typing import Iterable, Optional

from .currency import parse_currency_input
from .models import SavingsClassification

BAND_EXCELLENT = 'excellent'
BAND_GOOD_START = 'good_start'
BAND_ATTENTION = 'attention'
BAND_ALERT = 'alert'

# (lower bound inclusive, band), evaluated top-down
SAVINGS_BANDS = (
    (20.0, BAND_EXCELLENT),
    (10.0, BAND_GOOD_START),
    (0.0, BAND_ATTENTION),
)

RECOMMENDATIONS = {
    BAND_EXCELLENT: 'Excelente! Você tem uma ótima taxa de poupança.',
    BAND_GOOD_START: 'Bom início! Tente aumentar sua poupança para 20%.',
    BAND_ATTENTION: 'Atenção! Sua poupança está baixa. Revise seus gastos.',
    BAND_ALERT: 'Alerta! Você está gastando mais do que ganha.',
}

BAND_COLORS = {
    BAND_EXCELLENT: '#16A34A',
    BAND_GOOD_START: '#2563EB',
    BAND_ATTENTION: '#CA8A04',
    BAND_ALERT: '#DC2626',
}


def savings_band(savings_percentage: float) -> str:
    for lower_bound, band in SAVINGS_BANDS:
        if savings_percentage >= lower_bound:
            return band
    return BAND_ALERT


def classify_savings(income: float, expenses: float) -> SavingsClassification:
    """Classify how much of ``income`` is left after ``expenses``.

    Args:
        income: Monthly net income
        expenses: Total monthly expenses

    Returns:
        SavingsClassification with the available amount, the savings
        percentage (0 when there is no income) and the recommendation band

    Example:
        >>> classify_savings(1000, 800).band
        'excellent'
    """
    available = income - expenses
    savings_percentage = (available / income) * 100 if income > 0 else 0.0
    band = savings_band(savings_percentage)
    return SavingsClassification(
        income=income,
        total_expenses=expenses,
        available=available,
        savings_percentage=savings_percentage,
        band=band,
        recommendation=RECOMMENDATIONS[band],
    )


def simulate_budget(income_text: Optional[str], expense_texts: Iterable[Optional[str]]) -> SavingsClassification:
    """Run the simulator over the raw text of its currency fields."""
    income = parse_currency_input(income_text)
    expenses = sum(parse_currency_input(text) for text in expense_texts)
    return classify_savings(income, float(expenses))
