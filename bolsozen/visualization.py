"""Plotly figures for the BolsoZen dashboard.

Each function takes records already derived by :mod:`bolsozen.analytics`
and only lays them out; no budget or goal arithmetic happens here.  All
functions return a ``plotly.graph_objects.Figure`` that Streamlit renders
via ``st.plotly_chart``.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .budget import STATUS_COLORS, progress_dataframe
from .currency import format_currency_display
from .models import BudgetSummary, CategoryProgress, GoalProgress

EMPTY_TITLE = "Sem dados para exibir"


def _empty_figure(title: str | None = None) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title or EMPTY_TITLE)
    return fig


def create_category_progress_chart(rows: Sequence[CategoryProgress], title: str | None = None) -> go.Figure:
    """Horizontal bars of spent vs. budgeted per category.

    Parameters
    ----------
    rows : sequence of CategoryProgress
        Progress rows as produced by ``budget.category_progress``.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar widths are the clamped progress percentage; colours follow the
        row status.
    """
    if not rows:
        return _empty_figure()
    df = progress_dataframe(rows).rename(columns={
        'name': 'Categoria', 'progress_percentage': 'Progresso', 'status': 'Status',
    })
    df['Texto'] = [
        f"{format_currency_display(spent)} de {format_currency_display(budgeted)}"
        for spent, budgeted in zip(df['spent'], df['budgeted'])
    ]
    fig = px.bar(
        df,
        x='Progresso',
        y='Categoria',
        orientation='h',
        color='Status',
        color_discrete_map=STATUS_COLORS,
        text='Texto',
    )
    fig.update_layout(
        title=title or "Progresso por categoria",
        xaxis_title="% do orçamento usado",
        xaxis_range=[0, 100],
        yaxis_title="",
        height=max(300, 40 * len(rows)),
    )
    return fig


def create_goal_progress_chart(goals: Sequence[GoalProgress], title: str | None = None) -> go.Figure:
    """Stacked bars showing how much of each goal is saved and what remains."""
    if not goals:
        return _empty_figure()
    names = [g.name for g in goals]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=names,
        y=[g.current_amount for g in goals],
        name="Guardado",
        marker_color='#10B981',
        text=[f"{g.progress_percentage:.0f}%" for g in goals],
    ))
    fig.add_trace(go.Bar(
        x=names,
        y=[g.remaining_amount for g in goals],
        name="Faltando",
        marker_color='#E5E7EB',
    ))
    fig.update_layout(
        title=title or "Progresso das metas",
        barmode='stack',
        yaxis_title="R$",
    )
    return fig


def create_summary_chart(summary: BudgetSummary | None, title: str | None = None) -> go.Figure:
    """Bar chart of the month's income, budgeted, spent and available figures."""
    if summary is None:
        return _empty_figure()
    labels = ["Receitas", "Orçado", "Gasto", "Disponível"]
    values = np.array([
        summary.total_income,
        summary.total_budgeted,
        summary.total_spent,
        summary.available_amount,
    ], dtype=float)
    if not np.any(values):
        return _empty_figure()
    colors = ['#3B82F6', '#8B5CF6', '#EF4444', '#10B981' if values[-1] >= 0 else '#DC2626']
    fig = go.Figure(go.Bar(
        x=labels,
        y=values,
        marker_color=colors,
        text=[format_currency_display(v) for v in values],
    ))
    fig.update_layout(
        title=title or f"Resumo de {summary.month.strftime('%m/%Y')}",
        yaxis_title="R$",
    )
    return fig


def create_daily_spending_chart(daily: pd.Series, title: str | None = None) -> go.Figure:
    """Cumulative spending over the days of the month."""
    if daily.empty or not daily.any():
        return _empty_figure()
    cumulative = daily.cumsum()
    df = pd.DataFrame({'Dia': cumulative.index, 'Acumulado': cumulative.values})
    fig = px.line(df, x='Dia', y='Acumulado')
    fig.update_layout(
        title=title or "Gastos acumulados no mês",
        xaxis_title="Dia",
        yaxis_title="R$",
    )
    return fig
