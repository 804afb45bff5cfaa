from datetime import date

import pandas as pd

from bolsozen import visualization as viz
from bolsozen.models import BudgetSummary, CategoryProgress, GoalProgress


def _summary(**overrides):
    data = dict(month=date(2024, 3, 1), total_balance=1000.0, total_budgeted=1400.0,
                total_spent=1350.0, total_income=3000.0, available_amount=50.0)
    data.update(overrides)
    return BudgetSummary(**data)


def test_empty_inputs_render_placeholder():
    for fig in (
        viz.create_category_progress_chart([]),
        viz.create_goal_progress_chart([]),
        viz.create_summary_chart(None),
        viz.create_daily_spending_chart(pd.Series(dtype=float)),
    ):
        assert 'Sem dados' in fig.layout.title.text


def test_all_zero_summary_is_placeholder():
    fig = viz.create_summary_chart(_summary(total_budgeted=0.0, total_spent=0.0, total_income=0.0,
                                            available_amount=0.0))
    assert 'Sem dados' in fig.layout.title.text


def test_summary_chart_has_four_bars():
    fig = viz.create_summary_chart(_summary())
    assert list(fig.data[0].x) == ['Receitas', 'Orçado', 'Gasto', 'Disponível']
    assert fig.layout.title.text == 'Resumo de 03/2024'


def test_category_progress_chart_uses_clamped_percentage():
    row = CategoryProgress(category_id='c1', name='Mercado', type='spending', budgeted=100.0, spent=150.0,
                           available=-50.0, usage_ratio=150.0, progress_percentage=100.0, status='over_budget')
    fig = viz.create_category_progress_chart([row])
    assert fig.data[0].x[0] == 100.0


def test_goal_chart_stacks_saved_and_remaining():
    goal = GoalProgress(goal_id='g1', name='Reserva', type='save_monthly', target_amount=1000.0,
                        current_amount=400.0, progress_percentage=40.0, remaining_amount=600.0, achieved=False)
    fig = viz.create_goal_progress_chart([goal])
    assert fig.layout.barmode == 'stack'
    assert [trace.y[0] for trace in fig.data] == [400.0, 600.0]
