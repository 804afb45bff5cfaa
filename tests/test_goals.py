from datetime import date

import pytest

from bolsozen import goals
from bolsozen.models import Goal, GoalContribution, UnknownGoalTypeError

TODAY = date(2024, 3, 15)


def _goal(**overrides):
    data = dict(id='g1', user_id='u1', name='Viagem', target_amount=1000.0, type='save_monthly')
    data.update(overrides)
    return Goal(**data)


def _contribution(amount, cid='c1', goal_id='g1'):
    return GoalContribution(id=cid, goal_id=goal_id, amount=amount, date=TODAY)


def test_progress_from_stored_amount():
    result = goals.compute_goal_progress(_goal(current_amount=250.0), today=TODAY)
    assert result.progress_percentage == 25.0
    assert result.remaining_amount == 750.0
    assert not result.achieved


def test_contributions_rebuild_current_amount():
    goal = _goal(current_amount=999.0, initial_amount=100.0)
    contributions = [_contribution(200.0, 'c1'), _contribution(-50.0, 'c2'), _contribution(500.0, 'c3', goal_id='other')]
    result = goals.compute_goal_progress(goal, contributions, today=TODAY)
    assert result.current_amount == 250.0


def test_progress_is_idempotent():
    goal = _goal(current_amount=300.0, monthly_contribution=100.0, type='save_by_date', due_date=date(2024, 5, 1))
    contributions = [_contribution(300.0)]
    first = goals.compute_goal_progress(goal, contributions, today=TODAY)
    second = goals.compute_goal_progress(goal, contributions, today=TODAY)
    assert first == second


def test_positive_contribution_never_decreases_progress():
    goal = _goal(initial_amount=100.0)
    before = goals.compute_goal_progress(goal, [_contribution(100.0)], today=TODAY)
    after = goals.compute_goal_progress(goal, [_contribution(100.0), _contribution(50.0, 'c2')], today=TODAY)
    assert after.progress_percentage >= before.progress_percentage


def test_withdrawal_never_increases_progress():
    goal = _goal(initial_amount=100.0)
    before = goals.compute_goal_progress(goal, [_contribution(500.0)], today=TODAY)
    after = goals.compute_goal_progress(goal, [_contribution(500.0), _contribution(-80.0, 'c2')], today=TODAY)
    assert after.progress_percentage <= before.progress_percentage


def test_zero_target_does_not_divide():
    result = goals.compute_goal_progress(_goal(target_amount=0.0, current_amount=50.0), today=TODAY)
    assert result.progress_percentage == 0
    assert result.remaining_amount == 0
    assert result.achieved is False


def test_progress_capped_at_100_and_achieved():
    result = goals.compute_goal_progress(_goal(current_amount=1500.0), today=TODAY)
    assert result.progress_percentage == 100.0
    assert result.remaining_amount == 0.0
    assert result.achieved


def test_estimated_completion_date_rounds_months_up():
    result = goals.compute_goal_progress(_goal(current_amount=0.0, monthly_contribution=300.0), today=TODAY)
    # ceil(1000 / 300) = 4 months
    assert result.estimated_completion_date == date(2024, 7, 15)


def test_completion_date_clamps_day_of_month():
    assert goals.estimated_completion_date(100.0, 100.0, date(2024, 1, 31)) == date(2024, 2, 29)


def test_no_completion_date_without_monthly_contribution():
    result = goals.compute_goal_progress(_goal(current_amount=0.0), today=TODAY)
    assert result.estimated_completion_date is None


def test_due_date_urgency_only_for_save_by_date():
    urgent = goals.compute_goal_progress(
        _goal(type='save_by_date', due_date=date(2024, 4, 1)), today=TODAY
    )
    assert urgent.days_remaining == 17
    assert urgent.due_status == goals.DUE_URGENT
    assert urgent.monthly_required_amount == 1000.0

    monthly = goals.compute_goal_progress(_goal(due_date=date(2024, 4, 1)), today=TODAY)
    assert monthly.due_status is None
    assert monthly.days_remaining is None


def test_overdue_and_on_track_states():
    overdue = goals.compute_goal_progress(_goal(type='save_by_date', due_date=TODAY), today=TODAY)
    assert overdue.due_status == goals.DUE_OVERDUE

    later = goals.compute_goal_progress(
        _goal(type='save_by_date', due_date=date(2024, 9, 15), current_amount=400.0), today=TODAY
    )
    assert later.due_status == goals.DUE_ON_TRACK
    # 184 days -> ceil(184 / 30) = 7 months
    assert later.monthly_required_amount == pytest.approx(600.0 / 7)

    done = goals.compute_goal_progress(
        _goal(type='save_by_date', due_date=TODAY, current_amount=1000.0), today=TODAY
    )
    assert done.due_status == goals.DUE_ACHIEVED


def test_legacy_types_are_mapped():
    assert goals.normalize_goal_type('target_by_date') == 'save_by_date'
    result = goals.compute_goal_progress(_goal(type='saving_builder'), today=TODAY)
    assert result.type == 'save_monthly'


def test_unknown_goal_type_is_loud():
    with pytest.raises(UnknownGoalTypeError):
        goals.compute_goal_progress(_goal(type='lottery'), today=TODAY)


def test_compute_goals_progress_keeps_order_and_falls_back():
    first = _goal(id='g1', current_amount=100.0)
    second = _goal(id='g2', current_amount=900.0, initial_amount=0.0)
    results = goals.compute_goals_progress(
        [first, second], {'g1': [_contribution(500.0)]}, today=TODAY
    )
    assert [r.goal_id for r in results] == ['g1', 'g2']
    assert results[0].current_amount == 500.0
    assert results[1].current_amount == 900.0


def test_validate_goal_messages():
    errors = goals.validate_goal({'name': 'A', 'target_amount': 0, 'type': 'nope', 'color': 'red'})
    assert 'Nome deve ter pelo menos 2 caracteres' in errors
    assert 'Valor deve ser maior que zero' in errors
    assert 'Tipo de meta inválido' in errors
    assert 'Cor inválida' in errors
    assert goals.validate_goal({'name': 'Casa', 'target_amount': 50000, 'type': 'save_by_date'}) == []


def test_validate_contribution():
    assert goals.validate_contribution(0, TODAY) == ['Valor da contribuição deve ser diferente de zero']
    assert goals.validate_contribution(-20, TODAY) == []
    assert goals.validate_contribution(10, None) == ['Data inválida']


def test_describe_goal_status():
    assert goals.describe_goal_status(None) == 'Sem meta'
    progress = goals.compute_goal_progress(_goal(current_amount=250.0), today=TODAY)
    assert goals.describe_goal_status(progress) == 'Faltam R$ 750,00'
