from datetime import date

import pytest

from bolsozen import budget
from bolsozen.models import Account, Budget, Category, Transaction, UnknownCategoryTypeError

USER = 'u1'


def _category(cid, budgeted=0.0, type='spending'):
    return Category(id=cid, user_id=USER, name=cid.title(), type=type, budgeted_amount=budgeted)


def _expense(amount, when, category_id=None):
    return Transaction(
        id=f"t-{when}-{amount}", user_id=USER, account_id='a1', amount=-abs(amount),
        type='expense', date=when, category_id=category_id,
    )


def _income(amount, when):
    return Transaction(id=f"i-{when}", user_id=USER, account_id='a1', amount=amount, type='income', date=when)


def test_total_balance_ignores_inactive_accounts():
    accounts = [
        Account(id='a1', user_id=USER, name='Conta', balance=1000.0),
        Account(id='a2', user_id=USER, name='Cartão', type='credit_card', balance=-250.0),
        Account(id='a3', user_id=USER, name='Antiga', balance=999.0, is_active=False),
    ]
    assert budget.total_balance(accounts) == 750.0


def test_category_without_budget_row_falls_back_to_default():
    categories = [_category('food', budgeted=200.0), _category('rent', budgeted=1000.0)]
    budgets = [Budget(id='b1', user_id=USER, category_id='rent', month=date(2024, 3, 1),
                      budgeted_amount=1200.0, rollover_amount=50.0)]
    assert budget.total_budgeted(categories, budgets, '2024-03') == 200.0 + 1250.0


def test_budget_rows_from_other_months_are_ignored():
    categories = [_category('food', budgeted=200.0)]
    budgets = [Budget(id='b1', user_id=USER, category_id='food', month=date(2024, 2, 1), budgeted_amount=999.0)]
    assert budget.total_budgeted(categories, budgets, '2024-03') == 200.0


def test_february_uses_true_month_end():
    transactions = [
        _expense(10, date(2023, 2, 28), 'food'),
        _expense(20, date(2023, 3, 1), 'food'),
        _expense(40, date(2023, 1, 31), 'food'),
    ]
    assert budget.total_spent(transactions, '2023-02') == 10.0
    assert budget.spent_by_category(transactions, date(2023, 2, 14)) == {'food': 10.0}


def test_uncategorised_expenses_count_only_towards_total():
    transactions = [_expense(30, date(2024, 3, 2), 'food'), _expense(15, date(2024, 3, 3))]
    assert budget.spent_by_category(transactions, '2024-03') == {'food': 30.0}
    assert budget.total_spent(transactions, '2024-03') == 45.0


def test_income_and_transfers_are_not_spending():
    transactions = [
        _income(5000, date(2024, 3, 5)),
        Transaction(id='x', user_id=USER, account_id='a1', amount=-300, type='transfer', date=date(2024, 3, 6)),
    ]
    assert budget.total_spent(transactions, '2024-03') == 0.0
    assert budget.total_income(transactions, '2024-03') == 5000.0


def test_zero_budget_zero_spent_is_not_nan():
    rows = budget.category_progress([_category('empty')], [], [], '2024-03')
    assert rows[0].progress_percentage == 0
    assert rows[0].available == 0
    assert rows[0].status == budget.STATUS_ON_TRACK


def test_progress_bar_clamped_but_available_keeps_sign():
    rows = budget.category_progress(
        [_category('food', budgeted=100.0)], [], [_expense(150, date(2024, 3, 9), 'food')], '2024-03'
    )
    row = rows[0]
    assert row.progress_percentage == 100.0
    assert row.usage_ratio == pytest.approx(150.0)
    assert row.available == -50.0
    assert row.status == budget.STATUS_OVER_BUDGET


@pytest.mark.parametrize(
    "spent, status",
    [(95, budget.STATUS_NEAR_LIMIT), (90, budget.STATUS_NEAR_LIMIT), (70, budget.STATUS_WATCH),
     (69.99, budget.STATUS_ON_TRACK), (100, budget.STATUS_NEAR_LIMIT)],
)
def test_status_thresholds(spent, status):
    rows = budget.category_progress(
        [_category('food', budgeted=100.0)], [], [_expense(spent, date(2024, 3, 9), 'food')], '2024-03'
    )
    assert rows[0].status == status


def test_summary_available_may_be_negative():
    categories = [_category('food', budgeted=100.0)]
    transactions = [_expense(250, date(2024, 3, 2), 'food'), _income(1000, date(2024, 3, 1))]
    accounts = [Account(id='a1', user_id=USER, name='Conta', balance=750.0)]
    summary = budget.summarize_budget(accounts, categories, [], transactions, '2024-03', age_of_money=3)
    assert summary.month == date(2024, 3, 1)
    assert summary.total_budgeted == 100.0
    assert summary.total_spent == 250.0
    assert summary.total_income == 1000.0
    assert summary.available_amount == -150.0
    assert summary.age_of_money == 3


def test_unknown_category_type_is_loud():
    with pytest.raises(UnknownCategoryTypeError):
        budget.category_progress([_category('weird', type='bogus')], [], [], '2024-03')


def test_group_by_type_partitions_rows():
    categories = [_category('food'), _category('trip', type='saving'), _category('salary', type='income')]
    grouped = budget.group_by_type(budget.category_progress(categories, [], [], '2024-03'))
    assert [r.category_id for r in grouped['spending']] == ['food']
    assert [r.category_id for r in grouped['saving']] == ['trip']
    assert [r.category_id for r in grouped['income']] == ['salary']


def test_progress_dataframe_columns():
    rows = budget.category_progress([_category('food', budgeted=100.0)], [], [], '2024-03')
    df = budget.progress_dataframe(rows)
    assert list(df['category_id']) == ['food']
    assert 'status' in df.columns
    assert budget.progress_dataframe([]).empty


def _summary(budgeted, spent):
    return budget.BudgetSummary(month=date(2024, 3, 1), total_balance=0.0, total_budgeted=budgeted,
                                total_spent=spent, total_income=0.0, available_amount=budgeted - spent)


def test_overall_progress_rounds_half_up_and_caps():
    assert budget.overall_progress(_summary(8.0, 1.0)) == 13
    assert budget.overall_progress(_summary(1000.0, 333.0)) == 33
    assert budget.overall_progress(_summary(100.0, 250.0)) == 100
    assert budget.overall_progress(_summary(0.0, 50.0)) is None
