from datetime import date

from bolsozen.age_of_money import age_of_money_record, calculate_age_of_money
from bolsozen.models import Transaction


def _txn(tid, amount, when, type, user='u1'):
    return Transaction(id=tid, user_id=user, account_id='a1', amount=amount, type=type, date=when)


def test_empty_history_is_zero():
    assert calculate_age_of_money([]) == 0


def test_no_expenses_or_no_income_is_zero():
    assert calculate_age_of_money([_txn('i', 100, date(2024, 1, 1), 'income')]) == 0
    assert calculate_age_of_money([_txn('e', -100, date(2024, 1, 1), 'expense')]) == 0


def test_single_lot_single_expense():
    history = [
        _txn('i', 1000, date(2024, 1, 1), 'income'),
        _txn('e', -200, date(2024, 1, 11), 'expense'),
    ]
    assert calculate_age_of_money(history) == 10


def test_fifo_consumes_oldest_lot_first():
    history = [
        _txn('i1', 100, date(2024, 1, 1), 'income'),
        _txn('i2', 100, date(2024, 1, 21), 'income'),
        _txn('e1', -150, date(2024, 1, 31), 'expense'),
    ]
    # 100 aged 30 days and 50 aged 10 days -> (3000 + 500) / 150
    record = age_of_money_record(history)
    assert record.days == 23
    assert record.matched_amount == 150
    assert record.unmatched_amount == 0


def test_weighted_average_rounds_half_up():
    history = [
        _txn('i1', 100, date(2024, 1, 1), 'income'),
        _txn('e1', -50, date(2024, 1, 2), 'expense'),
        _txn('e2', -50, date(2024, 1, 3), 'expense'),
    ]
    # (50 * 1 + 50 * 2) / 100 = 1.5
    assert calculate_age_of_money(history) == 2


def test_future_income_is_not_consumed():
    history = [
        _txn('e1', -100, date(2024, 1, 5), 'expense'),
        _txn('i1', 100, date(2024, 1, 10), 'income'),
        _txn('e2', -50, date(2024, 1, 20), 'expense'),
    ]
    record = age_of_money_record(history)
    assert record.days == 10
    assert record.unmatched_amount == 100
    assert record.matched_amount == 50


def test_filters_by_user_and_ignores_transfers():
    history = [
        _txn('i1', 100, date(2024, 1, 1), 'income'),
        _txn('t1', -100, date(2024, 1, 2), 'transfer'),
        _txn('e1', -100, date(2024, 1, 5), 'expense'),
        _txn('x1', 100, date(2023, 1, 1), 'income', user='other'),
    ]
    assert calculate_age_of_money(history, user_id='u1') == 4


def test_result_is_deterministic():
    history = [
        _txn('i1', 300, date(2024, 1, 1), 'income'),
        _txn('e1', -120, date(2024, 2, 1), 'expense'),
    ]
    assert age_of_money_record(history) == age_of_money_record(list(history))
