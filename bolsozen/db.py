"""SQLite persistence for accounts, budgets, transactions, inbox and goals.

The derivation modules never touch this store; callers fetch rows here,
hand them to the pure functions and delegate every mutation back.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import pandas as pd

from .config import DB_PATH, ensure_data_directories
from .dates import MonthLike, month_start, parse_date
from .defaults import get_default_category_groups, get_default_goals
from .goals import format_validation_errors, normalize_goal_type, validate_contribution, validate_goal
from .models import (
    ACCOUNT_TYPES,
    CATEGORY_TYPES,
    INBOX_STATUSES,
    TRANSACTION_TYPES,
    Account,
    Budget,
    Category,
    CategoryGroup,
    Goal,
    GoalContribution,
    InboxItem,
    Transaction,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    balance REAL NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS category_groups (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    group_id TEXT REFERENCES category_groups(id) ON DELETE SET NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    budgeted_amount REAL NOT NULL DEFAULT 0,
    rollover_enabled INTEGER NOT NULL DEFAULT 0,
    color TEXT,
    icon TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0,
    is_hidden INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS budgets (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    category_id TEXT NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
    month TEXT NOT NULL,
    budgeted_amount REAL NOT NULL DEFAULT 0,
    rollover_amount REAL NOT NULL DEFAULT 0,
    notes TEXT,
    UNIQUE (user_id, category_id, month)
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    account_id TEXT NOT NULL REFERENCES accounts(id),
    category_id TEXT REFERENCES categories(id) ON DELETE SET NULL,
    description TEXT,
    amount REAL NOT NULL,
    type TEXT NOT NULL,
    date TEXT NOT NULL,
    is_cleared INTEGER NOT NULL DEFAULT 0,
    notes TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS inbox_items (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    description TEXT,
    amount REAL NOT NULL,
    date TEXT NOT NULL,
    source TEXT,
    suggested_category_id TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    transaction_id TEXT
);

CREATE TABLE IF NOT EXISTS goals (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    category_id TEXT REFERENCES categories(id) ON DELETE SET NULL,
    name TEXT NOT NULL,
    description TEXT,
    target_amount REAL NOT NULL,
    current_amount REAL NOT NULL DEFAULT 0,
    initial_amount REAL NOT NULL DEFAULT 0,
    type TEXT NOT NULL,
    due_date TEXT,
    cadence TEXT,
    monthly_contribution REAL NOT NULL DEFAULT 0,
    is_achieved INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    note TEXT,
    color TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS goal_contributions (
    id TEXT PRIMARY KEY,
    goal_id TEXT NOT NULL REFERENCES goals(id) ON DELETE CASCADE,
    amount REAL NOT NULL,
    date TEXT NOT NULL,
    note TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_user_date ON transactions (user_id, date);
CREATE INDEX IF NOT EXISTS ix_budget_user_month ON budgets (user_id, month);
CREATE INDEX IF NOT EXISTS ix_inbox_user_status ON inbox_items (user_id, status);
"""


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now().isoformat(timespec='seconds')


def _iso(value: Union[date, str, None]) -> Optional[str]:
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def _require_name(name: Optional[str], kind: str) -> str:
    if not name or not name.strip():
        raise ValueError(f"{kind} name cannot be empty")
    return name.strip()


def _check_category_fields(type: str, budgeted_amount: float, sort_order: int) -> None:
    if type not in CATEGORY_TYPES:
        raise ValueError(f"Unknown category type: {type}")
    if budgeted_amount < 0:
        raise ValueError("Budgeted amount must be non-negative.")
    if sort_order < 0:
        raise ValueError("Sort order must be non-negative.")


def _account(row: sqlite3.Row) -> Account:
    return Account(
        id=row['id'], user_id=row['user_id'], name=row['name'], type=row['type'],
        balance=float(row['balance']), is_active=bool(row['is_active']),
    )


def _category(row: sqlite3.Row) -> Category:
    return Category(
        id=row['id'], user_id=row['user_id'], name=row['name'], type=row['type'],
        group_id=row['group_id'], budgeted_amount=float(row['budgeted_amount']),
        rollover_enabled=bool(row['rollover_enabled']), color=row['color'] or '#6B7280',
        icon=row['icon'] or 'package', sort_order=int(row['sort_order']),
        is_hidden=bool(row['is_hidden']),
    )


def _budget(row: sqlite3.Row) -> Budget:
    return Budget(
        id=row['id'], user_id=row['user_id'], category_id=row['category_id'],
        month=parse_date(row['month']), budgeted_amount=float(row['budgeted_amount']),
        rollover_amount=float(row['rollover_amount']), notes=row['notes'],
    )


def _transaction(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row['id'], user_id=row['user_id'], account_id=row['account_id'],
        amount=float(row['amount']), type=row['type'], date=parse_date(row['date']),
        description=row['description'] or '', category_id=row['category_id'],
        is_cleared=bool(row['is_cleared']), notes=row['notes'],
    )


def _inbox_item(row: sqlite3.Row) -> InboxItem:
    return InboxItem(
        id=row['id'], user_id=row['user_id'], description=row['description'] or '',
        amount=float(row['amount']), date=parse_date(row['date']), source=row['source'] or 'manual',
        suggested_category_id=row['suggested_category_id'], status=row['status'],
    )


def _goal(row: sqlite3.Row) -> Goal:
    return Goal(
        id=row['id'], user_id=row['user_id'], name=row['name'],
        target_amount=float(row['target_amount']), type=row['type'],
        category_id=row['category_id'], description=row['description'] or '',
        current_amount=float(row['current_amount']), initial_amount=float(row['initial_amount']),
        due_date=parse_date(row['due_date']), cadence=row['cadence'],
        monthly_contribution=float(row['monthly_contribution']),
        is_achieved=bool(row['is_achieved']), is_active=bool(row['is_active']),
        note=row['note'] or '', color=row['color'] or '#10B981',
    )


def _contribution(row: sqlite3.Row) -> GoalContribution:
    return GoalContribution(
        id=row['id'], goal_id=row['goal_id'], amount=float(row['amount']),
        date=parse_date(row['date']), note=row['note'],
    )


class FinanceStore:
    """Row-level store; every query is partitioned by ``user_id``."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the store and create the schema.

        Args:
            db_path: Optional custom database file. Defaults to DB_PATH from config.
        """
        self.db_path = Path(db_path) if db_path else DB_PATH
        if db_path is None:
            ensure_data_directories()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_db()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_accounts(self, user_id: str) -> List[Account]:
        """All accounts of a user, inactive ones included."""
        sql = "SELECT * FROM accounts WHERE user_id = ? ORDER BY name"
        with self.connect() as conn:
            return [_account(r) for r in conn.execute(sql, (user_id,)).fetchall()]

    def get_categories(
        self,
        user_id: str,
        type: Optional[str] = None,
        include_hidden: bool = False,
    ) -> List[Category]:
        where = ["user_id = ?"]
        params: List[Any] = [user_id]
        if not include_hidden:
            where.append("is_hidden = 0")
        if type:
            where.append("type = ?")
            params.append(type)
        sql = "SELECT * FROM categories WHERE " + " AND ".join(where) + " ORDER BY sort_order, name"
        with self.connect() as conn:
            return [_category(r) for r in conn.execute(sql, params).fetchall()]

    def get_category_groups(self, user_id: str) -> List[CategoryGroup]:
        """Groups ordered by ``sort_order`` with their visible categories nested."""
        with self.connect() as conn:
            groups = [
                CategoryGroup(id=r['id'], user_id=r['user_id'], name=r['name'], sort_order=int(r['sort_order']))
                for r in conn.execute(
                    "SELECT * FROM category_groups WHERE user_id = ? ORDER BY sort_order, name", (user_id,)
                ).fetchall()
            ]
        by_group: Dict[Optional[str], List[Category]] = {}
        for category in self.get_categories(user_id):
            by_group.setdefault(category.group_id, []).append(category)
        for group in groups:
            group.categories = by_group.get(group.id, [])
        return groups

    def get_budgets(self, user_id: str, month: MonthLike) -> List[Budget]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM budgets WHERE user_id = ? AND month = ?",
                (user_id, month_start(month).isoformat()),
            ).fetchall()
        return [_budget(r) for r in rows]

    def get_transactions(
        self,
        user_id: str,
        start: Optional[Union[date, str]] = None,
        end: Optional[Union[date, str]] = None,
        *,
        category_id: Optional[str] = None,
        type: Optional[str] = None,
    ) -> List[Transaction]:
        where = ["user_id = ?"]
        params: List[Any] = [user_id]
        if start:
            where.append("date >= ?")
            params.append(_iso(start))
        if end:
            where.append("date <= ?")
            params.append(_iso(end))
        if category_id:
            where.append("category_id = ?")
            params.append(category_id)
        if type:
            where.append("type = ?")
            params.append(type)
        sql = "SELECT * FROM transactions WHERE " + " AND ".join(where) + " ORDER BY date ASC, created_at ASC, rowid ASC"
        with self.connect() as conn:
            return [_transaction(r) for r in conn.execute(sql, params).fetchall()]

    def get_goals(self, user_id: str, category_id: Optional[str] = None, active_only: bool = True) -> List[Goal]:
        where = ["user_id = ?"]
        params: List[Any] = [user_id]
        if active_only:
            where.append("is_active = 1")
        if category_id:
            where.append("category_id = ?")
            params.append(category_id)
        sql = "SELECT * FROM goals WHERE " + " AND ".join(where) + " ORDER BY created_at ASC, rowid ASC"
        with self.connect() as conn:
            return [_goal(r) for r in conn.execute(sql, params).fetchall()]

    def get_goal(self, user_id: str, goal_id: str) -> Goal:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM goals WHERE id = ? AND user_id = ?", (goal_id, user_id)
            ).fetchone()
        if row is None:
            raise LookupError(f"Goal not found: {goal_id}")
        return _goal(row)

    def get_goal_contributions(self, goal_id: str) -> List[GoalContribution]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM goal_contributions WHERE goal_id = ? ORDER BY date ASC", (goal_id,)
            ).fetchall()
        return [_contribution(r) for r in rows]

    def get_inbox_items(self, user_id: str, status: Optional[str] = 'pending') -> List[InboxItem]:
        sql = "SELECT * FROM inbox_items WHERE user_id = ?"
        params: List[Any] = [user_id]
        if status:
            if status not in INBOX_STATUSES:
                raise ValueError(f"Unknown inbox status: {status}")
            sql += " AND status = ?"
            params.append(status)
        sql += " ORDER BY date DESC"
        with self.connect() as conn:
            return [_inbox_item(r) for r in conn.execute(sql, params).fetchall()]

    def transactions_frame(self, user_id: str) -> pd.DataFrame:
        """All of a user's transactions as a DataFrame, oldest first."""
        sql = (
            "SELECT t.date AS Date, t.description AS Description, t.amount AS Amount, "
            "t.type AS Type, c.name AS Category, a.name AS Account "
            "FROM transactions t "
            "LEFT JOIN categories c ON c.id = t.category_id "
            "LEFT JOIN accounts a ON a.id = t.account_id "
            "WHERE t.user_id = ? ORDER BY t.date ASC"
        )
        with self.connect() as conn:
            df = pd.read_sql_query(sql, conn, params=(user_id,))
        if not df.empty:
            df['Date'] = pd.to_datetime(df['Date'])
        return df

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_account(self, user_id: str, name: str, type: str = 'checking', balance: float = 0.0) -> Account:
        name = _require_name(name, "Account")
        if type not in ACCOUNT_TYPES:
            raise ValueError(f"Unknown account type: {type}")
        account = Account(id=_new_id(), user_id=user_id, name=name, type=type, balance=float(balance))
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO accounts (id, user_id, name, type, balance, is_active, created_at) VALUES (?, ?, ?, ?, ?, 1, ?)",
                (account.id, user_id, account.name, type, account.balance, _now()),
            )
            conn.commit()
        return account

    def create_category_group(self, user_id: str, name: str, sort_order: int = 0) -> CategoryGroup:
        name = _require_name(name, "Group")
        if sort_order < 0:
            raise ValueError("Sort order must be non-negative.")
        group = CategoryGroup(id=_new_id(), user_id=user_id, name=name, sort_order=sort_order)
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO category_groups (id, user_id, name, sort_order) VALUES (?, ?, ?, ?)",
                (group.id, user_id, name, sort_order),
            )
            conn.commit()
        return group

    def update_category_group(
        self,
        user_id: str,
        group_id: str,
        name: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> CategoryGroup:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM category_groups WHERE id = ? AND user_id = ?", (group_id, user_id)
            ).fetchone()
            if row is None:
                raise LookupError(f"Category group not found: {group_id}")
            new_name = _require_name(name, "Group") if name is not None else row['name']
            new_order = int(row['sort_order']) if sort_order is None else int(sort_order)
            if new_order < 0:
                raise ValueError("Sort order must be non-negative.")
            conn.execute(
                "UPDATE category_groups SET name = ?, sort_order = ? WHERE id = ? AND user_id = ?",
                (new_name, new_order, group_id, user_id),
            )
            conn.commit()
        return CategoryGroup(id=group_id, user_id=user_id, name=new_name, sort_order=new_order)

    def delete_category_group(self, user_id: str, group_id: str) -> None:
        """Delete a group; its categories stay, ungrouped."""
        with self.connect() as conn:
            deleted = conn.execute(
                "DELETE FROM category_groups WHERE id = ? AND user_id = ?", (group_id, user_id)
            )
            conn.commit()
        if deleted.rowcount == 0:
            raise LookupError(f"Category group not found: {group_id}")
        logger.info("Deleted category group %s for user %s", group_id, user_id)

    def create_category(
        self,
        user_id: str,
        name: str,
        type: str = 'spending',
        *,
        group_id: Optional[str] = None,
        budgeted_amount: float = 0.0,
        rollover_enabled: bool = False,
        color: str = '#6B7280',
        icon: str = 'package',
        sort_order: int = 0,
        is_hidden: bool = False,
    ) -> Category:
        name = _require_name(name, "Category")
        _check_category_fields(type, budgeted_amount, sort_order)
        category = Category(
            id=_new_id(), user_id=user_id, name=name, type=type, group_id=group_id,
            budgeted_amount=float(budgeted_amount), rollover_enabled=rollover_enabled,
            color=color, icon=icon, sort_order=sort_order, is_hidden=is_hidden,
        )
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO categories (id, user_id, group_id, name, type, budgeted_amount, rollover_enabled, "
                "color, icon, sort_order, is_hidden) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (category.id, user_id, group_id, name, type, category.budgeted_amount, int(rollover_enabled),
                 color, icon, sort_order, int(is_hidden)),
            )
            conn.commit()
        return category

    _UPDATABLE_CATEGORY_FIELDS = (
        'name', 'type', 'group_id', 'budgeted_amount', 'rollover_enabled', 'color', 'icon',
        'sort_order', 'is_hidden',
    )

    def update_category(self, user_id: str, category_id: str, changes: Dict[str, Any]) -> Category:
        """Apply ``changes`` to a category; unknown keys are ignored."""
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ? AND user_id = ?", (category_id, user_id)
            ).fetchone()
            if row is None:
                raise LookupError(f"Category not found: {category_id}")
            merged = {f: getattr(_category(row), f) for f in self._UPDATABLE_CATEGORY_FIELDS}
            merged.update({k: v for k, v in changes.items() if k in self._UPDATABLE_CATEGORY_FIELDS})
            merged['name'] = _require_name(merged['name'], "Category")
            _check_category_fields(merged['type'], merged['budgeted_amount'], merged['sort_order'])
            conn.execute(
                "UPDATE categories SET name = ?, type = ?, group_id = ?, budgeted_amount = ?, rollover_enabled = ?, "
                "color = ?, icon = ?, sort_order = ?, is_hidden = ? WHERE id = ? AND user_id = ?",
                (merged['name'], merged['type'], merged['group_id'], float(merged['budgeted_amount']),
                 int(bool(merged['rollover_enabled'])), merged['color'], merged['icon'],
                 int(merged['sort_order']), int(bool(merged['is_hidden'])), category_id, user_id),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM categories WHERE id = ?", (category_id,)).fetchone()
        return _category(row)

    def delete_category(self, user_id: str, category_id: str) -> None:
        """Delete a category with its monthly budgets.

        Transactions, goals and inbox suggestions that pointed at it become
        uncategorised.
        """
        with self.connect() as conn:
            deleted = conn.execute(
                "DELETE FROM categories WHERE id = ? AND user_id = ?", (category_id, user_id)
            )
            conn.execute(
                "UPDATE inbox_items SET suggested_category_id = NULL WHERE suggested_category_id = ? AND user_id = ?",
                (category_id, user_id),
            )
            conn.commit()
        if deleted.rowcount == 0:
            raise LookupError(f"Category not found: {category_id}")
        logger.info("Deleted category %s for user %s", category_id, user_id)

    def upsert_budget(
        self,
        user_id: str,
        category_id: str,
        month: MonthLike,
        budgeted_amount: float,
        rollover_amount: float = 0.0,
        notes: Optional[str] = None,
    ) -> Budget:
        if budgeted_amount < 0:
            raise ValueError("Budget amount must be non-negative.")
        first = month_start(month).isoformat()
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO budgets (id, user_id, category_id, month, budgeted_amount, rollover_amount, notes) "
                "VALUES (?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT (user_id, category_id, month) DO UPDATE SET "
                "budgeted_amount = excluded.budgeted_amount, rollover_amount = excluded.rollover_amount, "
                "notes = excluded.notes",
                (_new_id(), user_id, category_id, first, float(budgeted_amount), float(rollover_amount), notes),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM budgets WHERE user_id = ? AND category_id = ? AND month = ?",
                (user_id, category_id, first),
            ).fetchone()
        return _budget(row)

    def _insert_transaction(self, conn: sqlite3.Connection, txn: Transaction) -> None:
        updated = conn.execute(
            "UPDATE accounts SET balance = balance + ? WHERE id = ? AND user_id = ?",
            (txn.amount, txn.account_id, txn.user_id),
        )
        if updated.rowcount == 0:
            raise LookupError(f"Account not found: {txn.account_id}")
        conn.execute(
            "INSERT INTO transactions (id, user_id, account_id, category_id, description, amount, type, date, "
            "is_cleared, notes, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (txn.id, txn.user_id, txn.account_id, txn.category_id, txn.description, txn.amount, txn.type,
             txn.date.isoformat(), int(txn.is_cleared), txn.notes, _now()),
        )

    def create_transaction(
        self,
        user_id: str,
        account_id: str,
        amount: float,
        type: str,
        when: Union[date, str],
        description: str = '',
        category_id: Optional[str] = None,
        is_cleared: bool = False,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Insert a transaction and apply it to the account balance atomically."""
        if type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type: {type}")
        parsed = parse_date(when)
        if parsed is None:
            raise ValueError(f"Invalid transaction date: {when!r}")
        txn = Transaction(
            id=_new_id(), user_id=user_id, account_id=account_id, amount=float(amount), type=type,
            date=parsed, description=description, category_id=category_id, is_cleared=is_cleared, notes=notes,
        )
        with self.connect() as conn:
            try:
                self._insert_transaction(conn, txn)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        logger.info("Created %s transaction %s (%.2f) for user %s", type, txn.id, txn.amount, user_id)
        return txn

    def record_manual_transaction(
        self,
        user_id: str,
        account_id: str,
        amount: float,
        type: str,
        when: Union[date, str],
        description: str = '',
        category_id: Optional[str] = None,
    ) -> Transaction:
        """Record a transaction typed in by the user.

        ``amount`` is a magnitude: expenses are stored negative and income
        positive. Manual entries are marked cleared.
        """
        if not amount:
            raise ValueError("Amount must be non-zero.")
        if type == 'expense':
            signed = -abs(float(amount))
        elif type == 'income':
            signed = abs(float(amount))
        else:
            signed = float(amount)
        return self.create_transaction(
            user_id, account_id, signed, type, when, description, category_id, is_cleared=True,
        )

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        """Delete a transaction and take its amount back out of the account balance."""
        with self.connect() as conn:
            try:
                row = conn.execute(
                    "SELECT * FROM transactions WHERE id = ? AND user_id = ?", (transaction_id, user_id)
                ).fetchone()
                if row is None:
                    raise LookupError(f"Transaction not found: {transaction_id}")
                conn.execute(
                    "UPDATE accounts SET balance = balance - ? WHERE id = ? AND user_id = ?",
                    (float(row['amount']), row['account_id'], user_id),
                )
                conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        logger.info("Deleted transaction %s for user %s", transaction_id, user_id)

    def update_account_balance(self, user_id: str, account_id: str, balance: float) -> None:
        with self.connect() as conn:
            updated = conn.execute(
                "UPDATE accounts SET balance = ? WHERE id = ? AND user_id = ?",
                (float(balance), account_id, user_id),
            )
            conn.commit()
        if updated.rowcount == 0:
            raise LookupError(f"Account not found: {account_id}")

    def create_goal(self, user_id: str, data: Dict[str, Any]) -> Goal:
        """Validate and insert a goal.

        Raises:
            ValueError: With the joined validation messages when invalid
        """
        errors = validate_goal(data)
        if errors:
            raise ValueError(format_validation_errors(errors))
        initial = float(data.get('initial_amount') or 0.0)
        goal = Goal(
            id=_new_id(), user_id=user_id, name=str(data['name']).strip(),
            target_amount=float(data['target_amount']), type=normalize_goal_type(data['type']),
            category_id=data.get('category_id'), description=data.get('description') or '',
            current_amount=initial, initial_amount=initial, due_date=parse_date(data.get('due_date')),
            cadence=data.get('cadence'), monthly_contribution=float(data.get('monthly_contribution') or 0.0),
            note=data.get('note') or '', color=data.get('color') or '#10B981',
        )
        goal.is_achieved = goal.current_amount >= goal.target_amount
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO goals (id, user_id, category_id, name, description, target_amount, current_amount, "
                "initial_amount, type, due_date, cadence, monthly_contribution, is_achieved, is_active, note, color, "
                "created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?, ?)",
                (goal.id, user_id, goal.category_id, goal.name, goal.description, goal.target_amount,
                 goal.current_amount, goal.initial_amount, goal.type, _iso(goal.due_date), goal.cadence,
                 goal.monthly_contribution, int(goal.is_achieved), goal.note, goal.color, _now()),
            )
            conn.commit()
        return goal

    _UPDATABLE_GOAL_FIELDS = (
        'name', 'description', 'target_amount', 'type', 'due_date', 'cadence',
        'monthly_contribution', 'note', 'color', 'is_active',
    )

    def update_goal(self, user_id: str, goal_id: str, changes: Dict[str, Any]) -> Goal:
        current = self.get_goal(user_id, goal_id)
        merged = {field: getattr(current, field) for field in self._UPDATABLE_GOAL_FIELDS}
        merged.update({k: v for k, v in changes.items() if k in self._UPDATABLE_GOAL_FIELDS})
        errors = validate_goal(merged)
        if errors:
            raise ValueError(format_validation_errors(errors))
        achieved = current.current_amount >= float(merged['target_amount'])
        with self.connect() as conn:
            conn.execute(
                "UPDATE goals SET name = ?, description = ?, target_amount = ?, type = ?, due_date = ?, cadence = ?, "
                "monthly_contribution = ?, note = ?, color = ?, is_active = ?, is_achieved = ? WHERE id = ?",
                (merged['name'], merged['description'], float(merged['target_amount']), normalize_goal_type(merged['type']),
                 _iso(merged['due_date']), merged['cadence'], float(merged['monthly_contribution'] or 0.0),
                 merged['note'], merged['color'], int(bool(merged['is_active'])), int(achieved), goal_id),
            )
            conn.commit()
        return self.get_goal(user_id, goal_id)

    def delete_goal(self, user_id: str, goal_id: str) -> None:
        with self.connect() as conn:
            deleted = conn.execute("DELETE FROM goals WHERE id = ? AND user_id = ?", (goal_id, user_id))
            conn.commit()
        if deleted.rowcount == 0:
            raise LookupError(f"Goal not found: {goal_id}")

    def create_goal_contribution(
        self,
        user_id: str,
        goal_id: str,
        amount: float,
        when: Union[date, str],
        note: Optional[str] = None,
    ) -> GoalContribution:
        """Record a deposit (positive) or withdrawal (negative) on a goal.

        The goal's ``current_amount`` and ``is_achieved`` flag are adjusted
        in the same SQL transaction.
        """
        parsed = parse_date(when)
        errors = validate_contribution(amount, parsed)
        if errors:
            raise ValueError(format_validation_errors(errors))
        contribution = GoalContribution(id=_new_id(), goal_id=goal_id, amount=float(amount), date=parsed, note=note)
        with self.connect() as conn:
            try:
                updated = conn.execute(
                    "UPDATE goals SET current_amount = current_amount + ?, "
                    "is_achieved = (current_amount + ? >= target_amount AND target_amount > 0) "
                    "WHERE id = ? AND user_id = ?",
                    (contribution.amount, contribution.amount, goal_id, user_id),
                )
                if updated.rowcount == 0:
                    raise LookupError(f"Goal not found: {goal_id}")
                conn.execute(
                    "INSERT INTO goal_contributions (id, goal_id, amount, date, note) VALUES (?, ?, ?, ?, ?)",
                    (contribution.id, goal_id, contribution.amount, parsed.isoformat(), note),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return contribution

    def create_inbox_item(
        self,
        user_id: str,
        description: str,
        amount: float,
        when: Union[date, str],
        source: str = 'manual',
        suggested_category_id: Optional[str] = None,
    ) -> InboxItem:
        parsed = parse_date(when)
        if parsed is None:
            raise ValueError(f"Invalid inbox item date: {when!r}")
        item = InboxItem(
            id=_new_id(), user_id=user_id, description=description, amount=float(amount), date=parsed,
            source=source, suggested_category_id=suggested_category_id,
        )
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO inbox_items (id, user_id, description, amount, date, source, suggested_category_id, "
                "status) VALUES (?, ?, ?, ?, ?, ?, ?, 'pending')",
                (item.id, user_id, description, item.amount, parsed.isoformat(), source, suggested_category_id),
            )
            conn.commit()
        return item

    def _pending_item(self, conn: sqlite3.Connection, user_id: str, item_id: str) -> InboxItem:
        row = conn.execute(
            "SELECT * FROM inbox_items WHERE id = ? AND user_id = ?", (item_id, user_id)
        ).fetchone()
        if row is None:
            raise LookupError(f"Inbox item not found: {item_id}")
        item = _inbox_item(row)
        if item.status != 'pending':
            raise ValueError(f"Inbox item {item_id} is already {item.status}")
        return item

    def update_inbox_item(
        self,
        user_id: str,
        item_id: str,
        description: str,
        amount: float,
        when: Union[date, str],
        suggested_category_id: Optional[str] = None,
    ) -> InboxItem:
        """Correct a pending item before it is confirmed."""
        parsed = parse_date(when)
        if parsed is None:
            raise ValueError(f"Invalid inbox item date: {when!r}")
        if not amount:
            raise ValueError("Amount must be non-zero.")
        with self.connect() as conn:
            item = self._pending_item(conn, user_id, item_id)
            conn.execute(
                "UPDATE inbox_items SET description = ?, amount = ?, date = ?, suggested_category_id = ? "
                "WHERE id = ? AND user_id = ?",
                (description, float(amount), parsed.isoformat(), suggested_category_id, item_id, user_id),
            )
            conn.commit()
        item.description = description
        item.amount = float(amount)
        item.date = parsed
        item.suggested_category_id = suggested_category_id
        return item

    def confirm_inbox_item(
        self,
        user_id: str,
        item_id: str,
        account_id: str,
        category_id: Optional[str] = None,
    ) -> Transaction:
        """Turn a pending inbox item into a ledger transaction.

        The transaction type follows the sign of the amount and the chosen
        category falls back to the suggested one.
        """
        with self.connect() as conn:
            try:
                item = self._pending_item(conn, user_id, item_id)
                txn = Transaction(
                    id=_new_id(), user_id=item.user_id, account_id=account_id, amount=item.amount,
                    type='income' if item.amount > 0 else 'expense', date=item.date,
                    description=item.description, category_id=category_id or item.suggested_category_id,
                )
                self._insert_transaction(conn, txn)
                conn.execute(
                    "UPDATE inbox_items SET status = 'confirmed', transaction_id = ? WHERE id = ?",
                    (txn.id, item_id),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        logger.info("Confirmed inbox item %s as transaction %s", item_id, txn.id)
        return txn

    def reject_inbox_item(self, user_id: str, item_id: str) -> None:
        with self.connect() as conn:
            self._pending_item(conn, user_id, item_id)
            conn.execute(
                "UPDATE inbox_items SET status = 'rejected' WHERE id = ? AND user_id = ?", (item_id, user_id)
            )
            conn.commit()
        logger.info("Rejected inbox item %s", item_id)

    def needs_initialization(self, user_id: str) -> bool:
        with self.connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM category_groups WHERE user_id = ?", (user_id,)).fetchone()
        return row[0] == 0

    def initialize_user_defaults(self, user_id: str, defaults_path: Optional[Path] = None) -> Dict[str, int]:
        """Create the default groups, categories and goals for a new user.

        Users that already have category groups are left untouched.

        Returns:
            Counts of created ``groups``, ``categories`` and ``goals``
        """
        created = {'groups': 0, 'categories': 0, 'goals': 0}
        if not self.needs_initialization(user_id):
            return created

        category_ids: Dict[str, str] = {}
        for group_data in get_default_category_groups(defaults_path):
            group = self.create_category_group(user_id, group_data['name'], group_data.get('sort_order', 0))
            created['groups'] += 1
            for cat in group_data.get('categories', []):
                category = self.create_category(
                    user_id, cat['name'], cat['type'], group_id=group.id,
                    budgeted_amount=cat.get('budgeted_amount', 0.0),
                    rollover_enabled=cat.get('rollover_enabled', False),
                    color=cat.get('color', '#6B7280'), icon=cat.get('icon', 'package'),
                    sort_order=cat.get('sort_order', 0),
                )
                category_ids[category.name] = category.id
                created['categories'] += 1

        for goal_data in get_default_goals(defaults_path):
            payload = dict(goal_data)
            payload['category_id'] = category_ids.get(payload.pop('category_name', None))
            self.create_goal(user_id, payload)
            created['goals'] += 1

        logger.info("Initialized defaults for user %s: %s", user_id, created)
        return created

    def delete_user_data(self, user_id: str, tables: Sequence[str] = (
        'goal_contributions', 'goals', 'inbox_items', 'transactions', 'budgets', 'categories',
        'category_groups', 'accounts',
    )) -> None:
        """Remove every row owned by ``user_id``."""
        with self.connect() as conn:
            for table in tables:
                if table == 'goal_contributions':
                    conn.execute(
                        "DELETE FROM goal_contributions WHERE goal_id IN (SELECT id FROM goals WHERE user_id = ?)",
                        (user_id,),
                    )
                else:
                    conn.execute(f"DELETE FROM {table} WHERE user_id = ?", (user_id,))
            conn.commit()
