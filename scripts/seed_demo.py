#!/usr/bin/env python3
"""Seed a demo user with accounts, budgets, transactions and inbox items."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Optional

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from bolsozen.config import DEMO_USER_ID, configure_logging
from bolsozen.dates import month_start
from bolsozen.db import FinanceStore

logger = logging.getLogger("seed_demo")

DEMO_BUDGETS = {
    'Aluguel/Financiamento': 1500.0,
    'Água e Luz': 250.0,
    'Supermercado/Feira': 900.0,
    'Transporte Público': 200.0,
    'Restaurantes e Lanches': 400.0,
    'Assinaturas (Streaming)': 80.0,
    'Fundo de Emergência': 500.0,
}

DEMO_EXPENSES = [
    (1, 'Aluguel/Financiamento', 'Aluguel', 1500.0),
    (3, 'Supermercado/Feira', 'Mercado do bairro', 312.45),
    (5, 'Água e Luz', 'Conta de luz', 187.30),
    (8, 'Restaurantes e Lanches', 'Pizzaria', 96.00),
    (12, 'Supermercado/Feira', 'Feira', 84.20),
    (15, 'Assinaturas (Streaming)', 'Streaming', 55.90),
    (18, 'Restaurantes e Lanches', 'Almoço', 42.50),
]

DEMO_INBOX = [
    ('Uber *TRIP', -23.90, 'Transporte Público'),
    ('PIX recebido', 150.00, None),
    ('iFood', -58.70, 'Restaurantes e Lanches'),
]


def seed(store: FinanceStore, user_id: str, today: Optional[date] = None) -> Dict[str, int]:
    """Populate ``user_id`` with demo data.

    Users that already have transactions are left untouched (all counts 0);
    pass ``--reset`` to reseed them.
    """
    today = today or date.today()
    first = month_start(today)
    previous = month_start(first - timedelta(days=1))

    if store.get_transactions(user_id):
        logger.warning("User %s already has transactions; use --reset to reseed", user_id)
        return {'groups': 0, 'categories': 0, 'goals': 0, 'transactions': 0, 'inbox_items': 0}

    created = store.initialize_user_defaults(user_id)
    if not store.get_accounts(user_id):
        store.create_account(user_id, "Conta Corrente", "checking", 0.0)
        store.create_account(user_id, "Poupança", "savings", 2000.0)
    checking = store.get_accounts(user_id)[0]
    categories = {c.name: c.id for c in store.get_categories(user_id)}

    for name, amount in DEMO_BUDGETS.items():
        if name in categories:
            store.upsert_budget(user_id, categories[name], first, amount)

    store.create_transaction(user_id, checking.id, 5200.0, 'income', previous.replace(day=5), 'Salário')
    store.create_transaction(user_id, checking.id, 5200.0, 'income', first.replace(day=5), 'Salário')
    for day, category, description, amount in DEMO_EXPENSES:
        when = first.replace(day=min(day, today.day))
        store.create_transaction(user_id, checking.id, -amount, 'expense', when, description, categories.get(category))

    for description, amount, category in DEMO_INBOX:
        store.create_inbox_item(user_id, description, amount, today, 'bank_sync', categories.get(category))

    created['transactions'] = 2 + len(DEMO_EXPENSES)
    created['inbox_items'] = len(DEMO_INBOX)
    return created


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--user", default=DEMO_USER_ID, help="user id to seed")
    parser.add_argument("--db", type=Path, default=None, help="database file (defaults to config)")
    parser.add_argument("--reset", action="store_true", help="delete the user's rows first")
    args = parser.parse_args(argv)

    configure_logging()
    store = FinanceStore(args.db)
    if args.reset:
        store.delete_user_data(args.user)
    counts = seed(store, args.user)
    if not counts['transactions']:
        print(f"{args.user} already has data; run again with --reset to reseed")
        return 0
    logger.info("Seeded user %s: %s", args.user, counts)
    print(f"Seeded {args.user}: " + ", ".join(f"{k}={v}" for k, v in counts.items()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
