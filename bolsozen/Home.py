"""Main entry point for the BolsoZen Streamlit multi-page app.

Pages in the pages/ directory are discovered automatically by Streamlit.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from bolsozen.currency import format_currency_display
from bolsozen.ui import BolsoZenUI, render_shared_sidebar
from bolsozen.visualization import (
    create_category_progress_chart,
    create_daily_spending_chart,
    create_summary_chart,
)


def render_category_details(session, analytics) -> None:
    """Transactions of the category picked in the selector."""
    categories = analytics.snapshot.categories
    if not categories:
        return
    ids = [c.id for c in categories]
    names = {c.id: c.name for c in categories}
    index = ids.index(session.selected_category_id) if session.selected_category_id in ids else 0
    selected = st.selectbox("Ver transações da categoria", ids, index=index, format_func=names.get)
    session.select_category(selected)

    rows = [t for t in analytics.snapshot.month_transactions if t.category_id == selected]
    if not rows:
        st.caption("Nenhuma transação nesta categoria no mês.")
        return
    st.dataframe(
        pd.DataFrame([
            {'Data': t.date.strftime('%d/%m/%Y'), 'Descrição': t.description,
             'Valor': format_currency_display(t.amount)}
            for t in rows
        ]),
        use_container_width=True,
        hide_index=True,
    )


def main() -> None:
    ui = BolsoZenUI(configure_page=True)
    context = render_shared_sidebar("home")
    if context is None:
        return
    session = context['session']
    analytics = context['analytics']

    st.title("💰 Meu Orçamento")
    ui.render_month_navigation(session)

    summary = analytics.budget_summary()
    ui.render_summary_cards(summary)
    ui.render_budget_progress(summary)
    aging = analytics.age_of_money_detail()
    if aging.unmatched_amount > 0:
        st.caption(
            f"{format_currency_display(aging.unmatched_amount)} em gastos sem receita anterior "
            "não entram na idade do dinheiro."
        )
    ui.render_savings_banner(analytics)

    st.subheader("Categorias")
    ui.render_status_legend()
    ui.render_category_table(analytics)
    with st.expander("💵 Definir orçamento do mês"):
        ui.render_budget_assignment(context['store'], session, analytics)

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(create_summary_chart(summary), use_container_width=True)
    with col2:
        st.plotly_chart(create_daily_spending_chart(analytics.daily_spending()), use_container_width=True)

    spending = analytics.progress_by_type()['spending']
    st.plotly_chart(create_category_progress_chart(spending), use_container_width=True)

    render_category_details(session, analytics)

    goals = analytics.goal_progress()
    if goals:
        st.subheader("🎯 Metas")
        for progress in goals[:3]:
            with st.container(border=True):
                ui.render_goal_card(progress)


if __name__ == "__main__":
    main()
