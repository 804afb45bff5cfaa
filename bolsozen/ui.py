"""Streamlit components for the BolsoZen dashboard.

The components only format values handed to them by
:class:`bolsozen.analytics.DashboardAnalytics`; they never recompute
budget or goal figures.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st
from streamlit.errors import StreamlitAPIException

from . import telemetry
from .analytics import DashboardAnalytics, fetch_snapshot
from .budget import STATUS_COLORS, overall_progress
from .config import DEMO_USER_ID, configure_logging
from .currency import format_currency_display, format_percentage, parse_currency_input
from .db import FinanceStore
from .goals import describe_goal_status
from .icons import icon_glyph
from .models import BudgetSummary, Category, CategoryProgress, GoalProgress, GOAL_TYPE_LABELS
from .savings import BAND_COLORS
from .session import NAVIGATE_NEXT, NAVIGATE_PREV, DashboardSession, new_session

logger = logging.getLogger(__name__)

SESSION_KEY = 'bolsozen_session'

STATUS_LABELS = {
    'over_budget': 'Acima do orçamento',
    'near_limit': 'Perto do limite',
    'watch': 'Atenção',
    'on_track': 'Dentro do orçamento',
}

MONTH_NAMES = [
    'Janeiro', 'Fevereiro', 'Março', 'Abril', 'Maio', 'Junho',
    'Julho', 'Agosto', 'Setembro', 'Outubro', 'Novembro', 'Dezembro',
]


@st.cache_resource
def get_store() -> FinanceStore:
    configure_logging()
    return FinanceStore()


def get_session(user_id: str = DEMO_USER_ID) -> DashboardSession:
    """Return the dashboard session kept in Streamlit's session state."""
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = new_session(user_id)
    return st.session_state[SESSION_KEY]


def bar_fraction(percentage: float) -> float:
    """Map a percentage onto the [0, 1] range ``st.progress`` accepts."""
    return max(0.0, min(1.0, percentage / 100.0))


def month_label(session: DashboardSession) -> str:
    month = session.current_month
    return f"{MONTH_NAMES[month.month - 1]} de {month.year}"


class BolsoZenUI:
    """Rendering helpers shared by the home page and the other pages."""
    _PAGE_CONFIGURED = False

    def __init__(self, *, configure_page: bool = False):
        if configure_page:
            self.setup_page_config()

    def setup_page_config(self, page_title: str = "BolsoZen", page_icon: str = "💰") -> None:
        if BolsoZenUI._PAGE_CONFIGURED:
            return
        try:
            st.set_page_config(
                page_title=page_title,
                page_icon=page_icon,
                layout="wide",
                initial_sidebar_state="expanded",
            )
        except StreamlitAPIException:
            # set_page_config already ran for this script run
            pass
        finally:
            BolsoZenUI._PAGE_CONFIGURED = True

    def render_month_navigation(self, session: DashboardSession) -> None:
        col1, col2, col3 = st.columns([1, 3, 1])
        with col1:
            if st.button("◀", key="month_prev", help="Mês anterior"):
                session.navigate_month(NAVIGATE_PREV)
                telemetry.track_month_navigation(session, NAVIGATE_PREV)
                st.rerun()
        with col2:
            st.markdown(f"### {month_label(session)}")
        with col3:
            if st.button("▶", key="month_next", help="Próximo mês"):
                session.navigate_month(NAVIGATE_NEXT)
                telemetry.track_month_navigation(session, NAVIGATE_NEXT)
                st.rerun()

    def render_summary_cards(self, summary: BudgetSummary) -> None:
        col1, col2, col3, col4, col5 = st.columns(5)
        with col1:
            st.metric("Saldo total", format_currency_display(summary.total_balance))
        with col2:
            st.metric("Orçado", format_currency_display(summary.total_budgeted))
        with col3:
            st.metric("Gasto", format_currency_display(summary.total_spent))
        with col4:
            st.metric(
                "Disponível",
                format_currency_display(summary.available_amount),
                delta="Acima do orçamento" if summary.available_amount < 0 else None,
                delta_color="inverse",
            )
        with col5:
            st.metric("Idade do dinheiro", f"{summary.age_of_money} dias")

    def category_table(
        self,
        categories: List[Category],
        rows: List[CategoryProgress],
        goals_by_category: Dict[str, GoalProgress],
    ) -> pd.DataFrame:
        """Display frame for the category table, one row per progress row."""
        icons = {c.id: icon_glyph(c.icon) for c in categories}
        return pd.DataFrame([
            {
                'Categoria': f"{icons.get(r.category_id, icon_glyph(None))} {r.name}",
                'Orçado': format_currency_display(r.budgeted),
                'Gasto': format_currency_display(r.spent),
                'Disponível': format_currency_display(r.available),
                'Progresso': r.progress_percentage,
                'Situação': STATUS_LABELS.get(r.status, r.status),
                'Meta': describe_goal_status(goals_by_category.get(r.category_id)),
            }
            for r in rows
        ])

    def render_category_table(self, analytics: DashboardAnalytics) -> None:
        rows = analytics.category_progress()
        if not rows:
            st.info("Nenhuma categoria cadastrada ainda.")
            return
        table = self.category_table(
            analytics.snapshot.categories, rows, analytics.goal_progress_by_category()
        )
        st.dataframe(
            table,
            use_container_width=True,
            hide_index=True,
            column_config={
                'Progresso': st.column_config.ProgressColumn(
                    'Progresso', min_value=0, max_value=100, format="%.0f%%"
                ),
            },
        )

    def render_status_legend(self) -> None:
        chips = " ".join(
            f"<span style='color:{STATUS_COLORS[key]}'>●</span> {label}"
            for key, label in STATUS_LABELS.items()
        )
        st.markdown(chips, unsafe_allow_html=True)

    def render_budget_progress(self, summary: BudgetSummary) -> None:
        """Whole-month bar under the summary cards; hidden when nothing is budgeted."""
        percentage = overall_progress(summary)
        if percentage is None:
            return
        color = '#22C55E' if summary.total_spent <= summary.total_budgeted else '#EF4444'
        st.markdown(
            f"<span style='color:{color}'>●</span> Progresso do orçamento: **{percentage}%**",
            unsafe_allow_html=True,
        )
        st.progress(bar_fraction(percentage))

    def render_budget_assignment(self, store: FinanceStore, session: DashboardSession, analytics: DashboardAnalytics) -> None:
        """Form that sets this month's budget for one category."""
        categories = analytics.snapshot.categories
        if not categories:
            return
        budgeted = {r.category_id: r.budgeted for r in analytics.category_progress()}
        labels = {
            c.id: f"{icon_glyph(c.icon)} {c.name} ({format_currency_display(budgeted.get(c.id, 0.0))})"
            for c in categories
        }
        with st.form("assign_budget", clear_on_submit=True):
            col1, col2 = st.columns([2, 1])
            with col1:
                category_id = st.selectbox("Categoria", list(labels), format_func=labels.get)
            with col2:
                amount_text = st.text_input("Orçado no mês (R$)", placeholder="500,00")
            submitted = st.form_submit_button("Definir orçamento")
        if not submitted:
            return
        try:
            store.upsert_budget(
                session.user_id, category_id, session.current_month, parse_currency_input(amount_text)
            )
        except (ValueError, LookupError, sqlite3.Error) as exc:
            logger.warning("Could not assign budget for %s: %s", category_id, exc)
            telemetry.track_error(session, exc, context="budget_assignment")
            st.error("Não foi possível salvar o orçamento.")
            return
        telemetry.track_event(session, 'budget_assigned', category_id=category_id)
        session.refresh()
        st.rerun()

    def render_goal_card(self, progress: GoalProgress) -> None:
        st.markdown(f"**{progress.name}** · {GOAL_TYPE_LABELS.get(progress.type, progress.type)}")
        # withdrawals can take the percentage below zero
        st.progress(bar_fraction(progress.progress_percentage))
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Guardado", format_currency_display(progress.current_amount))
        with col2:
            st.metric("Meta", format_currency_display(progress.target_amount))
        with col3:
            st.metric("Falta", format_currency_display(progress.remaining_amount))
        if progress.achieved:
            st.success("Meta atingida! 🎉")
        elif progress.due_status == 'overdue':
            st.error("O prazo desta meta já passou.")
        elif progress.due_status == 'urgent':
            st.warning(f"Faltam {progress.days_remaining} dias para o prazo.")
        if progress.monthly_required_amount and not progress.achieved:
            st.caption(
                f"Guarde cerca de {format_currency_display(progress.monthly_required_amount)} por mês para chegar lá."
            )
        if progress.estimated_completion_date and not progress.achieved:
            st.caption(f"Previsão de conclusão: {progress.estimated_completion_date.strftime('%d/%m/%Y')}")

    def render_savings_banner(self, analytics: DashboardAnalytics) -> None:
        result = analytics.savings()
        color = BAND_COLORS.get(result.band, '#6B7280')
        st.markdown(
            f"<div style='border-left: 4px solid {color}; padding-left: 0.75rem'>"
            f"<strong>Taxa de economia: {format_percentage(result.savings_percentage)}</strong><br>"
            f"{result.recommendation}</div>",
            unsafe_allow_html=True,
        )


def render_shared_sidebar(page_name: str) -> Optional[Dict]:
    """Render sidebar elements common to all pages.

    Returns:
        Dict with keys ``store``, ``session`` and ``analytics``; ``None`` when
        the data could not be loaded.
    """
    store = get_store()
    session = get_session()
    telemetry.track_page_view(session, page_name)

    st.sidebar.title("💰 BolsoZen")
    st.sidebar.caption(month_label(session))
    if st.sidebar.button("🔄 Atualizar dados"):
        session.refresh()
        st.rerun()

    try:
        if store.needs_initialization(session.user_id):
            created = store.initialize_user_defaults(session.user_id)
            st.sidebar.success(f"Categorias padrão criadas: {created['categories']}")
        snapshot = fetch_snapshot(store, session.user_id, session.current_month)
    except Exception as exc:
        logger.exception("Failed to load dashboard data")
        telemetry.track_error(session, exc, context=page_name)
        st.error("Não foi possível carregar seus dados. Tente novamente.")
        return None

    analytics = DashboardAnalytics(snapshot)
    pending = analytics.pending_inbox_count()
    if pending:
        st.sidebar.info(f"📥 {pending} transações aguardando revisão")
    return {'store': store, 'session': session, 'analytics': analytics}
