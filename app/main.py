"""
Streamlit Frontend for Family Ledger

The household opens this page to see where the family's money stands:
current totals, how each category moved over the last months and what
recurring income and expenses add up to per month.

DESIGN PRINCIPLES:
1. Everything shown is recomputed from the last snapshot
2. Edits show up immediately, before the sheet confirms them
3. A failed read shows an empty ledger, never a crash
4. Write failures are only visible in the audit log
"""

import asyncio
from decimal import Decimal

import streamlit as st

from family_ledger.config import SELECTABLE_CURRENCIES, validate_all_settings
from family_ledger.editing import EditValidationError
from family_ledger.models.ledger import DashboardView, EditKind, TrendDirection
from family_ledger.normalization import (
    Category,
    Frequency,
    Owner,
    OwnerFilter,
    owner_display_name,
)
from family_ledger.aggregation import series_label
from family_ledger.orchestrator import LedgerDashboard, create_app_components


# Page configuration
st.set_page_config(
    page_title="Family Ledger",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

CATEGORY_TITLES = {
    Category.CASH: "💵 現金 Cash",
    Category.STOCK: "📈 投資 Stock",
    Category.DEBT: "💳 負債 Debt",
}

OWNER_FILTER_LABELS = {
    OwnerFilter.ALL: "全部 All",
    OwnerFilter.HUSBAND: "老公 Husband",
    OwnerFilter.WIFE: "老婆 Wife",
    OwnerFilter.FAMILY: "全家 Family",
}

DIRECTION_ARROWS = {
    TrendDirection.UP: "▲",
    TrendDirection.DOWN: "▼",
    TrendDirection.FLAT: "–",
}


@st.cache_resource
def get_event_loop():
    """One loop for the whole session; the HTTP client is bound to it."""
    return asyncio.new_event_loop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = get_event_loop()
    asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(value: Decimal, currency: str) -> str:
    return f"{currency} {value:,.0f}"


def main():
    """Main application entry point."""
    dashboard, _ = get_components()

    if not dashboard.state.loaded:
        with st.spinner("Loading ledger..."):
            run_async(dashboard.refresh())

    # Sidebar navigation
    st.sidebar.title("💰 Family Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "✏️ Edit", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    render_display_controls(dashboard)

    if st.sidebar.button("🔄 Reload from sheet"):
        run_async(dashboard.refresh())
        st.rerun()

    if page == "📊 Dashboard":
        render_dashboard_page(dashboard)
    elif page == "✏️ Edit":
        render_edit_page(dashboard)
    elif page == "⚙️ Settings":
        render_settings_page(dashboard)


def render_display_controls(dashboard: LedgerDashboard):
    """Owner filter and display currency selectors."""
    state = dashboard.state

    owners = list(OwnerFilter)
    owner = st.sidebar.selectbox(
        "Owner",
        options=owners,
        index=owners.index(state.owner_filter),
        format_func=lambda x: OWNER_FILTER_LABELS[x],
    )
    if owner is not state.owner_filter:
        run_async(dashboard.select_owner(owner))

    currency = st.sidebar.selectbox(
        "Display currency",
        options=SELECTABLE_CURRENCIES,
        index=SELECTABLE_CURRENCIES.index(state.display_currency),
    )
    if currency != state.display_currency:
        run_async(dashboard.select_currency(currency))


def render_dashboard_page(dashboard: LedgerDashboard):
    """Render totals, trends and cash flow."""
    view = dashboard.view()
    currency = view.display_currency

    st.title(view.title)

    if dashboard.state.last_error:
        st.warning("Could not load the ledger. Showing an empty ledger.")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("淨資產 Net worth", money(view.net_worth, currency))
    for column, category in zip((col2, col3, col4), Category):
        series = view.trends.get(category)
        delta = None
        if series is not None and series.has_data:
            delta = f"{DIRECTION_ARROWS[series.direction]} {series.percent:.1f}%"
        column.metric(
            CATEGORY_TITLES[category],
            money(view.totals.get(category), currency),
            delta=delta,
            delta_color="inverse" if category is Category.DEBT else "normal",
        )

    st.markdown("---")
    render_trends(view)

    st.markdown("---")
    render_cashflow(view)

    st.markdown("---")
    render_items(view)


def render_trends(view: DashboardView):
    st.subheader("📈 Trends")
    for category, series in view.trends.items():
        with st.expander(CATEGORY_TITLES[category], expanded=series.has_data):
            if not series.has_data:
                st.info("No history recorded for this category.")
                continue
            rows = []
            for point in series.points:
                row = {"Month": point.month, "Total": float(point.total_value)}
                for key in series.keys:
                    row[series_label(key, view.owner_filter)] = float(
                        point.values.get(key, 0)
                    )
                rows.append(row)
            st.dataframe(rows, hide_index=True, use_container_width=True)


def render_cashflow(view: DashboardView):
    st.subheader("🔁 Monthly cash flow")
    currency = view.display_currency
    col1, col2, col3 = st.columns(3)
    col1.metric("收入 Income", money(view.cashflow.income, currency))
    col2.metric("支出 Expense", money(view.cashflow.expense, currency))
    col3.metric("結餘 Balance", money(view.cashflow.balance, currency))


def render_items(view: DashboardView):
    st.subheader("📋 Items")
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Assets**")
        st.table([
            {
                "Owner": owner_display_name(asset.owner),
                "Name": asset.name,
                "Type": asset.type.value,
                "Amount": f"{asset.currency} {asset.effective_amount:,.2f}",
            }
            for asset in view.assets
        ])
    with col2:
        st.markdown("**Plans**")
        st.table([
            {
                "Owner": owner_display_name(plan.owner),
                "Name": plan.name,
                "Type": plan.type.value,
                "Frequency": plan.frequency.value,
                "Amount": f"{plan.currency} {plan.amount:,.2f}",
            }
            for plan in view.plans
        ])


def render_edit_page(dashboard: LedgerDashboard):
    """Pick an item (or a new one), edit it, save."""
    st.title("✏️ Edit")
    session = dashboard.edit_session
    view = dashboard.view()

    if not session.is_open:
        kind = st.radio(
            "What do you want to edit?",
            options=list(EditKind),
            format_func=lambda x: "資產 Asset" if x is EditKind.ASSET else "計畫 Plan",
            horizontal=True,
        )
        items = view.plans if kind is EditKind.PLAN else view.assets
        choices = [None] + [item.id for item in items]
        names = {item.id: f"{owner_display_name(item.owner)} - {item.name}" for item in items}
        item_id = st.selectbox(
            "Item",
            options=choices,
            format_func=lambda x: "➕ New" if x is None else names[x],
        )
        if st.button("Open", type="primary"):
            run_async(dashboard.open_edit(kind, item_id))
            st.rerun()
        return

    kind = session.kind
    draft = session.draft
    label = "plan" if kind is EditKind.PLAN else "asset"
    item_label = "new" if draft.id is None else draft.id
    st.markdown(f"Editing **{label}** `{item_label}`")

    type_options = draft.type_choices(kind)

    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("Name *", value=draft.name)
        owners = list(Owner)
        owner = st.selectbox(
            "Owner",
            options=owners,
            index=owners.index(draft.owner),
            format_func=owner_display_name,
        )
        entry_type = st.selectbox(
            "Type",
            options=type_options,
            index=type_options.index(draft.entry_type_for(kind)),
            format_func=lambda x: x.value,
        )
    with col2:
        currencies = SELECTABLE_CURRENCIES
        currency = st.selectbox(
            "Currency",
            options=currencies,
            index=currencies.index(draft.currency) if draft.currency in currencies else 0,
        )
        amount = st.number_input(
            "Amount *",
            value=float(draft.amount) if draft.amount is not None else 0.0,
            step=100.0,
            help="Debts are entered as positive amounts. 0 deletes the item.",
        )
        frequency = draft.frequency
        if kind is EditKind.PLAN:
            frequencies = list(Frequency)
            frequency = st.selectbox(
                "Frequency",
                options=frequencies,
                index=frequencies.index(draft.frequency),
                format_func=lambda x: x.value,
            )

    note = st.text_input("Note", value=draft.note or "")
    delete = st.checkbox("Delete this item", value=draft.delete, disabled=draft.id is None)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("💾 Save", type="primary"):
            dashboard.update_draft(
                name=name,
                owner=owner,
                type=entry_type,
                currency=currency,
                amount=Decimal(str(amount)),
                frequency=frequency,
                note=note,
                delete=delete,
            )
            try:
                run_async(dashboard.save_edit())
            except EditValidationError as e:
                st.error(str(e))
            else:
                st.rerun()
    with col2:
        if st.button("✖ Cancel"):
            run_async(dashboard.cancel_edit())
            st.rerun()


def render_settings_page(dashboard: LedgerDashboard):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Ledger endpoint", "endpoint"),
        ("Display", "display"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("### Title")
    title = st.text_input("Dashboard title", value=dashboard.state.title)
    if st.button("Rename") and title:
        run_async(dashboard.rename(title))
        st.rerun()

    st.markdown("### Recent activity")
    events = dashboard.audit_logger.events[-20:]
    if events:
        st.table([
            {
                "Time": event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                "Event": event.event_type.value,
                "Severity": event.severity.value,
                "Item": event.entity_id or "",
                "Description": event.description,
            }
            for event in reversed(events)
        ])
    else:
        st.info("No activity yet.")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file with the endpoint URL. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
