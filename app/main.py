"""
Streamlit Frontend for Personal Expense Tracker

Single-page UI over the offline-first client.

DESIGN PRINCIPLES:
1. The app always works: offline, changes go to the local store
2. Nothing is hidden: unsynced rows carry a "Pending" badge
3. The online/offline badge is the only place network trouble shows up
4. Summaries are recomputed from the working set on every render

Connectivity is probed by a fragment that re-runs on a fixed interval;
an offline -> online transition pushes pending changes.
"""

import asyncio
import html
from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.models import ExpenseCategory, ExpenseFields, LocalExpense
from expense_tracker.orchestrator import ExpenseTrackerFlow, create_app_components
from expense_tracker.services.storage import NotFoundError
from expense_tracker.summaries import SummaryPeriod


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="wide",
)

st.markdown("""
<style>
    .status-online {
        padding: 6px 14px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        display: inline-block;
    }
    .status-offline {
        padding: 6px 14px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        display: inline-block;
    }
    .pending-badge {
        padding: 2px 8px;
        background-color: #fff3cd;
        border-radius: 8px;
        font-size: 0.8em;
        color: #856404;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def format_usd(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def main():
    """Main application entry point."""
    flow, _ = get_components()

    if "editing_id" not in st.session_state:
        st.session_state.editing_id = None

    st.title("💸 Expense Tracker")
    render_connectivity(flow)

    expenses = run_async(flow.refresh())

    render_summaries(flow, expenses)
    st.markdown("---")

    form_col, list_col = st.columns([1, 2])
    with form_col:
        render_expense_form(flow, expenses)
    with list_col:
        render_expense_list(flow, expenses)

    st.markdown("---")
    with st.expander("Sync activity"):
        render_sync_activity(flow)
    with st.expander("Settings"):
        render_settings()


@st.fragment(run_every=get_settings().client.probe_interval_seconds)
def render_connectivity(flow: ExpenseTrackerFlow):
    """Probe the service and show the badge (re-runs on its own)."""
    was_online = flow.is_online
    with st.spinner("Syncing..."):
        online = run_async(flow.check_connectivity())

    if online:
        st.markdown('<span class="status-online">🟢 Online</span>', unsafe_allow_html=True)
    else:
        st.markdown('<span class="status-offline">🔴 Offline</span>', unsafe_allow_html=True)

    if online != was_online:
        # The working set changes with the signal
        st.rerun()


def render_summaries(flow: ExpenseTrackerFlow, expenses: list[LocalExpense]):
    totals = run_async(flow.summaries(expenses, now=datetime.now()))

    col1, col2, col3 = st.columns(3)
    col1.metric("Today", format_usd(totals[SummaryPeriod.TODAY]))
    col2.metric("Last 7 days", format_usd(totals[SummaryPeriod.WEEK]))
    col3.metric("This month", format_usd(totals[SummaryPeriod.MONTH]))

    by_category = run_async(flow.category_totals(expenses))
    st.markdown("#### Spending by category")
    chart_data = pd.DataFrame(
        {"Amount": [float(v) for v in by_category.values()]},
        index=[category.value for category in by_category],
    )
    st.bar_chart(chart_data)


def render_expense_form(flow: ExpenseTrackerFlow, expenses: list[LocalExpense]):
    """Add form, or edit form when a row's Edit button was pressed."""
    editing = None
    if st.session_state.editing_id:
        editing = next(
            (e for e in expenses if e.id == st.session_state.editing_id), None
        )
        if editing is None:
            st.session_state.editing_id = None

    st.markdown("### ✏️ Edit expense" if editing else "### ➕ Add expense")

    categories = list(ExpenseCategory)
    with st.form("expense_form", clear_on_submit=editing is None):
        amount = st.number_input(
            "Amount (USD)",
            min_value=0.0,
            step=0.01,
            format="%.2f",
            value=float(editing.amount) if editing else 0.0,
        )
        description = st.text_input(
            "Description",
            value=editing.description if editing else "",
        )
        category = st.selectbox(
            "Category",
            options=categories,
            index=categories.index(editing.category) if editing else 0,
            format_func=lambda c: c.value,
        )
        expense_date = st.date_input(
            "Date",
            value=editing.date if editing else date.today(),
        )

        submitted = st.form_submit_button("Save changes" if editing else "Add expense")

    if editing and st.button("Cancel edit"):
        st.session_state.editing_id = None
        st.rerun()

    if not submitted:
        return

    try:
        fields = ExpenseFields(
            amount=Decimal(str(amount)),
            description=description,
            category=category,
            date=expense_date,
        )
    except ValidationError:
        st.error("Please fill in every field.")
        return

    try:
        if editing:
            record = run_async(flow.edit_expense(editing.id, fields))
            st.session_state.editing_id = None
        else:
            record = run_async(flow.create_expense(fields))
    except NotFoundError:
        st.error("That expense no longer exists.")
        st.session_state.editing_id = None
        return

    if record.synced:
        st.success("Saved.")
    else:
        st.info("Saved on this device. It will sync when you are back online.")
    st.rerun()


def render_expense_list(flow: ExpenseTrackerFlow, expenses: list[LocalExpense]):
    st.markdown("### 📋 Expenses")

    if not expenses:
        st.info("No expenses yet. Add your first one with the form.")
        return

    for expense in sorted(expenses, key=lambda e: e.date, reverse=True):
        cols = st.columns([2, 4, 2, 2, 1, 1])
        cols[0].write(expense.date.isoformat())
        label = html.escape(expense.description)
        if not expense.synced:
            label += ' <span class="pending-badge">Pending</span>'
        cols[1].markdown(label, unsafe_allow_html=True)
        cols[2].write(expense.category.value)
        cols[3].write(format_usd(expense.amount))

        if cols[4].button("Edit", key=f"edit_{expense.id}"):
            st.session_state.editing_id = expense.id
            st.rerun()
        if cols[5].button("Delete", key=f"delete_{expense.id}"):
            run_async(flow.delete_expense(expense.id))
            if st.session_state.editing_id == expense.id:
                st.session_state.editing_id = None
            st.rerun()


def render_sync_activity(flow: ExpenseTrackerFlow):
    if st.button("Sync now"):
        report = run_async(flow.push_pending())
        if report.skipped:
            st.info("A sync is already running.")
        elif report.aborted:
            st.warning("The service went away mid-sync; the rest will retry later.")
        else:
            st.success(f"Synced {len(report.succeeded)} change(s).")

    events = run_async(flow.recent_activity(limit=20))
    if not events:
        st.caption("No sync activity recorded yet.")
        return

    for event in events:
        summary = event.details.get("operation") or event.details.get("reason") or ""
        st.write(
            f"{event.timestamp:%Y-%m-%d %H:%M:%S} · {event.event_type.value} "
            f"· {event.entity_id or ''} {summary}"
        )


def render_settings():
    """Show whether each settings group loads."""
    status = validate_all_settings()

    groups = [
        ("Record service", "server"),
        ("Client", "client"),
        ("Application", "app"),
    ]

    for name, key in groups:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.caption(f"Record service: {get_settings().client.api_base}")
    st.markdown(
        "Configure with environment variables or a `.env` file "
        "(`EXPENSE_CLIENT_API_BASE`, `EXPENSE_SERVER_PORT`, ...)."
    )


if __name__ == "__main__":
    main()
