"""
Streamlit Frontend for Expense Tracker

This is the presenter: it renders the dashboard state and turns widget
interactions into criteria changes and ledger commands.

DESIGN PRINCIPLES:
1. The page never edits expenses itself - everything goes through
   the dashboard's commands
2. Rows only carry expense IDs
3. Destructive actions ask for confirmation first
4. Every error is shown to the user in plain language
"""

from datetime import date
from decimal import Decimal

import streamlit as st

from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.exports import ExportFormat
from expense_tracker.models.criteria import SortKey
from expense_tracker.models.expense import ExpenseCategory, MalformedInputError
from expense_tracker.orchestrator import ExpenseDashboard, create_dashboard
from expense_tracker.services.storage import NotFoundError, StorageError


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

SORT_LABELS = {
    SortKey.DATE_DESC: "Date (newest first)",
    SortKey.DATE_ASC: "Date (oldest first)",
    SortKey.AMOUNT_DESC: "Amount (high to low)",
    SortKey.AMOUNT_ASC: "Amount (low to high)",
    SortKey.CATEGORY: "Category",
    SortKey.DESCRIPTION: "Description",
}


def format_money(amount: Decimal) -> str:
    """Format an amount with the configured currency."""
    currency = get_settings().app.currency_code
    symbol = "₹" if currency == "INR" else f"{currency} "
    return f"{symbol}{amount:,.2f}"


def format_date(value: date) -> str:
    return value.strftime("%b %d, %Y").replace(" 0", " ")


def get_dashboard() -> ExpenseDashboard:
    """One dashboard per browser session."""
    if "dashboard" not in st.session_state:
        with st.spinner("Loading your expenses..."):
            st.session_state.dashboard = create_dashboard()
    return st.session_state.dashboard


def main():
    """Main application entry point."""
    dashboard = get_dashboard()

    if "editing_id" not in st.session_state:
        st.session_state.editing_id = None
    if "confirm_action" not in st.session_state:
        st.session_state.confirm_action = None

    render_sidebar(dashboard)

    for error in dashboard.take_deferred_errors():
        st.warning(f"{error.command} could not be applied: {error.message}")

    st.title("💸 Expense Tracker")
    render_metrics(dashboard)
    render_charts(dashboard)
    render_table(dashboard)
    render_expense_form(dashboard)
    render_confirmation(dashboard)
    render_export(dashboard)


def render_sidebar(dashboard: ExpenseDashboard):
    """Filter controls. Any change goes back to page 1."""
    criteria = dashboard.criteria
    ceiling = float(get_settings().app.amount_filter_ceiling)

    st.sidebar.title("🔎 Filters")

    search_term = st.sidebar.text_input(
        "Search description or location",
        value=criteria.search_term,
    )

    date_range = st.sidebar.date_input(
        "Date range",
        value=(criteria.date_from, criteria.date_to),
    )
    date_from, date_to = criteria.date_from, criteria.date_to
    if isinstance(date_range, (list, tuple)) and len(date_range) == 2:
        date_from, date_to = date_range

    min_amount, max_amount = st.sidebar.slider(
        "Amount range",
        min_value=0.0,
        max_value=ceiling,
        value=(
            float(criteria.min_amount or 0),
            float(criteria.max_amount if criteria.max_amount is not None else ceiling),
        ),
    )

    st.sidebar.markdown("**Categories**")
    active_categories = frozenset(
        category for category in ExpenseCategory
        if st.sidebar.checkbox(
            category.value,
            value=category in criteria.active_categories,
            key=f"cat-{category.name}",
        )
    )

    sort_key = st.sidebar.selectbox(
        "Sort by",
        options=list(SORT_LABELS),
        index=list(SORT_LABELS).index(criteria.sort_key),
        format_func=SORT_LABELS.get,
    )

    dashboard.update_criteria(
        search_term=search_term,
        date_from=date_from,
        date_to=date_to,
        min_amount=Decimal(str(min_amount)),
        max_amount=Decimal(str(max_amount)),
        active_categories=active_categories,
        sort_key=sort_key,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Reset filters"):
        for category in ExpenseCategory:
            st.session_state.pop(f"cat-{category.name}", None)
        dashboard.reset_filters()
        st.toast("Filters reset.")
        st.rerun()

    if st.sidebar.button("🗑️ Delete all expenses"):
        st.session_state.confirm_action = ("delete_all", None)

    with st.sidebar.expander("Settings status"):
        status = validate_all_settings()
        for key in ("storage", "app"):
            if status.get(key, False):
                st.success(f"✅ {key} settings OK")
            else:
                st.error(f"❌ {key}: {status.get(f'{key}_error', 'Not configured')}")


def render_metrics(dashboard: ExpenseDashboard):
    metrics = dashboard.state.metrics

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total spend", format_money(metrics.total_spend))

    if metrics.month_change_percent is None:
        delta = None
    else:
        delta = f"{metrics.month_change_percent:+.1f}%"
    col2.metric(
        "This month",
        format_money(metrics.month_spend),
        delta=delta,
        delta_color="inverse",
        help=None if delta else "No previous data",
    )

    col3.metric(
        "Top category",
        metrics.top_category.value if metrics.top_category else "–",
        help=format_money(metrics.top_category_amount),
    )
    col4.metric(
        "Last 7 days",
        metrics.recent_count,
        help=f"{metrics.matched_count} total",
    )


def render_charts(dashboard: ExpenseDashboard):
    metrics = dashboard.state.metrics

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Monthly spending")
        st.bar_chart(
            {
                "Month": [entry.label for entry in metrics.monthly_trend],
                "Spending": [float(entry.total) for entry in metrics.monthly_trend],
            },
            x="Month",
            y="Spending",
        )
    with col2:
        st.subheader("By category")
        if not metrics.category_totals:
            st.info("No data to display")
        else:
            st.bar_chart(
                {
                    "Category": [entry.category.value for entry in metrics.category_totals],
                    "Spending": [float(entry.total) for entry in metrics.category_totals],
                },
                x="Category",
                y="Spending",
            )


def render_table(dashboard: ExpenseDashboard):
    view = dashboard.state.view

    st.subheader("Expenses")
    if not view.items:
        st.info("No expenses found. Try adding some expenses or adjusting your filters.")

    for expense in view.items:
        cols = st.columns([2, 4, 2, 2, 2, 1, 1])
        cols[0].write(format_date(expense.date))
        cols[1].write(expense.description)
        cols[2].write(expense.category.value)
        cols[3].write(expense.location or "–")
        cols[4].write(format_money(expense.amount))
        if cols[5].button("✏️", key=f"edit-{expense.id}", help="Edit"):
            st.session_state.editing_id = expense.id
        if cols[6].button("🗑️", key=f"delete-{expense.id}", help="Delete"):
            st.session_state.confirm_action = ("delete", expense.id)

    prev_col, info_col, next_col = st.columns([1, 3, 1])
    if prev_col.button("◀ Previous", disabled=not view.has_previous):
        dashboard.change_page(-1)
        st.rerun()
    info_col.write(f"Page {view.page} of {view.total_pages} ({view.total_matched} expenses)")
    if next_col.button("Next ▶", disabled=not view.has_next):
        dashboard.change_page(1)
        st.rerun()


def render_expense_form(dashboard: ExpenseDashboard):
    """Add form, or edit form when a row's edit button was pressed."""
    editing = None
    if st.session_state.editing_id is not None:
        try:
            editing = dashboard.ledger.get(st.session_state.editing_id)
        except NotFoundError:
            st.session_state.editing_id = None

    st.subheader("Edit expense" if editing else "Add expense")
    categories = list(ExpenseCategory)

    with st.form("expense_form", clear_on_submit=editing is None):
        description = st.text_input("Description", value=editing.description if editing else "")
        amount = st.text_input("Amount", value=str(editing.amount) if editing else "")
        category = st.selectbox(
            "Category",
            options=categories,
            index=categories.index(editing.category) if editing else 0,
            format_func=lambda c: c.value,
        )
        expense_date = st.date_input("Date", value=editing.date if editing else date.today())
        location = st.text_input("Location", value=(editing.location or "") if editing else "")
        submitted = st.form_submit_button("Save")

    if editing and st.button("Cancel edit"):
        st.session_state.editing_id = None
        st.rerun()

    if not submitted:
        return

    data = {
        "description": description,
        "amount": amount,
        "category": category,
        "date": expense_date,
        "location": location,
    }
    try:
        if editing:
            dashboard.update_expense(editing.id, data)
            st.session_state.editing_id = None
            st.toast("Expense updated.")
        else:
            dashboard.create_expense(data)
            st.toast("Expense added.")
    except MalformedInputError as e:
        for issue in e.issues:
            st.error(f"{issue.field}: {issue.message}")
        return
    except NotFoundError:
        st.error("That expense no longer exists.")
        st.session_state.editing_id = None
        return
    except StorageError as e:
        st.error(f"Could not save: {e}")
        return
    st.rerun()


def render_confirmation(dashboard: ExpenseDashboard):
    if not st.session_state.confirm_action:
        return

    action, expense_id = st.session_state.confirm_action
    if action == "delete":
        st.warning("Delete expense? This action cannot be undone – proceed?")
    else:
        st.warning("Reset all data? Permanently delete all expenses?")

    col1, col2 = st.columns(2)
    if col1.button("Confirm", type="primary"):
        st.session_state.confirm_action = None
        try:
            if action == "delete":
                dashboard.delete_expense(expense_id)
                st.toast("Expense deleted.")
            else:
                dashboard.delete_all()
                st.toast("All data cleared.")
        except NotFoundError:
            st.error("That expense was already deleted.")
        except StorageError as e:
            st.error(f"Could not save: {e}")
        st.rerun()
    if col2.button("Cancel"):
        st.session_state.confirm_action = None
        st.rerun()


def render_export(dashboard: ExpenseDashboard):
    state = dashboard.state
    metrics = state.metrics

    with st.expander("📋 Summary & export"):
        col1, col2, col3 = st.columns(3)
        col1.metric("Total", format_money(metrics.total_spend))
        col2.metric("Expenses", metrics.matched_count)
        if metrics.earliest_date and metrics.latest_date:
            col3.metric(
                "Date range",
                f"{format_date(metrics.earliest_date)} - {format_date(metrics.latest_date)}",
            )
        else:
            col3.metric("Date range", "–")

        for export_format in ExportFormat:
            payload = dashboard.export(export_format, record=False)
            clicked = st.download_button(
                f"Export as {export_format.value.upper()}",
                data=payload.content,
                file_name=payload.filename,
                mime=payload.media_type,
                key=f"export-{export_format.value}",
            )
            if clicked:
                dashboard.record_export(payload)


if __name__ == "__main__":
    main()
