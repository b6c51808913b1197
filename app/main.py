"""
Streamlit Frontend for Money Mate

The pages a user works with every day: a dashboard, a transaction form,
history, debts, analytics, family sharing and settings.

DESIGN PRINCIPLES:
1. Every page is a form over the user's own records
2. Amounts are entered in the base currency; the secondary currency is
   shown alongside using the rate saved in settings
3. Input problems are shown as warnings next to the form
4. Remote failures are shown as a short error, never a stack trace
5. Deleting anything requires ticking a confirmation box first
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from moneymate.config import get_settings, validate_all_settings
from moneymate.ledger import DateFilter, classify, group_by_direction
from moneymate.models import (
    DebtDirection,
    Priority,
    Theme,
    TransactionType,
    all_categories,
    categories_for,
)
from moneymate.orchestrator import (
    AppComponents,
    OperationFailedError,
    create_app_components,
)
from moneymate.reports import DisplayConfig, TimeRange, format_amount, format_both
from moneymate.validation import InputValidationError, get_user_friendly_summary


# Page configuration
st.set_page_config(
    page_title="Money Mate",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
</style>
""", unsafe_allow_html=True)


PRIORITY_LABELS = {
    Priority.OVERDUE: "🔴 Overdue",
    Priority.URGENT: "🟠 Due within a week",
    Priority.MEDIUM: "🟡 Due this month",
    Priority.LOW: "🟢 Low",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    components = create_app_components(use_storage=True)
    components.session.login()
    return components


def show_failure(error: Exception) -> None:
    """Warnings for input problems, errors for everything else."""
    if isinstance(error, InputValidationError):
        st.warning(get_user_friendly_summary(error.result))
    elif isinstance(error, OperationFailedError):
        st.error(str(error))
    else:
        st.error("Something went wrong. Please try again.")


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("💰 Money Mate")

    if not components.session.is_authenticated:
        st.sidebar.warning("Not signed in")
        if st.sidebar.button("Sign in"):
            components.session.login()
            st.rerun()
        st.info("Sign in to see your finances.")
        return

    user = components.session.user
    st.sidebar.markdown(f"Welcome back, **{user.greeting_name}**")
    if not components.uses_remote_storage:
        st.sidebar.caption("⚠️ Storage not configured: data is kept in memory only")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "🏠 Dashboard",
            "➕ Add Transaction",
            "📜 History",
            "🤝 Debts",
            "📊 Analytics",
            "👪 Family",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Sign out"):
        components.session.logout()
        st.rerun()

    try:
        config = run_async(components.preferences.display_config())
    except OperationFailedError as e:
        show_failure(e)
        config = DisplayConfig(
            base_currency=components.settings.base_currency,
            secondary_currency=components.settings.secondary_currency,
            exchange_rate=components.settings.default_exchange_rate,
        )

    if page == "🏠 Dashboard":
        render_dashboard_page(components, config)
    elif page == "➕ Add Transaction":
        render_add_transaction_page(components, config)
    elif page == "📜 History":
        render_history_page(components, config)
    elif page == "🤝 Debts":
        render_debts_page(components, config)
    elif page == "📊 Analytics":
        render_analytics_page(components, config)
    elif page == "👪 Family":
        render_family_page(components)
    elif page == "⚙️ Settings":
        render_settings_page(components, config)


def render_dashboard_page(components: AppComponents, config: DisplayConfig):
    """Render this month's figures and what needs attention."""
    st.title("🏠 Dashboard")

    try:
        view = run_async(components.analytics.dashboard())
    except OperationFailedError as e:
        show_failure(e)
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income this month", format_amount(view.month_income, config))
    col2.metric("Expenses this month", format_amount(view.month_expenses, config))
    col3.metric("You owe", format_amount(view.total_owed, config))
    col4.metric("Owed to you", format_amount(view.total_lent, config))

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.subheader("Recent transactions")
        if not view.recent_transactions:
            st.info("No transactions yet. Add your first one from the sidebar.")
        for t in view.recent_transactions:
            sign = "+" if t.kind == TransactionType.INCOME else "-"
            st.markdown(
                f"**{t.description}** · {t.category} · {t.transaction_date:%d %b %Y}  \n"
                f"{sign}{format_both(t.amount_base, config)}"
            )

    with right:
        st.subheader("Upcoming debts")
        if not view.upcoming_debts:
            st.info("No active debts.")
        today = date.today()
        for debt in view.upcoming_debts:
            direction = "You owe" if debt.direction == DebtDirection.OWE else "Owes you"
            due = f"due {debt.due_date:%d %b %Y}" if debt.due_date else "no due date"
            st.markdown(
                f"**{debt.person_name}** · {direction} "
                f"{format_amount(debt.remaining_amount_base, config)} · {due}  \n"
                f"{PRIORITY_LABELS[classify(debt, today)]}"
            )


def render_add_transaction_page(components: AppComponents, config: DisplayConfig):
    """Render the new transaction form."""
    st.title("➕ Add Transaction")

    kind = st.radio(
        "Type",
        options=list(TransactionType),
        format_func=lambda k: k.value.title(),
        horizontal=True,
    )

    with st.form("add_transaction", clear_on_submit=True):
        category = st.selectbox("Category *", options=categories_for(kind))
        amount = st.number_input(
            f"Amount ({config.base_currency}) *",
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        if amount:
            st.caption(f"≈ {format_amount(Decimal(str(amount)), config, config.secondary_currency)}")
        description = st.text_input("Description *")
        transaction_date = st.date_input("Date", value=date.today())
        submitted = st.form_submit_button("💾 Save Transaction", type="primary")

    if submitted:
        try:
            saved = run_async(components.transactions.create_transaction(
                kind=kind,
                category=category,
                amount=Decimal(str(amount)),
                description=description,
                transaction_date=transaction_date,
                exchange_rate=config.exchange_rate,
            ))
        except (InputValidationError, OperationFailedError) as e:
            show_failure(e)
        else:
            st.success(f"Saved {saved.kind.value} of {format_both(saved.amount_base, config)}")


def render_history_page(components: AppComponents, config: DisplayConfig):
    """Render the filterable transaction list."""
    st.title("📜 Transaction History")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        search = st.text_input("Search", placeholder="Description or category")
    with col2:
        kind = st.selectbox(
            "Type",
            options=[None] + list(TransactionType),
            format_func=lambda k: "All Types" if k is None else k.value.title(),
        )
    with col3:
        category = st.selectbox(
            "Category",
            options=[None] + (list(categories_for(kind)) if kind else all_categories()),
            format_func=lambda c: "All Categories" if c is None else c,
        )
    with col4:
        window = st.selectbox(
            "Date",
            options=list(DateFilter),
            format_func=lambda w: w.value.title(),
        )

    try:
        transactions = run_async(components.transactions.history(
            search=search, kind=kind, category=category, window=window,
        ))
    except OperationFailedError as e:
        show_failure(e)
        return

    income = sum((t.amount_base for t in transactions if t.kind == TransactionType.INCOME), Decimal("0"))
    expenses = sum((t.amount_base for t in transactions if t.kind == TransactionType.EXPENSE), Decimal("0"))
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", format_amount(income, config))
    col2.metric("Expenses", format_amount(expenses, config))
    col3.metric("Net", format_amount(income - expenses, config))

    st.markdown("---")
    if not transactions:
        st.info("No transactions match these filters.")

    for t in transactions:
        label = f"{t.transaction_date:%d %b %Y} · {t.description} · {format_both(t.amount_base, config)}"
        with st.expander(label):
            with st.form(f"edit_{t.id}"):
                new_category = st.selectbox(
                    "Category",
                    options=categories_for(t.kind),
                    index=categories_for(t.kind).index(t.category),
                )
                new_amount = st.number_input(
                    f"Amount ({config.base_currency})",
                    value=float(t.amount_base),
                    min_value=0.0,
                    step=0.01,
                    format="%.2f",
                )
                new_description = st.text_input("Description", value=t.description)
                new_date = st.date_input("Date", value=t.transaction_date)
                if st.form_submit_button("Update"):
                    try:
                        run_async(components.transactions.update_transaction(
                            t,
                            category=new_category,
                            amount=Decimal(str(new_amount)),
                            description=new_description,
                            transaction_date=new_date,
                            exchange_rate=config.exchange_rate,
                        ))
                        st.rerun()
                    except (InputValidationError, OperationFailedError) as e:
                        show_failure(e)

            confirm = st.checkbox("I want to delete this transaction", key=f"confirm_{t.id}")
            if st.button("🗑️ Delete", key=f"delete_{t.id}", disabled=not confirm):
                try:
                    run_async(components.transactions.delete_transaction(t.id))
                    st.rerun()
                except OperationFailedError as e:
                    show_failure(e)


def render_debts_page(components: AppComponents, config: DisplayConfig):
    """Render debts with payment recording."""
    st.title("🤝 Debts")

    with st.expander("➕ Add a debt"):
        with st.form("add_debt", clear_on_submit=True):
            direction = st.radio(
                "Direction",
                options=list(DebtDirection),
                format_func=lambda d: "I owe" if d == DebtDirection.OWE else "I lent",
                horizontal=True,
            )
            person_name = st.text_input("Person *")
            amount = st.number_input(
                f"Amount ({config.base_currency}) *",
                min_value=0.0,
                step=0.01,
                format="%.2f",
            )
            purpose = st.text_input("Purpose *")
            has_due_date = st.checkbox("Has a due date")
            due_date = st.date_input("Due date", value=date.today())
            if st.form_submit_button("💾 Save Debt", type="primary"):
                try:
                    run_async(components.debts.add_debt(
                        direction=direction,
                        person_name=person_name,
                        amount=Decimal(str(amount)),
                        purpose=purpose,
                        exchange_rate=config.exchange_rate,
                        due_date=due_date if has_due_date else None,
                    ))
                    st.rerun()
                except (InputValidationError, OperationFailedError) as e:
                    show_failure(e)

    try:
        active, paid = run_async(components.debts.active_and_paid())
    except OperationFailedError as e:
        show_failure(e)
        return

    today = date.today()
    groups = group_by_direction(active)
    for direction, title in ((DebtDirection.OWE, "You owe"), (DebtDirection.LENT, "Owed to you")):
        st.subheader(title)
        if not groups[direction]:
            st.caption("Nothing here.")
        for debt in groups[direction]:
            render_debt(components, config, debt, today)

    if paid:
        st.markdown("---")
        st.subheader("✅ Paid")
        for debt in paid:
            render_debt(components, config, debt, today)


def render_debt(components: AppComponents, config: DisplayConfig, debt, today: date):
    priority = classify(debt, today)
    label = (
        f"{debt.person_name} · {format_amount(debt.remaining_amount_base, config)} "
        f"of {format_amount(debt.total_amount_base, config)}"
    )
    if not debt.is_paid:
        label += f" · {PRIORITY_LABELS[priority]}"

    with st.expander(label):
        st.markdown(f"**Purpose:** {debt.purpose}")
        if debt.due_date:
            st.markdown(f"**Due:** {debt.due_date:%d %B %Y}")
        st.progress(debt.progress_percent / 100)

        if not debt.is_paid:
            with st.form(f"pay_{debt.id}", clear_on_submit=True):
                amount = st.number_input(
                    f"Payment ({config.base_currency})",
                    min_value=0.0,
                    max_value=float(debt.remaining_amount_base),
                    step=0.01,
                    format="%.2f",
                )
                notes = st.text_input("Notes (optional)")
                if st.form_submit_button("Record payment"):
                    try:
                        run_async(components.debts.record_payment(
                            debt,
                            amount=Decimal(str(amount)),
                            exchange_rate=config.exchange_rate,
                            notes=notes,
                        ))
                        st.rerun()
                    except (InputValidationError, OperationFailedError) as e:
                        show_failure(e)

        if st.checkbox("Show payment history", key=f"history_{debt.id}"):
            try:
                payments = run_async(components.debts.payment_history(debt.id))
            except OperationFailedError as e:
                show_failure(e)
            else:
                if not payments:
                    st.caption("No payments yet.")
                for p in payments:
                    line = f"{p.payment_date:%d %b %Y} · {format_both(p.amount_base, config)}"
                    if p.notes:
                        line += f" · {p.notes}"
                    st.markdown(line)

        confirm = st.checkbox("I want to delete this debt", key=f"confirm_{debt.id}")
        if st.button("🗑️ Delete", key=f"delete_{debt.id}", disabled=not confirm):
            try:
                run_async(components.debts.delete_debt(debt.id))
                st.rerun()
            except OperationFailedError as e:
                show_failure(e)


def render_analytics_page(components: AppComponents, config: DisplayConfig):
    """Render monthly and category breakdowns."""
    st.title("📊 Analytics")

    time_range = st.selectbox(
        "Time range",
        options=list(TimeRange),
        index=list(TimeRange).index(TimeRange.SIX_MONTHS),
        format_func=lambda r: {
            TimeRange.ONE_MONTH: "Last month",
            TimeRange.THREE_MONTHS: "Last 3 months",
            TimeRange.SIX_MONTHS: "Last 6 months",
            TimeRange.ONE_YEAR: "Last year",
        }[r],
    )

    try:
        report = run_async(components.analytics.report(time_range))
    except OperationFailedError as e:
        show_failure(e)
        return

    summary = report.summary
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total income", format_amount(summary.total_income, config))
    col2.metric("Total expenses", format_amount(summary.total_expenses, config))
    col3.metric("Net", format_amount(summary.net, config))
    col4.metric("Avg monthly expenses", format_amount(summary.average_monthly_expenses, config))

    if not report.transaction_count:
        st.info("No transactions in this period.")
        return

    st.subheader("Monthly trend")
    st.bar_chart(
        {
            "Income": {m.month: float(m.income) for m in report.monthly},
            "Expenses": {m.month: float(m.expense) for m in report.monthly},
        }
    )

    left, right = st.columns(2)
    for column, title, rows in (
        (left, "Expenses by category", report.expense_categories),
        (right, "Income by category", report.income_categories),
    ):
        with column:
            st.subheader(title)
            for row in rows:
                st.markdown(
                    f"**{row.category}** · {format_amount(row.amount, config)} "
                    f"· {row.percentage:.1f}% · {row.count} transaction(s)"
                )


def render_family_page(components: AppComponents):
    """Render view-only sharing grants."""
    st.title("👪 Family Access")
    st.markdown("Family members you add can view your finances. They cannot make changes.")

    with st.form("add_member", clear_on_submit=True):
        email = st.text_input("Member email")
        if st.form_submit_button("Add member", type="primary"):
            try:
                run_async(components.family.add_member(email))
                st.rerun()
            except (InputValidationError, OperationFailedError) as e:
                show_failure(e)

    try:
        members = run_async(components.family.list_members())
    except OperationFailedError as e:
        show_failure(e)
        return

    active_count = sum(1 for m in members if m.is_active)
    st.caption(f"{active_count} active of {len(members)} member(s)")

    for member in members:
        col1, col2, col3 = st.columns([3, 1, 1])
        status = "Active" if member.is_active else "Disabled"
        col1.markdown(f"**{member.member_email}** · {status}")
        if col2.button("Disable" if member.is_active else "Enable", key=f"toggle_{member.id}"):
            try:
                run_async(components.family.toggle_member(member))
                st.rerun()
            except OperationFailedError as e:
                show_failure(e)
        with col3:
            confirm = st.checkbox("Confirm", key=f"confirm_{member.id}")
            if st.button("Remove", key=f"remove_{member.id}", disabled=not confirm):
                try:
                    run_async(components.family.remove_member(member.id))
                    st.rerun()
                except OperationFailedError as e:
                    show_failure(e)


def render_settings_page(components: AppComponents, config: DisplayConfig):
    """Render preferences, export and storage status."""
    st.title("⚙️ Settings")

    try:
        preferences = run_async(components.preferences.get_preferences())
    except OperationFailedError as e:
        show_failure(e)
        return

    st.markdown("### Preferences")
    with st.form("exchange_rate"):
        rate = st.number_input(
            f"1 {config.base_currency} = ? {config.secondary_currency}",
            value=float(preferences.exchange_rate),
            min_value=0.0,
            step=0.01,
        )
        if st.form_submit_button("Save rate"):
            try:
                run_async(components.preferences.update_exchange_rate(Decimal(str(rate))))
                st.rerun()
            except (InputValidationError, OperationFailedError) as e:
                show_failure(e)

    currencies = [config.base_currency, config.secondary_currency]
    currency = st.selectbox(
        "Default currency",
        options=currencies,
        index=currencies.index(preferences.default_currency)
        if preferences.default_currency in currencies else 0,
    )
    if currency != preferences.default_currency and st.button("Save currency"):
        try:
            run_async(components.preferences.set_default_currency(currency))
            st.rerun()
        except (InputValidationError, OperationFailedError) as e:
            show_failure(e)

    theme_label = "🌙 Dark" if preferences.theme == Theme.DARK else "☀️ Light"
    if st.button(f"Theme: {theme_label} (switch)"):
        try:
            run_async(components.preferences.toggle_theme())
            st.rerun()
        except OperationFailedError as e:
            show_failure(e)

    st.markdown("---")
    st.markdown("### Your data")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Prepare JSON export"):
            try:
                filename, document = run_async(components.data.export_json())
                st.download_button("⬇️ Download JSON", document, file_name=filename, mime="application/json")
            except OperationFailedError as e:
                show_failure(e)
    with col2:
        if st.button("Prepare CSV export"):
            try:
                filename, text = run_async(components.data.export_csv())
                st.download_button("⬇️ Download CSV", text, file_name=filename, mime="text/csv")
            except OperationFailedError as e:
                show_failure(e)

    st.markdown("#### Danger zone")
    confirm = st.checkbox("I understand this permanently deletes all my transactions and debts")
    if st.button("🗑️ Clear all data", disabled=not confirm):
        try:
            counts = run_async(components.data.clear_all())
            st.success(
                f"Deleted {counts['transactions']} transactions, {counts['debts']} debts "
                f"and {counts['debt_payments']} payments."
            )
        except OperationFailedError as e:
            show_failure(e)

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()
    for name, key in (
        ("Google Sheets (Storage)", "google_sheets"),
        ("Signed-in identity", "session"),
        ("Application", "app"),
    ):
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.caption(f"Environment: {get_settings().app.app_environment}")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
