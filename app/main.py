"""
Streamlit Frontend for Coffee Tracker

A single page to record coffee purchases, review them in a table,
edit or delete them, and move them in and out as CSV.

DESIGN PRINCIPLES:
1. Simple form, one save at a time
2. Every save/delete shows a success or error notification
3. A failed save keeps the form contents so the user can retry
4. A failed load is shown as an error, never as an empty list
"""

import asyncio
from datetime import date

import streamlit as st

from coffee_tracker.exceptions import ConflictError, ParseError, StorageError
from coffee_tracker.models.expense import ExpenseInput, ExpenseRecord
from coffee_tracker.orchestrator import ExpenseTrackerFlow, ExportError, create_app_components


# Page configuration
st.set_page_config(
    page_title="Coffee Tracker",
    page_icon="☕",
    layout="wide",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_flow() -> ExpenseTrackerFlow:
    """Get or create the expense flow (cached)."""
    return create_app_components()


def empty_form() -> dict:
    return {
        "editing_id": None,
        "form_type": "",
        "form_location": "",
        "form_price": "",
        "form_date": date.today(),
        "form_notes": "",
    }


def init_state():
    """
    Initialize session state for the form.

    Widget-bound keys can only change before the widgets are drawn,
    so resets and edits are queued in pending_form and applied here.
    """
    if "import_token" not in st.session_state:
        st.session_state.import_token = 0
    pending = st.session_state.pop("pending_form", None)
    for key, value in (pending or empty_form()).items():
        if pending is not None or key not in st.session_state:
            st.session_state[key] = value


def flash(message: str):
    """Queue a success message to show after the rerun."""
    st.session_state.flash = message


def reset_form():
    st.session_state.pending_form = empty_form()


def start_edit(record: ExpenseRecord):
    expense = record.to_input()
    try:
        purchase_date = date.fromisoformat(expense.date)
    except ValueError:
        purchase_date = date.today()
    st.session_state.pending_form = {
        "editing_id": record.id,
        "form_type": expense.type,
        "form_location": expense.location,
        "form_price": expense.price,
        "form_date": purchase_date,
        "form_notes": expense.notes,
    }


def main():
    """Main application entry point."""
    init_state()
    flow = get_flow()

    st.title("☕ Coffee Tracker")
    st.caption(f"Storage: {flow.storage.backend_name}")

    message = st.session_state.pop("flash", None)
    if message:
        st.success(message)

    result = run_async(flow.load_expenses())
    if not result.ok:
        st.error(f"Failed to load expenses: {result.error}")
    if result.warning:
        st.warning(result.warning)

    render_summary(flow, result.expenses)
    st.markdown("---")

    col1, col2 = st.columns([1, 2])
    with col1:
        render_form(flow)
        st.markdown("---")
        render_import_export(flow, result.expenses)
    with col2:
        render_table(flow, result.expenses)


def render_summary(flow: ExpenseTrackerFlow, expenses: list[ExpenseRecord]):
    summary = flow.summarize(expenses)
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Spent", f"{summary.total:,.2f}")
    col2.metric("Coffees", summary.count)
    col3.metric("Average", f"{summary.average:,.2f}")


def render_form(flow: ExpenseTrackerFlow):
    """Render the add/edit form."""
    editing = st.session_state.editing_id is not None
    st.subheader("✏️ Edit Expense" if editing else "➕ Add Expense")

    with st.form("expense_form"):
        st.text_input("Coffee Type *", key="form_type", placeholder="Latte, Espresso...")
        st.text_input("Location *", key="form_location", placeholder="Where did you buy it?")
        st.text_input("Price *", key="form_price", placeholder="e.g., 4.50")
        st.date_input("Date", key="form_date")
        st.text_area("Notes", key="form_notes", placeholder="Any notes about this coffee...")

        submitted = st.form_submit_button(
            "💾 Update" if editing else "💾 Save",
            type="primary",
        )

    if editing and st.button("Cancel editing"):
        reset_form()
        st.rerun()

    if not submitted:
        return

    try:
        expense = ExpenseInput(
            type=st.session_state.form_type,
            location=st.session_state.form_location,
            price=st.session_state.form_price,
            date=st.session_state.form_date.isoformat(),
            notes=st.session_state.form_notes,
        )
    except ValueError:
        st.error("Please fill in coffee type, location and price.")
        return

    with st.spinner("Saving..."):
        try:
            run_async(flow.submit(expense, editing_id=st.session_state.editing_id))
        except ConflictError:
            st.error("The expenses were changed somewhere else. Reload the page and try again.")
            return
        except StorageError as e:
            st.error(f"Failed to save expense. Please try again. ({e})")
            return

    flash("Expense updated successfully" if editing else "New expense added successfully")
    reset_form()
    st.rerun()


def render_table(flow: ExpenseTrackerFlow, expenses: list[ExpenseRecord]):
    """Render the expense list with edit/delete actions."""
    st.subheader("📋 Expenses")

    if not expenses:
        st.info("No coffee expenses recorded yet. Add your first one with the form.")
        return

    header = st.columns([2, 2, 1, 2, 3, 1, 1])
    for column, label in zip(header, ["Date", "Type", "Price", "Location", "Notes", "", ""]):
        column.markdown(f"**{label}**")

    for expense in expenses:
        row = st.columns([2, 2, 1, 2, 3, 1, 1])
        row[0].write(expense.date)
        row[1].write(expense.type)
        row[2].write(expense.price)
        row[3].write(expense.location)
        row[4].write(expense.notes)

        if row[5].button("✏️", key=f"edit_{expense.id}", help="Edit"):
            start_edit(expense)
            st.rerun()

        if row[6].button("🗑️", key=f"delete_{expense.id}", help="Delete"):
            try:
                run_async(flow.delete(expense.id))
            except StorageError as e:
                st.error(f"Failed to delete expense. Please try again. ({e})")
            else:
                flash("Expense deleted successfully")
                st.rerun()


def render_import_export(flow: ExpenseTrackerFlow, expenses: list[ExpenseRecord]):
    """Render CSV import and export controls."""
    st.subheader("📁 CSV")

    try:
        filename, content = run_async(flow.export_csv(expenses))
    except ExportError:
        st.caption("No expenses to export")
    else:
        st.download_button(
            "⬇️ Export to CSV",
            data=content,
            file_name=filename,
            mime="text/csv",
        )

    uploaded = st.file_uploader(
        "Import from CSV",
        type=["csv"],
        key=f"import_{st.session_state.import_token}",
    )
    if uploaded and st.button("⬆️ Import", type="primary"):
        with st.spinner("Importing..."):
            try:
                report = run_async(flow.import_csv(uploaded.getvalue().decode("utf-8-sig")))
            except (ParseError, UnicodeDecodeError):
                st.error("Failed to parse CSV file. Please check the format.")
                return
            except StorageError as e:
                st.error(f"Failed to import expenses. Please try again. ({e})")
                return

        message = f"Successfully imported {report.imported} expenses"
        if report.skipped:
            message += f" ({report.skipped} rows skipped)"
        flash(message)
        st.session_state.import_token += 1
        st.rerun()


if __name__ == "__main__":
    main()
