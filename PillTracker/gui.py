"""
This module defines the graphical user interface (GUI) for the PillTracker application using Streamlit.

It includes functions for rendering the authentication pages (welcome, login,
register) and the three pages of the main app:
- Today's Schedule, where every user marks doses as taken or not taken.
- Manage Medications, where administrators add, edit, activate and delete medications.
- History, where administrators browse logs day by day and per person.

The main entry point for the UI is `show_main_app`, which builds the user's
`AdherenceTracker`, renders the navigation and enforces which pages a role may open.
"""
# pilltracker/gui.py

import streamlit as st

from modules.access import Page
from modules.errors import CascadeError, Forbidden
from modules.history import ALL_IDENTITIES, history_frame, is_today, next_day, previous_day
from modules.models import DoseStatus
from modules.schedule import ALL_PERIODS, MAX_DAILY_DOSES, PERIOD_ORDER, default_time_slots
from modules.tracker import AdherenceTracker

PERIOD_LABELS = {
    'morning': "🌅 Morning",
    'afternoon': "☀️ Afternoon",
    'evening': "🌙 Evening",
}
PAGE_LABELS = {
    Page.SCHEDULE: "Today's Schedule",
    Page.MEDICATIONS: "Manage Medications",
    Page.HISTORY: "History",
}
FORBIDDEN_MESSAGE = "You don't have permission to view this page."


def _format_day(day):
    """Formats a date as e.g. "Monday, January 01, 2024"."""
    return day.strftime('%A, %B %d, %Y')


def _show_failure(outcome, action):
    """Shows a failed tracker outcome. Nothing changed, so there is nothing to undo."""
    if isinstance(outcome.error, CascadeError):
        st.warning(f"The medication was deleted, but some of its logs could not be removed: {outcome.error.cause}")
    else:
        st.error(f"Could not {action}: {outcome.error}")


# Page navigation helpers
def set_page_welcome():
    """Sets the session state to display the welcome page."""
    st.session_state.auth_page = 'welcome'

def set_page_login():
    """Sets the session state to display the login page."""
    st.session_state.auth_page = 'login'

def set_page_register():
    """Sets the session state to display the registration page."""
    st.session_state.auth_page = 'register'


# Authentication Pages
def show_welcome_page():
    """Displays the welcome screen with login and registration options."""
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown("<h1 style='text-align: center;'>Welcome to PillTracker</h1>", unsafe_allow_html=True)
        st.markdown("<p style='text-align: center;'>Keep track of every dose, every day.</p>", unsafe_allow_html=True)

        st.button("Login to an Existing Account", on_click=set_page_login, use_container_width=True, type="primary")
        st.button("Create a New Account", on_click=set_page_register, use_container_width=True)

def show_login_form(auth):
    """Displays the login form and handles user authentication.

    Args:
        auth: The session's `AuthService`.
    """
    st.button("← Back to Welcome", on_click=set_page_welcome)
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown("<h2 style='text-align: center;'>Account Login</h2>", unsafe_allow_html=True)
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Login", use_container_width=True)

            if submitted:
                if not email or not password:
                    st.error("Email and Password are required.")
                else:
                    session = auth.login(email, password)
                    if session:
                        st.session_state.current_session = session
                        st.session_state.auth_page = 'welcome'
                        st.rerun()
                    else:
                        st.error("Invalid email or password.")

def show_register_form(auth):
    """Displays the registration form and handles new account creation.

    Args:
        auth: The session's `AuthService`.
    """
    st.button("← Back to Welcome", on_click=set_page_welcome)
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown("<h2 style='text-align: center;'>Create a New Account</h2>", unsafe_allow_html=True)
        with st.form("register_form"):
            email = st.text_input("Email")
            password = st.text_input(
                "Choose a Password",
                type="password",
                help="Use at least 8 characters with uppercase, lowercase, number, and symbol."
            )
            submitted = st.form_submit_button("Register", use_container_width=True)

            if submitted:
                result = auth.register(email, password)
                if result == 'invalid_email':
                    st.error("Please enter a valid email address.")
                elif result == 'weak_password':
                    st.error("Password must be at least 8 characters and include uppercase, lowercase, number, and symbol.")
                elif result:
                    st.success(f"Account {email} created! Please go back to log in.")
                else:
                    st.error(f"An account for {email} already exists.")


# Main Application UI
def _get_tracker(store, auth):
    """Returns the session's tracker, building and loading it on first use."""
    tracker = st.session_state.get('tracker')
    context = auth.identity_context()
    if tracker is None or tracker.context.reporter != context.reporter:
        tracker = AdherenceTracker(store, context)
        outcome = tracker.load()
        if not outcome.ok:
            st.error(f"Could not load your medications: {outcome.error}")
        st.session_state.tracker = tracker
    return tracker


def _log_out(auth):
    auth.logout()
    st.session_state.current_session = None
    st.session_state.tracker = None
    st.session_state.page = Page.SCHEDULE.value
    st.session_state.auth_page = 'welcome'

def show_main_app(store, auth):
    """
    The main application router.

    Renders the navigation bar for the user's role and then the selected page.
    Requests for a page the role may not open are answered with a permission
    message instead of the page.

    Args:
        store: The shared adherence store.
        auth: The session's `AuthService`.
    """
    tracker = _get_tracker(store, auth)
    capabilities = tracker.capabilities

    if 'page' not in st.session_state:
        st.session_state.page = Page.SCHEDULE.value

    header, logout = st.columns([4, 1])
    with header:
        st.markdown("## 💊 Pills Tracker")
        role_label = "Administrator" if capabilities.is_administrator else "Standard user"
        st.caption(f"{tracker.context.reporter} · {role_label}")
    with logout:
        if st.button("Log Out", key="logout_btn", use_container_width=True):
            _log_out(auth)
            st.rerun()

    pages = capabilities.visible_pages()
    nav_columns = st.columns(len(pages))
    for column, page in zip(nav_columns, pages):
        with column:
            button_type = "primary" if st.session_state.page == page.value else "secondary"
            if st.button(PAGE_LABELS[page], key=f"nav_{page.value}", use_container_width=True, type=button_type):
                st.session_state.page = page.value
                st.rerun()
    st.divider()

    try:
        capabilities.require_page(st.session_state.page)
    except (Forbidden, ValueError):
        st.warning(FORBIDDEN_MESSAGE)
        return

    if st.session_state.page == Page.SCHEDULE.value:
        _render_schedule_page(tracker)
    elif st.session_state.page == Page.MEDICATIONS.value:
        _render_medications_page(tracker)
    elif st.session_state.page == Page.HISTORY.value:
        _render_history_page(tracker)


def _render_schedule_page(tracker):
    """Renders today's dose slots grouped by period with taken/not taken buttons."""
    st.markdown("### Today's Schedule")
    period_filter = st.radio(
        "Show",
        [ALL_PERIODS] + [p.value for p in PERIOD_ORDER],
        format_func=lambda value: "All" if value == ALL_PERIODS else PERIOD_LABELS[value],
        horizontal=True,
        key="period_filter",
    )

    schedule = tracker.todays_schedule(period_filter)
    if not any(schedule.values()):
        st.info("No medications scheduled for this time of day.")
        return

    for period, entries in schedule.items():
        st.markdown(f"#### {PERIOD_LABELS[period.value]}")
        if not entries:
            st.caption("Nothing scheduled.")
        for instance, status in entries:
            _render_dose_card(tracker, instance, status)

def _render_dose_card(tracker, instance, status):
    """Renders one dose slot instance and its mark buttons."""
    medication = instance.medication
    key = f"{medication.medication_id}_{instance.time_slot}"
    with st.container(border=True):
        info, taken_col, skipped_col = st.columns([3, 1, 1])
        with info:
            st.markdown(f"**{medication.name}** · {medication.dosage}")
            st.caption(f"🕒 {instance.time_slot}")
            if medication.notes:
                st.markdown(f"_{medication.notes}_")
        with taken_col:
            taken_type = "primary" if status == DoseStatus.TAKEN else "secondary"
            if st.button("✅ Taken", key=f"taken_{key}", type=taken_type, use_container_width=True):
                outcome = tracker.mark_dose(medication.medication_id, instance.time_slot, True)
                if outcome.ok:
                    st.rerun()
                _show_failure(outcome, "record this dose")
        with skipped_col:
            skipped_type = "primary" if status == DoseStatus.NOT_TAKEN else "secondary"
            if st.button("❌ Not taken", key=f"skipped_{key}", type=skipped_type, use_container_width=True):
                outcome = tracker.mark_dose(medication.medication_id, instance.time_slot, False)
                if outcome.ok:
                    st.rerun()
                _show_failure(outcome, "record this dose")


def _start_medication_form(medication=None):
    """Fills the medication form's session state for a new or existing medication."""
    st.session_state.show_medication_form = True
    st.session_state.editing_medication_id = medication.medication_id if medication else None
    st.session_state.med_form_name = medication.name if medication else ''
    st.session_state.med_form_dosage = medication.dosage if medication else ''
    frequency = medication.frequency if medication else 1
    st.session_state.med_form_frequency = min(max(frequency, 1), MAX_DAILY_DOSES)
    slots = medication.time_slots if medication else default_time_slots(1)
    for i in range(MAX_DAILY_DOSES):
        st.session_state[f"med_form_slot_{i}"] = slots[i] if i < len(slots) else ''
    st.session_state.med_form_notes = medication.notes if medication else ''

def _close_medication_form():
    st.session_state.show_medication_form = False
    st.session_state.editing_medication_id = None

def _on_frequency_change():
    """Replaces the slot inputs with evenly spaced defaults for the new frequency."""
    for i, slot in enumerate(default_time_slots(st.session_state.med_form_frequency)):
        st.session_state[f"med_form_slot_{i}"] = slot

def _render_medication_form(tracker):
    """Renders the add/edit medication form."""
    medication_id = st.session_state.get('editing_medication_id')
    st.markdown("#### Edit Medication" if medication_id else "#### Add New Medication")
    with st.container(border=True):
        name = st.text_input("Medication Name", key="med_form_name")
        dosage = st.text_input("Dosage", key="med_form_dosage", placeholder="e.g., 50mg")
        frequency = st.selectbox(
            "Times per Day",
            list(range(1, MAX_DAILY_DOSES + 1)),
            format_func=lambda n: f"{n} time{'s' if n > 1 else ''} per day",
            key="med_form_frequency",
            on_change=_on_frequency_change,
        )
        slots = [
            st.text_input(f"Time Slot {i + 1} (HH:MM)", key=f"med_form_slot_{i}")
            for i in range(frequency)
        ]
        notes = st.text_area("Notes", key="med_form_notes")

        save_col, cancel_col = st.columns(2)
        with save_col:
            label = "Update Medication" if medication_id else "Add Medication"
            if st.button(label, type="primary", use_container_width=True):
                try:
                    outcome = tracker.save_medication(name, dosage, frequency, slots, notes, medication_id=medication_id)
                except ValueError as e:
                    st.error(str(e))
                else:
                    if outcome.ok:
                        _close_medication_form()
                        st.rerun()
                    _show_failure(outcome, "save the medication")
        with cancel_col:
            st.button("Cancel", on_click=_close_medication_form, use_container_width=True)

def _render_medications_page(tracker):
    """Renders the administrator's medication list and form."""
    title, add = st.columns([3, 1])
    with title:
        st.markdown("### Manage Medications")
    if st.session_state.get('show_medication_form'):
        _render_medication_form(tracker)
        return
    with add:
        st.button("Add New Medication", on_click=_start_medication_form, use_container_width=True, type="primary")

    if not tracker.medications:
        st.info("No medications yet.")
        return

    for medication in tracker.medications:
        with st.container(border=True):
            info, actions = st.columns([3, 2])
            with info:
                state = "Active" if medication.is_active else "Inactive"
                st.markdown(f"**{medication.name}** · {medication.dosage} · _{state}_")
                st.caption(f"{medication.frequency}× daily at {', '.join(medication.time_slots)}")
                if medication.notes:
                    st.write(medication.notes)
            with actions:
                toggle_label = "Deactivate" if medication.is_active else "Activate"
                if st.button(toggle_label, key=f"toggle_{medication.medication_id}", use_container_width=True):
                    outcome = tracker.toggle_medication(medication.medication_id)
                    if outcome.ok:
                        st.rerun()
                    _show_failure(outcome, "update the medication")
                st.button("Edit", key=f"edit_{medication.medication_id}", on_click=_start_medication_form,
                          args=(medication,), use_container_width=True)
                if st.button("Delete", key=f"delete_{medication.medication_id}", use_container_width=True):
                    outcome = tracker.delete_medication(medication.medication_id)
                    if outcome.ok:
                        st.rerun()
                    _show_failure(outcome, "delete the medication")


def _render_history_page(tracker):
    """Renders the day-by-day adherence history."""
    today = tracker.clock.today()
    if 'history_day' not in st.session_state:
        st.session_state.history_day = today

    notice = st.session_state.pop('history_notice', None)
    if notice:
        st.success(notice)

    day = st.session_state.history_day
    prev_col, title_col, next_col = st.columns([1, 4, 1])
    with prev_col:
        if st.button("◀", key="history_prev", use_container_width=True):
            st.session_state.history_day = previous_day(day)
            st.rerun()
    with title_col:
        suffix = " (Today)" if is_today(day, today) else ""
        st.markdown(f"### {_format_day(day)}{suffix}")
    with next_col:
        if st.button("▶", key="history_next", disabled=is_today(day, today), use_container_width=True):
            st.session_state.history_day = next_day(day, today)
            st.rerun()

    identity_filter = ALL_IDENTITIES
    if tracker.capabilities.can_filter_by_identity:
        identity_filter = st.selectbox(
            "👥 Person",
            [ALL_IDENTITIES] + tracker.identities(),
            format_func=lambda value: "All users" if value == ALL_IDENTITIES else value,
            key="history_identity",
        )

    logs = tracker.history(day, identity_filter)
    if not logs:
        st.info("No medication logs for this day.")
    for log in logs:
        with st.container(border=True):
            info, status_col, delete_col = st.columns([4, 1, 1])
            with info:
                st.markdown(f"**{log.medication_name}** · {log.medication_dosage}")
                st.caption(log.timestamp.strftime('%H:%M'))
                if tracker.capabilities.is_administrator:
                    st.caption(f"Logged by {log.reporter}")
            with status_col:
                st.markdown("✅ Taken" if log.taken else "❌ Not taken")
            with delete_col:
                if st.button("🗑️", key=f"delete_log_{log.log_id}", help="Delete this log"):
                    outcome = tracker.delete_log(log.log_id)
                    if outcome.ok:
                        st.rerun()
                    _show_failure(outcome, "delete the log")

    st.divider()
    if logs:
        st.download_button(
            label="Download Day as CSV",
            data=history_frame(logs).to_csv(index=False),
            file_name=f"medication_history_{day.isoformat()}.csv",
            mime="text/csv",
        )
    confirm_clear = st.checkbox("I understand this deletes all of my logs.", key="confirm_clear_logs")
    if st.button("Clear All My Logs", disabled=not confirm_clear):
        outcome = tracker.clear_all_logs()
        if outcome.ok:
            st.session_state.history_notice = "All of your logs have been deleted."
            st.rerun()
        _show_failure(outcome, "clear your logs")
