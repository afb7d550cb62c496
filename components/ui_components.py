# components/ui_components.py
# Streamlit UI sections. Every state change goes through BoqStore.

import logging
from datetime import date

import pandas as pd
import streamlit as st

from components.boq_models import ITEM_FIELDS, FieldKind, ProjectState
from components.boq_store import BoqStore
from components.excel_generator import export_filename, generate_company_excel
from components.exceptions import BoqError
from components.gemini_handler import generate_boq, refine_boq
from components.questionnaire import answered_count, build_questionnaire_requirements
from components.questionnaire_data import QUESTIONNAIRE, QuestionKind
from components.utils import CURRENCIES, format_currency, get_exchange_rates, identity_rates

logger = logging.getLogger(__name__)

EDITOR_COLUMNS = {
    'category': "Category",
    'item_name': "Item Name",
    'brand': "Brand",
    'model_number': "Model Number",
    'description': "Description",
    'quantity': "Qty",
    'unit_price': "Unit Price",
    'notes': "Notes",
    'image_url': "Image URL",
}
TOTAL_COLUMN = "Total Price"
PRICE_TOLERANCE = 0.005


# ==================== SESSION ====================
def get_store() -> BoqStore:
    """The session's BoqStore, created with defaults on first use."""
    if 'boq_store' not in st.session_state:
        st.session_state.boq_store = BoqStore(ProjectState())
        st.session_state.editor_version = 0
        st.session_state.questionnaire_answers = {}
    return st.session_state.boq_store


def load_exchange_rates(store: BoqStore):
    """One-shot rate load per session. Identity rates are used until it resolves."""
    if store.state.rates_loaded:
        return
    store.set_exchange_rates(identity_rates(), loaded=False)
    rates = get_exchange_rates()
    store.set_exchange_rates(rates, loaded=True)


def _bump_editor_version():
    st.session_state.editor_version = st.session_state.get('editor_version', 0) + 1


def show_success_message(message):
    st.success(f"✅ {message}")


def show_error_message(message):
    st.error(f"❌ {message}")


# ==================== MAIN UI SECTION BUILDERS ====================
def create_project_header():
    st.title("🎯 AV BOQ Generator")
    st.caption("AI-assisted Bill of Quantities for AV rooms. All prices and models are estimates.")


def create_client_details_form(store: BoqStore):
    """Project & client details. Disabled while a generation request is running."""
    client = store.state.client
    disabled = store.busy
    st.subheader("📋 Project & Client Details")
    col1, col2 = st.columns(2)
    with col1:
        client.project_name = st.text_input("Project Name", value=client.project_name, disabled=disabled)
        client.client_name = st.text_input("Client Name", value=client.client_name, disabled=disabled)
        client.prepared_by = st.text_input("Prepared By", value=client.prepared_by, disabled=disabled)
        try:
            current_date = date.fromisoformat(client.date)
        except (TypeError, ValueError):
            current_date = date.today()
        client.date = st.date_input("Date", value=current_date, disabled=disabled).isoformat()
        budget = st.number_input("Budget (USD, optional)", min_value=0.0, step=1000.0,
                                 value=float(client.budget or 0.0), disabled=disabled)
        client.budget = budget or None
    with col2:
        client.design_engineer = st.text_input("Design Engineer", value=client.design_engineer, disabled=disabled)
        client.account_manager = st.text_input("Account Manager", value=client.account_manager, disabled=disabled)
        client.key_client_personnel = st.text_input("Key Client Personnel", value=client.key_client_personnel,
                                                    disabled=disabled)
        client.location = st.text_input("Location", value=client.location, disabled=disabled)
        client.key_comments = st.text_area("Key Comments", value=client.key_comments, height=68, disabled=disabled)


def _on_currency_change(store: BoqStore):
    store.set_currency(st.session_state.currency_select)
    _bump_editor_version()


def create_currency_selector(store: BoqStore):
    """
    Display currency. Disabled until exchange rates have loaded.
    The store owns the selection; the widget state is re-seeded from it on every run.
    """
    st.session_state.currency_select = store.state.currency
    st.selectbox(
        "Display Currency",
        list(CURRENCIES),
        format_func=lambda code: CURRENCIES[code][0],
        disabled=store.busy or not store.state.rates_loaded,
        key="currency_select",
        on_change=_on_currency_change,
        args=(store,),
    )


# ==================== MODEL REQUESTS ====================
def run_model_request(store: BoqStore, action, spinner_text):
    """
    Run one generation/refinement call under the busy flag. The result replaces the
    rooms only if the call succeeds; any failure leaves the current BOQ untouched.
    The user sees the error's user_message; the technical detail goes to the log.
    """
    try:
        token = store.begin_request()
    except BoqError as e:
        show_error_message(e.user_message)
        return False

    try:
        with st.spinner(spinner_text):
            rooms = action()
        installed = store.finish_request(token, rooms)
    except BoqError as e:
        logger.warning(f"Model request failed ({type(e).__name__}): {e}")
        store.finish_request(token)
        show_error_message(e.user_message)
        return False
    except ValueError as e:
        store.finish_request(token)
        show_error_message(e)
        return False
    finally:
        # A Streamlit rerun interrupts the call; do not leave the flag stuck
        if store.busy:
            store.abandon_request()

    if installed:
        _bump_editor_version()
    return installed


def create_requirements_input(store: BoqStore, model):
    st.markdown("Describe the rooms, their size, how they will be used and any preferred brands.")
    requirements = st.text_area(
        "Requirements",
        height=180,
        placeholder="e.g. Small huddle room for 4 people, wireless presentation",
        key="requirements_text",
        disabled=store.busy,
    )
    if st.button("✨ Generate BOQ", type="primary", disabled=store.busy or not requirements.strip(),
                 key="generate_text_btn"):
        client = store.state.client
        if run_model_request(store, lambda: generate_boq(model, requirements, client), "Generating BOQ..."):
            show_success_message(f"Generated {len(store.rooms)} room(s).")


def create_questionnaire(store: BoqStore, model):
    """Guided questionnaire. Answers live in session state until generation."""
    answers = st.session_state.setdefault('questionnaire_answers', {})
    for section in QUESTIONNAIRE:
        st.markdown(f"#### {section.title}")
        for question in section.questions:
            key = f"q_{question.id}"
            if question.kind is QuestionKind.TEXT:
                answers[question.id] = st.text_input(question.text, key=key, disabled=store.busy)
            elif question.kind is QuestionKind.NUMBER:
                value = st.number_input(question.text, min_value=0, step=1, value=None, key=key, disabled=store.busy)
                answers[question.id] = "" if value is None else str(int(value))
            elif question.kind is QuestionKind.SELECT:
                options = [""] + [o.value for o in question.options]
                labels = {o.value: o.label for o in question.options}
                answers[question.id] = st.selectbox(
                    question.text, options, key=key, disabled=store.busy,
                    format_func=lambda v, labels=labels: labels.get(v, "Select an option"),
                )
            else:
                labels = {o.value: o.label for o in question.options}
                answers[question.id] = st.multiselect(
                    question.text, [o.value for o in question.options], key=key, disabled=store.busy,
                    format_func=lambda v, labels=labels: labels.get(v, v),
                )

    count = answered_count(QUESTIONNAIRE, answers)
    st.caption(f"{count} question(s) answered")
    if st.button("✨ Generate BOQ from Questionnaire", type="primary", disabled=store.busy or count == 0,
                 key="generate_questionnaire_btn"):
        requirements = build_questionnaire_requirements(QUESTIONNAIRE, answers)
        client = store.state.client
        if run_model_request(store, lambda: generate_boq(model, requirements, client), "Generating BOQ..."):
            show_success_message(f"Generated {len(store.rooms)} room(s).")


# ==================== BOQ EDITOR ====================
def _room_frame(store: BoqStore, room) -> pd.DataFrame:
    rows = []
    for item in room.boq:
        row = {label: getattr(item, field) for field, label in EDITOR_COLUMNS.items()}
        row[EDITOR_COLUMNS['unit_price']] = round(store.to_display(item.unit_price), 2)
        row[TOTAL_COLUMN] = round(store.to_display(item.total_price), 2)
        rows.append(row)
    return pd.DataFrame(rows, columns=list(EDITOR_COLUMNS.values()) + [TOTAL_COLUMN])


def _apply_editor_changes(store: BoqStore, room, original: pd.DataFrame, edited: pd.DataFrame) -> bool:
    """Push cell edits through the store. Bad values are reported and the old value kept."""
    changed = False
    for index in range(min(len(original), len(edited))):
        for field, label in EDITOR_COLUMNS.items():
            before, after = original.iloc[index][label], edited.iloc[index][label]
            if pd.isna(after):
                after = ""
            if ITEM_FIELDS[field] is FieldKind.CURRENCY:
                try:
                    if abs(float(after) - float(before)) < PRICE_TOLERANCE:
                        continue
                except (TypeError, ValueError):
                    pass
            elif str(after) == str(before):
                continue
            try:
                store.update_item_field(room.id, index, field, after)
                changed = True
            except (ValueError, BoqError) as e:
                st.warning(f"Row {index + 1}, {label}: {e}. The previous value was kept.")
    return changed


def create_room_editor(store: BoqStore, room):
    currency = store.state.currency
    with st.expander(f"🏢 {room.name} - {format_currency(store.display_room_total(room.id), currency)}",
                     expanded=True):
        name = st.text_input("Room Name", value=room.name, key=f"room_name_{room.id}", disabled=store.busy)
        if name.strip() and name != room.name:
            store.rename_room(room.id, name)
            st.rerun()
        if room.requirements:
            st.caption(f"**Requirements Summary:** {room.requirements}")

        original = _room_frame(store, room)
        edited = st.data_editor(
            original,
            key=f"editor_{room.id}_{st.session_state.get('editor_version', 0)}",
            num_rows="fixed",
            use_container_width=True,
            disabled=store.busy or [TOTAL_COLUMN],
            column_config={
                EDITOR_COLUMNS['quantity']: st.column_config.NumberColumn(min_value=0, step=1),
                EDITOR_COLUMNS['unit_price']: st.column_config.NumberColumn(f"Unit Price ({currency})", min_value=0.0,
                                                                            format="%.2f"),
                TOTAL_COLUMN: st.column_config.NumberColumn(f"Total Price ({currency})", format="%.2f"),
                EDITOR_COLUMNS['image_url']: st.column_config.LinkColumn(),
            },
        )
        if _apply_editor_changes(store, room, original, edited):
            _bump_editor_version()
            st.rerun()

        col1, col2, col3 = st.columns([1, 2, 1])
        with col1:
            if st.button("➕ Add Item", key=f"add_item_{room.id}", disabled=store.busy):
                store.add_item(room.id)
                _bump_editor_version()
                st.rerun()
        with col2:
            if room.boq:
                to_remove = st.selectbox(
                    "Item to remove", range(len(room.boq)), key=f"remove_select_{room.id}",
                    format_func=lambda i: f"{i + 1}. {room.boq[i].item_name or room.boq[i].category}",
                    label_visibility="collapsed", disabled=store.busy,
                )
                if st.button("🗑️ Remove Item", key=f"remove_item_{room.id}", disabled=store.busy):
                    store.delete_item(room.id, to_remove)
                    _bump_editor_version()
                    st.rerun()
        with col3:
            if st.button("Delete Room", key=f"delete_room_{room.id}", type="secondary", disabled=store.busy):
                store.delete_room(room.id)
                _bump_editor_version()
                st.rerun()


def create_refine_box(store: BoqStore, model):
    st.subheader("🪄 Refine with AI")
    instruction = st.text_area(
        "Refinement instruction",
        placeholder="e.g. Change all displays to Samsung, add a second ceiling microphone",
        key="refine_text",
        disabled=store.busy,
    )
    if st.button("Apply Refinement", disabled=store.busy or not instruction.strip() or not store.rooms,
                 key="refine_btn"):
        rooms = list(store.rooms)
        if run_model_request(store, lambda: refine_boq(model, rooms, instruction), "Refining BOQ..."):
            show_success_message("BOQ refined.")


def create_export_button(store: BoqStore):
    if not store.state.rates_loaded:
        st.info("Loading exchange rates... export will be available shortly.")
        return
    try:
        workbook_bytes = generate_company_excel(store.state)
    except BoqError as e:
        st.info(str(e))
        return
    st.download_button(
        "📥 Export to XLSX",
        data=workbook_bytes,
        file_name=export_filename(store.state.client),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        type="primary",
        disabled=store.busy,
        use_container_width=True,
    )


def display_boq_results(store: BoqStore, model):
    """Generated BOQ: totals, per-room editors, refinement and export."""
    st.subheader("📊 Generated Bill of Quantities")
    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        st.metric("Rooms", len(store.rooms))
    with col2:
        st.metric("Grand Total", format_currency(store.display_grand_total(), store.state.currency))
    with col3:
        create_export_button(store)

    for room in list(store.rooms):
        create_room_editor(store, room)

    new_room = st.text_input("New room name", key="new_room_name", disabled=store.busy)
    if st.button("➕ Add Room", disabled=store.busy or not new_room.strip(), key="add_room_btn"):
        store.add_room(new_room)
        st.rerun()

    st.markdown("---")
    create_refine_box(store, model)
