# app.py - AV BOQ Generator (Streamlit entry point)

import logging

import streamlit as st

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('boq_generator.log'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# --- Component Imports ---
try:
    from components.boq_store import BoqStore
    from components.database_handler import (
        initialize_firebase, save_project, load_projects, find_project, restore_project_state, delete_project
    )
    from components.gemini_handler import setup_gemini
    from components.ui_components import (
        create_project_header, create_client_details_form, create_currency_selector,
        create_requirements_input, create_questionnaire, display_boq_results,
        get_store, load_exchange_rates, show_error_message, show_success_message
    )
except ImportError as e:
    st.error(f"Failed to import a necessary component: {e}")
    logger.error(f"ImportError: {e}", exc_info=True)
    st.stop()


def show_configuration_error(error):
    """Blocking full-screen message for a missing credential."""
    st.markdown(
        '<div style="display: flex; align-items: center; justify-content: center; height: 70vh;">'
        '<div style="text-align: center; padding: 2rem; border-radius: 12px; border: 1px solid #dc2626;">'
        '<h1 style="color: #dc2626;">Configuration Error</h1>'
        f'<p>{error}</p>'
        '</div></div>',
        unsafe_allow_html=True
    )


def create_project_sidebar(store: BoqStore, db):
    """Currency selection and optional save/load of projects."""
    with st.sidebar:
        st.markdown("### ⚙️ Settings")
        create_currency_selector(store)
        if not store.state.rates_loaded:
            st.caption("Exchange rates loading; prices shown 1:1 with USD.")

        if not db:
            return

        st.markdown("---")
        st.markdown("### 💾 Projects")
        user_email = st.text_input("Your email", key="user_email", placeholder="name@company.com")
        if not user_email:
            st.caption("Enter your email to save and load projects.")
            return

        if st.button("Save Current Project", use_container_width=True,
                     disabled=store.busy or not store.state.client.project_name.strip()):
            if save_project(db, user_email, store.state):
                show_success_message(f"Project '{store.state.client.project_name}' saved!")
                st.session_state.pop('user_projects', None)
            else:
                show_error_message("Could not save the project. Check the logs for details.")

        if 'user_projects' not in st.session_state:
            st.session_state.user_projects = load_projects(db, user_email)
        projects = st.session_state.user_projects
        if not projects:
            return
        names = [p.get('name', 'Unnamed Project') for p in projects]
        selected = st.selectbox("Saved projects", names, key="project_to_load_select")
        col1, col2 = st.columns(2)
        with col1:
            load_clicked = st.button("📂 Load", use_container_width=True, disabled=store.busy)
        with col2:
            delete_clicked = st.button("🗑️ Delete", use_container_width=True, disabled=store.busy)

        if delete_clicked:
            if delete_project(db, user_email, selected):
                st.session_state.pop('user_projects', None)
                st.rerun()
            show_error_message(f"Could not delete project '{selected}'.")

        if load_clicked:
            try:
                restored = restore_project_state(find_project(projects, selected))
            except (ValueError, TypeError) as e:
                logger.error(f"Could not restore project '{selected}': {e}", exc_info=True)
                show_error_message(f"Could not load project '{selected}'.")
            else:
                restored.exchange_rates = store.state.exchange_rates
                restored.rates_loaded = store.state.rates_loaded
                store.state = restored
                st.session_state.editor_version = st.session_state.get('editor_version', 0) + 1
                logger.info(f"Loaded project '{selected}'")
                st.rerun()


def main():
    st.set_page_config(
        page_title="AV BOQ Generator",
        page_icon="🚀",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    setup = setup_gemini()
    if not setup.ok:
        show_configuration_error(setup.error)
        st.stop()
    model = setup.model

    store = get_store()
    load_exchange_rates(store)
    db = initialize_firebase()

    create_project_header()
    create_project_sidebar(store, db)

    tab1, tab2, tab3 = st.tabs(["📋 Project Details", "📝 Requirements", "📊 Bill of Quantities"])

    with tab1:
        create_client_details_form(store)

    with tab2:
        text_tab, questionnaire_tab = st.tabs(["Describe Requirements", "Guided Questionnaire"])
        with text_tab:
            create_requirements_input(store, model)
        with questionnaire_tab:
            create_questionnaire(store, model)

    with tab3:
        if store.rooms:
            display_boq_results(store, model)
        else:
            st.info("No BOQ yet. Describe your requirements or fill in the questionnaire to generate one.")

    # --- Footer ---
    st.markdown(
        '<div style="text-align: center; font-size: 0.8rem; color: gray; margin-top: 2rem;">'
        'AV BOQ Generator - AI-Powered AV Solutions. All prices and models are estimates.</div>',
        unsafe_allow_html=True
    )


if __name__ == "__main__":
    main()
