# components/database_handler.py
# Optional Firestore persistence of a BOQ session. The app runs without it when no credentials are set.

import logging
from datetime import datetime
from typing import Dict, List, Optional

import firebase_admin
import numpy as np
import pandas as pd
import streamlit as st
from firebase_admin import credentials, firestore

from components.boq_models import REFERENCE_CURRENCY, ProjectState
from components.utils import CURRENCIES

logger = logging.getLogger(__name__)

CREDENTIALS_SECRET = "firebase_credentials"


def _service_account_info(secrets) -> Dict:
    """Service-account dict from secrets; TOML stores the key's newlines escaped."""
    info = dict(secrets[CREDENTIALS_SECRET])
    info['private_key'] = info['private_key'].replace('\\n', '\n')
    return info


@st.cache_resource
def initialize_firebase():
    """Firestore client, or None when persistence is not configured or fails to start."""
    try:
        if not firebase_admin._apps:
            firebase_admin.initialize_app(credentials.Certificate(_service_account_info(st.secrets)))
        return firestore.client()
    except (KeyError, FileNotFoundError):
        logger.info(f"No {CREDENTIALS_SECRET} in secrets; project saving is disabled")
        return None
    except Exception as e:
        logger.error(f"Failed to initialize Firebase: {e}", exc_info=True)
        return None


def sanitize_for_firestore(data):
    """
    Recursively converts NumPy and pandas values to native Python types
    that Firestore can store. Tuples become lists; NaN becomes None.
    """
    if isinstance(data, dict):
        return {str(key): sanitize_for_firestore(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [sanitize_for_firestore(item) for item in data]
    if isinstance(data, pd.DataFrame):
        return sanitize_for_firestore(data.to_dict('records'))
    if isinstance(data, pd.Series):
        return sanitize_for_firestore(data.to_dict())
    if isinstance(data, np.ndarray):
        return sanitize_for_firestore(data.tolist())
    if isinstance(data, np.bool_):
        return bool(data)
    if isinstance(data, np.integer):
        return int(data)
    if isinstance(data, (float, np.floating)):
        return None if np.isnan(data) else float(data)
    if data is pd.NA or data is pd.NaT:
        return None
    return data


def _projects_ref(db, user_email):
    return db.collection('users').document(user_email).collection('projects')


def save_project(db, user_email, state: ProjectState) -> bool:
    """Store client details, rooms and the selected currency, keyed by project name."""
    project_name = state.client.project_name.strip()
    if not db or not user_email or not project_name:
        logger.warning("Could not save project: database, user and project name are all required")
        return False

    document = {'name': project_name, 'last_saved': datetime.now().isoformat()}
    document.update(state.to_dict())
    try:
        _projects_ref(db, user_email).document(project_name).set(sanitize_for_firestore(document))
    except Exception as e:
        logger.error(f"Error saving project '{project_name}': {e}", exc_info=True)
        return False
    logger.info(f"Saved project '{project_name}' ({len(state.rooms)} rooms)")
    return True


def load_projects(db, user_email) -> List[Dict]:
    """All saved projects of one user, most recently saved first."""
    if not db or not user_email:
        return []
    try:
        documents = [doc.to_dict() for doc in _projects_ref(db, user_email).stream()]
    except Exception as e:
        logger.error(f"Error loading projects for {user_email}: {e}", exc_info=True)
        return []
    return sorted(documents, key=lambda doc: doc.get('last_saved', ''), reverse=True)


def find_project(projects: List[Dict], name: str) -> Optional[Dict]:
    return next((project for project in projects if project.get('name') == name), None)


def restore_project_state(project_data) -> ProjectState:
    """Rebuild a ProjectState from a saved document. Exchange rates are not part of it."""
    if not project_data:
        raise ValueError("No project data to restore")
    state = ProjectState.from_dict(project_data)
    if state.currency not in CURRENCIES:
        logger.warning(f"Saved currency {state.currency!r} is not supported; using {REFERENCE_CURRENCY}")
        state.currency = REFERENCE_CURRENCY
    return state


def delete_project(db, user_email, project_name) -> bool:
    if not db or not user_email or not project_name:
        return False
    try:
        _projects_ref(db, user_email).document(project_name).delete()
    except Exception as e:
        logger.error(f"Error deleting project '{project_name}': {e}", exc_info=True)
        return False
    logger.info(f"Deleted project '{project_name}'")
    return True
