"""
This is the main entry point for the PillTracker Streamlit application.

This script handles the following key responsibilities:
- Sets the overall page configuration and logging.
- Opens the shared encrypted adherence store once per server process.
- Manages the session state to track the signed-in user and the auth flow.
- Routes the user to the authentication pages or the main app based on
  their login status.
"""
# pilltracker/main.py

import streamlit as st

from modules.auth import AuthService
from modules.config import Settings, configure_logging
from modules.encryption import get_encryptor
from modules.store import EncryptedJsonStore
import gui

st.set_page_config(
    page_title="PillTracker",
    layout="wide"
)

# Store Initialization
@st.cache_resource
def get_store():
    """
    Opens and returns the adherence store.

    Cached with `@st.cache_resource` so every session shares one store
    instance and the data file is only read once per server process.

    Returns:
        EncryptedJsonStore: The shared store.
    """
    settings = Settings.from_env()
    configure_logging(settings)
    return EncryptedJsonStore(settings.data_file, get_encryptor(settings.key_file))

store = get_store()

# Session State Management
# Each browser session gets its own auth service so sign-ins stay separate.
if 'auth' not in st.session_state:
    st.session_state.auth = AuthService(store)
if 'current_session' not in st.session_state:
    st.session_state.current_session = None
if 'auth_page' not in st.session_state:
    st.session_state.auth_page = 'welcome'

auth = st.session_state.auth

# Main App Router
if st.session_state.current_session and st.session_state.current_session.authenticated:
    gui.show_main_app(store, auth)
else:
    if st.session_state.auth_page == 'welcome':
        gui.show_welcome_page()
    elif st.session_state.auth_page == 'login':
        gui.show_login_form(auth)
    elif st.session_state.auth_page == 'register':
        gui.show_register_form(auth)
