"""
This is the main entry point for the Coldesthetic Streamlit application.

This script handles the following key responsibilities:
- Sets the overall page configuration and the logging level for the app.
- Creates, once per browser session, the `ApiClient` (which owns the cookie jar),
  the `ClinicService` and the `SessionStore`, and checks the backend session once.
- Routes the user to the page named by `st.session_state.route`; protected pages
  are shown through the authorization gates.
"""
# coldesthetic/main.py

import logging

import streamlit as st

import gui
from clinic.api import ApiClient
from clinic.config import LOG_LEVEL, LOGIN_ROUTE, ROLE_ADMIN, ROOT_ROUTE
from clinic.services import ClinicService
from clinic.session import SessionStore

# Set the basic configuration for the Streamlit page.
st.set_page_config(
    page_title="Coldesthetic",
    layout="wide"
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Per-session objects
# Kept in session_state rather than st.cache_resource: the API client carries the
# user's cookies, so it must never be shared between browser sessions.
if "api" not in st.session_state:
    st.session_state.api = ApiClient()
if "service" not in st.session_state:
    st.session_state.service = ClinicService(st.session_state.api)
if "session" not in st.session_state:
    st.session_state.session = SessionStore(st.session_state.api)
if "route" not in st.session_state:
    st.session_state.route = ROOT_ROUTE
    st.session_state.route_params = {}

service = st.session_state.service
session = st.session_state.session

if not session.auth_checked:
    with st.spinner("Verificando sesión..."):
        session.check_session()

gui.show_toasts()

# route -> (page renderer, allowed roles or None for any authenticated user)
PROTECTED_PAGES = {
    "register-patient": (lambda: gui.show_register_patient_page(session, service), None),
    "patients": (lambda: gui.show_patients_page(service), None),
    "patient-history": (lambda: gui.show_patient_history_page(service), None),
    "record-detail": (lambda: gui.show_record_detail_page(service), None),
    "control-images": (lambda: gui.show_control_images_page(service), None),
    "stats": (lambda: gui.show_stats_page(service), [ROLE_ADMIN]),
    "remitentes": (lambda: gui.show_remitentes_page(service), [ROLE_ADMIN]),
}

# Main App Router
route = st.session_state.route
if route in PROTECTED_PAGES:
    render_page, allow = PROTECTED_PAGES[route]
    gui.show_header(session, service, route)
    gui.show_guarded_page(session, route, render_page, allow)
elif route == LOGIN_ROUTE:
    gui.show_login_form(session)
else:
    gui.show_welcome_page(session)
