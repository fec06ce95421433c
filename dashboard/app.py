import os
import sys
from pathlib import Path

import httpx

# Allow bulk uploads up to the backend limit (MAX_UPLOAD_MB)
os.environ.setdefault("STREAMLIT_SERVER_MAX_UPLOAD_SIZE", "100")
import streamlit as st

# Ensure project root (parent of dashboard/) is on sys.path for shared modules
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from shared.styling import inject_global_css
from dashboard.api_client import ApiClient, ApiError
from dashboard.pages import (
    analytics,
    bulk_upload,
    transaction_form,
    transaction_log,
)


PAGES = {
    "Bulk Upload": bulk_upload,
    "Transaction Form": transaction_form,
    "Transaction Log": transaction_log,
    "Analytics": analytics,
}


def render_login() -> None:
    st.title("FraudShield")
    st.caption("Sign in to review transactions. Any non-empty credentials are accepted in the demo.")
    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")
    if not submitted:
        return
    try:
        token = ApiClient().post("/auth/login", json={"email": email, "password": password})["access_token"]
    except ApiError as exc:
        st.error(exc.detail)
        return
    except httpx.HTTPError as exc:
        st.error(f"API unreachable: {exc}")
        return
    st.session_state["token"] = token
    st.session_state["email"] = email.strip()
    st.rerun()


def run_dashboard():
    st.set_page_config(page_title="FraudShield", layout="wide", initial_sidebar_state="expanded")
    inject_global_css()

    token = st.session_state.get("token")
    if not token:
        render_login()
        return

    client = ApiClient(token=token)

    with st.sidebar:
        st.title("FraudShield")
        st.caption(f"Signed in as {st.session_state.get('email', '')}")
        page_name = st.radio(
            "Navigation",
            options=list(PAGES.keys()),
            index=0,
            label_visibility="collapsed",
        )

        st.markdown("---")
        st.markdown("### System Status")
        try:
            health = client.get("/health")
        except (ApiError, httpx.HTTPError):
            health = None
        if health and health.get("status") == "ok":
            st.success("🟢 API Online")
        else:
            st.error("🔴 API Offline")

        if st.button("Sign out"):
            st.session_state.clear()
            st.rerun()

    PAGES[page_name].render_page(client)


if __name__ == "__main__":
    run_dashboard()
