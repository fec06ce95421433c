from __future__ import annotations

from datetime import datetime, timezone

import streamlit as st

from dashboard.api_client import ApiError
from shared.styling import format_risk, status_pill

CHANNELS = ["Online", "ATM", "POS", "Mobile"]


def render_page(client):
    st.title("Transaction Form")
    st.caption("Submit a single transaction for an instant fraud prediction. Results are added to the log.")

    with st.form("single_transaction"):
        c1, c2 = st.columns(2)
        customer_id = c1.text_input("Customer ID")
        amount = c2.number_input("Transaction Amount", min_value=0.0, value=1000.0, step=100.0)
        account_age = c1.number_input("Account Age (days)", min_value=0, value=365, step=1)
        channel = c2.selectbox("Channel", CHANNELS)
        kyc_verified = st.checkbox("KYC verified", value=True)
        submitted = st.form_submit_button("Predict", type="primary")

    if not submitted:
        return
    if not customer_id.strip():
        st.warning("Customer ID is required.")
        return

    payload = {
        "customer_id": customer_id.strip(),
        "kyc_verified": kyc_verified,
        "account_age_days": int(account_age),
        "transaction_amount": float(amount),
        "channel": channel,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    try:
        record = client.post("/transactions/predict", json=payload)
    except ApiError as exc:
        st.error(exc.detail)
        return

    st.markdown(status_pill(record["prediction"]), unsafe_allow_html=True)
    m1, m2, m3 = st.columns(3)
    m1.metric("Risk Score", format_risk(record["risk_score"]))
    m2.metric("Confidence", format_risk(record["confidence"]))
    m3.metric("Transaction ID", record["id"])
    if record.get("reason"):
        st.warning(record["reason"])
