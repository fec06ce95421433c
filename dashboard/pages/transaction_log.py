from __future__ import annotations

import pandas as pd
import streamlit as st

from dashboard.api_client import ApiError

SORT_OPTIONS = {"Timestamp": "timestamp", "Amount": "amount", "Risk": "risk"}
PAGE_SIZE = 10


def render_page(client):
    st.title("Transaction Log")
    st.caption("Predictions submitted through the transaction form, newest first.")

    with st.sidebar:
        st.subheader("Filters")
        search = st.text_input("Search by ID, customer or channel", key="log_search")
        status = st.selectbox("Status", ["all", "fraud", "legit"], key="log_status")
        sort_label = st.selectbox("Sort by", list(SORT_OPTIONS), key="log_sort")
        order = st.radio("Order", ["desc", "asc"], horizontal=True, key="log_order")

    query = {"search": search, "status": status, "sort_by": SORT_OPTIONS[sort_label], "sort_order": order}

    try:
        total = client.get("/history", params={**query, "page_size": 1})["total"]
    except ApiError as exc:
        st.error(exc.detail)
        return

    if total == 0:
        st.info("No transactions match the current filters.")
        return

    pages = max(1, -(-total // PAGE_SIZE))
    page = st.number_input("Page", min_value=1, max_value=pages, value=1, step=1)
    data = client.get("/history", params={**query, "page": page, "page_size": PAGE_SIZE})

    df = pd.DataFrame(data["items"])
    df["risk_score"] = (df["risk_score"] * 100).round().astype(int)
    df["confidence"] = (df["confidence"] * 100).round().astype(int)
    df = df.rename(
        columns={
            "id": "ID",
            "customer_id": "Customer ID",
            "transaction_amount": "Amount",
            "channel": "Channel",
            "kyc_verified": "KYC",
            "timestamp": "Timestamp",
            "prediction": "Prediction",
            "risk_score": "Risk Score (%)",
            "confidence": "Confidence (%)",
            "reason": "Reason",
        }
    )
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.caption(f"Page {page} of {pages} · {total:,} records")

    c1, c2 = st.columns(2)
    with c1:
        st.download_button(
            "Export CSV",
            data=client.get_bytes("/history/export", params=query),
            file_name="transactions.csv",
            mime="text/csv",
        )
    with c2:
        if st.button("Clear history"):
            client.delete("/history")
            st.rerun()
