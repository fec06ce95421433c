from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pandas as pd
import plotly.express as px
import streamlit as st

from dashboard.api_client import ApiError
from shared.styling import format_risk, kpi_card

SORT_OPTIONS = {"Risk": "risk", "Amount": "amount", "Timestamp": "timestamp", "Customer": "customer_id"}
POLL_SECONDS = 0.5


def _progress_text(state: dict | None) -> tuple[int, str] | None:
    if not state or state.get("status") != "running" or not state.get("total_batches"):
        return None
    batch, total = state["batch"], state["total_batches"]
    return min(99, int(batch / total * 100)), f"Processing batch {batch}/{total}..."


def _run_upload(client, uploaded_file) -> None:
    progress = st.progress(0, text="Uploading file...")
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(
            client.post,
            "/bulk/upload",
            files={"file": (uploaded_file.name, uploaded_file.getvalue(), "text/csv")},
        )
        while not future.done():
            try:
                step = _progress_text(client.get("/bulk/progress"))
            except (ApiError, httpx.HTTPError):
                step = None
            if step:
                progress.progress(step[0], text=step[1])
            time.sleep(POLL_SECONDS)
        try:
            result = future.result()
        except ApiError as exc:
            progress.empty()
            st.error(exc.detail)
            return
        except httpx.HTTPError as exc:
            progress.empty()
            st.error(f"API unreachable: {exc}")
            return
    progress.progress(100, text="Analysis complete")
    summary = result["summary"]
    st.success(
        f"Analyzed {summary['total_transactions']:,} transactions, "
        f"{summary['fraud_count']:,} flagged as fraud."
    )


def _summary_cards(summary: dict) -> None:
    highest = summary.get("highest_risk_transaction")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        kpi_card("Total Transactions", f"{summary['total_transactions']:,}")
    with c2:
        kpi_card(
            "Fraud Detected",
            f"{summary['fraud_count']:,}",
            help_text=f"{summary['fraud_percentage']:.2f}% of dataset",
            alert=summary["fraud_count"] > 0,
        )
    with c3:
        kpi_card("Avg Fraud Risk", format_risk(summary["avg_fraud_risk_score"]))
    with c4:
        if highest:
            kpi_card(
                "Highest Risk",
                format_risk(highest["score"]),
                help_text=f"{highest['id']} · {highest['amount']:,.2f}",
                alert=True,
            )
        else:
            kpi_card("Highest Risk", "N/A")


def _model_panel(model_info: dict | None) -> None:
    if not model_info:
        return
    with st.expander("Model details"):
        st.markdown(f"**{model_info['model_type']}** · {model_info['preprocessing']}")
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Precision", f"{model_info['precision']:.3f}")
        m2.metric("Recall", f"{model_info['recall']:.3f}")
        m3.metric("F1", f"{model_info['f1_score']:.3f}")
        m4.metric("AUC-ROC", f"{model_info['auc_roc']:.3f}")


def _insight_charts(insights: dict) -> None:
    left, right = st.columns(2)
    with left:
        split = pd.DataFrame(insights["fraud_vs_legit"])
        fig = px.pie(split, values="count", names="name", title="Fraud vs Legit", hole=0.4)
        st.plotly_chart(fig, use_container_width=True)
    with right:
        trend = pd.DataFrame(insights["fraud_trend"])
        if trend.empty:
            st.info("No dated transactions to chart.")
        else:
            fig = px.line(trend, x="date", y="fraud_percentage", title="Daily Fraud Rate (%)", markers=True)
            st.plotly_chart(fig, use_container_width=True)

    left, right = st.columns(2)
    with left:
        channels = pd.DataFrame(insights["fraud_by_channel"])
        if not channels.empty:
            fig = px.bar(channels, x="name", y="value", title="Fraud by Channel", labels={"name": "Channel", "value": "Fraud"})
            st.plotly_chart(fig, use_container_width=True)
    with right:
        hist = pd.DataFrame(insights["risk_histogram"])
        fig = px.bar(hist, x="range", y="count", title="Risk Score Distribution (fraud cases)")
        st.plotly_chart(fig, use_container_width=True)

    points = pd.DataFrame(insights["amount_vs_risk"])
    if not points.empty:
        fig = px.scatter(points, x="amount", y="risk_percent", title="Amount vs Risk (fraud cases)")
        st.plotly_chart(fig, use_container_width=True)


def _fraud_table(client) -> None:
    st.subheader("Flagged Transactions")
    c1, c2, c3 = st.columns([2, 1, 1])
    search = c1.text_input("Search by ID, customer or channel", key="bulk_search")
    sort_label = c2.selectbox("Sort by", list(SORT_OPTIONS), key="bulk_sort")
    order = c3.selectbox("Order", ["desc", "asc"], key="bulk_order")
    query = {"fraud_only": True, "search": search, "sort_by": SORT_OPTIONS[sort_label], "sort_order": order}

    total = client.get("/dataset/transactions", params={**query, "page_size": 1})["total"]
    if total == 0:
        st.info("No transactions match the current filters.")
        return

    page_size = 10
    pages = max(1, -(-total // page_size))
    page = st.number_input("Page", min_value=1, max_value=pages, value=1, step=1, key="bulk_page")
    data = client.get("/dataset/transactions", params={**query, "page": page, "page_size": page_size})

    rows = pd.DataFrame(
        [
            {
                "Transaction ID": item["transaction_id"],
                "Customer ID": item["customer_id"],
                "Amount": item["transaction_amount"],
                "Channel": item["channel"],
                "Timestamp": item["timestamp"],
                "Risk Score": format_risk(item["risk_score"]),
            }
            for item in data["items"]
        ]
    )
    st.dataframe(rows, use_container_width=True, hide_index=True)
    st.caption(f"Page {page} of {pages} · {total:,} flagged transactions")

    st.download_button(
        "Export flagged transactions (CSV)",
        data=client.get_bytes("/dataset/export", params=query),
        file_name="fraud_transactions.csv",
        mime="text/csv",
    )


def render_page(client):
    st.title("Bulk Upload")
    st.caption("Upload a CSV of transactions to score them in batches and review the flagged ones.")

    uploaded_file = st.file_uploader("Upload CSV file", type=["csv"])
    if uploaded_file is not None and st.button("Analyze", type="primary"):
        _run_upload(client, uploaded_file)

    try:
        dataset = client.get("/dataset")
    except ApiError as exc:
        st.error(exc.detail)
        return

    if not dataset["loaded"]:
        st.info("No dataset loaded yet. Upload a CSV to get started.")
        return

    st.markdown("---")
    _summary_cards(dataset["summary"])
    _model_panel(dataset.get("model_info"))

    st.markdown("---")
    _insight_charts(client.get("/dataset/insights"))

    st.markdown("---")
    _fraud_table(client)

    if st.button("Clear dataset"):
        client.delete("/dataset")
        st.rerun()


if __name__ == "__main__":
    from dashboard.api_client import ApiClient

    render_page(ApiClient())
