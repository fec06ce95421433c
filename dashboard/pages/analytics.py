from __future__ import annotations

import pandas as pd
import plotly.express as px
import streamlit as st

from dashboard.api_client import ApiError
from shared.styling import format_risk, kpi_card


def render_page(client):
    st.title("Analytics")
    st.caption("Overview, risk bands and channel mix of the uploaded dataset.")

    try:
        stats = client.get("/dataset/stats")["data"]
    except ApiError as exc:
        st.error(exc.detail)
        return

    overview = stats["overview"]
    if overview["total_transactions"] == 0:
        st.info("No dataset loaded yet. Upload a CSV on the Bulk Upload page.")
        return

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        kpi_card("Transactions", f"{overview['total_transactions']:,}")
    with c2:
        kpi_card("Fraud Rate", f"{overview['fraud_rate']:.2f}%", alert=overview["fraud_detected"] > 0)
    with c3:
        kpi_card("Average Risk", format_risk(overview["avg_risk_score"]))
    with c4:
        kpi_card("Amount Protected", f"{overview['amount_protected']:,.2f}", help_text="Total of flagged amounts")

    st.markdown("---")
    left, right = st.columns(2)
    with left:
        bands = pd.DataFrame(
            [{"band": band.title(), "count": count} for band, count in stats["risk_distribution"].items()]
        )
        fig = px.bar(
            bands,
            x="band",
            y="count",
            color="band",
            title="Risk Bands",
            color_discrete_map={"High": "#dc2626", "Medium": "#f59e0b", "Low": "#16a34a"},
        )
        st.plotly_chart(fig, use_container_width=True)
    with right:
        channels = pd.DataFrame(
            [{"channel": name, "count": count} for name, count in stats["channel_distribution"].items()]
        )
        fig = px.pie(channels, values="count", names="channel", title="Channel Mix", hole=0.4)
        st.plotly_chart(fig, use_container_width=True)

    st.caption(f"Computed at {stats['timestamp']}")
