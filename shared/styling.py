"""Styling helpers for Streamlit UI."""

import streamlit as st


def inject_global_css() -> None:
    st.markdown(
        """
        <style>
        .block-container { padding-top: 1.2rem; padding-bottom: 2rem; }
        .kpi-card {
            border-radius: 14px;
            padding: 18px 18px 14px 18px;
            color: #0f172a;
            background: linear-gradient(135deg, #eef2ff, #e0f2fe);
            border: 1px solid #e2e8f0;
            box-shadow: 0 10px 30px rgba(15, 23, 42, 0.08);
        }
        .kpi-card.alert { background: linear-gradient(135deg, #fef2f2, #fee2e2); border-color: #fecaca; }
        .kpi-card h3 { margin: 0; font-size: 0.95rem; text-transform: uppercase; letter-spacing: 0.5px; }
        .kpi-card .value { font-size: 1.8rem; font-weight: 700; margin-top: 6px; }
        .kpi-card .kpi-help { margin: 4px 0 0 0; font-size: 0.8rem; color: #475569; }
        .status-pill { padding: 4px 10px; border-radius: 999px; font-size: 0.85rem; font-weight: 600; display: inline-block; }
        .status-legit { background: #dcfce7; color: #14532d; }
        .status-fraud { background: #fee2e2; color: #991b1b; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def kpi_card(label: str, value: str, help_text: str | None = None, emoji: str | None = None, alert: bool = False) -> None:
    icon = f"{emoji} " if emoji else ""
    help_html = f'<p class="kpi-help">{help_text}</p>' if help_text else ""
    css_class = "kpi-card alert" if alert else "kpi-card"
    st.markdown(
        f"""
        <div class="{css_class}">
            <h3>{icon}{label}</h3>
            <div class="value">{value}</div>
            {help_html}
        </div>
        """,
        unsafe_allow_html=True,
    )


def status_pill(prediction: str) -> str:
    css = "status-fraud" if prediction == "fraud" else "status-legit"
    return f'<span class="status-pill {css}">{prediction.title()}</span>'


def format_risk(score: float | None) -> str:
    """Risk scores travel as 0-1 fractions; render them as percentages."""
    if not score:
        return "0%"
    return f"{score * 100:.2f}%"
