"""Styled dataframe display helpers."""

import streamlit as st
import pandas as pd

from config.defaults import BU_CATEGORIES

CATEGORY_STYLES = {
    BU_CATEGORIES["OLED"]: "background-color: #DBEAFE; color: #1D4ED8; font-weight: bold",
    BU_CATEGORIES["API"]: "background-color: #D1FAE5; color: #047857; font-weight: bold",
    BU_CATEGORIES["신사업"]: "background-color: #FEF3C7; color: #B45309; font-weight: bold",
}
CUSTOM_CATEGORY_STYLE = "background-color: #F1F5F9; color: #475569"


def render_category_table(df: pd.DataFrame, category_column: str = "Category"):
    """Render a table with category badges colored like the business units."""
    def color_category(val):
        return CATEGORY_STYLES.get(val, CUSTOM_CATEGORY_STYLE)

    if df.empty:
        st.caption("No data.")
        return
    if category_column in df.columns:
        styled = df.style.map(color_category, subset=[category_column]).format(
            {"Revenue (B)": "{:,.3f}", "Qty (g)": "{:,.0f}"}
        )
        st.dataframe(styled, use_container_width=True, hide_index=True)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)
