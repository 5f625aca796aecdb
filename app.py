"""Modelling for Visualisation -- Main Entry Point."""
import streamlit as st

from modelvis.constants import SECTION_TITLES
from modelvis.data_loader import load_diamonds, load_txhousing
from modelvis.ui_components import concept_box, load_or_stop, navigation

st.set_page_config(
    page_title="Modelling for Visualisation",
    page_icon="📉",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.title("Modelling for Visualisation")
st.subheader("Using models to take the obvious out of a plot so the interesting part can show")

st.markdown("""
Modelling is an essential tool for visualisation. There are two particularly strong connections
between modelling and visualisation that I want to explore in this chapter:

* Using models as a tool to **remove obvious patterns** in your plots. This is useful because strong
  patterns mask subtler effects. Often the strongest effects are already known and expected, and
  removing them lets you see surprises more easily.
* Other times you have **a lot of data**, too much to show on a handful of plots. Models can be a
  powerful tool for summarising data so that you get a higher level view.

None of this needs fancy models. Every model in this chapter is a plain linear regression, fitted
with `statsmodels`. The trick is not in the fitting. It is in what you do with the output:
residuals, coefficients and fit statistics, each turned into a tidy table and then into a plot.

### The Datasets

**diamonds**: prices and attributes of about 54,000 round-cut diamonds. The big fact about
diamonds is that bigger ones cost more, and that fact drowns out everything else.

**txhousing**: monthly housing sales for 46 Texas cities from 2000 to 2015, collected by the
Real Estate Center at Texas A&M. Sales go up every summer, and that seasonal swing hides the
long-term story.

### Sections
""")

for number, title in SECTION_TITLES.items():
    st.markdown(f"**{number}. {title}**")

concept_box(
    "The One Idea",
    "Fit a model for the pattern you already understand. Take the residuals. Plot the residuals "
    "instead of the raw data. Whatever structure is left is the part you did <em>not</em> "
    "already know.",
)

st.divider()
st.subheader("Dataset Preview")

diamonds = load_or_stop(load_diamonds)
txhousing = load_or_stop(load_txhousing)

tab1, tab2 = st.tabs(["diamonds", "txhousing"])
with tab1:
    st.dataframe(diamonds.head(20), use_container_width=True)
    col1, col2, col3 = st.columns(3)
    col1.metric("Diamonds", f"{len(diamonds):,}")
    col2.metric("Median Price", f"${diamonds['price'].median():,.0f}")
    col3.metric("Max Carat", f"{diamonds['carat'].max():.2f}")
with tab2:
    st.dataframe(txhousing.head(20), use_container_width=True)
    col1, col2, col3 = st.columns(3)
    col1.metric("Rows", f"{len(txhousing):,}")
    col2.metric("Cities", txhousing["city"].nunique())
    col3.metric(
        "Date Range",
        f"{txhousing['period'].min():%Y-%m} to {txhousing['period'].max():%Y-%m}",
    )

st.divider()
navigation(next_label="1. Removing Trend", next_page="01_Removing_Trend.py")
