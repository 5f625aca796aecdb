"""Cached data loading, preparation and sidebar filtering."""
import logging
import os

import numpy as np
import pandas as pd
import streamlit as st

from modelvis.constants import (
    DATA_FILES, DIAMOND_COLS, DIAMOND_FACTORS, LOG_BASE, MAX_CARAT,
    MONTH_ABBR, ROWNAME_COLS, TXHOUSING_COLS,
)

logger = logging.getLogger(__name__)

DATA_DIR = os.environ.get(
    "MODELVIS_DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data"),
)
DIAMONDS_PATH = os.path.join(DATA_DIR, DATA_FILES["diamonds"])
TXHOUSING_PATH = os.path.join(DATA_DIR, DATA_FILES["txhousing"])


def _check_columns(df, required, name):
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{name} is missing columns: {', '.join(missing)}")


def _drop_rownames(df):
    return df.drop(columns=[c for c in ROWNAME_COLS if c in df.columns])


def _read_csv(path):
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"{path} not found. Run `python fetch_data.py` to download the datasets."
        )
    return pd.read_csv(path)


def prepare_diamonds(raw):
    """Drop row names, validate columns and order the quality factors."""
    df = _drop_rownames(raw)
    _check_columns(df, DIAMOND_COLS, "diamonds")
    df = df.copy()
    for col, levels in DIAMOND_FACTORS.items():
        df[col] = pd.Categorical(df[col], categories=levels, ordered=True)
    return df


def prepare_txhousing(raw):
    """Drop row names, validate columns and add a monthly timestamp."""
    df = _drop_rownames(raw)
    _check_columns(df, TXHOUSING_COLS, "txhousing")
    df = df.copy()
    df["year"] = df["year"].astype(int)
    df["month"] = df["month"].astype(int)
    bad = ~df["month"].between(1, 12)
    if bad.any():
        raise ValueError(f"txhousing has {int(bad.sum())} rows with month outside 1-12")
    df["period"] = pd.to_datetime(
        pd.DataFrame({"year": df["year"], "month": df["month"], "day": 1})
    )
    df["month_name"] = df["month"].map(lambda m: MONTH_ABBR[m - 1])
    return df.sort_values(["city", "period"]).reset_index(drop=True)


@st.cache_data
def load_diamonds(path=DIAMONDS_PATH):
    """Load the diamonds dataset with ordered cut, color and clarity."""
    df = prepare_diamonds(_read_csv(path))
    logger.info("Loaded %d diamonds from %s", len(df), path)
    return df


@st.cache_data
def load_txhousing(path=TXHOUSING_PATH):
    """Load the Texas housing dataset, one row per city and month."""
    df = prepare_txhousing(_read_csv(path))
    logger.info("Loaded %d housing records for %d cities", len(df), df["city"].nunique())
    return df


def log_diamonds(df, max_carat=MAX_CARAT, base=LOG_BASE):
    """Keep diamonds up to ``max_carat`` and add log-scale carat and price.

    Very large diamonds are rare and badly modelled, so the chapter drops them
    before fitting. Logs use ``base`` so a one-unit change is a doubling.
    """
    if max_carat <= 0:
        raise ValueError("max_carat must be positive")
    out = df[df["carat"] <= max_carat].copy()
    out["lcarat"] = np.log(out["carat"]) / np.log(base)
    out["lprice"] = np.log(out["price"]) / np.log(base)
    return out


def sidebar_city_filter(df, key="city_filter"):
    """Render a sidebar city multiselect; return the filtered DataFrame."""
    cities = sorted(df["city"].unique())
    st.sidebar.header("Filters")
    selected = st.sidebar.multiselect("Cities", cities, default=cities, key=key)
    if not selected:
        selected = cities
    return df[df["city"].isin(selected)].copy()


def sidebar_carat_filter(key="carat_filter"):
    """Render a sidebar slider for the largest diamond kept in the model."""
    st.sidebar.header("Filters")
    return st.sidebar.slider(
        "Maximum carat", 0.5, 5.0, float(MAX_CARAT), step=0.25, key=key,
    )


def get_city_data(df, city):
    """Filter DataFrame to a single city."""
    return df[df["city"] == city].copy()
