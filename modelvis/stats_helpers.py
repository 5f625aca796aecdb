"""Reusable statistics computation helpers."""
import numpy as np
import pandas as pd
from scipy import stats


def descriptive_stats(series):
    """Compute comprehensive descriptive statistics for a numeric series."""
    series = pd.Series(series).dropna()
    return {
        "count": len(series),
        "mean": series.mean(),
        "median": series.median(),
        "std": series.std(),
        "min": series.min(),
        "max": series.max(),
        "q25": series.quantile(0.25),
        "q75": series.quantile(0.75),
        "iqr": series.quantile(0.75) - series.quantile(0.25),
        "skewness": series.skew(),
        "kurtosis": series.kurtosis(),
    }


def grouped_summary(df, by, columns, func="mean"):
    """Aggregate ``columns`` over every observed combination of ``by``."""
    if isinstance(columns, str):
        columns = [columns]
    return df.groupby(by, observed=True)[columns].agg(func).reset_index()


def normality_test(data):
    """Run Shapiro-Wilk test (on sample if too large) and return stat, p-value."""
    data = np.asarray(pd.Series(data).dropna())
    if len(data) > 5000:
        data = np.random.RandomState(42).choice(data, 5000, replace=False)
    stat, p = stats.shapiro(data)
    return stat, p


def qq_points(data):
    """Sorted sample quantiles paired with standard normal quantiles."""
    sample = np.sort(np.asarray(pd.Series(data).dropna()))
    n = len(sample)
    probs = (np.arange(1, n + 1) - 0.5) / n
    return pd.DataFrame({"theoretical": stats.norm.ppf(probs), "sample": sample})


def variance_explained(raw, detrended):
    """Share of the raw variance removed by detrending."""
    raw_var = pd.Series(raw).var()
    if not raw_var:
        raise ValueError("raw values have no variance")
    return 1 - pd.Series(detrended).var() / raw_var
