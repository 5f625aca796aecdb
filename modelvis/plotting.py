"""Shared Plotly plotting helpers."""
import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from modelvis.constants import (
    ACCENT, BACKGROUND_LINE, COLUMN_LABELS, CUT_COLORS, HIGHLIGHT_LINE, OUTLIER_COLOR,
)
from modelvis.stats_helpers import qq_points


def apply_common_layout(fig, title=None, height=500):
    """Apply common layout settings to a Plotly figure."""
    fig.update_layout(
        template="plotly_white",
        height=height,
        title=title,
        title_x=0.5,
        margin=dict(t=60, b=40, l=60, r=40),
    )
    return fig


def _labels(extra=None):
    lab = {**(extra or {})}
    for k, v in COLUMN_LABELS.items():
        lab.setdefault(k, v)
    return lab


def scatter_chart(df, x, y, color=None, title=None, labels=None, height=500, opacity=0.3,
                  max_points=5000):
    """Create a scatter plot, sampling down to ``max_points`` rows."""
    if len(df) > max_points:
        df = df.sample(max_points, random_state=42)
    fig = px.scatter(df, x=x, y=y, color=color, color_discrete_map=CUT_COLORS,
                     labels=_labels(labels), title=title, opacity=opacity)
    return apply_common_layout(fig, title, height)


def fit_line_chart(df, x, y, model, title=None, height=500, max_points=5000):
    """Scatter ``y`` against ``x`` with the fitted straight line on top."""
    sample = df[[x, y]].dropna()
    if len(sample) > max_points:
        sample = sample.sample(max_points, random_state=42)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=sample[x], y=sample[y], mode="markers", name="Data",
        marker=dict(color=ACCENT, size=3, opacity=0.3),
    ))
    x_line = np.linspace(sample[x].min(), sample[x].max(), 50)
    y_line = model.predict(pd.DataFrame({x: x_line}))
    fig.add_trace(go.Scatter(
        x=x_line, y=np.asarray(y_line), mode="lines", name="OLS fit",
        line=dict(color=HIGHLIGHT_LINE, width=3),
    ))
    lab = _labels()
    fig.update_xaxes(title_text=lab.get(x, x))
    fig.update_yaxes(title_text=lab.get(y, y))
    return apply_common_layout(fig, title, height)


def density_chart(df, x, y, title=None, nbins=50, height=500):
    """2D binned counts of ``y`` against ``x``; the hex-bin view of a big scatter."""
    fig = px.density_heatmap(df, x=x, y=y, nbinsx=nbins, nbinsy=nbins,
                             color_continuous_scale="Viridis", labels=_labels(), title=title)
    return apply_common_layout(fig, title, height)


def group_lines_chart(df, x, y, group="city", highlight=None, title=None, height=500):
    """One grey line per group; groups in ``highlight`` drawn in color on top."""
    highlight = list(highlight or [])
    fig = go.Figure()
    for key, part in df.groupby(group, sort=True):
        if key in highlight:
            continue
        fig.add_trace(go.Scatter(
            x=part[x], y=part[y], mode="lines", name=str(key),
            line=dict(color=BACKGROUND_LINE, width=1), opacity=0.5, showlegend=False,
        ))
    palette = px.colors.qualitative.Bold
    for i, key in enumerate(highlight):
        part = df[df[group] == key]
        fig.add_trace(go.Scatter(
            x=part[x], y=part[y], mode="lines", name=str(key),
            line=dict(color=palette[i % len(palette)], width=2),
        ))
    lab = _labels()
    fig.update_xaxes(title_text=lab.get(x, x))
    fig.update_yaxes(title_text=lab.get(y, y))
    return apply_common_layout(fig, title, height)


def dot_chart(df, x, y, title=None, height=700):
    """Horizontal dot plot of ``x`` per category ``y``, sorted by value."""
    ordered = df.sort_values(x)
    fig = go.Figure(go.Scatter(
        x=ordered[x], y=ordered[y].astype(str), mode="markers",
        marker=dict(color=ACCENT, size=8),
    ))
    fig.update_xaxes(title_text=_labels().get(x, x))
    return apply_common_layout(fig, title, height)


def level_summary_chart(df, x, y, group, title=None, height=450):
    """A point per level of ``x``, joined by a line per level of ``group``."""
    fig = px.line(df, x=x, y=y, color=group, markers=True,
                  color_discrete_map=CUT_COLORS, labels=_labels(), title=title)
    return apply_common_layout(fig, title, height)


def heatmap_chart(data, x_label="", y_label="", title=None, height=500, color_scale="RdYlBu_r"):
    """Create a heatmap from a 2D array or DataFrame."""
    fig = go.Figure(data=go.Heatmap(
        z=data.values if hasattr(data, 'values') else data,
        x=[str(c) for c in data.columns] if hasattr(data, 'columns') else None,
        y=[str(i) for i in data.index] if hasattr(data, 'index') else None,
        colorscale=color_scale,
    ))
    fig.update_layout(xaxis_title=x_label, yaxis_title=y_label)
    return apply_common_layout(fig, title, height)


def residual_histogram(resid, title=None, nbins=60, height=400):
    """Histogram of residuals."""
    fig = go.Figure(go.Histogram(x=resid, nbinsx=nbins, marker_color="#7209B7", opacity=0.7))
    fig.update_xaxes(title_text="Residual")
    fig.update_yaxes(title_text="Count")
    return apply_common_layout(fig, title, height)


def qq_chart(resid, title="Q-Q Plot of Residuals", height=400, max_points=2000):
    """Normal Q-Q plot with a reference line through mean and std."""
    pts = qq_points(resid)
    step = max(1, len(pts) // max_points)
    shown = pts.iloc[::step]
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=shown["theoretical"], y=shown["sample"], mode="markers",
        marker=dict(color=ACCENT, size=3, opacity=0.5), showlegend=False,
    ))
    q = np.array([pts["theoretical"].min(), pts["theoretical"].max()])
    fig.add_trace(go.Scatter(
        x=q, y=q * pts["sample"].std() + pts["sample"].mean(), mode="lines",
        line=dict(color=HIGHLIGHT_LINE, dash="dash"), showlegend=False,
    ))
    fig.update_xaxes(title_text="Theoretical Quantiles")
    fig.update_yaxes(title_text="Sample Quantiles")
    return apply_common_layout(fig, title, height)


def outlier_time_chart(df, x, y="std_resid", flag="outlier", group="city", threshold=2.0,
                       title=None, height=500):
    """Residuals over time per group, with flagged observations marked."""
    fig = group_lines_chart(df, x, y, group=group, title=title, height=height)
    marked = df[df[flag]]
    fig.add_trace(go.Scatter(
        x=marked[x], y=marked[y], mode="markers", name="Outlier",
        marker=dict(color=OUTLIER_COLOR, size=5),
        text=marked[group], hovertemplate="%{text}<br>%{x}<br>%{y:.2f}<extra></extra>",
    ))
    for level in (-threshold, threshold):
        fig.add_hline(y=level, line_dash="dash", line_color=HIGHLIGHT_LINE)
    return fig
