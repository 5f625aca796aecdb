"""Section 2: Texas Housing Data -- removing the seasonal effect per city."""
import streamlit as st
import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from modelvis.constants import ACCENT, HIGHLIGHT_LINE, LOG_BASE
from modelvis.data_loader import get_city_data, load_txhousing, sidebar_city_filter
from modelvis.modeling import ModelFitError, deseasonalise
from modelvis.plotting import apply_common_layout, group_lines_chart
from modelvis.stats_helpers import grouped_summary, variance_explained
from modelvis.ui_components import (
    section_header, concept_box, insight_box, warning_box,
    code_example, quiz, exercises, takeaways, navigation, load_or_stop,
)

# ---------------------------------------------------------------------------
st.set_page_config(page_title="2. Texas Housing Data", layout="wide")
tx = load_or_stop(load_txhousing)
ftx = sidebar_city_filter(tx)

section_header(2, "Texas Housing Data")

st.markdown(
    "We'll continue to explore the connection between modelling and visualisation with the "
    "`txhousing` dataset. It contains monthly housing sales for each city in Texas. I'll focus "
    "on one variable, the number of sales, and look at how it changes over time in each city."
)

st.dataframe(ftx.head(10), use_container_width=True, hide_index=True)

# ---------------------------------------------------------------------------
# 1. Raw series
# ---------------------------------------------------------------------------
st.subheader("Sales Over Time, One Line per City")

with np.errstate(divide="ignore"):
    raw = ftx.assign(log_sales=np.log(ftx["sales"]) / np.log(LOG_BASE))
raw["log_sales"] = raw["log_sales"].replace(-np.inf, np.nan)
st.plotly_chart(
    group_lines_chart(raw, "period", "log_sales", highlight=[], title="log2(Sales) by City"),
    use_container_width=True,
)

st.markdown(
    "Two factors are influencing sales: there is a long-term trend and a strong seasonal "
    "pattern. The cities differ hugely in size, so I show sales on a log scale, which also "
    "makes the seasonal pattern the same shape in big and small cities. The trend is what I "
    "want to see, and the seasonal wiggle is in the way."
)

concept_box(
    "Removing a Seasonal Effect with a Linear Model",
    "Fit <code>log2(sales) ~ factor(month)</code> separately for each city. The model predicts "
    "nothing more than the city's average sales for each calendar month. Its residuals are what "
    "is left when the usual seasonal level has been subtracted: sales relative to a typical "
    "month of that kind. We call that <b>relative sales</b>.",
)

# ---------------------------------------------------------------------------
# 2. One city up close
# ---------------------------------------------------------------------------
st.subheader("One City Up Close")

cities = sorted(ftx["city"].unique())
default_city = cities.index("Abilene") if "Abilene" in cities else 0
city = st.selectbox("City", cities, index=default_city, key="tx_city")

try:
    one = deseasonalise(get_city_data(tx, city), "sales", by=None, name="rel_sales")
except ValueError as exc:
    st.error(f"Could not model {city}: {exc}. Pick another city.")
    st.stop()
one_month = grouped_summary(one, "month", "log_sales")

fig = make_subplots(rows=1, cols=2, subplot_titles=(
    "log2(Sales) by Month of Year", "Relative Sales Over Time",
))
for year, part in one.groupby("year"):
    fig.add_trace(go.Scatter(
        x=part["month"], y=part["log_sales"], mode="lines",
        line=dict(color="#C8C8C8", width=1), showlegend=False, name=str(year),
    ), row=1, col=1)
fig.add_trace(go.Scatter(
    x=one_month["month"], y=one_month["log_sales"], mode="lines+markers",
    line=dict(color=HIGHLIGHT_LINE, width=3), name="Monthly mean",
), row=1, col=1)
fig.add_trace(go.Scatter(
    x=one["period"], y=one["rel_sales"], mode="lines",
    line=dict(color=ACCENT, width=2), name="Relative sales",
), row=1, col=2)
fig.add_hline(y=0, line_dash="dash", line_color=HIGHLIGHT_LINE, row=1, col=2)
apply_common_layout(fig, title=f"{city}: Seasonal Pattern and What Is Left", height=450)
st.plotly_chart(fig, use_container_width=True)

share = variance_explained(one["log_sales"], one["rel_sales"])
st.markdown(
    f"In {city} the month of the year accounts for **{share * 100:.1f}%** of the variation in "
    "log sales. With it removed, the long-term trend is much easier to read."
)

st.divider()

# ---------------------------------------------------------------------------
# 3. Every city
# ---------------------------------------------------------------------------
st.subheader("Relative Sales for Every City")

add_mean = st.toggle(
    "Add each city's mean back (keep the log2 sales scale)", value=False, key="tx_add_mean",
)
try:
    deseas = deseasonalise(ftx, "sales", by="city", name="rel_sales", add_mean=add_mean)
except ModelFitError as exc:
    st.error(f"{exc}. Remove that city in the sidebar and try again.")
    st.stop()

highlight = st.multiselect("Highlight cities", cities, default=[city] if city in cities else [], key="tx_hl")
st.plotly_chart(
    group_lines_chart(deseas, "period", "rel_sales", highlight=highlight,
                      title="Relative Sales by City"),
    use_container_width=True,
)

missing = int(deseas["rel_sales"].isna().sum())
if missing:
    st.caption(
        f"{missing} city-months have no sales recorded. They keep a missing relative sales value "
        "so every residual stays next to its own month."
    )

insight_box(
    "With the seasonal effect gone, the cities tell a common story: steady growth until 2007, "
    "a sharp fall through 2010, and then recovery. None of that was easy to see under the "
    "summer peaks."
)

warning_box(
    "Fitting one model to all cities at once. A single <code>factor(month)</code> model would "
    "subtract the same seasonal pattern from every city, and the big cities would dominate it. "
    "Fitting per city lets each city have its own seasonal shape."
)

st.divider()

code_example("""
import numpy as np
import statsmodels.formula.api as smf

def deseas(group):
    group = group.assign(log_sales=np.log2(group["sales"]))
    mod = smf.ols("log_sales ~ C(month)", data=group, missing="drop").fit()
    # rows with missing sales get NaN instead of being dropped
    return mod.resid.reindex(group.index)

txhousing["rel_sales"] = pd.concat(
    deseas(group) for _, group in txhousing.groupby("city")
)
""")

st.divider()

quiz(
    "Why is each city given its own seasonal model?",
    [
        "statsmodels can only fit small datasets",
        "Each city can have its own seasonal pattern, and one city's data should not change another's residuals",
        "It makes the R-squared higher",
        "Cities with missing data would otherwise crash the model",
    ],
    correct_idx=1,
    explanation="Grouped modelling keeps each city's detrending independent of every other city.",
    key="s2_quiz1",
)

exercises([
    "The final plot shows a lot of short-term noise in the overall trend. How could you smooth "
    "this further to focus on long-term changes?",
    "If you look closely (e.g. with a few highlighted cities) you'll notice that some cities "
    "deviate from the common pattern. What could be going on?",
    "Add a linear trend in time to the model. How does that change what the residuals show?",
])

takeaways([
    "A factor(month) model is a compact way of saying 'the usual level for this month'. Its residuals are deseasonalised values.",
    "Fit the model per group when groups can have different patterns.",
    "Keep missing observations aligned: a residual column should line up row for row with the data it came from.",
])

navigation(
    prev_label="1. Removing Trend",
    prev_page="01_Removing_Trend.py",
    next_label="3. Visualising Models",
    next_page="03_Visualising_Models.py",
)
