"""Section 5: Coefficient-Level Summaries -- the seasonal pattern of every city."""
import streamlit as st
import plotly.express as px

from modelvis.constants import BACKGROUND_LINE, HIGHLIGHT_LINE, LOG_BASE, MONTH_ABBR
from modelvis.data_loader import load_txhousing, sidebar_city_filter
from modelvis.modeling import (
    ModelFitError, deseasonalise, fit_by_group, month_effects, observed_levels, peak_effects,
    tidy_by_group,
)
from modelvis.plotting import apply_common_layout, dot_chart, group_lines_chart
from modelvis.ui_components import (
    section_header, concept_box, formula_box, insight_box,
    code_example, quiz, exercises, takeaways, navigation, load_or_stop,
)

# ---------------------------------------------------------------------------
st.set_page_config(page_title="5. Coefficient-Level Summaries", layout="wide")
tx = load_or_stop(load_txhousing)
ftx = sidebar_city_filter(tx)

section_header(5, "Coefficient-Level Summaries")

st.markdown(
    "The model fit summaries suggest that there are some important differences in seasonality "
    "between the different cities. Let's dive into those differences by using `tidy` to extract "
    "detail about each individual coefficient. Stacked over cities, that is one row for each "
    "coefficient of each model."
)

try:
    with_log = deseasonalise(ftx, "sales", by="city", name="rel_sales")
    models = fit_by_group(with_log, "city", "log_sales ~ C(month)")
except ModelFitError as exc:
    st.error(f"{exc}. Remove that city in the sidebar and try again.")
    st.stop()

coefs = tidy_by_group(models, by="city", conf_int=True)
st.dataframe(coefs.round(4), use_container_width=True, hide_index=True)

# ---------------------------------------------------------------------------
# 1. From terms to months
# ---------------------------------------------------------------------------
st.subheader("From Terms to Months")

st.markdown(
    "We're more interested in the month effect, so we keep only the month terms and pull the "
    "month number out of each term name (`C(month)[T.3]` is March). The reference level is "
    "the earliest month a city actually reports, usually January. It is absorbed into the intercept, "
    "so it goes back in with an effect of zero. A month a city never reports gets no row at all."
)

formula_box(
    "Back-Transforming a log2 Coefficient",
    r"\text{multiplier} = 2^{\hat\beta_{\text{month}}}",
    "A coefficient of 0.5 means that month has about 1.41 times the reference month's sales; 1 means twice as many.",
)

levels = observed_levels(models, "month")
months = month_effects(coefs, term="month", by="city", levels=levels, base=LOG_BASE)

show_ratio = st.toggle("Show as multiplier (2^estimate)", value=True, key="cls_ratio")
y_col = "multiplier" if show_ratio else "estimate"

fig = group_lines_chart(months, "month", y_col, group="city",
                        title="Seasonal Effect by City (relative to the reference month)")
fig.update_traces(line=dict(color=BACKGROUND_LINE, width=1), opacity=0.6)
fig.update_xaxes(tickmode="array", tickvals=list(range(1, 13)), ticktext=MONTH_ABBR)
st.plotly_chart(fig, use_container_width=True)

insight_box(
    "There's a very strong pattern: every city has more sales in summer than in winter, with a "
    "peak around June. Sales in the summer months are, in many cities, more than double January's. "
    "The shape is shared; the height of the peak is what varies."
)

# ---------------------------------------------------------------------------
# 2. Strongest seasonal effect per city
# ---------------------------------------------------------------------------
st.subheader("Which Cities Have the Strongest Seasonal Effect?")

concept_box(
    "Summarising a Summary",
    "Each city now has twelve coefficients, which is still a lot to compare across 46 cities. "
    "So we summarise again: keep each city's largest month effect and sort by it. A model "
    "summary is just data, so it can be summarised like any other data.",
)

coef_sum = peak_effects(months, by="city", column="multiplier")
coef_sum["month_name"] = coef_sum["month"].map(lambda m: MONTH_ABBR[m - 1])

col1, col2 = st.columns([2, 1])
with col1:
    st.plotly_chart(
        dot_chart(coef_sum, "multiplier", "city", title="Largest Monthly Multiplier by City",
                  height=max(400, 18 * len(coef_sum))),
        use_container_width=True,
    )
with col2:
    st.dataframe(coef_sum.round(3), use_container_width=True, hide_index=True)

if len(coef_sum) >= 2:
    strongest = coef_sum.iloc[0]["city"]
    weakest = coef_sum.iloc[-1]["city"]
    compare = months[months["city"].isin([strongest, weakest])]
    fig_cmp = px.line(compare, x="month", y="multiplier", color="city", markers=True,
                      labels={"multiplier": "Multiplier vs reference month", "month": "Month"})
    fig_cmp.add_hline(y=1, line_dash="dash", line_color=HIGHLIGHT_LINE)
    apply_common_layout(fig_cmp, title=f"Most vs Least Seasonal: {strongest} and {weakest}", height=400)
    st.plotly_chart(fig_cmp, use_container_width=True)

st.divider()

code_example("""
import numpy as np

coefs = tidy_by_group(models, by="city")

months = coefs[coefs["term"].str.startswith("C(month)")].copy()
months["month"] = months["term"].str.extract(r"T\\.(\\d+)", expand=False).astype(int)
months["multiplier"] = np.power(2, months["estimate"])

coef_sum = (
    months.loc[months.groupby("city")["multiplier"].idxmax(), ["city", "month", "multiplier"]]
    .sort_values("multiplier", ascending=False)
)
""")

st.divider()

quiz(
    "A city's coefficient for C(month)[T.6] is 1.0 in a log2(sales) model. June sales are:",
    [
        "1 more sale than January",
        "About twice January's sales",
        "The same as January",
        "10 times January's sales",
    ],
    correct_idx=1,
    explanation="2 to the power 1 is 2, so June has roughly twice as many sales as the reference month.",
    key="s5_quiz1",
)

exercises([
    "Pull out the three cities with the highest and lowest seasonal effect. Plot their coefficients.",
    "How does strength of seasonal effect relate to the R-squared for the model? Answer with a plot.",
    "You should be extra cautious when your results agree with your prior beliefs. How can you "
    "confirm or refute my hypothesis about the causes of strong seasonal patterns?",
    "Group the diamonds data by cut, clarity and colour. Fit a linear model log(price) ~ log(carat). "
    "What does the intercept tell you? What does the slope tell you? How do the slope and intercept "
    "vary across the groups? Answer with a plot.",
])

takeaways([
    "tidy gives one row per coefficient; stacked over groups it lets you compare estimates directly.",
    "Parse structured term names back into real variables (here, month numbers) before plotting.",
    "Back-transform log-scale coefficients so the plot speaks in multipliers, not logs.",
])

navigation(
    prev_label="4. Model-Level Summaries",
    prev_page="04_Model_Level_Summaries.py",
    next_label="6. Observation Data",
    next_page="06_Observation_Data.py",
)
