"""Section 4: Model-Level Summaries -- which cities does the seasonal model fit?"""
import streamlit as st
import plotly.express as px

from modelvis.constants import N_EXTREME
from modelvis.data_loader import load_txhousing, sidebar_city_filter
from modelvis.modeling import ModelFitError, deseasonalise, extreme_groups, fit_by_group, glance_by_group
from modelvis.plotting import apply_common_layout, dot_chart
from modelvis.ui_components import (
    section_header, concept_box, insight_box, warning_box,
    code_example, quiz, exercises, takeaways, navigation, load_or_stop,
)

# ---------------------------------------------------------------------------
st.set_page_config(page_title="4. Model-Level Summaries", layout="wide")
tx = load_or_stop(load_txhousing)
ftx = sidebar_city_filter(tx)

section_header(4, "Model-Level Summaries")

st.markdown(
    "We'll begin by looking at how well the model fit to each city with `glance`. It gives "
    "one row per model, so stacking them gives one row per city. The statistic I care about "
    "here is R-squared: how much of each city's variation in log sales the month of the year "
    "explains."
)

try:
    with_log = deseasonalise(ftx, "sales", by="city", name="rel_sales")
    models = fit_by_group(with_log, "city", "log_sales ~ C(month)")
except ModelFitError as exc:
    st.error(f"{exc}. Remove that city in the sidebar and try again.")
    st.stop()

model_sum = glance_by_group(models, by="city")
st.dataframe(model_sum.round(4), use_container_width=True, hide_index=True)

# ---------------------------------------------------------------------------
# 1. R-squared by city
# ---------------------------------------------------------------------------
st.subheader("R-squared by City")

st.plotly_chart(
    dot_chart(model_sum, "r_squared", "city", title="Seasonal Model Fit by City",
              height=max(400, 18 * len(model_sum))),
    use_container_width=True,
)

concept_box(
    "Why Sort the Dot Plot?",
    "An alphabetical city order tells you nothing. Ordering the cities by R-squared makes the "
    "plot readable from top to bottom as 'most seasonal' to 'least seasonal', and the extremes "
    "jump out at the ends.",
)

# ---------------------------------------------------------------------------
# 2. Best and worst fits
# ---------------------------------------------------------------------------
st.subheader("The Best and Worst Fitting Cities")

max_n = min(10, len(model_sum) // 2)
n = st.slider("Cities at each end", 1, max_n, min(N_EXTREME, max_n), key="mls_n") if max_n > 1 else 1
worst, best = extreme_groups(model_sum, "r_squared", n=n)

col1, col2 = st.columns(2)
with col1:
    st.markdown("**Lowest R-squared**")
    st.dataframe(worst[["city", "r_squared", "sigma", "nobs"]].round(3),
                 use_container_width=True, hide_index=True)
with col2:
    st.markdown("**Highest R-squared**")
    st.dataframe(best[["city", "r_squared", "sigma", "nobs"]].round(3),
                 use_container_width=True, hide_index=True)

extremes = with_log[with_log["city"].isin(list(worst["city"]) + list(best["city"]))].copy()
extremes["fit"] = extremes["city"].isin(best["city"]).map({True: "best", False: "worst"})
fig = px.line(extremes, x="month", y="log_sales", color="city", line_group="year",
              facet_col="fit", labels={"log_sales": "log2(Sales)", "month": "Month"},
              category_orders={"fit": ["worst", "best"]})
fig.update_traces(opacity=0.5)
apply_common_layout(fig, title="log2(Sales) by Month, One Line per Year", height=450)
st.plotly_chart(fig, use_container_width=True)

insight_box(
    "The cities with the lowest R-squared still have a seasonal pattern, but it is buried under "
    "a stronger long-term trend or a lot of noise from small sales counts. The best fitting cities "
    "have steady year-on-year sales and a crisp summer peak. A low R-squared is not a bad model "
    "here; it tells you that something other than the month drives sales in that city."
)

warning_box(
    "Comparing R-squared across cities with very different numbers of observations. Cities with "
    "short or patchy series have fewer residual degrees of freedom, so look at "
    "<code>nobs</code> and <code>adj_r_squared</code> before reading too much into a ranking."
)

st.divider()

code_example("""
import pandas as pd

model_sum = pd.concat(
    [
        pd.DataFrame({"city": [city], "r_squared": [mod.rsquared], "sigma": [mod.mse_resid ** 0.5]})
        for city, mod in models.items()
    ],
    ignore_index=True,
)

worst = model_sum.nsmallest(3, "r_squared")
best = model_sum.nlargest(3, "r_squared")
""")

st.divider()

quiz(
    "A city's seasonal model has R-squared = 0.1. The most reasonable reading is:",
    [
        "The city has no housing sales",
        "Month of year explains little of that city's variation in log sales",
        "The model is mis-specified and should be discarded",
        "Sales in that city are perfectly predictable",
    ],
    correct_idx=1,
    explanation="R-squared measures explained variation. A low value says the month effect is small relative to everything else going on.",
    key="s4_quiz1",
)

exercises([
    "Do your conclusions change if you use a different measure of model fit, like AIC or deviance? "
    "Why/why not?",
    "One possible hypothesis that explains why some cities fit worse than others is that they're "
    "smaller (fewer sales and more noise). Confirm or refute this hypothesis.",
    "McAllen, Harlingen and Brownsville seem to have much bigger year-to-year variation than "
    "Bryan-College Station, Lubbock, and NE Tarrant County. How does the model change if you also "
    "include a linear trend for year? (i.e. log(sales) ~ factor(month) + year).",
    "Create a faceted plot that shows the seasonal patterns for all cities. Order the facets by the "
    "R-squared for the city.",
])

takeaways([
    "glance gives one row per model, which makes comparing dozens of models as easy as comparing dozens of rows.",
    "Sort categorical axes by the statistic you are showing.",
    "Look at the extremes of a ranking in the raw data to understand what the statistic is picking up.",
])

navigation(
    prev_label="3. Visualising Models",
    prev_page="03_Visualising_Models.py",
    next_label="5. Coefficient-Level Summaries",
    next_page="05_Coefficient_Level_Summaries.py",
)
