"""Section 6: Observation Data -- residuals and diagnostics for every month."""
import streamlit as st

from modelvis.constants import OUTLIER_THRESHOLD
from modelvis.data_loader import load_txhousing, sidebar_city_filter
from modelvis.modeling import (
    ModelFitError, augment_by_group, deseasonalise, fit_by_group, flag_outliers,
)
from modelvis.plotting import outlier_time_chart, qq_chart, residual_histogram
from modelvis.stats_helpers import descriptive_stats, grouped_summary, normality_test
from modelvis.ui_components import (
    section_header, concept_box, insight_box, warning_box,
    code_example, quiz, exercises, takeaways, navigation, load_or_stop,
)

# ---------------------------------------------------------------------------
st.set_page_config(page_title="6. Observation Data", layout="wide")
tx = load_or_stop(load_txhousing)
ftx = sidebar_city_filter(tx)

section_header(6, "Observation Data")

st.markdown(
    "Observation data, from `augment`, includes the original data plus residuals and other "
    "observation-level diagnostics. Stacked over cities there is one row per city per month, "
    "and every row knows how surprising it was to its own city's model."
)

try:
    with_log = deseasonalise(ftx, "sales", by="city", name="rel_sales")
    models = fit_by_group(with_log, "city", "log_sales ~ C(month)")
except ModelFitError as exc:
    st.error(f"{exc}. Remove that city in the sidebar and try again.")
    st.stop()

obs_sum = augment_by_group(models, with_log, by="city")

concept_box(
    "Standardized Residuals",
    "Raw residuals are on each city's own scale, and a small noisy city will have bigger "
    "residuals than a large steady one. Dividing each residual by its estimated standard "
    "deviation puts every city on the same footing. A standardized residual beyond "
    "about +/-2 is unusual for a roughly normal model.",
)

threshold = st.slider("Flag |standardized residual| above", 1.0, 4.0,
                      float(OUTLIER_THRESHOLD), step=0.25, key="od_threshold")
obs_sum = flag_outliers(obs_sum, threshold=threshold)

# ---------------------------------------------------------------------------
# 1. Distribution
# ---------------------------------------------------------------------------
st.subheader("How Are the Residuals Distributed?")

col1, col2 = st.columns(2)
with col1:
    st.plotly_chart(
        residual_histogram(obs_sum["std_resid"].dropna(), title="Standardized Residuals"),
        use_container_width=True,
    )
with col2:
    st.plotly_chart(qq_chart(obs_sum["std_resid"].dropna()), use_container_width=True)

summary = descriptive_stats(obs_sum["std_resid"])
stat, p = normality_test(obs_sum["std_resid"])
m1, m2, m3, m4 = st.columns(4)
m1.metric("Observations", f"{summary['count']:,}")
m2.metric("Skewness", f"{summary['skewness']:.2f}")
m3.metric("Kurtosis", f"{summary['kurtosis']:.2f}")
m4.metric("Shapiro-Wilk p", f"{p:.2g}")

st.markdown(
    "The histogram has a long left tail: there are some months where sales were far lower "
    "than the seasonal model expected. Those are worth a look."
)

# ---------------------------------------------------------------------------
# 2. When do the outliers happen?
# ---------------------------------------------------------------------------
st.subheader("When Do the Unusual Months Happen?")

st.plotly_chart(
    outlier_time_chart(obs_sum, "period", threshold=threshold,
                       title="Standardized Residuals Over Time"),
    use_container_width=True,
)

per_city = (
    grouped_summary(obs_sum, "city", "outlier", func="sum")
    .sort_values("outlier", ascending=False)
    .rename(columns={"outlier": "flagged_months"})
)
col1, col2 = st.columns(2)
with col1:
    st.markdown("**Flagged months per city**")
    st.dataframe(per_city.head(10), use_container_width=True, hide_index=True)
with col2:
    st.markdown("**Most extreme observations**")
    worst = obs_sum.loc[obs_sum["outlier"]].reindex(
        obs_sum.loc[obs_sum["outlier"], "std_resid"].abs().sort_values(ascending=False).index
    )
    st.dataframe(
        worst[["city", "period", "sales", "fitted", "std_resid", "cooksd"]].head(10).round(3),
        use_container_width=True, hide_index=True,
    )

insight_box(
    "Plotting standardized residuals against date, many of the big negative residuals sit at the "
    "very start of a city's series. That looks less like the housing market and more like the "
    "data: a city that only began reporting part way through a month, or a change in how sales "
    "were counted."
)

warning_box(
    "Treating every flagged point as an error. With thousands of observations you expect about "
    "5% of standardized residuals beyond +/-2 just by chance. Outliers are a list of places to "
    "look, not a list of rows to delete."
)

st.divider()

code_example("""
frames = []
for city, mod in models.items():
    infl = mod.get_influence()
    part = txhousing[txhousing["city"] == city].copy()
    part["std_resid"] = pd.Series(
        infl.resid_studentized_internal, index=mod.resid.index
    ).reindex(part.index)
    frames.append(part)

obs_sum = pd.concat(frames)
obs_sum["outlier"] = obs_sum["std_resid"].abs() > 2
""")

st.divider()

quiz(
    "Why use standardized residuals rather than raw residuals to find unusual months across cities?",
    [
        "They are always smaller",
        "They put every city's residuals on a comparable scale",
        "They remove the seasonal effect",
        "statsmodels cannot compute raw residuals",
    ],
    correct_idx=1,
    explanation="Each city's model has its own residual spread; standardizing divides it out.",
    key="s6_quiz1",
)

exercises([
    "A common diagnostic plot is fitted values versus residuals. Create it and describe what you see.",
    "Create a time series of log(sales) for each city. Highlight points that have a standardized "
    "residual of greater than 2.",
])

takeaways([
    "augment attaches fitted values, residuals and influence measures to the original rows.",
    "Standardized residuals make residuals comparable across models.",
    "Plot where and when the unusual observations happen; patterns in the outliers are often data problems.",
])

navigation(
    prev_label="5. Coefficient-Level Summaries",
    prev_page="05_Coefficient_Level_Summaries.py",
)
