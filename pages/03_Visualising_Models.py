"""Section 3: Visualising Models -- one model per city, three kinds of summary."""
import streamlit as st

from modelvis.data_loader import load_txhousing, sidebar_city_filter
from modelvis.modeling import (
    ModelFitError, augment, deseasonalise, fit_by_group, glance, tidy,
)
from modelvis.ui_components import (
    section_header, concept_box, insight_box,
    code_example, quiz, takeaways, navigation, load_or_stop,
)

# ---------------------------------------------------------------------------
st.set_page_config(page_title="3. Visualising Models", layout="wide")
tx = load_or_stop(load_txhousing)
ftx = sidebar_city_filter(tx)

section_header(3, "Visualising Models")

st.markdown(
    "In the previous section we used the linear model just as a tool for removing seasonal "
    "effects. But the models themselves are interesting: they encapsulate a lot of "
    "information about each city. We fitted 46 of them, one per city, and throwing them away "
    "after taking the residuals wastes most of what they know. Here we keep them around and "
    "ask what each one can tell us."
)

concept_box(
    "Three Ways to Turn a Model into Data",
    "<b>Model level</b> (<code>glance</code>): one row per model. How well did it fit? "
    "R-squared, residual standard deviation, F statistic, AIC.<br>"
    "<b>Coefficient level</b> (<code>tidy</code>): one row per coefficient. What did it "
    "estimate, and how precisely?<br>"
    "<b>Observation level</b> (<code>augment</code>): one row per input row. Fitted value, "
    "residual, and influence diagnostics like leverage and Cook's distance.<br>"
    "Each is a plain DataFrame, so everything you already know about plotting data frames "
    "applies to models too.",
)

# ---------------------------------------------------------------------------
# 1. Fit the collection
# ---------------------------------------------------------------------------
st.subheader("A Collection of Models")

try:
    with_log = deseasonalise(ftx, "sales", by="city", name="rel_sales")
    models = fit_by_group(with_log, "city", "log_sales ~ C(month)")
except ModelFitError as exc:
    st.error(f"{exc}. Remove that city in the sidebar and try again.")
    st.stop()

st.markdown(f"We now have **{len(models)}** fitted models, one per city.")

city = st.selectbox("Look inside the model for", list(models), key="vm_city")
mod = models[city]

tab1, tab2, tab3 = st.tabs(["glance: model level", "tidy: coefficient level", "augment: observation level"])
with tab1:
    st.dataframe(glance(mod).round(4), use_container_width=True, hide_index=True)
    st.caption("One row. Good for comparing models against each other.")
with tab2:
    st.dataframe(tidy(mod, conf_int=True).round(4), use_container_width=True, hide_index=True)
    st.caption(
        "One row per term. The intercept is the reference month (January); every other term "
        "is that month's difference from January on the log2 scale."
    )
with tab3:
    obs = augment(mod, with_log[with_log["city"] == city])
    st.dataframe(
        obs[["period", "sales", "log_sales", "fitted", "resid", "hat", "cooksd", "std_resid"]].round(4),
        use_container_width=True, hide_index=True,
    )
    st.caption(
        "One row per month of data. Months without sales were not used in the fit and keep "
        "empty diagnostics."
    )

insight_box(
    "Because each summary is a data frame with a city column, the question 'which city's model "
    "is most unusual?' becomes an ordinary plotting question. The next three sections take one "
    "summary each."
)

st.divider()

code_example("""
import statsmodels.formula.api as smf

models = {
    city: smf.ols("log_sales ~ C(month)", data=group, missing="drop").fit()
    for city, group in txhousing.groupby("city")
}

mod = models["Abilene"]
mod.rsquared          # model level
mod.params, mod.bse   # coefficient level
mod.resid             # observation level
""")

st.divider()

quiz(
    "You want to know which cities have the strongest seasonal pattern. Which summary do you reach for first?",
    [
        "augment: observation level",
        "tidy: coefficient level",
        "glance: model level",
        "None of them",
    ],
    correct_idx=1,
    explanation="The size of the seasonal pattern lives in the month coefficients. (glance's R-squared is a good second opinion.)",
    key="s3_quiz1",
)

takeaways([
    "A model fitted per group gives you a collection of models, and each one knows something about its group.",
    "glance, tidy and augment turn a model into a data frame at three levels of detail.",
    "Once models are data frames, you visualise them exactly like data.",
])

navigation(
    prev_label="2. Texas Housing Data",
    prev_page="02_Texas_Housing_Data.py",
    next_label="4. Model-Level Summaries",
    next_page="04_Model_Level_Summaries.py",
)
