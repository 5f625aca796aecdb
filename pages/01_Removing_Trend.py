"""Section 1: Removing Trend -- diamond prices relative to size."""
import streamlit as st

from modelvis.constants import COLUMN_LABELS, LOG_BASE
from modelvis.data_loader import load_diamonds, log_diamonds, sidebar_carat_filter
from modelvis.modeling import add_residuals, fit_lm, glance, regression_metrics, residual_grid, tidy
from modelvis.plotting import (
    density_chart, fit_line_chart, heatmap_chart, level_summary_chart, scatter_chart,
)
from modelvis.stats_helpers import grouped_summary, variance_explained
from modelvis.ui_components import (
    section_header, concept_box, formula_box, insight_box, warning_box,
    code_example, quiz, exercises, takeaways, navigation, load_or_stop,
)

# ---------------------------------------------------------------------------
st.set_page_config(page_title="1. Removing Trend", layout="wide")
diamonds = load_or_stop(load_diamonds)
max_carat = sidebar_carat_filter()

section_header(1, "Removing Trend")

st.markdown(
    "So far our analysis of the diamonds data has been plagued by the powerful relationship "
    "between size and price. It makes it very difficult to see the impact of cut, colour and "
    "clarity, because higher quality diamonds tend to be smaller, and hence cheaper. This "
    "challenge is often called confounding. We can use a linear model to remove the effect "
    "of size on price. Instead of looking at the raw price, we can look at a relative price: "
    "how valuable is this diamond relative to the average diamond of the same size?"
)

# ---------------------------------------------------------------------------
# 1. Fit the size model
# ---------------------------------------------------------------------------
d2 = log_diamonds(diamonds, max_carat=max_carat)
st.caption(
    f"Keeping {len(d2):,} of {len(diamonds):,} diamonds with carat <= {max_carat:g}. "
    "Bigger diamonds are rare and the model fits them badly."
)

if len(d2) < 10:
    st.warning("Not enough diamonds under that carat limit. Raise it in the sidebar.")
    st.stop()

st.plotly_chart(
    scatter_chart(d2, "carat", "price", color="cut", title="Raw Price vs Carat"),
    use_container_width=True,
)
st.markdown(
    "On the raw scale the points fan out and bend upwards, so neither the size effect nor the "
    "spread around it is easy to read. Every cut is spread along the whole curve."
)

concept_box(
    "Why log2 on Both Axes?",
    "Price and carat are both strongly right skewed, and the relationship between them is "
    "curved. On log scales it becomes very nearly a straight line. We use base 2 because it "
    "reads naturally: a change of 1 on the log scale is a doubling on the original scale.",
)

formula_box(
    "The Size Model",
    r"\log_2(\text{price}) = \beta_0 + \beta_1 \log_2(\text{carat}) + \varepsilon",
    "beta_1 is an elasticity: doubling the carat multiplies the price by 2 to the power beta_1.",
)

mod = fit_lm(d2, "lprice ~ lcarat")
coefs = tidy(mod)
fit = glance(mod).iloc[0]
slope = coefs.loc[coefs["term"] == "lcarat", "estimate"].iloc[0]
intercept = coefs.loc[coefs["term"] == "Intercept", "estimate"].iloc[0]

col1, col2 = st.columns([2, 1])
with col1:
    st.plotly_chart(
        fit_line_chart(d2, "lcarat", "lprice", mod, title="log2(Price) vs log2(Carat)"),
        use_container_width=True,
    )
with col2:
    st.metric("Slope", f"{slope:.3f}")
    st.metric("Intercept", f"{intercept:.3f}")
    st.metric("R-squared", f"{fit['r_squared']:.3f}")
    metrics = regression_metrics(d2["lprice"], mod.fittedvalues.reindex(d2.index))
    st.metric("RMSE (log2 units)", f"{metrics['rmse']:.3f}")
    st.markdown(
        f"Doubling the size of a diamond multiplies its price by about "
        f"**{LOG_BASE ** slope:.2f}**. Size alone explains "
        f"{fit['r_squared'] * 100:.1f}% of the variation in log price."
    )
    st.dataframe(coefs.round(4), use_container_width=True, hide_index=True)

st.divider()

# ---------------------------------------------------------------------------
# 2. Relative price
# ---------------------------------------------------------------------------
st.subheader("Relative Price: What Is Left Once Size Is Accounted For")

st.markdown(
    "The residuals of that model are the relative price. A residual of 0 means the diamond "
    "costs exactly what the model expects for its size. Positive residuals are more "
    "expensive than expected, negative ones cheaper."
)

d2 = add_residuals(d2, mod, name="rel_price")

col1, col2 = st.columns([2, 1])
with col1:
    st.plotly_chart(
        density_chart(d2, "carat", "rel_price", title="Relative Price vs Carat"),
        use_container_width=True,
    )
with col2:
    st.markdown("**Reading a log2 residual**")
    st.markdown("Because we used base 2, the residual converts straight into a multiplier:")
    grid = residual_grid()
    st.dataframe(
        grid.rename(columns={"logx": "residual", "x": "price multiplier"}).round(2),
        use_container_width=True, hide_index=True,
    )
    share = variance_explained(d2["lprice"], d2["rel_price"])
    st.metric("Variance in log price removed", f"{share * 100:.1f}%")

insight_box(
    "A relative price of 1 means the diamond is twice as expensive as an average diamond of the "
    "same size. A relative price of -1 means half the price. No matter where on the carat axis "
    "you look, the residuals now sit around zero: the size trend is gone."
)

st.divider()

# ---------------------------------------------------------------------------
# 3. Colour and cut, before and after
# ---------------------------------------------------------------------------
st.subheader("Colour and Cut, Before and After")

st.markdown(
    "Now let's use the relative price to look at how colour and cut affect the value of a "
    "diamond. We compute the average raw price and the average relative price for every "
    "combination of colour and cut."
)

color_cut = grouped_summary(d2, ["color", "cut"], ["price", "rel_price"])

col1, col2 = st.columns(2)
with col1:
    st.plotly_chart(
        level_summary_chart(color_cut, "color", "price", "cut", title="Mean Price"),
        use_container_width=True,
    )
with col2:
    st.plotly_chart(
        level_summary_chart(color_cut, "color", "rel_price", "cut", title="Mean Relative Price"),
        use_container_width=True,
    )

st.markdown(
    "If we look at price, it's hard to see how the quality of the diamond affects the price. "
    "The lowest quality diamonds (fair cut with colour J) have the highest average value! This "
    "is because those diamonds also tend to be larger. Once size is modelled away, the "
    "relative price moves the way you would expect: better colours (towards D) and better cuts "
    "(towards Ideal) are worth more."
)

dimension = st.selectbox(
    "Compare relative price across", ["color", "cut", "clarity"],
    format_func=lambda c: COLUMN_LABELS.get(c, c), key="rt_dimension",
)
other = "cut" if dimension != "cut" else "color"
pivot = (
    grouped_summary(d2, [dimension, other], "rel_price")
    .pivot(index=other, columns=dimension, values="rel_price")
)
st.plotly_chart(
    heatmap_chart(pivot, x_label=COLUMN_LABELS[dimension], y_label=COLUMN_LABELS[other],
                  title=f"Mean Relative Price by {COLUMN_LABELS[dimension]} and {COLUMN_LABELS[other]}"),
    use_container_width=True,
)

warning_box(
    "Reading a residual as a dollar amount. On the log2 scale a residual is a ratio, not a "
    "price difference. Convert it with 2 to the power of the residual before you talk about money."
)

st.divider()

# ---------------------------------------------------------------------------
# 4. Code Example
# ---------------------------------------------------------------------------
code_example("""
import numpy as np
import statsmodels.formula.api as smf

d2 = diamonds[diamonds["carat"] <= 2].copy()
d2["lcarat"] = np.log2(d2["carat"])
d2["lprice"] = np.log2(d2["price"])

mod = smf.ols("lprice ~ lcarat", data=d2).fit()
print(mod.params)

d2["rel_price"] = mod.resid

color_cut = (
    d2.groupby(["color", "cut"], observed=True)[["price", "rel_price"]]
    .mean()
    .reset_index()
)
""")

st.divider()

# ---------------------------------------------------------------------------
# 5. Quiz
# ---------------------------------------------------------------------------
quiz(
    "A diamond has a log2 relative price of -1. Compared with an average diamond of the same carat it is:",
    [
        "One dollar cheaper",
        "Half the price",
        "Twice the price",
        "Exactly average",
    ],
    correct_idx=1,
    explanation="With a base 2 log, a residual of -1 is a factor of 2 to the power -1, i.e. one half.",
    key="s1_quiz1",
)

quiz(
    "Why do fair cut, J colour diamonds have the highest mean raw price?",
    [
        "Buyers prefer them",
        "They tend to be larger, and size dominates price",
        "The data is wrong",
        "Cut and colour do not matter",
    ],
    correct_idx=1,
    explanation="Low quality diamonds are, on average, bigger. Raw price mixes the two effects; the relative price separates them.",
    key="s1_quiz2",
)

exercises([
    "What happens if you repeat the analysis with all diamonds, not just those of 2 carats or less? "
    "What does the strange geometry of log(carat) versus relative price represent? How could you "
    "fix the model so it didn't have that weird shape?",
    "I made an unsupported assertion that lower-quality diamonds tend to be larger. Support my claim "
    "with a plot.",
    "Can you create a plot that simultaneously shows the effect of colour, cut, and clarity on "
    "relative price? If there's too much information to show on one plot, think about how you might "
    "create a sequence of plots to convey the same message.",
])

takeaways([
    "Strong, known effects hide weaker ones. Model the known effect and plot the residuals.",
    "Log transforms turn multiplicative relationships into additive ones, and base 2 keeps the residuals readable as ratios.",
    "Relative price reverses the apparent effect of colour and cut: once size is removed, better diamonds are worth more.",
])

navigation(
    prev_label="Overview",
    prev_page="app.py",
    next_label="2. Texas Housing Data",
    next_page="02_Texas_Housing_Data.py",
)
