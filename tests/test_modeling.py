"""Tests for model fitting, residuals and model summaries."""

import numpy as np
import pandas as pd
import pytest

from modelvis.modeling import (
    ModelFitError, add_predictions, add_residuals, augment, augment_by_group,
    deseasonalise, detrend, extreme_groups, fit_by_group, fit_lm, flag_outliers,
    glance, glance_by_group, month_effects, observed_levels, peak_effects, regression_metrics,
    relative_scale, residual_grid, residuals, tidy, tidy_by_group,
)

from tests.conftest import MONTH_EFFECT


# ---------------------------------------------------------------------------
# Fitting and residuals
# ---------------------------------------------------------------------------

def test_fit_lm_recovers_line(line_data):
    mod = fit_lm(line_data, "y ~ x")
    assert mod.params["Intercept"] == pytest.approx(1, abs=0.2)
    assert mod.params["x"] == pytest.approx(2, abs=0.05)


def test_fit_lm_empty_frame():
    with pytest.raises(ValueError, match="empty"):
        fit_lm(pd.DataFrame({"x": [], "y": []}), "y ~ x")


def test_residuals_keep_missing_rows(line_data):
    line_data.loc[[3, 50], "y"] = np.nan
    mod = fit_lm(line_data, "y ~ x")
    out = add_residuals(line_data, mod, name="rel")

    assert out.index.equals(line_data.index)
    assert out.loc[[3, 50], "rel"].isna().all()
    assert out["rel"].notna().sum() == len(line_data) - 2
    assert "rel" not in line_data.columns


def test_residuals_reindex_to_caller_order(line_data):
    mod = fit_lm(line_data, "y ~ x")
    order = line_data.index[::-1]
    resid = residuals(mod, order)
    assert resid.index.equals(order)
    assert resid.loc[0] == pytest.approx(mod.resid.loc[0])


def test_add_predictions(line_data):
    mod = fit_lm(line_data, "y ~ x")
    out = add_predictions(line_data, mod)
    assert np.allclose(out["pred"] + mod.resid, out["y"])


def test_residuals_average_zero(line_data):
    out = detrend(line_data, "y ~ x", name="rel")
    assert out["rel"].mean() == pytest.approx(0, abs=1e-9)


def test_detrend_by_group_is_independent(noisy_housing):
    noisy_housing["log_sales"] = np.log2(noisy_housing["sales"])
    first = detrend(noisy_housing, "log_sales ~ C(month)", name="rel", by="city")

    changed = noisy_housing.copy()
    is_beta = changed["city"] == "Beta"
    changed.loc[is_beta, "log_sales"] = changed.loc[is_beta, "log_sales"] * 3 + 5
    second = detrend(changed, "log_sales ~ C(month)", name="rel", by="city")

    not_beta = ~is_beta
    assert np.allclose(first.loc[not_beta, "rel"], second.loc[not_beta, "rel"])
    assert not np.allclose(first.loc[is_beta, "rel"], second.loc[is_beta, "rel"])


def test_detrend_group_means_are_zero(noisy_housing):
    noisy_housing["log_sales"] = np.log2(noisy_housing["sales"])
    out = detrend(noisy_housing, "log_sales ~ C(month)", name="rel", by="city")
    means = out.groupby("city")["rel"].mean()
    assert np.allclose(means, 0, atol=1e-9)


def test_detrend_add_mean_restores_level(noisy_housing):
    noisy_housing["log_sales"] = np.log2(noisy_housing["sales"])
    out = detrend(noisy_housing, "log_sales ~ C(month)", name="rel", by="city", add_mean=True)
    by_city = out.groupby("city")
    assert np.allclose(by_city["rel"].mean(), by_city["log_sales"].mean())


def test_deseasonalise_removes_month_effect(housing):
    out = deseasonalise(housing, "sales", by="city", name="rel_sales")
    assert np.allclose(out["rel_sales"], 0, atol=1e-8)
    assert np.allclose(out["log_sales"], np.log2(housing["sales"]))


def test_deseasonalise_zero_and_missing_sales(noisy_housing):
    noisy_housing.loc[5, "sales"] = 0
    noisy_housing.loc[6, "sales"] = np.nan
    out = deseasonalise(noisy_housing, "sales", by="city")
    assert "rel_sales" in out.columns
    assert out.loc[[5, 6], "rel_sales"].isna().all()
    assert out["rel_sales"].notna().sum() == len(noisy_housing) - 2


def test_deseasonalise_names_failing_city(noisy_housing):
    noisy_housing.loc[noisy_housing["city"] == "Gamma", "sales"] = np.nan
    with pytest.raises(ModelFitError) as info:
        deseasonalise(noisy_housing, "sales", by="city")
    assert info.value.group == "Gamma"


def test_fit_by_group_sorted_keys(noisy_housing):
    models = fit_by_group(noisy_housing.sample(frac=1, random_state=0), "city", "sales ~ C(month)")
    assert list(models) == ["Alpha", "Beta", "Gamma"]
    assert all(m.nobs == 60 for m in models.values())


def test_fit_by_group_names_failing_group(noisy_housing):
    noisy_housing.loc[noisy_housing["city"] == "Gamma", "sales"] = np.nan
    with pytest.raises(ModelFitError) as info:
        fit_by_group(noisy_housing, "city", "sales ~ C(month)")
    assert info.value.group == "Gamma"
    assert info.value.__cause__ is not None
    assert isinstance(info.value, ValueError)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def test_tidy_columns(line_data):
    coefs = tidy(fit_lm(line_data, "y ~ x"))
    assert list(coefs.columns) == ["term", "estimate", "std_error", "statistic", "p_value"]
    assert list(coefs["term"]) == ["Intercept", "x"]
    assert np.allclose(coefs["statistic"], coefs["estimate"] / coefs["std_error"])


def test_tidy_conf_int_brackets_estimate(line_data):
    coefs = tidy(fit_lm(line_data, "y ~ x"), conf_int=True, conf_level=0.9)
    assert (coefs["conf_low"] < coefs["estimate"]).all()
    assert (coefs["estimate"] < coefs["conf_high"]).all()


def test_tidy_rejects_bad_conf_level(line_data):
    with pytest.raises(ValueError):
        tidy(fit_lm(line_data, "y ~ x"), conf_int=True, conf_level=1.5)


def test_glance_single_row(line_data):
    mod = fit_lm(line_data, "y ~ x")
    row = glance(mod)
    assert len(row) == 1
    assert row.loc[0, "r_squared"] == pytest.approx(mod.rsquared)
    assert row.loc[0, "sigma"] == pytest.approx(np.sqrt(mod.ssr / (len(line_data) - 2)))
    assert row.loc[0, "nobs"] == len(line_data)
    assert row.loc[0, "df_residual"] == len(line_data) - 2


def test_glance_intercept_only_model(line_data):
    row = glance(fit_lm(line_data, "y ~ 1"))
    assert len(row) == 1
    assert row.loc[0, "r_squared"] == pytest.approx(0, abs=1e-12)


def test_glance_perfect_fit(housing):
    prepared = deseasonalise(housing, "sales", by="city")
    models = fit_by_group(prepared, "city", "log_sales ~ C(month)")
    row = glance(models["Alpha"])
    assert len(row) == 1
    assert row.loc[0, "r_squared"] == pytest.approx(1)
    assert row.loc[0, "sigma"] == pytest.approx(0, abs=1e-6)
    statistic = row.loc[0, "statistic"]
    assert not np.isfinite(statistic) or statistic > 1e6
    assert row.loc[0, "nobs"] == 60


def test_augment_own_rows(line_data):
    line_data.loc[10, "y"] = np.nan
    mod = fit_lm(line_data, "y ~ x")
    out = augment(mod)
    assert len(out) == len(line_data) - 1
    for col in ["fitted", "resid", "hat", "sigma", "cooksd", "std_resid"]:
        assert out[col].notna().all()
    assert out["hat"].sum() == pytest.approx(2)


def test_augment_with_data_keeps_excluded_rows(line_data):
    line_data.loc[10, "y"] = np.nan
    mod = fit_lm(line_data, "y ~ x")
    out = augment(mod, line_data)
    assert out.index.equals(line_data.index)
    assert np.isnan(out.loc[10, "std_resid"])
    assert np.allclose(out["fitted"] + out["resid"], out["y"], equal_nan=True)


def test_by_group_summaries(noisy_housing):
    models = fit_by_group(noisy_housing, "city", "sales ~ C(month)")

    coefs = tidy_by_group(models, by="city")
    assert coefs.columns[0] == "city"
    assert len(coefs) == 3 * 12

    fits = glance_by_group(models, by="city")
    assert list(fits["city"]) == ["Alpha", "Beta", "Gamma"]

    obs = augment_by_group(models, noisy_housing, by="city")
    assert obs.index.equals(noisy_housing.index)
    assert obs["std_resid"].notna().all()


def test_augment_by_group_without_data(noisy_housing):
    models = fit_by_group(noisy_housing, "city", "sales ~ C(month)")
    obs = augment_by_group(models, by="group")
    assert obs.columns[0] == "group"
    assert len(obs) == len(noisy_housing)


def test_summaries_need_models():
    with pytest.raises(ValueError):
        glance_by_group({})


# ---------------------------------------------------------------------------
# Working with summaries
# ---------------------------------------------------------------------------

def test_month_effects_recovers_pattern(housing):
    prepared = deseasonalise(housing, "sales", by="city")
    models = fit_by_group(prepared, "city", "log_sales ~ C(month)")
    months = month_effects(tidy_by_group(models, by="city"), by="city")

    assert len(months) == 3 * 12
    alpha = months[months["city"] == "Alpha"].set_index("month")
    expected = pd.Series(MONTH_EFFECT)
    assert np.allclose(alpha["estimate"], expected.loc[alpha.index], atol=1e-8)
    assert alpha.loc[1, "term"] == "(baseline)"
    assert np.allclose(alpha["multiplier"], 2 ** alpha["estimate"])


def test_month_effects_without_baseline():
    coefs = pd.DataFrame({
        "term": ["Intercept", "C(month)[T.2]", "C(month)[T.3]"],
        "estimate": [5.0, 1.0, -1.0],
    })
    months = month_effects(coefs, include_baseline=False)
    assert list(months["month"]) == [2, 3]
    assert list(months["multiplier"]) == [2.0, 0.5]


def test_month_effects_reference_from_levels():
    coefs = pd.DataFrame({
        "city": ["A", "A", "A", "B", "B"],
        "term": ["Intercept", "C(month)[T.3]", "C(month)[T.5]", "Intercept", "C(month)[T.4]"],
        "estimate": [5.0, 1.0, -1.0, 4.0, 0.5],
    })
    months = month_effects(coefs, by="city", levels={"A": [1, 3, 5]})
    assert list(months[months["city"] == "A"]["month"]) == [1, 3, 5]
    # no levels for B: the month before its first term
    assert list(months[months["city"] == "B"]["month"]) == [3, 4]


def test_month_effects_city_without_january(housing):
    housing = housing[~((housing["city"] == "Alpha") & (housing["month"] == 1))]
    prepared = deseasonalise(housing, "sales", by="city")
    models = fit_by_group(prepared, "city", "log_sales ~ C(month)")
    coefs = tidy_by_group(models, by="city")

    for levels in (observed_levels(models), None):
        months = month_effects(coefs, by="city", levels=levels)
        alpha = months[months["city"] == "Alpha"].set_index("month")
        assert 1 not in alpha.index
        assert list(alpha.index) == list(range(2, 13))
        assert alpha.loc[2, "term"] == "(baseline)"
        assert alpha.loc[2, "estimate"] == 0
        expected = pd.Series(MONTH_EFFECT).loc[alpha.index] - MONTH_EFFECT[2]
        assert np.allclose(alpha["estimate"], expected, atol=1e-8)
        assert (months["city"] == "Beta").sum() == 12


def test_month_effects_unobserved_month_absent(housing):
    is_alpha_march = (housing["city"] == "Alpha") & (housing["month"] == 3)
    housing.loc[is_alpha_march, "sales"] = np.nan
    prepared = deseasonalise(housing, "sales", by="city")
    models = fit_by_group(prepared, "city", "log_sales ~ C(month)")

    assert observed_levels(models)["Alpha"] == [1, 2] + list(range(4, 13))
    assert "C(month)[T.3]" not in set(tidy(models["Alpha"])["term"])

    months = month_effects(tidy_by_group(models, by="city"), by="city", levels=observed_levels(models))
    alpha = months[months["city"] == "Alpha"]
    assert 3 not in set(alpha["month"])
    assert len(alpha) == 11
    assert alpha.loc[alpha["term"] == "(baseline)", "month"].tolist() == [1]


def test_month_effects_missing_january_sales(housing):
    housing.loc[(housing["city"] == "Gamma") & (housing["month"] == 1), "sales"] = np.nan
    prepared = deseasonalise(housing, "sales", by="city")
    models = fit_by_group(prepared, "city", "log_sales ~ C(month)")
    months = month_effects(tidy_by_group(models, by="city"), by="city", levels=observed_levels(models))

    gamma = months[months["city"] == "Gamma"].set_index("month")
    assert list(gamma.index) == list(range(2, 13))
    assert gamma.loc[2, "term"] == "(baseline)"
    assert gamma.loc[6, "estimate"] == pytest.approx(MONTH_EFFECT[6] - MONTH_EFFECT[2])


def test_peak_effects():
    effects = pd.DataFrame({
        "city": ["A", "A", "B", "B"],
        "month": [1, 6, 1, 7],
        "multiplier": [1.0, 2.5, 1.0, 1.5],
    })
    peaks = peak_effects(effects, by="city")
    assert list(peaks["city"]) == ["A", "B"]
    assert list(peaks["month"]) == [6, 7]


def test_extreme_groups():
    summary = pd.DataFrame({"city": list("abcde"), "r_squared": [0.5, 0.1, 0.9, 0.3, 0.7]})
    lowest, highest = extreme_groups(summary, n=2)
    assert list(lowest["city"]) == ["b", "d"]
    assert list(highest["city"]) == ["c", "e"]
    with pytest.raises(ValueError):
        extreme_groups(summary, n=0)


def test_flag_outliers():
    obs = pd.DataFrame({"std_resid": [0.5, -2.5, 2.1, np.nan]})
    out = flag_outliers(obs, threshold=2)
    assert list(out["outlier"]) == [False, True, True, False]
    assert "outlier" not in obs.columns


def test_relative_scale_and_grid():
    assert relative_scale(1) == 2
    assert relative_scale(-1) == 0.5
    grid = residual_grid()
    assert len(grid) == 10
    assert grid["logx"].iloc[0] == pytest.approx(-2)
    assert grid["logx"].iloc[-1] == pytest.approx(1)
    assert grid["x"].iloc[3] == 0.5
    assert grid["x"].iloc[-1] == 2.0


def test_residual_grid_rejects_bad_step():
    with pytest.raises(ValueError):
        residual_grid(step=0)
    with pytest.raises(ValueError):
        residual_grid(lo=2, hi=1)


def test_regression_metrics_skip_missing():
    metrics = regression_metrics([1.0, 2.0, np.nan, 4.0], [1.0, 2.0, 3.0, 5.0])
    assert metrics["mse"] == pytest.approx(1 / 3)
    assert metrics["mae"] == pytest.approx(1 / 3)
    assert metrics["rmse"] == pytest.approx(np.sqrt(1 / 3))
