"""Linear model fitting, residual extraction and model summaries.

The chapter fits ordinary least squares models with statsmodels formulas and
then looks at them from three angles, one table per angle:

* ``glance`` -- one row per model (fit quality),
* ``tidy`` -- one row per coefficient,
* ``augment`` -- one row per observation (fitted value, residual, diagnostics).

Residuals are always realigned to the caller's index. Rows dropped from a fit
because of missing values come back as ``NaN`` instead of disappearing, so a
residual column can be attached to the original DataFrame directly.
"""
import logging
import re

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from modelvis.constants import LOG_BASE, N_EXTREME, OUTLIER_THRESHOLD

logger = logging.getLogger(__name__)


class ModelFitError(ValueError):
    """A model in a grouped fit could not be estimated."""

    def __init__(self, group, formula):
        self.group = group
        self.formula = formula
        super().__init__(f"could not fit {formula!r} for group {group!r}")


# ---------------------------------------------------------------------------
# Fitting and residuals
# ---------------------------------------------------------------------------

def fit_lm(df, formula):
    """Fit an OLS model, dropping rows with missing model variables."""
    if len(df) == 0:
        raise ValueError("cannot fit a model to an empty DataFrame")
    model = smf.ols(formula, data=df, missing="drop")
    if model.nobs == 0:
        raise ValueError(f"no complete rows for {formula!r}")
    if model.nobs < len(df):
        # factor levels only seen in incomplete rows must not become terms
        model = smf.ols(formula, data=df.loc[model.data.row_labels], missing="drop")
    result = model.fit()
    logger.debug("Fitted %s on %d rows (R2=%.3f)", formula, int(result.nobs), result.rsquared)
    return result


def residuals(model, index):
    """Model residuals reindexed to ``index``; unused rows are NaN."""
    return model.resid.reindex(index)


def predictions(model, data):
    """Model predictions for ``data``, aligned to its index."""
    pred = model.predict(data)
    if not isinstance(pred, pd.Series):
        pred = pd.Series(np.asarray(pred), index=data.index)
    return pred.reindex(data.index)


def add_residuals(df, model, name="resid"):
    """Return a copy of ``df`` with the model's residuals in column ``name``."""
    out = df.copy()
    out[name] = residuals(model, df.index)
    return out


def add_predictions(df, model, name="pred"):
    """Return a copy of ``df`` with the model's predictions in column ``name``."""
    out = df.copy()
    out[name] = predictions(model, df)
    return out


def fit_by_group(df, by, formula):
    """Fit ``formula`` separately to each group of column ``by``.

    Returns a dict keyed by group value in sorted order. Any group that can't
    be fitted raises :class:`ModelFitError` with the original error chained.
    """
    models = {}
    for key, group in df.groupby(by, sort=True, observed=True):
        try:
            models[key] = fit_lm(group, formula)
        except Exception as exc:
            raise ModelFitError(key, formula) from exc
    logger.info("Fitted %d models of %s by %s", len(models), formula, by)
    return models


def detrend(df, formula, name="resid", by=None, add_mean=False):
    """Add the residuals of ``formula`` to a copy of ``df``.

    With ``by`` one model is fitted per group, so each group's residuals only
    depend on that group's rows. ``add_mean`` adds the mean response of the
    fitted rows back, keeping detrended values on the response's scale.
    """
    if by is None:
        models = {None: fit_lm(df, formula)}
    else:
        models = fit_by_group(df, by, formula)

    parts = []
    for model in models.values():
        resid = model.resid
        if add_mean:
            resid = resid + np.mean(model.model.endog)
        parts.append(resid)

    out = df.copy()
    out[name] = pd.concat(parts).reindex(df.index)
    return out


def deseasonalise(df, value, season="month", by="city", base=LOG_BASE, name=None, add_mean=False):
    """Remove a multiplicative seasonal effect from ``value`` within each group.

    Fits ``log_base(value) ~ C(season)`` per group and keeps the residuals.
    Zero or negative values have no logarithm and get a NaN residual.
    """
    name = name or f"rel_{value}"
    log_col = f"log_{value}"
    out = df.copy()
    with np.errstate(divide="ignore", invalid="ignore"):
        logged = np.log(out[value].astype(float)) / np.log(base)
    out[log_col] = logged.replace([np.inf, -np.inf], np.nan)
    return detrend(out, f"{log_col} ~ C({season})", name=name, by=by, add_mean=add_mean)


# ---------------------------------------------------------------------------
# Model summaries
# ---------------------------------------------------------------------------

def tidy(model, conf_int=False, conf_level=0.95):
    """Coefficient-level summary: one row per term."""
    out = pd.DataFrame({
        "term": model.params.index,
        "estimate": model.params.values,
        "std_error": model.bse.values,
        "statistic": model.tvalues.values,
        "p_value": model.pvalues.values,
    })
    if conf_int:
        if not 0 < conf_level < 1:
            raise ValueError("conf_level must be between 0 and 1")
        ci = model.conf_int(alpha=1 - conf_level)
        out["conf_low"] = ci.iloc[:, 0].values
        out["conf_high"] = ci.iloc[:, 1].values
    return out


def glance(model):
    """Model-level summary: a single row of fit statistics."""
    with np.errstate(divide="ignore", invalid="ignore"):
        row = {
            "r_squared": model.rsquared,
            "adj_r_squared": model.rsquared_adj,
            "sigma": np.sqrt(model.mse_resid),
            "statistic": model.fvalue,
            "p_value": model.f_pvalue,
            "df": model.df_model,
            "log_lik": model.llf,
            "aic": model.aic,
            "bic": model.bic,
            "deviance": model.ssr,
            "df_residual": model.df_resid,
            "nobs": int(model.nobs),
        }
    return pd.DataFrame([row])


def augment(model, data=None):
    """Observation-level summary: the data plus fitted values and diagnostics.

    Without ``data`` the rows used in the fit are returned. With ``data`` every
    row of it is returned and rows excluded from the fit carry NaN diagnostics.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        infl = model.get_influence()
        diag = pd.DataFrame({
            "fitted": model.fittedvalues,
            "resid": model.resid,
            "hat": infl.hat_matrix_diag,
            "sigma": np.sqrt(infl.sigma2_not_obsi),
            "cooksd": infl.cooks_distance[0],
            "std_resid": infl.resid_studentized_internal,
        }, index=model.resid.index)

    if data is None:
        data = model.model.data.frame.loc[diag.index]
    out = data.copy()
    for col in diag.columns:
        out[col] = diag[col].reindex(data.index)
    return out


def _stack(frames, by):
    if not frames:
        raise ValueError("no models to summarise")
    out = pd.concat(frames, ignore_index=True)
    return out[[by] + [c for c in out.columns if c != by]]


def tidy_by_group(models, by="group", **kwargs):
    """``tidy`` for every model in a dict, keyed by column ``by``."""
    return _stack([tidy(m, **kwargs).assign(**{by: key}) for key, m in models.items()], by)


def glance_by_group(models, by="group"):
    """``glance`` for every model in a dict, keyed by column ``by``."""
    return _stack([glance(m).assign(**{by: key}) for key, m in models.items()], by)


def augment_by_group(models, data=None, by="group"):
    """``augment`` for every model in a dict.

    When ``data`` is given it must contain column ``by``; each model is
    augmented with its own group's rows and the original index is kept.
    """
    if not models:
        raise ValueError("no models to summarise")
    frames = []
    for key, model in models.items():
        if data is None:
            part = augment(model)
            part.insert(0, by, key)
        else:
            part = augment(model, data[data[by] == key])
        frames.append(part)
    out = pd.concat(frames)
    if data is not None:
        out = out.reindex(data.index[data[by].isin(list(models))])
    return out


# ---------------------------------------------------------------------------
# Working with summaries
# ---------------------------------------------------------------------------

def observed_levels(models, term="month"):
    """The levels of ``term`` in the rows each model was actually fitted on."""
    return {
        key: sorted(int(v) for v in model.model.data.frame.loc[model.resid.index, term].unique())
        for key, model in models.items()
    }


def _reference_level(found, observed=None):
    # Treatment coding makes the lowest observed level the reference, so it is
    # the one observed level without a term of its own.
    found = set(int(v) for v in found)
    if observed is not None:
        free = sorted(set(int(v) for v in observed) - found)
        return free[0] if free else None
    if not found or min(found) <= 1:
        return None
    return min(found) - 1


def month_effects(coefs, term="month", by=None, include_baseline=True, levels=None, base=LOG_BASE):
    """Seasonal coefficients from ``tidy`` output, one row per month.

    Terms look like ``C(month)[T.3]``; the month number is parsed out of them.
    The reference month is absorbed by the intercept, so it is added back with
    an estimate of 0 when ``include_baseline`` is set. ``levels`` gives the
    months each group was fitted on (see :func:`observed_levels`; a plain list
    when ``by`` is None) and pins the reference to the observed month with no
    term. Without it the reference is taken to be the month just before the
    first term. ``multiplier`` is the back-transformed effect: ``base ** estimate``.
    """
    pattern = r"^C\(" + re.escape(term) + r"\)\[T\.(\d+)\]$"
    level = coefs["term"].str.extract(pattern, expand=False)
    out = coefs.loc[level.notna()].copy()
    out[term] = level.dropna().astype(int)

    if include_baseline:
        rows = []
        if by is None:
            ref = _reference_level(out[term], levels)
            if ref is not None:
                rows.append({"term": "(baseline)", "estimate": 0.0, term: ref})
        else:
            for key in coefs[by].drop_duplicates():
                seen = None if levels is None else levels.get(key)
                ref = _reference_level(out.loc[out[by] == key, term], seen)
                if ref is not None:
                    rows.append({by: key, "term": "(baseline)", "estimate": 0.0, term: ref})
        if rows:
            out = pd.concat([out, pd.DataFrame(rows)], ignore_index=True)
            out[term] = out[term].astype(int)

    out["multiplier"] = np.power(float(base), out["estimate"])
    sort_cols = [term] if by is None else [by, term]
    return out.sort_values(sort_cols).reset_index(drop=True)


def peak_effects(effects, by, column="multiplier", term="month"):
    """The largest effect in each group, sorted from strongest to weakest."""
    idx = effects.groupby(by, observed=True)[column].idxmax()
    peaks = effects.loc[idx, [by, term, column]]
    return peaks.sort_values(column, ascending=False).reset_index(drop=True)


def extreme_groups(summary, column="r_squared", n=N_EXTREME):
    """Return the ``n`` rows with the lowest and the ``n`` with the highest ``column``."""
    if n < 1:
        raise ValueError("n must be at least 1")
    lowest = summary.nsmallest(n, column).reset_index(drop=True)
    highest = summary.nlargest(n, column).reset_index(drop=True)
    return lowest, highest


def flag_outliers(augmented, threshold=OUTLIER_THRESHOLD):
    """Mark rows whose standardized residual exceeds ``threshold`` in magnitude."""
    out = augmented.copy()
    out["outlier"] = out["std_resid"].abs() > threshold
    return out


def relative_scale(log_values, base=LOG_BASE):
    """Convert log-scale residuals into multiplicative differences."""
    return np.power(float(base), log_values)


def residual_grid(lo=-2.0, hi=1.0, step=1 / 3, base=LOG_BASE):
    """Lookup table from log residual (``logx``) to multiplier (``x``)."""
    if step <= 0:
        raise ValueError("step must be positive")
    if lo > hi:
        raise ValueError("lo must not exceed hi")
    grid = np.arange(lo, hi + step / 2, step)
    return pd.DataFrame({"logx": grid, "x": np.round(relative_scale(grid, base), 2)})


def regression_metrics(y_true, y_pred):
    """Compute regression metrics, ignoring pairs with a missing value."""
    pairs = pd.DataFrame({"y": np.asarray(y_true, dtype=float), "p": np.asarray(y_pred, dtype=float)}).dropna()
    mse = mean_squared_error(pairs["y"], pairs["p"])
    return {
        "mse": mse,
        "rmse": np.sqrt(mse),
        "mae": mean_absolute_error(pairs["y"], pairs["p"]),
        "r2": r2_score(pairs["y"], pairs["p"]),
    }
