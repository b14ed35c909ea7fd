# pyre-unsafe
"""Aggregation of per-resample results into summary statistics."""

from dataclasses import dataclass, field
from typing import Literal

import numpy as np
import numpy.typing as npt
import pandas as pd
import scipy.stats as ss

from resample_eval._utils import _percentile
from resample_eval.exceptions import FitFailure

COEFFICIENT_COLUMNS = ["resample", "model", "term", "value"]
ERROR_COLUMNS = ["resample", "model", "rmse"]


def standard_error(
    values: npt.ArrayLike, robustness: float | None = None
) -> float:
    """Standard error

    Parameters
    ----------
     values : array_like
        Estimates of a quantity, one per resample.
     robustness : float or None, optional
        Controls whether to use a robust estimate of standard
        error. If specified, should be a float in (0.5, 1.0), with
        lower values corresponding to greater bias but increased
        robustness. If None (default), uses the sample standard
        deviation.

    Returns
    -------
     se : float
        The standard error. NaN when fewer than two values are given.

    Notes
    -----
    The robust estimate is the width of the central
    2 * `robustness` - 1 interval of the values, divided by the width
    of the same interval of a standard normal. See [ET93, S6.5].

    """
    values = np.asarray(values, dtype=np.float64)
    if len(values) < 2:
        return np.nan

    if robustness is None:
        return float(np.std(values, ddof=1))

    if robustness <= 0.5 or robustness >= 1:
        raise ValueError(f"Invalid robustness: {robustness}")

    z_alpha = ss.norm.ppf(robustness)
    p = _percentile(values, [1 - robustness, robustness])
    return float((p[1] - p[0]) / (2 * z_alpha))


def percentile_interval(
    values: npt.ArrayLike, alpha: float = 0.025
) -> tuple[float, float]:
    """Percentile Intervals

    Parameters
    ----------
     values : array_like
        Estimates of a quantity, one per resample.
     alpha : float, optional
        Number controlling the size of the interval. That is, this
        function will return a 100(1 - 2 * `alpha`)% confidence
        interval. Defaults to 0.025.

    Returns
    -------
     ci_low, ci_high : float
        The `alpha` and 1 - `alpha` percentiles of `values`.

    """
    p = _percentile(np.asarray(values, dtype=np.float64), [alpha, 1 - alpha])
    return float(p[0]), float(p[1])


def _in_resample_order(group: pd.DataFrame, column: str) -> npt.NDArray[np.float64]:
    # Sorting makes every statistic independent of the order results arrived in.
    return group.sort_values("resample", kind="mergesort")[column].to_numpy(
        dtype=np.float64
    )


def summarize_coefficients(
    results: pd.DataFrame,
    alpha: float = 0.025,
    estimates: dict[str, dict[str, float]] | None = None,
) -> pd.DataFrame:
    """Bootstrap standard errors and confidence intervals.

    Parameters
    ----------
     results : pandas DataFrame
        One row per resample, model and term, with columns
        "resample", "model", "term" and "value".
     alpha : float, optional
        Each-tail size of the percentile interval. Defaults to 0.025,
        giving a 95% interval.
     estimates : dict, optional
        Estimates from fitting each model on the full dataset, keyed
        by model and then term. Used for the "estimate" and "bias"
        columns; these are NaN when omitted.

    Returns
    -------
     summary : pandas DataFrame
        Indexed by (model, term), with columns "estimate", "mean",
        "std_error", "bias", "ci_low", "ci_high" and "n".

    """
    rows = []
    for (model, term), group in results.groupby(["model", "term"], sort=True):
        values = _in_resample_order(group, "value")
        ci_low, ci_high = percentile_interval(values, alpha)
        estimate = np.nan
        if estimates is not None:
            estimate = estimates.get(model, {}).get(term, np.nan)
        mean = float(np.mean(values))
        rows.append(
            {
                "model": model,
                "term": term,
                "estimate": estimate,
                "mean": mean,
                "std_error": standard_error(values),
                "bias": mean - estimate,
                "ci_low": ci_low,
                "ci_high": ci_high,
                "n": len(values),
            }
        )

    columns = [
        "model",
        "term",
        "estimate",
        "mean",
        "std_error",
        "bias",
        "ci_low",
        "ci_high",
        "n",
    ]
    return pd.DataFrame(rows, columns=columns).set_index(["model", "term"])


def summarize_errors(results: pd.DataFrame) -> pd.DataFrame:
    """Summary of test set errors across splits.

    Parameters
    ----------
     results : pandas DataFrame
        One row per resample and model, with columns "resample",
        "model" and "rmse".

    Returns
    -------
     summary : pandas DataFrame
        Indexed by model, with columns "mean", "median", "std", "min",
        "max" and "n".

    """
    rows = []
    for model, group in results.groupby("model", sort=True):
        values = _in_resample_order(group, "rmse")
        rows.append(
            {
                "model": model,
                "mean": float(np.mean(values)),
                "median": float(np.median(values)),
                "std": standard_error(values),
                "min": float(np.min(values)),
                "max": float(np.max(values)),
                "n": len(values),
            }
        )

    columns = ["model", "mean", "median", "std", "min", "max", "n"]
    return pd.DataFrame(rows, columns=columns).set_index("model")


@dataclass
class SummaryStatistics:
    """Result of a resampling evaluation.

    Attributes
    ----------
     kind : ["coefficients", "errors"]
        "coefficients" for the bootstrap, "errors" for cross validation.
     summary : pandas DataFrame
        Aggregated statistics; see `summarize_coefficients` and
        `summarize_errors`.
     results : pandas DataFrame
        The raw per-resample results, one row per resample and model
        (and term, for coefficients), sorted by model and resample.
     failures : list of FitFailure
        Fits excluded from `results`. Only populated when failures are
        skipped rather than raised.

    """

    kind: Literal["coefficients", "errors"]
    summary: pd.DataFrame
    results: pd.DataFrame
    failures: list[FitFailure] = field(default_factory=list)

    @property
    def models(self) -> list[str]:
        return sorted(self.results["model"].unique())

    def distribution(self, model: str) -> npt.NDArray[np.float64]:
        """Test RMSE of `model` on every split, in resample order."""
        if self.kind != "errors":
            raise ValueError("Error distributions are only kept for cross validation")

        group = self.results[self.results["model"] == model]
        if group.empty:
            raise KeyError(model)
        return _in_resample_order(group, "rmse")

    def distributions(self) -> dict[str, npt.NDArray[np.float64]]:
        """Test RMSE distributions for every model."""
        return {model: self.distribution(model) for model in self.models}
