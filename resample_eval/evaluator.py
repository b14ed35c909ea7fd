# pyre-unsafe
"""Resample, refit and score models, then aggregate the results."""

import warnings
from collections.abc import Mapping
from typing import Any, Literal

import numpy as np
import pandas as pd
from pathos.multiprocessing import ProcessPool as Pool

from resample_eval._utils import (
    DataLike,
    SeedLike,
    _batch_sizes,
    _num_threads,
    _rmse,
)
from resample_eval.distributions import EmpiricalDistribution
from resample_eval.exceptions import FitFailure, InvalidSpec
from resample_eval.models import FitProcedure
from resample_eval.sampling import Resample, draw_resamples
from resample_eval.specs import ResampleSpec, check_spec, is_cross_validation
from resample_eval.summary import (
    COEFFICIENT_COLUMNS,
    ERROR_COLUMNS,
    SummaryStatistics,
    summarize_coefficients,
    summarize_errors,
)


def _fit(fit: FitProcedure, data: pd.DataFrame, resample: int | None, model: str):
    try:
        return fit(data)
    except Exception as e:
        raise FitFailure(resample, model, f"{type(e).__name__}: {e}") from e


def _coefficients(mdl, resample: int | None, model: str) -> dict[str, float]:
    """Named estimates of a fitted model."""
    coefficients = getattr(mdl, "coefficients", None)
    if coefficients is None:
        raise FitFailure(resample, model, "fitted model has no coefficients()")

    try:
        coef = {str(k): float(v) for k, v in dict(coefficients()).items()}
    except Exception as e:
        raise FitFailure(resample, model, f"{type(e).__name__}: {e}") from e

    bad = [k for k, v in coef.items() if not np.isfinite(v)]
    if bad:
        raise FitFailure(resample, model, f"non-finite estimates for {bad}")

    return coef


def _test_error(
    mdl, test: pd.DataFrame, response: str, resample: int, model: str
) -> float:
    """RMSE of `mdl` on the held-out records."""
    try:
        pred = np.asarray(mdl.predict(test), dtype=np.float64).ravel()
    except Exception as e:
        raise FitFailure(resample, model, f"{type(e).__name__}: {e}") from e

    if len(pred) != len(test.index):
        raise FitFailure(
            resample,
            model,
            f"{len(pred)} predictions for {len(test.index)} test records",
        )
    if not np.all(np.isfinite(pred)):
        raise FitFailure(resample, model, "non-finite predictions")

    return _rmse(pred, test[response])


def _evaluate_batch(
    dist: EmpiricalDistribution,
    resamples: list[Resample],
    fit_procedures: dict[str, FitProcedure],
    response: str | None,
    skip_failures: bool,
) -> tuple[list[tuple[Any, ...]], list[FitFailure]]:
    """Fit and score every model on every resample in a batch.

    Returns
    -------
     records : list of tuples
        Rows of the raw results: (resample, model, term, value) for
        bootstrap resamples, (resample, model, rmse) for splits.
     failures : list of FitFailure
        Failed fits. Always empty unless `skip_failures` is True,
        otherwise the first failure is raised.

    """
    records = []
    failures = []
    for r in resamples:
        if r.test is None:
            train = dist.take(r.train)
            test = None
        else:
            train = dist.take(r.train, reset_index=False)
            test = dist.take(r.test, reset_index=False)

        for model, fit in fit_procedures.items():
            try:
                mdl = _fit(fit, train, r.index, model)
                if test is None:
                    coef = _coefficients(mdl, r.index, model)
                    records.extend((r.index, model, k, v) for k, v in coef.items())
                else:
                    err = _test_error(mdl, test, response, r.index, model)
                    records.append((r.index, model, err))
            except FitFailure as e:
                if not skip_failures:
                    raise
                failures.append(e)

    return records, failures


def _check_terms(
    records: list[tuple[Any, ...]],
    estimates: dict[str, dict[str, float]] | None,
    skip_failures: bool,
) -> tuple[list[tuple[Any, ...]], list[FitFailure]]:
    """Require every fit of a model to estimate the same terms.

    The reference terms of a model are those of its full-dataset fit,
    or of its earliest successful resample when there is none. A
    resample whose terms differ (a factor level missing from the
    bootstrap sample, say) is a failed fit: raised, or dropped and
    returned among the failures if `skip_failures` is True.

    """
    terms = {}
    for idx, model, term, _ in records:
        terms.setdefault((idx, model), set()).add(term)

    reference = {}
    if estimates is not None:
        reference = {model: set(coef) for model, coef in estimates.items()}

    bad = set()
    failures = []
    for (idx, model), found in sorted(terms.items(), key=lambda kv: kv[0]):
        expected = reference.setdefault(model, found)
        if found == expected:
            continue

        e = FitFailure(
            idx,
            model,
            f"terms differ from other fits: missing {sorted(expected - found)}, "
            f"extra {sorted(found - expected)}",
        )
        if not skip_failures:
            raise e
        failures.append(e)
        bad.add((idx, model))

    if bad:
        records = [r for r in records if (r[0], r[1]) not in bad]
    return records, failures


def _evaluate_parallel(
    dist: EmpiricalDistribution,
    resamples: list[Resample],
    fit_procedures: dict[str, FitProcedure],
    response: str | None,
    skip_failures: bool,
    num_threads: int,
) -> tuple[list[tuple[Any, ...]], list[FitFailure]]:
    """Spread `resamples` over worker processes in contiguous batches."""
    pool = Pool(num_threads)
    try:
        # If we have used a pool before, we need to restart it.
        pool.restart()
    except AssertionError:
        # If have never used a pool before, no need to do anything.
        pass

    records = []
    failures = []
    try:
        results = []
        start = 0
        for batch_size in _batch_sizes(len(resamples), num_threads):
            end = start + batch_size
            r = pool.apipe(
                _evaluate_batch,
                dist,
                resamples[start:end],
                fit_procedures,
                response,
                skip_failures,
            )
            results.append(r)
            start = end

        for res in results:
            batch_records, batch_failures = res.get()
            records.extend(batch_records)
            failures.extend(batch_failures)
    except BaseException:
        # A failure or an interrupt abandons the whole run: stop the
        # workers and discard whatever they computed.
        pool.terminate()
        raise

    pool.close()
    pool.join()
    return records, failures


def evaluate(
    dataset: DataLike | EmpiricalDistribution,
    resample_spec: ResampleSpec,
    fit_procedures: Mapping[str, FitProcedure],
    response: str | None = None,
    rng: SeedLike = None,
    alpha: float = 0.025,
    point_estimates: bool = True,
    on_failure: Literal["raise", "skip"] = "raise",
    num_threads: int = 1,
) -> SummaryStatistics:
    """Evaluate models by resampling and refitting.

    Parameters
    ----------
     dataset : pandas DataFrame, records, or EmpiricalDistribution
        The data. Not modified.
     resample_spec : Bootstrap, MonteCarloSplit or KFold
        How to draw resamples. A Bootstrap spec produces coefficient
        standard errors and confidence intervals; the cross validation
        specs produce test set prediction errors.
     fit_procedures : dict_like
        Mapping from model name to a function which takes a dataset
        and returns a fitted model. See `resample_eval.models`.
     response : str, optional
        Name of the response column, used to score predictions on
        test subsets. Required for cross validation.
     rng : int, Generator or None, optional
        Source of randomness, passed to numpy.random.default_rng. Pass
        a seed to make the run reproducible.
     alpha : float, optional
        Number controlling the size of the bootstrap confidence
        intervals: they are 100(1 - 2 * `alpha`)% intervals. Defaults
        to 0.025.
     point_estimates : boolean, optional
        If True (default), also fit each model on the full dataset, to
        report the estimates and the bootstrap estimate of bias.
        Ignored for cross validation.
     on_failure : ["raise", "skip"], optional
        What to do when a fit fails. With "raise" (default), the first
        FitFailure propagates. With "skip", failed fits are excluded
        from the aggregation, collected in the `failures` attribute of
        the result, and a warning is issued.
     num_threads : int, optional
        Number of processes to use for multicore processing. Defaults
        to 1, meaning all calculations will be done in the calling
        process. Set to -1 to use all available cores.

    Returns
    -------
     stats : SummaryStatistics
        Summary and raw results.

    Raises
    ------
     InvalidSpec
        If the configuration is invalid. Checked before any resampling.
     EmptyDataset
        If `dataset` has no records.
     FitFailure
        If a fit fails and `on_failure` is "raise". The exception names
        the resample and the model. For the bootstrap, a fit whose
        terms differ from the other fits of the same model also counts
        as failed.

    Notes
    -----
    All resamples are drawn up front from a single generator, and the
    results are aggregated in resample order. The outcome for a given
    seed is therefore the same regardless of `num_threads`.

    Examples
    --------
    >>> stats = evaluate(df, Bootstrap(1000), {"ols": ols_fit("y ~ x")}, rng=0)
    >>> stats.summary.loc[("ols", "x"), "std_error"]
    0.0711

    >>> stats = evaluate(
    ...     df,
    ...     MonteCarloSplit(100),
    ...     {"constant": mean_fit("y"), "linear": ols_fit("y ~ x")},
    ...     response="y",
    ...     rng=0,
    ... )
    >>> stats.summary["median"]

    """
    if not isinstance(fit_procedures, Mapping) or len(fit_procedures) == 0:
        raise InvalidSpec("Please specify at least one fit procedure.")
    for model, fit in fit_procedures.items():
        if not callable(fit):
            raise InvalidSpec(f"Fit procedure for {model!r} is not callable")
    if not 0 < alpha < 0.5:
        raise InvalidSpec(f"Invalid alpha: {alpha}")
    if on_failure not in ("raise", "skip"):
        raise InvalidSpec(f"Invalid on_failure: {on_failure!r}")
    check_spec(resample_spec)
    num_threads = _num_threads(num_threads, resample_spec.n)

    if isinstance(dataset, EmpiricalDistribution):
        dist = dataset
    else:
        dist = EmpiricalDistribution(dataset)
    check_spec(resample_spec, dist.n)

    cross_validation = is_cross_validation(resample_spec)
    if cross_validation:
        if response is None:
            raise InvalidSpec("Cross validation requires a response column.")
        if response not in dist.columns:
            raise InvalidSpec(f"Response {response!r} is not a column of the dataset")
        values = dist.data[response]
        numeric = pd.api.types.is_numeric_dtype(values)
        if not numeric or pd.api.types.is_bool_dtype(values):
            raise InvalidSpec(f"Response {response!r} must be numeric")
        if values.isna().any():
            raise InvalidSpec(f"Response {response!r} has missing values")

    fit_procedures = dict(fit_procedures)
    skip_failures = on_failure == "skip"
    failures = []

    estimates = None
    if not cross_validation and point_estimates:
        estimates = {}
        for model, fit in fit_procedures.items():
            try:
                mdl = _fit(fit, dist.data, None, model)
                estimates[model] = _coefficients(mdl, None, model)
            except FitFailure as e:
                if not skip_failures:
                    raise
                failures.append(e)

    resamples = list(draw_resamples(resample_spec, dist.n, rng))
    if num_threads == 1:
        records, batch_failures = _evaluate_batch(
            dist, resamples, fit_procedures, response, skip_failures
        )
    else:
        records, batch_failures = _evaluate_parallel(
            dist,
            resamples,
            fit_procedures,
            response,
            skip_failures,
            num_threads,
        )
    failures.extend(batch_failures)

    if not cross_validation:
        records, term_failures = _check_terms(records, estimates, skip_failures)
        failures.extend(term_failures)

    if failures:
        n_fits = len(resamples) * len(fit_procedures)
        warnings.warn(
            f"{len(failures)} of {n_fits} fits failed and were excluded "
            f"from aggregation. First failure: {failures[0]}"
        )

    columns = ERROR_COLUMNS if cross_validation else COEFFICIENT_COLUMNS
    results = pd.DataFrame.from_records(records, columns=columns)
    results = results.sort_values(["model", "resample"], kind="mergesort")
    results = results.reset_index(drop=True)

    if cross_validation:
        return SummaryStatistics("errors", summarize_errors(results), results, failures)
    else:
        summary = summarize_coefficients(results, alpha=alpha, estimates=estimates)
        return SummaryStatistics("coefficients", summary, results, failures)
