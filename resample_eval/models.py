# pyre-unsafe
"""Fit procedures for common model families.

A fit procedure is any callable taking a training DataFrame and
returning a fitted model. The evaluator needs two capabilities from a
fitted model:

 predict(data) -> array
    Predicted response for each record of `data`. Required for cross
    validation.
 coefficients() -> dict
    Mapping from term name to estimate. Required for the bootstrap.

The helpers below build fit procedures for the model families used in
practice: ordinary least squares on a formula, regression splines of
a single predictor (from smooth to highly flexible, depending on the
degrees of freedom), local linear regression, and the constant model.
Any object with the same methods works just as well.

"""

from collections.abc import Callable
from typing import Protocol

import numpy as np
import numpy.typing as npt
import pandas as pd
import statsmodels.formula.api as smf


class FittedModel(Protocol):
    """What the evaluator requires of a fitted model."""

    def predict(self, data: pd.DataFrame) -> npt.ArrayLike: ...


FitProcedure = Callable[[pd.DataFrame], FittedModel]


class FormulaModel:
    """A fitted statsmodels formula model.

    Parameters
    ----------
     results : statsmodels RegressionResults
        The fit. Design information for new data, including any
        stateful transforms like spline knots, is kept by statsmodels.

    """

    def __init__(self, results) -> None:
        self.results = results

    def predict(self, data: pd.DataFrame) -> npt.NDArray[np.float64]:
        return np.asarray(self.results.predict(data), dtype=np.float64)

    def coefficients(self) -> dict[str, float]:
        return {k: float(v) for k, v in self.results.params.items()}


def ols_fit(formula: str) -> FitProcedure:
    """Ordinary least squares.

    Parameters
    ----------
     formula : str
        Model formula, e.g. "y ~ x".

    Returns
    -------
     fit : function
        Fit procedure returning a FormulaModel. Raises
        numpy.linalg.LinAlgError when the design matrix is rank
        deficient, e.g. for a bootstrap sample repeating a single
        record.

    Examples
    --------
    >>> fit = ols_fit("y ~ x")
    >>> mdl = fit(df)
    >>> mdl.coefficients()
    {'Intercept': 2.01, 'x': 2.97}

    """

    def fit(data: pd.DataFrame) -> FormulaModel:
        results = smf.ols(formula=formula, data=data).fit()
        # statsmodels falls back to a pseudo-inverse, which hides a
        # degenerate design behind finite minimum-norm estimates.
        exog = results.model.exog
        rank = np.linalg.matrix_rank(exog)
        if rank < exog.shape[1]:
            raise np.linalg.LinAlgError(
                f"rank-deficient design: rank {rank} with {exog.shape[1]} columns"
            )
        return FormulaModel(results)

    return fit


def spline_formula(
    predictor: str,
    response: str,
    df: int = 5,
    degree: int = 3,
    bounds: tuple[float, float] | None = None,
) -> str:
    """Formula for a B-spline regression of `response` on `predictor`."""
    if df < degree:
        raise ValueError(f"df must be at least the degree ({degree}), got {df}")

    args = f"{predictor}, df={int(df)}, degree={int(degree)}"
    if bounds is not None:
        lower, upper = bounds
        args += f", lower_bound={float(lower)!r}, upper_bound={float(upper)!r}"
    return f"{response} ~ bs({args})"


def spline_fit(
    predictor: str,
    response: str,
    df: int = 5,
    degree: int = 3,
    bounds: tuple[float, float] | None = None,
) -> FitProcedure:
    """Regression spline of a single predictor.

    Parameters
    ----------
     predictor, response : str
        Column names.
     df : int, optional
        Degrees of freedom of the spline basis, excluding the
        intercept. Low values give a smooth fit; high values a very
        flexible one. Defaults to 5.
     degree : int, optional
        Polynomial degree of the pieces. Defaults to 3 (cubic).
     bounds : (float, float), optional
        Boundary knots. Interior knots are placed at quantiles of the
        training data, but predictions can only be made inside the
        boundary knots. When the model is scored on held-out records,
        pass the range of the full dataset here; otherwise it defaults
        to the range of the training data.

    Returns
    -------
     fit : function
        Fit procedure returning a FormulaModel.

    """
    return ols_fit(spline_formula(predictor, response, df, degree, bounds))


def loess(
    z0: float,
    z: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
    alpha: float,
) -> float:
    """Locally estimated scatterplot smoothing

    Parameters
    ----------
     z0 : float
        Test point
     z : array_like
        Predictor values.
     y : array_like
        Response values.
     alpha : float
        Smoothing parameter, governing how many points to include in
        the local fit. Should be between 0 and 1, with higher
        values corresponding to more smoothing.

    Returns
    -------
     y_smoothed : float
        The smoothed estimate of the response evaluated at z0.

    Notes
    -----
    The fit at z0 is a weighted least squares line through the
    floor(alpha * N) nearest points, with tricube weights on distance
    from z0.

    """
    N = len(z)
    n = int(np.floor(alpha * N))

    ii = np.argsort(np.abs(z - z0), kind="stable")
    if n == 0:
        return y[ii[0]]

    Nz = z[ii[0:n]]
    Ny = y[ii[0:n]]
    span = np.abs(Nz[-1] - z0)
    if len(Nz) == 1 or span == 0 or np.ptp(Nz) == 0:
        return np.mean(Ny)

    u = np.abs(Nz - z0) / span
    w = 1 - u * u * u
    w = w * w * w

    # polyfit weights multiply residuals, hence the square root.
    slope, intercept = np.polyfit(Nz, Ny, 1, w=np.sqrt(w))
    return intercept + slope * z0


class LoessModel:
    """Local linear regression of one predictor."""

    def __init__(
        self,
        z: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
        predictor: str,
        alpha: float,
    ) -> None:
        self.z = z
        self.y = y
        self.predictor = predictor
        self.alpha = alpha

    def predict(self, data: pd.DataFrame) -> npt.NDArray[np.float64]:
        z_new = np.asarray(data[self.predictor], dtype=np.float64)
        return np.array([loess(z0, self.z, self.y, self.alpha) for z0 in z_new])


def loess_fit(predictor: str, response: str, alpha: float = 0.3) -> FitProcedure:
    """Local linear regression.

    Parameters
    ----------
     predictor, response : str
        Column names.
     alpha : float, optional
        Fraction of the training records used for each local fit.
        Defaults to 0.3.

    Returns
    -------
     fit : function
        Fit procedure returning a LoessModel. The model has no
        coefficients, so it can only be used for cross validation.

    """
    if not 0 < alpha <= 1:
        raise ValueError(f"Invalid alpha: {alpha}")

    def fit(data: pd.DataFrame) -> LoessModel:
        z = np.asarray(data[predictor], dtype=np.float64)
        y = np.asarray(data[response], dtype=np.float64)
        return LoessModel(z, y, predictor, alpha)

    return fit


class ConstantModel:
    """Predicts the training mean everywhere."""

    def __init__(self, mean: float) -> None:
        self.mean = mean

    def predict(self, data: pd.DataFrame) -> npt.NDArray[np.float64]:
        return np.full((len(data),), self.mean)

    def coefficients(self) -> dict[str, float]:
        return {"Intercept": self.mean}


def mean_fit(response: str) -> FitProcedure:
    """The constant model, y ~ 1."""

    def fit(data: pd.DataFrame) -> ConstantModel:
        return ConstantModel(float(np.mean(data[response])))

    return fit
