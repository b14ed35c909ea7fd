# pyre-unsafe
"""Resampling methods for standard errors and model selection.

This package fits models repeatedly on resamples of a dataset and
aggregates what it learns from each fit. Bootstrap resamples give
standard errors and confidence intervals for model coefficients;
Monte Carlo and k-fold cross validation give the distribution of test
set prediction error, for choosing between models of different
flexibility. Model fitting itself is delegated to fit procedures
supplied by the caller.

References
----------
[ET93]:  Bradley Efron and Robert J. Tibshirani, "An Introduction to the
         Bootstrap". Chapman & Hall, 1993.
[Koh95]: Ron Kohavi, "A Study of Cross-Validation and Bootstrap for
         Accuracy Estimation and Model Selection".  International
         Joint Conference on Artificial Intelligence, 1995.
[Arl10]: Sylvain Arlot, "A Survey of Cross-Validation Procedures for
         Model Selection". Statistics Surveys, Vol. 4, 2010.

"""

# Type aliases (public)
from resample_eval._utils import DataLike, SeedLike

# Datasets
from resample_eval.datasets import lidar_like_data, linear_data

# Distribution class
from resample_eval.distributions import EmpiricalDistribution

# Evaluation
from resample_eval.evaluator import evaluate

# Exceptions
from resample_eval.exceptions import EmptyDataset, FitFailure, InvalidSpec

# Fit procedures
from resample_eval.models import (
    ConstantModel,
    FitProcedure,
    FittedModel,
    FormulaModel,
    LoessModel,
    loess,
    loess_fit,
    mean_fit,
    ols_fit,
    spline_fit,
)

# Sampling functions
from resample_eval.sampling import (
    Resample,
    bootstrap_indices,
    draw_resamples,
    kfold_indices,
    monte_carlo_split_indices,
)

# Resample specs
from resample_eval.specs import Bootstrap, KFold, MonteCarloSplit, ResampleSpec

# Aggregation
from resample_eval.summary import (
    SummaryStatistics,
    percentile_interval,
    standard_error,
    summarize_coefficients,
    summarize_errors,
)

__all__ = [
    # Type aliases
    "DataLike",
    "SeedLike",
    "FitProcedure",
    "ResampleSpec",
    # Exceptions
    "EmptyDataset",
    "FitFailure",
    "InvalidSpec",
    # Specs
    "Bootstrap",
    "KFold",
    "MonteCarloSplit",
    # Distributions
    "EmpiricalDistribution",
    # Sampling
    "Resample",
    "bootstrap_indices",
    "draw_resamples",
    "kfold_indices",
    "monte_carlo_split_indices",
    # Models
    "ConstantModel",
    "FittedModel",
    "FormulaModel",
    "LoessModel",
    "loess",
    "loess_fit",
    "mean_fit",
    "ols_fit",
    "spline_fit",
    # Aggregation
    "SummaryStatistics",
    "percentile_interval",
    "standard_error",
    "summarize_coefficients",
    "summarize_errors",
    # Evaluation
    "evaluate",
    # Datasets
    "lidar_like_data",
    "linear_data",
]
