# pyre-unsafe
"""Resampling strategies.

A resample spec describes how to derive resamples from a dataset. It
carries no data and no random state: the same spec can be reused
across datasets and runs.

"""

import numbers
from dataclasses import dataclass

from resample_eval.exceptions import InvalidSpec


def _check_count(name: str, value) -> None:
    if (
        isinstance(value, bool)
        or not isinstance(value, numbers.Integral)
        or value < 1
    ):
        raise InvalidSpec(f"Invalid {name}: {value!r}. Must be a positive integer.")


@dataclass(frozen=True)
class Bootstrap:
    """Bootstrap resampling.

    Parameters
    ----------
     n : int
        Number of bootstrap samples. Each is drawn with replacement
        and has the same size as the original dataset.

    """

    n: int

    def __post_init__(self) -> None:
        _check_count("number of resamples", self.n)

    def check(self, n_rows: int) -> None:
        """Check the spec can be applied to a dataset of `n_rows` records."""


@dataclass(frozen=True)
class MonteCarloSplit:
    """Monte Carlo cross validation.

    Parameters
    ----------
     n : int
        Number of independent random splits.
     train_fraction : float, optional
        Fraction of records assigned to the training subset. The
        complement forms the test subset. Defaults to 0.8.

    """

    n: int
    train_fraction: float = 0.8

    def __post_init__(self) -> None:
        _check_count("number of resamples", self.n)
        f = self.train_fraction
        if (
            isinstance(f, bool)
            or not isinstance(f, numbers.Real)
            or not 0 < f < 1
        ):
            raise InvalidSpec(
                f"Invalid train_fraction: {f!r}. Must be strictly between 0 and 1."
            )

    def train_size(self, n_rows: int) -> int:
        """Number of training records for a dataset of `n_rows` records."""
        return int(round(self.train_fraction * n_rows))

    def check(self, n_rows: int) -> None:
        """Check the spec can be applied to a dataset of `n_rows` records.

        A split leaving either subset empty cannot be scored, so it is
        rejected up front rather than left to the fitting library.

        """
        n_train = self.train_size(n_rows)
        if n_train == 0 or n_train == n_rows:
            raise InvalidSpec(
                f"train_fraction {self.train_fraction} leaves an empty "
                f"{'training' if n_train == 0 else 'test'} subset for a "
                f"dataset of {n_rows} records."
            )


@dataclass(frozen=True)
class KFold:
    """K-fold cross validation.

    Parameters
    ----------
     k : int
        Number of folds. Each fold is used once as the test subset,
        giving `k` resamples.
     shuffle : boolean, optional
        If True (default), permute the records before cutting folds.
        Otherwise folds are contiguous blocks in dataset order.

    """

    k: int
    shuffle: bool = True

    def __post_init__(self) -> None:
        _check_count("number of folds", self.k)
        if self.k < 2:
            raise InvalidSpec(f"Invalid number of folds: {self.k}. Must be at least 2.")

    @property
    def n(self) -> int:
        return self.k

    def check(self, n_rows: int) -> None:
        """Check the spec can be applied to a dataset of `n_rows` records."""
        if self.k > n_rows:
            raise InvalidSpec(
                f"Cannot cut {self.k} folds from a dataset of {n_rows} records."
            )


ResampleSpec = Bootstrap | MonteCarloSplit | KFold


def is_cross_validation(resample_spec: ResampleSpec) -> bool:
    """Whether `resample_spec` produces train/test splits."""
    return isinstance(resample_spec, (MonteCarloSplit, KFold))


def check_spec(resample_spec, n_rows: int | None = None) -> None:
    """Validate `resample_spec`.

    Parameters
    ----------
     resample_spec : Bootstrap, MonteCarloSplit or KFold
        The spec.
     n_rows : int, optional
        If given, also check the spec can be applied to a dataset of
        this many records.

    Raises
    ------
     InvalidSpec
        If `resample_spec` is not a known spec, or cannot be applied
        to a dataset of this size.

    """
    if not isinstance(resample_spec, (Bootstrap, MonteCarloSplit, KFold)):
        raise InvalidSpec(f"Unknown resample spec: {resample_spec!r}")

    if n_rows is not None:
        resample_spec.check(n_rows)
