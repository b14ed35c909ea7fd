# pyre-unsafe
"""Core resampling functions.

Resamples are described by row positions into the original dataset
rather than by copies of the data. A position array is cheap to draw,
to ship to a worker process, and to inspect when debugging; the
records themselves are only materialised when a model is fit.

"""

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from resample_eval._utils import Indices, SeedLike
from resample_eval.specs import (
    Bootstrap,
    KFold,
    MonteCarloSplit,
    ResampleSpec,
    check_spec,
)


@dataclass(frozen=True)
class Resample:
    """One resample, as row positions into the original dataset.

    Attributes
    ----------
     index : int
        Resample number, 0..n-1.
     train : ndarray of ints
        Positions of the records models are fit on. For a bootstrap
        resample these are the draws, in draw order, with repeats.
     test : ndarray of ints or None
        Positions of the held-out records. None for bootstrap
        resamples.

    """

    index: int
    train: Indices
    test: Indices | None = None


def bootstrap_indices(
    n_rows: int, rng: SeedLike = None, size: int | None = None
) -> Indices:
    """Positions of a bootstrap sample.

    Parameters
    ----------
     n_rows : int
        Number of records in the dataset.
     rng : int, Generator or None, optional
        Source of randomness, passed to numpy.random.default_rng.
     size : int, optional
        Number of draws. Defaults to `n_rows`.

    Returns
    -------
     ind : ndarray
        `size` positions drawn independently and uniformly, with
        replacement, in draw order.

    """
    rng = np.random.default_rng(rng)
    if size is None:
        size = n_rows
    return rng.integers(0, n_rows, size=size).astype(np.intp)


def monte_carlo_split_indices(
    n_rows: int, train_fraction: float = 0.8, rng: SeedLike = None
) -> tuple[Indices, Indices]:
    """Positions of a random train/test split.

    Parameters
    ----------
     n_rows : int
        Number of records in the dataset.
     train_fraction : float, optional
        Fraction of records in the training subset. Defaults to 0.8.
     rng : int, Generator or None, optional
        Source of randomness, passed to numpy.random.default_rng.

    Returns
    -------
     train, test : ndarray
        Sorted, disjoint positions whose union is 0..n_rows-1. The
        training subset is a uniformly random subset of size
        round(train_fraction * n_rows), drawn without replacement.

    """
    spec = MonteCarloSplit(1, train_fraction)
    spec.check(n_rows)
    rng = np.random.default_rng(rng)

    perm = rng.permutation(n_rows)
    n_train = spec.train_size(n_rows)
    train = np.sort(perm[:n_train]).astype(np.intp)
    test = np.sort(perm[n_train:]).astype(np.intp)
    return train, test


def kfold_indices(
    n_rows: int, k: int, rng: SeedLike = None, shuffle: bool = True
) -> list[tuple[Indices, Indices]]:
    """Positions of the k folds.

    Parameters
    ----------
     n_rows : int
        Number of records in the dataset.
     k : int
        Number of folds.
     rng : int, Generator or None, optional
        Source of randomness, passed to numpy.random.default_rng.
        Unused unless `shuffle` is True.
     shuffle : boolean, optional
        Whether to permute the records before cutting folds. Defaults
        to True.

    Returns
    -------
     folds : list of (train, test)
        One pair per fold. Fold sizes differ by at most one.

    """
    KFold(k, shuffle).check(n_rows)
    if shuffle:
        rng = np.random.default_rng(rng)
        order = rng.permutation(n_rows)
    else:
        order = np.arange(n_rows)

    chunks = np.array_split(order, k)
    folds = []
    for i, chunk in enumerate(chunks):
        rest = np.concatenate([c for j, c in enumerate(chunks) if j != i])
        folds.append((np.sort(rest).astype(np.intp), np.sort(chunk).astype(np.intp)))

    return folds


def draw_resamples(
    resample_spec: ResampleSpec, n_rows: int, rng: SeedLike = None
) -> Iterator[Resample]:
    """Draw every resample called for by `resample_spec`.

    Parameters
    ----------
     resample_spec : Bootstrap, MonteCarloSplit or KFold
        The resampling strategy.
     n_rows : int
        Number of records in the dataset.
     rng : int, Generator or None, optional
        Source of randomness, passed to numpy.random.default_rng. All
        resamples are drawn from this one generator, in order, so a
        seed fixes the whole sequence.

    Yields
    ------
     resample : Resample
        Resamples 0..n-1.

    Raises
    ------
     InvalidSpec
        If `resample_spec` cannot be applied to `n_rows` records. This
        is checked before the first draw.

    """
    check_spec(resample_spec, n_rows)
    rng = np.random.default_rng(rng)

    if isinstance(resample_spec, Bootstrap):
        for i in range(resample_spec.n):
            yield Resample(i, bootstrap_indices(n_rows, rng))
    elif isinstance(resample_spec, MonteCarloSplit):
        for i in range(resample_spec.n):
            train, test = monte_carlo_split_indices(
                n_rows, resample_spec.train_fraction, rng
            )
            yield Resample(i, train, test)
    else:
        folds = kfold_indices(
            n_rows, resample_spec.k, rng, shuffle=resample_spec.shuffle
        )
        for i, (train, test) in enumerate(folds):
            yield Resample(i, train, test)
