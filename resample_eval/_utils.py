# pyre-unsafe
"""Private utility functions and type aliases for resampling evaluation."""

import multiprocessing as mp
import warnings
from collections.abc import Mapping, Sequence
from typing import Any, TypeAlias

import numpy as np
import numpy.typing as npt
import pandas as pd

# Type aliases for common types
DataLike: TypeAlias = pd.DataFrame | Sequence[Mapping[str, Any]] | Mapping[str, Any]
SeedLike: TypeAlias = int | np.random.Generator | np.random.SeedSequence | None
Indices: TypeAlias = npt.NDArray[np.intp]


def _percentile(
    z: npt.NDArray[np.float64], p: float | list[float]
) -> npt.NDArray[np.float64]:
    """Percentiles of an array.

    Parameters
    ----------
     z : array_like
        Data. Not assumed to be sorted.
     p : float or list of floats
        Numbers in (0, 1), specifying the percentiles.

    Returns
    -------
     percentiles : ndarray
        One value of z per entry of p.

    Notes
    -----
    Uses the methodology recommended in S12.5 of [ET93]: with B
    values, the alpha percentile is the k-th smallest value where
    k = floor((B + 1) * alpha) when B * alpha is not an integer. Since
    the result only depends on the sorted values, it does not depend
    on the order of z.

    """
    B = len(z)
    if not isinstance(p, list):
        p = [p]

    sorted_z = np.sort(np.asarray(z, dtype=np.float64))

    percentiles = np.zeros((len(p),))
    for i, pi in enumerate(p):
        if pi <= 0.5:
            alpha = pi
            Balpha = B * alpha
        else:
            Balpha = B - B * pi
            alpha = 1 - pi

        integral = int(Balpha) == Balpha
        if integral:
            k = int(Balpha)
        else:
            k = int(np.floor(Balpha + alpha))

        if pi > 0.5:
            k = B - k if integral else B + 1 - k

        if k <= 0 or k > B:
            warnings.warn(
                "Percentile index outside of bounds. Try more resamples."
            )
            k = min(max(k, 1), B)

        percentiles[i] = sorted_z[k - 1]

    return percentiles


def _rmse(
    predicted: npt.ArrayLike, actual: npt.ArrayLike
) -> float:
    """Root mean squared error."""
    diff = np.asarray(predicted, dtype=np.float64) - np.asarray(
        actual, dtype=np.float64
    )
    return float(np.sqrt(np.mean(diff * diff)))


def _num_threads(num_threads: int, n_tasks: int) -> int:
    """Number of workers to use for `n_tasks` independent tasks."""
    if num_threads == -1:
        num_threads = mp.cpu_count()

    if num_threads < 1:
        raise ValueError(f"Invalid num_threads: {num_threads}")

    return min(num_threads, n_tasks)


def _batch_sizes(n: int, num_threads: int) -> list[int]:
    """Split `n` tasks into `num_threads` contiguous batches."""
    batch_size = n // num_threads
    extra = n % num_threads
    batch_sizes = [batch_size] * num_threads
    for i in range(extra):
        batch_sizes[i] += 1

    return batch_sizes
