# pyre-unsafe
import numpy as np
import pandas as pd

from resample_eval._utils import SeedLike


def linear_data(
    n: int = 250,
    heteroscedastic: bool = False,
    sigma: float = 0.5,
    rng: SeedLike = None,
) -> pd.DataFrame:
    """Simulated linear data.

    n observations of y = 2 + 3x + noise, with x uniform on (0, 1).

    Parameters
    ----------
     n : int, optional
        Number of observations. Defaults to 250.
     heteroscedastic : boolean, optional
        If False (default), the noise has standard deviation `sigma`
        everywhere. If True, its standard deviation is 2 * `sigma` * x,
        growing from 0 to twice `sigma` across the range of x.
     sigma : float, optional
        Noise scale. Defaults to 0.5.
     rng : int, Generator or None, optional
        Source of randomness, passed to numpy.random.default_rng.

    Returns
    -------
     df : pandas DataFrame
        Columns "x" and "y".

    """
    rng = np.random.default_rng(rng)
    x = rng.uniform(0, 1, n)
    if heteroscedastic:
        sd = 2 * sigma * x
    else:
        sd = np.full((n,), sigma)

    y = 2 + 3 * x + rng.normal(0, 1, n) * sd
    return pd.DataFrame({"x": x, "y": y})


def lidar_like_data(n: int = 221, rng: SeedLike = None) -> pd.DataFrame:
    """Simulated data resembling the LIDAR measurements.

    The LIDAR data consist of 221 measurements of the log ratio of
    received light from two laser sources, against the distance
    travelled. The log ratio is flat near zero up to about 550, then
    drops off, and the noise grows with distance. This function
    produces data with the same features.

    Parameters
    ----------
     n : int, optional
        Number of observations. Defaults to 221.
     rng : int, Generator or None, optional
        Source of randomness, passed to numpy.random.default_rng.

    Returns
    -------
     df : pandas DataFrame
        Columns "distance" and "logratio", sorted by distance.

    """
    rng = np.random.default_rng(rng)
    distance = np.sort(rng.uniform(390, 720, n))
    mean = -0.8 / (1 + np.exp(-(distance - 600) / 25))
    sd = 0.03 + 0.12 * (distance - 390) / 330
    logratio = mean + rng.normal(0, 1, n) * sd
    return pd.DataFrame({"distance": distance, "logratio": logratio})
