# pyre-unsafe
"""Empirical distribution over the records of a dataset."""

from collections.abc import Mapping
from typing import Literal, overload

import pandas as pd

from resample_eval._utils import DataLike, Indices, SeedLike
from resample_eval.exceptions import EmptyDataset
from resample_eval.sampling import bootstrap_indices, monte_carlo_split_indices


def _as_frame(data: DataLike) -> pd.DataFrame:
    """Convert records or columns to a DataFrame, checking the schema."""
    if isinstance(data, pd.DataFrame):
        return data

    if isinstance(data, Mapping):
        return pd.DataFrame(dict(data))

    records = list(data)
    if records:
        fields = set(records[0])
        for i, record in enumerate(records):
            if set(record) != fields:
                raise ValueError(
                    f"Record {i} has fields {sorted(record)}, "
                    f"expected {sorted(fields)}"
                )
    return pd.DataFrame.from_records(records)


class EmpiricalDistribution:
    r"""Empirical Distribution

    The Empirical Distribution puts probability 1/n on each of n
    records. It holds the dataset for the duration of a run and never
    modifies it: every sample or split is a copy.

    Parameters
    ----------
     data : pandas DataFrame, list of mappings, or mapping of columns
        The data. Every record must have the same fields.

    Raises
    ------
     EmptyDataset
        If `data` has no records.

    """

    data: pd.DataFrame
    n: int

    def __init__(self, data: DataLike) -> None:
        self.data = _as_frame(data)
        self.n = len(self.data.index)
        if self.n == 0:
            raise EmptyDataset("Cannot resample a dataset with no records.")

    @property
    def columns(self) -> list[str]:
        return list(self.data.columns)

    def take(self, ind: Indices, reset_index: bool = True) -> pd.DataFrame:
        """Records at positions `ind`, in that order.

        Parameters
        ----------
         ind : array of ints
            Row positions. May contain repeats.
         reset_index : boolean, optional
            If True (default), the result is indexed 0..len(ind)-1.
            Otherwise the original index labels are kept, which
            preserves row identity.

        """
        samples = self.data.iloc[ind]
        if reset_index:
            samples = samples.reset_index(drop=True)
        return samples

    @overload
    def sample(
        self,
        rng: SeedLike = None,
        size: int | None = None,
        return_indices: Literal[False] = False,
        reset_index: bool = True,
    ) -> pd.DataFrame: ...

    @overload
    def sample(
        self,
        rng: SeedLike,
        size: int | None,
        return_indices: Literal[True],
        reset_index: bool = True,
    ) -> tuple[pd.DataFrame, Indices]: ...

    def sample(
        self,
        rng: SeedLike = None,
        size: int | None = None,
        return_indices: bool = False,
        reset_index: bool = True,
    ) -> pd.DataFrame | tuple[pd.DataFrame, Indices]:
        """Sample from the empirical distribution

        Parameters
        ----------
         rng : int, Generator or None, optional
            Source of randomness, passed to numpy.random.default_rng.
         size : int, optional
            Number of records to draw. If None (default), samples the
            same number of records as the original dataset.
         return_indices : boolean, optional
            If True, return the positions of the records
            sampled. Defaults to False.
         reset_index : boolean, optional
            If True (default), reset the index. This is usually what
            we would want to do, except for debugging perhaps.

        Returns
        -------
         samples : pandas DataFrame
            IID samples from the empirical distribution, in draw order.
         ind : ndarray
            Positions of records chosen. Only returned if
            `return_indices` is True.

        """
        ind = bootstrap_indices(self.n, rng, size=size)
        samples = self.take(ind, reset_index=reset_index)
        if return_indices:
            return samples, ind
        else:
            return samples

    def split(
        self, rng: SeedLike = None, train_fraction: float = 0.8
    ) -> tuple[pd.DataFrame, pd.DataFrame]:
        """Randomly partition the records into training and test subsets.

        Parameters
        ----------
         rng : int, Generator or None, optional
            Source of randomness, passed to numpy.random.default_rng.
         train_fraction : float, optional
            Fraction of records in the training subset. Defaults to 0.8.

        Returns
        -------
         train, test : pandas DataFrame
            Disjoint subsets covering every record. Original index
            labels are kept.

        """
        train, test = monte_carlo_split_indices(self.n, train_fraction, rng)
        return (
            self.take(train, reset_index=False),
            self.take(test, reset_index=False),
        )
