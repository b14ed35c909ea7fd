# pyre-unsafe
"""Exceptions raised while configuring or running a resampling evaluation."""


class InvalidSpec(ValueError):
    """Invalid resampling configuration.

    Raised before any resampling work begins, e.g. for a nonpositive
    number of resamples or a training fraction outside (0, 1).

    """


class EmptyDataset(ValueError):
    """The dataset has no records to resample."""


class FitFailure(RuntimeError):
    """A fit procedure failed on a particular resample.

    Parameters
    ----------
     resample : int or None
        Index of the offending resample. None refers to the fit on the
        full dataset, used for point estimates.
     model : str
        Name of the fit procedure.
     reason : str
        Description of what went wrong.

    Notes
    -----
    Instances are picklable, so a failure raised in a worker process
    reaches the caller with its resample index and model name intact.

    """

    def __init__(self, resample: int | None, model: str, reason: str) -> None:
        super().__init__(resample, model, reason)
        self.resample = resample
        self.model = model
        self.reason = reason

    def __reduce__(self):
        return (self.__class__, (self.resample, self.model, self.reason))

    def __str__(self) -> str:
        if self.resample is None:
            where = "the full dataset"
        else:
            where = f"resample {self.resample}"
        return f"Model {self.model!r} failed on {where}: {self.reason}"
