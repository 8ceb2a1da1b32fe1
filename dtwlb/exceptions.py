# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.


class InvalidArgumentError(ValueError):
    """
    Raised when an input (series, window, norm, kernel, or worker setting) is
    invalid. All input checks are performed before any computation begins.
    """


class UnsupportedInputError(InvalidArgumentError):
    """
    Raised for multivariate (multi-dimensional) time series
    """


class LengthMismatchError(InvalidArgumentError):
    """
    Raised when a pre-computed envelope does not have the same length as the
    time series that it is compared against
    """


class ComputationFailure(RuntimeError):
    """
    Raised when a worker fails while filling a distance matrix. The partially
    filled matrix is discarded and the original error is chained as `__cause__`.
    """


class ShapeMismatchWarning(UserWarning):
    """
    Issued when lower bound symmetry cannot be enforced because the distance
    matrix is not square. The distance matrix is returned unchanged.
    """
