# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import inspect
import numbers
import warnings

import numpy as np
from numba import njit

from . import config
from .exceptions import InvalidArgumentError, UnsupportedInputError

_NORMS = {"L1": 1, "L2": 2}


def check_window_size(window):
    """
    Check that the Sakoe-Chiba window size is a non-negative integer

    Parameters
    ----------
    window : int
        Window size (radius). Index ``i`` in one time series may be aligned with
        indices ``[i - window, i + window]`` in the other time series.

    Returns
    -------
    window : int
        The window size as a Python `int`

    Raises
    ------
    InvalidArgumentError
        If the window size is missing, not an integer, or negative
    """
    if window is None:
        raise InvalidArgumentError("Please provide the `window` parameter")

    is_bool = isinstance(window, (bool, np.bool_))
    if is_bool or not isinstance(window, numbers.Integral):
        if (
            not is_bool
            and isinstance(window, numbers.Real)
            and float(window).is_integer()
        ):
            window = int(window)
        else:
            raise InvalidArgumentError(
                f"The window size must be an integer but found `{window}`"
            )

    if window < 0:
        raise InvalidArgumentError(
            f"The window size must be non-negative but found `{window}`"
        )

    return int(window)


def check_norm(norm):
    """
    Convert a vector norm name into its corresponding p-norm

    Parameters
    ----------
    norm : str
        Either ``"L1"`` (Manhattan) or ``"L2"`` (Euclidean). Case-insensitive.

    Returns
    -------
    p : int
        The p-norm, which is either ``1`` or ``2``
    """
    if not isinstance(norm, str) or norm.upper() not in _NORMS:
        raise InvalidArgumentError(
            f"Unsupported norm `{norm}`. Please choose one of {list(_NORMS)}"
        )

    return _NORMS[norm.upper()]


def _check_finite(T, name):
    """
    Check that a time series (or a set of time series) contains no `np.nan`/`np.inf`

    Parameters
    ----------
    T : numpy.ndarray
        A time series or a 2-D array of time series

    name : str
        The parameter name used in error messages

    Returns
    -------
    None
    """
    if not np.all(np.isfinite(T)):
        msg = f"`{name}` contains one or more `np.nan`/`np.inf` values, "
        msg += "which are not supported"
        raise InvalidArgumentError(msg)


def preprocess_series(T, name="T"):
    """
    Validate a single univariate time series and convert it to a contiguous
    `float64` array

    Parameters
    ----------
    T : numpy.ndarray
        A univariate time series or sequence

    name : str, default "T"
        The parameter name used in error messages

    Returns
    -------
    T : numpy.ndarray
        A contiguous 1-D `float64` copy of the time series
    """
    T = np.array(T, dtype=np.float64, copy=True)
    if T.ndim == 2 and 1 in T.shape:
        T = T.ravel()

    if T.ndim == 0:
        raise InvalidArgumentError(f"`{name}` is a scalar and not a time series")

    if T.ndim != 1:
        raise UnsupportedInputError(
            f"`{name}` is {T.ndim}-dimensional but only univariate (1-dimensional) "
            "time series are supported"
        )

    if T.shape[0] == 0:
        raise InvalidArgumentError(f"`{name}` is empty")

    _check_finite(T, name)

    return np.ascontiguousarray(T)


def preprocess_series_list(X, name="X"):
    """
    Validate a set of equal-length univariate time series and stack them into a
    contiguous 2-D `float64` array (one time series per row)

    Parameters
    ----------
    X : list, numpy.ndarray, dict, or DataFrame
        A list (or tuple) of time series, a 2-D array with one time series per row,
        a single 1-D time series, a dictionary that maps labels to time series, or a
        pandas `DataFrame` with one time series per row

    name : str, default "X"
        The parameter name used in error messages

    Returns
    -------
    T : numpy.ndarray
        A contiguous 2-D `float64` array where each row is one time series

    labels : list
        The labels of the time series (dictionary keys or `DataFrame` index). This
        is `None` when no labels are available.

    Notes
    -----
    This function has zero dependency on pandas (not even a soft dependency)
    """
    labels = None
    if isinstance(X, dict):
        labels = list(X.keys())
        X = list(X.values())
    elif type(X).__name__ == "DataFrame":
        labels = list(X.index)
        X = X.to_numpy()

    if isinstance(X, np.ndarray):
        T = np.array(X, dtype=np.float64, copy=True)
        if T.ndim == 1:
            T = T[np.newaxis, :]
        if T.ndim != 2:
            raise UnsupportedInputError(
                f"`{name}` is {T.ndim}-dimensional. Multivariate time series "
                "are not supported"
            )
    else:
        if len(X) == 0:
            raise InvalidArgumentError(f"`{name}` does not contain any time series")

        if all(isinstance(x, numbers.Real) for x in X):
            X = [X]

        series = [preprocess_series(x, name=f"{name}[{i}]") for i, x in enumerate(X)]
        lengths = {x.shape[0] for x in series}
        if len(lengths) > 1:
            msg = f"All time series in `{name}` must have the same length but "
            msg += f"found lengths {sorted(lengths)}"
            raise InvalidArgumentError(msg)
        T = np.stack(series)

    if T.shape[0] == 0:
        raise InvalidArgumentError(f"`{name}` does not contain any time series")

    if T.shape[1] == 0:
        raise InvalidArgumentError(f"The time series in `{name}` are empty")

    _check_finite(T, name)

    return np.ascontiguousarray(T), labels


@njit(
    # "i8[:, :](i8, i8, b1)"
    fastmath=config.DTWLB_FASTMATH_TRUE
)
def _get_task_ranges(n_tasks, n_chunks, truncate=False):
    """
    Split the task index space, ``[0, n_tasks)``, into `n_chunks` contiguous and
    disjoint ranges of (nearly) equal size

    Parameters
    ----------
    n_tasks : int
        The total number of tasks

    n_chunks : int
        Number of chunks to split the tasks into

    truncate : bool, default False
        If `truncate=True`, drop the (empty) rows of `task_ranges` when there are
        fewer tasks than chunks. Otherwise, empty chunks are kept and have identical
        start and stop indices.

    Returns
    -------
    task_ranges : numpy.ndarray
        A two column array where each row consists of a start and (exclusive) stop
        index pair. When `n_tasks` is not divisible by `n_chunks`, the remainder is
        distributed (one task each) to the first chunks.
    """
    task_ranges = np.zeros((max(n_chunks, 0), 2), dtype=np.int64)
    if n_chunks > 0 and n_tasks > 0:
        chunk_size = n_tasks // n_chunks
        remainder = n_tasks - chunk_size * n_chunks
        start = 0
        for chunk_idx in range(n_chunks):
            stop = start + chunk_size
            if chunk_idx < remainder:
                stop += 1
            task_ranges[chunk_idx, 0] = start
            task_ranges[chunk_idx, 1] = stop
            start = stop

    if truncate:
        # Empty chunks only ever occur at the end
        row_truncation_idx = min(max(n_chunks, 0), max(n_tasks, 0))
        task_ranges = task_ranges[:row_truncation_idx]

    return task_ranges


def get_client_type(client):
    """
    Identify the type of a distributed client

    Parameters
    ----------
    client : client
        A Dask or Ray Distributed client. Setting up a distributed cluster is beyond
        the scope of this library. Please refer to the Dask or Ray Distributed
        documentation.

    Returns
    -------
    client_type : str
        Either ``"dask"`` or ``"ray"``
    """
    if client.__class__.__name__.startswith("Client"):
        return "dask"
    elif inspect.ismodule(client) and str(client).startswith(
        "<module 'ray'"
    ):  # pragma: no cover
        return "ray"
    else:
        msg = f"Distributed client `{client}` is unrecognized or "
        msg += "has yet to be implemented"
        raise NotImplementedError(msg)


def check_ray(ray_client):  # pragma: no cover
    """
    Check if Ray is initialized and, otherwise, raise an exception

    Due to the experimental nature of Ray support, a warning is
    also displayed.

    Parameters
    ----------
    ray_client : client
        A Ray client

    Returns
    -------
    None
    """
    if not ray_client.is_initialized():
        raise Exception("A Ray cluster could not be found!")

    ray_warning()


def ray_warning():
    """
    A generic warning for Ray support

    Parameters
    ----------
    None

    Returns
    -------
    None
    """
    msg = "Ray support is experimental and may be removed in the future.\n"
    msg += "Use at your own risk!"
    warnings.warn(msg)


def get_ray_nworkers(ray_client):
    """
    Return the total number of Ray workers in the cluster

    Parameters
    ----------
    ray_client : client
        A Ray client

    Returns
    -------
    nworkers : int
        Total number of Ray workers
    """
    return int(ray_client.cluster_resources().get("CPU"))
