# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import numpy as np
from numba import njit

from . import config, core
from .envelope import compute_envelope
from .exceptions import InvalidArgumentError, LengthMismatchError


@njit(fastmath=config.DTWLB_FASTMATH_FLAGS)
def _envelope_distance(T, lower, upper, p):
    """
    Accumulate the distances between `T` and the envelope, `(lower, upper)`, for
    all of the points of `T` that fall outside of the envelope

    Parameters
    ----------
    T : numpy.ndarray
        A univariate time series

    lower : numpy.ndarray
        Lower envelope

    upper : numpy.ndarray
        Upper envelope

    p : int
        The p-norm, which is either `1` or `2`

    Returns
    -------
    d : float
        The sum of the (p-th power of the) distances. The p-th root is not taken.
    """
    d = 0.0
    for i in range(T.shape[0]):
        if T[i] > upper[i]:
            diff = T[i] - upper[i]
        elif T[i] < lower[i]:
            diff = lower[i] - T[i]
        else:
            continue

        if p == 1:
            d += diff
        else:
            d += diff * diff

    return d


@njit(fastmath=config.DTWLB_FASTMATH_FLAGS)
def _project_onto_envelope(T, lower, upper, H):
    """
    Project `T` onto the envelope, `(lower, upper)`, and store the result in `H`

    Parameters
    ----------
    T : numpy.ndarray
        A univariate time series

    lower : numpy.ndarray
        Lower envelope

    upper : numpy.ndarray
        Upper envelope

    H : numpy.ndarray
        Output array for the projection

    Returns
    -------
    None
    """
    for i in range(T.shape[0]):
        if T[i] > upper[i]:
            H[i] = upper[i]
        elif T[i] < lower[i]:
            H[i] = lower[i]
        else:
            H[i] = T[i]


@njit(fastmath=config.DTWLB_FASTMATH_FLAGS)
def _p_root(d, p):
    """
    Take the p-th root of an accumulated distance
    """
    if p == 1:
        return d
    return np.sqrt(d)


@njit(fastmath=config.DTWLB_FASTMATH_FLAGS)
def _lb_keogh(x, lower, upper, p):
    """
    A Numba JIT-compiled version of the LB_Keogh lower bound

    Parameters
    ----------
    x : numpy.ndarray
        The reference time series

    lower : numpy.ndarray
        The lower envelope of the query time series

    upper : numpy.ndarray
        The upper envelope of the query time series

    p : int
        The p-norm, which is either `1` or `2`

    Returns
    -------
    d : float
        The LB_Keogh lower bound
    """
    return _p_root(_envelope_distance(x, lower, upper, p), p)


def _preprocess_lb(x, y, window, norm, lower_env, upper_env):
    """
    Validate the inputs shared by all of the lower bound functions and compute
    the envelopes of the query, `y`, when they are not provided

    Parameters
    ----------
    x : numpy.ndarray
        The reference time series

    y : numpy.ndarray
        The query time series

    window : int
        Window size (radius)

    norm : str
        Vector norm, either ``"L1"`` or ``"L2"``

    lower_env : numpy.ndarray
        The pre-computed lower envelope of `y` or `None`

    upper_env : numpy.ndarray
        The pre-computed upper envelope of `y` or `None`

    Returns
    -------
    x : numpy.ndarray
        The preprocessed reference

    y : numpy.ndarray
        The preprocessed query

    window : int
        The validated window size

    p : int
        The p-norm

    lower_env : numpy.ndarray
        The lower envelope of `y`

    upper_env : numpy.ndarray
        The upper envelope of `y`
    """
    p = core.check_norm(norm)
    window = core.check_window_size(window)
    x = core.preprocess_series(x, name="x")
    y = core.preprocess_series(y, name="y")

    if x.shape[0] != y.shape[0]:
        raise InvalidArgumentError(
            "The time series must have the same length but found "
            f"len(x) = {x.shape[0]} and len(y) = {y.shape[0]}"
        )

    if lower_env is None or upper_env is None:
        # Envelopes must be provided together
        lower_env, upper_env = compute_envelope(y, window)
    else:
        lower_env = core.preprocess_series(lower_env, name="lower_env")
        upper_env = core.preprocess_series(upper_env, name="upper_env")
        if lower_env.shape[0] != x.shape[0]:
            raise LengthMismatchError(
                "Length mismatch between `x` and the lower envelope"
            )
        if upper_env.shape[0] != x.shape[0]:
            raise LengthMismatchError(
                "Length mismatch between `x` and the upper envelope"
            )

    return x, y, window, p, lower_env, upper_env


def lb_keogh(
    x, y, window, norm="L1", lower_env=None, upper_env=None, force_symmetry=False
):
    """
    Compute the LB_Keogh lower bound of the DTW distance between two time series

    Parameters
    ----------
    x : numpy.ndarray
        The reference time series.

    y : numpy.ndarray
        The query time series. It must have the same length as ``x``.

    window : int
        Window size (radius) of the Sakoe-Chiba band.

    norm : str, default "L1"
        Vector norm. Either ``"L1"`` for the Manhattan distance or ``"L2"`` for the
        Euclidean distance.

    lower_env : numpy.ndarray, default None
        A pre-computed lower envelope of ``y``. See ``dtwlb.compute_envelope``.

    upper_env : numpy.ndarray, default None
        A pre-computed upper envelope of ``y``. See ``dtwlb.compute_envelope``.
        If either envelope is missing, then both envelopes are computed.

    force_symmetry : bool, default False
        If ``True``, a second lower bound is computed by swapping ``x`` and ``y``
        and the larger of the two lower bounds is returned.

    Returns
    -------
    out : float
        The LB_Keogh lower bound of the DTW distance.

    See Also
    --------
    dtwlb.lb_improved : Compute Lemire's improved lower bound of the DTW distance

    Notes
    -----
    `DOI: 10.1007/s10115-004-0154-9 \
    <https://www.cs.ucr.edu/~eamonn/LB_Keogh.pdf>`__

    The lower bound is only defined for time series of equal length and is not
    symmetric.
    """
    x, y, window, p, lower_env, upper_env = _preprocess_lb(
        x, y, window, norm, lower_env, upper_env
    )

    d = _lb_keogh(x, lower_env, upper_env, p)

    if force_symmetry:
        d = max(d, lb_keogh(y, x, window, norm=norm))

    return float(d)
