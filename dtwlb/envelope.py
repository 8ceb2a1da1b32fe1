# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import numpy as np
from numba import njit, prange

from . import config, core


@njit(
    # "(f8[:], i8, f8[:], f8[:], i8[:], i8[:])",
    fastmath=config.DTWLB_FASTMATH_FLAGS,
)
def _compute_envelope(T, window, lower, upper, max_deque, min_deque):
    """
    A Numba JIT-compiled streaming min/max filter that computes the lower and upper
    envelopes of `T` in a single pass

    Parameters
    ----------
    T : numpy.ndarray
        A univariate time series

    window : int
        Window size (radius)

    lower : numpy.ndarray
        Output array for the lower envelope (running minimum)

    upper : numpy.ndarray
        Output array for the upper envelope (running maximum)

    max_deque : numpy.ndarray
        A scratch array of at least `T.shape[0]` integers that backs the monotonic
        (non-increasing) deque of indices used for the running maximum

    min_deque : numpy.ndarray
        A scratch array of at least `T.shape[0]` integers that backs the monotonic
        (non-decreasing) deque of indices used for the running minimum

    Returns
    -------
    None

    Notes
    -----
    `DOI: 10.48550/arXiv.cs/0610046 <https://arxiv.org/abs/cs/0610046>`__

    See Algorithm 1 (Streaming Maximum-Minimum Filter)

    Every index is pushed onto each deque exactly once, so the back of a deque can
    never move past the number of pushed elements and a plain array (with a head
    and a tail pointer) is sufficient. Windows are truncated at the boundaries.
    """
    n = T.shape[0]
    window = min(window, n)
    max_head = 0
    max_tail = 0
    min_head = 0
    min_tail = 0

    for k in range(n + window):
        if k < n:
            while max_tail > max_head and T[max_deque[max_tail - 1]] <= T[k]:
                max_tail -= 1
            max_deque[max_tail] = k
            max_tail += 1

            while min_tail > min_head and T[min_deque[min_tail - 1]] >= T[k]:
                min_tail -= 1
            min_deque[min_tail] = k
            min_tail += 1

        i = k - window
        if i >= 0:
            while max_deque[max_head] < i - window:
                max_head += 1
            while min_deque[min_head] < i - window:
                min_head += 1

            upper[i] = T[max_deque[max_head]]
            lower[i] = T[min_deque[min_head]]

    return


@njit(
    # "(f8[:, :], i8)",
    parallel=True,
    fastmath=config.DTWLB_FASTMATH_FLAGS,
)
def _compute_envelopes(T, window):
    """
    A Numba JIT-compiled and parallelized function for computing the lower and
    upper envelopes of every time series (row) in `T`

    Parameters
    ----------
    T : numpy.ndarray
        A 2-D array where each row is a time series

    window : int
        Window size (radius)

    Returns
    -------
    L : numpy.ndarray
        The lower envelopes, one per row of `T`

    U : numpy.ndarray
        The upper envelopes, one per row of `T`
    """
    n_series, n = T.shape
    L = np.empty((n_series, n), dtype=np.float64)
    U = np.empty((n_series, n), dtype=np.float64)

    for idx in prange(n_series):
        max_deque = np.empty(n, dtype=np.int64)
        min_deque = np.empty(n, dtype=np.int64)
        _compute_envelope(T[idx], window, L[idx], U[idx], max_deque, min_deque)

    return L, U


def compute_envelope(T, window):
    """
    Compute the lower and upper envelopes of a time series

    The envelopes are the running minimum and maximum of ``T`` over a sliding
    window, ``[i - window, i + window]``, that is truncated at both ends of ``T``.

    Parameters
    ----------
    T : numpy.ndarray
        A univariate time series.

    window : int
        Window size (radius). This is the Sakoe-Chiba band constraint that is used
        for computing the DTW distance.

    Returns
    -------
    lower : numpy.ndarray
        The lower envelope, where ``lower[i] <= T[i]``.

    upper : numpy.ndarray
        The upper envelope, where ``upper[i] >= T[i]``.

    Notes
    -----
    `DOI: 10.48550/arXiv.cs/0610046 <https://arxiv.org/abs/cs/0610046>`__

    The envelopes are computed with the streaming maximum-minimum filter of Lemire,
    which requires no more than three comparisons per element and runs in linear
    time regardless of the window size.

    Examples
    --------
    >>> import dtwlb
    >>> import numpy as np
    >>> dtwlb.compute_envelope(np.array([1., 3., 2., 5., 4.]), window=1)
    (array([1., 1., 2., 2., 4.]), array([3., 3., 5., 5., 5.]))
    """
    T = core.preprocess_series(T)
    window = core.check_window_size(window)

    n = T.shape[0]
    lower = np.empty(n, dtype=np.float64)
    upper = np.empty(n, dtype=np.float64)
    max_deque = np.empty(n, dtype=np.int64)
    min_deque = np.empty(n, dtype=np.int64)
    _compute_envelope(T, window, lower, upper, max_deque, min_deque)

    return lower, upper
