# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import numpy as np
from numba import njit

from . import config
from .envelope import _compute_envelope
from .lbk import _envelope_distance, _p_root, _preprocess_lb, _project_onto_envelope


@njit(
    # "(f8[:], f8[:], i8, i8, f8[:], f8[:], f8[:], f8[:], f8[:], i8[:], i8[:])",
    fastmath=config.DTWLB_FASTMATH_FLAGS,
)
def _lb_improved(x, y, window, p, lower, upper, H, L_H, U_H, max_deque, min_deque):
    """
    A Numba JIT-compiled version of Lemire's two-pass LB_Improved lower bound

    Parameters
    ----------
    x : numpy.ndarray
        The reference time series

    y : numpy.ndarray
        The query time series

    window : int
        Window size (radius)

    p : int
        The p-norm, which is either `1` or `2`

    lower : numpy.ndarray
        The lower envelope of `y`

    upper : numpy.ndarray
        The upper envelope of `y`

    H : numpy.ndarray
        Scratch array for the projection of `x` onto the envelope of `y`

    L_H : numpy.ndarray
        Scratch array for the lower envelope of `H`

    U_H : numpy.ndarray
        Scratch array for the upper envelope of `H`

    max_deque : numpy.ndarray
        Scratch (integer) array used by `_compute_envelope`

    min_deque : numpy.ndarray
        Scratch (integer) array used by `_compute_envelope`

    Returns
    -------
    d : float
        The LB_Improved lower bound

    Notes
    -----
    `DOI: 10.1016/j.patcog.2008.11.030 <https://arxiv.org/abs/0811.3301>`__

    See Section 6

    The first pass is LB_Keogh. Then, `x` is projected onto the envelope of `y` so
    that `H` equals `x` wherever the first pass contributed nothing and equals the
    nearest envelope boundary elsewhere. Finally, `y` is compared against the
    envelope of `H` and the second contribution is added to the first one.
    """
    d = _envelope_distance(x, lower, upper, p)
    _project_onto_envelope(x, lower, upper, H)
    _compute_envelope(H, window, L_H, U_H, max_deque, min_deque)
    d += _envelope_distance(y, L_H, U_H, p)

    return _p_root(d, p)


def lb_improved(
    x, y, window, norm="L1", lower_env=None, upper_env=None, force_symmetry=False
):
    """
    Compute Lemire's improved lower bound (LB_Improved) of the DTW distance between
    two time series with a Sakoe-Chiba constraint

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
        A pre-computed lower envelope of ``y`` (the query). See
        ``dtwlb.compute_envelope``.

    upper_env : numpy.ndarray, default None
        A pre-computed upper envelope of ``y`` (the query). See
        ``dtwlb.compute_envelope``. If either envelope is missing, then both
        envelopes are computed.

    force_symmetry : bool, default False
        If ``True``, a second lower bound is computed by swapping ``x`` and ``y``
        and whichever result has the higher distance value is returned.

    Returns
    -------
    out : float
        The improved lower bound of the DTW distance.

    See Also
    --------
    dtwlb.lb_keogh : Compute the LB_Keogh lower bound of the DTW distance
    dtwlb.distance_matrix : Compute a lower bound distance matrix

    Notes
    -----
    `DOI: 10.1016/j.patcog.2008.11.030 <https://arxiv.org/abs/0811.3301>`__

    The lower bound is only defined for time series of equal length and is **not**
    symmetric. The reference time series should go in ``x`` whereas the query time
    series should go in ``y``.

    For computing the lower bound between several time series, use
    ``dtwlb.distance_matrix``, which computes the envelope of each query only once.

    Examples
    --------
    >>> import dtwlb
    >>> import numpy as np
    >>> dtwlb.lb_improved(np.zeros(4), np.full(4, 10.0), window=0)
    40.0
    """
    x, y, window, p, lower_env, upper_env = _preprocess_lb(
        x, y, window, norm, lower_env, upper_env
    )

    n = x.shape[0]
    H = np.empty(n, dtype=np.float64)
    L_H = np.empty(n, dtype=np.float64)
    U_H = np.empty(n, dtype=np.float64)
    max_deque = np.empty(n, dtype=np.int64)
    min_deque = np.empty(n, dtype=np.int64)

    d = _lb_improved(
        x, y, window, p, lower_env, upper_env, H, L_H, U_H, max_deque, min_deque
    )

    if force_symmetry:
        d = max(d, lb_improved(y, x, window, norm=norm))

    return float(d)
