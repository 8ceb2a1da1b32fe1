# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import warnings

import numpy as np
from numba import njit, prange

from . import config
from .exceptions import ShapeMismatchWarning


@njit(
    # "(f8[:, :],)",
    parallel=True,
    fastmath=config.DTWLB_FASTMATH_FLAGS,
)
def _force_lb_symmetry(D):
    """
    A Numba JIT-compiled and parallelized function that replaces every pair of
    mirrored cells, `D[i, j]` and `D[j, i]`, with the larger of the two values

    Parameters
    ----------
    D : numpy.ndarray
        A square distance matrix that is updated in place

    Returns
    -------
    None

    Notes
    -----
    Row `i` only writes to the cells `D[i, j]` and `D[j, i]` with `j > i`, so no two
    rows ever touch the same cell.
    """
    n = D.shape[0]
    for i in prange(n):
        for j in range(i + 1, n):
            if D[i, j] < D[j, i]:
                D[i, j] = D[j, i]
            else:
                D[j, i] = D[i, j]


def force_lb_symmetry(D):
    """
    Force the symmetry of a square matrix of (asymmetric) lower bounds so that the
    tightest lower bound is retained

    Parameters
    ----------
    D : numpy.ndarray
        A square cross-distance matrix of lower bounds. It is updated in place.

    Returns
    -------
    D : numpy.ndarray
        The same matrix where, for all ``i < j``, both ``D[i, j]`` and ``D[j, i]``
        are equal to ``max(D[i, j], D[j, i])``. The diagonal is left untouched.
        When ``D`` is not square, a ``ShapeMismatchWarning`` is issued and ``D`` is
        returned unchanged.

    Notes
    -----
    Both directional values are valid lower bounds of the (symmetric) DTW distance
    and so their maximum is a valid lower bound as well.

    Examples
    --------
    >>> import dtwlb
    >>> import numpy as np
    >>> dtwlb.force_lb_symmetry(np.array([[0., 1.], [3., 0.]]))
    array([[0., 3.],
           [3., 0.]])
    """
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        msg = "Unable to force symmetry. Resulting distance matrix is not square."
        warnings.warn(msg, ShapeMismatchWarning)
        return D

    _force_lb_symmetry(np.asarray(D))

    return D
