# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

from numba import njit

from . import config
from .exceptions import InvalidArgumentError
from .lbi import _lb_improved, lb_improved
from .lbk import _lb_keogh, lb_keogh

LB_IMPROVED = 0
LB_KEOGH = 1

# Kernel name -> (kernel id, kernel name, pairwise function). The kernel id selects
# the branch in `_compute_kernel`, which is how the compiled distance matrix loop
# calls a kernel.
DISTANCE_KERNELS = {
    "lb_improved": (LB_IMPROVED, "LB_Improved", lb_improved),
    "lb_keogh": (LB_KEOGH, "LB_Keogh", lb_keogh),
}


def get_kernel(kernel):
    """
    Look up a distance kernel by its name

    Parameters
    ----------
    kernel : str
        The kernel name. Either ``"lb_improved"`` or ``"lb_keogh"``
        (case-insensitive). The names ``"LB_Improved"`` and ``"LB_Keogh"`` are
        accepted as well.

    Returns
    -------
    kernel_id : int
        The kernel id that is passed to `_compute_kernel`

    method : str
        The display name of the kernel

    func : function
        The function that computes the kernel for a single pair of time series
    """
    if not isinstance(kernel, str) or kernel.lower() not in DISTANCE_KERNELS:
        msg = f"Unrecognized distance kernel `{kernel}`. "
        msg += f"Please choose one of {list(DISTANCE_KERNELS)}"
        raise InvalidArgumentError(msg)

    return DISTANCE_KERNELS[kernel.lower()]


@njit(fastmath=config.DTWLB_FASTMATH_FLAGS)
def _compute_kernel(
    kernel_id, x, y, window, p, lower, upper, H, L_H, U_H, max_deque, min_deque
):
    """
    Compute the distance kernel, `kernel_id`, between the reference, `x`, and the
    query, `y`

    Parameters
    ----------
    kernel_id : int
        The kernel id (see `DISTANCE_KERNELS`)

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
        Scratch array

    L_H : numpy.ndarray
        Scratch array

    U_H : numpy.ndarray
        Scratch array

    max_deque : numpy.ndarray
        Scratch (integer) array

    min_deque : numpy.ndarray
        Scratch (integer) array

    Returns
    -------
    d : float
        The distance
    """
    if kernel_id == LB_KEOGH:
        return _lb_keogh(x, lower, upper, p)

    return _lb_improved(
        x, y, window, p, lower, upper, H, L_H, U_H, max_deque, min_deque
    )
