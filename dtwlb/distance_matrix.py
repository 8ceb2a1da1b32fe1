# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import multiprocessing
from concurrent.futures import ProcessPoolExecutor

import numba
import numpy as np
from numba import njit, prange

from . import config, core, storage
from .distmat import distmat
from .envelope import _compute_envelopes
from .exceptions import ComputationFailure, InvalidArgumentError
from .kernels import _compute_kernel, get_kernel
from .symmetry import force_lb_symmetry
from .workers import WorkerConfig


@njit(
    # "(f8[:, :], f8[:, :], f8[:, :], f8[:, :], i8, i8, i8, b1, i8, i8, f8[:])",
    parallel=True,
    fastmath=config.DTWLB_FASTMATH_FLAGS,
)
def _distance_matrix(X, Y, L, U, window, p, kernel_id, pairwise, start, stop, out):
    """
    A Numba JIT-compiled and parallelized function that computes the distances for
    the (linear) task indices ``[start, stop)`` of a distance matrix

    Parameters
    ----------
    X : numpy.ndarray
        The reference time series, one per row

    Y : numpy.ndarray
        The query time series, one per row

    L : numpy.ndarray
        The lower envelopes of the query time series, one per row

    U : numpy.ndarray
        The upper envelopes of the query time series, one per row

    window : int
        Window size (radius)

    p : int
        The p-norm, which is either `1` or `2`

    kernel_id : int
        The distance kernel id

    pairwise : bool
        When `True`, task `t` is the distance between `X[t]` and `Y[t]`. Otherwise,
        task `t` is the cell `(t // n_y, t % n_y)` of the row-major cross-distance
        matrix.

    start : int
        The first (inclusive) task index

    stop : int
        The last (exclusive) task index

    out : numpy.ndarray
        The output array of length `stop - start`

    Returns
    -------
    None

    Notes
    -----
    The task range is split into one contiguous sub-range per thread and each
    thread owns its own scratch arrays so that threads never write to the same
    memory.
    """
    n_threads = numba.get_num_threads()
    n = X.shape[1]
    n_y = Y.shape[0]

    task_ranges = core._get_task_ranges(stop - start, n_threads)

    H = np.empty((n_threads, n), dtype=np.float64)
    L_H = np.empty((n_threads, n), dtype=np.float64)
    U_H = np.empty((n_threads, n), dtype=np.float64)
    max_deque = np.empty((n_threads, n), dtype=np.int64)
    min_deque = np.empty((n_threads, n), dtype=np.int64)

    for thread_idx in prange(n_threads):
        for idx in range(task_ranges[thread_idx, 0], task_ranges[thread_idx, 1]):
            task = start + idx
            if pairwise:
                i = task
                j = task
            else:
                i = task // n_y
                j = task - i * n_y

            out[idx] = _compute_kernel(
                kernel_id,
                X[i],
                Y[j],
                window,
                p,
                L[j],
                U[j],
                H[thread_idx],
                L_H[thread_idx],
                U_H[thread_idx],
                max_deque[thread_idx],
                min_deque[thread_idx],
            )


def _distance_matrix_worker(
    X,
    Y,
    L,
    U,
    window,
    p,
    kernel_id,
    pairwise,
    start,
    stop,
    n_threads,
    descriptor=None,
):
    """
    Compute one contiguous range of a distance matrix. This is the unit of work that
    is submitted to each outer worker.

    Parameters
    ----------
    X : numpy.ndarray
        The reference time series, one per row

    Y : numpy.ndarray
        The query time series, one per row

    L : numpy.ndarray
        The lower envelopes of the query time series, one per row

    U : numpy.ndarray
        The upper envelopes of the query time series, one per row

    window : int
        Window size (radius)

    p : int
        The p-norm, which is either `1` or `2`

    kernel_id : int
        The distance kernel id

    pairwise : bool
        Whether the distances are pairwise

    start : int
        The first (inclusive) task index

    stop : int
        The last (exclusive) task index

    n_threads : int
        The number of `numba` threads to use while computing this range. The prior
        number of threads is restored afterward.

    descriptor : DistMatDescriptor, default None
        When provided, the distances are written directly into the file-backed
        storage that is described by `descriptor`

    Returns
    -------
    out : numpy.ndarray
        The distances for the task indices ``[start, stop)`` or `None` when they
        were written directly into the file-backed storage
    """
    start = int(start)
    stop = int(stop)

    if descriptor is None:
        D = None
        out = np.empty(stop - start, dtype=np.float64)
    else:
        D = storage.attach(descriptor)
        out = np.asarray(D.reshape(-1)[start:stop])

    prev_n_threads = numba.get_num_threads()
    numba.set_num_threads(min(n_threads, numba.config.NUMBA_NUM_THREADS))
    try:
        _distance_matrix(
            X, Y, L, U, window, p, kernel_id, bool(pairwise), start, stop, out
        )
    finally:
        numba.set_num_threads(prev_n_threads)

    if D is None:
        return out

    D.flush()
    return None


def _preprocess_distance_matrix(X, Y, window, norm, pairwise, kernel, worker_config):
    """
    Validate all of the inputs of a distance matrix computation

    Parameters
    ----------
    X : list, numpy.ndarray, dict, or DataFrame
        The reference time series

    Y : list, numpy.ndarray, dict, or DataFrame
        The query time series or `None`, in which case `Y = X`

    window : int
        Window size (radius)

    norm : str
        Vector norm, either ``"L1"`` or ``"L2"``

    pairwise : bool
        Whether the distances are pairwise

    kernel : str
        The distance kernel name

    worker_config : WorkerConfig
        The parallelism settings or `None`

    Returns
    -------
    X : numpy.ndarray
        The reference time series, one per row

    Y : numpy.ndarray
        The query time series, one per row

    window : int
        The validated window size

    p : int
        The p-norm

    kernel_id : int
        The distance kernel id

    method : str
        The distance kernel display name

    row_labels : list
        The labels of `X` or `None`

    col_labels : list
        The labels of `Y` or `None`

    worker_config : WorkerConfig
        The parallelism settings
    """
    kernel_id, method, _ = get_kernel(kernel)
    p = core.check_norm(norm)
    window = core.check_window_size(window)

    if worker_config is None:
        worker_config = WorkerConfig()
    elif not isinstance(worker_config, WorkerConfig):
        raise InvalidArgumentError(
            f"`worker_config` must be a `WorkerConfig` but found `{worker_config}`"
        )

    X, row_labels = core.preprocess_series_list(X, name="X")
    if Y is None:
        Y = X
        col_labels = row_labels
    else:
        Y, col_labels = core.preprocess_series_list(Y, name="Y")

    if X.shape[1] != Y.shape[1]:
        msg = "The time series in `X` and `Y` must have the same length but found "
        msg += f"{X.shape[1]} and {Y.shape[1]}"
        raise InvalidArgumentError(msg)

    if pairwise and X.shape[0] != Y.shape[0]:
        msg = "Pairwise distances require the same number of time series in `X` "
        msg += f"and `Y` but found {X.shape[0]} and {Y.shape[0]}"
        raise InvalidArgumentError(msg)

    return X, Y, window, p, kernel_id, method, row_labels, col_labels, worker_config


def _get_shape(X, Y, pairwise):
    """
    Return the shape of the distance matrix
    """
    if pairwise:
        return (X.shape[0],)

    return (X.shape[0], Y.shape[0])


def _write_results(D, task_ranges, results):
    """
    Copy the distances that were returned by each outer worker into their
    (disjoint) cells of the distance matrix, `D`

    Parameters
    ----------
    D : numpy.ndarray
        The distance matrix storage

    task_ranges : numpy.ndarray
        The `[start, stop)` task range of each outer worker

    results : list
        The output of each outer worker. `None` means that the worker has already
        written its distances into the (file-backed) storage.

    Returns
    -------
    None
    """
    D_flat = D.reshape(-1)
    for (start, stop), out in zip(task_ranges, results):
        if out is not None:
            D_flat[start:stop] = out

    if isinstance(D, np.memmap):
        D.flush()


def _postprocess(D, method, pairwise, force_symmetry, row_labels, col_labels):
    """
    Optionally force the symmetry of the lower bounds and wrap the storage in a
    `distmat`
    """
    if force_symmetry and not pairwise:
        force_lb_symmetry(D)
        if isinstance(D, np.memmap):
            D.flush()

    return distmat(D, method, bool(pairwise), row_labels, col_labels)


def _local_distance_matrix(
    X, Y, L, U, window, p, kernel_id, pairwise, task_ranges, n_threads, descriptor
):
    """
    Compute a distance matrix with one local process per task range

    Parameters
    ----------
    X : numpy.ndarray
        The reference time series, one per row

    Y : numpy.ndarray
        The query time series, one per row

    L : numpy.ndarray
        The lower envelopes of the query time series, one per row

    U : numpy.ndarray
        The upper envelopes of the query time series, one per row

    window : int
        Window size (radius)

    p : int
        The p-norm, which is either `1` or `2`

    kernel_id : int
        The distance kernel id

    pairwise : bool
        Whether the distances are pairwise

    task_ranges : numpy.ndarray
        The `[start, stop)` task range of each outer worker

    n_threads : int
        The number of `numba` threads used by each outer worker

    descriptor : DistMatDescriptor
        The descriptor of the file-backed storage or `None`

    Returns
    -------
    results : list
        The output of each outer worker
    """
    if task_ranges.shape[0] == 1:
        start, stop = task_ranges[0]
        return [
            _distance_matrix_worker(
                X,
                Y,
                L,
                U,
                window,
                p,
                kernel_id,
                pairwise,
                start,
                stop,
                n_threads,
                descriptor,
            )
        ]

    # Never fork a process that already runs `numba` worker threads
    mp_context = multiprocessing.get_context("spawn")
    with ProcessPoolExecutor(
        max_workers=task_ranges.shape[0], mp_context=mp_context
    ) as executor:
        futures = []
        for start, stop in task_ranges:
            futures.append(
                executor.submit(
                    _distance_matrix_worker,
                    X,
                    Y,
                    L,
                    U,
                    window,
                    p,
                    kernel_id,
                    pairwise,
                    int(start),
                    int(stop),
                    n_threads,
                    descriptor,
                )
            )

        results = [future.result() for future in futures]

    return results


def distance_matrix(
    X,
    Y=None,
    window=None,
    norm="L1",
    pairwise=False,
    force_symmetry=False,
    worker_config=None,
    kernel="lb_improved",
    out_of_core=None,
):
    """
    Compute the lower bound (of the DTW distance) distance matrix between two sets
    of time series

    This is a convenience wrapper around the Numba JIT-compiled parallelized
    ``_distance_matrix`` function. The envelopes of the query time series are
    computed only once and the task space is split across the outer workers (local
    processes), each of which uses its own pool of ``numba`` threads.

    Parameters
    ----------
    X : list, numpy.ndarray, dict, or DataFrame
        The reference time series. Either a list of (equal-length) univariate time
        series, a 2-D array with one time series per row, a dictionary that maps
        labels to time series, or a ``pandas`` ``DataFrame`` with one time series
        per row.

    Y : list, numpy.ndarray, dict, or DataFrame, default None
        The query time series. Default is ``None``, which corresponds to ``Y = X``.

    window : int
        Window size (radius) of the Sakoe-Chiba band.

    norm : str, default "L1"
        Vector norm. Either ``"L1"`` for the Manhattan distance or ``"L2"`` for the
        Euclidean distance.

    pairwise : bool, default False
        When ``True``, the distance between ``X[k]`` and ``Y[k]`` is computed for
        each ``k`` and a 1-D array is returned. This requires ``len(X) == len(Y)``.
        Otherwise, the full ``len(X)`` by ``len(Y)`` cross-distance matrix is
        returned.

    force_symmetry : bool, default False
        When ``True`` (and ``pairwise = False``), compare the lower and upper
        triangles of the resulting square distance matrix and keep the larger
        (tighter) lower bound in both. This should only be used when ``Y`` is
        ``None`` or identical to ``X``.

    worker_config : WorkerConfig, default None
        The number of outer workers (processes) and inner (``numba``) threads. See
        ``dtwlb.WorkerConfig``. Default is a single outer worker that uses all of
        the available threads.

    kernel : str, default "lb_improved"
        The distance kernel. Either ``"lb_improved"`` or ``"lb_keogh"``.

    out_of_core : bool, default None
        Force (``True``) or prevent (``False``) a file-backed (memory-mapped)
        distance matrix. When ``None``, the distance matrix is file-backed whenever
        it has more than ``config.DTWLB_MAX_IN_MEMORY_ELEMENTS`` elements.

    Returns
    -------
    out : distmat
        The ``len(X)`` by ``len(Y)`` cross-distance matrix (rows correspond to
        ``X`` and columns correspond to ``Y``) or, when ``pairwise = True``, the
        ``len(X)`` pairwise distances. The kernel name and the row/column labels
        are available via the ``.method_``, ``.row_labels_``, and ``.col_labels_``
        array attributes.

    Raises
    ------
    InvalidArgumentError
        If any of the inputs are invalid. All inputs are checked before any
        computation begins.

    ComputationFailure
        If any outer worker fails. No partial result is returned.

    See Also
    --------
    dtwlb.distance_matrixed : Compute the lower bound distance matrix with a
        ``dask``/``ray`` cluster
    dtwlb.lb_improved : Compute Lemire's improved lower bound of the DTW distance

    Notes
    -----
    `DOI: 10.1016/j.patcog.2008.11.030 <https://arxiv.org/abs/0811.3301>`__

    The lower bounds are not symmetric. Each row of the distance matrix uses the
    corresponding time series in ``X`` as the reference and each column uses the
    corresponding time series in ``Y`` as the query.

    Examples
    --------
    >>> import dtwlb
    >>> import numpy as np
    >>> X = [np.array([0., 0., 0., 0.]), np.array([10., 10., 10., 10.])]
    >>> dtwlb.distance_matrix(X, window=0)
    distmat([[ 0., 40.],
             [40.,  0.]])
    """
    (
        X,
        Y,
        window,
        p,
        kernel_id,
        method,
        row_labels,
        col_labels,
        worker_config,
    ) = _preprocess_distance_matrix(
        X, Y, window, norm, pairwise, kernel, worker_config
    )
    pairwise = bool(pairwise)

    shape = _get_shape(X, Y, pairwise)
    n_tasks = int(np.prod(shape))
    task_ranges = core._get_task_ranges(
        n_tasks, worker_config.get_n_workers(), truncate=True
    )
    n_threads = worker_config.get_n_threads(task_ranges.shape[0])

    L, U = _compute_envelopes(Y, window)

    D = storage.allocate(shape, out_of_core=out_of_core)
    descriptor = storage.describe(D)

    try:
        results = _local_distance_matrix(
            X,
            Y,
            L,
            U,
            window,
            p,
            kernel_id,
            pairwise,
            task_ranges,
            n_threads,
            descriptor,
        )
        _write_results(D, task_ranges, results)
    except Exception as e:
        storage.release(D)
        msg = f"Unable to compute the {method} distance matrix"
        raise ComputationFailure(msg) from e

    return _postprocess(D, method, pairwise, force_symmetry, row_labels, col_labels)
