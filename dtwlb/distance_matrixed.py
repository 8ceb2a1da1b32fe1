# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

from . import core, storage
from .distance_matrix import (
    _distance_matrix_worker,
    _get_shape,
    _postprocess,
    _preprocess_distance_matrix,
    _write_results,
)
from .envelope import _compute_envelopes
from .exceptions import ComputationFailure


def _dask_distance_matrixed(
    dask_client,
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
):
    """
    Compute a lower bound distance matrix with a `dask` cluster

    Parameters
    ----------
    dask_client : client
        A `dask` client. Setting up a cluster is beyond the scope of this library.
        Please refer to the `dask` documentation.

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
        The descriptor of the file-backed storage or `None`. File-backed storage
        must be reachable (e.g., on a shared file system) from every `dask` worker.

    Returns
    -------
    results : list
        The output of each outer worker
    """
    # Scatter data to Dask cluster
    X_future = dask_client.scatter(X, broadcast=True, hash=False)
    Y_future = dask_client.scatter(Y, broadcast=True, hash=False)
    L_future = dask_client.scatter(L, broadcast=True, hash=False)
    U_future = dask_client.scatter(U, broadcast=True, hash=False)

    futures = []
    for start, stop in task_ranges:
        futures.append(
            dask_client.submit(
                _distance_matrix_worker,
                X_future,
                Y_future,
                L_future,
                U_future,
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

    return dask_client.gather(futures)


def _ray_distance_matrixed(
    ray_client,
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
):
    """
    Compute a lower bound distance matrix with a `ray` cluster

    Parameters
    ----------
    ray_client : client
        A `ray` client. Setting up a cluster is beyond the scope of this library.
        Please refer to the `ray` documentation.

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
    # Put data in the Ray object store
    X_ref = ray_client.put(X)
    Y_ref = ray_client.put(Y)
    L_ref = ray_client.put(L)
    U_ref = ray_client.put(U)

    ray_worker_func = ray_client.remote(_distance_matrix_worker)

    refs = []
    for start, stop in task_ranges:
        refs.append(
            ray_worker_func.remote(
                X_ref,
                Y_ref,
                L_ref,
                U_ref,
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

    # Results from Ray's object store are read-only and are copied into `D`
    return ray_client.get(refs)


_CLIENT_FUNCS = {
    "dask": _dask_distance_matrixed,
    "ray": _ray_distance_matrixed,
}


def distance_matrixed(
    client,
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
    of time series with a ``dask``/``ray`` cluster

    This is a highly distributed implementation around the Numba JIT-compiled
    parallelized ``_distance_matrix`` function. The task space is split into one
    contiguous range per outer (cluster) worker and each outer worker uses its own
    pool of ``numba`` threads.

    Parameters
    ----------
    client : client
        A ``dask``/``ray`` client. Setting up a cluster is beyond the scope of this
        library. Please refer to the ``dask``/``ray`` documentation.

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

    force_symmetry : bool, default False
        When ``True`` (and ``pairwise = False``), keep the larger (tighter) of the
        two mirrored lower bounds of the resulting square distance matrix.

    worker_config : WorkerConfig, default None
        The number of outer workers and inner (``numba``) threads. By default, one
        outer worker is used per ``dask`` worker (or per ``ray`` CPU) and, since
        there is usually more than one, each outer worker uses a single thread.

    kernel : str, default "lb_improved"
        The distance kernel. Either ``"lb_improved"`` or ``"lb_keogh"``.

    out_of_core : bool, default None
        Force (``True``) or prevent (``False``) a file-backed (memory-mapped)
        distance matrix. A file-backed distance matrix is written to directly by
        the cluster workers and so ``config.DTWLB_TEMP_DIR`` must be reachable from
        all of them.

    Returns
    -------
    out : distmat
        The ``len(X)`` by ``len(Y)`` cross-distance matrix or, when
        ``pairwise = True``, the ``len(X)`` pairwise distances.

    See Also
    --------
    dtwlb.distance_matrix : Compute the lower bound distance matrix

    Notes
    -----
    `DOI: 10.1016/j.patcog.2008.11.030 <https://arxiv.org/abs/0811.3301>`__

    Examples
    --------
    >>> import dtwlb
    >>> import numpy as np
    >>> from dask.distributed import Client
    >>> if __name__ == "__main__":
    ...     with Client() as dask_client:
    ...         dtwlb.distance_matrixed(
    ...             dask_client,
    ...             [np.zeros(4), np.full(4, 10.0)],
    ...             window=0)
    distmat([[ 0., 40.],
             [40.,  0.]])

    Alternatively, you can also use `ray`

    >>> import ray
    >>> if __name__ == "__main__":
    ...     ray.init()
    ...     dtwlb.distance_matrixed(
    ...             ray,
    ...             [np.zeros(4), np.full(4, 10.0)],
    ...             window=0)
    ...     ray.shutdown()
    """
    client_type = core.get_client_type(client)

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

    if client_type == "ray":  # pragma: no cover
        core.check_ray(client)
        nworkers = core.get_ray_nworkers(client)
    else:
        nworkers = len(client.ncores())

    shape = _get_shape(X, Y, pairwise)
    n_tasks = int(shape[0] if pairwise else shape[0] * shape[1])
    task_ranges = core._get_task_ranges(
        n_tasks, worker_config.get_n_workers(default=nworkers), truncate=True
    )
    n_threads = worker_config.get_n_threads(task_ranges.shape[0])

    L, U = _compute_envelopes(Y, window)

    D = storage.allocate(shape, out_of_core=out_of_core)
    descriptor = storage.describe(D)

    _distance_matrixed = _CLIENT_FUNCS[client_type]
    try:
        results = _distance_matrixed(
            client,
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
