# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import numbers

import numba

from .exceptions import InvalidArgumentError


def _check_count(value, name, minimum):
    if value is None:
        return None

    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgumentError(f"`{name}` must be an integer but found `{value}`")

    if value < minimum:
        raise InvalidArgumentError(
            f"`{name}` must be greater than or equal to {minimum} but found `{value}`"
        )

    return int(value)


class WorkerConfig:
    """
    The outer (process-level) and inner (thread-level) parallelism used for
    computing a distance matrix

    Parameters
    ----------
    n_workers : int, default None
        The number of outer workers. Each outer worker is assigned one contiguous
        range of distance matrix cells. When ``None``, the number of outer workers
        is chosen by the environment (a single local worker or, for a distributed
        client, one worker per cluster worker). ``0`` and ``1`` are equivalent.

    n_threads : int, default None
        The number of (``numba``) threads used inside of each outer worker. When
        ``None`` and more than one outer worker is active, each outer worker uses
        exactly one thread in order to avoid oversubscription. When ``None`` and
        only one outer worker is active, all available threads are used. An
        explicitly set value is always respected (up to the size of the ``numba``
        thread pool).

    Notes
    -----
    A `WorkerConfig` is immutable and may be reused for any number of calls.
    """

    __slots__ = ("_n_workers", "_n_threads")

    def __init__(self, n_workers=None, n_threads=None):
        self._n_workers = _check_count(n_workers, "n_workers", 0)
        self._n_threads = _check_count(n_threads, "n_threads", 1)

    @property
    def n_workers(self):
        """
        The configured number of outer workers or `None`
        """
        return self._n_workers

    @property
    def n_threads(self):
        """
        The configured number of inner threads or `None`
        """
        return self._n_threads

    def get_n_workers(self, default=1):
        """
        Resolve the number of outer workers

        Parameters
        ----------
        default : int, default 1
            The number of outer workers that is used when `n_workers` is not set

        Returns
        -------
        n_workers : int
            The number of outer workers (at least one)
        """
        n_workers = self._n_workers if self._n_workers is not None else default
        return max(1, n_workers)

    def get_n_threads(self, n_workers):
        """
        Resolve the number of inner threads for each outer worker

        Parameters
        ----------
        n_workers : int
            The number of active outer workers

        Returns
        -------
        n_threads : int
            The number of inner threads
        """
        max_threads = numba.config.NUMBA_NUM_THREADS
        if self._n_threads is not None:
            return min(self._n_threads, max_threads)

        if n_workers > 1:
            return 1

        return max_threads

    def __repr__(self):
        return f"WorkerConfig(n_workers={self._n_workers}, n_threads={self._n_threads})"

    def __eq__(self, other):
        if not isinstance(other, WorkerConfig):
            return NotImplemented
        return (self._n_workers, self._n_threads) == (
            other._n_workers,
            other._n_threads,
        )

    def __hash__(self):
        return hash((self._n_workers, self._n_threads))
