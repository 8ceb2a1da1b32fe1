# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import collections
import math
import pathlib
import tempfile

import numpy as np

from . import config

DistMatDescriptor = collections.namedtuple(
    "DistMatDescriptor", ["filename", "shape", "dtype"]
)
DistMatDescriptor.__doc__ = """
A lightweight (and picklable) description of a file-backed distance matrix that
allows any process to re-open the same storage with `attach`
"""


def _use_out_of_core(shape, out_of_core=None):
    """
    Decide whether a distance matrix with a given `shape` should be file-backed

    Parameters
    ----------
    shape : tuple
        The shape of the distance matrix

    out_of_core : bool, default None
        Force (`True`) or prevent (`False`) file-backed storage. When `None`, the
        storage is file-backed whenever the number of elements exceeds
        `config.DTWLB_MAX_IN_MEMORY_ELEMENTS`.

    Returns
    -------
    out : bool
        `True` if the storage should be file-backed
    """
    if out_of_core is not None:
        return bool(out_of_core)

    return math.prod(shape) > config.DTWLB_MAX_IN_MEMORY_ELEMENTS


def allocate(shape, out_of_core=None):
    """
    Allocate the storage for a distance matrix

    Parameters
    ----------
    shape : tuple
        The shape of the distance matrix. This is ``(n_x, n_y)`` for a cross-distance
        matrix and ``(n_x,)`` for pairwise distances.

    out_of_core : bool, default None
        Force (``True``) or prevent (``False``) file-backed storage. When ``None``,
        the storage is file-backed whenever the number of elements exceeds
        ``config.DTWLB_MAX_IN_MEMORY_ELEMENTS``.

    Returns
    -------
    D : numpy.ndarray
        An in-memory array filled with ``np.nan`` or, for file-backed storage, a
        writable ``numpy.memmap`` of a ``.npy`` file in ``config.DTWLB_TEMP_DIR``.
        Both are addressed with the same row-major (flat) indexing.
    """
    shape = tuple(int(s) for s in shape)
    if not _use_out_of_core(shape, out_of_core):
        return np.full(shape, np.nan, dtype=np.float64)

    with tempfile.NamedTemporaryFile(
        prefix="dtwlb_", suffix=".npy", dir=config.DTWLB_TEMP_DIR, delete=False
    ) as f:
        fname = f.name

    return np.lib.format.open_memmap(fname, mode="w+", dtype=np.float64, shape=shape)


def is_out_of_core(D):
    """
    Check whether a distance matrix is backed by a file

    Parameters
    ----------
    D : numpy.ndarray
        A distance matrix

    Returns
    -------
    out : bool
        `True` if `D` (or the array that it is a view of) is a `numpy.memmap`
    """
    return _get_memmap(D) is not None


def _get_memmap(D):
    """
    Return the `numpy.memmap` that backs `D` or `None` for in-memory arrays
    """
    while D is not None:
        if isinstance(D, np.memmap) and D.filename is not None:
            return D
        D = getattr(D, "base", None)
        if not isinstance(D, np.ndarray):
            return None

    return None  # pragma: no cover


def describe(D):
    """
    Describe a file-backed distance matrix

    Parameters
    ----------
    D : numpy.ndarray
        A distance matrix

    Returns
    -------
    descriptor : DistMatDescriptor
        The file name, shape, and dtype of the storage. This is `None` when `D` is
        held in memory.
    """
    mm = _get_memmap(D)
    if mm is None:
        return None

    return DistMatDescriptor(
        str(mm.filename), tuple(mm.shape), np.dtype(mm.dtype).str
    )


def attach(descriptor):
    """
    Re-open a file-backed distance matrix for reading and writing

    Parameters
    ----------
    descriptor : DistMatDescriptor
        The descriptor returned by `describe`

    Returns
    -------
    D : numpy.memmap
        A writable memory-mapped view of the distance matrix
    """
    D = np.lib.format.open_memmap(descriptor.filename, mode="r+")
    if tuple(D.shape) != tuple(descriptor.shape) or D.dtype != np.dtype(
        descriptor.dtype
    ):  # pragma: no cover
        msg = f"The storage in `{descriptor.filename}` does not match its descriptor"
        raise ValueError(msg)

    return D


def release(D):
    """
    Delete the file that backs a distance matrix

    Parameters
    ----------
    D : numpy.ndarray
        A distance matrix. Nothing happens when `D` is held in memory.

    Returns
    -------
    None

    Notes
    -----
    `D` (and any view of it) must not be used after its storage has been released.
    """
    mm = _get_memmap(D)
    if mm is None:
        return

    pathlib.Path(mm.filename).unlink(missing_ok=True)

    return
