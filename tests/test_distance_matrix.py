import importlib
from unittest.mock import patch

import naive
import numba
import numpy as np
import numpy.testing as npt
import pandas as pd
import pytest

from dtwlb import WorkerConfig, config, distance_matrix, storage
from dtwlb.exceptions import (
    ComputationFailure,
    InvalidArgumentError,
    UnsupportedInputError,
)

test_data = [
    (
        np.array(
            [[584, -11, 23, 79, 1001, 0, -19], [9, 8100, -60, 7, 33, -5, 12]],
            dtype=np.float64,
        ),
        np.array(
            [[1, 2, 3, 4, 5, 6, 7], [0, 0, 0, 0, 0, 0, 0], [-3, 8, 1, 0, 2, 9, -1]],
            dtype=np.float64,
        ),
    ),
    (
        np.random.uniform(-1000, 1000, [6, 32]).astype(np.float64),
        np.random.uniform(-1000, 1000, [5, 32]).astype(np.float64),
    ),
]

windows = [0, 2, 5]
norms = ["L1", "L2"]
P = {"L1": 1, "L2": 2}
kernels = ["lb_improved", "lb_keogh"]

# `dtwlb.distance_matrix` is the function, not the module
distance_matrix_module = importlib.import_module("dtwlb.distance_matrix")


@pytest.fixture
def temp_dir(tmp_path):
    config.DTWLB_TEMP_DIR = str(tmp_path)
    yield tmp_path
    config._reset("DTWLB_TEMP_DIR")


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("w", windows)
@pytest.mark.parametrize("norm", norms)
def test_distance_matrix_cross(X, Y, w, norm):
    ref = naive.distance_matrix(X, Y, w, P[norm])
    cmp = distance_matrix(X, Y, window=w, norm=norm)

    assert cmp.shape == (X.shape[0], Y.shape[0])
    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("kernel", kernels)
def test_distance_matrix_kernel(X, Y, kernel):
    ref = naive.distance_matrix(X, Y, 2, 1, kernel=kernel)
    cmp = distance_matrix(X, Y, window=2, kernel=kernel)

    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("norm", norms)
def test_distance_matrix_self(X, Y, norm):
    ref = naive.distance_matrix(Y, None, 2, P[norm])
    cmp = distance_matrix(Y, window=2, norm=norm)

    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)
    npt.assert_almost_equal(np.diag(cmp), 0.0)


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("norm", norms)
def test_distance_matrix_pairwise(X, Y, norm):
    Z = X[::-1] + 1.0
    ref = naive.distance_matrix(X, Z, 2, P[norm], pairwise=True)
    cmp = distance_matrix(X, Z, window=2, norm=norm, pairwise=True)

    assert cmp.shape == (X.shape[0],)
    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("norm", norms)
def test_distance_matrix_force_symmetry(X, Y, norm):
    ref = naive.distance_matrix(Y, None, 2, P[norm], force_symmetry=True)
    cmp = distance_matrix(Y, window=2, norm=norm, force_symmetry=True)

    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)
    npt.assert_almost_equal(cmp, cmp.T)


def test_distance_matrix_force_symmetry_pairwise():
    X, Y = test_data[0]
    ref = naive.distance_matrix(X, X[::-1], 2, 1, pairwise=True)
    cmp = distance_matrix(X, X[::-1], window=2, pairwise=True, force_symmetry=True)

    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("norm", norms)
def test_distance_matrix_lower_bounds_dtw(X, Y, norm):
    w = 2
    cmp = distance_matrix(X, Y, window=w, norm=norm, force_symmetry=False)
    for i in range(X.shape[0]):
        for j in range(Y.shape[0]):
            assert cmp[i, j] <= naive.dtw(X[i], Y[j], w, P[norm]) + 1e-6


def test_distance_matrix_constant_offset():
    X = [np.zeros(4), np.full(4, 10.0)]
    ref = np.array([[0.0, 40.0], [40.0, 0.0]])
    cmp = distance_matrix(X, window=0)

    npt.assert_almost_equal(ref, cmp)


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("n_threads", [1, 2, 3])
def test_distance_matrix_n_threads(X, Y, n_threads):
    ref = naive.distance_matrix(X, Y, 2, 1)
    worker_config = WorkerConfig(n_threads=n_threads)
    prev_n_threads = numba.get_num_threads()

    cmp = distance_matrix(X, Y, window=2, worker_config=worker_config)

    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)
    assert numba.get_num_threads() == prev_n_threads


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("pairwise", [False, True])
def test_distance_matrix_n_workers(X, Y, pairwise):
    Y = X[::-1] if pairwise else Y
    ref = naive.distance_matrix(X, Y, 2, 2, pairwise=pairwise)
    worker_config = WorkerConfig(n_workers=2)

    cmp = distance_matrix(
        X, Y, window=2, norm="L2", pairwise=pairwise, worker_config=worker_config
    )

    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)


@pytest.mark.parametrize("X, Y", test_data)
@pytest.mark.parametrize("n_workers", [1, 2])
def test_distance_matrix_out_of_core(X, Y, n_workers, temp_dir):
    ref = naive.distance_matrix(X, Y, 2, 1)
    worker_config = WorkerConfig(n_workers=n_workers)

    cmp = distance_matrix(
        X, Y, window=2, worker_config=worker_config, out_of_core=True
    )
    try:
        assert storage.is_out_of_core(cmp)
        npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)
    finally:
        storage.release(cmp)


def test_distance_matrix_out_of_core_force_symmetry(temp_dir):
    X, Y = test_data[1]
    ref = naive.distance_matrix(Y, None, 2, 1, force_symmetry=True)

    cmp = distance_matrix(Y, window=2, force_symmetry=True, out_of_core=True)
    try:
        npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)
    finally:
        storage.release(cmp)


def test_distance_matrix_size_policy(temp_dir):
    X, Y = test_data[0]
    ref = naive.distance_matrix(X, Y, 2, 1)

    config.DTWLB_MAX_IN_MEMORY_ELEMENTS = 5
    try:
        cmp = distance_matrix(X, Y, window=2)
    finally:
        config._reset("DTWLB_MAX_IN_MEMORY_ELEMENTS")

    try:
        assert storage.is_out_of_core(cmp)
        npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)
    finally:
        storage.release(cmp)


def test_distance_matrix_input_types():
    X, Y = test_data[0]
    ref = distance_matrix(X, Y, window=2)

    npt.assert_almost_equal(ref, distance_matrix(list(X), list(Y), window=2))
    npt.assert_almost_equal(
        ref, distance_matrix(pd.DataFrame(X), pd.DataFrame(Y), window=2)
    )
    npt.assert_almost_equal(
        ref, distance_matrix(dict(enumerate(X)), dict(enumerate(Y)), window=2)
    )
    npt.assert_almost_equal(ref, distance_matrix(X.astype(np.int64), Y, window=2))


def test_distance_matrix_single_series():
    X, Y = test_data[0]
    ref = naive.distance_matrix(X[:1], Y, 2, 1)
    cmp = distance_matrix(X[0], Y, window=2)

    assert cmp.shape == (1, Y.shape[0])
    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)


def test_distance_matrix_failure(temp_dir):
    X, Y = test_data[0]
    with patch.object(
        distance_matrix_module,
        "_local_distance_matrix",
        side_effect=RuntimeError("worker died"),
    ):
        with pytest.raises(ComputationFailure) as excinfo:
            distance_matrix(X, Y, window=2, out_of_core=True)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert len(list(temp_dir.iterdir())) == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"window": None},
        {"window": -1},
        {"window": 2, "norm": "L3"},
        {"window": 2, "kernel": "dtw"},
        {"window": 2, "pairwise": True},
        {"window": 2, "worker_config": 2},
    ],
)
def test_distance_matrix_invalid(kwargs):
    X, Y = test_data[0]
    with patch.object(distance_matrix_module, "_compute_envelopes") as mock:
        with pytest.raises(InvalidArgumentError):
            distance_matrix(X, Y, **kwargs)

    mock.assert_not_called()


def test_distance_matrix_unequal_lengths():
    X, Y = test_data[1]
    with pytest.raises(InvalidArgumentError):
        distance_matrix(X, Y[:, :-1], window=2)

    with pytest.raises(InvalidArgumentError):
        distance_matrix([X[0], X[1][:-1]], window=2)


def test_distance_matrix_multivariate():
    with pytest.raises(UnsupportedInputError):
        distance_matrix(np.random.rand(2, 3, 10), window=2)


def test_distance_matrix_single_series_list():
    ref = naive.distance_matrix(np.array([[1.0, 2.0, 3.0]]), None, 1, 1)
    cmp = distance_matrix([1.0, 2.0, 3.0], window=1)

    assert cmp.shape == (1, 1)
    npt.assert_almost_equal(ref, cmp, decimal=config.DTWLB_TEST_PRECISION)
