import os
import pickle

import numpy as np
import numpy.testing as npt
import pytest

from dtwlb import config, storage


@pytest.fixture
def temp_dir(tmp_path):
    config.DTWLB_TEMP_DIR = str(tmp_path)
    yield tmp_path
    config._reset("DTWLB_TEMP_DIR")


@pytest.mark.parametrize("shape", [(3, 4), (5,)])
def test_allocate_in_memory(shape):
    D = storage.allocate(shape)

    assert D.shape == shape
    assert D.dtype == np.float64
    assert np.all(np.isnan(D))
    assert not storage.is_out_of_core(D)
    assert storage.describe(D) is None


@pytest.mark.parametrize("shape", [(3, 4), (5,)])
def test_allocate_out_of_core(shape, temp_dir):
    D = storage.allocate(shape, out_of_core=True)
    try:
        assert D.shape == shape
        assert D.dtype == np.float64
        assert storage.is_out_of_core(D)

        descriptor = storage.describe(D)
        assert descriptor.shape == shape
        assert np.dtype(descriptor.dtype) == np.float64
        assert os.path.exists(descriptor.filename)
    finally:
        storage.release(D)


def test_allocate_size_policy(temp_dir):
    config.DTWLB_MAX_IN_MEMORY_ELEMENTS = 11
    try:
        assert not storage.is_out_of_core(storage.allocate((11,)))

        D = storage.allocate((3, 4))
        assert storage.is_out_of_core(D)
        storage.release(D)

        assert not storage.is_out_of_core(storage.allocate((3, 4), out_of_core=False))
    finally:
        config._reset("DTWLB_MAX_IN_MEMORY_ELEMENTS")


def test_attach(temp_dir):
    D = storage.allocate((3, 4), out_of_core=True)
    try:
        descriptor = pickle.loads(pickle.dumps(storage.describe(D)))

        D_attached = storage.attach(descriptor)
        D_attached.reshape(-1)[5:8] = [1.0, 2.0, 3.0]
        D_attached.flush()

        npt.assert_almost_equal(D[1, 1:4], [1.0, 2.0, 3.0])
    finally:
        storage.release(D)


def test_describe_view(temp_dir):
    D = storage.allocate((3, 4), out_of_core=True)
    try:
        view = np.asarray(D)[1:]
        assert storage.is_out_of_core(view)
        assert storage.describe(view) == storage.describe(D)
    finally:
        storage.release(D)


def test_release(temp_dir):
    D = storage.allocate((3, 4), out_of_core=True)
    filename = storage.describe(D).filename
    storage.release(D)

    assert not os.path.exists(filename)
    assert len(list(temp_dir.iterdir())) == 0

    # Releasing twice or releasing an in-memory array is harmless
    storage.release(D)
    storage.release(np.zeros(3))
