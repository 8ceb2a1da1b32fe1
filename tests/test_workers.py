import numba
import pytest

from dtwlb import WorkerConfig
from dtwlb.exceptions import InvalidArgumentError


def test_worker_config_default():
    worker_config = WorkerConfig()

    assert worker_config.n_workers is None
    assert worker_config.n_threads is None
    assert worker_config.get_n_workers() == 1
    assert worker_config.get_n_workers(default=4) == 4
    assert worker_config.get_n_threads(1) == numba.config.NUMBA_NUM_THREADS


def test_worker_config_zero_workers():
    worker_config = WorkerConfig(n_workers=0)

    assert worker_config.get_n_workers() == 1
    assert worker_config.get_n_workers(default=4) == 1


def test_worker_config_multiple_workers():
    worker_config = WorkerConfig(n_workers=3)

    assert worker_config.get_n_workers() == 3
    assert worker_config.get_n_workers(default=8) == 3
    assert worker_config.get_n_threads(3) == 1


def test_worker_config_explicit_threads():
    worker_config = WorkerConfig(n_workers=3, n_threads=1)
    assert worker_config.get_n_threads(3) == 1
    assert worker_config.get_n_threads(1) == 1

    n_threads = numba.config.NUMBA_NUM_THREADS + 10
    worker_config = WorkerConfig(n_workers=2, n_threads=n_threads)
    assert worker_config.get_n_threads(2) == numba.config.NUMBA_NUM_THREADS


@pytest.mark.parametrize(
    "n_workers, n_threads", [(-1, None), (None, 0), (1.5, None), (None, "2"), (True, 1)]
)
def test_worker_config_invalid(n_workers, n_threads):
    with pytest.raises(InvalidArgumentError):
        WorkerConfig(n_workers=n_workers, n_threads=n_threads)


def test_worker_config_immutable():
    worker_config = WorkerConfig(n_workers=2)

    with pytest.raises(AttributeError):
        worker_config.n_workers = 3

    with pytest.raises(AttributeError):
        worker_config.foo = 3


def test_worker_config_eq():
    assert WorkerConfig(2, 1) == WorkerConfig(n_workers=2, n_threads=1)
    assert WorkerConfig(2, 1) != WorkerConfig(2)
    assert hash(WorkerConfig(2, 1)) == hash(WorkerConfig(2, 1))
    assert repr(WorkerConfig(2)) == "WorkerConfig(n_workers=2, n_threads=None)"
