import naive
import numpy as np
import numpy.testing as npt
import pytest

from dtwlb import distmat, force_lb_symmetry
from dtwlb.exceptions import ShapeMismatchWarning


@pytest.mark.parametrize("n", [1, 2, 5, 17])
def test_force_lb_symmetry(n):
    D = np.random.uniform(0, 100, [n, n])
    ref = naive.force_lb_symmetry(D)
    cmp = force_lb_symmetry(D)

    npt.assert_almost_equal(ref, cmp)
    npt.assert_almost_equal(cmp, cmp.T)


def test_force_lb_symmetry_in_place():
    D = np.array([[0.0, 1.0, 5.0], [3.0, 0.0, 2.0], [4.0, 6.0, 0.0]])
    ref = np.array([[0.0, 3.0, 5.0], [3.0, 0.0, 6.0], [5.0, 6.0, 0.0]])

    cmp = force_lb_symmetry(D)

    assert cmp is D
    npt.assert_almost_equal(ref, D)


def test_force_lb_symmetry_diagonal():
    D = np.random.uniform(0, 100, [4, 4])
    ref = np.diag(D).copy()

    force_lb_symmetry(D)

    npt.assert_almost_equal(ref, np.diag(D))


def test_force_lb_symmetry_idempotent():
    D = force_lb_symmetry(np.random.uniform(0, 100, [6, 6]))
    ref = D.copy()

    npt.assert_almost_equal(ref, force_lb_symmetry(D))


def test_force_lb_symmetry_distmat():
    D = distmat(np.array([[0.0, 1.0], [3.0, 0.0]]), "LB_Improved", False)
    cmp = force_lb_symmetry(D)

    assert isinstance(cmp, distmat)
    npt.assert_almost_equal(cmp, [[0.0, 3.0], [3.0, 0.0]])


@pytest.mark.parametrize("shape", [(3, 4), (5,)])
def test_force_lb_symmetry_not_square(shape):
    D = np.random.uniform(0, 100, shape)
    ref = D.copy()

    with pytest.warns(ShapeMismatchWarning):
        cmp = force_lb_symmetry(D)

    assert cmp is D
    npt.assert_almost_equal(ref, D)
