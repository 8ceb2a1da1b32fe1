import os.path
from importlib.metadata import distribution
from site import getsitepackages

from . import config, exceptions, storage  # noqa: F401
from .distance_matrix import distance_matrix  # noqa: F401
from .distance_matrixed import distance_matrixed  # noqa: F401
from .distmat import distmat  # noqa: F401
from .envelope import compute_envelope  # noqa: F401
from .lbi import lb_improved  # noqa: F401
from .lbk import lb_keogh  # noqa: F401
from .symmetry import force_lb_symmetry  # noqa: F401
from .workers import WorkerConfig  # noqa: F401

try:
    _dist = distribution("dtwlb")
    # Normalize case for Windows systems
    dist_loc = os.path.normcase(getsitepackages()[0])
    here = os.path.normcase(__file__)
    if not here.startswith(os.path.join(dist_loc, "dtwlb")):
        # not installed, but there is another version that *is*
        raise ModuleNotFoundError  # pragma: no cover
except ModuleNotFoundError:  # pragma: no cover
    __version__ = "Please install this project with setup.py"
else:  # pragma: no cover
    __version__ = _dist.version
