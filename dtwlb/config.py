# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import warnings

_DTWLB_DEFAULTS = {
    "DTWLB_FASTMATH_TRUE": True,
    "DTWLB_FASTMATH_FLAGS": {"nsz", "arcp", "contract", "afn", "reassoc"},
    "DTWLB_MAX_IN_MEMORY_ELEMENTS": 2**27,
    "DTWLB_TEMP_DIR": None,
    "DTWLB_TEST_PRECISION": 7,
}

# `DTWLB_MAX_IN_MEMORY_ELEMENTS` is the largest number of distance matrix cells
# (float64) that is held fully resident. Larger results are backed by a
# memory-mapped `.npy` file that is created in `DTWLB_TEMP_DIR` (or the system
# temp directory when `None`). See `storage.allocate` for more details.

DTWLB_FASTMATH_TRUE = _DTWLB_DEFAULTS["DTWLB_FASTMATH_TRUE"]
DTWLB_FASTMATH_FLAGS = _DTWLB_DEFAULTS["DTWLB_FASTMATH_FLAGS"]
DTWLB_MAX_IN_MEMORY_ELEMENTS = _DTWLB_DEFAULTS["DTWLB_MAX_IN_MEMORY_ELEMENTS"]
DTWLB_TEMP_DIR = _DTWLB_DEFAULTS["DTWLB_TEMP_DIR"]
DTWLB_TEST_PRECISION = _DTWLB_DEFAULTS["DTWLB_TEST_PRECISION"]


def _reset(var=None):
    """
    Reset the value of a configuration variable(s) to their default value(s)

    Parameters
    ----------
    var : str, default None
        The name of the configuration variable. If None, then all
        configuration variables are reset to their default values.

    Returns
    -------
    None
    """
    config_vars = [
        k for k, _ in globals().items() if k.isupper() and k.startswith("DTWLB")
    ]

    if var is None:
        for config_var in config_vars:
            globals()[config_var] = _DTWLB_DEFAULTS[config_var]
    elif var in config_vars:
        globals()[var] = _DTWLB_DEFAULTS[var]
    else:  # pragma: no cover
        msg = "Configuration reset was skipped for unrecognized "
        msg += f"'_DTWLB_DEFAULT[{var}]'"
        warnings.warn(msg)

    return
