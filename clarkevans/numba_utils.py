import os
import logging

import numba as nb

# Use of numba jitting controlled by this environment variable.
# Enabled by default
NUMBA_ENABLED = "DISABLE_NUMBA" not in os.environ or os.environ["DISABLE_NUMBA"] in {"0", "false", "False", "FALSE"}

logger = logging.getLogger(__name__)


if NUMBA_ENABLED:
    njit = nb.njit
else:
    logger.warning("Numba jitted functions are disabled, nearest neighbor searches will run in pure python")

    def njit(*args, **kwargs):
        # Supports both @njit and @njit(...)
        if len(args) == 1 and callable(args[0]) and not kwargs:
            return args[0]

        def decorator(func):
            return func
        return decorator
