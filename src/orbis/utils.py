"""
Utility functions and classes for the Orbis package.
"""

import logging
from time import perf_counter
import warnings
from typing import Type

import numpy as np

from .config import config

logger = logging.getLogger(__name__)


class Timer:
    """
    Context manager for timing code execution.

    Elapsed time is reported through the ``orbis.utils`` logger at INFO level.

    Examples
    --------
    >>> from orbis.utils import Timer
    >>> with Timer("Reference build"):
    ...     traj = reference_trajectory(bodies, 86400.0)

    >>> with Timer(verbose=False) as t:
    ...     # ... code ...
    >>> print(f"Took {t.elapsed:.6f} seconds")
    """
    def __init__(self, name="Operation", verbose=True):
        """
        Parameters
        ----------
        name : str, optional
            Name to report when timing completes (default: "Operation")
        verbose : bool, optional
            Whether to log timing automatically (default: True)
        """
        self.name = name
        self.verbose = verbose
        self.elapsed = None

    def __enter__(self):
        self.start = perf_counter()
        return self

    def __exit__(self, *args):
        self.end = perf_counter()
        self.elapsed = self.end - self.start
        if self.verbose:
            logger.info("%s: %.6f s", self.name, self.elapsed)


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent validation behavior across the package.
    When STRICT_VALIDATION is True (default), raises the specified exception.
    When False, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=2)


def as_vector3(value, name: str = "vector") -> np.ndarray:
    """
    Convert input to a finite float array of shape (3,).

    Raises
    ------
    ValueError
        If the input does not have three components or is not finite
    """
    arr = np.array(value, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains NaN or Inf values: {arr}")
    return arr


def clamp_magnitude(vec: np.ndarray, limit: float) -> np.ndarray:
    """
    Rescale a vector so its magnitude does not exceed limit.

    Direction is preserved. A limit of None disables clamping.
    """
    if limit is None:
        return vec
    mag = np.linalg.norm(vec)
    if mag > limit:
        return vec * (limit / mag)
    return vec
