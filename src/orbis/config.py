"""
Global Configuration for Orbis Package
======================================

This module provides package-wide configuration settings that users can modify
to control validation behavior, degenerate-orbit thresholds and the Kepler
equation solver.

Examples
--------
View current configuration:

>>> import orbis
>>> print(orbis.config)

Modify settings:

>>> orbis.config.KEPLER_ITERATIONS = 20  # More fixed-point iterations
>>> orbis.config.STRICT_VALIDATION = False  # Warn instead of raising

Reset to defaults:

>>> orbis.config.reset()

Temporarily modify settings:

>>> with orbis.temp_config(SNAP_TO_CIRCULAR=1e-6):
...     elements = orbis.extract_elements(moon, earth)

Notes
-----
Physical settings of a simulation (time step, softening, enabled forces)
belong to each Integrator's IntegratorConfig, not to this object.
"""

from dataclasses import dataclass
from contextlib import contextmanager
from typing import Optional


@dataclass
class OrbisConfig:
    """
    Global configuration for Orbis package.

    Attributes
    ----------
    SNAP_TO_CIRCULAR : float
        Eccentricity below this threshold is treated as a circular orbit
        when extracting elements.
        Default: 1e-8
    SNAP_TO_EQUATORIAL : float
        Node vector magnitude below this fraction of the angular momentum
        is treated as an equatorial orbit when extracting elements.
        Default: 1e-8
    STRICT_VALIDATION : bool
        If True, validation failures raise exceptions.
        If False, validation failures issue warnings.
        Default: True
    KEPLER_ITERATIONS : int
        Number of fixed-point iterations used to solve Kepler's equation.
        Default: 10
    KEPLER_TOLERANCE : float or None
        If set, the Kepler solver stops early once successive estimates
        differ by less than this value (radians).
        Default: None (always run KEPLER_ITERATIONS)
    DEFAULT_SAMPLE_POINTS : int
        Default number of points when sampling a Trajectory.
        Default: 1000
    """

    # Snapping behavior thresholds
    SNAP_TO_CIRCULAR: float = 1e-8
    SNAP_TO_EQUATORIAL: float = 1e-8

    # Validation behavior
    STRICT_VALIDATION: bool = True

    # Kepler solver
    KEPLER_ITERATIONS: int = 10
    KEPLER_TOLERANCE: Optional[float] = None

    # Trajectory defaults
    DEFAULT_SAMPLE_POINTS: int = 1000

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import orbis
        >>> orbis.config.KEPLER_ITERATIONS = 50  # Modify
        >>> orbis.config.reset()  # Back to defaults
        >>> orbis.config.KEPLER_ITERATIONS
        10
        """
        defaults = OrbisConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["OrbisConfig:"]
        lines.append("  Snapping Thresholds:")
        lines.append(f"    SNAP_TO_CIRCULAR = {self.SNAP_TO_CIRCULAR}")
        lines.append(f"    SNAP_TO_EQUATORIAL = {self.SNAP_TO_EQUATORIAL}")
        lines.append("  Kepler Solver:")
        lines.append(f"    KEPLER_ITERATIONS = {self.KEPLER_ITERATIONS}")
        lines.append(f"    KEPLER_TOLERANCE = {self.KEPLER_TOLERANCE}")
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append("  Trajectories:")
        lines.append(f"    DEFAULT_SAMPLE_POINTS = {self.DEFAULT_SAMPLE_POINTS}")
        return "\n".join(lines)


# Global configuration instance
config = OrbisConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import orbis
    >>> with orbis.temp_config(KEPLER_ITERATIONS=50, STRICT_VALIDATION=False):
    ...     pos, vel = orbis.kepler.propagate(moon, earth, 3600.0)
    >>> # Original config restored here
    >>> orbis.config.KEPLER_ITERATIONS
    10

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    for key in kwargs:
        if key not in config.__dataclass_fields__:
            raise AttributeError(
                f"OrbisConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
    old_values = {}
    for key, value in kwargs.items():
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
