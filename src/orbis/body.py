'''Celestial body state model for the orbis simulation core
Body class definition'''

import math
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import numpy as np

from .constants import DEFAULT_ALBEDO
from .utils import validation_error, as_vector3


@dataclass(eq=False)
class Body:
    """
    Mutable physical, kinematic and orbital state of one celestial body.

    Bodies are created and owned by the caller. Propagators and integrators
    only read and update the fields below in place; they never keep a
    reference to a body between calls.

    Attributes
    ----------
    mass : float
        Body mass [kg]
    radius : float
        Mean radius [m]
    density : float
        Bulk density [kg/m^3]. Derived from mass and radius when left at 0.
    position, velocity, acceleration : np.ndarray
        Cartesian 3-vectors in the shared inertial frame [m, m/s, m/s^2].
        The stored acceleration carries Verlet state between steps.
    acceleration_primed : bool, optional
        Whether the stored acceleration was computed from the current
        state. Defaults to True when a nonzero acceleration is given.
        Velocity-Verlet computes forces first for bodies that are not primed.
    semi_major_axis : float
        [m], 0 when the body has no Keplerian orbit
    eccentricity : float
        Dimensionless, [0, 1) for bound orbits
    inclination, longitude_of_ascending_node, argument_of_periapsis : float
        Orientation angles [rad]
    mean_anomaly_at_epoch : float
        Mean anomaly at ``epoch`` [rad]
    epoch : float
        Reference simulation time for the mean anomaly [s]
    mean_motion : float
        [rad/s], 0 when not yet derived
    orbital_period : float
        [s], 0 when not yet derived
    parent : int, optional
        Index of the reference body in the caller's body list, used as the
        center for Keplerian propagation
    has_atmosphere : bool
        Whether atmospheric drag is computed for this body
    atmospheric_height : float
        Thickness of the atmosphere above the surface [m]
    atmospheric_density : float
        Atmospheric density at the surface [kg/m^3]
    has_magnetic_field : bool
        Whether this body takes part in dipole interactions
    magnetic_moment : float
        Dipole moment magnitude [A m^2]
    luminosity : float
        Radiated power [W], nonzero for radiation pressure sources
    albedo : float, optional
        Reflectivity used by radiation pressure (0.3 when unset)
    j2 : float
        Second zonal harmonic of the body's gravity field (oblateness),
        with the spin axis along the reference z-axis
    name : str
        Body identifier
    """
    mass: float = 0.0
    radius: float = 0.0
    density: float = 0.0
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))
    acceleration_primed: Optional[bool] = None

    # Classical orbital elements
    semi_major_axis: float = 0.0
    eccentricity: float = 0.0
    inclination: float = 0.0
    longitude_of_ascending_node: float = 0.0
    argument_of_periapsis: float = 0.0
    mean_anomaly_at_epoch: float = 0.0
    epoch: float = 0.0
    mean_motion: float = 0.0
    orbital_period: float = 0.0
    parent: Optional[int] = None

    # Feature flags read by force calculators
    has_atmosphere: bool = False
    atmospheric_height: float = 0.0
    atmospheric_density: float = 0.0
    has_magnetic_field: bool = False
    magnetic_moment: float = 0.0
    luminosity: float = 0.0
    albedo: Optional[float] = None
    j2: float = 0.0

    name: str = ""

    # ========== CONSTRUCTION ==========
    def __post_init__(self):
        self.position = as_vector3(self.position, "position")
        self.velocity = as_vector3(self.velocity, "velocity")
        self.acceleration = as_vector3(self.acceleration, "acceleration")
        if self.acceleration_primed is None:
            self.acceleration_primed = bool(np.any(self.acceleration))

        for attr in ("mass", "radius", "density"):
            value = getattr(self, attr)
            if not math.isfinite(value) or value < 0:
                validation_error(
                    f"Body {attr} must be finite and non-negative, got {value}")
        if self.eccentricity < 0:
            validation_error(
                f"Eccentricity must be non-negative, got {self.eccentricity}")
        if self.atmospheric_height < 0:
            validation_error(f"Atmospheric height must be non-negative, "
                             f"got {self.atmospheric_height}")
        if self.albedo is not None and not 0.0 <= self.albedo <= 1.0:
            validation_error(f"Albedo must be in [0, 1], got {self.albedo}")
        if not math.isfinite(self.j2) or abs(self.j2) > 1:
            validation_error(f"J2 coefficient seems unrealistic: {self.j2}")
        if self.parent is not None and (
                isinstance(self.parent, bool) or not isinstance(self.parent, int)):
            raise TypeError(
                f"parent must be an integer index or None, got {type(self.parent)}")

        if self.density == 0 and self.mass > 0 and self.radius > 0:
            self.density = self.mass / (4.0 / 3.0 * math.pi * self.radius**3)

    # ========== DERIVED QUANTITIES ==========
    @property
    def speed(self) -> float:
        """Velocity magnitude [m/s]"""
        return float(np.linalg.norm(self.velocity))

    @property
    def effective_albedo(self) -> float:
        """Albedo used by radiation pressure, falling back to the default."""
        return DEFAULT_ALBEDO if self.albedo is None else self.albedo

    @property
    def has_orbit(self) -> bool:
        """True when orbital elements describe a Keplerian path."""
        return self.parent is not None and self.semi_major_axis != 0

    # ========== UTILITY METHODS ==========
    def copy(self) -> 'Body':
        """Return an independent copy with its own state vectors."""
        data = {name: getattr(self, name) for name in self.__dataclass_fields__}
        return Body(**data)

    def to_dict(self) -> Dict[str, Any]:
        """
        Plain-data snapshot of the body state.

        Vectors are returned as lists of floats so the snapshot holds no
        references into the live body.
        """
        snapshot = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if isinstance(value, np.ndarray):
                value = value.tolist()
            snapshot[name] = value
        return snapshot

    # ========== SPECIAL METHODS ==========
    def __repr__(self) -> str:
        name_str = f"'{self.name}'" if self.name else "unnamed"
        return (f"Body({name_str}, mass={self.mass:.4g} kg, "
                f"radius={self.radius:.4g} m, parent={self.parent})")
