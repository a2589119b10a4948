'''Cartesian state -> classical orbital elements for the orbis simulation core
OrbitalElements class definition and related orbital relations'''

import math
import warnings
from dataclasses import dataclass, asdict
from typing import Dict, Sequence

import numpy as np
import pandas as pd

from .body import Body
from .config import config
from .constants import G as G_DEFAULT
from .kepler import mean_anomaly_from_true, TWO_PI


class DegenerateOrbitWarning(UserWarning):
    """Issued when orbital elements are undefined for the given geometry."""


@dataclass(frozen=True)
class OrbitalElements:
    """
    Classical orbital elements of a body relative to a central body.

    Angles are in radians, in [0, 2*pi) except inclination in [0, pi].

    Attributes
    ----------
    semi_major_axis : float
        [m], negative for hyperbolic orbits, inf for parabolic
    eccentricity : float
    inclination : float
    longitude_of_ascending_node : float
    argument_of_periapsis : float
    true_anomaly : float
    mean_anomaly : float
        NaN for unbound orbits
    orbital_period : float
        [s], NaN for unbound orbits
    energy : float
        Specific orbital energy [J/kg]
    angular_momentum : float
        Specific angular momentum magnitude [m^2/s]
    """
    semi_major_axis: float
    eccentricity: float
    inclination: float
    longitude_of_ascending_node: float
    argument_of_periapsis: float
    true_anomaly: float
    mean_anomaly: float
    orbital_period: float
    energy: float
    angular_momentum: float

    @property
    def is_bound(self) -> bool:
        return self.eccentricity < 1.0 and self.energy < 0

    @property
    def mean_motion(self) -> float:
        """Mean motion 2*pi/T [rad/s], NaN for unbound orbits"""
        if not self.is_bound:
            return float('nan')
        return TWO_PI / self.orbital_period

    def to_dict(self) -> Dict[str, float]:
        """Plain-data snapshot of the elements."""
        return asdict(self)

    def __repr__(self):
        return (f"OrbitalElements(a={self.semi_major_axis:.6g}, "
                f"e={self.eccentricity:.6g}, i={np.degrees(self.inclination):.4f}°, "
                f"Ω={np.degrees(self.longitude_of_ascending_node):.4f}°, "
                f"ω={np.degrees(self.argument_of_periapsis):.4f}°, "
                f"ν={np.degrees(self.true_anomaly):.4f}°)")


def _angle(cos_value: float) -> float:
    """acos with the argument clipped into [-1, 1]."""
    return math.acos(min(1.0, max(-1.0, cos_value)))


def extract_elements(body: Body, central_body: Body,
                     G: float = G_DEFAULT) -> OrbitalElements:
    """
    Classical orbital elements of body relative to central_body.

    Degenerate geometry is resolved with defined sentinels:

    - zero separation or zero angular momentum: DegenerateOrbitWarning,
      undefined angles reported as 0 (and all scalars NaN for zero separation)
    - equatorial orbit: longitude of ascending node is 0 and the argument
      of periapsis is measured from the x-axis
    - circular orbit: argument of periapsis is 0 and the true anomaly is
      measured from the ascending node (or the x-axis if also equatorial)

    Parameters
    ----------
    body : Body
        Orbiting body
    central_body : Body
        Body at the focus
    G : float, optional
        Gravitational constant

    Returns
    -------
    OrbitalElements

    Raises
    ------
    ValueError
        If central_body is body, or the combined mass is zero
    """
    if central_body is body:
        raise ValueError("Central body must be different from the orbiting body")
    mu = G * (body.mass + central_body.mass)
    if mu <= 0:
        raise ValueError("Combined mass must be positive to extract orbital elements")

    r_vec = body.position - central_body.position
    v_vec = body.velocity - central_body.velocity
    r = float(np.linalg.norm(r_vec))
    v = float(np.linalg.norm(v_vec))
    nan = float('nan')

    if r == 0:
        warnings.warn(f"Body '{body.name}' coincides with its central body, "
                      f"orbital elements undefined", DegenerateOrbitWarning, stacklevel=2)
        return OrbitalElements(nan, nan, 0.0, 0.0, 0.0, 0.0, nan, nan, nan, nan)

    # specific energy and semi-major axis
    energy = v**2 / 2 - mu / r
    a = -mu / (2 * energy) if energy != 0 else math.inf

    # angular momentum vector h = r x v
    h_vec = np.cross(r_vec, v_vec)
    h = float(np.linalg.norm(h_vec))

    # eccentricity vector
    e_vec = np.cross(v_vec, h_vec) / mu - r_vec / r
    e = float(np.linalg.norm(e_vec))

    if h == 0:
        warnings.warn(f"Body '{body.name}' is on a radial trajectory, "
                      f"orientation angles undefined", DegenerateOrbitWarning, stacklevel=2)
        return OrbitalElements(a, e, 0.0, 0.0, 0.0, 0.0, nan, nan, energy, 0.0)

    i = _angle(h_vec[2] / h)

    # ascending node vector n = z x h
    n_vec = np.array([-h_vec[1], h_vec[0], 0.0])
    n = float(np.linalg.norm(n_vec))
    equatorial = n <= config.SNAP_TO_EQUATORIAL * h
    circular = e < config.SNAP_TO_CIRCULAR
    retrograde = h_vec[2] < 0

    # longitude of ascending node
    if equatorial:
        Omega = 0.0
    else:
        Omega = _angle(n_vec[0] / n)
        if n_vec[1] < 0:
            Omega = TWO_PI - Omega

    # argument of periapsis
    if circular:
        w = 0.0
    elif equatorial:
        w = math.atan2(e_vec[1], e_vec[0])
        w = (-w if retrograde else w) % TWO_PI
    else:
        w = _angle(float(n_vec @ e_vec) / (n * e))
        if e_vec[2] < 0:
            w = TWO_PI - w

    # true anomaly
    if not circular:
        nu = _angle(float(e_vec @ r_vec) / (e * r))
        if float(r_vec @ v_vec) < 0:
            nu = TWO_PI - nu
    elif not equatorial:
        # argument of latitude
        nu = _angle(float(n_vec @ r_vec) / (n * r))
        if r_vec[2] < 0:
            nu = TWO_PI - nu
    else:
        # true longitude
        nu = math.atan2(r_vec[1], r_vec[0])
        nu = (-nu if retrograde else nu) % TWO_PI

    if e < 1.0 and a > 0:
        M = mean_anomaly_from_true(nu, e)
        period = TWO_PI * math.sqrt(a**3 / mu)
    else:
        M = nan
        period = nan

    return OrbitalElements(
        semi_major_axis=a,
        eccentricity=e,
        inclination=i,
        longitude_of_ascending_node=Omega,
        argument_of_periapsis=w,
        true_anomaly=nu,
        mean_anomaly=M,
        orbital_period=period,
        energy=energy,
        angular_momentum=h,
    )


def assign_elements(body: Body, elements: OrbitalElements,
                    epoch: float = 0.0) -> None:
    """
    Write extracted elements into a body's orbital fields.

    After this, Keplerian propagation of the body from ``epoch`` reproduces
    the state the elements were extracted from.

    Raises
    ------
    ValueError
        If the elements do not describe a bound orbit
    """
    if not elements.is_bound or not math.isfinite(elements.orbital_period):
        raise ValueError(
            f"Only bound orbits can be assigned, got e={elements.eccentricity}")
    body.semi_major_axis = elements.semi_major_axis
    body.eccentricity = elements.eccentricity
    body.inclination = elements.inclination
    body.longitude_of_ascending_node = elements.longitude_of_ascending_node
    body.argument_of_periapsis = elements.argument_of_periapsis
    body.mean_anomaly_at_epoch = elements.mean_anomaly
    body.epoch = float(epoch)
    body.orbital_period = elements.orbital_period
    body.mean_motion = elements.mean_motion


def elements_to_dataframe(elements: Sequence[OrbitalElements], index=None) -> pd.DataFrame:
    """
    Convert a list of OrbitalElements to a pandas DataFrame.

    Parameters
    ----------
    elements : list of OrbitalElements
    index : array-like, optional
        Index for the DataFrame (e.g., time values).
        If None, uses integer index.

    Returns
    -------
    pd.DataFrame
        One row per entry, one column per element

    Raises
    ------
    ValueError
        If index length doesn't match number of entries
    """
    if not elements:
        return pd.DataFrame()
    if index is not None and len(index) != len(elements):
        raise ValueError(
            f"Index length ({len(index)}) must match "
            f"number of entries ({len(elements)})"
        )
    return pd.DataFrame([el.to_dict() for el in elements], index=index)


# ========== SPHERES OF INFLUENCE ==========
def hill_sphere_radius(body: Body, central_body: Body) -> float:
    """
    Hill sphere radius d*(m/(3M))^(1/3) at the current separation [m].

    Raises
    ------
    ValueError
        If central_body is body or has no mass
    """
    if central_body is body:
        raise ValueError("Central body must be different from the orbiting body")
    if central_body.mass <= 0:
        raise ValueError("Central body must have positive mass")
    d = float(np.linalg.norm(body.position - central_body.position))
    return d * (body.mass / (3.0 * central_body.mass)) ** (1.0 / 3.0)


def roche_limit(body: Body, central_body: Body, rigidity: float = 2.0) -> float:
    """
    Rigid-body Roche limit R_M*(rigidity*rho_M/rho_m)^(1/3) [m].

    Parameters
    ----------
    rigidity : float, optional
        Structural factor, 2 for a rigid satellite (default)

    Raises
    ------
    ValueError
        If central_body is body or a density is not positive
    """
    if central_body is body:
        raise ValueError("Central body must be different from the orbiting body")
    if body.density <= 0 or central_body.density <= 0:
        raise ValueError("Both bodies need a positive density for the Roche limit")
    return central_body.radius * (rigidity * central_body.density / body.density) ** (1.0 / 3.0)


# ========== SECULAR PERTURBATIONS ==========
@dataclass(frozen=True)
class SecularRates:
    """
    Orbit-averaged drift of the orientation angles [rad/s].

    Semi-major axis, eccentricity and inclination have no secular drift
    under the J2 and distant third-body models used here.
    """
    longitude_of_ascending_node: float
    argument_of_periapsis: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def secular_rates(elements: OrbitalElements, central_body: Body,
                  perturbers: Sequence[Body] = (),
                  G: float = G_DEFAULT) -> SecularRates:
    """
    Secular rates of the node and periapsis of a bound orbit.

    Two contributions are summed:

    - oblateness of the central body (``central_body.j2``), with
      k = n*J2*(R/p)**2 and p = a*(1 - e**2):
      dOmega/dt = -1.5*k*cos(i), domega/dt = 0.75*k*(5*cos(i)**2 - 1)
    - every perturber outside the orbit, treated as a distant mass on a
      circular orbit in the reference plane, with k = 0.75*n3**2/n and
      n3**2 = G*m3/d**3:
      dOmega/dt = -k*cos(i), domega/dt = k*(2 - 2.5*sin(i)**2)

    Parameters
    ----------
    elements : OrbitalElements
        Elements relative to central_body
    central_body : Body
        Body at the focus; its j2 and radius set the oblateness term
    perturbers : sequence of Body, optional
        Third bodies. The central body and massless entries are ignored,
        as are perturbers not farther from the central body than a.
    G : float, optional
        Gravitational constant

    Returns
    -------
    SecularRates

    Raises
    ------
    ValueError
        If the elements do not describe a bound orbit
    """
    if not elements.is_bound or not math.isfinite(elements.orbital_period):
        raise ValueError(
            f"Secular rates need a bound orbit, got e={elements.eccentricity}")
    a = elements.semi_major_axis
    e = elements.eccentricity
    cos_i = math.cos(elements.inclination)
    sin_i = math.sin(elements.inclination)
    n = elements.mean_motion

    node_rate = 0.0
    periapsis_rate = 0.0

    if central_body.j2 != 0:
        p = a * (1.0 - e**2)
        k = n * central_body.j2 * (central_body.radius / p)**2
        node_rate -= 1.5 * k * cos_i
        periapsis_rate += 0.75 * k * (5.0 * cos_i**2 - 1.0)

    for body in perturbers:
        if body is central_body or body.mass <= 0:
            continue
        d = float(np.linalg.norm(body.position - central_body.position))
        if d <= a:
            continue
        k = 0.75 * G * body.mass / d**3 / n
        node_rate -= k * cos_i
        periapsis_rate += k * (2.0 - 2.5 * sin_i**2)

    return SecularRates(longitude_of_ascending_node=node_rate,
                        argument_of_periapsis=periapsis_rate)
