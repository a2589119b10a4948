'''Analytical Keplerian propagation for the orbis simulation core
Orbital element -> Cartesian state at a given simulation time'''

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .body import Body
from .config import config
from .constants import G as G_DEFAULT

TWO_PI = 2.0 * math.pi


# ========== KEPLER EQUATION ==========
def solve_kepler(mean_anomaly: float, eccentricity: float,
                 iterations: Optional[int] = None,
                 tolerance: Optional[float] = None) -> float:
    """
    Solve Kepler's equation E = M + e*sin(E) by fixed-point iteration.

    Starts from E = M and runs a fixed number of iterations with no
    convergence check, which is adequate for e below roughly 0.9.

    Parameters
    ----------
    mean_anomaly : float
        Mean anomaly M [rad]
    eccentricity : float
        Orbital eccentricity, expected in [0, 1)
    iterations : int, optional
        Iteration count (default: config.KEPLER_ITERATIONS)
    tolerance : float, optional
        Stop early once successive estimates differ by less than this
        (default: config.KEPLER_TOLERANCE, None disables early exit)

    Returns
    -------
    float
        Eccentric anomaly E [rad]
    """
    if iterations is None:
        iterations = config.KEPLER_ITERATIONS
    if tolerance is None:
        tolerance = config.KEPLER_TOLERANCE
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}")

    E = mean_anomaly
    for _ in range(iterations):
        E_next = mean_anomaly + eccentricity * math.sin(E)
        converged = tolerance is not None and abs(E_next - E) < tolerance
        E = E_next
        if converged:
            break
    return E


def true_anomaly_from_eccentric(E: float, e: float) -> float:
    """True anomaly from eccentric anomaly via the half-angle identity."""
    return 2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(E / 2.0),
                            math.sqrt(1.0 - e) * math.cos(E / 2.0))


def mean_anomaly_from_true(nu: float, e: float) -> float:
    """
    Mean anomaly in [0, 2*pi) from true anomaly for an elliptic orbit.

    Returns NaN for e >= 1.
    """
    if e >= 1.0:
        return float('nan')
    E = 2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(nu / 2.0),
                         math.sqrt(1.0 + e) * math.cos(nu / 2.0))
    return (E - e * math.sin(E)) % TWO_PI


# ========== ORBITAL RELATIONS ==========
def orbital_period(a: float, mu: float) -> float:
    """Orbital period T = 2*pi*sqrt(a^3/mu) [s]"""
    if a <= 0:
        raise ValueError("Orbital period undefined for non-positive semi-major axis")
    if mu <= 0:
        raise ValueError(f"Gravitational parameter must be positive, got {mu}")
    return TWO_PI * math.sqrt(a**3 / mu)


def semi_major_axis_from_period(period: float, mu: float) -> float:
    """Semi-major axis [m] of an orbit with the given period [s]"""
    if period <= 0:
        raise ValueError(f"Period must be positive, got {period}")
    return (mu * period**2 / (4.0 * math.pi**2)) ** (1.0 / 3.0)


def apsides(a: float, e: float) -> Tuple[float, float]:
    """
    Periapsis and apoapsis distances of an elliptic orbit.

    Returns
    -------
    (periapsis, apoapsis) : tuple of float
    """
    if not 0.0 <= e < 1.0:
        raise ValueError(f"Apsides require 0 <= e < 1, got e={e}")
    return a * (1.0 - e), a * (1.0 + e)


def vis_viva_speed(r: float, a: float, mu: float) -> float:
    """Orbital speed at distance r from the vis-viva relation [m/s]"""
    if r <= 0:
        raise ValueError(f"Distance must be positive, got {r}")
    v_squared = mu * (2.0 / r - 1.0 / a)
    if v_squared < 0:
        raise ValueError(f"Distance {r} lies beyond apoapsis for a={a}")
    return math.sqrt(v_squared)


def time_of_flight(nu_start: float, nu_end: float, e: float, period: float) -> float:
    """
    Time to travel from one true anomaly to another along an elliptic orbit.

    Motion is assumed prograde; if nu_end is "behind" nu_start the flight
    continues through periapsis.
    """
    M_start = mean_anomaly_from_true(nu_start, e)
    M_end = mean_anomaly_from_true(nu_end, e)
    if math.isnan(M_start) or math.isnan(M_end):
        raise ValueError(f"Time of flight requires 0 <= e < 1, got e={e}")
    dM = (M_end - M_start) % TWO_PI
    return dM / TWO_PI * period


def gravitational_parameter(body: Body, parent: Body, G: float = G_DEFAULT) -> float:
    """Combined gravitational parameter G*(M + m) of a body and its parent."""
    return G * (parent.mass + body.mass)


def derive_orbital_motion(body: Body, parent: Body,
                          G: float = G_DEFAULT) -> Tuple[float, float]:
    """
    Fill in mean motion and orbital period when they are unset.

    Returns
    -------
    (mean_motion, orbital_period) : tuple of float
    """
    if body.semi_major_axis > 0:
        mu = gravitational_parameter(body, parent, G)
        if body.orbital_period == 0:
            body.orbital_period = orbital_period(body.semi_major_axis, mu)
        if body.mean_motion == 0:
            body.mean_motion = TWO_PI / body.orbital_period
    return body.mean_motion, body.orbital_period


# ========== PROPAGATION ==========
def perifocal_to_inertial(body: Body) -> np.ndarray:
    """Rotation matrix from the orbital plane to the reference frame."""
    cO, sO = math.cos(body.longitude_of_ascending_node), math.sin(body.longitude_of_ascending_node)
    cw, sw = math.cos(body.argument_of_periapsis), math.sin(body.argument_of_periapsis)
    ci, si = math.cos(body.inclination), math.sin(body.inclination)
    return np.array([
        [cO * cw - sO * sw * ci, -cO * sw - sO * cw * ci, sO * si],
        [sO * cw + cO * sw * ci, -sO * sw + cO * cw * ci, -cO * si],
        [sw * si,                cw * si,                 ci],
    ])


def propagate(body: Body, parent: Optional[Body], simulation_time: float,
              G: float = G_DEFAULT) -> Tuple[np.ndarray, np.ndarray]:
    """
    Position and velocity of a body on its Keplerian orbit at a given time.

    The body is not modified. Returned vectors are absolute: the parent's
    own position and velocity are added so propagation composes through
    a hierarchy (moon around planet around star).

    Parameters
    ----------
    body : Body
        Body carrying the orbital elements
    parent : Body or None
        Reference body at the orbit focus
    simulation_time : float
        Time at which to evaluate the orbit [s]
    G : float, optional
        Gravitational constant

    Returns
    -------
    (position, velocity) : tuple of np.ndarray
        Copies of the current state if there is no parent or the
        semi-major axis is zero

    Raises
    ------
    ValueError
        If the eccentricity is outside [0, 1) or the combined mass is zero
    """
    a = body.semi_major_axis
    if parent is None or a == 0:
        return body.position.copy(), body.velocity.copy()

    e = body.eccentricity
    if not 0.0 <= e < 1.0:
        raise ValueError(
            f"Keplerian propagation requires 0 <= e < 1, got e={e} "
            f"for body '{body.name}'")
    if a < 0:
        raise ValueError(f"Semi-major axis must be positive for a bound orbit, got {a}")
    mu = gravitational_parameter(body, parent, G)
    if mu <= 0:
        raise ValueError(f"Combined mass of '{body.name}' and its parent must be positive")

    n = body.mean_motion if body.mean_motion > 0 else math.sqrt(mu / a**3)
    M = body.mean_anomaly_at_epoch + n * (simulation_time - body.epoch)
    E = solve_kepler(M, e)
    nu = true_anomaly_from_eccentric(E, e)
    r = a * (1.0 - e * math.cos(E))

    # in-plane state, velocity from h = sqrt(mu*p)
    h = math.sqrt(mu * a * (1.0 - e**2))
    r_plane = np.array([r * math.cos(nu), r * math.sin(nu), 0.0])
    v_plane = np.array([-mu / h * math.sin(nu), mu / h * (e + math.cos(nu)), 0.0])

    DCM = perifocal_to_inertial(body)
    position = DCM @ r_plane + parent.position
    velocity = DCM @ v_plane + parent.velocity
    return position, velocity


def _propagation_order(bodies: Sequence[Body]) -> List[int]:
    """Indices ordered so every parent precedes its children."""
    n_bodies = len(bodies)
    order = []
    placed = set()
    for start in range(n_bodies):
        chain = []
        idx = start
        while idx is not None and idx not in placed:
            if idx in chain:
                names = [bodies[i].name or str(i) for i in chain]
                raise ValueError(f"Parent references form a cycle: {names}")
            chain.append(idx)
            parent = bodies[idx].parent
            if parent is not None and not 0 <= parent < n_bodies:
                raise IndexError(
                    f"Body {idx} ('{bodies[idx].name}') has parent index "
                    f"{parent} outside body list of length {n_bodies}")
            idx = parent
        for i in reversed(chain):
            placed.add(i)
            order.append(i)
    return order


def apply_keplerian(bodies: Sequence[Body], simulation_time: float,
                    G: float = G_DEFAULT) -> None:
    """
    Move every body with orbital elements onto its Keplerian position.

    Parents are updated before their children. All parent indices,
    eccentricities and gravitational parameters are checked before any
    body is modified. Moved bodies are marked as needing fresh
    accelerations before the next Verlet step.

    Raises
    ------
    IndexError
        If a parent index is outside the body list
    ValueError
        If parents form a cycle, an orbit has e outside [0, 1) or a body
        and its parent have no combined mass
    """
    order = _propagation_order(bodies)
    for body in bodies:
        if not body.has_orbit:
            continue
        if not 0.0 <= body.eccentricity < 1.0:
            raise ValueError(
                f"Keplerian propagation requires 0 <= e < 1, got "
                f"e={body.eccentricity} for body '{body.name}'")
        if body.semi_major_axis < 0:
            raise ValueError(f"Semi-major axis must be positive for a bound "
                             f"orbit, got {body.semi_major_axis}")
        if gravitational_parameter(body, bodies[body.parent], G) <= 0:
            raise ValueError(f"Combined mass of '{body.name}' and its parent "
                             f"must be positive")

    for idx in order:
        body = bodies[idx]
        if not body.has_orbit:
            continue
        parent = bodies[body.parent]
        body.position, body.velocity = propagate(body, parent, simulation_time, G)
        body.acceleration_primed = False
