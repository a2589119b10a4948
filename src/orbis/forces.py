'''Force model library for the orbis simulation core
Built-in force calculators and the registry for custom ones'''

import logging
import math
from typing import Callable, Dict, Iterator, List, Protocol, Sequence, Union, runtime_checkable

import numpy as np

from .body import Body
from .constants import (G as G_DEFAULT, C, MU_0, DRAG_COEFFICIENT,
                        ATMOSPHERE_SCALE_HEIGHT)

logger = logging.getLogger(__name__)


@runtime_checkable
class ForceCalculator(Protocol):
    """Anything that computes the force [N] exerted on target by the other bodies."""
    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        ...


ForceFunction = Callable[[Body, Sequence[Body]], np.ndarray]


# ========== BUILT-IN CALCULATORS ==========
class Gravity:
    """
    Pairwise Newtonian attraction with Plummer softening.

    The squared separation is softened by adding softening**2 before the
    square root, which bounds the pair force by G*m1*m2/softening**2.
    With zero softening, pairs closer than their combined radii (or
    coincident) contribute the zero vector.

    Parameters
    ----------
    G : float, optional
        Gravitational constant
    softening : float, optional
        Softening length [m] (default: 0)
    relativistic : bool, optional
        Multiply each pair force by the Lorentz factor of the source
        body's speed (default: False). This is an approximation that
        depends on the frame the velocities are expressed in.
    c : float, optional
        Speed of light used by the relativistic factor
    """
    def __init__(self, G: float = G_DEFAULT, softening: float = 0.0,
                 relativistic: bool = False, c: float = C):
        if softening < 0:
            raise ValueError(f"Softening must be non-negative, got {softening}")
        self.G = G
        self.softening = softening
        self.relativistic = relativistic
        self.c = c

    def lorentz_factor(self, source: Body) -> float:
        """Lorentz factor of the source body, 1 if it moves at or above c."""
        v = source.speed
        if v >= self.c:
            logger.warning("Body '%s' speed %.6g m/s is not below c, "
                           "skipping relativistic correction", source.name, v)
            return 1.0
        return 1.0 / math.sqrt(1.0 - (v / self.c)**2)

    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        total = np.zeros(3)
        eps2 = self.softening**2
        for other in bodies:
            if other is target:
                continue
            d = other.position - target.position
            dist2 = float(d @ d)
            if eps2 == 0 and (dist2 == 0 or
                              math.sqrt(dist2) < target.radius + other.radius):
                continue
            soft2 = dist2 + eps2
            magnitude = self.G * target.mass * other.mass / soft2
            if self.relativistic:
                magnitude *= self.lorentz_factor(other)
            total += magnitude * d / math.sqrt(soft2)
        return total


class TidalForce:
    """
    Scalar tidal model: magnitude 2*G*m_other*R_target/d**4 along the
    separation toward the other body.
    """
    def __init__(self, G: float = G_DEFAULT):
        self.G = G

    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        total = np.zeros(3)
        for other in bodies:
            if other is target:
                continue
            d = other.position - target.position
            dist = float(np.linalg.norm(d))
            if dist == 0:
                continue
            magnitude = 2.0 * self.G * other.mass * target.radius / dist**4
            total += magnitude * d / dist
        return total


class AtmosphericDrag:
    """
    Quadratic drag from the target's atmosphere on nearby bodies' motion.

    Active only when the target has an atmosphere of positive height.
    For each other body inside radius + atmospheric_height the density
    falls off exponentially with altitude above the target surface, and
    the force opposes the other body's velocity:

        F = -0.5 * rho * v**2 * Cd * pi * R_other**2 * v_hat
    """
    def __init__(self, scale_height: float = ATMOSPHERE_SCALE_HEIGHT,
                 drag_coefficient: float = DRAG_COEFFICIENT):
        if scale_height <= 0:
            raise ValueError(f"Scale height must be positive, got {scale_height}")
        self.scale_height = scale_height
        self.drag_coefficient = drag_coefficient

    def density_at(self, target: Body, distance: float) -> float:
        """Atmospheric density [kg/m^3] at a distance from the target center."""
        altitude = distance - target.radius
        return target.atmospheric_density * math.exp(-altitude / self.scale_height)

    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        total = np.zeros(3)
        if not target.has_atmosphere or target.atmospheric_height <= 0:
            return total
        ceiling = target.radius + target.atmospheric_height
        for other in bodies:
            if other is target:
                continue
            dist = float(np.linalg.norm(other.position - target.position))
            if dist >= ceiling:
                continue
            speed = other.speed
            if speed == 0:
                continue
            rho = self.density_at(target, dist)
            area = math.pi * other.radius**2
            magnitude = 0.5 * rho * speed**2 * self.drag_coefficient * area
            total -= magnitude * other.velocity / speed
        return total


class RadiationPressure:
    """
    Radiation pressure from every luminous body, pushing the target away:

        F = (1 + albedo) * L / (4 pi d**2) * pi * R_target**2 / c
    """
    def __init__(self, c: float = C):
        self.c = c

    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        total = np.zeros(3)
        cross_section = math.pi * target.radius**2
        for source in bodies:
            if source is target or source.luminosity <= 0:
                continue
            d = target.position - source.position
            dist = float(np.linalg.norm(d))
            if dist == 0:
                continue
            flux = source.luminosity / (4.0 * math.pi * dist**2)
            magnitude = (1.0 + target.effective_albedo) * flux * cross_section / self.c
            total += magnitude * d / dist
        return total


class MagneticForce:
    """Dipole-dipole attraction 3*mu0*m1*m2/(4*pi*d**4) between flagged bodies."""

    @staticmethod
    def _is_magnetic(body: Body) -> bool:
        return body.has_magnetic_field and body.magnetic_moment != 0

    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        total = np.zeros(3)
        if not self._is_magnetic(target):
            return total
        for other in bodies:
            if other is target or not self._is_magnetic(other):
                continue
            d = other.position - target.position
            dist = float(np.linalg.norm(d))
            if dist == 0:
                continue
            magnitude = (3.0 * MU_0 * target.magnetic_moment * other.magnetic_moment
                         / (4.0 * math.pi * dist**4))
            total += magnitude * d / dist
        return total


class Oblateness:
    """
    J2 zonal-harmonic correction to the gravity of every oblate body.

    The oblate body's spin axis is taken along the reference z-axis. With
    (x, y, z) the target position relative to that body and r its norm:

        a = 1.5*J2*mu*R**2/r**5 * [x(5z^2/r^2 - 1), y(5z^2/r^2 - 1), z(5z^2/r^2 - 3)]

    Only the perturbation is returned; the point-mass term is Gravity's.
    """
    def __init__(self, G: float = G_DEFAULT):
        self.G = G

    def acceleration(self, target: Body, source: Body) -> np.ndarray:
        """J2 acceleration [m/s^2] of target caused by an oblate source."""
        x, y, z = target.position - source.position
        r2 = x * x + y * y + z * z
        if r2 == 0 or source.j2 == 0:
            return np.zeros(3)
        r = math.sqrt(r2)
        factor = 1.5 * source.j2 * self.G * source.mass * source.radius**2 / r**5
        z2_r2 = z * z / r2
        return factor * np.array([x * (5.0 * z2_r2 - 1.0),
                                  y * (5.0 * z2_r2 - 1.0),
                                  z * (5.0 * z2_r2 - 3.0)])

    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        total = np.zeros(3)
        for other in bodies:
            if other is target or other.j2 == 0:
                continue
            total += target.mass * self.acceleration(target, other)
        return total


# ========== CUSTOM CALCULATORS ==========
class ForceRegistry:
    """
    Name-keyed collection of custom force calculators.

    Entries may be objects with a ``compute(target, bodies)`` method or
    plain callables with the same signature. Each entry is evaluated in
    isolation: an exception, or a result that is not a finite 3-vector,
    is logged and that entry contributes nothing for this call.
    """
    def __init__(self):
        self._calculators: Dict[str, ForceFunction] = {}

    def register(self, name: str, calculator: Union[ForceCalculator, ForceFunction]):
        """Add or replace a calculator under the given name."""
        if not isinstance(name, str) or not name:
            raise ValueError(f"Calculator name must be a non-empty string, got {name!r}")
        if isinstance(calculator, ForceCalculator):
            func = calculator.compute
        elif callable(calculator):
            func = calculator
        else:
            raise TypeError(
                f"Force calculator '{name}' must be callable or define "
                f"compute(target, bodies), got {type(calculator).__name__}")
        self._calculators[name] = func

    def unregister(self, name: str) -> bool:
        """Remove a calculator. Returns False if no such name was registered."""
        return self._calculators.pop(name, None) is not None

    @property
    def names(self) -> List[str]:
        return list(self._calculators)

    def compute(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        """Sum of all registered contributions on target."""
        total = np.zeros(3)
        for name, func in self._calculators.items():
            try:
                contribution = np.asarray(func(target, bodies), dtype=float)
                if contribution.shape != (3,):
                    raise ValueError(
                        f"expected a 3-vector, got shape {contribution.shape}")
                if not np.all(np.isfinite(contribution)):
                    raise ValueError(f"non-finite force {contribution}")
            except Exception:
                logger.error("Force calculator '%s' failed for body '%s'",
                             name, target.name, exc_info=True)
                continue
            total += contribution
        return total

    def __contains__(self, name) -> bool:
        return name in self._calculators

    def __len__(self) -> int:
        return len(self._calculators)

    def __iter__(self) -> Iterator[str]:
        return iter(self._calculators)

    def __repr__(self):
        return f"ForceRegistry({self.names})"
