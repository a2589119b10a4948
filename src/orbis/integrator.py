'''Numerical N-body integration for the orbis simulation core
Integrator and IntegratorConfig class definitions'''

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .body import Body
from .collisions import CollisionHandler, detect_collisions
from .constants import G as G_DEFAULT, C
from .forces import (ForceCalculator, ForceFunction, ForceRegistry, Gravity,
                     TidalForce, AtmosphericDrag, RadiationPressure, MagneticForce,
                     Oblateness)
from .trajectory import Trajectory
from .utils import clamp_magnitude

logger = logging.getLogger(__name__)


# define an enumerated list of integration schemes
class IntegrationMethod(Enum):
    EULER = 'euler'     # semi-implicit (symplectic) Euler
    VERLET = 'verlet'   # velocity-Verlet, stateful through body.acceleration
    RK4 = 'rk4'         # classical fourth-order Runge-Kutta


@dataclass(frozen=True)
class IntegratorConfig:
    """
    Immutable settings of one Integrator.

    Attributes
    ----------
    time_step : float
        Default step size [s]
    method : IntegrationMethod or str
        'euler', 'verlet' or 'rk4'
    softening : float
        Gravitational softening length [m]
    max_acceleration : float or None
        Ceiling on acceleration magnitude [m/s^2], None disables clamping
    max_velocity : float or None
        Ceiling on velocity magnitude [m/s], None disables clamping
    collision_threshold : float
        Multiplier on combined radii for collision detection
    gravitational_constant : float
        G used by gravity, tidal force and energy diagnostics
    speed_of_light : float
        c used by the relativistic factor and radiation pressure
    relativistic, tidal, drag, radiation, magnetic, oblateness : bool
        Enable flags for the optional force models (all off by default)
    """
    time_step: float = 1.0
    method: Union[IntegrationMethod, str] = IntegrationMethod.VERLET
    softening: float = 1e6
    max_acceleration: Optional[float] = 1e6
    max_velocity: Optional[float] = 1e8
    collision_threshold: float = 1.0
    gravitational_constant: float = G_DEFAULT
    speed_of_light: float = C
    relativistic: bool = False
    tidal: bool = False
    drag: bool = False
    radiation: bool = False
    magnetic: bool = False
    oblateness: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'method', self._parse_method(self.method))

        for name in ('time_step', 'softening', 'collision_threshold',
                     'gravitational_constant'):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be finite and non-negative, got {value}")
        for name in ('max_acceleration', 'max_velocity'):
            value = getattr(self, name)
            if value is not None and (math.isnan(value) or value < 0):
                raise ValueError(f"{name} must be non-negative or None, got {value}")
        if self.speed_of_light <= 0:
            raise ValueError(f"speed_of_light must be positive, got {self.speed_of_light}")

    @staticmethod
    def _parse_method(method) -> IntegrationMethod:
        """Convert string to IntegrationMethod enum if needed."""
        if isinstance(method, IntegrationMethod):
            return method
        if isinstance(method, str):
            try:
                return IntegrationMethod(method.lower())
            except ValueError:
                valid = [m.value for m in IntegrationMethod]
                raise ValueError(
                    f"Invalid integration method '{method}'. "
                    f"Must be one of: {valid}"
                ) from None
        raise TypeError(f"method must be IntegrationMethod or str, got {type(method)}")


class Integrator:
    """
    Advances a caller-owned list of bodies with fixed-step N-body integration.

    Every step computes all forces of a stage from one consistent snapshot
    of positions and velocities before any body is moved. Accelerations and
    velocities are clamped to the configured ceilings after every update.

    Parameters
    ----------
    config : IntegratorConfig, optional
        Settings (default: IntegratorConfig())
    **overrides
        Individual IntegratorConfig fields, applied on top of config

    Examples
    --------
    >>> integ = Integrator(method='rk4', time_step=3600.0, softening=0.0)
    >>> integ.step(bodies)
    >>> traj = integ.propagate(bodies, duration=86400.0)
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, config: Optional[IntegratorConfig] = None, **overrides):
        if config is None:
            config = IntegratorConfig(**overrides)
        elif overrides:
            config = replace(config, **overrides)
        self._custom_forces = ForceRegistry()
        self._collision_handler: Optional[CollisionHandler] = None
        self._steppers: Dict[IntegrationMethod, Callable] = {
            IntegrationMethod.EULER: self._step_euler,
            IntegrationMethod.VERLET: self._step_verlet,
            IntegrationMethod.RK4: self._step_rk4,
        }
        self._apply_config(config)

    def _apply_config(self, config: IntegratorConfig):
        self._config = config
        self._gravity = Gravity(G=config.gravitational_constant,
                                softening=config.softening,
                                relativistic=config.relativistic,
                                c=config.speed_of_light)
        models: List[Tuple[str, ForceCalculator]] = [('gravity', self._gravity)]
        if config.tidal:
            models.append(('tidal', TidalForce(G=config.gravitational_constant)))
        if config.drag:
            models.append(('drag', AtmosphericDrag()))
        if config.radiation:
            models.append(('radiation', RadiationPressure(c=config.speed_of_light)))
        if config.magnetic:
            models.append(('magnetic', MagneticForce()))
        if config.oblateness:
            models.append(('oblateness', Oblateness(G=config.gravitational_constant)))
        self._force_models = models
        logger.debug("Integrator configured: method=%s, forces=%s",
                     config.method.value, [name for name, _ in models])

    def configure(self, **changes) -> 'Integrator':
        """
        Replace configuration fields, validating the result.

        Returns
        -------
        self
            Returns self for method chaining
        """
        self._apply_config(replace(self._config, **changes))
        return self

    # ========== PROPERTY ACCESS ==========
    @property
    def config(self) -> IntegratorConfig:
        return self._config

    @property
    def method(self) -> IntegrationMethod:
        return self._config.method

    @property
    def enabled_forces(self) -> List[str]:
        """Names of active built-in force models followed by custom ones."""
        return [name for name, _ in self._force_models] + self._custom_forces.names

    @property
    def collision_handler(self) -> Optional[CollisionHandler]:
        return self._collision_handler

    # ========== EXTENSIONS ==========
    def add_force_calculator(self, name: str,
                             calculator: Union[ForceCalculator, ForceFunction]):
        """Register a custom force calculator under a name."""
        self._custom_forces.register(name, calculator)

    def remove_force_calculator(self, name: str) -> bool:
        """Unregister a custom force calculator. Returns False if unknown."""
        return self._custom_forces.unregister(name)

    def set_collision_handler(self, handler: Optional[CollisionHandler]):
        """Set the function called for each collision after a step (None disables)."""
        if handler is not None and not callable(handler):
            raise TypeError(f"Collision handler must be callable, got {type(handler)}")
        self._collision_handler = handler

    # ========== FORCES ==========
    def total_force(self, target: Body, bodies: Sequence[Body]) -> np.ndarray:
        """Vector sum of gravity, enabled force models and custom calculators [N]."""
        total = np.zeros(3)
        for _, model in self._force_models:
            total += model.compute(target, bodies)
        total += self._custom_forces.compute(target, bodies)
        return total

    def _accelerations(self, bodies: Sequence[Body]) -> List[np.ndarray]:
        """Clamped accelerations of all bodies from their current state."""
        limit = self._config.max_acceleration
        accelerations = []
        for body in bodies:
            if body.mass == 0:
                accelerations.append(np.zeros(3))
                continue
            a = self.total_force(body, bodies) / body.mass
            accelerations.append(clamp_magnitude(a, limit))
        return accelerations

    def _clamp_velocity(self, v: np.ndarray) -> np.ndarray:
        return clamp_magnitude(v, self._config.max_velocity)

    def initialize_accelerations(self, bodies: Sequence[Body]) -> None:
        """
        Store accelerations computed from the current state.

        Velocity-Verlet does this by itself for bodies that are not primed.
        Call it after moving bodies outside the integrator to refresh all
        stored accelerations at once.
        """
        for body, a in zip(bodies, self._accelerations(bodies)):
            body.acceleration = a
            body.acceleration_primed = True

    # ========== STEPPING ==========
    def step(self, bodies: Sequence[Body], dt: Optional[float] = None) -> None:
        """
        Advance every body by one step in place.

        Parameters
        ----------
        bodies : sequence of Body
            Caller-owned bodies, mutated in place
        dt : float, optional
            Step size [s] (default: config.time_step)

        Raises
        ------
        ValueError
            If dt is negative or not finite. Nothing is modified.
        """
        if dt is None:
            dt = self._config.time_step
        if not math.isfinite(dt) or dt < 0:
            raise ValueError(f"Time step must be finite and non-negative, got {dt}")
        if len(bodies) == 0:
            return

        snapshot = [(b.position.copy(), b.velocity.copy(), b.acceleration.copy(),
                     b.acceleration_primed) for b in bodies]
        try:
            self._steppers[self._config.method](bodies, float(dt))
        except Exception:
            # leave the caller's bodies as they were before the step
            for body, (pos, vel, acc, primed) in zip(bodies, snapshot):
                body.position, body.velocity, body.acceleration = pos, vel, acc
                body.acceleration_primed = primed
            raise

        if self._collision_handler is not None:
            detect_collisions(bodies, self._config.collision_threshold,
                              self._collision_handler)

    def _step_euler(self, bodies: Sequence[Body], dt: float):
        """Semi-implicit Euler: v += a*dt, then x += v_new*dt."""
        accelerations = self._accelerations(bodies)
        for body, a in zip(bodies, accelerations):
            body.velocity = self._clamp_velocity(body.velocity + a * dt)
            body.position = body.position + body.velocity * dt
            body.acceleration = a
            body.acceleration_primed = True

    def _step_verlet(self, bodies: Sequence[Body], dt: float):
        """Velocity-Verlet using the acceleration stored by the previous step."""
        a_old = [b.acceleration.copy() for b in bodies]
        missing = [i for i, b in enumerate(bodies) if not b.acceleration_primed]
        if missing:
            bootstrap = self._accelerations(bodies)
            for i in missing:
                a_old[i] = bootstrap[i]

        for body, a in zip(bodies, a_old):
            body.position = body.position + body.velocity * dt + 0.5 * a * dt**2

        a_new = self._accelerations(bodies)
        for body, a0, a1 in zip(bodies, a_old, a_new):
            body.velocity = self._clamp_velocity(body.velocity + 0.5 * (a0 + a1) * dt)
            body.acceleration = a1
            body.acceleration_primed = True

    def _step_rk4(self, bodies: Sequence[Body], dt: float):
        """Classical RK4 with one full force evaluation per stage."""
        x0 = np.array([b.position for b in bodies])
        v0 = np.array([b.velocity for b in bodies])

        def derivative(x, v):
            for body, xi, vi in zip(bodies, x, v):
                body.position = xi.copy()
                body.velocity = vi.copy()
            return v, np.array(self._accelerations(bodies))

        k1x, k1v = derivative(x0, v0)
        k2x, k2v = derivative(x0 + 0.5 * dt * k1x, v0 + 0.5 * dt * k1v)
        k3x, k3v = derivative(x0 + 0.5 * dt * k2x, v0 + 0.5 * dt * k2v)
        k4x, k4v = derivative(x0 + dt * k3x, v0 + dt * k3v)

        x_new = x0 + dt / 6.0 * (k1x + 2.0 * k2x + 2.0 * k3x + k4x)
        v_new = v0 + dt / 6.0 * (k1v + 2.0 * k2v + 2.0 * k3v + k4v)
        for i, body in enumerate(bodies):
            body.position = x_new[i].copy()
            body.velocity = self._clamp_velocity(v_new[i].copy())
            body.acceleration = k4v[i].copy()
            body.acceleration_primed = True

    def propagate(self, bodies: Sequence[Body], duration: float,
                  dt: Optional[float] = None, record_every: int = 1,
                  t0: float = 0.0) -> Trajectory:
        """
        Step repeatedly over a time span and record the states.

        The last step is shortened when duration is not a multiple of dt.
        The initial and final states are always recorded.

        Parameters
        ----------
        bodies : sequence of Body
            Bodies to advance in place
        duration : float
            Time span [s]
        dt : float, optional
            Step size (default: config.time_step)
        record_every : int, optional
            Record every n-th step (default: 1)
        t0 : float, optional
            Time label of the initial state (default: 0)

        Returns
        -------
        Trajectory
            Linearly interpolated history spanning [t0, t0 + duration]
        """
        if dt is None:
            dt = self._config.time_step
        if not math.isfinite(duration) or duration < 0:
            raise ValueError(f"Duration must be finite and non-negative, got {duration}")
        if not math.isfinite(dt) or dt <= 0:
            raise ValueError(f"Time step must be positive for propagation, got {dt}")
        if record_every < 1:
            raise ValueError(f"record_every must be at least 1, got {record_every}")

        names = [b.name or f"body_{i}" for i, b in enumerate(bodies)]
        n_full = int(duration // dt)
        remainder = duration - n_full * dt

        times = [t0]
        states = [stack_state(bodies)]
        for k in range(1, n_full + 1):
            self.step(bodies, dt)
            if k % record_every == 0:
                times.append(t0 + k * dt)
                states.append(stack_state(bodies))
        if remainder > 1e-9 * dt:
            self.step(bodies, remainder)
        t_end = t0 + duration
        if times[-1] != t_end and duration > 0:
            if len(times) > 1 and t_end - times[-1] < 1e-9 * dt:
                times.pop()
                states.pop()
            times.append(t_end)
            states.append(stack_state(bodies))

        return Trajectory.from_samples(times, states, names)

    # ========== DIAGNOSTICS ==========
    def total_energy(self, bodies: Sequence[Body]) -> Dict[str, float]:
        """
        Kinetic, potential and total energy of the body set [J].

        The potential uses the same softening as the gravity model. Without
        softening, coincident or overlapping pairs exert no force and are
        left out of the potential as well.
        """
        G = self._config.gravitational_constant
        eps2 = self._config.softening**2
        kinetic = sum(0.5 * b.mass * float(b.velocity @ b.velocity) for b in bodies)
        potential = 0.0
        for i in range(len(bodies)):
            for j in range(i + 1, len(bodies)):
                d = bodies[j].position - bodies[i].position
                dist2 = float(d @ d)
                if eps2 == 0 and (dist2 == 0 or math.sqrt(dist2) <
                                  bodies[i].radius + bodies[j].radius):
                    continue
                soft2 = dist2 + eps2
                potential -= G * bodies[i].mass * bodies[j].mass / math.sqrt(soft2)
        return {'kinetic': kinetic, 'potential': potential,
                'total': kinetic + potential}

    @staticmethod
    def center_of_mass(bodies: Sequence[Body]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Mass-weighted mean position and velocity of the body set.

        Raises
        ------
        ValueError
            If the total mass is zero
        """
        total_mass = sum(b.mass for b in bodies)
        if total_mass <= 0:
            raise ValueError("Center of mass undefined for zero total mass")
        position = sum(b.mass * b.position for b in bodies) / total_mass
        velocity = sum(b.mass * b.velocity for b in bodies) / total_mass
        return position, velocity

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"Integrator(method={self.method.value}, "
                f"time_step={self._config.time_step}, "
                f"forces={self.enabled_forces})")


def stack_state(bodies: Sequence[Body]) -> np.ndarray:
    """Stacked [x, y, z, vx, vy, vz] rows, shape (n_bodies, 6)."""
    return np.array([np.concatenate([b.position, b.velocity]) for b in bodies])
