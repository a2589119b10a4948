'''High-precision N-body reference orbits for the orbis simulation core
Taylor integration of softened Newtonian gravity with heyoka'''

import logging
import math
from typing import List, Optional, Sequence, Tuple

import heyoka as hy
import numpy as np

from .body import Body
from .constants import G as G_DEFAULT
from .integrator import stack_state
from .trajectory import Trajectory
from .utils import Timer

logger = logging.getLogger(__name__)


def build_nbody_eom(masses: Sequence[float], G: float = G_DEFAULT,
                    softening: float = 0.0) -> List[Tuple]:
    """
    Build symbolic Heyoka equations of motion for N gravitating bodies.

    Parameters
    ----------
    masses : sequence of float
        Body masses [kg], hardcoded into the expressions
    G : float, optional
        Gravitational constant
    softening : float, optional
        Softening length [m], same model as orbis.forces.Gravity

    Returns
    -------
    sys : list of (var, rhs) tuples
        Heyoka ODE system definition ready for taylor_adaptive()

    Notes
    -----
    State vector order: [x, y, z, vx, vy, vz] per body, bodies in list order.
    The zero-force rule for overlapping bodies without softening is not
    modelled; reference orbits are meant for encounters that stay apart.
    """
    n_bodies = len(masses)
    names = []
    for i in range(n_bodies):
        names.extend([f"x_{i}", f"y_{i}", f"z_{i}", f"vx_{i}", f"vy_{i}", f"vz_{i}"])
    variables = hy.make_vars(*names)
    eps2 = softening**2

    positions = [variables[6 * i:6 * i + 3] for i in range(n_bodies)]
    velocities = [variables[6 * i + 3:6 * i + 6] for i in range(n_bodies)]

    sys = []
    for i in range(n_bodies):
        xi, yi, zi = positions[i]
        acc = [0.0, 0.0, 0.0]
        for j in range(n_bodies):
            if j == i or masses[j] == 0:
                continue
            xj, yj, zj = positions[j]
            dx, dy, dz = xj - xi, yj - yi, zj - zi
            r = hy.sqrt(dx**2 + dy**2 + dz**2 + eps2)
            coeff = G * masses[j] / r**3
            acc = [acc[0] + coeff * dx, acc[1] + coeff * dy, acc[2] + coeff * dz]
        vxi, vyi, vzi = velocities[i]
        sys.extend([(xi, vxi), (yi, vyi), (zi, vzi)])
        sys.extend([(vel, hy.expression(a) if isinstance(a, float) else a)
                    for vel, a in zip(velocities[i], acc)])
    return sys


def reference_trajectory(bodies: Sequence[Body], duration: float,
                         G: float = G_DEFAULT, softening: float = 0.0,
                         tol: Optional[float] = None,
                         t0: float = 0.0) -> Trajectory:
    """
    Integrate point-mass gravity with an adaptive Taylor integrator.

    The bodies are not modified. The result has dense output, so it can
    be evaluated at any time in [t0, t0 + duration].

    Parameters
    ----------
    bodies : sequence of Body
        Initial states
    duration : float
        Time span [s], must be positive
    G : float, optional
        Gravitational constant
    softening : float, optional
        Softening length [m]
    tol : float, optional
        Integrator tolerance (default: heyoka's, machine epsilon)
    t0 : float, optional
        Time label of the initial state

    Returns
    -------
    Trajectory

    Raises
    ------
    ValueError
        If there are fewer than two bodies, the duration is not positive,
        or integration produces an invalid state
    """
    if len(bodies) < 2:
        raise ValueError("Reference integration needs at least two bodies")
    if not math.isfinite(duration) or duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")

    names = [b.name or f"body_{i}" for i, b in enumerate(bodies)]
    state = stack_state(bodies).reshape(-1)
    sys = build_nbody_eom([b.mass for b in bodies], G=G, softening=softening)

    kwargs = {} if tol is None else {'tol': tol}
    with Timer(f"Compiling {len(bodies)}-body reference integrator"):
        ta = hy.taylor_adaptive(sys=sys, state=state.tolist(), **kwargs)

    ta.time = t0
    result = ta.propagate_until(t0 + duration, c_output=True)
    traj = result[4]

    if not np.all(np.isfinite(ta.state)):
        raise ValueError(
            f"Reference integration failed: state became invalid.\n"
            f"Final time: {ta.time}\n"
            f"Final state: {ta.state}\n"
            f"Likely cause: close approach without softening"
        )
    if traj is None:
        raise ValueError("Integration produced no continuous output (c_output is None)")

    logger.debug("Reference integration finished with outcome %s", result[0])
    return Trajectory(traj, t0, t0 + duration, names)
