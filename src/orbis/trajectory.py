'''Trajectory container for the orbis simulation core
Continuous-time access to the stacked state of a body set'''

from typing import Callable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import config

STATE_COLUMNS = ['x', 'y', 'z', 'vx', 'vy', 'vz']


class Trajectory:
    """
    A time segment of N-body motion with continuous-time state access.

    The output function follows the convention of heyoka's continuous
    output: a scalar time gives a flat state of length 6*n_bodies laid
    out as [x, y, z, vx, vy, vz] per body, and an array of times gives
    an array of shape (n_times, 6*n_bodies).

    Attributes:
        output: continuous output callable (dense output or interpolant)
        t0: Start time
        tf: End time
        names: Body names, in state order
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, output: Callable, t0: float, tf: float,
                 names: Sequence[str]):
        if tf < t0:
            raise ValueError(f"tf ({tf}) must be >= t0 ({t0})")
        if len(names) == 0:
            raise ValueError("Trajectory needs at least one body")
        self._output = output
        self._t0 = float(t0)
        self._tf = float(tf)
        self._names = [str(n) for n in names]

    @classmethod
    def from_samples(cls, times, states, names: Sequence[str]) -> 'Trajectory':
        """
        Build a trajectory from recorded fixed-step states.

        States between samples are linearly interpolated.

        Parameters:
            times: Increasing sample times, shape (n_times,)
            states: Shape (n_times, n_bodies, 6) or (n_times, 6*n_bodies)
            names: Body names, in state order
        """
        times = np.asarray(times, dtype=float)
        states = np.asarray(states, dtype=float)
        if times.ndim != 1 or len(times) == 0:
            raise ValueError("times must be a non-empty 1D array")
        flat = states.reshape(len(times), -1)
        if flat.shape[1] != 6 * len(names):
            raise ValueError(
                f"States have {flat.shape[1]} columns, expected "
                f"{6 * len(names)} for {len(names)} bodies")
        if np.any(np.diff(times) <= 0):
            raise ValueError("Sample times must be strictly increasing")

        def output(t):
            t_arr = np.atleast_1d(np.asarray(t, dtype=float))
            columns = [np.interp(t_arr, times, flat[:, k])
                       for k in range(flat.shape[1])]
            result = np.column_stack(columns)
            return result[0] if np.ndim(t) == 0 else result

        return cls(output, times[0], times[-1], names)

    # ========== PROPERTY ACCESS ==========
    @property
    def t0(self):
        return self._t0

    @property
    def tf(self):
        return self._tf

    @property
    def duration(self):
        """Trajectory duration."""
        return self.tf - self.t0

    @property
    def names(self) -> List[str]:
        return list(self._names)

    @property
    def n_bodies(self) -> int:
        return len(self._names)

    # ========== UTILITY METHODS ==========
    def state_at(self, t: float) -> np.ndarray:
        """
        Get stacked state at specified time.

        Returns:
            Array of shape (n_bodies, 6)
        """
        self._validate_time(t)
        flat = np.array(self._output(float(t)))
        return flat.reshape(self.n_bodies, 6)

    def evaluate(self, times: Union[float, np.ndarray, list]) -> np.ndarray:
        """
        Evaluate trajectory at one or more times.

        Returns:
            Array of shape (n_bodies, 6) if times is scalar,
            array of shape (n_times, n_bodies, 6) if times is array-like
        """
        if np.ndim(times) == 0:
            return self.state_at(float(times))

        times = np.asarray(times, dtype=float)
        for t in (times.min(), times.max()):
            self._validate_time(t)
        flat = np.array(self._output(times))
        return flat.reshape(len(times), self.n_bodies, 6)

    def sample(self, n_points: Optional[int] = None) -> np.ndarray:
        """
        Uniformly sample trajectory in time.

        Parameters:
            n_points: Number of points (default: config.DEFAULT_SAMPLE_POINTS)

        Returns:
            Array of shape (n_points, n_bodies, 6)
        """
        if n_points is None:
            n_points = config.DEFAULT_SAMPLE_POINTS
        if n_points < 2:
            raise ValueError("n_points must be at least 2, use .state_at()")
        return self.evaluate(self.get_times(n_points))

    def position_of(self, body: Union[int, str], t: float) -> np.ndarray:
        """Position of one body (by index or name) at time t."""
        return self.state_at(t)[self._body_index(body), :3]

    def _body_index(self, body: Union[int, str]) -> int:
        if isinstance(body, str):
            try:
                return self._names.index(body)
            except ValueError:
                raise KeyError(f"No body named '{body}' in trajectory") from None
        if not 0 <= body < self.n_bodies:
            raise IndexError(f"Body index {body} out of range for "
                             f"{self.n_bodies} bodies")
        return body

    def _validate_time(self, t: float):
        """Validate that time is within trajectory bounds."""
        if not (self.t0 <= t <= self.tf):
            raise ValueError(
                f"Time {t} outside trajectory bounds [{self.t0}, {self.tf}]"
            )

    def contains_time(self, t: float) -> bool:
        """Check if time is within trajectory bounds."""
        return self.t0 <= t <= self.tf

    def get_times(self, n_points: Optional[int] = None) -> np.ndarray:
        """Generate uniform time array spanning trajectory."""
        if n_points is None:
            n_points = config.DEFAULT_SAMPLE_POINTS
        return np.linspace(self.t0, self.tf, n_points)

    def to_dataframe(self,
                     times: Optional[np.ndarray] = None,
                     n_points: Optional[int] = None) -> pd.DataFrame:
        """
        Export trajectory to pandas DataFrame in long format.

        Parameters:
            times: Specific times to evaluate. If None, uses uniform sampling.
            n_points: Number of uniform samples if times not provided

        Returns:
            DataFrame with columns time, body, x, y, z, vx, vy, vz and one
            row per (time, body)
        """
        if times is None:
            times = self.get_times(n_points)
        else:
            times = np.asarray(times, dtype=float)

        states = self.evaluate(times)
        n_times = len(times)

        data = {
            'time': np.repeat(times, self.n_bodies),
            'body': np.tile(self._names, n_times),
        }
        flat = states.reshape(n_times * self.n_bodies, 6)
        for k, column in enumerate(STATE_COLUMNS):
            data[column] = flat[:, k]

        return pd.DataFrame(data)

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"Trajectory(bodies={self.n_bodies}, "
                f"t0={self.t0}, tf={self.tf}, duration={self.duration})")

    def __call__(self, t: float) -> np.ndarray:
        """
        Evaluate trajectory at time t.
        Syntactic sugar for .state_at(t). Allows traj(t) syntax.
        """
        return self.state_at(t)
