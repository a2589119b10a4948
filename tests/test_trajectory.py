"""
Test suite for the Trajectory container.

Tests cover:
- Construction from recorded samples and linear interpolation
- State access (state_at, evaluate, sample, position_of, __call__)
- Time bounds validation
- DataFrame export in long format
"""

import pytest
import numpy as np
import pandas as pd
from orbis import Trajectory, Traj, temp_config


@pytest.fixture
def linear_traj():
    """Two bodies moving at constant velocity, sampled at t = 0, 10, 20."""
    times = np.array([0.0, 10.0, 20.0])
    states = np.zeros((3, 2, 6))
    for k, t in enumerate(times):
        states[k, 0] = [t, 0.0, 0.0, 1.0, 0.0, 0.0]
        states[k, 1] = [0.0, 2 * t, 0.0, 0.0, 2.0, 0.0]
    return Trajectory.from_samples(times, states, ["a", "b"])


class TestConstruction:
    """Test Trajectory construction."""

    def test_properties(self, linear_traj):
        """Bounds, duration and body count."""
        assert linear_traj.t0 == 0.0
        assert linear_traj.tf == 20.0
        assert linear_traj.duration == 20.0
        assert linear_traj.n_bodies == 2
        assert linear_traj.names == ["a", "b"]

    def test_abbreviation(self):
        """Traj is Trajectory."""
        assert Traj is Trajectory

    def test_flat_states_accepted(self):
        """States may be given flat per sample."""
        traj = Trajectory.from_samples([0.0, 1.0], np.zeros((2, 6)), ["only"])
        assert traj.state_at(0.5).shape == (1, 6)

    def test_column_count_checked(self):
        """State width must match the body count."""
        with pytest.raises(ValueError, match="columns"):
            Trajectory.from_samples([0.0, 1.0], np.zeros((2, 7)), ["x"])

    def test_times_must_increase(self):
        """Sample times must be strictly increasing."""
        with pytest.raises(ValueError, match="increasing"):
            Trajectory.from_samples([0.0, 0.0], np.zeros((2, 6)), ["x"])

    def test_reversed_bounds_rejected(self):
        """tf before t0 raises ValueError."""
        with pytest.raises(ValueError):
            Trajectory(lambda t: np.zeros(6), 10.0, 0.0, ["x"])

    def test_needs_a_body(self):
        """An empty name list raises ValueError."""
        with pytest.raises(ValueError):
            Trajectory(lambda t: np.zeros(0), 0.0, 1.0, [])


class TestStateAccess:
    """Test evaluation methods."""

    def test_state_at_interpolates(self, linear_traj):
        """States between samples are linear."""
        state = linear_traj.state_at(5.0)
        assert np.allclose(state[0], [5.0, 0.0, 0.0, 1.0, 0.0, 0.0])
        assert np.allclose(state[1], [0.0, 10.0, 0.0, 0.0, 2.0, 0.0])

    def test_call_is_state_at(self, linear_traj):
        """Calling the trajectory evaluates it."""
        assert np.array_equal(linear_traj(12.5), linear_traj.state_at(12.5))

    def test_evaluate_scalar_and_array(self, linear_traj):
        """Scalar and array times give matching shapes."""
        assert linear_traj.evaluate(3.0).shape == (2, 6)
        assert linear_traj.evaluate(np.int64(3)).shape == (2, 6)
        states = linear_traj.evaluate([0.0, 7.0, 20.0])
        assert states.shape == (3, 2, 6)
        assert states[1, 1, 1] == pytest.approx(14.0)

    def test_sample(self, linear_traj):
        """Uniform sampling returns n_points states."""
        states = linear_traj.sample(5)
        assert states.shape == (5, 2, 6)
        assert states[-1, 0, 0] == pytest.approx(20.0)

    def test_sample_default_points_from_config(self, linear_traj):
        """Default sample count comes from config."""
        with temp_config(DEFAULT_SAMPLE_POINTS=7):
            assert linear_traj.sample().shape == (7, 2, 6)

    def test_sample_needs_two_points(self, linear_traj):
        """Fewer than two points raise ValueError."""
        with pytest.raises(ValueError):
            linear_traj.sample(1)

    def test_position_of(self, linear_traj):
        """Positions by body name or index."""
        assert np.allclose(linear_traj.position_of("b", 10.0), [0.0, 20.0, 0.0])
        assert np.allclose(linear_traj.position_of(0, 10.0), [10.0, 0.0, 0.0])
        with pytest.raises(KeyError):
            linear_traj.position_of("c", 10.0)
        with pytest.raises(IndexError):
            linear_traj.position_of(2, 10.0)

    def test_outside_bounds(self, linear_traj):
        """Times outside the span raise ValueError."""
        with pytest.raises(ValueError, match="outside trajectory bounds"):
            linear_traj.state_at(20.5)
        with pytest.raises(ValueError):
            linear_traj.evaluate([-1.0, 5.0])
        assert linear_traj.contains_time(20.0)
        assert not linear_traj.contains_time(-0.1)

    def test_returned_state_is_a_copy(self, linear_traj):
        """Mutating a returned state does not affect the trajectory."""
        state = linear_traj.state_at(5.0)
        state[0, 0] = 1e9
        assert linear_traj.state_at(5.0)[0, 0] == pytest.approx(5.0)


class TestDataFrame:
    """Test DataFrame export."""

    def test_long_format(self, linear_traj):
        """One row per time and body with state columns."""
        df = linear_traj.to_dataframe(times=[0.0, 10.0])
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ['time', 'body', 'x', 'y', 'z', 'vx', 'vy', 'vz']
        assert len(df) == 4
        assert list(df['body']) == ["a", "b", "a", "b"]
        row = df[(df['time'] == 10.0) & (df['body'] == "b")].iloc[0]
        assert row['y'] == pytest.approx(20.0)

    def test_uniform_sampling(self, linear_traj):
        """Without times the export samples uniformly."""
        df = linear_traj.to_dataframe(n_points=11)
        assert len(df) == 22
        assert df['time'].iloc[-1] == 20.0

    def test_repr(self, linear_traj):
        """repr shows the body count."""
        assert "bodies=2" in repr(linear_traj)
