"""
Test suite for the Body state model.

Tests cover:
- Construction and vector coercion
- Validation of physical fields (strict and relaxed)
- Derived density and albedo fallback
- Plain-data snapshots and copies
"""

import math
import pytest
import numpy as np
from orbis import Body, temp_config
from orbis.constants import DEFAULT_ALBEDO


class TestConstruction:
    """Test Body construction."""

    def test_defaults_are_zero_vectors(self):
        """Kinematic state defaults to zero vectors."""
        body = Body(mass=1.0, radius=1.0)
        for vec in (body.position, body.velocity, body.acceleration):
            assert vec.shape == (3,)
            assert np.all(vec == 0)

    def test_lists_become_float_arrays(self):
        """Position and velocity given as lists become float arrays."""
        body = Body(mass=1.0, position=[1, 2, 3], velocity=(4, 5, 6))
        assert body.position.dtype == float
        assert np.array_equal(body.velocity, [4.0, 5.0, 6.0])

    def test_default_vectors_not_shared(self):
        """Each body gets its own state arrays."""
        a = Body(mass=1.0)
        b = Body(mass=1.0)
        a.position[0] = 5.0
        assert b.position[0] == 0.0

    def test_density_derived_from_mass_and_radius(self):
        """Density is computed from a uniform sphere when unset."""
        body = Body(mass=4.0 / 3.0 * math.pi * 1000.0, radius=10.0)
        assert body.density == pytest.approx(1.0)

    def test_explicit_density_kept(self):
        """A given density is not overwritten."""
        body = Body(mass=1e20, radius=1e5, density=3000.0)
        assert body.density == 3000.0

    def test_albedo_fallback(self):
        """Unset albedo falls back to the default used by radiation pressure."""
        assert Body(mass=1.0).effective_albedo == DEFAULT_ALBEDO
        assert Body(mass=1.0, albedo=0.9).effective_albedo == 0.9


class TestValidation:
    """Test Body field validation."""

    @pytest.mark.parametrize("field", ["mass", "radius", "density"])
    def test_negative_physical_field_raises(self, field):
        """Negative mass, radius or density is rejected."""
        with pytest.raises(ValueError, match=field):
            Body(**{field: -1.0})

    def test_relaxed_validation_warns(self):
        """With strict validation off, invalid fields only warn."""
        with temp_config(STRICT_VALIDATION=False):
            with pytest.warns(UserWarning, match="mass"):
                body = Body(mass=-1.0)
        assert body.mass == -1.0

    def test_wrong_vector_shape_raises(self):
        """Vectors must have exactly three components."""
        with pytest.raises(ValueError, match="3 components"):
            Body(mass=1.0, position=[1.0, 2.0])

    def test_non_finite_vector_raises(self):
        """NaN in a state vector is rejected."""
        with pytest.raises(ValueError, match="NaN or Inf"):
            Body(mass=1.0, velocity=[np.nan, 0.0, 0.0])

    def test_parent_must_be_index(self):
        """Parent is an integer index, not a Body reference."""
        star = Body(mass=1.0)
        with pytest.raises(TypeError):
            Body(mass=1.0, parent=star)

    def test_albedo_range(self):
        """Albedo outside [0, 1] is rejected."""
        with pytest.raises(ValueError, match="Albedo"):
            Body(mass=1.0, albedo=1.5)


class TestSnapshots:
    """Test plain-data snapshots and copies."""

    def test_to_dict_contains_plain_lists(self):
        """Vectors appear as lists so the snapshot is detached."""
        body = Body(mass=2.0, radius=1.0, position=[1.0, 0.0, 0.0], name="rock")
        snap = body.to_dict()
        assert snap['position'] == [1.0, 0.0, 0.0]
        assert snap['name'] == "rock"
        body.position[0] = 99.0
        assert snap['position'][0] == 1.0

    def test_copy_is_independent(self):
        """Copies own their state vectors."""
        body = Body(mass=2.0, velocity=[1.0, 2.0, 3.0], parent=0)
        clone = body.copy()
        clone.velocity[0] = -1.0
        assert body.velocity[0] == 1.0
        assert clone.parent == 0

    def test_primed_when_acceleration_given(self):
        """A supplied nonzero acceleration counts as current Verlet state."""
        assert not Body(mass=1.0).acceleration_primed
        assert Body(mass=1.0, acceleration=[0.0, 1.0, 0.0]).acceleration_primed
        assert not Body(mass=1.0, acceleration=[0.0, 1.0, 0.0],
                        acceleration_primed=False).acceleration_primed

    def test_speed(self):
        """Speed is the velocity magnitude."""
        body = Body(mass=1.0, velocity=[3.0, 4.0, 0.0])
        assert body.speed == pytest.approx(5.0)

    def test_has_orbit_requires_parent_and_axis(self):
        """Keplerian orbit needs both a parent index and a semi-major axis."""
        assert not Body(mass=1.0, semi_major_axis=1e7).has_orbit
        assert not Body(mass=1.0, parent=0).has_orbit
        assert Body(mass=1.0, parent=0, semi_major_axis=1e7).has_orbit
