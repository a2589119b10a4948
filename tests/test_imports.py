"""Smoke tests to verify package imports work."""

def test_package_imports():
    """Test that all main classes can be imported."""
    from orbis import Body, Integrator, OrbitalElements, Trajectory, CollisionEvent
    assert Body is not None
    assert Integrator is not None
    assert OrbitalElements is not None
    assert Trajectory is not None
    assert CollisionEvent is not None

def test_version_exists():
    """Test that version is defined."""
    import orbis
    assert hasattr(orbis, '__version__')
    assert orbis.__version__ == "0.1.0"

def test_can_create_body():
    """Test basic Body creation."""
    from orbis import Body
    earth = Body(mass=5.972e24, radius=6.371e6, name="Earth")
    assert earth.mass == 5.972e24
    assert earth.position.shape == (3,)

def test_can_create_integrator():
    """Test basic Integrator creation."""
    from orbis import Integrator, IntegrationMethod
    integ = Integrator(method='rk4')
    assert integ.method == IntegrationMethod.RK4

def test_star_import_exposes_all():
    """Every name in __all__ resolves."""
    import orbis
    for name in orbis.__all__:
        assert hasattr(orbis, name), name
