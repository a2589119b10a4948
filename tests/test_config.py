"""
Test suite for package configuration.

Tests cover:
- Defaults and reset()
- temp_config restoration, including on error
- Unknown attributes
"""

import pytest
import orbis
from orbis import config, temp_config


class TestConfig:
    """Test the global OrbisConfig instance."""

    def test_defaults(self):
        """Fresh configuration holds the package defaults."""
        assert config.STRICT_VALIDATION is True
        assert config.KEPLER_ITERATIONS == 10
        assert config.KEPLER_TOLERANCE is None
        assert config.SNAP_TO_CIRCULAR == 1e-8
        assert config.SNAP_TO_EQUATORIAL == 1e-8
        assert config.DEFAULT_SAMPLE_POINTS == 1000

    def test_reset(self):
        """reset() restores every modified value."""
        config.KEPLER_ITERATIONS = 99
        config.STRICT_VALIDATION = False
        config.reset()
        assert config.KEPLER_ITERATIONS == 10
        assert config.STRICT_VALIDATION is True

    def test_package_exposes_same_instance(self):
        """orbis.config is the module-level singleton."""
        assert orbis.config is config

    def test_repr_lists_settings(self):
        """repr shows every setting."""
        text = repr(config)
        assert "KEPLER_ITERATIONS = 10" in text
        assert "STRICT_VALIDATION = True" in text


class TestTempConfig:
    """Test temporary configuration changes."""

    def test_restores_after_block(self):
        """Values return to their previous state after the block."""
        with temp_config(KEPLER_ITERATIONS=3, SNAP_TO_CIRCULAR=1e-4) as cfg:
            assert cfg.KEPLER_ITERATIONS == 3
            assert config.SNAP_TO_CIRCULAR == 1e-4
        assert config.KEPLER_ITERATIONS == 10
        assert config.SNAP_TO_CIRCULAR == 1e-8

    def test_restores_after_exception(self):
        """Values are restored even when the block raises."""
        with pytest.raises(RuntimeError):
            with temp_config(STRICT_VALIDATION=False):
                raise RuntimeError("inside")
        assert config.STRICT_VALIDATION is True

    def test_unknown_attribute(self):
        """Unknown settings raise AttributeError and change nothing."""
        with pytest.raises(AttributeError, match="no attribute"):
            with temp_config(NOT_A_SETTING=1):
                pass
        assert not hasattr(config, "NOT_A_SETTING")

    def test_tolerance_changes_solver(self):
        """Early exit with a loose tolerance uses fewer iterations."""
        from orbis.kepler import solve_kepler
        full = solve_kepler(2.0, 0.5)
        with temp_config(KEPLER_TOLERANCE=0.5):
            early = solve_kepler(2.0, 0.5)
        assert early != full
