"""
Orbis: Celestial Body Simulation Core

A Python package for advancing the state of celestial bodies in time, either
analytically along Keplerian orbits or numerically with N-body integration
and pluggable force models, plus collision detection and orbital element
extraction.
"""

# Configuration
from .config import config, temp_config, OrbisConfig

# Core classes
from .body import Body
from .integrator import Integrator, IntegratorConfig, IntegrationMethod
from .collisions import CollisionEvent, detect_collisions
from .orbital_elements import (OrbitalElements, DegenerateOrbitWarning,
                               extract_elements, assign_elements,
                               elements_to_dataframe, hill_sphere_radius,
                               roche_limit, SecularRates, secular_rates)
from .trajectory import Trajectory, Trajectory as Traj
from .forces import (ForceCalculator, ForceRegistry, Gravity, TidalForce,
                     AtmosphericDrag, RadiationPressure, MagneticForce,
                     Oblateness)
from .kepler import propagate, apply_keplerian
from .reference import reference_trajectory
from . import constants

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from orbis import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    "OrbisConfig",
    # Classes
    "Body",
    "Integrator",
    "IntegratorConfig",
    "IntegrationMethod",
    "CollisionEvent",
    "OrbitalElements",
    "DegenerateOrbitWarning",
    "SecularRates",
    "Trajectory",
    "ForceCalculator",
    "ForceRegistry",
    "Gravity",
    "TidalForce",
    "AtmosphericDrag",
    "RadiationPressure",
    "MagneticForce",
    "Oblateness",
    # Functions
    "propagate",
    "apply_keplerian",
    "detect_collisions",
    "extract_elements",
    "assign_elements",
    "elements_to_dataframe",
    "hill_sphere_radius",
    "roche_limit",
    "secular_rates",
    "reference_trajectory",
    # Abbreviations
    "Traj",
    # Modules
    "constants",
]
