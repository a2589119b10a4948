'''Physical constants and model defaults used throughout orbis (SI units)'''

import math

# Newtonian gravitational constant [m^3 kg^-1 s^-2]
G = 6.67430e-11
# Speed of light in vacuum [m/s]
C = 299792458.0
# Vacuum permeability [N/A^2]
MU_0 = 4.0 * math.pi * 1e-7

# Atmospheric drag model
DRAG_COEFFICIENT = 0.47     # sphere
ATMOSPHERE_SCALE_HEIGHT = 8000.0  # [m]

# Radiation pressure model
DEFAULT_ALBEDO = 0.3
