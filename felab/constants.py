"""
Constants shared by the Faraday's Electromagnetic Lab model.

Coordinates are unitless model units (screen view units),
field values are in gauss, angles in radians. Time advances in constant
steps of DT per frame, at FRAMES_PER_SECOND frames per second.
"""

import numpy as np

# =============================================================================
# CLOCK
# =============================================================================

# Constant dt per frame that all step methods were designed for
DT = 1.0

# Frame rate of the constant-dt clock
FRAMES_PER_SECOND = 25
SECONDS_PER_FRAME = 1.0 / FRAMES_PER_SECOND

# =============================================================================
# CURRENT
# =============================================================================

# Relative current in a coil: magnitude is the fraction of the maximum current,
# sign is the direction of flow.
CURRENT_AMPLITUDE_RANGE = (-1.0, 1.0)

# Current amplitudes below this magnitude are treated as zero by indicators
CURRENT_AMPLITUDE_THRESHOLD = 0.001

# =============================================================================
# MAGNETS
# =============================================================================

BAR_MAGNET_SIZE = (250.0, 50.0)              # width is from south to north pole
BAR_MAGNET_STRENGTH_RANGE = (0.0, 300.0)     # G
BAR_MAGNET_INITIAL_STRENGTH = 225.0          # G

# Strength of the magnet that the precomputed field grids were tabulated for
GRID_REFERENCE_STRENGTH = 300.0              # G

ELECTROMAGNET_STRENGTH_RANGE = (0.0, 300.0)  # G

GAUSS_PER_TESLA = 1e4

TWO_PI = 2 * np.pi
