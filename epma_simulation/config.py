"""
Configuration settings for the EPMA electron-transport simulation.

All lengths are in metres, energies in electron-volts and angles in radians.
Users can modify these values to customize the simulation without changing
the core code.
"""

from __future__ import annotations

# =============================================================================
# Chamber
# =============================================================================

# Radius of the spherical vacuum chamber centred at the origin (m)
CHAMBER_RADIUS = 0.1

# Minimum tracking energy in the chamber vacuum (eV)
NULL_MIN_TRACKING_ENERGY_EV = 0.1

# Mean free path in the chamber vacuum (m)
NULL_MEAN_FREE_PATH_M = 1.0

# =============================================================================
# Electron Beam
# =============================================================================

# Default beam energy (eV)
DEFAULT_BEAM_ENERGY_EV = 20.0e3

# Default Gaussian beam width (m)
DEFAULT_BEAM_WIDTH_M = 1.0e-8

# Narrowest Gaussian beam allowed (m)
MIN_BEAM_WIDTH_M = 5.0e-12

# Fraction of the chamber radius at which the Gaussian gun sits
GUN_DISTANCE_FRACTION = 0.99

# Default centre of the overscan (raster) gun (m)
OVERSCAN_GUN_CENTER = [0.0, 0.0, -0.099]

# =============================================================================
# Transport
# =============================================================================

# Default minimum tracking energy for material models (eV)
DEFAULT_MIN_TRACKING_ENERGY_EV = 50.0

# Maximum number of suspended electrons on the secondary stack
MAX_CASCADE_DEPTH = 10000

# Number of trajectories used to estimate the interaction volume
TRAJECTORY_VOLUME_SAMPLES = 100

# Path-length tolerance when mapping materials along a segment (m)
MATERIAL_MAP_EPSILON = 1.0e-7

# =============================================================================
# Simulation Parameters
# =============================================================================

# Number of trajectories to simulate
DEFAULT_N_TRAJECTORIES = 1000

# Seed for the random stream (None draws fresh entropy)
DEFAULT_SEED = None

# =============================================================================
# Demo Sample (coated substrate)
# =============================================================================

# Substrate block edge length (m)
SUBSTRATE_SIZE_M = 10.0e-6

# Coating film thickness (m)
COATING_THICKNESS_M = 20.0e-9

# Substrate model parameters
SUBSTRATE_MEAN_FREE_PATH_M = 5.0e-9
SUBSTRATE_STOPPING_POWER_EV_PER_M = -2.0e9
SUBSTRATE_SCREENING_ANGLE = 0.05

# Coating model parameters
COATING_MEAN_FREE_PATH_M = 20.0e-9
COATING_STOPPING_POWER_EV_PER_M = -0.5e9
COATING_SCREENING_ANGLE = 0.02

# Probability that a scattering event ejects a secondary electron
SECONDARY_YIELD = 0.01

# Fraction of the primary energy handed to a secondary electron
SECONDARY_ENERGY_FRACTION = 0.05

# =============================================================================
# Porous Sample
# =============================================================================

# Default pore radius (m)
DEFAULT_PORE_RADIUS_M = 1.0e-8

# Default pore number density (pores per m^3)
DEFAULT_PORE_DENSITY = 1.0e20

# =============================================================================
# Backscatter Histograms
# =============================================================================

ELEVATION_BINS = 180
AZIMUTH_BINS = 360
ENERGY_BINS = 400

# =============================================================================
# Output
# =============================================================================

DATA_OUTPUT_DIR = "Data"
TRAJECTORY_DATA_CSV = "trajectory_records.csv"
BACKSCATTER_DATA_CSV = "backscatter_records.csv"
BACKSCATTER_HISTOGRAM_CSV = "backscatter_energy_histogram.csv"
