import math
import numpy as np

FLOAT_DTYPE = np.float64
INT_DTYPE = np.int64

# Surface types
SURFACE_PLANE_X    :INT_DTYPE = 1
SURFACE_PLANE_Y    :INT_DTYPE = 2
SURFACE_PLANE_Z    :INT_DTYPE = 3
SURFACE_PLANE      :INT_DTYPE = 4
SURFACE_CYLINDER_X :INT_DTYPE = 5
SURFACE_CYLINDER_Y :INT_DTYPE = 6
SURFACE_CYLINDER_Z :INT_DTYPE = 7
SURFACE_SPHERE     :INT_DTYPE = 8
SURFACE_CONE_X     :INT_DTYPE = 9
SURFACE_CONE_Y     :INT_DTYPE = 10
SURFACE_CONE_Z     :INT_DTYPE = 11
SURFACE_QUADRIC    :INT_DTYPE = 12
SURFACE_BOX        :INT_DTYPE = 13

# Boundary conditions
BC_NONE       :INT_DTYPE = 0
BC_VACUUM     :INT_DTYPE = 1
BC_REFLECTIVE :INT_DTYPE = 2
BC_PERIODIC   :INT_DTYPE = 3

# Cell fill types
FILL_NONE     :INT_DTYPE = 0
FILL_MATERIAL :INT_DTYPE = 1
FILL_UNIVERSE :INT_DTYPE = 2
FILL_LATTICE  :INT_DTYPE = 3

# Region tokens (surface tokens are +/-(surface ID + 1))
OP_LEFT_PAREN  :INT_DTYPE = 2**31 - 1
OP_RIGHT_PAREN :INT_DTYPE = 2**31 - 2
OP_COMPLEMENT  :INT_DTYPE = 2**31 - 3
OP_UNION       :INT_DTYPE = 2**31 - 4

# Root universe
UNIVERSE_ROOT :INT_DTYPE = 0

# Particle states
STATE_BIRTH       :INT_DTYPE = 0
STATE_IN_FLIGHT   :INT_DTYPE = 1
STATE_AT_BOUNDARY :INT_DTYPE = 2
STATE_COLLIDING   :INT_DTYPE = 3
STATE_ABSORBED    :INT_DTYPE = 10
STATE_ESCAPED     :INT_DTYPE = 11
STATE_CUTOFF      :INT_DTYPE = 12
STATE_KILLED      :INT_DTYPE = 13

# Particle types
PARTICLE_NEUTRON :INT_DTYPE = 0

# Reactions
REACTION_NONE    :INT_DTYPE = 0
REACTION_SCATTER :INT_DTYPE = 1
REACTION_CAPTURE :INT_DTYPE = 2
REACTION_FISSION :INT_DTYPE = 3

# Tally scores
SCORE_FLUX       :INT_DTYPE = 0
SCORE_COLLISION  :INT_DTYPE = 1
SCORE_ABSORPTION :INT_DTYPE = 2

# Scoring events
EVENT_TRACK     :INT_DTYPE = 0
EVENT_COLLISION :INT_DTYPE = 1

# Source distributions
SOURCE_POSITION_POINT  :INT_DTYPE = 0
SOURCE_POSITION_BOX    :INT_DTYPE = 1
SOURCE_DIRECTION_ISO   :INT_DTYPE = 0
SOURCE_DIRECTION_MONO  :INT_DTYPE = 1
SOURCE_ENERGY_MONO     :INT_DTYPE = 0
SOURCE_ENERGY_WATT     :INT_DTYPE = 1

# Watt fission spectrum (U-235 thermal) [MeV, 1/MeV]
WATT_A :FLOAT_DTYPE = 0.988
WATT_B :FLOAT_DTYPE = 2.249

# Gyration radius type
GYRATION_RADIUS_ALL        :INT_DTYPE = 0
GYRATION_RADIUS_INFINITE_X :INT_DTYPE = 1
GYRATION_RADIUS_INFINITE_Y :INT_DTYPE = 2
GYRATION_RADIUS_INFINITE_Z :INT_DTYPE = 3

# Lost particle recovery
MAX_LOST_RETRY :INT_DTYPE = 5
MAX_ZERO_STEPS :INT_DTYPE = 100

# Misc.
INF                   :FLOAT_DTYPE = 1E10
PI                    :FLOAT_DTYPE = math.acos(-1.0)
COINCIDENCE_TOLERANCE :FLOAT_DTYPE = 1E-10
TINY_BIT              :FLOAT_DTYPE = 1E-8
