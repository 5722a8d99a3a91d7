"""
D2Q9 Lattice Constants and Utilities

Defines the D2Q9 stencil and the memory layout of the population buffers.
"""
import numpy as np

# D2Q9 lattice velocities (y grows downwards)
#     0   1   2
#       \ | /
#     3 - 4 - 5
#       / | \
#     6   7   8

# Lattice velocity components
EX = np.array([-1, 0, 1, -1, 0, 1, -1, 0, 1], dtype=np.int32)
EY = np.array([-1, -1, -1, 0, 0, 0, 1, 1, 1], dtype=np.int32)

# Lattice weights
W = np.array([1/36, 1/9, 1/36, 1/9, 4/9, 1/9, 1/36, 1/9, 1/36], dtype=np.float64)

# Opposite direction indices (point symmetry: n <-> 8 - n)
OPPOSITE = np.array([8, 7, 6, 5, 4, 3, 2, 1, 0], dtype=np.int32)

# Number of lattice velocities
Q = 9

# Rest direction
REST = 4

# BGK relaxation coefficient (fraction of the way to equilibrium per tick)
RELAXATION = 0.7

# Collision worker threads
NUM_WORKERS = 3


def index(n, x, y, nx, ny):
    """
    Flat offset of population n at (x, y).

    Buffers are direction-major, then row-major (y, x), so a buffer of
    shape (Q, ny, nx) viewed with ``ravel()`` is indexed by this offset.
    """
    return n * nx * ny + y * nx + x
