"""
boltzflow - interactive 2D Lattice Boltzmann flow on a D2Q9 lattice.
"""

from .lattice import EX, EY, W, OPPOSITE, Q, REST, RELAXATION, NUM_WORKERS
from .solver import BoltzmannLattice

__all__ = [
    "BoltzmannLattice",
    "EX", "EY", "W", "OPPOSITE", "Q", "REST",
    "RELAXATION", "NUM_WORKERS",
]
