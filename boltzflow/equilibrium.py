"""
Equilibrium Distribution Functions

Second-order Maxwell-Boltzmann equilibrium for the D2Q9 lattice:

    f_n^eq = rho * w_n * (1 + 3 (e_n . u) + 4.5 (e_n . u)^2 - 1.5 |u|^2)

where:
    - w_n are the lattice weights
    - e_n = (dx_n, dy_n) are the lattice velocities
    - rho is the density
    - u = (ux, uy) is the macroscopic velocity

The same formula gives the relaxation target during collision and, with
u = 0 and rho = 1, the rest state used by stabilise and the edge reset.
"""

import numpy as np
from numba import njit
from .lattice import EX, EY, W, Q


@njit(cache=True, nogil=True)
def equilibrium_at(n, ux, uy, rho):
    """
    Equilibrium population of direction n for the given local state.

    Compiled so it can be called both from Python and from the Numba
    kernels in collision, streaming and boundary.

    Parameters
    ----------
    n : int
        Direction index in [0, 8]
    ux, uy : float
        Macroscopic velocity
    rho : float
        Density

    Returns
    -------
    f_eq : float
    """
    eu = EX[n] * ux + EY[n] * uy
    u_sq = ux * ux + uy * uy
    return rho * W[n] * (1.0 + 3.0 * eu + 4.5 * eu * eu - 1.5 * u_sq)


def rest_equilibrium(rho=1.0):
    """Equilibrium populations of a fluid at rest, shape (Q,)."""
    return rho * W.copy()


def compute_equilibrium(rho, ux, uy):
    """
    Compute equilibrium distribution for all lattice sites.

    Parameters
    ----------
    rho : ndarray
        Density field, shape (ny, nx)
    ux : ndarray
        X-velocity field, shape (ny, nx)
    uy : ndarray
        Y-velocity field, shape (ny, nx)

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (Q, ny, nx)
    """
    ny, nx = rho.shape
    f_eq = np.zeros((Q, ny, nx), dtype=np.float64)

    u_sq = ux * ux + uy * uy

    for n in range(Q):
        eu = EX[n] * ux + EY[n] * uy
        f_eq[n] = rho * W[n] * (1.0 + 3.0 * eu + 4.5 * eu * eu - 1.5 * u_sq)

    return f_eq

