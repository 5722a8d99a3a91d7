"""
Macroscopic Observable Extraction

Compute density, velocity, and derived quantities from distributions:
    - Density (0th moment): rho = sum_n(f_n)
    - Momentum (1st moment): rho*u = sum_n(f_n * e_n)

Solid cells are emptied by bounce-back and report zero velocity in the
field functions. Everywhere else the density is assumed positive: the rest
population alone carries 4/9 of it, so site_velocity does not guard the
division.
"""

import numpy as np
from numba import njit, prange
from .lattice import EX, EY


def site_density(f, x, y):
    """Sum of the 9 populations at (x, y)."""
    return float(np.sum(f[:, y, x]))


def site_velocity(f, x, y):
    """Population-weighted mean lattice velocity at (x, y)."""
    column = f[:, y, x]
    rho = np.sum(column)
    return float(np.dot(EX, column) / rho), float(np.dot(EY, column) / rho)


def compute_density(f):
    """
    Compute density field from distribution functions.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    """
    return np.sum(f, axis=0)


def compute_velocity(f, rho=None):
    """
    Compute velocity field from distribution functions.

    Cells with zero density (solid cells after bounce-back) report zero
    velocity.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    rho : ndarray, optional
        Density field, shape (ny, nx). If None, computed from f.

    Returns
    -------
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)
    """
    if rho is None:
        rho = compute_density(f)

    rho_ux = np.tensordot(EX.astype(np.float64), f, axes=1)
    rho_uy = np.tensordot(EY.astype(np.float64), f, axes=1)

    # Solid cells hold no mass
    solid = rho == 0.0
    rho_safe = np.where(solid, 1.0, rho)

    ux = np.where(solid, 0.0, rho_ux / rho_safe)
    uy = np.where(solid, 0.0, rho_uy / rho_safe)

    return ux, uy


def compute_macroscopic(f):
    """
    Compute all macroscopic quantities from distribution functions.

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)
    """
    rho = compute_density(f)
    ux, uy = compute_velocity(f, rho)
    return rho, ux, uy


@njit(parallel=True, cache=True)
def compute_macroscopic_numba(f, rho, ux, uy):
    """
    Numba-accelerated macroscopic quantity computation.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    rho, ux, uy : ndarray
        Output fields, shape (ny, nx)
    """
    q, ny, nx = f.shape

    for y in prange(ny):
        for x in range(nx):
            rho_local = 0.0
            rho_ux = 0.0
            rho_uy = 0.0

            for n in range(q):
                f_n = f[n, y, x]
                rho_local += f_n
                rho_ux += EX[n] * f_n
                rho_uy += EY[n] * f_n

            rho[y, x] = rho_local

            if rho_local != 0.0:
                ux[y, x] = rho_ux / rho_local
                uy[y, x] = rho_uy / rho_local
            else:
                ux[y, x] = 0.0
                uy[y, x] = 0.0


def compute_macroscopic_fast(f):
    """
    Fast macroscopic quantity computation using Numba.

    Returns
    -------
    rho, ux, uy : ndarray
        Density and velocity fields, shape (ny, nx)
    """
    q, ny, nx = f.shape
    rho = np.zeros((ny, nx), dtype=np.float64)
    ux = np.zeros((ny, nx), dtype=np.float64)
    uy = np.zeros((ny, nx), dtype=np.float64)

    compute_macroscopic_numba(f, rho, ux, uy)

    return rho, ux, uy


def compute_velocity_magnitude(ux, uy):
    """
    Compute velocity magnitude field.

    |u| = sqrt(ux^2 + uy^2)
    """
    return np.sqrt(ux * ux + uy * uy)
