"""
Boundary Condition Handlers

- Obstacle stamping into the solid mask
- Bounce-back (no-slip) at solid cells
- Open domain edges are handled by streaming.reset_edges

Bounce-back here is the "full-way" variant with empty solids: after
streaming, a population f_n sitting in a solid cell has just arrived from
the fluid cell at x - e_n. It is sent straight back there as the opposite
direction 8 - n, and the solid cell is then emptied:

    f_{8-n}(x - e_n) = f_n(x_solid),    f(x_solid) = 0
"""

import numpy as np
from numba import njit
from .lattice import EX, EY, Q, REST, OPPOSITE


def stamp_barrier(solid_mask, cx, cy, radius):
    """
    Mark a disc of cells as solid.

    Every integer offset (i, j) with i^2 + j^2 <= radius^2 marks the
    cell ((cx + j) mod nx, (cy + i) mod ny). Coordinates wrap around the
    domain even though the flow itself does not.

    Parameters
    ----------
    solid_mask : ndarray
        Boolean mask, shape (ny, nx). Modified in place.
    cx, cy : int
        Disc centre
    radius : int
        Disc radius in cells (0 marks a single cell)
    """
    ny, nx = solid_mask.shape
    offsets = np.arange(-radius, radius + 1)
    i, j = np.meshgrid(offsets, offsets, indexing="ij")
    inside = i * i + j * j <= radius * radius

    ys = (cy + i[inside]) % ny
    xs = (cx + j[inside]) % nx
    solid_mask[ys, xs] = True

    return solid_mask


@njit(cache=True)
def bounce_back(f, solid_mask):
    """
    Reflect populations out of interior solid cells and empty them.

    Only cells with 1 <= x < nx-1 and 1 <= y < ny-1 are treated; edge
    cells are reset separately. Reflections are never written into
    another solid cell, so every solid cell is read before any write can
    reach it and cells can be processed in any order.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx). Modified in place.
    solid_mask : ndarray
        Boolean mask for solid nodes, shape (ny, nx)
    """
    q, ny, nx = f.shape

    for y in range(1, ny - 1):
        for x in range(1, nx - 1):
            if not solid_mask[y, x]:
                continue
            for n in range(q):
                if n == REST:
                    continue
                xs = x - EX[n]
                ys = y - EY[n]
                if not solid_mask[ys, xs]:
                    f[OPPOSITE[n], ys, xs] = f[n, y, x]

    for y in range(1, ny - 1):
        for x in range(1, nx - 1):
            if solid_mask[y, x]:
                for n in range(q):
                    f[n, y, x] = 0.0


def bounce_back_reference(f, solid_mask):
    """
    NumPy bounce-back working from a snapshot of the input.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    solid_mask : ndarray
        Boolean mask for solid nodes, shape (ny, nx)

    Returns
    -------
    f_out : ndarray
        Distribution with bounce-back applied
    """
    q, ny, nx = f.shape
    f_out = f.copy()

    interior = np.zeros_like(solid_mask)
    interior[1:-1, 1:-1] = solid_mask[1:-1, 1:-1]
    ys, xs = np.nonzero(interior)

    for n in range(Q):
        if n == REST:
            continue
        ys_src = ys - EY[n]
        xs_src = xs - EX[n]
        fluid = ~solid_mask[ys_src, xs_src]
        f_out[OPPOSITE[n], ys_src[fluid], xs_src[fluid]] = f[n, ys[fluid], xs[fluid]]

    f_out[:, ys, xs] = 0.0
    return f_out
