"""
Interactive Lattice Boltzmann Solver

BoltzmannLattice owns the two population buffers, the solid mask and the
collision worker pool, and advances the flow one tick per update():

    collision (worker pool, active -> scratch)
    -> swap buffers
    -> streaming (in place)
    -> bounce-back at solid cells
    -> rest equilibrium on the domain edges

Read accessors (density, velocity, is_barrier and the field variants) are
meant to be polled by a renderer between ticks. Mutators (set_barrier, set,
raw population access, stabilise) must likewise only be called between
update() calls.
"""

import time

import numpy as np
from .lattice import EX, EY, Q, RELAXATION, NUM_WORKERS
from .equilibrium import equilibrium_at, rest_equilibrium, compute_equilibrium
from .observables import (
    site_density,
    site_velocity,
    compute_macroscopic_fast,
)
from .collision import CollisionPool
from .streaming import stream_inplace, reset_edges
from .boundary import stamp_barrier, bounce_back


class BoltzmannLattice:
    """
    D2Q9 lattice with open edges, static obstacles and a BGK worker pool.

    Parameters
    ----------
    width : int
        Number of cells in x-direction
    height : int
        Number of cells in y-direction
    relaxation : float
        BGK relaxation coefficient omega, 0 < omega < 2 (default 0.7)
    num_workers : int
        Collision threads; planes are split contiguously between them

    Attributes
    ----------
    grid : ndarray
        Active populations, shape (Q, height, width)
    scratch : ndarray
        Collision output buffer, same shape
    barrier : ndarray
        Solid mask, shape (height, width)
    step_count : int
        Completed ticks
    """

    def __init__(self, width, height, relaxation=RELAXATION, num_workers=NUM_WORKERS):
        if width <= 0 or height <= 0:
            raise ValueError(f"lattice dimensions must be positive, got {width}x{height}")

        self.width = int(width)
        self.height = int(height)

        self.pool = CollisionPool(relaxation, num_workers)
        self.relaxation = self.pool.relaxation

        self.grid = np.ones((Q, self.height, self.width), dtype=np.float64)
        self.scratch = np.empty_like(self.grid)
        self.barrier = np.zeros((self.height, self.width), dtype=np.bool_)

        self.step_count = 0
        self.total_time = 0.0

        self.stabilise()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return (f"BoltzmannLattice({self.width}x{self.height}, "
                f"relaxation={self.relaxation}, workers={self.pool.num_workers})")

    @property
    def closed(self):
        return self.pool.closed

    def close(self):
        """Stop and join the collision workers."""
        self.pool.close()

    def _check_cell(self, x, y):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"cell ({x}, {y}) outside {self.width}x{self.height} lattice"
            )

    def _check_direction(self, n):
        if not 0 <= n < Q:
            raise IndexError(f"direction {n} outside [0, {Q - 1}]")

    # Lifecycle / mutation

    def stabilise(self):
        """Reset every cell to the rest equilibrium. The solid mask is kept."""
        self.grid[:] = rest_equilibrium()[:, None, None]

    def swap(self):
        """Exchange active and scratch buffers without copying."""
        self.grid, self.scratch = self.scratch, self.grid

    def set_barrier(self, x, y, radius):
        """Mark a disc of radius cells around (x, y) as solid, wrapping at edges."""
        stamp_barrier(self.barrier, int(x), int(y), int(radius))

    def set(self, x, y):
        """Force the four axis populations at (x, y) to 1."""
        self._check_cell(x, y)
        for n in (1, 3, 5, 7):
            self.grid[n, y, x] = 1.0

    def raw_population(self, n, x, y):
        self._check_direction(n)
        self._check_cell(x, y)
        return float(self.grid[n, y, x])

    def set_raw_population(self, n, x, y, value):
        self._check_direction(n)
        self._check_cell(x, y)
        self.grid[n, y, x] = value

    def inject_impulse(self, x, y, ux, uy):
        """
        Replace the populations at (x, y) with a directional equilibrium.

        Direction n receives the equilibrium for velocity
        (ux * dx_n, uy * dy_n) at the current cell density. Opposite
        directions get the same boost, so the result is a pressure pulse
        that grows with |ux| and |uy| rather than a net push.
        """
        rho = self.density(x, y)
        for n in range(Q):
            self.grid[n, y, x] = equilibrium_at(n, ux * EX[n], uy * EY[n], rho)

    def emit(self, x, y, ux=0.1, uy=0.1):
        """Overwrite direction 1 at (x, y) with a unit-density moving equilibrium."""
        self._check_cell(x, y)
        self.grid[1, y, x] = equilibrium_at(1, ux, uy, 1.0)

    # Time stepping

    def collide(self):
        """Relax the active buffer into the scratch buffer on the worker pool."""
        self.pool.collide(self.grid, self.scratch)

    def stream(self):
        """Streaming, bounce-back and edge reset on the active buffer."""
        stream_inplace(self.grid)
        bounce_back(self.grid, self.barrier)
        reset_edges(self.grid)

    def update(self):
        """
        Advance the simulation by one tick.

        The tick itself produces nothing; the wall-clock time is returned
        for profiling, as run() accumulates it.

        Returns
        -------
        dt : float
            Time taken for this tick (seconds)
        """
        start = time.perf_counter()

        self.collide()
        self.swap()
        self.stream()

        dt = time.perf_counter() - start
        self.step_count += 1
        self.total_time += dt

        return dt

    def run(self, num_steps, verbose=True, report_interval=100):
        """
        Run the simulation for a number of ticks.

        Returns
        -------
        mlups : float
            Million Lattice Updates Per Second
        """
        cells = self.width * self.height
        start = time.perf_counter()

        for step in range(num_steps):
            self.update()

            if verbose and (step + 1) % report_interval == 0:
                elapsed = time.perf_counter() - start
                mlups = (step + 1) * cells / elapsed / 1e6
                print(f"Step {step + 1}/{num_steps}, MLUPS: {mlups:.2f}")

        total = time.perf_counter() - start
        mlups = num_steps * cells / total / 1e6 if total > 0 else 0.0

        if verbose:
            print(f"Completed {num_steps} steps in {total:.2f}s")
            print(f"Performance: {mlups:.2f} MLUPS")

        return mlups

    # Queries

    def density(self, x, y):
        self._check_cell(x, y)
        return site_density(self.grid, x, y)

    def velocity(self, x, y):
        self._check_cell(x, y)
        return site_velocity(self.grid, x, y)

    def is_barrier(self, x, y):
        self._check_cell(x, y)
        return bool(self.barrier[y, x])

    def equilibrium(self, n, x, y):
        """Equilibrium of direction n for the current state at (x, y)."""
        self._check_direction(n)
        ux, uy = self.velocity(x, y)
        return equilibrium_at(n, ux, uy, self.density(x, y))

    def density_field(self):
        rho, _, _ = compute_macroscopic_fast(self.grid)
        return rho

    def velocity_field(self):
        """Velocity fields (ux, uy), zero inside empty solid cells."""
        _, ux, uy = compute_macroscopic_fast(self.grid)
        return ux, uy

    def barrier_mask(self):
        return self.barrier.copy()

    def total_mass(self):
        return float(np.sum(self.grid))

    def equilibrium_grid(self, rho, ux, uy):
        """Replace the active populations with the equilibrium of given fields."""
        self.grid[:] = compute_equilibrium(
            np.broadcast_to(rho, (self.height, self.width)),
            np.broadcast_to(ux, (self.height, self.width)),
            np.broadcast_to(uy, (self.height, self.width)),
        )
