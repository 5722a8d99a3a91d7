"""
Collision Operators

BGK relaxation for the D2Q9 lattice and the worker pool that runs it.

Each population moves a fixed fraction omega of the way toward its local
equilibrium per tick:

    f_out = f + omega * (f_eq - f)

omega is the inverse relaxation time; stability requires 0 < omega < 2.

Parallelism is by direction plane: every worker owns a contiguous group of
planes, reads the whole source buffer and writes only its own planes of
the target buffer. The source buffer is not written during the pass, so no
per-cell locking is needed.
"""

import threading
import warnings

import numpy as np
from numba import njit
from .lattice import EX, EY, Q, RELAXATION, NUM_WORKERS
from .equilibrium import equilibrium_at, compute_equilibrium
from .observables import compute_macroscopic


def validate_relaxation(omega, name="relaxation"):
    """
    Validate that the relaxation coefficient is in the stable range.

    Raises
    ------
    ValueError
        If omega is not in (0, 2)

    Returns
    -------
    omega : float
        Validated value
    """
    if not 0.0 < omega < 2.0:
        raise ValueError(
            f"{name} must be in (0, 2) for stability (got {omega}). "
            f"This corresponds to nu > 0."
        )
    if omega < 0.5:
        warnings.warn(
            f"{name} = {omega} is small, which may cause slow convergence. "
            f"Consider a value in range (0.5, 2.0)."
        )
    return omega


def partition_planes(num_workers=NUM_WORKERS):
    """
    Split the Q direction planes into contiguous disjoint groups.

    Parameters
    ----------
    num_workers : int
        Number of groups, 1 <= num_workers <= Q

    Returns
    -------
    planes : list of (first, last)
        Half-open plane ranges, one per worker
    """
    if not 1 <= num_workers <= Q:
        raise ValueError(f"num_workers must be in [1, {Q}], got {num_workers}")
    return [(int(chunk[0]), int(chunk[-1]) + 1)
            for chunk in np.array_split(np.arange(Q), num_workers)]


def bgk_relax(f, omega=RELAXATION):
    """
    Single-threaded BGK relaxation of every plane.

    Reference implementation for the worker pool. Cells without mass
    relax toward zero.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    omega : float
        Relaxation coefficient

    Returns
    -------
    f_out : ndarray
        Post-collision distribution
    """
    rho, ux, uy = compute_macroscopic(f)
    f_eq = compute_equilibrium(rho, ux, uy)
    return f + omega * (f_eq - f)


@njit(cache=True, nogil=True)
def relax_planes_numba(f, f_out, first, last, omega):
    """
    BGK relaxation of planes [first, last) from f into f_out.

    Parameters
    ----------
    f : ndarray
        Source distribution, shape (Q, ny, nx). Read only.
    f_out : ndarray
        Target distribution, shape (Q, ny, nx). Only planes
        [first, last) are written.
    first, last : int
        Half-open plane range
    omega : float
        Relaxation coefficient
    """
    q, ny, nx = f.shape

    for y in range(ny):
        for x in range(nx):
            rho = 0.0
            rho_ux = 0.0
            rho_uy = 0.0
            for n in range(q):
                f_n = f[n, y, x]
                rho += f_n
                rho_ux += EX[n] * f_n
                rho_uy += EY[n] * f_n

            # Solid cells carry no mass and stay empty
            if rho != 0.0:
                ux = rho_ux / rho
                uy = rho_uy / rho
            else:
                ux = 0.0
                uy = 0.0

            for n in range(first, last):
                old = f[n, y, x]
                f_out[n, y, x] = old + omega * (equilibrium_at(n, ux, uy, rho) - old)


class CollisionPool:
    """
    Fixed pool of threads running the BGK relaxation by direction plane.

    Threads are spawned once and live until close(). Every collide() call
    is one rendezvous in two phases: all workers pass the "start" barrier
    together with the caller, relax their planes, then meet the caller
    again at the "done" barrier. The caller therefore never returns before
    every worker has finished its pass, and each pass starts exactly once.

    Parameters
    ----------
    relaxation : float
        Relaxation coefficient omega
    num_workers : int
        Number of worker threads (1 to Q)
    """

    def __init__(self, relaxation=RELAXATION, num_workers=NUM_WORKERS):
        self.relaxation = validate_relaxation(relaxation)
        self.planes = partition_planes(num_workers)
        self.num_workers = num_workers

        self._finished = threading.Event()
        self._start = threading.Barrier(num_workers + 1)
        self._done = threading.Barrier(num_workers + 1)
        self._source = None
        self._target = None
        self._errors = []

        self._threads = []
        try:
            for i, (first, last) in enumerate(self.planes):
                thread = threading.Thread(
                    target=self._worker,
                    args=(first, last),
                    name=f"collision-{i}",
                    daemon=True,
                )
                thread.start()
                self._threads.append(thread)
        except RuntimeError:
            self.close()
            raise

    @property
    def closed(self):
        return self._finished.is_set()

    def _worker(self, first, last):
        while not self._finished.is_set():
            try:
                self._start.wait()
            except threading.BrokenBarrierError:
                return

            try:
                relax_planes_numba(self._source, self._target, first, last,
                                   self.relaxation)
            except Exception as exc:
                self._errors.append(exc)

            try:
                self._done.wait()
            except threading.BrokenBarrierError:
                return

    def collide(self, source, target):
        """
        Relax every plane of source into target using the pool.

        Parameters
        ----------
        source : ndarray
            Active distribution, shape (Q, ny, nx). Not modified.
        target : ndarray
            Scratch distribution of the same shape, fully overwritten.
        """
        if self.closed:
            raise RuntimeError("collision pool is closed")

        self._source = source
        self._target = target
        try:
            self._start.wait()
            self._done.wait()
        except threading.BrokenBarrierError as exc:
            raise RuntimeError("collision worker pool is broken") from exc
        finally:
            self._source = None
            self._target = None

        if self._errors:
            error = self._errors[0]
            self._errors.clear()
            raise RuntimeError(f"collision worker failed: {error}") from error

    def close(self):
        """Signal every worker to stop and join them."""
        if self.closed:
            return
        self._finished.set()
        self._start.abort()
        self._done.abort()
        for thread in self._threads:
            thread.join()
        self._threads = []
