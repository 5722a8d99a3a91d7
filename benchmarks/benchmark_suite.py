"""
Benchmark Suite

Tick throughput of BoltzmannLattice across grid sizes and collision
worker counts.
"""

import time
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from boltzflow import BoltzmannLattice


def benchmark_lattice(nx, ny, num_workers, num_steps, warmup_steps=10):
    """
    Benchmark the full update() tick.

    Returns
    -------
    mlups : float
        Million Lattice Updates Per Second
    """
    with BoltzmannLattice(nx, ny, num_workers=num_workers) as lattice:
        lattice.set_barrier(nx // 4, ny // 2, max(1, ny // 10))

        # Warmup (JIT compilation)
        for _ in range(warmup_steps):
            lattice.update()

        start = time.perf_counter()
        for _ in range(num_steps):
            lattice.update()
        elapsed = time.perf_counter() - start

    return num_steps * nx * ny / elapsed / 1e6


def run_benchmark_suite(grid_sizes=None, worker_counts=(1, 3, 9), num_steps=200):
    """
    Run the benchmark over every grid size and worker count.

    Returns
    -------
    results : dict
        {(nx, ny): {num_workers: mlups}}
    """
    if grid_sizes is None:
        grid_sizes = [
            (128, 128),
            (256, 256),
            (512, 512),
            (1024, 1024),
        ]

    results = {}

    print("=" * 60)
    print("BoltzmannLattice Benchmark")
    print("=" * 60)
    print(f"Steps: {num_steps}, Workers: {list(worker_counts)}")
    print()

    for nx, ny in grid_sizes:
        results[(nx, ny)] = {}
        print(f"Grid size: {nx} x {ny}")
        for num_workers in worker_counts:
            mlups = benchmark_lattice(nx, ny, num_workers, num_steps)
            results[(nx, ny)][num_workers] = mlups
            print(f"  {num_workers} worker(s): {mlups:8.2f} MLUPS")
        print()

    return results


if __name__ == "__main__":
    results = run_benchmark_suite()

    print("Summary")
    print("=" * 60)
    for (nx, ny), by_workers in results.items():
        best = max(by_workers, key=by_workers.get)
        speedup = by_workers[best] / by_workers[min(by_workers)]
        print(f"  {nx:4d} x {ny:4d}: best {best} worker(s), "
              f"{by_workers[best]:.2f} MLUPS ({speedup:.2f}x over 1)")
