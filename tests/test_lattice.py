"""
Tests for BoltzmannLattice: lifecycle, public operations and tick
invariants.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from boltzflow import BoltzmannLattice
from boltzflow.lattice import EX, EY, W, Q, REST, OPPOSITE, RELAXATION
from boltzflow.equilibrium import equilibrium_at
from boltzflow.collision import bgk_relax
from boltzflow.streaming import stream_inplace
from boltzflow.boundary import bounce_back


@pytest.fixture
def lattice():
    lat = BoltzmannLattice(24, 16)
    yield lat
    lat.close()


@pytest.fixture
def small_lattice():
    lat = BoltzmannLattice(10, 10)
    yield lat
    lat.close()


def assert_edges_at_rest(lat):
    for n in range(Q):
        plane = lat.grid[n]
        np.testing.assert_allclose(plane[0, :], W[n], rtol=1e-15)
        np.testing.assert_allclose(plane[-1, :], W[n], rtol=1e-15)
        np.testing.assert_allclose(plane[:, 0], W[n], rtol=1e-15)
        np.testing.assert_allclose(plane[:, -1], W[n], rtol=1e-15)


class TestScenario:
    """The 10x10 walkthrough: calm state, then a single obstacle."""

    def test_stabilise_then_obstacle(self, small_lattice):
        lat = small_lattice
        lat.stabilise()

        assert lat.density(5, 5) == pytest.approx(1.0, rel=1e-14)
        ux, uy = lat.velocity(5, 5)
        assert ux == pytest.approx(0.0, abs=1e-15)
        assert uy == pytest.approx(0.0, abs=1e-15)

        lat.set_barrier(5, 5, 1)
        lat.update()

        assert lat.is_barrier(5, 5)
        assert lat.density(5, 5) == 0.0
        for n in range(Q):
            assert lat.raw_population(n, 5, 5) == 0.0


class TestConstruction:

    def test_starts_at_rest(self, lattice):
        np.testing.assert_allclose(lattice.density_field(), 1.0, rtol=1e-14)
        ux, uy = lattice.velocity_field()
        np.testing.assert_allclose(ux, 0.0, atol=1e-15)
        np.testing.assert_allclose(uy, 0.0, atol=1e-15)
        assert not lattice.barrier.any()

    def test_buffer_layout(self, lattice):
        assert lattice.grid.shape == (Q, 16, 24)
        assert lattice.scratch.shape == (Q, 16, 24)
        assert lattice.barrier.shape == (16, 24)
        assert lattice.grid.dtype == np.float64

    def test_defaults(self, lattice):
        assert lattice.relaxation == RELAXATION
        assert lattice.pool.planes == [(0, 3), (3, 6), (6, 9)]

    @pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-4, 4)])
    def test_non_positive_dimensions(self, width, height):
        with pytest.raises(ValueError):
            BoltzmannLattice(width, height)

    def test_unstable_relaxation(self):
        with pytest.raises(ValueError):
            BoltzmannLattice(8, 8, relaxation=2.0)

    def test_bad_worker_count(self):
        with pytest.raises(ValueError):
            BoltzmannLattice(8, 8, num_workers=10)


class TestLifecycle:

    def test_context_manager_closes(self):
        with BoltzmannLattice(8, 8) as lat:
            lat.update()
            threads = list(lat.pool._threads)
        assert lat.closed
        assert not any(t.is_alive() for t in threads)

    def test_update_after_close(self):
        lat = BoltzmannLattice(8, 8)
        lat.close()
        with pytest.raises(RuntimeError):
            lat.update()

    def test_step_accounting(self, lattice):
        first = lattice.update()
        second = lattice.update()
        assert lattice.step_count == 2
        assert first > 0.0 and second > 0.0
        assert lattice.total_time == pytest.approx(first + second)

    def test_run_reports(self, lattice, capsys):
        mlups = lattice.run(4, verbose=True, report_interval=2)
        out = capsys.readouterr().out

        assert lattice.step_count == 4
        assert mlups > 0.0
        assert "Step 2/4" in out
        assert "Completed 4 steps" in out

    def test_run_quiet(self, lattice, capsys):
        lattice.run(2, verbose=False)
        assert capsys.readouterr().out == ""


class TestMutators:

    def test_swap_exchanges_references(self, lattice):
        grid, scratch = lattice.grid, lattice.scratch
        lattice.swap()
        assert lattice.grid is scratch
        assert lattice.scratch is grid

    def test_set_forces_axis_populations(self, lattice):
        lattice.set(5, 6)
        for n in range(Q):
            expected = 1.0 if n in (1, 3, 5, 7) else W[n]
            assert lattice.raw_population(n, 5, 6) == pytest.approx(expected)

    def test_raw_population_round_trip(self, lattice):
        lattice.set_raw_population(2, 3, 4, 0.25)
        assert lattice.raw_population(2, 3, 4) == 0.25
        assert lattice.grid[2, 4, 3] == 0.25

    def test_stabilise_keeps_obstacles(self, lattice):
        lattice.set_barrier(10, 8, 2)
        lattice.set(5, 5)
        lattice.update()

        lattice.stabilise()

        assert lattice.is_barrier(10, 8)
        np.testing.assert_allclose(lattice.density_field(), 1.0, rtol=1e-14)

    def test_set_barrier_wraps(self, lattice):
        lattice.set_barrier(0, 0, 1)
        assert lattice.is_barrier(23, 0)
        assert lattice.is_barrier(0, 15)

    def test_inject_impulse(self, lattice):
        rho = lattice.density(7, 7)
        lattice.inject_impulse(7, 7, 0.2, -0.1)
        for n in range(Q):
            expected = equilibrium_at(n, 0.2 * EX[n], -0.1 * EY[n], rho)
            assert lattice.raw_population(n, 7, 7) == pytest.approx(expected, rel=1e-14)

    def test_emit(self, lattice):
        lattice.emit(6, 9)
        expected = (1 / 9) * (1 - 0.3 + 0.045 - 0.03)
        assert lattice.raw_population(1, 6, 9) == pytest.approx(expected, rel=1e-12)

    @pytest.mark.parametrize("call", [
        lambda lat: lat.density(24, 0),
        lambda lat: lat.velocity(0, 16),
        lambda lat: lat.is_barrier(-1, 3),
        lambda lat: lat.set(30, 3),
        lambda lat: lat.raw_population(9, 1, 1),
        lambda lat: lat.set_raw_population(0, 1, -1, 1.0),
        lambda lat: lat.equilibrium(9, 2, 2),
        lambda lat: lat.equilibrium(-1, 2, 2),
    ])
    def test_out_of_range(self, lattice, call):
        with pytest.raises(IndexError):
            call(lattice)


class TestQueries:

    def test_equilibrium_at_rest(self, lattice):
        for n in range(Q):
            assert lattice.equilibrium(n, 4, 4) == pytest.approx(W[n], rel=1e-14)

    def test_field_and_site_agree(self, lattice):
        lattice.inject_impulse(8, 8, 0.3, 0.1)
        lattice.update()

        rho = lattice.density_field()
        ux, uy = lattice.velocity_field()
        assert rho[9, 8] == pytest.approx(lattice.density(8, 9), rel=1e-13)
        assert (ux[9, 8], uy[9, 8]) == pytest.approx(lattice.velocity(8, 9), abs=1e-13)

    def test_barrier_mask_is_a_copy(self, lattice):
        mask = lattice.barrier_mask()
        mask[:] = True
        assert not lattice.barrier.any()


class TestTickInvariants:

    @pytest.fixture
    def disturbed(self, lattice):
        lattice.set_barrier(8, 8, 2)
        lattice.set_barrier(16, 5, 0)
        lattice.equilibrium_grid(1.0, 0.08, -0.03)
        lattice.set(12, 10)
        return lattice

    def test_obstacles_empty_after_each_tick(self, disturbed):
        for _ in range(5):
            disturbed.update()
            assert np.all(disturbed.grid[:, disturbed.barrier] == 0.0)

    def test_edges_at_rest_after_each_tick(self, disturbed):
        for _ in range(5):
            disturbed.update()
            assert_edges_at_rest(disturbed)

    def test_collision_matches_reference(self, disturbed):
        before = disturbed.grid.copy()

        disturbed.collide()

        np.testing.assert_allclose(
            disturbed.scratch, bgk_relax(before, disturbed.relaxation), rtol=1e-12, atol=1e-15
        )
        np.testing.assert_array_equal(disturbed.grid, before)

    def test_tick_is_collide_swap_stream(self, disturbed):
        twin = BoltzmannLattice(disturbed.width, disturbed.height, num_workers=1)
        try:
            twin.barrier[:] = disturbed.barrier
            twin.grid[:] = disturbed.grid

            disturbed.update()

            twin.collide()
            twin.swap()
            twin.stream()
        finally:
            twin.close()

        np.testing.assert_allclose(disturbed.grid, twin.grid, rtol=1e-12, atol=1e-15)

    def test_isolated_obstacle_reverses_arriving_momentum(self, lattice):
        lattice.equilibrium_grid(1.0, 0.06, -0.04)
        lattice.set_barrier(12, 8, 0)

        lattice.collide()
        lattice.swap()
        stream_inplace(lattice.grid)
        arriving = lattice.grid[:, 8, 12].copy()

        bounce_back(lattice.grid, lattice.barrier)

        reflected_x = 0.0
        reflected_y = 0.0
        for n in range(Q):
            if n == REST:
                continue
            m = OPPOSITE[n]
            value = lattice.grid[m, 8 - EY[n], 12 - EX[n]]
            reflected_x += EX[m] * value
            reflected_y += EY[m] * value

        assert reflected_x == pytest.approx(-np.sum(EX * arriving), rel=1e-13)
        assert reflected_y == pytest.approx(-np.sum(EY * arriving), rel=1e-13)
        assert np.sum(EX * arriving) > 0.0

    def test_mass_conserved_away_from_edges(self):
        with BoltzmannLattice(40, 40) as lat:
            lat.set_raw_population(REST, 20, 20, 0.9)
            mass = lat.total_mass()
            for _ in range(5):
                lat.update()
            assert lat.total_mass() == pytest.approx(mass, rel=1e-12)
