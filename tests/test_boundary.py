"""
Tests for obstacle stamping and bounce-back.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from boltzflow.lattice import EX, EY, Q, REST, OPPOSITE
from boltzflow.boundary import (
    stamp_barrier,
    bounce_back,
    bounce_back_reference,
)


def disc_mask(nx, ny, cx, cy, radius):
    mask = np.zeros((ny, nx), dtype=bool)
    return stamp_barrier(mask, cx, cy, radius)


def solid_cells(mask):
    ys, xs = np.nonzero(mask)
    return set(zip(xs.tolist(), ys.tolist()))


class TestStampBarrier:

    def test_radius_zero_marks_single_cell(self):
        mask = disc_mask(10, 10, 4, 6, 0)
        assert solid_cells(mask) == {(4, 6)}

    def test_radius_one_is_a_plus(self):
        mask = disc_mask(10, 10, 5, 5, 1)
        assert solid_cells(mask) == {(5, 5), (4, 5), (6, 5), (5, 4), (5, 6)}

    def test_disc_membership(self):
        radius = 3
        mask = disc_mask(20, 20, 10, 10, radius)
        for x, y in solid_cells(mask):
            assert (x - 10) ** 2 + (y - 10) ** 2 <= radius ** 2
        assert len(solid_cells(mask)) == 29

    def test_wraps_around_edges(self):
        mask = disc_mask(10, 8, 0, 0, 1)
        assert solid_cells(mask) == {(0, 0), (1, 0), (9, 0), (0, 1), (0, 7)}

    def test_accumulates(self):
        mask = np.zeros((8, 8), dtype=bool)
        stamp_barrier(mask, 2, 2, 0)
        stamp_barrier(mask, 5, 5, 0)
        assert solid_cells(mask) == {(2, 2), (5, 5)}


class TestBounceBack:

    @pytest.fixture
    def random_field(self):
        rng = np.random.default_rng(11)
        return 0.1 + rng.random((Q, 9, 9))

    def test_isolated_cell_reflects_to_source(self, random_field):
        mask = disc_mask(9, 9, 4, 4, 0)
        f = random_field.copy()

        bounce_back(f, mask)

        for n in range(Q):
            if n == REST:
                continue
            assert f[OPPOSITE[n], 4 - EY[n], 4 - EX[n]] == random_field[n, 4, 4]
        np.testing.assert_array_equal(f[:, 4, 4], 0.0)

    def test_other_cells_untouched(self, random_field):
        mask = disc_mask(9, 9, 4, 4, 0)
        f = random_field.copy()

        bounce_back(f, mask)

        touched = np.zeros(f.shape, dtype=bool)
        touched[:, 4, 4] = True
        for n in range(Q):
            if n != REST:
                touched[OPPOSITE[n], 4 - EY[n], 4 - EX[n]] = True
        np.testing.assert_array_equal(f[~touched], random_field[~touched])

    def test_momentum_reversed(self, random_field):
        """Momentum sent back into the fluid is the arriving momentum negated."""
        mask = disc_mask(9, 9, 4, 4, 0)
        f = random_field.copy()
        arriving = random_field[:, 4, 4]
        mom_in = (np.sum(EX * arriving), np.sum(EY * arriving))

        bounce_back(f, mask)

        mom_out = [0.0, 0.0]
        for n in range(Q):
            if n == REST:
                continue
            m = OPPOSITE[n]
            value = f[m, 4 - EY[n], 4 - EX[n]]
            mom_out[0] += EX[m] * value
            mom_out[1] += EY[m] * value

        assert np.isclose(mom_out[0], -mom_in[0], rtol=1e-14)
        assert np.isclose(mom_out[1], -mom_in[1], rtol=1e-14)

    def test_touching_obstacles_end_empty(self, random_field):
        mask = disc_mask(9, 9, 4, 4, 2)
        f = random_field.copy()

        bounce_back(f, mask)

        assert np.all(f[:, mask] == 0.0)

    def test_edge_cells_ignored(self, random_field):
        mask = np.zeros((9, 9), dtype=bool)
        mask[0, 4] = True
        mask[4, 8] = True
        f = random_field.copy()

        bounce_back(f, mask)

        np.testing.assert_array_equal(f, random_field)

    def test_matches_snapshot_reference(self, random_field):
        rng = np.random.default_rng(5)
        mask = rng.random((9, 9)) < 0.3
        f = random_field.copy()

        bounce_back(f, mask)

        np.testing.assert_array_equal(f, bounce_back_reference(random_field, mask))
