"""Tests for epigrid.spatial.grid — toroidal host grid and daily transitions."""

import numpy as np
import pytest

from epigrid.core.host import Stage
from epigrid.core.pathogen import Pathogen, PathogenParameters
from epigrid.spatial.grid import HostGrid, neighborhood_radius


# Stages a host may hold one day after holding the key stage
ALLOWED_NEXT = {
    Stage.SUSCEPTIBLE: {Stage.SUSCEPTIBLE, Stage.EXPOSED},
    Stage.EXPOSED: {Stage.EXPOSED, Stage.INFECTIOUS},
    Stage.INFECTIOUS: {Stage.INFECTIOUS, Stage.RECOVERED, Stage.DECEASED},
    Stage.RECOVERED: {Stage.RECOVERED},
    Stage.DECEASED: {Stage.DECEASED},
}


def fast_params(**overrides):
    values = dict(p_transmit=0.3, p_death=0.4, min_exposed=1, mean_exposed=3,
                  min_infectious=1, mean_infectious=3, mean_contacts=8)
    values.update(overrides)
    return PathogenParameters(**values)


# ── Construction and reset ───────────────────────────────────────────

class TestInitialization:
    def test_all_susceptible(self):
        grid = HostGrid(rows=6, cols=4, pathogen=Pathogen(seed=1))
        snap = grid.snapshot()
        assert snap.shape == (24, 3)
        assert (snap[:, 0] == Stage.SUSCEPTIBLE).all()
        assert (snap[:, 1] == 0).all()
        assert (snap[:, 2] >= 1).all()
        grid.check_invariants()

    def test_invalid_dimensions(self):
        with pytest.raises(ValueError):
            HostGrid(rows=0, cols=5)

    def test_rng_defaults_to_pathogen(self):
        pathogen = Pathogen(seed=1)
        grid = HostGrid(rows=2, cols=2, pathogen=pathogen)
        assert grid.rng is pathogen.rng

    def test_rng_must_match_pathogen(self):
        with pytest.raises(ValueError, match="rng"):
            HostGrid(rows=4, cols=4, pathogen=Pathogen(seed=1),
                     rng=np.random.default_rng(2))

    def test_matching_rng_accepted(self):
        pathogen = Pathogen(seed=1)
        grid = HostGrid(rows=4, cols=4, pathogen=pathogen, rng=pathogen.rng)
        assert grid.rng is pathogen.rng

    def test_reset_idempotent(self):
        grid = HostGrid(rows=8, cols=8, pathogen=Pathogen(fast_params(), seed=2))
        grid.seed(5)
        for _ in range(4):
            grid.advance()

        grid.reset()
        once_stages, once_days = grid.snapshot()[:, 0], grid.snapshot()[:, 1]
        grid.reset()
        twice = grid.snapshot()

        np.testing.assert_array_equal(twice[:, 0], once_stages)
        np.testing.assert_array_equal(twice[:, 1], once_days)
        assert grid.count_susceptible() == grid.size
        grid.check_invariants()

    def test_reseed_clears_previous_outbreak(self):
        grid = HostGrid(rows=10, cols=10, pathogen=Pathogen(fast_params(), seed=3))
        grid.seed(10)
        for _ in range(5):
            grid.advance()
        seeded = grid.reseed(2)
        assert grid.count_recovered() == 0
        assert grid.count_deceased() == 0
        assert grid.count_infected() == len(set(seeded))


# ── Seeding ──────────────────────────────────────────────────────────

class TestSeeding:
    def test_reproducible(self):
        a = HostGrid(rows=10, cols=10, pathogen=Pathogen(seed=7))
        b = HostGrid(rows=10, cols=10, pathogen=Pathogen(seed=7))
        seeded_a = a.seed(3)
        seeded_b = b.seed(3)
        assert seeded_a == seeded_b
        np.testing.assert_array_equal(a.snapshot(), b.snapshot())

    def test_seeded_cells_are_exposed(self):
        params = PathogenParameters(min_exposed=2, mean_exposed=9)
        grid = HostGrid(rows=10, cols=10, pathogen=Pathogen(params, seed=8))
        for i, j in grid.seed(3):
            host = grid.host(i, j)
            assert host.stage == Stage.EXPOSED
            assert host.days_remaining >= 2

    def test_non_square_decoding(self):
        grid = HostGrid(rows=3, cols=7, pathogen=Pathogen(seed=9))
        for i, j in grid.seed(50):
            assert 0 <= i < 3
            assert 0 <= j < 7

    def test_repeated_cell_is_not_an_error(self):
        grid = HostGrid(rows=1, cols=1, pathogen=Pathogen(seed=10))
        assert grid.seed(3) == [(0, 0)] * 3
        assert grid.count_infected() == 1

    def test_negative_count(self):
        grid = HostGrid(rows=2, cols=2, pathogen=Pathogen(seed=11))
        with pytest.raises(ValueError):
            grid.seed(-1)


# ── Contact neighborhood ─────────────────────────────────────────────

class TestNeighborhood:
    @pytest.mark.parametrize("contacts,radius", [
        (0, 0), (1, 0), (2, 0), (3, 1), (8, 1), (14, 1), (15, 2), (24, 2), (48, 3),
    ])
    def test_radius(self, contacts, radius):
        assert neighborhood_radius(contacts) == radius

    def test_corner_wraps(self, make_grid, certain_params):
        grid = make_grid(5, 5, certain_params, contacts=8)
        cells = grid.neighborhood(0, 0)
        assert len(cells) == 9
        assert {(4, 4), (4, 0), (0, 4), (0, 0), (1, 1)} <= set(cells)

    def test_visiting_order(self, make_grid, certain_params):
        grid = make_grid(5, 5, certain_params, contacts=8)
        assert grid.neighborhood(2, 2) == [
            (1, 1), (1, 2), (1, 3),
            (2, 1), (2, 2), (2, 3),
            (3, 1), (3, 2), (3, 3),
        ]

    def test_radius_larger_than_grid(self, make_grid, certain_params):
        grid = make_grid(3, 2, certain_params, contacts=48)
        cells = grid.neighborhood(0, 0)
        assert len(cells) == 49
        assert all(0 <= i < 3 and 0 <= j < 2 for i, j in cells)

    def test_large_radius_advance(self, make_grid, certain_params):
        grid = make_grid(3, 3, certain_params, contacts=120)
        grid.expose_at(1, 1)
        grid.advance()
        grid.advance()
        counts = grid.counts()
        assert counts['E'] == 8
        assert counts['R'] == 1
        grid.check_invariants()


# ── Daily transitions ────────────────────────────────────────────────

class TestAdvance:
    def test_seeded_center_scenario(self, make_grid, certain_params):
        grid = make_grid(5, 5, certain_params, contacts=8)
        grid.expose_at(2, 2)

        grid.advance()  # day 1
        assert grid.host(2, 2).stage == Stage.INFECTIOUS
        assert grid.host(2, 2).days_remaining == 1
        assert grid.count_susceptible() == 24

        grid.advance()  # day 2
        assert grid.host(2, 2).stage == Stage.RECOVERED
        for i, j in grid.neighborhood(2, 2):
            if (i, j) != (2, 2):
                assert grid.host(i, j).stage == Stage.EXPOSED
        assert grid.counts() == {'S': 16, 'E': 8, 'I': 0, 'R': 1, 'D': 0}

        grid.advance()  # day 3
        assert grid.counts() == {'S': 16, 'E': 0, 'I': 8, 'R': 1, 'D': 0}

        grid.advance()  # day 4: the ring reaches every remaining host
        assert grid.counts() == {'S': 0, 'E': 16, 'I': 0, 'R': 9, 'D': 0}

        grid.advance()
        grid.advance()
        assert grid.counts() == {'S': 0, 'E': 0, 'I': 0, 'R': 25, 'D': 0}

    def test_same_day_exposures_are_visible_to_later_hosts(self, make_grid):
        params = PathogenParameters(p_transmit=1.0, p_death=0.0,
                                    min_exposed=1, mean_exposed=1,
                                    min_infectious=2, mean_infectious=2)
        grid = make_grid(5, 5, params, contacts=8)
        grid.expose_at(2, 1)
        grid.expose_at(2, 2)
        grid.advance()
        assert grid.host(2, 1).stage == Stage.INFECTIOUS
        assert grid.host(2, 2).stage == Stage.INFECTIOUS

        before = grid.pathogen.transmission_draws
        grid.advance()
        # (2, 1) draws for its 7 susceptible contacts; (2, 2) then only finds
        # the 3 cells in column 3 still susceptible
        assert grid.pathogen.transmission_draws - before == 10
        assert grid.count_stage(Stage.EXPOSED) == 10

        # Exposed today, not yet counted down
        assert grid.host(1, 3).days_remaining == 1

    def test_susceptible_without_infectious_neighbors_untouched(self, make_grid, certain_params):
        grid = make_grid(9, 9, certain_params, contacts=8)
        grid.expose_at(0, 0)
        grid.advance()
        grid.advance()
        assert grid.host(4, 4).stage == Stage.SUSCEPTIBLE

    def test_isolation_without_transmission(self):
        grid = HostGrid(rows=12, cols=12, pathogen=Pathogen(fast_params(p_transmit=0.0), seed=12))
        seeded = set(grid.seed(6))
        while grid.count_infected() > 0:
            grid.advance()
        assert grid.count_susceptible() == grid.size - len(seeded)
        assert grid.count_infected() == 0

    def test_certain_death(self):
        grid = HostGrid(rows=12, cols=12, pathogen=Pathogen(fast_params(p_death=1.0), seed=13))
        grid.seed(4)
        while grid.count_infected() > 0:
            grid.advance()
        assert grid.count_recovered() == 0
        assert grid.count_deceased() > 0

    def test_certain_recovery(self):
        grid = HostGrid(rows=12, cols=12, pathogen=Pathogen(fast_params(p_death=0.0), seed=14))
        grid.seed(4)
        while grid.count_infected() > 0:
            grid.advance()
        assert grid.count_deceased() == 0
        assert grid.count_recovered() > 0

    def test_transitions_conservation_and_absorption(self):
        grid = HostGrid(rows=15, cols=15, pathogen=Pathogen(fast_params(), seed=15))
        grid.seed(5)
        previous = grid.stages()

        for _ in range(60):
            grid.advance()
            grid.check_invariants()

            counts = grid.counts()
            assert (grid.count_infected() + grid.count_recovered()
                    + grid.count_deceased() + grid.count_susceptible()) == grid.size
            assert sum(counts.values()) == grid.size

            current = grid.stages()
            for old in ALLOWED_NEXT:
                mask = previous == old
                allowed = [int(s) for s in ALLOWED_NEXT[old]]
                assert np.isin(current[mask], allowed).all(), f"bad transition from {old.name}"
            previous = current

    def test_counts_do_not_draw(self):
        grid = HostGrid(rows=5, cols=5, pathogen=Pathogen(seed=16))
        grid.seed(2)
        state = grid.rng.bit_generator.state
        grid.count_infected()
        grid.count_recovered()
        grid.count_deceased()
        grid.counts()
        grid.snapshot()
        assert grid.rng.bit_generator.state == state


# ── Read-only views ──────────────────────────────────────────────────

class TestViews:
    def test_snapshot_is_row_major(self, make_grid, certain_params):
        grid = make_grid(3, 4, certain_params, contacts=5)
        grid.expose_at(1, 2)
        snap = grid.snapshot()
        assert tuple(snap[1 * 4 + 2]) == (Stage.EXPOSED, 1, 5)
        assert grid.host(1, 2).as_tuple() == (1, 1, 5)

    def test_snapshot_is_read_only_copy(self):
        grid = HostGrid(rows=4, cols=4, pathogen=Pathogen(seed=17))
        snap = grid.snapshot()
        with pytest.raises(ValueError):
            snap[0, 0] = Stage.DECEASED
        stages = grid.stages()
        with pytest.raises(ValueError):
            stages[0, 0] = Stage.DECEASED

        grid.seed(16)
        assert (snap[:, 0] == Stage.SUSCEPTIBLE).all()

    def test_host_is_a_copy(self):
        grid = HostGrid(rows=2, cols=2, pathogen=Pathogen(seed=18))
        host = grid.host(0, 0)
        host.stage = Stage.DECEASED
        assert grid.host(0, 0).stage == Stage.SUSCEPTIBLE

    def test_to_frame(self, make_grid, certain_params):
        grid = make_grid(3, 4, certain_params)
        grid.expose_at(2, 3)
        df = grid.to_frame()
        assert len(df) == 12
        assert list(df.columns) == ['row', 'col', 'stage', 'days_remaining', 'contact_count']
        last = df.iloc[-1]
        assert (last['row'], last['col'], last['stage']) == (2, 3, 'EXPOSED')

    def test_count_detected(self, make_grid):
        params = PathogenParameters(p_transmit=0.0, min_exposed=1, mean_exposed=1,
                                    min_infectious=2, mean_infectious=2)
        grid = make_grid(3, 3, params)
        grid.expose_at(0, 0)
        grid.advance()  # infectious with 2 days left
        assert grid.count_detected() == 0
        grid.advance()  # 1 day left
        assert grid.count_detected() == 1

    def test_summary(self):
        grid = HostGrid(rows=4, cols=5, pathogen=Pathogen(seed=19))
        text = grid.summary()
        assert "4 x 5 = 20 hosts" in text
        assert "Ebola-like" in text

    def test_check_invariants_flags_stalled_host(self, make_grid, certain_params):
        grid = make_grid(3, 3, certain_params)
        grid.expose_at(1, 1)
        grid._days[1, 1] = 0
        with pytest.raises(AssertionError, match="zero days remaining"):
            grid.check_invariants()

    def test_check_invariants_flags_resolved_between_steps(self, make_grid, certain_params):
        grid = make_grid(3, 3, certain_params)
        grid._stage[0, 2] = Stage.RESOLVED
        with pytest.raises(AssertionError, match="resolved stage"):
            grid.check_invariants()
