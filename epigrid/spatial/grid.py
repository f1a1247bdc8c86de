"""
Host Grid
=========
Rectangular toroidal grid of individual hosts sharing one pathogen.
Each day every exposed or infectious host progresses, and every infectious
host may pass the pathogen to the hosts in its contact neighborhood.
"""

import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Tuple

from ..core.host import Host, Stage
from ..core.pathogen import Pathogen


def neighborhood_radius(contact_count: int) -> int:
    """
    Half-width k of the square neighborhood holding contact_count contacts

    Inverts "a (2k+1) x (2k+1) block minus its center holds t cells",
    rounding halves up.
    """
    return int(np.floor((np.sqrt(contact_count + 1) - 1) / 2 + 0.5))


class HostGrid:
    """
    2D toroidal grid of hosts

    State is held as three (rows, cols) integer arrays: stage, days
    remaining in the current stage, and daily contact count. The grid owns
    these arrays; callers only ever receive read-only copies.
    """

    def __init__(self,
                 rows: int = 100,
                 cols: int = 100,
                 pathogen: Optional[Pathogen] = None,
                 rng: Optional[np.random.Generator] = None):
        """
        Initialize host grid

        Args:
            rows: Number of rows in grid
            cols: Number of columns in grid
            pathogen: Pathogen to model (Ebola-like defaults if None)
            rng: Generator for seeding draws; must be the pathogen's own when
                both are given, so that the whole run consumes one sequence
        """
        if rows < 1 or cols < 1:
            raise ValueError(f"Grid dimensions must be positive: {rows} x {cols}")

        self.rows = rows
        self.cols = cols

        if pathogen is None:
            pathogen = Pathogen(rng=rng)
        elif rng is not None and rng is not pathogen.rng:
            raise ValueError("rng must be the pathogen's generator")
        self.pathogen = pathogen
        self.rng = rng if rng is not None else pathogen.rng

        self._stage = np.zeros((rows, cols), dtype=np.int64)
        self._days = np.zeros((rows, cols), dtype=np.int64)
        self._contacts = np.zeros((rows, cols), dtype=np.int64)
        self._initialize_hosts()

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def size(self) -> int:
        """Total number of hosts"""
        return self.rows * self.cols

    def _initialize_hosts(self):
        """Every host susceptible with a freshly drawn contact count"""
        self._stage[:] = Stage.SUSCEPTIBLE
        self._days[:] = 0
        self._contacts[:] = self.pathogen.contact_counts(self.size).reshape(self.shape)

    def reset(self):
        """Return every host to its initial susceptible state"""
        self._initialize_hosts()

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def expose_at(self, i: int, j: int):
        """Force host (i, j) into the exposed stage with a new incubation period"""
        self._stage[i, j] = Stage.EXPOSED
        self._days[i, j] = self.pathogen.incubation_period()

    def seed(self, count: int) -> List[Tuple[int, int]]:
        """
        Plant the disease in `count` randomly chosen hosts ("patient zero" candidates)

        Cells are drawn uniformly with replacement; a repeated cell is simply
        exposed again.

        Returns:
            Seeded (row, col) coordinates in draw order
        """
        if count < 0:
            raise ValueError(f"Seed count must be non-negative, got {count}")

        seeded = []
        for _ in range(count):
            k = int(self.rng.integers(0, self.size))
            i, j = divmod(k, self.cols)
            self.expose_at(i, j)
            seeded.append((i, j))
        return seeded

    def reseed(self, count: int) -> List[Tuple[int, int]]:
        """Reset the grid, then seed a fresh outbreak"""
        self.reset()
        return self.seed(count)

    # ------------------------------------------------------------------
    # Dynamics
    # ------------------------------------------------------------------

    def wrap(self, i: int, j: int) -> Tuple[int, int]:
        """Map any (i, j) onto the torus"""
        return (i % self.rows, j % self.cols)

    def neighborhood(self, i: int, j: int) -> List[Tuple[int, int]]:
        """
        Cells visited when host (i, j) is infectious, in visiting order

        Includes (i, j) itself. When the radius exceeds the grid, cells can
        appear more than once.
        """
        k = neighborhood_radius(int(self._contacts[i, j]))
        return [self.wrap(hi, hj)
                for hi in range(i - k, i + k + 1)
                for hj in range(j - k, j + k + 1)]

    def _progress(self, stage: np.ndarray, days: np.ndarray, i: int, j: int):
        """Count down one day for host (i, j) and advance its stage at zero"""
        days[i, j] -= 1
        if days[i, j] > 0:
            return

        if stage[i, j] == Stage.EXPOSED:
            stage[i, j] = Stage.INFECTIOUS
            days[i, j] = self.pathogen.infectious_period()
        else:
            stage[i, j] = Stage.RESOLVED
            stage[i, j] = Stage.DECEASED if self.pathogen.draws_death() else Stage.RECOVERED

    def _expose_contacts(self, stage: np.ndarray, days: np.ndarray, i: int, j: int):
        """Identify and possibly infect the susceptible contacts of host (i, j)"""
        for hi, hj in self.neighborhood(i, j):
            if stage[hi, hj] == Stage.SUSCEPTIBLE and self.pathogen.draws_transmission():
                stage[hi, hj] = Stage.EXPOSED
                days[hi, hj] = self.pathogen.incubation_period()

    def advance(self):
        """
        Advance the simulation one day

        Stages are read from yesterday's snapshot, but new exposures are
        written into today's array as the row-major scan proceeds, so a host
        exposed earlier in the scan is no longer susceptible to later
        infectious hosts on the same day. Outcomes therefore depend on the
        scan order, which is fixed: rows, then columns, then each
        neighborhood row by row.
        """
        yesterday = self._stage.copy()
        stage = self._stage.copy()
        days = self._days.copy()

        active = (yesterday == Stage.EXPOSED) | (yesterday == Stage.INFECTIOUS)
        for i, j in np.argwhere(active).tolist():
            self._progress(stage, days, i, j)
            if yesterday[i, j] == Stage.INFECTIOUS:
                self._expose_contacts(stage, days, i, j)

        self._stage = stage
        self._days = days

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def count_stage(self, *stages: Stage) -> int:
        return int(np.isin(self._stage, [int(s) for s in stages]).sum())

    def count_susceptible(self) -> int:
        return self.count_stage(Stage.SUSCEPTIBLE)

    def count_infected(self) -> int:
        """Number of active infections (exposed or infectious)"""
        return self.count_stage(Stage.EXPOSED, Stage.INFECTIOUS)

    def count_recovered(self) -> int:
        return self.count_stage(Stage.RECOVERED)

    def count_deceased(self) -> int:
        return self.count_stage(Stage.DECEASED)

    def counts(self) -> Dict[str, int]:
        """Get SEIRD totals across the grid"""
        return {
            'S': self.count_stage(Stage.SUSCEPTIBLE),
            'E': self.count_stage(Stage.EXPOSED),
            'I': self.count_stage(Stage.INFECTIOUS),
            'R': self.count_stage(Stage.RECOVERED),
            'D': self.count_stage(Stage.DECEASED),
        }

    def count_detected(self) -> int:
        """Infectious hosts presenting symptoms"""
        min_infectious = self.pathogen.params.min_infectious
        mask = (self._stage == Stage.INFECTIOUS) & (self._days < min_infectious)
        return int(mask.sum())

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def host(self, i: int, j: int) -> Host:
        """Copy of the host at (i, j)"""
        return Host(
            stage=Stage(int(self._stage[i, j])),
            days_remaining=int(self._days[i, j]),
            contact_count=int(self._contacts[i, j]),
        )

    def snapshot(self) -> np.ndarray:
        """
        Flat row-major (rows * cols, 3) buffer of (stage, days_remaining, contact_count)

        The returned array is a copy and is not writeable.
        """
        buffer = np.stack(
            [self._stage.ravel(), self._days.ravel(), self._contacts.ravel()],
            axis=1,
        )
        buffer.flags.writeable = False
        return buffer

    def stages(self) -> np.ndarray:
        """Read-only (rows, cols) copy of host stages"""
        stages = self._stage.copy()
        stages.flags.writeable = False
        return stages

    def to_frame(self) -> pd.DataFrame:
        """One row per host with its coordinates and state"""
        rows, cols = np.indices(self.shape)
        return pd.DataFrame({
            'row': rows.ravel(),
            'col': cols.ravel(),
            'stage': [Stage(s).name for s in self._stage.ravel()],
            'days_remaining': self._days.ravel(),
            'contact_count': self._contacts.ravel(),
        })

    def check_invariants(self):
        """
        Raise AssertionError if any host is in an impossible state

        Only meaningful between calls to advance().
        """
        problems = []
        stage, days = self._stage, self._days

        bad_stage = ~np.isin(stage, [s for s in Stage if s != Stage.RESOLVED])
        if bad_stage.any():
            problems.append(f"invalid or resolved stage at {np.argwhere(bad_stage).tolist()}")

        if (days < 0).any():
            problems.append(f"negative days remaining at {np.argwhere(days < 0).tolist()}")

        timed = (stage == Stage.EXPOSED) | (stage == Stage.INFECTIOUS)
        stalled = timed & (days == 0)
        if stalled.any():
            problems.append(f"zero days remaining while infected at {np.argwhere(stalled).tolist()}")

        if (self._contacts < 1).any():
            problems.append("contact count below 1")

        if problems:
            raise AssertionError("; ".join(problems))

    def summary(self) -> str:
        """Return grid summary statistics"""
        summary = f"Host Grid Summary\n"
        summary += f"=" * 50 + "\n"
        summary += f"Dimensions: {self.rows} x {self.cols} = {self.size:,} hosts\n"
        summary += f"Pathogen: {self.pathogen.name}\n"
        summary += f"Contacts per host: mean {self._contacts.mean():.1f}, "
        summary += f"max {self._contacts.max()}\n"

        summary += f"\nCurrent epidemic state:\n"
        for state, count in self.counts().items():
            summary += f"  {state}: {count:,}\n"

        return summary

    def __repr__(self) -> str:
        return f"HostGrid({self.rows}x{self.cols}, {self.pathogen!r})"


if __name__ == "__main__":
    print("Host Grid Test")
    print("=" * 60)

    grid = HostGrid(rows=50, cols=50, pathogen=Pathogen(seed=42))
    seeded = grid.seed(3)
    print(f"Seeded infections at {seeded}")

    for _ in range(30):
        grid.advance()

    print(grid.summary())
