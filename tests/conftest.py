"""Shared fixtures for the epigrid test suite."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from epigrid.core.pathogen import Pathogen, PathogenParameters
from epigrid.spatial.grid import HostGrid


class FixedContactsPathogen(Pathogen):
    """Pathogen whose hosts all get the same contact count."""

    def __init__(self, params, contacts, seed=0):
        super().__init__(params, seed=seed)
        self.contacts = contacts
        self.transmission_draws = 0

    def contact_counts(self, n):
        return np.full(n, self.contacts)

    def draws_transmission(self):
        self.transmission_draws += 1
        return super().draws_transmission()


@pytest.fixture
def certain_params():
    """Always transmits, never kills, one-day incubation and infection."""
    return PathogenParameters(
        p_transmit=1.0, p_death=0.0,
        min_exposed=1, mean_exposed=1,
        min_infectious=1, mean_infectious=1,
        mean_contacts=8,
    )


@pytest.fixture
def make_grid():
    """Factory for grids whose hosts share a fixed contact count."""
    def _make(rows, cols, params, contacts=8, seed=0):
        pathogen = FixedContactsPathogen(params, contacts, seed=seed)
        return HostGrid(rows=rows, cols=cols, pathogen=pathogen)
    return _make
