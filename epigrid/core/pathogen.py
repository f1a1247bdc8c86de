"""
Pathogen Parameters and Draws
=============================
Defines the disease parameters and the random draws that drive every
stochastic transition in the grid simulation
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .host import Host, Stage


@dataclass
class PathogenParameters:
    """
    Parameters for an SEIRD pathogen

    Defaults describe an Ebola-like disease: transmission probability
    estimated from a binomial with mean 1.4-1.7 successes over ~149
    contact-days (9 infectious days x 16.5 contacts per day).
    """

    name: str = "Ebola-like"

    # Per contact per day
    p_transmit: float = 0.005
    # Given the infection resolves
    p_death: float = 0.5

    # Incubation (E -> I), in days
    min_exposed: int = 2
    mean_exposed: int = 9

    # Infection (I -> R/D), in days
    min_infectious: int = 7
    mean_infectious: int = 9

    # Close contacts per day
    mean_contacts: float = 16

    # Quarantine delay in days (not used by the dynamics)
    quarantine_days: int = 1

    def __post_init__(self):
        """Validate parameter ranges"""
        for label, p in (('p_transmit', self.p_transmit), ('p_death', self.p_death)):
            if not 0.0 <= p <= 1.0:
                raise ValueError(f"{label} must be within [0, 1], got {p}")

        for label, low, mean in (
            ('exposed', self.min_exposed, self.mean_exposed),
            ('infectious', self.min_infectious, self.mean_infectious),
        ):
            if low < 1:
                raise ValueError(f"min_{label} must be at least 1 day, got {low}")
            if mean < low:
                raise ValueError(
                    f"mean_{label} ({mean}) must not be below min_{label} ({low})"
                )

        if self.mean_contacts < 0:
            raise ValueError(f"mean_contacts must be non-negative, got {self.mean_contacts}")

    @property
    def p_incubation_end(self) -> float:
        """Daily chance that incubation ends once past the minimum"""
        return 1.0 / (self.mean_exposed - self.min_exposed + 1)

    @property
    def p_infection_end(self) -> float:
        """Daily chance that infection ends once past the minimum"""
        return 1.0 / (self.mean_infectious - self.min_infectious + 1)

    @property
    def R0_estimate(self) -> float:
        """Rough basic reproduction number (contacts x days x transmission)"""
        return self.p_transmit * (1 + self.mean_contacts) * self.mean_infectious


class Pathogen:
    """
    Random variable generators for a pathogen

    Incubation and infection times are assumed exponential; since the
    simulation advances in whole days the discrete analogue, the geometric
    distribution, is used instead. Contacts per day are Poisson.

    Every draw consumes from ``self.rng``. Pass the same generator to the
    grid so that the whole run follows a single reproducible sequence.
    """

    def __init__(self,
                 params: Optional[PathogenParameters] = None,
                 rng: Optional[np.random.Generator] = None,
                 seed: Optional[int] = None):
        """
        Initialize pathogen

        Args:
            params: Pathogen parameters (Ebola-like defaults if None)
            rng: Generator to draw from
            seed: Seed for a new generator, used only when rng is None
        """
        if params is None:
            params = PathogenParameters()
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    @property
    def name(self) -> str:
        return self.params.name

    def draws_transmission(self) -> bool:
        """Bernoulli(p_transmit): does one contact pass the infection on?"""
        return bool(self.rng.random() < self.params.p_transmit)

    def draws_death(self) -> bool:
        """Bernoulli(p_death): does a resolving infection kill the host?"""
        return bool(self.rng.random() < self.params.p_death)

    def incubation_period(self) -> int:
        """
        Days for a host to advance from exposed to infectious

        min_exposed + Geometric(1 / (mean_exposed - min_exposed + 1)),
        geometric counted as failures before the first success
        """
        return self.params.min_exposed + int(self.rng.geometric(self.params.p_incubation_end)) - 1

    def infectious_period(self) -> int:
        """Days for an infection to progress to resolution"""
        return self.params.min_infectious + int(self.rng.geometric(self.params.p_infection_end)) - 1

    def contact_count(self) -> int:
        """Number of close contacts per day for a host, always at least 1"""
        return 1 + int(self.rng.poisson(self.params.mean_contacts))

    def contact_counts(self, n: int) -> np.ndarray:
        """Sample contact counts for n hosts at once"""
        return 1 + self.rng.poisson(self.params.mean_contacts, n)

    def is_detected(self, host: Host) -> bool:
        """Infectious host that is presenting symptoms"""
        return (host.stage == Stage.INFECTIOUS
                and host.days_remaining < self.params.min_infectious)

    def __repr__(self) -> str:
        return f"Pathogen({self.name!r})"


# Default parameters instance
DEFAULT_PARAMS = PathogenParameters()


if __name__ == "__main__":
    pathogen = Pathogen(seed=42)

    print("Pathogen Draws Test")
    print("=" * 50)
    print(f"Pathogen: {pathogen.name}")
    print(f"Estimated R0: {pathogen.params.R0_estimate:.2f}")
    print(f"Incubation periods: {[pathogen.incubation_period() for _ in range(5)]}")
    print(f"Infectious periods: {[pathogen.infectious_period() for _ in range(5)]}")
    print(f"Contact counts: {[pathogen.contact_count() for _ in range(5)]}")
