"""
Host State
==========
Per-individual disease state for the grid population
"""

from dataclasses import dataclass
from enum import IntEnum


class Stage(IntEnum):
    """Enumeration of disease stages (SEIRD)"""
    SUSCEPTIBLE = 0
    EXPOSED = 1
    INFECTIOUS = 2
    RESOLVED = 3   # transient, only inside a single advance()
    RECOVERED = 4
    DECEASED = 5


TERMINAL_STAGES = (Stage.RECOVERED, Stage.DECEASED)

# Stages that carry a countdown in days_remaining
TIMED_STAGES = (Stage.EXPOSED, Stage.INFECTIOUS)


@dataclass
class Host:
    """Individual in the grid"""
    stage: Stage = Stage.SUSCEPTIBLE
    days_remaining: int = 0
    contact_count: int = 1

    @property
    def is_infected(self) -> bool:
        """Exposed or infectious"""
        return self.stage in TIMED_STAGES

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def as_tuple(self) -> tuple:
        return (int(self.stage), self.days_remaining, self.contact_count)
