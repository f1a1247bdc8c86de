"""
Grid Epidemic Simulator
=======================
Drives a HostGrid day by day until the outbreak burns out or the day
budget runs out, recording SEIRD totals along the way
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Callable, Optional

from .grid import HostGrid
from .render import render_text, summary_line
from ..core.pathogen import Pathogen, PathogenParameters


def run(grid: HostGrid,
        max_days: int,
        on_render: Optional[Callable[[int, np.ndarray], None]] = None,
        render_step: int = 1,
        on_step: Optional[Callable[[int], None]] = None) -> int:
    """
    Advance the grid while infections remain, for at most max_days days

    Args:
        grid: Seeded host grid
        max_days: Day budget
        on_render: Called as on_render(day, snapshot) on day 0, every
            render_step days, and on the final day
        render_step: Days between renders
        on_step: Called as on_step(day) after every simulated day

    Returns:
        Number of days actually simulated
    """
    if render_step < 1:
        raise ValueError(f"render_step must be at least 1, got {render_step}")

    days = 0
    if on_render is not None:
        on_render(days, grid.snapshot())

    while grid.count_infected() > 0 and days < max_days:
        grid.advance()
        days += 1

        if on_step is not None:
            on_step(days)
        if on_render is not None and days % render_step == 0:
            on_render(days, grid.snapshot())

    if on_render is not None and days % render_step != 0:
        on_render(days, grid.snapshot())

    return days


@dataclass
class SimulationConfig:
    """Configuration for a grid simulation run"""
    grid_size: int = 100  # rows = cols
    total_days: int = 1000

    # Pathogen
    p_transmit: float = 0.01
    p_death: float = 0.5
    min_exposed: int = 2
    mean_exposed: int = 9
    min_infectious: int = 7
    mean_infectious: int = 9
    mean_contacts: float = 17
    quarantine_days: int = 0  # unused by the dynamics

    # Initial conditions
    initial_infections: int = 1

    # Days between progress reports / renders
    render_step: int = 1

    # Random seed
    seed: Optional[int] = None

    def __post_init__(self):
        if self.grid_size < 1:
            raise ValueError(f"grid_size must be positive, got {self.grid_size}")
        if self.total_days < 0:
            raise ValueError(f"total_days must be non-negative, got {self.total_days}")
        if self.initial_infections < 0:
            raise ValueError(f"initial_infections must be non-negative, got {self.initial_infections}")
        if self.render_step < 1:
            raise ValueError(f"render_step must be at least 1, got {self.render_step}")

    def pathogen_params(self) -> PathogenParameters:
        return PathogenParameters(
            p_transmit=self.p_transmit,
            p_death=self.p_death,
            min_exposed=self.min_exposed,
            mean_exposed=self.mean_exposed,
            min_infectious=self.min_infectious,
            mean_infectious=self.mean_infectious,
            mean_contacts=self.mean_contacts,
            quarantine_days=self.quarantine_days,
        )


class GridSimulator:
    """
    Stochastic per-host SEIRD simulator on a toroidal grid
    """

    def __init__(self,
                 config: SimulationConfig,
                 pathogen_params: Optional[PathogenParameters] = None):
        """
        Initialize simulator

        Args:
            config: Simulation configuration
            pathogen_params: Overrides the pathogen fields of config if given
        """
        self.config = config
        self.rng = np.random.default_rng(config.seed)

        if pathogen_params is None:
            pathogen_params = config.pathogen_params()
        self.pathogen = Pathogen(pathogen_params, rng=self.rng)

        self.grid = HostGrid(
            rows=config.grid_size,
            cols=config.grid_size,
            pathogen=self.pathogen,
            rng=self.rng
        )

        # Tracking
        self.current_day = 0
        self._start_day = 0
        self.history = []
        self.seeded = []

    def initialize_epidemic(self):
        """Seed initial infections"""
        self.seeded = self.grid.seed(self.config.initial_infections)

    def reset(self):
        """Clear the grid and seed a fresh outbreak"""
        self.current_day = 0
        self.history = []
        self.seeded = self.grid.reseed(self.config.initial_infections)

    def _record_state(self):
        record = {'day': self.current_day}
        record.update(self.grid.counts())
        self.history.append(record)

    def _on_step(self, day: int):
        self.current_day = self._start_day + day
        self._record_state()

    def run(self,
            verbose: bool = True,
            on_render: Optional[Callable[[int, np.ndarray], None]] = None) -> pd.DataFrame:
        """
        Run full simulation

        Args:
            verbose: Print progress every render_step days
            on_render: Snapshot consumer, called every render_step days

        Returns:
            DataFrame with time series of SEIRD totals
        """
        if not self.history:
            if not self.seeded:
                self.initialize_epidemic()
            self._record_state()

        if verbose:
            print(f"Starting simulation...")
            print(f"Grid: {self.grid.rows} x {self.grid.cols} hosts")
            print(f"Pathogen: {self.pathogen.name}")
            print(f"Initial infections: {self.config.initial_infections}")
            print(f"Duration: up to {self.config.total_days} days")
            print(f"Estimated R0: {self.pathogen.params.R0_estimate:.2f}")
            print()

        # A repeated run() continues from the last recorded day
        self._start_day = self.current_day
        remaining = max(self.config.total_days - self._start_day, 0)

        def render(elapsed, snapshot):
            day = self._start_day + elapsed
            if verbose and elapsed > 0:
                counts = self.history[-1]
                print(f"Day {day:4d}: S={counts['S']:7d}, E={counts['E']:6d}, "
                      f"I={counts['I']:6d}, R={counts['R']:7d}, D={counts['D']:6d}")
            if on_render is not None:
                on_render(day, snapshot)

        run(
            self.grid,
            remaining,
            on_render=render,
            render_step=self.config.render_step,
            on_step=self._on_step
        )

        if verbose:
            print(f"\nAfter {self.current_day} days...")
            print(self.summary())

        return self.get_results()

    def get_results(self) -> pd.DataFrame:
        """Get results as DataFrame"""
        return pd.DataFrame(self.history)

    def render_text(self) -> str:
        return render_text(self.grid.snapshot(), self.grid.cols)

    def summary(self) -> str:
        return summary_line(
            self.grid.count_deceased(),
            self.grid.count_recovered(),
            self.grid.count_infected()
        )


def outcome_shares(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-day fractions of the fixed grid population

    Adds 'attack_rate' ((R + D) / N) and 'fatality_share' (D / (R + D),
    NaN until the first infection resolves).
    """
    stages = ['S', 'E', 'I', 'R', 'D']
    total = df[stages].sum(axis=1)
    shares = df[stages].div(total, axis=0)
    shares.insert(0, 'day', df['day'])

    resolved = df['R'] + df['D']
    shares['attack_rate'] = resolved / total
    shares['fatality_share'] = (df['D'] / resolved).where(resolved > 0)
    return shares


def plot_results(df: pd.DataFrame, title: str = "Grid SEIRD Simulation"):
    """
    Plot the grid population by stage and how resolved infections ended

    Args:
        df: Results DataFrame from simulation
        title: Plot title
    """
    import matplotlib.pyplot as plt

    shares = outcome_shares(df)
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 10), sharex=True)

    # Plot 1: stacked share of the population in each stage
    ax1.stackplot(
        shares['day'],
        shares['S'], shares['E'], shares['I'], shares['R'], shares['D'],
        labels=['Susceptible', 'Exposed', 'Infectious', 'Recovered', 'Deceased'],
        colors=['#4c72b0', '#f0a030', '#c44e52', '#55a868', '#000000'],
        alpha=0.85
    )
    ax1.set_ylim(0, 1)
    ax1.set_ylabel('Share of Hosts', fontsize=12)
    ax1.set_title(title, fontsize=14, fontweight='bold')
    ax1.legend(loc='upper left', bbox_to_anchor=(1.01, 1.0), fontsize=11)

    # Plot 2: attack rate against the share of resolved hosts who died
    ax2_twin = ax2.twinx()

    ax2.plot(shares['day'], shares['attack_rate'], color='purple', linewidth=2)
    ax2.set_xlabel('Days', fontsize=12)
    ax2.set_ylabel('Attack Rate', fontsize=12, color='purple')
    ax2.tick_params(axis='y', labelcolor='purple')
    ax2.grid(True, alpha=0.3)

    ax2_twin.plot(shares['day'], shares['fatality_share'],
                  color='black', linewidth=2, linestyle='--')
    ax2_twin.set_ylim(0, 1)
    ax2_twin.set_ylabel('Deceased / Resolved', fontsize=12, color='black')

    plt.tight_layout()
    return fig


if __name__ == "__main__":
    print("Grid SEIRD Simulator Test Run")
    print("=" * 60)

    config = SimulationConfig(
        grid_size=100,
        total_days=1000,
        p_transmit=0.012,
        initial_infections=3,
        render_step=30,
        seed=42
    )

    simulator = GridSimulator(config)
    results = simulator.run(verbose=True)

    import matplotlib.pyplot as plt
    fig = plot_results(results)
    plt.savefig('grid_seird_simulation.png', dpi=150, bbox_inches='tight')
    print("\nPlot saved as 'grid_seird_simulation.png'")
