"""
Command-line entry point

    epigrid <popn-size> <num-steps> <prob-transmit> <prob-death>
            <tmin-exposed> <tavg-exposed> <tmin-infected> <tavg-infected>
            <num-contacts> <quarantine-delay> <num-seeds> <step-size>

Runs the simulation on a square grid, prints the final grid as text and a
one-line summary.
"""

import argparse
import sys

from .spatial.simulator import GridSimulator, SimulationConfig
from .spatial.render import plot_stage_map


POSITIONALS = [
    ('popn_size', int, "grid rows = columns [1000]"),
    ('num_steps', int, "maximum number of days [1000]"),
    ('prob_transmit', float, "transmission probability per contact per day [0.01-0.012]"),
    ('prob_death', float, "probability of death given infection [0.5]"),
    ('tmin_exposed', int, "minimum incubation days [2]"),
    ('tavg_exposed', int, "mean incubation days [9]"),
    ('tmin_infected', int, "minimum infectious days [7]"),
    ('tavg_infected', int, "mean infectious days [9]"),
    ('num_contacts', float, "mean contacts per day [17]"),
    ('quarantine_delay', int, "quarantine delay in days [0] (currently unused)"),
    ('num_seeds', int, "initially exposed hosts [1]"),
    ('step_size', int, "days between progress reports [1]"),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epigrid",
        description="Stochastic SEIRD epidemic on a toroidal grid of hosts.",
        epilog="Example: epigrid 100 1000 0.012 0.5 2 9 7 9 17 0 1 10",
    )
    for name, kind, help_text in POSITIONALS:
        parser.add_argument(name, type=kind, help=help_text)

    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for a reproducible run (default: OS entropy)",
    )
    parser.add_argument(
        "--plot", type=str, default=None,
        help="Save an image of the final grid to this path",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Print progress every step-size days",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    return SimulationConfig(
        grid_size=args.popn_size,
        total_days=args.num_steps,
        p_transmit=args.prob_transmit,
        p_death=args.prob_death,
        min_exposed=args.tmin_exposed,
        mean_exposed=args.tavg_exposed,
        min_infectious=args.tmin_infected,
        mean_infectious=args.tavg_infected,
        mean_contacts=args.num_contacts,
        quarantine_days=args.quarantine_delay,
        initial_infections=args.num_seeds,
        render_step=args.step_size,
        seed=args.seed,
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        simulator = GridSimulator(config_from_args(args))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    simulator.initialize_epidemic()
    simulator.run(verbose=args.verbose)

    print(simulator.render_text())
    if not args.verbose:
        print(f"\nAfter {simulator.current_day} days...")
        print(simulator.summary())

    if args.plot:
        import matplotlib.pyplot as plt

        ax = plot_stage_map(simulator.grid.stages(), title=f"Day {simulator.current_day}")
        ax.figure.savefig(args.plot, dpi=150, bbox_inches='tight')
        plt.close(ax.figure)
        print(f"Plot saved as '{args.plot}'")

    return 0


if __name__ == "__main__":
    sys.exit(main())
