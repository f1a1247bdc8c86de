"""Spatial grid, simulation driver and rendering"""

from .grid import HostGrid, neighborhood_radius
from .simulator import GridSimulator, SimulationConfig, run, plot_results, outcome_shares
from .render import render_text, summary_line, plot_stage_map

__all__ = [
    'HostGrid',
    'neighborhood_radius',
    'GridSimulator',
    'SimulationConfig',
    'run',
    'plot_results',
    'outcome_shares',
    'render_text',
    'summary_line',
    'plot_stage_map'
]
