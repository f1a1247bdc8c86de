"""
Grid Rendering
==============
Text and image views of a grid snapshot. Nothing here touches the grid
itself; every function works on the read-only buffers it exports.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap, BoundaryNorm
from matplotlib.patches import Patch

from ..core.host import Stage


STAGE_CHARS = {
    Stage.SUSCEPTIBLE: 's',
    Stage.EXPOSED: 'e',
    Stage.INFECTIOUS: 'I',
    Stage.DECEASED: ' ',
    Stage.RECOVERED: 'R',
}

STAGE_COLORS = {
    Stage.SUSCEPTIBLE: '#4c72b0',
    Stage.EXPOSED: '#f0a030',
    Stage.INFECTIOUS: '#c44e52',
    Stage.RESOLVED: '#8c8c8c',
    Stage.RECOVERED: '#55a868',
    Stage.DECEASED: '#000000',
}


def render_text(snapshot: np.ndarray, cols: int) -> str:
    """
    One character per host, one line per grid row

    Args:
        snapshot: Flat row-major (n, 3) buffer from HostGrid.snapshot()
        cols: Grid width
    """
    stages = np.asarray(snapshot)[:, 0].reshape(-1, cols)
    lines = []
    for row in stages:
        lines.append(''.join(STAGE_CHARS.get(Stage(int(s)), '!') for s in row))
    return '\n'.join(lines)


def summary_line(deceased: int, recovered: int, infected: int) -> str:
    return f"{deceased} died, {recovered} recovered, {infected} still infected."


def plot_stage_map(stages: np.ndarray, ax=None, title: str = 'Host Stages'):
    """
    Plot a (rows, cols) stage array as a categorical heatmap

    Args:
        stages: Array from HostGrid.stages()
        ax: Axes to draw into (new figure if None)
        title: Axes title
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))

    cmap = ListedColormap([STAGE_COLORS[s] for s in Stage])
    norm = BoundaryNorm(np.arange(len(Stage) + 1) - 0.5, cmap.N)

    ax.imshow(stages, cmap=cmap, norm=norm, interpolation='nearest')
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xlabel('Column', fontsize=12)
    ax.set_ylabel('Row', fontsize=12)

    # Legend only for stages that can be seen between steps
    handles = [Patch(color=STAGE_COLORS[s], label=s.name.title())
               for s in Stage if s != Stage.RESOLVED]
    ax.legend(handles=handles, loc='upper left', bbox_to_anchor=(1.01, 1.0), fontsize=10)
    ax.grid(False)

    return ax
