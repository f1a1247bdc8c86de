"""Grid-based per-host SEIRD epidemic simulation"""

from . import core
from . import spatial

__all__ = ['core', 'spatial']
