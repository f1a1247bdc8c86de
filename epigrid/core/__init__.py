"""Core epidemic modeling components"""

from .host import Host, Stage, TERMINAL_STAGES
from .pathogen import Pathogen, PathogenParameters, DEFAULT_PARAMS

__all__ = [
    'Host',
    'Stage',
    'TERMINAL_STAGES',
    'Pathogen',
    'PathogenParameters',
    'DEFAULT_PARAMS'
]
