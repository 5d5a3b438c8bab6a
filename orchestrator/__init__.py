# Folder Icon Orchestration
# Configuration and run sequencing

from .config import ConfigManager
from .pipeline import IconPipeline, RunSummary, STEPS

__all__ = [
    'ConfigManager',
    'IconPipeline',
    'RunSummary',
    'STEPS'
]
