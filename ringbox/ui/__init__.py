"""Console rendering helpers"""

from .output import OutcomeRenderer
from .ui_components import OutputFormatter, StatusIndicator

__all__ = ['OutcomeRenderer', 'OutputFormatter', 'StatusIndicator']
