"""CLI components"""

from .interactive_cli import InteractiveCLI, run_interactive_cli

__all__ = ['InteractiveCLI', 'run_interactive_cli']
