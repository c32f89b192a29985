"""Ringbox - interactive console for pluggable security-assessment modules"""

from .version import __version__, __status__

__all__ = ['__version__', '__status__']
