"""Validation helpers for option answers"""

from .validators import Validator

__all__ = ['Validator']
