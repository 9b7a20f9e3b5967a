"""Playbook generation wizard controller."""

from .errors import UNKNOWN_ERROR, GenerationError, TransportError, WizardError
from .wizard import PlaybookGenerationController

__all__ = [
    "GenerationError",
    "PlaybookGenerationController",
    "TransportError",
    "UNKNOWN_ERROR",
    "WizardError",
]

__version__ = "0.1.0"
