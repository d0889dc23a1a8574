"""
Exception types raised by finseed.
"""

from __future__ import annotations

from typing import Optional


class ConfigurationError(ValueError):
    """Raised when a generation configuration is invalid."""


class GenerationError(RuntimeError):
    """
    Raised when a generation run aborts.

    Carries the phase that was running and the sink being written to so the
    failure can be diagnosed from the message alone.
    """

    def __init__(self, message: str, phase: Optional[str] = None, sink: Optional[str] = None):
        self.phase = phase
        self.sink = sink
        self.detail = message
        context = []
        if phase:
            context.append(f"phase={phase}")
        if sink:
            context.append(f"sink={sink}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)
