"""
Custom exception hierarchy for shepherd-scaffold.

These exceptions allow the scaffold, build and compose layers to communicate
structured failure information without duplicating logging or exit logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ShepherdError(Exception):
    """Base exception carrying structured error metadata."""

    message: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    exit_code: int = 1

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


class PathResolutionError(ShepherdError):
    """Raised when the vendor directory cannot be located or created."""


class TemplateReadError(ShepherdError):
    """Raised when a template asset cannot be read."""


class WriteError(ShepherdError):
    """Raised when a generated file cannot be written."""


class ConfigurationError(ShepherdError):
    """Raised when required configuration is missing."""


@dataclass
class BuildStepError(ShepherdError):
    """Raised when a build step fails; ``step`` names the failing step."""

    step: str = ""


class ComposeError(ShepherdError):
    """Raised when a dsh operation cannot be performed."""
