"""Exceptions raised by goclassmap."""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class ClassMapError(Exception):
    """Base exception for goclassmap errors."""
    pass


class ScanError(ClassMapError):
    """Raised when a source directory or file cannot be read."""
    pass


class GoSyntaxError(ScanError):
    """Raised when a Go source file cannot be parsed."""

    def __init__(self, message: str, path: Optional[Path] = None, lineno: Optional[int] = None) -> None:
        self.path = path
        self.lineno = lineno
        location = ""
        if path is not None:
            location = f"{path}:{lineno}: " if lineno is not None else f"{path}: "
        super().__init__(f"{location}{message}")


class InvalidRenderingOptionError(ClassMapError, ValueError):
    """Raised for an unknown rendering option or a value of the wrong type."""
    pass


class UnknownFormatError(ClassMapError, ValueError):
    """Raised when no renderer is registered for the requested output format."""
    pass
