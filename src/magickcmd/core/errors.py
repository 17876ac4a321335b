from __future__ import annotations

from typing import Any, Optional


class MagickError(Exception):
    """Base class for everything raised by magickcmd."""


class InvocationStartupFailure(MagickError):
    """The engine process could not be launched."""

    def __init__(self, command: str, cause: BaseException):
        self.command = command
        self.kind = type(cause).__name__
        self.message = str(cause)
        super().__init__(f"{self.kind}: {self.message}")


class InvocationTimeout(MagickError):
    """The engine process outlived its deadline and was killed."""

    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"Command timed out after {timeout:g}s\n  Command: {command}")


class InvocationNonZeroExit(MagickError):
    """The engine process ran but reported failure."""

    def __init__(self, message: str, exit_code: int, command: str):
        self.message = message
        self.exit_code = exit_code
        self.command = command
        super().__init__(f"{message} (Exit status: {exit_code})\n  Command: {command}")


class UnknownResizeOptions(MagickError, ValueError):
    def __init__(self, options: Any):
        self.options = options
        super().__init__(f"Unknown options for resize: {options!r}")


class IndeterminateSize(MagickError):
    def __init__(self, source: Any, output: Optional[str] = None):
        self.source = source
        self.output = output
        super().__init__(f"Indeterminate results in get_image_size: {source}")


class UnknownResource(MagickError, ValueError):
    def __init__(self, name: Any):
        self.name = name
        super().__init__(f"Unknown resource limit: {name!r}")
