from __future__ import annotations

import logging
import subprocess
import threading
from typing import Any, Optional, Sequence, Union

from magickcmd.app.state import (
    ResourceLimits,
    environment_limits,
    limit_argv,
    limit_params_text,
    parse_resource_listing,
)
from magickcmd.command.builder import ArgumentBuilder
from magickcmd.command.quoting import format_token, split_tokens
from magickcmd.core.errors import (
    InvocationNonZeroExit,
    InvocationStartupFailure,
    InvocationTimeout,
    MagickError,
)
from magickcmd.engine.config import EngineConfig

logger = logging.getLogger(__name__)

Args = Union[ArgumentBuilder, str, Sequence[Any]]


def _args_text(args: Args) -> str:
    """Display text for any accepted argument form."""
    if isinstance(args, ArgumentBuilder):
        return args.render()
    if isinstance(args, str):
        return args
    return " ".join(format_token(str(a)) for a in args)


def _args_argv(args: Args) -> list[str]:
    """Argument vector for any accepted argument form; text is read back with split_tokens."""
    if isinstance(args, ArgumentBuilder):
        return args.argv()
    if isinstance(args, str):
        return split_tokens(args)
    return [str(a) for a in args]


class Invoker:
    """
    Runs engine commands as ``<command> <limit params> <args>``.

    Each invoker carries its own ResourceLimits; the limit overrides are
    injected into every call unless `limit_params` is passed explicitly.
    The process is started without a shell and its stderr is discarded.
    """

    def __init__(self, config: Optional[EngineConfig] = None, limits: Optional[ResourceLimits] = None):
        self.config = config if config is not None else EngineConfig.from_env()
        self.limits = limits if limits is not None else ResourceLimits(defaults_source=self.query_default_limits)

    def run(
        self,
        command: str,
        args: Args = (),
        limit_params: Optional[str] = None,
        err_msg: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Execute `command` and return its stdout.

        Raises InvocationStartupFailure if the process cannot be launched,
        InvocationTimeout if it outlives `timeout`, and InvocationNonZeroExit
        if it exits with a failure status.
        """
        if not isinstance(args, (ArgumentBuilder, str)):
            args = [str(a) for a in args]
        if limit_params is None:
            overrides = self.limits.overrides
            limit_text = limit_params_text(overrides)
        else:
            overrides = None
            limit_text = limit_params
        prefix = self.config.command_for(command)
        command_text = " ".join(part for part in (" ".join(prefix), limit_text, _args_text(args)) if part)
        if timeout is None:
            timeout = self.config.timeout

        logger.debug("running: %s", command_text)
        try:
            limit_args = limit_argv(overrides) if overrides is not None else split_tokens(limit_text)
            argv = prefix + limit_args + _args_argv(args)
            proc = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise InvocationTimeout(command_text, timeout) from e
        except Exception as e:
            raise InvocationStartupFailure(command_text, e) from e

        if proc.returncode != 0:
            message = err_msg or f"magickcmd command failed: {command}."
            raise InvocationNonZeroExit(message, proc.returncode, command_text)
        return proc.stdout

    def query_default_limits(self) -> dict[str, str]:
        """
        Limits the engine reports for itself, topped up from the
        MAGICK_<RESOURCE>_LIMIT environment variables.
        """
        reported: dict[str, str] = {}
        try:
            output = self.run("identify", ["-list", "resource"], limit_params="")
            reported = parse_resource_listing(output)
        except MagickError as e:
            logger.warning("could not query engine resource limits, using environment: %s", e)
        for name, value in environment_limits().items():
            reported.setdefault(name, value)
        return reported


_default: Optional[Invoker] = None
_default_lock = threading.Lock()


def default_invoker() -> Invoker:
    """The process-wide invoker (and limit state) used when none is passed."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Invoker()
        return _default


def set_default_invoker(invoker: Optional[Invoker]) -> None:
    """Replace the process-wide invoker; None rebuilds it from the environment on next use."""
    global _default
    with _default_lock:
        _default = invoker


def run(command: str, args: Args = (), limit_params: Optional[str] = None, err_msg: Optional[str] = None,
        timeout: Optional[float] = None) -> str:
    return default_invoker().run(command, args, limit_params=limit_params, err_msg=err_msg, timeout=timeout)
