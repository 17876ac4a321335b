from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from typing import Mapping, Optional

# Sub-commands that live behind the single `magick` binary in ImageMagick 7.
ENGINE_COMMANDS = frozenset({"convert", "identify", "mogrify", "composite", "montage", "compare"})


@dataclass(frozen=True)
class EngineConfig:
    """
    How to reach the external engine.

    binary:
        Program that prefixes engine sub-commands (``magick`` on ImageMagick 7).
        None runs ``convert``/``identify``/... directly.
    timeout:
        Default deadline in seconds for one invocation; None waits forever.
    """
    binary: Optional[str] = None
    timeout: Optional[float] = None

    @staticmethod
    def detect() -> Optional[str]:
        # Prefer the legacy binaries, then the IM7 front end.
        if shutil.which("convert") and shutil.which("identify"):
            return None
        if shutil.which("magick"):
            return "magick"
        return None

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        binary = env.get("MAGICKCMD_BINARY") or EngineConfig.detect()

        raw_timeout = env.get("MAGICKCMD_TIMEOUT", "").strip()
        timeout = None
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(f"MAGICKCMD_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
            if timeout <= 0:
                raise ValueError("MAGICKCMD_TIMEOUT must be > 0")
        return EngineConfig(binary=binary, timeout=timeout)

    def command_for(self, name: str) -> list[str]:
        if self.binary and name in ENGINE_COMMANDS:
            return [self.binary, name]
        return [name]
