from __future__ import annotations

import os
import re
import threading
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from magickcmd.command.quoting import format_token
from magickcmd.core.errors import UnknownResource
from magickcmd.core.models import RESOURCES

LimitValue = Union[int, str, None]

_UNITS = {"": 0, "k": 1, "m": 2, "g": 3, "t": 4, "p": 5, "e": 6}
_SYMBOLIC = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*([kmgtpe]?)i?[bp]?\s*$", re.IGNORECASE)
_LISTING_LINE = re.compile(r"^[ \t]*([A-Za-z][A-Za-z ]*?)[ \t]*:[ \t]*(\S.*?)[ \t]*$", re.MULTILINE)


def to_absolute(value: Any) -> int:
    """
    Convert a symbolic limit such as ``"32mb"``, ``"256MiB"`` or ``"128MP"``
    to an absolute count using binary multipliers (1mb == 2**20).
    """
    if isinstance(value, int):
        return value
    m = _SYMBOLIC.match(str(value))
    if not m:
        raise ValueError(f"invalid resource limit value: {value!r}")
    mantissa, unit = m.group(1), m.group(2).lower()
    multiplier = 1 << (10 * _UNITS[unit])
    if "." in mantissa:
        return int(float(mantissa) * multiplier)
    return int(mantissa) * multiplier


def _actual(value: Any) -> LimitValue:
    if value is None:
        return None
    try:
        return to_absolute(value)
    except ValueError:
        return str(value)


def parse_resource_listing(text: str) -> dict[str, str]:
    """
    Pull the known resources out of ``identify -list resource`` output.

    Handles the ``Name: value`` listing and the older table with a header row
    of resource names followed by a row of values.
    """
    found: dict[str, str] = {}
    for m in _LISTING_LINE.finditer(text):
        name = m.group(1).strip().lower()
        if name in RESOURCES:
            found[name] = m.group(2)
    if found:
        return found

    lines = [ln for ln in text.splitlines() if ln.strip() and set(ln.strip()) != {"-"}]
    for header_line, value_line in zip(lines, lines[1:]):
        header = header_line.lower().split()
        values = value_line.split()
        if len(header) == len(values) and any(name in RESOURCES for name in header):
            return {name: v for name, v in zip(header, values) if name in RESOURCES}
    return {}


def environment_limits(environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Limits ImageMagick picks up from MAGICK_<RESOURCE>_LIMIT variables."""
    env = os.environ if environ is None else environ
    out: dict[str, str] = {}
    for name in RESOURCES:
        value = env.get(f"MAGICK_{name.upper()}_LIMIT")
        if value:
            out[name] = value
    return out


def _check_value(name: str, value: Any) -> str:
    text = str(value).strip()
    if text.lower() != "unlimited":
        try:
            to_absolute(text)
        except ValueError:
            raise ValueError(f"invalid value for resource limit {name}: {value!r}") from None
    return text


def limit_argv(overrides: Mapping[str, str]) -> list[str]:
    out: list[str] = []
    for name, value in overrides.items():
        out += ["-limit", name, value]
    return out


def limit_params_text(overrides: Mapping[str, str]) -> str:
    return " ".join(f"-limit {name} {format_token(value)}" for name, value in overrides.items())


def _check(name: Any) -> str:
    key = str(name).lower()
    if key not in RESOURCES:
        raise UnknownResource(name)
    return key


class LimitState(Enum):
    UNSET = "unset"
    PARTIAL = "partial"
    FULL = "full"


class ResourceLimits:
    """
    Resource limits passed to every engine invocation.

    Two layers: a baseline captured once on first use (what the engine
    reports for itself) and the overrides set by the caller. Only the
    overrides are sent to the engine. All access goes through one lock so
    an instance can be shared between threads.
    """

    def __init__(self, defaults_source: Optional[Callable[[], Mapping[str, Any]]] = None):
        self._defaults_source = defaults_source or environment_limits
        self._defaults: Optional[dict[str, LimitValue]] = None
        self._overrides: dict[str, str] = {}
        self._lock = threading.RLock()

    def defaults(self) -> dict[str, LimitValue]:
        with self._lock:
            cached = self._defaults
        if cached is None:
            # The source may run an engine command; keep the lock free meanwhile.
            reported = dict(self._defaults_source())
            computed = {name: _actual(reported.get(name)) for name in RESOURCES}
            with self._lock:
                if self._defaults is None:
                    self._defaults = computed
                cached = self._defaults
        return dict(cached)

    def set(self, limits: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        merged = dict(limits or {}, **kwargs)
        checked = {}
        for name, value in merged.items():
            key = _check(name)
            checked[key] = _check_value(key, value)
        with self._lock:
            self._overrides.update(checked)

    def current(self, show_actual: bool = False) -> dict[str, LimitValue]:
        effective = self.defaults()
        overrides = self.overrides
        for name, value in overrides.items():
            effective[name] = _actual(value) if show_actual else value
        return effective

    def remove(self, *names: Any) -> None:
        keys = [_check(name) for name in names]
        with self._lock:
            for key in keys:
                self._overrides.pop(key, None)

    def unset_all(self) -> None:
        with self._lock:
            self._overrides.clear()

    @property
    def overrides(self) -> dict[str, str]:
        with self._lock:
            return dict(self._overrides)

    @property
    def state(self) -> LimitState:
        count = len(self.overrides)
        if count == 0:
            return LimitState.UNSET
        if count == len(RESOURCES):
            return LimitState.FULL
        return LimitState.PARTIAL

    def as_argv(self) -> list[str]:
        return limit_argv(self.overrides)

    def as_invocation_params(self) -> str:
        return limit_params_text(self.overrides)
