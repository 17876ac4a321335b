from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, TypeVar, Union

from magickcmd.command.builder import ArgumentBuilder
from magickcmd.core.errors import UnknownResizeOptions
from magickcmd.core.models import ScaleOptions
from magickcmd.engine.invoker import Invoker, default_invoker

logger = logging.getLogger(__name__)

P = TypeVar("P")
Options = Union[ScaleOptions, Mapping[str, Any], None]


def _num(value: Any) -> str:
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else format(value, "g")
    return str(value)


def _coerce(options: Options, overrides: Mapping[str, Any]) -> ScaleOptions:
    if options is None:
        opts = ScaleOptions()
    elif isinstance(options, ScaleOptions):
        opts = options
    else:
        try:
            opts = ScaleOptions(**options)
        except TypeError as e:
            raise UnknownResizeOptions(options) from e
    try:
        return replace(opts, **overrides) if overrides else opts
    except TypeError as e:
        raise UnknownResizeOptions(overrides) from e


def build_resize_args(source: Any, dest: Any, options: ScaleOptions) -> ArgumentBuilder:
    """
    Arguments for a ``convert`` resize.

    Box mode (width and height) wins over percent mode; percent mode also sets
    the output quality, 100 unless given.
    """
    if options.shrink_only and options.expand_only:
        logger.warning("resize with both shrink_only and expand_only; the engine decides: %r", options)

    suffix = options.geometry_suffix
    builder = ArgumentBuilder().add_file(source)
    if options.has_box:
        if options.quality is not None:
            builder.flag("quality", _num(options.quality))
        builder.flag("resize", f"{_num(options.width)}X{_num(options.height)}{suffix}")
    elif options.percent is not None:
        quality = options.quality if options.quality is not None else 100
        builder.flag("quality", _num(quality))
        builder.flag("resize", f"{_num(options.percent)}%{suffix}")
    else:
        raise UnknownResizeOptions(options)
    return builder.add_file(dest)


def resize(source: Any, dest: P, options: Options = None, invoker: Optional[Invoker] = None, **overrides: Any) -> P:
    """
    Resize `source` into `dest` and return `dest`.

    Options may be a ScaleOptions, a mapping of its fields, or keyword
    arguments, e.g. ``resize("a.jpg", "b.jpg", width=100, height=100)``.
    """
    opts = _coerce(options, overrides)
    builder = build_resize_args(source, dest, opts)
    (invoker or default_invoker()).run("convert", builder)
    return dest


def shrink(source: Any, dest: P, options: Options = None, invoker: Optional[Invoker] = None, **overrides: Any) -> P:
    """Resize, but never enlarge the image."""
    opts = replace(_coerce(options, overrides), expand_only=False, shrink_only=True)
    return resize(source, dest, opts, invoker=invoker)


def expand(source: Any, dest: P, options: Options = None, invoker: Optional[Invoker] = None, **overrides: Any) -> P:
    """Resize, but never reduce the image."""
    opts = replace(_coerce(options, overrides), shrink_only=False, expand_only=True)
    return resize(source, dest, opts, invoker=invoker)
