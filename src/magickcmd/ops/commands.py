from __future__ import annotations

from typing import Any, Callable, Optional

from magickcmd.command.builder import ArgumentBuilder
from magickcmd.engine.invoker import Invoker, default_invoker

Build = Callable[[ArgumentBuilder], Any]

_ENDINGS = {
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/png": "png",
}


def _run_built(command: str, build: Optional[Build], head: Any, tail: Any,
               invoker: Optional[Invoker]) -> str:
    with ArgumentBuilder() as builder:
        if head is not None:
            builder.add_file(head)
        if build is not None:
            build(builder)
        if tail is not None:
            builder.add_file(tail)
        return (invoker or default_invoker()).run(command, builder)


def convert(source: Any = None, dest: Any = None, build: Optional[Build] = None,
            invoker: Optional[Invoker] = None) -> str:
    """
    Run ``convert`` with arguments added by `build`.

        convert("source.jpg", "dest.jpg", lambda c: c.flag("crop", "250x250+0+0").plus("repage"))

    Blob temp files added by `build` are removed once the command finishes,
    whether or not it succeeded.
    """
    return _run_built("convert", build, source, dest, invoker)


def mogrify(dest: Any = None, build: Optional[Build] = None, invoker: Optional[Invoker] = None) -> str:
    """Run ``mogrify`` (in-place edit) with `dest` as the last argument."""
    return _run_built("mogrify", build, None, dest, invoker)


def mime_type(source: Any, invoker: Optional[Invoker] = None) -> str:
    output = (invoker or default_invoker()).run("file", ["--mime-type", "-b", "--", str(source)], limit_params="")
    return output.strip()


def file_ending(source: Any, invoker: Optional[Invoker] = None) -> Optional[str]:
    return _ENDINGS.get(mime_type(source, invoker=invoker))
