#!/usr/bin/env python3
"""
magickcmd command line.

Usage:
  magickcmd resize in.jpg out.jpg --width 100 --height 100
  magickcmd shrink in.jpg out.jpg --width 800 --height 600
  magickcmd resize in.jpg out.jpg --percent 50 --quality 85
  magickcmd size in.jpg
  magickcmd --limit memory=64mb --limit disk=0b resize in.jpg out.jpg --percent 25
  magickcmd limits --actual

Environment (a .env file in the working directory is honoured):
  MAGICKCMD_BINARY   program in front of engine commands (e.g. magick)
  MAGICKCMD_TIMEOUT  default deadline per command, in seconds
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Optional

from dotenv import load_dotenv

from magickcmd.core.errors import MagickError
from magickcmd.core.models import ScaleOptions
from magickcmd.engine.config import EngineConfig
from magickcmd.engine.invoker import Invoker
from magickcmd.ops import resize as resize_ops
from magickcmd.ops.commands import mime_type
from magickcmd.ops.probe import get_image_size


def _parse_limit(text: str) -> tuple[str, str]:
    name, sep, value = text.partition("=")
    if not sep or not name.strip() or not value.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
    return name.strip(), value.strip()


def _add_scale_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("source", help="Path to input image")
    p.add_argument("dest", help="Path to output image (may equal source)")
    p.add_argument("--width", type=int, help="Bounding box width in pixels")
    p.add_argument("--height", type=int, help="Bounding box height in pixels")
    p.add_argument("--percent", type=float, help="Scale by percent (instead of a box)")
    p.add_argument("--quality", type=int, help="Output quality 0-100 (default 100 with --percent)")
    p.add_argument("--shrink-only", action="store_true", help="Never enlarge")
    p.add_argument("--expand-only", action="store_true", help="Never reduce")
    p.add_argument("--absolute-aspect", action="store_true", help="Ignore aspect ratio, force the exact box")


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="magickcmd", description="Resize and probe images through ImageMagick.")
    p.add_argument("--limit", action="append", type=_parse_limit, default=[], metavar="KEY=VALUE",
                   help="Resource limit override (area, map, disk, memory, file); repeatable")
    p.add_argument("--timeout", type=float, help="Deadline per engine command, in seconds")
    p.add_argument("--verbose", "-v", action="store_true", help="Log every engine command")

    sub = p.add_subparsers(dest="command", required=True)
    for name in ("resize", "shrink", "expand"):
        _add_scale_args(sub.add_parser(name, help=f"{name.capitalize()} an image"))

    size = sub.add_parser("size", help="Print width and height of an image")
    size.add_argument("source")

    mime = sub.add_parser("mime", help="Print the MIME type of a file")
    mime.add_argument("source")

    limits = sub.add_parser("limits", help="Print effective resource limits as JSON")
    limits.add_argument("--actual", action="store_true", help="Convert symbolic values to absolute counts")
    limits.add_argument("--defaults", action="store_true", help="Print the engine baseline instead")
    return p


def _run(args: argparse.Namespace, invoker: Invoker) -> str:
    if args.command in ("resize", "shrink", "expand"):
        options = ScaleOptions(
            width=args.width,
            height=args.height,
            percent=args.percent,
            quality=args.quality,
            shrink_only=args.shrink_only,
            expand_only=args.expand_only,
            absolute_aspect=args.absolute_aspect,
        )
        op = getattr(resize_ops, args.command)
        dest = op(args.source, args.dest, options, invoker=invoker)
        return f"Saved: {dest}"
    if args.command == "size":
        dims = get_image_size(args.source, invoker=invoker)
        return f"{dims.width}x{dims.height}" if dims.known else "unknown"
    if args.command == "mime":
        return mime_type(args.source, invoker=invoker)
    if args.defaults:
        return json.dumps(invoker.limits.defaults(), indent=2)
    return json.dumps(invoker.limits.current(show_actual=args.actual), indent=2)


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s: %(message)s",
    )

    try:
        config = EngineConfig.from_env()
        if args.timeout is not None:
            config = replace(config, timeout=args.timeout)
        invoker = Invoker(config)
        invoker.limits.set(dict(args.limit))
        print(_run(args, invoker))
    except (MagickError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
