from __future__ import annotations

import re
from typing import Any, Optional

from magickcmd.command.builder import ArgumentBuilder
from magickcmd.core.errors import IndeterminateSize
from magickcmd.core.models import ImageDimensions
from magickcmd.engine.invoker import Invoker, default_invoker

SIZE_FORMAT = "w:%w h:%h"

_WIDTH = re.compile(r"w:([0-9]+) ")
_HEIGHT = re.compile(r"h:([0-9]+)")


def parse_dimensions(output: Optional[str], source: Any) -> ImageDimensions:
    """
    Parse ``w:<int> h:<int>`` probe output.

    No output at all means the size is unknown; output without both numbers
    raises IndeterminateSize.
    """
    if not output or not output.strip():
        return ImageDimensions.unknown()
    width = _WIDTH.search(output)
    height = _HEIGHT.search(output)
    if not width or not height:
        raise IndeterminateSize(source, output)
    return ImageDimensions(width=int(width.group(1)), height=int(height.group(1)))


def get_image_size(source: Any, invoker: Optional[Invoker] = None) -> ImageDimensions:
    """Read-only probe of an image's width and height."""
    builder = ArgumentBuilder().flag("format", SIZE_FORMAT).add_file(source)
    output = (invoker or default_invoker()).run("identify", builder)
    return parse_dimensions(output, source)


probe = get_image_size
