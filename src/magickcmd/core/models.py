from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

Number = Union[int, float]

# The resource names ImageMagick accepts after ``-limit``.
RESOURCES = ("area", "map", "disk", "memory", "file")


class Sign(Enum):
    """Prefix of a command-line flag: ``-resize`` vs ``+repage``."""
    MINUS = "-"
    PLUS = "+"


@dataclass(frozen=True)
class ScaleOptions:
    """
    Parameters that control a resize.

    width / height:
        Bounding box in pixels. Both must be given to select box mode.
    percent:
        Scale factor in percent, used when no full box is given.
    quality:
        Output quality 0-100. Defaults to 100 in percent mode.
    shrink_only:
        Only ever make the image smaller (geometry flag ``>``).
    expand_only:
        Only ever make the image larger (geometry flag ``<``).
    absolute_aspect:
        Force the exact box, ignoring aspect ratio (geometry flag ``!``).
    """
    width: Optional[Number] = None
    height: Optional[Number] = None
    percent: Optional[Number] = None
    quality: Optional[Number] = None
    shrink_only: bool = False
    expand_only: bool = False
    absolute_aspect: bool = False

    @property
    def has_box(self) -> bool:
        return self.width is not None and self.height is not None

    @property
    def geometry_suffix(self) -> str:
        suffix = ""
        if self.shrink_only:
            suffix += ">"
        if self.expand_only:
            suffix += "<"
        if self.absolute_aspect:
            suffix += "!"
        return suffix


@dataclass(frozen=True)
class ImageDimensions:
    """Width/height reported by the engine; both unset means unknown."""
    width: Optional[int] = None
    height: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.width is None) != (self.height is None):
            raise ValueError("width and height must both be set or both be unknown")
        if self.width is not None and (self.width < 0 or self.height < 0):
            raise ValueError(f"negative dimensions: {self.width}x{self.height}")

    @staticmethod
    def unknown() -> "ImageDimensions":
        return ImageDimensions()

    @property
    def known(self) -> bool:
        return self.width is not None

    def as_dict(self) -> dict[str, int]:
        if not self.known:
            return {}
        return {"width": self.width, "height": self.height}
