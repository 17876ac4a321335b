from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from magickcmd.app.temp_paths import TempBlobs
from magickcmd.command.quoting import format_token, split_tokens
from magickcmd.core.models import Sign


@dataclass(frozen=True)
class Token:
    """
    One command-line unit.

    Formatted tokens are quoted on render and passed to the engine as a single
    argument. Raw tokens are trusted fragments: rendered verbatim and split
    into arguments the way split_tokens reads rendered text.
    """
    value: str
    formatted: bool = True

    def render(self) -> str:
        return format_token(self.value) if self.formatted else self.value

    def argv(self) -> list[str]:
        if self.formatted:
            return [self.value]
        return split_tokens(self.value)


class ArgumentBuilder:
    """
    Accumulates engine arguments in call order.

        b = ArgumentBuilder()
        b.add_file("in.jpg").flag("crop", "250x250+0+0").plus("repage")
        b.flag("set", "comment", "my favorite file").add_file("out.jpg")
        b.render()
        # in.jpg -crop 250x250+0+0 +repage -set comment "my favorite file" out.jpg

    Every method returns the builder so calls can be chained.
    """

    def __init__(self, blobs: Optional[TempBlobs] = None):
        self._tokens: list[Token] = []
        self.blobs = blobs if blobs is not None else TempBlobs()

    @property
    def tokens(self) -> tuple[Token, ...]:
        return tuple(self._tokens)

    def append_raw(self, arg: Union[str, Iterable[str]]) -> "ArgumentBuilder":
        """Add option text with no processing."""
        if isinstance(arg, str):
            self._tokens.append(Token(arg, formatted=False))
        else:
            self._tokens.extend(Token(str(a), formatted=False) for a in arg)
        return self

    __lshift__ = append_raw

    def add_file(self, *paths: Any) -> "ArgumentBuilder":
        for path in paths:
            self._tokens.append(Token(str(path)))
        return self

    files = add_file

    def add_blob(self, data: bytes) -> "ArgumentBuilder":
        """Write `data` to a temp file owned by this builder and add its path."""
        return self.add_file(self.blobs.add(data))

    def flag(self, name: str, *args: Any, sign: Sign = Sign.MINUS) -> "ArgumentBuilder":
        self._tokens.append(Token(f"{sign.value}{name}", formatted=False))
        for arg in args:
            self._tokens.append(Token(str(arg)))
        return self

    def plus(self, name: str, *args: Any) -> "ArgumentBuilder":
        return self.flag(name, *args, sign=Sign.PLUS)

    def render(self) -> str:
        return " ".join(t.render() for t in self._tokens)

    def argv(self) -> list[str]:
        out: list[str] = []
        for t in self._tokens:
            out.extend(t.argv())
        return out

    def cleanup(self) -> None:
        self.blobs.cleanup()

    def __str__(self) -> str:
        return self.render()

    def __enter__(self) -> "ArgumentBuilder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()
