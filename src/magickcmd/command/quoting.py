from __future__ import annotations

import re
from typing import Any

# Characters that break a token apart (or get interpreted) on *nix or Windows shells.
_UNSAFE = re.compile(r"[<>^|&();`\s]")


def needs_quoting(token: Any) -> bool:
    return _UNSAFE.search(str(token)) is not None


def format_token(token: Any) -> str:
    """
    Double-quote a token that contains shell metacharacters or whitespace,
    escaping embedded double quotes. Anything else is returned unchanged.

    Not idempotent: apply it once per token.
    """
    text = str(token)
    if not needs_quoting(text):
        return text
    return '"' + text.replace('"', '\\"') + '"'


def split_tokens(text: str) -> list[str]:
    """
    Split rendered command text back into tokens, reversing format_token.

    Whitespace separates tokens. A token that starts with a double quote runs
    to the next unescaped double quote, with ``\\"`` standing for ``"``.
    Everything else, apostrophes and backslashes included, is literal.
    """
    tokens: list[str] = []
    i, n = 0, len(text)
    while i < n:
        if text[i].isspace():
            i += 1
            continue
        buf: list[str] = []
        if text[i] == '"':
            i += 1
            while True:
                if i >= n:
                    raise ValueError(f"unterminated double quote in {text!r}")
                if text.startswith('\\"', i):
                    buf.append('"')
                    i += 2
                elif text[i] == '"':
                    i += 1
                    break
                else:
                    buf.append(text[i])
                    i += 1
        while i < n and not text[i].isspace():
            buf.append(text[i])
            i += 1
        tokens.append("".join(buf))
    return tokens
