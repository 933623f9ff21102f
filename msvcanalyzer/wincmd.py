# SPDX-License-Identifier: MIT
"""This module implements cmd escaping/unescaping methods for MSVC.

The compiler receives a single command line string and splits it with the
Microsoft C runtime rules. Backslashes are literal, except when they precede
a double quote. Then each pair of backslashes stands for one backslash, and
an odd one escapes the quote."""

import re

__all__ = ["escape", "encode", "decode"]


def escape(arg: str) -> str:
    """Takes a single argument and returns it quoted.

    The trailing backslashes are doubled, otherwise the last one would
    escape the closing quote."""

    trailing = len(arg) - len(arg.rstrip("\\"))
    return '"' + arg + "\\" * trailing + '"'


def encode(command: list[str]) -> str:
    """Takes a command as list of escaped arguments and returns a string."""

    return " ".join(arg for arg in command if arg)


def decode(string: str) -> list[str]:
    """Takes a command string and returns as a list."""

    result: list[str] = []
    current: list[str] = []
    in_token = False
    in_quotes = False
    # backslashes are only interpreted when the next character is known
    pending = 0
    for backslashes, quote, whitespace, char in re.findall(r'(\\+)|(")|(\s)|(.)', string, re.DOTALL):
        if backslashes:
            in_token = True
            pending += len(backslashes)
        elif quote:
            in_token = True
            current.append("\\" * (pending // 2))
            if pending % 2:
                current.append('"')
            else:
                in_quotes = not in_quotes
            pending = 0
        else:
            current.append("\\" * pending)
            pending = 0
            if whitespace and not in_quotes:
                if in_token:
                    result.append("".join(current))
                current = []
                in_token = False
            else:
                in_token = True
                current.append(whitespace or char)
    current.append("\\" * pending)
    if in_token:
        result.append("".join(current))
    return result
