"""Splitting of command lines into arguments and redirections."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

_SEPARATORS = frozenset(" \t")
_INPUT_OPERATOR = "<"
_OUTPUT_OPERATOR = ">"


class RedirectionError(ValueError):
    """Raised when a redirection operator has no file name after it."""


@dataclass(frozen=True)
class CommandLine:
    """The arguments of one command line and whether it runs in background."""

    args: tuple[str, ...]
    background: bool = False


@dataclass(frozen=True)
class Redirections:
    """Arguments left after taking out the input and output redirections."""

    args: tuple[str, ...]
    file_in: str | None = None
    file_out: str | None = None


def parse_command(line: str) -> CommandLine:
    """Split a command line into whitespace separated arguments.

    A ``#`` starts a comment unless it follows a backslash, in which case the
    backslash is dropped and the ``#`` is kept. A newline ends the line. An
    ``&`` marks the command as a background job and ends the line as well.
    """
    args: list[str] = []
    token: list[str] | None = None
    background = False
    previous = ""

    for char in line:
        if char in _SEPARATORS:
            if token is not None:
                args.append("".join(token))
                token = None
        elif char == "#" and previous == "\\":
            if token is None:
                token = ["#"]
            else:
                token[-1] = "#"
        elif char in "#\n":
            break
        elif char == "&":
            background = True
            break
        elif token is None:
            token = [char]
        else:
            token.append(char)
        previous = char

    if token is not None:
        args.append("".join(token))
    return CommandLine(tuple(args), background)


def parse_redirections(args: Iterable[str]) -> Redirections:
    """Take ``<`` and ``>`` operators and their file names out of ``args``.

    Operators must stand as arguments of their own. When an operator occurs
    more than once, the last file name wins.
    """
    remaining: list[str] = []
    file_in: str | None = None
    file_out: str | None = None

    tokens = iter(args)
    for token in tokens:
        if token not in (_INPUT_OPERATOR, _OUTPUT_OPERATOR):
            remaining.append(token)
            continue
        try:
            target = next(tokens)
        except StopIteration:
            raise RedirectionError("syntax error in redirection") from None
        if token == _INPUT_OPERATOR:
            file_in = target
        else:
            file_out = target

    return Redirections(tuple(remaining), file_in, file_out)