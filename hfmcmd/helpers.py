"""Small helpers shared between the dispatcher and the cli"""

import enum
import pathlib
from collections.abc import Iterator, Mapping
from typing import Any

import prettyprinter

REDACTED = "******"


def redact(cmd, args: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of `args` with the values of sensitive parameters masked."""
    out = {}
    for key, value in args.items():
        param = cmd.parameter(key)
        out[key] = REDACTED if param is not None and param.sensitive else value

    return out


def script_lines(path: str | pathlib.Path) -> Iterator[tuple[int, str]]:
    """Yield (line number, text) for each command in a command script.

    Blank lines and lines starting with '#' are skipped."""
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if line and not line.startswith("#"):
                yield lineno, line


def render(result) -> str | None:
    """Printable form of a command result (None when nothing to show)."""
    if result is None:
        return None

    if isinstance(result, enum.Enum):
        return result.name

    if isinstance(result, str):
        return result

    if isinstance(result, (Mapping, list, tuple, set, int, float)):
        return prettyprinter.pformat(result)

    # live objects (sessions, clients, ...) are context, not output
    return None
