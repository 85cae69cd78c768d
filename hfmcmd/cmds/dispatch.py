"""Command dispatcher for routing command lines to their handlers."""

import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger

from hfmcmd.cmds.base import Command
from hfmcmd.cmds.context import Context
from hfmcmd.errors import UsageError
from hfmcmd.helpers import redact


def _is_flag(param) -> bool:
    return param is not None and (
        param.type_name == "bool" or isinstance(param.default, bool)
    )


@dataclass
class Dispatch:
    """Turns `name key=value ...` lines into Context.invoke() calls.

    Accepted argument forms:
        key=value  --key=value  --key value  --flag
    Bare tokens fill the parameters not given by name, in declared order.
    Dashes in keys become underscores (`--user-name` sets `user_name`).
    """

    context: Context

    @property
    def registry(self):
        return self.context.registry

    def parse(self, line: str | Sequence[str]) -> tuple[Command, dict[str, Any]]:
        tokens = shlex.split(line, comments=True) if isinstance(line, str) else list(line)
        if not tokens:
            raise UsageError("No command given")

        name, *rest = tokens
        cmd = self.registry.lookup(name)

        args: dict[str, Any] = {}
        bare: list[str] = []

        i = 0
        while i < len(rest):
            token = rest[i]
            i += 1

            if token.startswith("--"):
                key, sep, value = token[2:].partition("=")
                key = key.replace("-", "_")
                if not key.isidentifier():
                    raise UsageError(f"Invalid option '{token}' for command '{cmd.name}'")

                if sep:
                    args[key] = value
                elif (
                    i < len(rest)
                    and not rest[i].startswith("--")
                    and not _is_flag(cmd.parameter(key))
                ):
                    args[key] = rest[i]
                    i += 1
                else:
                    args[key] = True

                continue

            key, sep, value = token.partition("=")
            key = key.replace("-", "_")
            if sep and key.isidentifier():
                args[key] = value
            else:
                bare.append(token)

        if bare:
            free = [p.name for p in cmd.parameters if p.name not in args]
            if len(bare) > len(free):
                raise UsageError(
                    f"Too many arguments for command '{cmd.name}': "
                    f"{len(bare)} given, {len(free)} unfilled parameter(s) "
                    f"(usage: {cmd.usage()})"
                )

            args.update(zip(free, bare))

        return cmd, args

    def runop(self, line: str | Sequence[str]):
        """Parse `line` and invoke the command it names."""
        cmd, args = self.parse(line)
        logger.trace("Running {} {}", cmd.name, redact(cmd, args))
        return self.context.invoke(cmd.name, args)
