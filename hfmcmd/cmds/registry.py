"""Case-insensitive table of discovered commands."""

import difflib
from collections.abc import Iterator

from loguru import logger

from hfmcmd.cmds.base import Command
from hfmcmd.errors import CommandNotFound, RegistrationConflict


class Registry:
    """Commands keyed by name, compared case-insensitively.

    Built incrementally by one or more discovery passes, then only read.
    Canonical names and aliases share one namespace; registering any name
    twice is an error, never an overwrite."""

    def __init__(self):
        # casefolded name -> command
        self._commands: dict[str, Command] = {}

        # distinct commands, in registration order
        self._ordered: list[Command] = []

    @staticmethod
    def _key(name: str) -> str:
        return name.casefold()

    def register(self, cmd: Command) -> None:
        # check every name first so a conflict leaves the table untouched
        seen: dict[str, Command] = {}
        for name in cmd.names:
            key = self._key(name)
            existing = self._commands.get(key) or seen.get(key)
            if existing:
                raise RegistrationConflict(name, existing, cmd)

            seen[key] = cmd

        self._commands.update(seen)
        self._ordered.append(cmd)
        logger.debug("Registered command {} ({})", cmd.name, cmd.qualname)

    def discover(self, scope) -> "Registry":
        """Register every command found under `scope` into this registry."""
        from hfmcmd.cmds import discover

        return discover(scope, self)

    def lookup(self, name: str) -> Command:
        try:
            return self._commands[self._key(name)]
        except KeyError:
            raise CommandNotFound(name, self.suggest(name)) from None

    def contains(self, name: str) -> bool:
        return self._key(name) in self._commands

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __getitem__(self, name: str) -> Command:
        return self.lookup(name)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def names(self) -> list[str]:
        """Every registered name (canonical and alias) as declared."""
        return [name for cmd in self._ordered for name in cmd.names]

    def suggest(self, name: str, n: int = 3) -> list[str]:
        """Close matches for a mistyped command name."""
        found = difflib.get_close_matches(
            self._key(name), list(self._commands), n=n, cutoff=0.6
        )
        return list(dict.fromkeys(self._commands[key].name for key in found))
