"""Error types raised by the command system.

Every failure surfaces to the immediate caller of register/lookup/invoke.
Failures raised by a command's own implementation are never wrapped.
"""


class HfmCmdError(Exception):
    """Base class for all command framework errors."""


class ConfigurationError(HfmCmdError):
    """A tagged method or one of its parameter markers is malformed."""


class RegistrationConflict(HfmCmdError):
    """Two commands resolve to the same (case-insensitive) name."""

    def __init__(self, name: str, existing, command):
        self.name = name
        self.existing = existing
        self.command = command
        super().__init__(
            f"Duplicate command name '{name}': "
            f"{existing.qualname} and {command.qualname}"
        )


class CommandNotFound(HfmCmdError):
    def __init__(self, name: str, suggestions: list[str] | None = None):
        self.name = name
        self.suggestions = suggestions or []
        msg = f"No command named '{name}'"
        if self.suggestions:
            msg += f" (did you mean: {', '.join(self.suggestions)}?)"

        super().__init__(msg)


class MissingArgument(HfmCmdError):
    """A required parameter was not supplied and has no default."""

    def __init__(self, parameter: str, command: str):
        self.parameter = parameter
        self.command = command
        super().__init__(
            f"No value was specified for required argument '{parameter}' "
            f"to command '{command}'"
        )


class MissingContext(HfmCmdError):
    """The command's owning scope has no live instance in the context.

    Usually means a command ran before the command that produces its target
    (e.g. a session command before `login`)."""

    def __init__(self, scope: type, command: str):
        self.scope = scope
        self.command = command
        super().__init__(
            f"Command '{command}' requires a {scope.__name__} in the current "
            f"context, but none has been set"
        )


class UsageError(HfmCmdError):
    """A command line could not be turned into a command and arguments."""
