"""Session state and the invocation engine.

A Context is like a session object: it holds one live instance per scope
(class), and a command is executed on the instance of its owning class that
is currently in the context. Whatever a command returns replaces the
instance of that type, which is how e.g. `login` makes its Session the
target of every later session command.
"""

from typing import Any, Mapping

from loguru import logger

from hfmcmd.cmds.base import Command
from hfmcmd.cmds.registry import Registry
from hfmcmd.errors import MissingArgument, MissingContext
from hfmcmd.helpers import REDACTED


class Context:
    def __init__(self, registry: Registry):
        self.registry = registry

        # exact runtime type -> most recent instance of that type
        self._instances: dict[type, Any] = {}

    def set(self, instance) -> None:
        """Make `instance` the live object for its type. None is ignored."""
        if instance is None:
            return

        self._instances[type(instance)] = instance

    def get(self, scope: type):
        return self._instances.get(scope)

    def __contains__(self, scope) -> bool:
        return scope in self._instances

    def scopes(self) -> list[type]:
        return list(self._instances)

    def resolve(
        self, cmd: Command, args: Mapping[str, Any]
    ) -> tuple[list[Any], dict[str, Any]]:
        """Bind `args` to the parameters of `cmd` in declaration order.

        Returns the positional and keyword arguments for the call."""
        positional = []
        keywords = {}
        for param in cmd.parameters:
            if param.name in args:
                value = args[param.name]
            elif param.has_default:
                logger.debug(
                    "No value supplied for argument {}; using default value", param.name
                )
                value = param.default
            else:
                raise MissingArgument(param.name, cmd.name)

            logger.debug(
                "Setting parameter {} = {!r}",
                param.name,
                REDACTED if param.sensitive else value,
            )

            if param.keyword_only:
                keywords[param.name] = value
            else:
                positional.append(value)

        unused = args.keys() - {p.name for p in cmd.parameters}
        if unused:
            logger.debug("[{}] Ignoring unrecognized arguments: {}", cmd.name, sorted(unused))

        return positional, keywords

    def invoke(self, name: str, args: Mapping[str, Any] | None = None):
        """Invoke the named command using `args` to obtain parameter values.

        A non-None result is stored back into the context and returned."""
        cmd = self.registry.lookup(name)

        target = self._instances.get(cmd.scope)
        if target is None:
            raise MissingContext(cmd.scope, cmd.name)

        positional, keywords = self.resolve(cmd, args or {})

        logger.debug("Invoking {}", cmd.qualname)
        result = cmd.function(target, *positional, **keywords)

        self.set(result)
        return result
