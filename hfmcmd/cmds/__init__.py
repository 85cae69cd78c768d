"""Command system with discovery and registration.

This module provides:
- discover(): scans a scope for tagged methods and registers them
- find_commands(): builds one Registry across several scopes
- Registry / Context / Dispatch: the command table, the session state and
  invocation engine, and the text-line dispatcher

A scope is an importable module or package (by name or as a module object),
or a single class. Packages are walked recursively; submodules whose name
starts with `_` are skipped. Within a module only classes defined there
(not imported into it) are scanned, so a scope never picks up another
scope's commands by way of an import.
"""

import importlib
import inspect
import pkgutil
from collections.abc import Iterator
from types import ModuleType

from loguru import logger

from hfmcmd.errors import ConfigurationError

from .base import Arg, Command, Parameter, command, declaration, describe
from .registry import Registry
from .context import Context
from .dispatch import Dispatch

__all__ = [
    "Arg",
    "Command",
    "Context",
    "Dispatch",
    "Parameter",
    "Registry",
    "command",
    "describe",
    "discover",
    "find_commands",
]


def _modules(module: ModuleType) -> Iterator[ModuleType]:
    yield module

    # plain modules have no __path__ and nothing further to walk
    if not hasattr(module, "__path__"):
        return

    for info in pkgutil.walk_packages(module.__path__, prefix=module.__name__ + "."):
        relative = info.name[len(module.__name__) + 1 :]
        if any(part.startswith("_") for part in relative.split(".")):
            continue

        yield importlib.import_module(info.name)


def _classes(module: ModuleType) -> Iterator[type]:
    # vars() keeps definition order
    for obj in list(vars(module).values()):
        if inspect.isclass(obj) and obj.__module__ == module.__name__:
            yield obj


def scan(cls: type) -> Iterator[Command]:
    """Yield a descriptor for each tagged method of `cls`, in declaration order."""
    for name, attr in vars(cls).items():
        tagged = declaration(attr) or declaration(getattr(attr, "__func__", None))
        if not tagged:
            continue

        # commands run on the live instance, so only plain methods qualify
        if not inspect.isfunction(attr):
            raise ConfigurationError(
                f"Command {cls.__qualname__}.{name} must be a plain method, "
                f"not {type(attr).__name__}"
            )

        cmd = describe(cls, attr)
        logger.debug("Found command {}", cmd.name)
        for param in cmd.parameters:
            logger.debug("Found parameter {}", param)

        yield cmd


def discover(scope: str | ModuleType | type, registry: Registry | None = None) -> Registry:
    """Register all commands found under `scope`.

    Returns `registry` (or a new Registry when none is given) so successive
    calls accumulate commands from several scopes into one table."""
    if registry is None:
        registry = Registry()

    if isinstance(scope, type):
        logger.debug("Searching for commands on {}...", scope.__qualname__)
        for cmd in scan(scope):
            registry.register(cmd)

        return registry

    module = importlib.import_module(scope) if isinstance(scope, str) else scope
    logger.debug("Searching for commands under '{}'...", module.__name__)
    for mod in _modules(module):
        for cls in _classes(mod):
            for cmd in scan(cls):
                registry.register(cmd)

    return registry


def find_commands(*scopes) -> Registry:
    """Build one Registry from several scopes, in the order given."""
    registry = Registry()
    for scope in scopes:
        discover(scope, registry)

    return registry
