"""Command tagging and descriptor model.

This module provides:
- @command: marks a method as a discoverable command
- Arg: attaches a default, sensitivity marker or help text to one parameter
- Parameter / Command: immutable descriptors built at discovery time

Tagging only records a declaration on the function. Nothing is registered at
import time; the discovery pass (see hfmcmd.cmds.discover) turns declarations
into descriptors with describe(), which is also where malformed declarations
are reported.

Example:
    class Client:
        @command(args=[Arg("password", sensitive=True)])
        def login(self, user_name: str, password: str, domain: str = None):
            ...
"""

import inspect
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from hfmcmd.errors import ConfigurationError


class _Unset:
    """Marker for 'no default supplied' (None is a legitimate default)."""

    def __repr__(self):
        return "<unset>"


UNSET: Any = _Unset()

# attribute holding the declaration on a tagged function
COMMAND_ATTR = "__hfmcmd_command__"


@dataclass(frozen=True, slots=True)
class Arg:
    """Per-parameter metadata for a tagged method."""

    name: str
    default: Any = UNSET
    sensitive: bool = False
    desc: str = ""


@dataclass(frozen=True, slots=True)
class Declaration:
    names: tuple[str, ...]
    desc: str | None
    args: tuple[Arg, ...]


def command(
    *names: str | Callable,
    desc: str | None = None,
    args: Sequence[Arg] = (),
    **kwargs,
):
    """Decorator marking a method as a command.

    Usable bare (`@command`) or with names (`@command("ls", "list")`,
    `@command(names=["ls", "list"])`). When names are given, the first one
    replaces the method name as the command's canonical name and the rest
    become aliases.

    Args:
        names: Command name(s)
        desc: Help text (defaults to the first line of the docstring)
        args: Arg markers for individual parameters
    """
    if len(names) == 1 and callable(names[0]):
        # bare @command
        return command()(names[0])

    if "names" in kwargs:
        extra = kwargs.pop("names")
        names += (extra,) if isinstance(extra, str) else tuple(extra)

    if kwargs:
        raise TypeError(f"command() got unexpected arguments: {sorted(kwargs)}")

    def decorator(fn):
        if hasattr(fn, COMMAND_ATTR):
            raise ConfigurationError(
                f"Method {fn.__qualname__} is tagged as a command more than once"
            )

        setattr(fn, COMMAND_ATTR, Declaration(tuple(names), desc, tuple(args)))
        return fn

    return decorator


def declaration(fn) -> Declaration | None:
    """Return the command declaration attached to `fn`, if any."""
    return getattr(fn, COMMAND_ATTR, None)


@dataclass(frozen=True, slots=True)
class Parameter:
    """One formal parameter of a command."""

    name: str
    type_name: str = "any"
    sensitive: bool = False
    has_default: bool = False
    default: Any = None
    desc: str = ""
    keyword_only: bool = False

    def __str__(self):
        return f"{self.name} ({self.type_name})"


@dataclass(frozen=True, slots=True)
class Command:
    """A method that can be invoked by name from the command line or a script."""

    name: str
    scope: type
    function: Callable = field(repr=False, compare=False)
    parameters: tuple[Parameter, ...] = ()
    aliases: tuple[str, ...] = ()
    desc: str = ""

    @property
    def names(self) -> Iterator[str]:
        yield self.name
        yield from self.aliases

    @property
    def category(self) -> str:
        """Module the owning scope was discovered in."""
        return self.scope.__module__

    @property
    def qualname(self) -> str:
        return f"{self.scope.__qualname__}.{self.function.__name__}"

    def parameter(self, name: str) -> Parameter | None:
        for p in self.parameters:
            if p.name == name:
                return p

        return None

    def usage(self) -> str:
        """One-line usage summary, e.g. `login user_name=<str> [domain=None]`."""
        parts = [self.name]
        for p in self.parameters:
            if p.has_default:
                parts.append(f"[{p.name}={p.default!r}]")
            else:
                parts.append(f"{p.name}=<{p.type_name}>")

        return " ".join(parts)


def _type_name(annotation) -> str:
    if annotation is inspect.Parameter.empty:
        return "any"

    if isinstance(annotation, str):
        return annotation

    return getattr(annotation, "__name__", None) or str(annotation)


def _signature(fn) -> inspect.Signature:
    try:
        return inspect.signature(fn, eval_str=True)
    except NameError:
        # unresolvable forward reference; fall back to the raw strings
        return inspect.signature(fn)


def describe(scope: type, fn: Callable) -> Command:
    """Build the Command descriptor for tagged method `fn` of class `scope`.

    Produces one Parameter per formal parameter after `self`, in signature
    order. Raises ConfigurationError for malformed declarations."""
    decl = declaration(fn)
    if decl is None:
        raise ConfigurationError(f"{fn.__qualname__} is not tagged as a command")

    names = decl.names or (fn.__name__,)
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(
                f"Command {fn.__qualname__} has an invalid name: {name!r}"
            )

    markers: dict[str, Arg] = {}
    for arg in decl.args:
        if arg.name in markers:
            raise ConfigurationError(
                f"Command {names[0]!r} declares parameter {arg.name!r} more than once"
            )

        markers[arg.name] = arg

    # drop 'self'
    formals = list(_signature(fn).parameters.values())[1:]

    unknown = markers.keys() - {p.name for p in formals}
    if unknown:
        raise ConfigurationError(
            f"Command {names[0]!r} declares unknown parameter(s): {sorted(unknown)}"
        )

    params = []
    for formal in formals:
        if formal.kind in (formal.VAR_POSITIONAL, formal.VAR_KEYWORD):
            raise ConfigurationError(
                f"Command {names[0]!r} parameter {formal.name!r}: "
                "variadic parameters cannot be bound by name"
            )

        marker = markers.get(formal.name, Arg(formal.name))
        has_signature_default = formal.default is not formal.empty
        has_marker_default = marker.default is not UNSET

        if has_signature_default and has_marker_default:
            raise ConfigurationError(
                f"Command {names[0]!r} parameter {formal.name!r} has a default "
                "in both its signature and its Arg marker"
            )

        if has_signature_default:
            default = formal.default
        elif has_marker_default:
            default = marker.default
        else:
            default = None

        params.append(
            Parameter(
                name=formal.name,
                type_name=_type_name(formal.annotation),
                sensitive=marker.sensitive,
                has_default=has_signature_default or has_marker_default,
                default=default,
                desc=marker.desc,
                keyword_only=formal.kind is formal.KEYWORD_ONLY,
            )
        )

    desc = decl.desc
    if desc is None:
        doc = inspect.getdoc(fn) or ""
        desc = doc.splitlines()[0] if doc else ""

    return Command(
        name=names[0],
        scope=scope,
        function=fn,
        parameters=tuple(params),
        aliases=names[1:],
        desc=desc,
    )
