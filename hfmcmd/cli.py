"""Command-line application: logging, built-in commands, the REPL and scripts."""

import fnmatch
import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, ThreadedHistory

from hfmcmd.cmds import Arg, Context, Dispatch, Registry, command, find_commands
from hfmcmd.errors import HfmCmdError
from hfmcmd.helpers import render, script_lines

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> {message}"

DEFAULT_SCOPES = ("hfmcmd.cli", "hfmcmd.hfm")


@dataclass
class HfmCmdlineApp:
    # packages/modules to discover commands in, in order
    scopes: Sequence[str] = DEFAULT_SCOPES

    # console log level
    level: str = "INFO"

    # optional log file capturing everything (TRACE)
    logfile: str | None = None

    # REPL history file
    history: str = "~/.hfmcmd_history"

    # initial context objects besides the app itself (e.g. a server Client)
    seeds: list = field(default_factory=list)

    exiting: bool = False

    registry: Registry = field(init=False)
    context: Context = field(init=False)
    dispatch: Dispatch = field(init=False)

    _console: int | None = field(default=None, init=False, repr=False)
    _files: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def setup(self, configure_logging: bool = True) -> None:
        if configure_logging:
            self.configure_logging()

        self.registry = find_commands(*self.scopes)
        logger.debug("Registered {} commands", len(self.registry))

        self.context = Context(self.registry)
        self.context.set(self)
        for seed in self.seeds:
            self.context.set(seed)

        self.dispatch = Dispatch(self.context)

    def configure_logging(self) -> None:
        logger.remove()
        self._console = logger.add(sys.stderr, level=self.level.upper(), format=LOG_FORMAT)

        if self.logfile:
            self.add_logfile(self.logfile)

    def add_logfile(self, path: str) -> None:
        if path in self._files:
            return

        self._files[path] = logger.add(
            sink=path, level="TRACE", format=LOG_FORMAT, colorize=False
        )
        logger.info("Logging to {}", path)

    @command(
        desc="Sets the console log level and optionally adds a log file",
        args=[
            Arg("level", default="INFO", desc="TRACE, DEBUG, INFO, WARNING or ERROR"),
            Arg("logfile", default=None, desc="Path of a file to also log to"),
        ],
    )
    def log(self, level: str, logfile: str) -> None:
        level = level.upper()

        # raises ValueError for unknown level names
        logger.level(level)

        if self._console is not None:
            logger.remove(self._console)

        self._console = logger.add(sys.stderr, level=level, format=LOG_FORMAT)
        self.level = level

        if logfile:
            self.add_logfile(logfile)

    @command(
        names=["commands", "ls"],
        desc="Lists available commands",
        args=[Arg("pattern", default=None, desc="Only list names matching this glob")],
    )
    def commands(self, pattern: str) -> dict[str, str]:
        found = {}
        for cmd in self.registry:
            if pattern and not fnmatch.fnmatch(cmd.name.casefold(), pattern.casefold()):
                continue

            found[cmd.usage()] = cmd.desc

        return found

    @command(desc="Describes a command and its parameters")
    def help(self, name: str) -> str:
        cmd = self.registry.lookup(name)

        lines = [cmd.usage()]
        if cmd.aliases:
            lines.append(f"  aliases: {', '.join(cmd.aliases)}")

        if cmd.desc:
            lines.append(f"  {cmd.desc}")

        lines.append(f"  runs on: {cmd.scope.__name__}")
        for p in cmd.parameters:
            flags = []
            if p.has_default:
                flags.append(f"default {p.default!r}")
            if p.sensitive:
                flags.append("sensitive")

            extra = f" [{', '.join(flags)}]" if flags else ""
            lines.append(f"    {p}{extra} {p.desc}".rstrip())

        return "\n".join(lines)

    @command(desc="Runs the commands in a command file, one per line")
    def run(self, path: str) -> None:
        for lineno, line in script_lines(path):
            try:
                self.execute(line)
            except Exception:
                logger.error("[{}:{}] Command failed, stopping", path, lineno)
                raise

            if self.exiting:
                break

    @command(names=["quit", "exit"], desc="Leaves the command prompt")
    def quit(self) -> None:
        self.exiting = True

    def execute(self, line: str | Sequence[str]):
        """Run one command line and print its result, if any."""
        result = self.dispatch.runop(line)

        if (shown := render(result)) is not None:
            print(shown)

        return result

    def dorepl(self) -> None:
        session: PromptSession = PromptSession(
            history=ThreadedHistory(FileHistory(os.path.expanduser(self.history))),
            auto_suggest=AutoSuggestFromHistory(),
            completer=WordCompleter(self.registry.names(), ignore_case=True),
        )

        while not self.exiting:
            try:
                text = session.prompt("hfmcmd> ", enable_history_search=True)
            except KeyboardInterrupt:
                # Control-C pressed. Try again.
                continue
            except EOFError:
                # Control-D pressed
                break

            if not text.strip():
                continue

            # input is echoed (redacted) at TRACE by the dispatcher once parsed
            try:
                self.execute(text)
            except HfmCmdError as e:
                logger.error("{}", e)
            except Exception:
                logger.exception("Command failed: {}", text.split()[0])

    def runall(self, argv: Sequence[str]) -> int:
        """Run a command, a command file, or the REPL. Returns an exit status."""
        try:
            if not argv:
                if not sys.stdin.isatty():
                    logger.error("Attached input isn't a console, so we can't do anything!")
                    return 1

                self.dorepl()
            elif self.registry.contains(argv[0]):
                self.execute(argv)
            elif os.path.isfile(argv[0]):
                self.context.invoke("run", {"path": argv[0]})
            else:
                logger.error("Command file '{}' not found", argv[0])
                return 1
        except HfmCmdError as e:
            logger.error("{}", e)
            return 1
        except Exception:
            logger.exception("Command failed")
            return 1

        return 0
