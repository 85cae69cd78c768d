#!/usr/bin/env python3

import os
import sys

from dotenv import load_dotenv
from loguru import logger

import hfmcmd.cli as cli
from hfmcmd.hfm import Client

# just load our dot files into the environment too
load_dotenv(".env.hfmcmd")

CONFIG_DEFAULT = dict(
    HFMCMD_LOG_LEVEL="INFO",
    HFMCMD_LOG_FILE="",
    HFMCMD_HISTORY="~/.hfmcmd_history",
    HFMCMD_SCOPES=",".join(cli.DEFAULT_SCOPES),
    HFMCMD_CLUSTER="local",
)


def load_config(environ=None) -> dict[str, str]:
    """Defaults overridden by anything present in the environment."""
    return {**CONFIG_DEFAULT, **(os.environ if environ is None else environ)}


def build_app(argv: list[str], config: dict[str, str]) -> tuple[cli.HfmCmdlineApp, list[str]]:
    """Create the app from config; a leading --debug flag forces DEBUG logging."""
    level = config["HFMCMD_LOG_LEVEL"]
    if argv and argv[0] == "--debug":
        level = "DEBUG"
        argv = argv[1:]

    app = cli.HfmCmdlineApp(
        scopes=[s.strip() for s in config["HFMCMD_SCOPES"].split(",") if s.strip()],
        level=level,
        logfile=config["HFMCMD_LOG_FILE"] or None,
        history=config["HFMCMD_HISTORY"],
        seeds=[Client(config["HFMCMD_CLUSTER"])],
    )

    return app, argv


def runit():
    """Entry point for hfmcmd script and __main__ for entire package."""
    app, argv = build_app(sys.argv[1:], load_config())

    try:
        app.setup()
        status = app.runall(argv)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        status = 130
    except Exception:
        # discovery failures (conflicting or malformed commands) end up here
        logger.exception("Startup failed")
        status = 2

    sys.exit(status)


if __name__ == "__main__":
    runit()
