"""Session: a logged-in connection to a server."""

from loguru import logger

from hfmcmd.cmds import command
from hfmcmd.hfm.processflow import ProcessFlow
from hfmcmd.hfm.server import HfmError, Server


class Session:
    def __init__(self, server: Server, user: str):
        self.server = server
        self.user = user
        self.open = True

    def __repr__(self):
        return f"Session(server={self.server.name!r}, user={self.user!r})"

    def _check(self):
        if not self.open:
            raise HfmError("Session has been logged off")

    @command(desc="Returns the identity of the logged-in user")
    def whoami(self) -> str:
        self._check()
        return self.user

    @command
    def logoff(self) -> None:
        """Ends this session."""
        self._check()
        self.open = False
        logger.info("{} logged off from {}", self.user, self.server.name)

    @command(desc="Opens process management for an application")
    def open_process_flow(self, application: str) -> ProcessFlow:
        self._check()
        logger.info("Opened process flow for application {}", application)
        return ProcessFlow(self, application)
