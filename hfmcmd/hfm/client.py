"""Client: the entry point into a consolidation server.

The cli seeds its context with a Client, so `connect` and `login` are
available from the start; `login` returns the Session that every
session-level command then runs against.
"""

from loguru import logger

from hfmcmd.cmds import Arg, command
from hfmcmd.hfm import server as srv
from hfmcmd.hfm.session import Session


class Client:
    def __init__(self, cluster: str = "local"):
        self.server = srv.server(cluster)

    @command(desc="Selects the cluster or server that later logins connect to")
    def connect(self, cluster: str = "local") -> None:
        self.server = srv.server(cluster)
        logger.info("Using cluster {}", cluster)

    @command(
        args=[
            Arg("user_name", desc="The user id to use to connect"),
            Arg("password", sensitive=True, desc="The password for the user"),
            Arg("domain", default=None, desc="The domain the user is validated in"),
        ]
    )
    def login(self, user_name: str, password: str, domain: str) -> Session:
        """Opens a session on the current cluster."""
        self.server.authenticate(user_name, password)

        user = f"{domain}\\{user_name}" if domain else user_name
        logger.info("Connected to {} as {}", self.server.name, user)
        return Session(self.server, user)
