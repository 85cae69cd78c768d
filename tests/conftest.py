import pytest
from loguru import logger

from hfmcmd.cmds import Context, find_commands
from hfmcmd.hfm import server as srv
from tests.scopes.alpha import Portal
from tests.scopes.levels import Levels


@pytest.fixture
def logs():
    """Every log message emitted during the test (DEBUG and up)."""
    messages: list[str] = []
    sink = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink)


@pytest.fixture
def registry():
    return find_commands("tests.scopes.alpha", "tests.scopes.beta", "tests.scopes.levels")


@pytest.fixture
def context(registry):
    ctx = Context(registry)
    ctx.set(Portal())
    ctx.set(Levels())
    return ctx


@pytest.fixture(autouse=True)
def fresh_servers():
    srv.SERVERS.clear()
    yield
    srv.SERVERS.clear()
