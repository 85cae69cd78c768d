import pytest

from hfmcmd.cmds import Dispatch
from hfmcmd.errors import CommandNotFound, UsageError
from tests.scopes.levels import Levels


@pytest.fixture
def dispatch(context):
    return Dispatch(context)


@pytest.mark.parametrize(
    "line",
    [
        "route name=audit target=file",
        "route --name=audit --target file",
        "ROUTE audit file",
        "route target=file audit",
        "route 'audit' --target=file",
    ],
)
def test_argument_forms(dispatch, line):
    cmd, args = dispatch.parse(line)

    assert cmd.name == "route"
    assert args == {"name": "audit", "target": "file"}


def test_flags(dispatch):
    _, args = dispatch.parse("route audit --verbose")
    assert args == {"name": "audit", "verbose": True}

    # a boolean parameter never swallows the next token
    _, args = dispatch.parse("route --verbose audit")
    assert args == {"name": "audit", "verbose": True}


def test_dashes_become_underscores(context):
    _, args = Dispatch(context).parse(["login", "--user-name", "x", "user-id=7"])
    assert args == {"user_name": "x", "user_id": "7"}


def test_quoted_values_and_comments(dispatch):
    _, args = dispatch.parse("route name='two words' # trailing comment")
    assert args == {"name": "two words"}


def test_too_many_bare_tokens(dispatch):
    with pytest.raises(UsageError, match="Too many arguments"):
        dispatch.parse("setLevel DEBUG INFO")


def test_empty_line(dispatch):
    with pytest.raises(UsageError):
        dispatch.parse("   ")


def test_bad_option(dispatch):
    with pytest.raises(UsageError):
        dispatch.parse("route --=x")


def test_unknown_command(dispatch):
    with pytest.raises(CommandNotFound):
        dispatch.parse("nope a=b")


def test_runop_invokes_and_chains(dispatch, context):
    dispatch.runop("login user=carol")
    assert dispatch.runop("whoami") == "carol"

    dispatch.runop(["setLevel", "level=WARNING"])
    assert context.get(Levels).calls == [("setLevel", "WARNING")]


def test_runop_redacts_sensitive_values_in_trace(dispatch, logs):
    from loguru import logger

    sink = logger.add(lambda m: logs.append(m.record["message"]), level="TRACE")
    try:
        dispatch.runop("setLevel level=secretive")
    finally:
        logger.remove(sink)

    assert "Running setLevel {'level': '******'}" in logs
    assert not any("secretive" in m for m in logs)
