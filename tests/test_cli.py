import pytest
from loguru import logger

from hfmcmd import __main__ as entry
from hfmcmd import cli
from hfmcmd.cli import HfmCmdlineApp
from hfmcmd.errors import CommandNotFound
from hfmcmd.hfm import Client, ProcessFlow, Session
from hfmcmd.hfm import server as srv


@pytest.fixture
def app(tmp_path):
    app = HfmCmdlineApp(history=str(tmp_path / "history"), seeds=[Client()])
    app.setup(configure_logging=False)
    return app


@pytest.fixture
def script(tmp_path):
    def write(text):
        path = tmp_path / "commands.txt"
        path.write_text(text)
        return str(path)

    return write


class ScriptedSession:
    """Stands in for a PromptSession, answering prompts from a fixed list.

    Exception classes or instances in the list are raised instead of being
    returned; running out of lines behaves like Control-D."""

    def __init__(self, lines):
        self.lines = list(lines)
        self.prompts = 0

    def prompt(self, *args, **kwargs):
        self.prompts += 1
        if not self.lines:
            raise EOFError

        line = self.lines.pop(0)
        if isinstance(line, (BaseException, type)):
            raise line

        return line


@pytest.fixture
def repl(app, monkeypatch):
    """Run the REPL over the given input lines, returning the spent session."""

    def run(*lines):
        session = ScriptedSession(lines)
        monkeypatch.setattr(cli, "PromptSession", lambda **kwargs: session)
        app.dorepl()
        return session

    return run


def test_setup_seeds_context(app):
    assert app.context.get(HfmCmdlineApp) is app
    assert isinstance(app.context.get(Client), Client)
    assert app.registry.contains("log")
    assert app.registry.contains("login")


def test_commands_lists_usage(app):
    found = app.execute("commands pattern=who*")
    assert found == {"whoami": "Returns the identity of the logged-in user"}

    assert "log [level='INFO'] [logfile=None]" in app.execute("ls")


def test_help(app):
    text = app.execute("help login")

    assert text.splitlines()[0] == "login user_name=<str> password=<str> [domain=None]"
    assert "runs on: Client" in text
    assert "password (str) [sensitive] The password for the user" in text


def test_help_unknown(app):
    with pytest.raises(CommandNotFound):
        app.execute("help nothing_here")


def test_one_shot_command(app, capsys):
    assert app.runall(["login", "admin", "password"]) == 0
    assert app.runall(["whoami"]) == 0

    assert capsys.readouterr().out.strip() == "admin"


def test_one_shot_failure_is_reported(app):
    assert app.runall(["login", "admin", "wrong"]) == 1
    assert app.runall(["login", "admin"]) == 1


def test_unknown_command_or_file(app, logs):
    assert app.runall(["/no/such/file"]) == 1
    assert "Command file '/no/such/file' not found" in logs


def test_script_file(app, script, capsys):
    path = script(
        "# set up a session\n"
        "login admin password\n"
        "\n"
        "open_process_flow Consol\n"
        "start Actual.2024.Jan.E100\n"
        "whoami\n"
    )

    assert app.runall([path]) == 0
    assert isinstance(app.context.get(ProcessFlow), ProcessFlow)
    assert capsys.readouterr().out.strip() == "admin"


def test_script_stops_at_first_failure(app, script, logs):
    path = script("login admin password\nwhoami extra\nlogoff\n")

    assert app.runall([path]) == 1
    assert app.context.get(Session).open
    assert any(m.endswith(":2] Command failed, stopping") for m in logs)


def test_quit_stops_script(app, script):
    path = script("quit\nlogin admin password\n")

    assert app.runall([path]) == 0
    assert app.exiting
    assert Session not in app.context


def test_log_command_changes_level(app):
    app.execute("log level=debug")
    assert app.level == "DEBUG"

    with pytest.raises(ValueError):
        app.execute("log level=chatty")

    logger.remove(app._console)


def test_log_command_adds_file(app, tmp_path):
    logfile = tmp_path / "hfmcmd.log"
    app.execute(["log", "level=INFO", f"logfile={logfile}"])

    logger.trace("traced line")
    for sink in [app._console, *app._files.values()]:
        logger.remove(sink)

    assert "traced line" in logfile.read_text()


def test_build_app_from_config(tmp_path):
    config = entry.load_config(
        {"HFMCMD_SCOPES": "hfmcmd.hfm, tests.scopes.levels", "HFMCMD_LOG_LEVEL": "WARNING"}
    )
    app, argv = entry.build_app(["--debug", "whoami"], config)

    assert argv == ["whoami"]
    assert app.level == "DEBUG"
    assert app.scopes == ["hfmcmd.hfm", "tests.scopes.levels"]
    assert app.history == "~/.hfmcmd_history"
    assert app.logfile is None
    assert isinstance(app.seeds[0], Client)


def test_app_without_framework_scope(tmp_path):
    app = HfmCmdlineApp(scopes=["tests.scopes.levels"], history=str(tmp_path / "h"))
    app.setup(configure_logging=False)

    assert not app.registry.contains("log")
    assert app.runall(["setLevel", "DEBUG"]) == 1


def test_repl_runs_commands(repl, capsys):
    session = repl("login admin password", "whoami")

    assert session.prompts == 3
    assert capsys.readouterr().out.strip() == "admin"


def test_repl_never_logs_secrets(app, repl, logs):
    srv.server().users["alice"] = "s3cret-pw"
    sink = logger.add(lambda m: logs.append(m.record["message"]), level="TRACE")
    try:
        repl("login alice s3cret-pw", "login alice wrong-pw")
    finally:
        logger.remove(sink)

    assert app.context.get(Session).user == "alice"
    assert "Running login {'user_name': 'alice', 'password': '******'}" in logs
    assert not any("s3cret-pw" in m or "wrong-pw" in m for m in logs)


def test_repl_keeps_going_after_errors(app, repl, logs, capsys):
    session = repl("nope", "whoami", "log level=chatty", "login admin password", "whoami")

    assert not session.lines
    assert any(m.startswith("No command named 'nope'") for m in logs)
    assert "Command failed: log" in logs
    assert capsys.readouterr().out.strip() == "admin"
    assert not app.exiting


def test_repl_control_c_abandons_the_line(repl, capsys):
    session = repl(KeyboardInterrupt(), "login admin password", "whoami")

    assert session.prompts == 4
    assert capsys.readouterr().out.strip() == "admin"


def test_repl_control_d_ends_the_loop(app, repl):
    session = repl("login admin password", EOFError, "logoff")

    assert session.lines == ["logoff"]
    assert app.context.get(Session).open
    assert not app.exiting


def test_repl_quit(app, repl):
    session = repl("quit", "login admin password")

    assert app.exiting
    assert session.lines == ["login admin password"]
    assert Session not in app.context


def test_repl_skips_blank_lines(repl, logs):
    session = repl("", "   ")

    assert session.prompts == 3
    assert not any("No command" in m for m in logs)
