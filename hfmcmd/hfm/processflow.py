"""Process management commands.

Each command takes `units`, a comma-separated list of process unit labels
(`Scenario.Year.Period.Entity`), and applies one action to every unit.
"""

from typing import TYPE_CHECKING

from loguru import logger

from hfmcmd.cmds import Arg, command
from hfmcmd.hfm import server as srv
from hfmcmd.hfm.server import ProcessAction, ProcessState, parse_units

if TYPE_CHECKING:
    from hfmcmd.hfm.session import Session

UNITS = Arg("units", desc="Comma-separated process units (Scenario.Year.Period.Entity)")
ANNOTATION = Arg(
    "annotation", default=None, desc="Annotation to be applied to each process unit"
)


class ProcessFlow:
    def __init__(self, session: "Session", application: str):
        self.session = session
        self.application = application

    def _change(
        self,
        units: str,
        action: ProcessAction,
        annotation: str | None,
        target: ProcessState | None = None,
    ) -> None:
        self.session._check()
        labels = parse_units(units)

        state = None
        for unit in labels:
            state = self.session.server.change_state(
                self.session.user, self.application, unit, action, target, annotation
            )

        logger.info("{} process units are now at {}", len(labels), state.name)

    @command(desc="Returns the current process state", args=[UNITS])
    def enum_process_state(self, units: str) -> dict[str, str]:
        self.session._check()
        server = self.session.server
        return {
            unit: server.state(self.application, unit).name for unit in parse_units(units)
        }

    @command(
        desc="Starts a process unit, moving it from Not Started to First Pass",
        args=[UNITS, ANNOTATION],
    )
    def start(self, units: str, annotation: str | None) -> None:
        self._change(units, ProcessAction.Start, annotation)

    @command(
        desc="Promotes a process unit to the specified review level",
        args=[
            UNITS,
            Arg("review_level", desc="Review level to promote to (1 to 10)"),
            ANNOTATION,
        ],
    )
    def promote(self, units: str, review_level: str, annotation: str | None) -> None:
        target = srv.review_level(review_level)
        self._change(units, ProcessAction.Promote, annotation, target)

    @command(desc="Returns a process unit to its prior state", args=[UNITS, ANNOTATION])
    def reject(self, units: str, annotation: str | None) -> None:
        self._change(units, ProcessAction.Reject, annotation)

    @command(
        desc="Records sign-off at the current review level without changing it",
        args=[UNITS, ANNOTATION],
    )
    def sign_off(self, units: str, annotation: str | None) -> None:
        self._change(units, ProcessAction.SignOff, annotation)

    @command(desc="Submits a process unit for approval", args=[UNITS, ANNOTATION])
    def submit(self, units: str, annotation: str | None) -> None:
        self._change(units, ProcessAction.Submit, annotation)

    @command(desc="Approves a submitted process unit", args=[UNITS, ANNOTATION])
    def approve(self, units: str, annotation: str | None) -> None:
        self._change(units, ProcessAction.Approve, annotation)

    @command(desc="Publishes an approved process unit", args=[UNITS, ANNOTATION])
    def publish(self, units: str, annotation: str | None) -> None:
        self._change(units, ProcessAction.Publish, annotation)
