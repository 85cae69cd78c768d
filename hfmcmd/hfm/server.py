"""An in-process consolidation server.

Holds users and the process-management state of process units. Process units
are identified by a label of the form `Scenario.Year.Period.Entity` and are
tracked separately per application; a unit that has never been touched is
NotStarted.
"""

import enum
import re
from collections import defaultdict
from dataclasses import dataclass, field

from loguru import logger

from hfmcmd.errors import HfmCmdError


class HfmError(HfmCmdError):
    """Failure reported by the server."""


class AuthenticationError(HfmError):
    pass


class ProcessFlowError(HfmError):
    """An illegal process-management action."""


class ProcessState(enum.IntEnum):
    NotSupported = 0
    NotStarted = 1
    FirstPass = 2
    ReviewLevel1 = 3
    ReviewLevel2 = 4
    ReviewLevel3 = 5
    ReviewLevel4 = 6
    ReviewLevel5 = 7
    ReviewLevel6 = 8
    ReviewLevel7 = 9
    ReviewLevel8 = 10
    ReviewLevel9 = 11
    ReviewLevel10 = 12
    Submitted = 13
    Approved = 14
    Published = 15

    @property
    def is_review(self) -> bool:
        return ProcessState.ReviewLevel1 <= self <= ProcessState.ReviewLevel10


class ProcessAction(enum.Enum):
    Approve = "approve"
    Promote = "promote"
    Publish = "publish"
    Reject = "reject"
    SignOff = "sign_off"
    Start = "start"
    Submit = "submit"


UNIT_RE = re.compile(r"^[^.\s]+\.[^.\s]+\.[^.\s]+\.[^.\s]+$")
REVIEW_RE = re.compile(r"^(?:ReviewLevel)?([1-9]|10)$", re.IGNORECASE)


def review_level(level: str | int) -> ProcessState:
    """Parse a review level given as `1`..`10` or `ReviewLevelN`."""
    match = REVIEW_RE.match(str(level).strip())
    if not match:
        raise ProcessFlowError("Review level must be a value between 1 and 10")

    return ProcessState[f"ReviewLevel{match.group(1)}"]


def parse_units(units: str | list[str]) -> list[str]:
    """Split a comma-separated unit list and validate each label."""
    if isinstance(units, str):
        units = units.split(",")

    labels = [u.strip() for u in units if u.strip()]
    if not labels:
        raise ProcessFlowError("No process units specified")

    for label in labels:
        if not UNIT_RE.match(label):
            raise ProcessFlowError(
                f"Invalid process unit '{label}' (expected Scenario.Year.Period.Entity)"
            )

    return labels


@dataclass
class Annotation:
    user: str
    action: ProcessAction
    state: ProcessState
    text: str | None


@dataclass
class Server:
    name: str = "local"

    # user name -> password
    users: dict[str, str] = field(default_factory=lambda: {"admin": "password"})

    # (application, unit label) -> state history (last element is current)
    history: dict[tuple[str, str], list[ProcessState]] = field(
        default_factory=lambda: defaultdict(lambda: [ProcessState.NotStarted])
    )

    annotations: dict[tuple[str, str], list[Annotation]] = field(
        default_factory=lambda: defaultdict(list)
    )

    def authenticate(self, user: str, password: str) -> None:
        if self.users.get(user) != password:
            raise AuthenticationError(f"Invalid user name or password for '{user}'")

    def state(self, application: str, unit: str) -> ProcessState:
        return self.history[application, unit][-1]

    def change_state(
        self,
        user: str,
        application: str,
        unit: str,
        action: ProcessAction,
        target: ProcessState | None = None,
        annotation: str | None = None,
    ) -> ProcessState:
        """Apply `action` to `unit` of `application`, returning the resulting state."""
        states = self.history[application, unit]
        current = states[-1]

        match action:
            case ProcessAction.Start:
                if current is not ProcessState.NotStarted:
                    raise ProcessFlowError(f"{unit} has already been started ({current.name})")
                new = ProcessState.FirstPass
            case ProcessAction.Promote:
                if target is None:
                    raise ProcessFlowError(f"No target review level given to promote {unit}")
                if not (ProcessState.FirstPass <= current < target):
                    raise ProcessFlowError(
                        f"Cannot promote {unit} from {current.name} to {target.name}"
                    )
                new = target
            case ProcessAction.Reject:
                if len(states) < 2 or current in (
                    ProcessState.NotStarted,
                    ProcessState.Published,
                ):
                    raise ProcessFlowError(f"Cannot reject {unit} at {current.name}")
                states.pop()
                new = states[-1]
            case ProcessAction.SignOff:
                if not current.is_review:
                    raise ProcessFlowError(
                        f"Cannot sign off {unit} at {current.name} (must be at a review level)"
                    )
                new = current
            case ProcessAction.Submit:
                if not (ProcessState.FirstPass <= current <= ProcessState.ReviewLevel10):
                    raise ProcessFlowError(f"Cannot submit {unit} at {current.name}")
                new = ProcessState.Submitted
            case ProcessAction.Approve:
                if current is not ProcessState.Submitted:
                    raise ProcessFlowError(f"Cannot approve {unit} at {current.name}")
                new = ProcessState.Approved
            case ProcessAction.Publish:
                if current is not ProcessState.Approved:
                    raise ProcessFlowError(f"Cannot publish {unit} at {current.name}")
                new = ProcessState.Published

        if action not in (ProcessAction.Reject, ProcessAction.SignOff):
            states.append(new)

        self.annotations[application, unit].append(Annotation(user, action, new, annotation))
        logger.debug(
            "[{}:{}] {} {}: {} -> {}", self.name, application, user, action.name, unit, new.name
        )
        return new


# cluster name -> server, shared by every client in the process
SERVERS: dict[str, Server] = {}


def server(cluster: str = "local") -> Server:
    if cluster not in SERVERS:
        SERVERS[cluster] = Server(name=cluster)

    return SERVERS[cluster]
