"""Consolidation server commands: clients, sessions and process management."""

from .server import (
    AuthenticationError,
    HfmError,
    ProcessAction,
    ProcessFlowError,
    ProcessState,
    Server,
)
from .processflow import ProcessFlow
from .session import Session
from .client import Client

__all__ = [
    "AuthenticationError",
    "Client",
    "HfmError",
    "ProcessAction",
    "ProcessFlow",
    "ProcessFlowError",
    "ProcessState",
    "Server",
    "Session",
]
