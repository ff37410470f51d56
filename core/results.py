"""
Outcome types for a single prompt/completion round trip.

A request either produces a Completion or raises one of the
CompletionError subclasses below.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    AUTH = "auth"
    TRANSPORT = "transport"
    REMOTE = "remote"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Completion:
    """Text returned by the model, verbatim."""

    text: str


class CompletionError(Exception):
    """Base class for classified completion failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class AuthError(CompletionError):
    """Credential rejected by the remote service."""

    kind = ErrorKind.AUTH


class TransportError(CompletionError):
    """Network unreachable, timeout or DNS failure."""

    kind = ErrorKind.TRANSPORT


class RemoteError(CompletionError):
    """Service reachable but answered with an application-level error."""

    kind = ErrorKind.REMOTE


class UnknownError(CompletionError):
    kind = ErrorKind.UNKNOWN
