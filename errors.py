# errors.py
"""Error kinds raised by the vSphere wrappers and handled by the commands."""

from enum import Enum


class ErrorKind(Enum):
    CONNECTION_FAILED = "ConnectionFailed"
    OBJECT_NOT_FOUND = "ObjectNotFound"
    MODULE_UNAVAILABLE = "ModuleUnavailable"
    USER_DECLINED = "UserDeclined"


class VSwitchToolError(Exception):
    """
    Raised when a vSphere call or a user interaction cannot complete.

    Whether the error ends the run or only the current host is decided by the
    caller: the source host lookup and the safety prompts are fatal, a target
    host lookup only skips that host.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self):
        return f"{self.kind.value}: {self.message}"


def connection_failed(message: str) -> VSwitchToolError:
    return VSwitchToolError(ErrorKind.CONNECTION_FAILED, message)


def object_not_found(message: str) -> VSwitchToolError:
    return VSwitchToolError(ErrorKind.OBJECT_NOT_FOUND, message)


def module_unavailable(message: str) -> VSwitchToolError:
    return VSwitchToolError(ErrorKind.MODULE_UNAVAILABLE, message)


def user_declined(message: str) -> VSwitchToolError:
    return VSwitchToolError(ErrorKind.USER_DECLINED, message)
