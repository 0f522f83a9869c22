"""
Exceptions raised by the sign alert backend.

Only session start preconditions and storage operations raise to the caller.
Per-frame matching problems are logged and treated as "no detection".
"""


class SignAlertError(Exception):
    """Base class for all sign alert errors."""


class SessionStartError(SignAlertError):
    """A detection session could not be started.

    The message is safe to show to the end user.
    """


class DetectorNotReadyError(SessionStartError):
    def __init__(self, message: str = "The camera and hand detector must be active first"):
        super().__init__(message)


class EmptyLibraryError(SessionStartError):
    def __init__(self, message: str = "There are no saved signs to compare against"):
        super().__init__(message)


class InvalidSignError(SignAlertError, ValueError):
    """A reference sign failed validation."""


class SignNotFoundError(SignAlertError, KeyError):
    """No reference sign with the requested id."""

    def __init__(self, sign_id: str):
        super().__init__(sign_id)
        self.sign_id = sign_id

    def __str__(self):
        return f"Sign not found: {self.sign_id}"


class NoHandsRecordedError(SignAlertError):
    """A recording finished without any usable hand frames."""

    def __init__(self, message: str = "No hands were detected during the recording"):
        super().__init__(message)
