# haven/errors.py
from __future__ import annotations


class HavenError(Exception):
    """Base class for every error raised by the companion core."""


class InvalidRequest(HavenError):
    """Malformed or empty input, rejected before any classification or provider call."""


class SubmissionPending(HavenError):
    """A second submission arrived while the previous one is still awaiting a reply."""


class ProviderError(HavenError):
    """The completion provider failed: network, timeout, non-2xx or malformed payload."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TransitionRejected(HavenError):
    """A journal state transition was refused; `notice` is safe to show to the user."""

    def __init__(self, notice: str):
        super().__init__(notice)
        self.notice = notice


class StorageError(HavenError):
    """Persisted local state could not be read back."""

    def __init__(self, collection: str, reason: str):
        super().__init__(f"{collection}: {reason}")
        self.collection = collection
        self.reason = reason
