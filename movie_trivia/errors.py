"""Error taxonomy shared by the streaming proxy and the leaderboard engine.

Every failure that leaves a component is one of these classes.  The API
layer maps each class to an HTTP status in ``backend.api.main``.
"""

from __future__ import annotations


class TriviaError(Exception):
    """Base class for all classified movie-trivia errors."""


class ConfigurationError(TriviaError):
    """A required setting (e.g. the Plex token) is missing."""


class UpstreamError(TriviaError):
    """The upstream media server failed: network error, timeout or 5xx.

    ``detail`` carries the diagnostic text returned to the client alongside
    a generic message.
    """

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.detail = detail


class LibraryNotFoundError(TriviaError):
    """The upstream server has no movie library section."""


class SubmissionValidationError(TriviaError):
    """A leaderboard submission is missing a field or carries a bad value."""


class PersistenceError(TriviaError):
    """The durable record store could not be read or written."""
