"""Exceptions raised by the moderation pipeline.

A classifier payload that cannot be parsed is not an error: the normalizer
absorbs it into a fail-closed verdict.
"""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for pipeline failures.  ``status_code`` is the HTTP mapping."""

    status_code = 500


class InvalidRequest(ModerationError):
    """A required request field is missing.  No side effects were performed."""

    status_code = 400


class ClassifierUnavailable(ModerationError):
    """The classification service could not be reached (transport, timeout, config)."""

    status_code = 503


class ClassifierError(ModerationError):
    """The classification service answered with a non-2xx status."""

    status_code = 502

    def __init__(self, upstream_status: int, message: str = "") -> None:
        self.upstream_status = upstream_status
        super().__init__(message or f"Classifier error: {upstream_status}")


class PersistenceError(ModerationError):
    """A datastore write failed."""

    status_code = 500
