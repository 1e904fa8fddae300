"""Failure taxonomy shared by services and the API layer.

Every request-level failure is an ``AtlasError`` carrying the HTTP status the
API answers with. ``MediaDegraded`` is the exception: it is raised and caught
inside the media pipeline and never reaches a caller.
"""
from __future__ import annotations


class AtlasError(Exception):
    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class UnauthorizedError(AtlasError):
    status_code = 401


class ForbiddenError(AtlasError):
    status_code = 403


class NotFoundError(AtlasError):
    status_code = 404


class DreamNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Dream not found") -> None:
        super().__init__(detail)


class SessionNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Session not found") -> None:
        super().__init__(detail)


class ValidationError(AtlasError):
    status_code = 400


class EmptyResultError(AtlasError):
    """The model produced nothing usable. Nothing was persisted."""
    status_code = 502


class EmptyWindowError(EmptyResultError):
    """No dreams fall inside the requested period."""
    status_code = 400

    def __init__(self, detail: str = "No dreams found in this period") -> None:
        super().__init__(detail)


class UpstreamFailure(AtlasError):
    """Record store, object store or LLM failed; detail keeps the cause."""
    status_code = 502


class MediaDegraded(Exception):
    """One dream's media could not be classified, fetched, or converted."""
