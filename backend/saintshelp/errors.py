"""Domain error taxonomy mapped onto HTTP status codes."""


class SaintsHelpError(Exception):
    """Base error. Carries the HTTP status it is reported with."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(SaintsHelpError):
    """Missing question, empty document selection, unindexed documents."""

    status_code = 400


class AuthError(SaintsHelpError):
    """Missing or invalid credentials."""

    status_code = 401


class ForbiddenError(SaintsHelpError):
    """Caller is authenticated but not allowed."""

    status_code = 403


class NotFoundError(SaintsHelpError):
    """Passage, conversation or book absent (or not visible to the caller)."""

    status_code = 404


class QuotaExceededError(SaintsHelpError):
    """Daily question quota exhausted."""

    status_code = 429


class UpstreamError(SaintsHelpError):
    """A collaborator on the required write path failed."""

    status_code = 500
