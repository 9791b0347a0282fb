"""Domain errors. Each carries the HTTP status the API boundary renders it with."""


class AgentHuntError(Exception):
    """Base class for errors translated to {"error": message} responses."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(AgentHuntError, ValueError):
    """Malformed id, page, action or reason."""

    status_code = 400


class Unauthenticated(AgentHuntError):
    """No wallet address supplied."""

    status_code = 401


class NotFound(AgentHuntError, LookupError):
    status_code = 404


class QuotaExceeded(AgentHuntError):
    """Identity exceeded its creation or action quota for the trailing window."""

    status_code = 429

    def __init__(self, message: str, *, current_count: int, limit: int):
        super().__init__(message)
        self.current_count = current_count
        self.limit = limit


class InternalError(AgentHuntError):
    """Store or blob-store failure. Message is logged, never sent to the client."""

    status_code = 500


GENERIC_INTERNAL_MESSAGE = "Internal server error."
