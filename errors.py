"""
Error taxonomy shared by every service.

Each error carries a stable ``kind`` and the HTTP status the transport maps it
to. Messages are meant for API consumers and never include store details.
"""


class MarketplaceError(Exception):
    """Base class for expected service failures."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(MarketplaceError):
    """Referenced entity does not exist (malformed ids included)."""

    kind = "not_found"
    status_code = 404


class ConflictError(MarketplaceError):
    """A uniqueness rule was violated."""

    kind = "conflict"
    status_code = 409


class ForbiddenError(MarketplaceError):
    """Caller lacks ownership or role for the mutation."""

    kind = "forbidden"
    status_code = 403


class BadInputError(MarketplaceError):
    kind = "bad_input"
    status_code = 400


class UnauthorizedError(MarketplaceError):
    kind = "unauthorized"
    status_code = 401
