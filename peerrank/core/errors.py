"""Error taxonomy shared by the ranking services and the route layer."""

from fastapi import HTTPException


class RankingError(Exception):
    """Base class for errors surfaced to callers with a stable kind."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RatingValidationError(RankingError):
    """Malformed or missing ids, or an unacceptable rank."""

    kind = "validation_error"
    status_code = 400


class NotFoundError(RankingError):
    kind = "not_found"
    status_code = 404


class PermissionDeniedError(RankingError):
    kind = "permission_denied"
    status_code = 403


class ConflictError(RankingError):
    """Raised when the ledger's uniqueness constraint rejects a concurrent write."""

    kind = "conflict"
    status_code = 409


def to_http_exception(exc: RankingError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={"kind": exc.kind, "message": exc.message},
    )
