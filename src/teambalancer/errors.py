"""Error taxonomy shared by the normalizer, the search and the API layer."""

from __future__ import annotations


class BalanceError(Exception):
    """Base class for failures surfaced to API and CLI callers."""

    code = "balance_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class ValidationError(BalanceError):
    """Raised when a roster field has a malformed value."""

    code = "validation_error"


class InvalidParameterError(BalanceError):
    """Raised when num_teams, time_limit or num_attempts is out of range."""

    code = "invalid_parameter"


class InsufficientPlayersError(BalanceError):
    """Raised when the roster is too small for the requested team count."""

    code = "insufficient_players"


class SearchExhaustedError(BalanceError):
    """Raised when no attempt produced a valid partition."""

    code = "search_exhausted"
    status_code = 500
