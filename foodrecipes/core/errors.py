from __future__ import annotations


class RecipeApiError(Exception):
    """Base class for every failure a recipe request can end in."""

    def __init__(self, message: str, *, request: str | None = None) -> None:
        super().__init__(message)
        self.request = request


class TransportFailure(RecipeApiError):
    """Raised when the HTTP call itself fails (connection refused, reset, DNS...)."""


class ApiFailure(RecipeApiError):
    """Raised when the API answers with a non-200 status."""

    def __init__(self, status_code: int, body: str, *, request: str | None = None) -> None:
        super().__init__(f"Recipe API returned {status_code}: {body}", request=request)
        self.status_code = status_code
        self.body = body


class RequestTimedOut(RecipeApiError):
    """Raised when the request deadline elapsed before a response was read."""


class RequestCanceled(RecipeApiError):
    """Raised when the caller canceled the request while it was in flight."""
