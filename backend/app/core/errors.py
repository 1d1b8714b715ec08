"""Error taxonomy for the analyze flow.

Each error carries the HTTP status the API layer answers with.  Input
validation errors are raised before any external call; gateway errors come
from the model call; ``PersistenceError`` comes from the result store and is
always surfaced.
"""

from __future__ import annotations


class AnalysisError(Exception):
    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(AnalysisError):
    status_code = 401
    default_detail = "Unauthorized"


class BadRequest(AnalysisError):
    status_code = 400
    default_detail = "Bad request"


class RateLimited(AnalysisError):
    status_code = 429
    default_detail = "Rate limit exceeded. Please try again later."

    def __init__(self, detail: str | None = None, *, retry_after: float | None = None) -> None:
        super().__init__(detail)
        self.retry_after = retry_after


class QuotaExhausted(AnalysisError):
    status_code = 402
    default_detail = "AI credits exhausted. Please add funds to continue."


class GatewayError(AnalysisError):
    status_code = 500
    default_detail = "AI analysis failed"

    def __init__(self, detail: str | None = None, *, upstream_status: int | None = None, upstream_body: str = "") -> None:
        super().__init__(detail)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class PersistenceError(AnalysisError):
    status_code = 500
    default_detail = "Failed to save analysis result"
