"""Errors raised while performing requests against the API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from form3.domain.models.request import AttemptOutcome


class Form3Error(Exception):
    """Base class for every error raised by the client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedRequest(Form3Error):
    """The request could not be built, e.g. the target URL is invalid."""

    pass


class TransportFailure(Form3Error):
    """The request could not be dispatched or no response was obtained."""

    def __init__(self, message: str, *, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class FatalOperationFailure(Form3Error):
    """A client error response (4xx other than 429) that must not be retried.

    The status code and the body are kept verbatim so callers can inspect them.
    """

    def __init__(self, status_code: int, body: bytes = b"", response: Any = None):
        super().__init__(f"request failed with status {status_code}")
        self.status_code = status_code
        self.body = body
        self.response = response


class RetryBudgetExhausted(Form3Error):
    """Every retry was used while the outcomes stayed retryable."""

    def __init__(self, message: str, outcome: Optional["AttemptOutcome"], attempts: int):
        super().__init__(message)
        self.outcome = outcome
        self.attempts = attempts


class DeadlineExceeded(RetryBudgetExhausted):
    """The overall time budget elapsed before a final outcome was reached."""

    pass


class OperationCancelled(Form3Error):
    """The caller cancelled the operation while it was waiting to retry."""

    pass


class OperationError(Form3Error):
    """Error raised by resource operations, easily consumable by the caller.

    Attributes:
        message: Customized message, contains the http status if the request was performed
        body: The http body if the request was performed
        status_code: The http status code if the request was performed
    """

    def __init__(self, message: str, body: bytes = b"", status_code: Optional[int] = None):
        super().__init__(message)
        self.body = body
        self.status_code = status_code
