"""
Batch Gateway Exception Classes

Two families live here:

* ``BatchAPIException`` and its subclasses are rendered to the HTTP caller
  by the exception handlers in ``batch_gateway.main``.
* ``OperationError`` and its subclasses describe why a single operation of a
  batch failed. They never reach the HTTP layer directly; the executor folds
  them into its error tolerance count and, on abort, wraps the triggering one
  in ``BatchAbortedError``.
"""
from typing import Any, Optional


class BatchAPIException(Exception):
    """Base exception for batch gateway API errors.

    Standard error response format:
    {
        "errors": [
            {
                "message": "...",
                "help": "...",
                "phrase": "..."
            }
        ]
    }
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        help_text: Optional[str] = None,
        phrase: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.help_text = help_text or "Check the batch request syntax and the status of each operation, then try again."
        self.phrase = phrase
        super().__init__(self.message)


class ValidationError(BatchAPIException):
    """400 - Bad request / validation error."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=400,
            help_text="This usually occurs because of a missing or malformed parameter. Check the documentation and the syntax of your request and try again.",
            phrase="invalid_request",
        )


class OperationLimitError(ValidationError):
    """400 - The batch holds more operations than allowed."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"maximum number of operations exceeded: {count} > {limit}",
        )


class MalformedRequestError(BatchAPIException):
    """The inbound body could not be decoded into a batch payload."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(
            message=message,
            status_code=status_code,
            help_text="The batch request body must be a single JSON object matching the batch schema.",
            phrase="malformed_request",
        )


class ServerError(BatchAPIException):
    """500 - Internal server error."""

    def __init__(self, message: str = "Server Error", phrase: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=500,
            help_text="There was a problem on the server. If the problem persists, contact support with the error phrase.",
            phrase=phrase or "unknown_error",
        )


class BatchAbortedError(BatchAPIException):
    """The error tolerance of a batch was reached.

    ``result`` holds the operations processed so far, including the one that
    tripped the tolerance. ``cause`` is that operation's error.
    """

    def __init__(self, result: Any, cause: "OperationError", index: int):
        self.result = result
        self.cause = cause
        self.index = index
        super().__init__(
            message=f"batch aborted at operation {index}: {cause}",
            status_code=200,
            help_text="The number of failed operations reached failOnErrors. Operations after the failing one were not executed.",
            phrase="batch_aborted",
        )


class OperationError(Exception):
    """Base error for a single failed operation of a batch."""

    def __init__(self, message: str, method: str = "", path: str = ""):
        self.message = message
        self.method = method
        self.path = path
        super().__init__(message)


class TransportError(OperationError):
    """No response was obtained from the backing service."""


class DeadlineExceededError(TransportError):
    """The batch deadline expired before or during the operation."""


class PartialResponseError(OperationError):
    """Status and headers were received but the body could not be read."""


class BodyParseError(OperationError):
    """The response body is not valid JSON."""


class RequestSerializationError(OperationError):
    """The operation body could not be serialized to JSON."""


class OperationStatusError(OperationError):
    """The backing service answered with a non-2xx status."""

    def __init__(self, status_code: int, method: str = "", path: str = ""):
        self.status_code = status_code
        super().__init__(
            f"{method} {path} returned status {status_code}",
            method=method,
            path=path,
        )
