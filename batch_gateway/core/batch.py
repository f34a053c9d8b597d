"""
Batch executor.

Replays the operations of a batch one at a time against the backing service
and folds their outcome into a single result, aborting early once the number
of failed operations reaches ``failOnErrors``.

Usage:

    executor = BatchExecutor("http://localhost:8080/api", logger)
    result = await executor.with_trace(propagate_trace_headers).process(payload, ctx)
"""
import asyncio
import json
import math
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx
import structlog

from batch_gateway.core.exceptions import (
    BatchAbortedError,
    BodyParseError,
    DeadlineExceededError,
    OperationError,
    OperationLimitError,
    OperationStatusError,
    PartialResponseError,
    RequestSerializationError,
    TransportError,
)
from batch_gateway.core.tracing import BatchContext, TraceHook
from batch_gateway.schemas.batch import BatchPayload, Header, Operation, Status


MAXIMUM_OPERATIONS = 1024

log = structlog.get_logger(__name__)


class BatchLogger(Protocol):
    """Structured logger with key/value arguments, as provided by structlog."""

    def info(self, event: str, **kw: Any) -> Any: ...

    def warning(self, event: str, **kw: Any) -> Any: ...

    def error(self, event: str, **kw: Any) -> Any: ...


class BatchExecutor:
    """Runs batch payloads against ``base_path``.

    The executor keeps no state between calls to ``process``; every call
    opens its own HTTP client, so concurrent calls are independent.
    """

    def __init__(
        self,
        base_path: str,
        logger: Optional[BatchLogger] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_operations: int = MAXIMUM_OPERATIONS,
    ):
        self.base_path = base_path
        self.logger = logger if logger is not None else log
        self.max_operations = max_operations
        self._transport = transport
        self._trace: Optional[TraceHook] = None

    def with_trace(self, tracer: Optional[TraceHook]) -> "BatchExecutor":
        """Attach a hook called with the context and headers of every sub-request."""
        self._trace = tracer
        return self

    async def process(
        self,
        payload: BatchPayload,
        ctx: Optional[BatchContext] = None,
    ) -> BatchPayload:
        """
        Execute every operation of ``payload`` in order.

        Returns the result envelope with one result operation per input
        operation. Raises ``OperationLimitError`` before dispatching anything
        when the batch is too large, and ``BatchAbortedError`` carrying the
        partial result once the failure count reaches ``fail_on_errors``.
        """
        count = len(payload.operations)
        if count > self.max_operations:
            self.logger.error(
                "Maximum number of operations exceeded",
                count=count,
                limit=self.max_operations,
            )
            raise OperationLimitError(count, self.max_operations)

        ctx = ctx or BatchContext()
        error_tolerance = (
            payload.fail_on_errors if payload.fail_on_errors is not None else math.inf
        )
        result = BatchPayload()
        error_count = 0

        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            for index, operation in enumerate(payload.operations):
                response, error = await self._dispatch(client, ctx, operation)
                if error is None and response.status.code_int > 299:
                    error = OperationStatusError(
                        response.status.code_int, operation.method, operation.path
                    )

                if error is not None:
                    error_count += 1
                    self.logger.warning(
                        "Operation failed",
                        index=index,
                        method=operation.method,
                        path=operation.path,
                        error=str(error),
                    )
                    if error_count >= error_tolerance:
                        result.operations.append(response)
                        self.logger.error(
                            "Batch aborted",
                            index=index,
                            errors=error_count,
                            fail_on_errors=payload.fail_on_errors,
                        )
                        raise BatchAbortedError(result, error, index)

                result.operations.append(response)

        return result

    async def _dispatch(
        self,
        client: httpx.AsyncClient,
        ctx: BatchContext,
        operation: Operation,
    ) -> Tuple[Operation, Optional[OperationError]]:
        result = Operation(
            method=operation.method,
            path=operation.path,
            bulk_id=operation.bulk_id,
        )
        url = self.base_path + operation.path

        if ctx.expired:
            return result, DeadlineExceededError(
                "batch deadline exceeded before sending", operation.method, url
            )

        headers = [(h.name, h.value) for h in operation.headers]
        content = None
        if operation.body is not None:
            try:
                content = json.dumps(operation.body, allow_nan=False).encode("utf-8")
            except (TypeError, ValueError) as exc:
                return result, RequestSerializationError(
                    f"cannot serialize request body: {exc}", operation.method, url
                )
            if not any(name.lower() == "content-type" for name, _ in headers):
                headers.append(("Content-Type", "application/json"))

        try:
            request = client.build_request(
                operation.method, url, headers=headers, content=content
            )
        except httpx.InvalidURL as exc:
            return result, TransportError(str(exc), operation.method, url)

        if self._trace is not None:
            self._trace(ctx, request.headers)

        self.logger.info("Sending request", path=url, method=operation.method)
        try:
            response = await asyncio.wait_for(
                client.send(request, stream=True), timeout=ctx.remaining()
            )
        except asyncio.TimeoutError:
            return result, DeadlineExceededError(
                "batch deadline exceeded while waiting for response",
                operation.method,
                url,
            )
        except httpx.HTTPError as exc:
            return result, TransportError(
                str(exc) or type(exc).__name__, operation.method, url
            )

        try:
            result.status = Status(
                code=str(response.status_code), code_int=response.status_code
            )
            result.headers = _collect_headers(response.headers)
            try:
                raw = await asyncio.wait_for(response.aread(), timeout=ctx.remaining())
            except asyncio.TimeoutError:
                return result, PartialResponseError(
                    "batch deadline exceeded while reading response body",
                    operation.method,
                    url,
                )
            except httpx.HTTPError as exc:
                # Partial response: status and headers are set, body is not.
                return result, PartialResponseError(
                    f"cannot read response body: {exc}", operation.method, url
                )
        finally:
            await response.aclose()

        try:
            result.body = json.loads(raw)
        except ValueError as exc:
            return result, BodyParseError(
                f"response body is not valid JSON: {exc}", operation.method, url
            )
        return result, None


def _collect_headers(headers: httpx.Headers) -> List[Header]:
    """One entry per header name; repeated values are joined with commas."""
    grouped: Dict[str, List[str]] = {}
    for name, value in headers.multi_items():
        grouped.setdefault(name, []).append(value)
    return [Header(name=name, value=",".join(values)) for name, values in grouped.items()]
