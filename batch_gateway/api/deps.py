from fastapi import Request

from batch_gateway.config import settings
from batch_gateway.core.batch import BatchExecutor
from batch_gateway.core.tracing import (
    TRACE_HEADERS,
    BatchContext,
    propagate_trace_headers,
)


def get_batch_executor() -> BatchExecutor:
    """Dependency to get an executor bound to the configured backing service."""
    executor = BatchExecutor(
        settings.BATCH_BASE_PATH,
        max_operations=settings.BATCH_MAX_OPERATIONS,
    )
    return executor.with_trace(propagate_trace_headers)


def get_batch_context(request: Request) -> BatchContext:
    """Dependency to get the call context of one inbound batch request."""
    values = {
        name: request.headers[name]
        for name in TRACE_HEADERS
        if name in request.headers
    }
    return BatchContext.with_timeout(settings.BATCH_TIMEOUT_SECONDS, values)
