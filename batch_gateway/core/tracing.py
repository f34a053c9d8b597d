"""
Call context shared by every operation of one batch.

A ``BatchContext`` carries the deadline of the whole batch and the values
bound by the inbound request. Trace hooks receive it together with the
outgoing headers of each sub-request.
"""
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

import httpx


# Inbound headers forwarded to every sub-request by the default hook.
TRACE_HEADERS = ("traceparent", "tracestate", "x-request-id")


@dataclass(frozen=True)
class BatchContext:
    deadline: Optional[float] = None  # time.monotonic() based
    values: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def with_timeout(
        cls, seconds: Optional[float], values: Optional[Dict[str, str]] = None
    ) -> "BatchContext":
        deadline = time.monotonic() + seconds if seconds is not None else None
        return cls(deadline=deadline, values=dict(values or {}))

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline


TraceHook = Callable[[BatchContext, httpx.Headers], None]


def propagate_trace_headers(ctx: BatchContext, headers: httpx.Headers) -> None:
    """Copy inbound trace headers onto a sub-request unless it sets its own."""
    for name in TRACE_HEADERS:
        value = ctx.values.get(name)
        if value and name not in headers:
            headers[name] = value
