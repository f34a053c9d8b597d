from typing import Any

from fastapi import APIRouter, Depends, Request
import structlog

from batch_gateway.api.deps import get_batch_context, get_batch_executor
from batch_gateway.config import settings
from batch_gateway.core.batch import BatchExecutor
from batch_gateway.core.exceptions import (
    BatchAbortedError,
    MalformedRequestError,
    ServerError,
)
from batch_gateway.core.tracing import BatchContext
from batch_gateway.schemas.common import ErrorResponse
from batch_gateway.utils.request import decode_batch_request
from batch_gateway.utils.response import error_detail


logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def batch_request(
    request: Request,
    executor: BatchExecutor = Depends(get_batch_executor),
    ctx: BatchContext = Depends(get_batch_context),
) -> Any:
    """
    Execute multiple API requests in a single HTTP request.

    Operations are sent to the backing service one after the other, in the
    order given. Each result carries the status, headers and JSON body of its
    sub-response.

    When ``failOnErrors`` is set and that many operations fail, the remaining
    operations are skipped; the response then holds the results processed so
    far together with an ``errors`` entry describing the abort.
    """
    try:
        payload = await decode_batch_request(request, settings.MAX_REQUEST_BODY_BYTES)
    except MalformedRequestError:
        raise
    except Exception as exc:
        logger.error("Cannot decode batch request", error=str(exc))
        raise ServerError(phrase="decode_error") from exc

    try:
        result = await executor.process(payload, ctx)
    except BatchAbortedError as exc:
        response = exc.result.to_wire()
        response["errors"] = [error_detail(exc.message, exc.help_text, exc.phrase)]
        return response

    return result.to_wire()
