import json
from typing import Optional

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from batch_gateway.core.exceptions import MalformedRequestError
from batch_gateway.schemas.batch import BatchPayload


def _format_size(size: int) -> str:
    if size % (1024 * 1024) == 0:
        return f"{size // (1024 * 1024)}MB"
    if size % 1024 == 0:
        return f"{size // 1024}KB"
    return f"{size} bytes"


def _validation_message(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    loc = [str(part) for part in error.get("loc", ())]
    field = ".".join(loc)

    if error.get("type") == "extra_forbidden":
        return f'Request body contains unknown field "{loc[-1] if loc else field}"'
    if error.get("type") == "missing":
        return f'Request body is missing the "{field}" field'
    return f'Request body contains an invalid value for the "{field}" field'


async def decode_batch_request(request: Request, max_body_bytes: int) -> BatchPayload:
    """
    Decode the inbound JSON body into a ``BatchPayload``.

    Every problem caused by the client raises ``MalformedRequestError`` with
    the HTTP status to answer with. Anything else is left to propagate.
    """
    content_type: Optional[str] = request.headers.get("content-type")
    if content_type:
        media_type = content_type.split(";", 1)[0].strip().lower()
        if media_type != "application/json":
            raise MalformedRequestError("Content-Type header is not application/json", 415)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_body_bytes:
            raise MalformedRequestError(
                f"Request body must not be larger than {_format_size(max_body_bytes)}", 413
            )

    try:
        text = body.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise MalformedRequestError(
            f"Request body contains badly-formed JSON (at position {exc.start})"
        )
    if not text:
        raise MalformedRequestError("Request body must not be empty")

    try:
        data, end = json.JSONDecoder().raw_decode(text)
    except json.JSONDecodeError as exc:
        raise MalformedRequestError(
            f"Request body contains badly-formed JSON (at position {exc.pos})"
        )
    if text[end:].strip():
        raise MalformedRequestError("Request body must only contain a single JSON object")
    if not isinstance(data, dict):
        raise MalformedRequestError("Request body must be a JSON object")

    try:
        return BatchPayload.model_validate(data)
    except PydanticValidationError as exc:
        raise MalformedRequestError(_validation_message(exc))
