from typing import Any, Dict, Optional

from batch_gateway.core.exceptions import BatchAPIException


def error_detail(
    message: str,
    help_text: Optional[str] = None,
    phrase: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a single error entry in the gateway format."""
    return {
        "message": message,
        "help": help_text or "Please check your request and try again.",
        "phrase": phrase or "error",
    }


def error_response(
    message: str,
    help_text: Optional[str] = None,
    phrase: Optional[str] = None,
) -> Dict[str, Any]:
    """Create an error response in the gateway format."""
    return {"errors": [error_detail(message, help_text, phrase)]}


def exception_response(exc: BatchAPIException) -> Dict[str, Any]:
    """Render an API exception as an error response."""
    return error_response(exc.message, exc.help_text, exc.phrase)
