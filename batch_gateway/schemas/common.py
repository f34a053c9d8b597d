from typing import Optional, List
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Error detail in the gateway error format."""
    message: str
    help: Optional[str] = None
    phrase: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response in the gateway error format."""
    errors: List[ErrorDetail]
