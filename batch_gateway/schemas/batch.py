from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class Header(BaseModel):
    """A single header; duplicates are kept as separate entries."""
    model_config = ConfigDict(extra="forbid")

    name: str
    value: str


class Status(BaseModel):
    """Outcome of an executed operation."""
    code: str = ""
    code_int: int = Field(default=0, exclude=True)


class Operation(BaseModel):
    """One sub-request of a batch, or its result."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    method: str = Field(..., min_length=1, description="HTTP verb")
    path: str = Field(default="", description="Path appended to the gateway base path")
    headers: List[Header] = Field(default_factory=list)
    bulk_id: str = Field(default="", description="Caller supplied correlation token")
    body: Optional[Any] = None
    status: Status = Field(default_factory=Status)


class BatchPayload(BaseModel):
    """Batch request envelope, also used for the batch result."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    fail_on_errors: Optional[int] = Field(default=None, alias="failOnErrors", ge=0)
    operations: List[Operation] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        """Render the result envelope sent back to the caller."""
        return {
            "operations": [
                op.model_dump(mode="json", by_alias=True)
                for op in self.operations
            ]
        }
