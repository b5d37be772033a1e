# stratify_api/schemas/common/common.py
from pydantic import BaseModel
from typing import Optional

class ErrorResponse(BaseModel):
    """Body of every non-2xx answer, rendered by the exception handlers."""
    success: bool = False
    data: None = None
    error: str
    kind: Optional[str] = None
    retry_after: Optional[int] = None
    detail: Optional[str] = None
