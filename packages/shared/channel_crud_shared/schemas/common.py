from typing import Any, Optional, List
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    loc: List[Any]
    msg: str


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int
    details: Optional[List[ErrorDetail]] = None


class ErrorResponse(BaseModel):
    error: ErrorBody
