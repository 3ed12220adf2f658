# Response envelope shared by every route:
# { success, message?, data?, errors?: [{field, message}], pagination? }

import math
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")

class FieldError(BaseModel):
    field: str
    message: str

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))

class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None
    errors: Optional[List[FieldError]] = None
    pagination: Optional[Pagination] = None

def success_response(
    message: Optional[str] = None,
    data: Optional[object] = None,
    pagination: Optional[Pagination] = None,
) -> ApiResponse:
    """
    Build a success envelope.
    Only the keys passed in are marked as set, so routes declared with
    response_model_exclude_unset leave the others out of the body.
    """
    fields = {"success": True}
    if message is not None:
        fields["message"] = message
    if data is not None:
        fields["data"] = data
    if pagination is not None:
        fields["pagination"] = pagination
    return ApiResponse(**fields)

def error_body(message: Optional[str] = None, errors: Optional[List[dict]] = None) -> dict:
    """Plain dict for JSONResponse bodies built outside the routers"""
    body = {"success": False}
    if message:
        body["message"] = message
    if errors is not None:
        body["errors"] = errors
    return body
