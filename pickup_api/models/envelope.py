from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """
    Success envelope returned by every operation.
    """

    success: bool = True
    message: str
    data: Optional[DataT] = None


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


# OpenAPI documentation for the error envelope produced by the application
# error handler in function_app.py.
ERROR_RESPONSES = {
    400: {"description": "Invalid identifier, role or field combination", "model": ErrorResponse},
    404: {"description": "Pickup location or user not found", "model": ErrorResponse},
    409: {"description": "Email, admin or location already taken", "model": ErrorResponse},
    500: {"description": "Database error", "model": ErrorResponse},
}
