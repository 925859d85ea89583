from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    message: str
    code: str | None = None


class BadRequestResponse(ErrorResponse):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"message": "quantity must be positive", "code": "INVALID_QUANTITY"}
        }
    )


class ConflictResponse(ErrorResponse):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Not enough vault stock: have 3, need 5",
                "code": "INSUFFICIENT_STOCK",
            }
        }
    )


class NotFoundResponse(ErrorResponse):
    message: str = "Not Found"
    code: str | None = "NOT_FOUND"


class UnauthorizedResponse(ErrorResponse):
    message: str = "Unauthorized"


class ForbiddenResponse(ErrorResponse):
    message: str = "You don't have permissions to perform this action"


class ValidationErrorResponseDetail(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Validation error on request data.",
                "errors": [
                    {
                        "field": "price",
                        "message": "Input should be greater than or equal to 0",
                    },
                ],
            }
        },
    )

    message: str
    errors: list[ValidationErrorResponseDetail]


class InternalServerErrorResponse(BaseModel):
    detail: str
