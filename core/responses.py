from abc import ABCMeta, abstractmethod
from typing import Any, Optional, Union
from fastapi import HTTPException
from fastapi.responses import JSONResponse, Response

from core.exceptions import (
    ConcurrentModificationError,
    InsufficientStockError,
    InventoryError,
    NotFoundError,
)
from schemas.auth import AuthorizationStatusEnum


class HttpResponseAbstract(metaclass=ABCMeta):
    @abstractmethod
    def response(self) -> Union[JSONResponse, Response, None]:
        pass


class Ok(HttpResponseAbstract):
    status_code = 200

    def __init__(self, data: Optional[Any]) -> None:
        self.data = "" if data is None else data

    def response(self) -> JSONResponse:
        return JSONResponse(content=self.data, status_code=self.status_code)


class Created(Ok):
    status_code = 201


class NoContent(HttpResponseAbstract):
    def response(self) -> Response:
        return Response(status_code=204)


class ErrorResponse(HttpResponseAbstract):
    """
    Error body shared by every 4xx answer:
        {"message": ..., "code": ...}
    `code` is the machine readable InventoryError code, omitted when None.
    """

    status_code = 400
    default_message = "Bad Request"

    def __init__(
        self, message: Optional[str] = None, code: Optional[str] = None
    ) -> None:
        self.message = message or self.default_message
        self.code = code

    def response(self) -> JSONResponse:
        content = {"message": self.message}
        if self.code is not None:
            content["code"] = self.code
        return JSONResponse(content=content, status_code=self.status_code)


class BadRequest(ErrorResponse):
    pass


class Unauthorized(ErrorResponse):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ErrorResponse):
    status_code = 403
    default_message = "You don't have permissions to perform this action"


class NotFound(ErrorResponse):
    status_code = 404
    default_message = "Not Found"

    def __init__(
        self, message: Optional[str] = None, code: Optional[str] = "NOT_FOUND"
    ) -> None:
        super().__init__(message=message, code=code)


class Conflict(ErrorResponse):
    # insufficient vault/counter stock, or a write lost to a concurrent update
    status_code = 409
    default_message = "Conflict"


class InternalServerError(HttpResponseAbstract):
    def __init__(self, error: Optional[str] = None) -> None:
        self.error = error

    def response(self) -> JSONResponse:
        raise HTTPException(status_code=500, detail="Something wrong with server")


def common_response(res: HttpResponseAbstract):
    return res.response()


def inventory_error_response(e: InventoryError) -> JSONResponse:
    if isinstance(e, NotFoundError):
        return common_response(NotFound(message=e.message, code=e.code))
    if isinstance(e, (InsufficientStockError, ConcurrentModificationError)):
        return common_response(Conflict(message=e.message, code=e.code))
    return common_response(BadRequest(message=e.message, code=e.code))


def authorization_response(
    auth_status: AuthorizationStatusEnum,
) -> Optional[JSONResponse]:
    """Response for a failed permission check, None when it passed."""
    if auth_status == AuthorizationStatusEnum.UNAUTHORIZED:
        return common_response(Unauthorized())
    if auth_status == AuthorizationStatusEnum.FORBIDDEN:
        return common_response(Forbidden())
    return None
