from typing import Optional

from fastapi import APIRouter, Depends

from core.exceptions import InventoryError
from core.inventory_service import InventoryService, get_inventory_service
from core.log import logger
from core.responses import (
    Created,
    InternalServerError,
    NoContent,
    NotFound,
    Ok,
    authorization_response,
    common_response,
    inventory_error_response,
)
from core.security import check_permissions, get_current_user
from schemas.auth import ADMIN_ROLE, USER_ROLES, CurrentUser
from schemas.common import (
    BadRequestResponse,
    ForbiddenResponse,
    InternalServerErrorResponse,
    NotFoundResponse,
    UnauthorizedResponse,
    ValidationErrorResponse,
)
from schemas.ticket_type import (
    TicketTypeCreate,
    TicketTypeKioskView,
    TicketTypeListResponse,
    TicketTypeQuery,
    TicketTypeUpdate,
)

router = APIRouter(prefix="/ticket-type", tags=["Ticket Type"])


@router.get(
    "/",
    responses={
        "200": {"model": TicketTypeListResponse},
        "401": {"model": UnauthorizedResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def list_ticket_types(
    query: TicketTypeQuery = Depends(),
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, USER_ROLES))
    if failed is not None:
        return failed
    try:
        results = service.list_ticket_types(
            kiosk_id=query.kiosk_id,
            only_stocked=query.only_stocked,
            is_active=query.is_active,
            search=query.search,
        )
        return common_response(
            Ok(data=TicketTypeListResponse(results=results).model_dump())
        )
    except Exception as e:
        logger.error(f"Error listing ticket types: {e}")
        return common_response(InternalServerError(error=str(e)))


@router.get(
    "/{ticket_type_id}",
    responses={
        "200": {"model": TicketTypeKioskView},
        "401": {"model": UnauthorizedResponse},
        "404": {"model": NotFoundResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def get_ticket_type(
    ticket_type_id: str,
    kiosk_id: Optional[str] = None,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, USER_ROLES))
    if failed is not None:
        return failed
    view = service.get_ticket_type(ticket_type_id, kiosk_id=kiosk_id)
    if view is None:
        return common_response(NotFound(message="Ticket type not found"))
    return common_response(Ok(data=view.model_dump()))


@router.post(
    "/",
    responses={
        "201": {"model": TicketTypeKioskView},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "422": {"model": ValidationErrorResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def create_ticket_type(
    request: TicketTypeCreate,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, (ADMIN_ROLE,)))
    if failed is not None:
        return failed
    try:
        view = service.create_ticket_type(request, actor=current_user)
        return common_response(Created(data=view.model_dump()))
    except InventoryError as e:
        logger.info(f"Create ticket type rejected: {e.message}")
        return inventory_error_response(e)
    except Exception as e:
        logger.error(f"Error creating ticket type: {e}")
        return common_response(InternalServerError(error=str(e)))


@router.put(
    "/{ticket_type_id}",
    responses={
        "200": {"model": TicketTypeKioskView},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def update_ticket_type(
    ticket_type_id: str,
    request: TicketTypeUpdate,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, (ADMIN_ROLE,)))
    if failed is not None:
        return failed
    try:
        view = service.update_ticket_type(ticket_type_id, request, actor=current_user)
        return common_response(Ok(data=view.model_dump()))
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception as e:
        logger.error(f"Error updating ticket type {ticket_type_id}: {e}")
        return common_response(InternalServerError(error=str(e)))


@router.delete(
    "/{ticket_type_id}",
    responses={
        "204": {"model": None},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def delete_ticket_type(
    ticket_type_id: str,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, (ADMIN_ROLE,)))
    if failed is not None:
        return failed
    try:
        service.delete_ticket_type(ticket_type_id, actor=current_user)
        return common_response(NoContent())
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception as e:
        logger.error(f"Error deleting ticket type {ticket_type_id}: {e}")
        return common_response(InternalServerError(error=str(e)))
