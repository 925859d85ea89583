from typing import Callable, Optional

from fastapi import APIRouter, Depends

from core.exceptions import InventoryError
from core.inventory_service import InventoryService, get_inventory_service
from core.log import logger
from core.responses import (
    InternalServerError,
    Ok,
    authorization_response,
    common_response,
    inventory_error_response,
)
from core.security import check_kiosk_access, check_permissions, get_current_user
from schemas.auth import ADMIN_ROLE, CurrentUser
from schemas.common import (
    BadRequestResponse,
    ConflictResponse,
    ForbiddenResponse,
    InternalServerErrorResponse,
    NotFoundResponse,
    UnauthorizedResponse,
)
from schemas.inventory import (
    AddPackagesRequest,
    ClearKioskResponse,
    KioskStockUpdateRequest,
    OpenedFlagRequest,
    StockQuantityRequest,
)
from schemas.ticket_type import TicketTypeKioskView, TicketTypeListResponse

router = APIRouter(prefix="/inventory", tags=["Inventory"])

STOCK_WRITE_RESPONSES = {
    "200": {"model": TicketTypeKioskView},
    "400": {"model": BadRequestResponse},
    "401": {"model": UnauthorizedResponse},
    "403": {"model": ForbiddenResponse},
    "404": {"model": NotFoundResponse},
    "409": {"model": ConflictResponse},
    "500": {"model": InternalServerErrorResponse},
}


def _run_stock_write(
    kiosk_id: str,
    current_user: Optional[CurrentUser],
    operation: Callable[[], TicketTypeKioskView],
    description: str,
):
    failed = authorization_response(check_kiosk_access(current_user, kiosk_id))
    if failed is not None:
        return failed
    try:
        view = operation()
        return common_response(Ok(data=view.model_dump()))
    except InventoryError as e:
        logger.info(f"{description} rejected at kiosk {kiosk_id}: {e.message}")
        return inventory_error_response(e)
    except Exception as e:
        logger.error(f"Error on {description} at kiosk {kiosk_id}: {e}")
        return common_response(InternalServerError(error=str(e)))


@router.get(
    "/{kiosk_id}/",
    responses={
        "200": {"model": TicketTypeListResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
    },
)
def list_kiosk_inventory(
    kiosk_id: str,
    is_active: Optional[bool] = None,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_kiosk_access(current_user, kiosk_id))
    if failed is not None:
        return failed
    results = service.list_ticket_types(
        kiosk_id=kiosk_id, only_stocked=True, is_active=is_active
    )
    return common_response(Ok(data=TicketTypeListResponse(results=results).model_dump()))


@router.put("/{kiosk_id}/{ticket_type_id}", responses=STOCK_WRITE_RESPONSES)
def update_kiosk_stock(
    kiosk_id: str,
    ticket_type_id: str,
    request: KioskStockUpdateRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    return _run_stock_write(
        kiosk_id,
        current_user,
        lambda: service.update_kiosk_stock(
            ticket_type_id,
            kiosk_id,
            counter=request.counter,
            vault=request.vault,
            is_opened=request.is_opened,
            actor=current_user,
        ),
        "stock update",
    )


@router.post("/{kiosk_id}/{ticket_type_id}/transfer", responses=STOCK_WRITE_RESPONSES)
def transfer_vault_to_counter(
    kiosk_id: str,
    ticket_type_id: str,
    request: StockQuantityRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    return _run_stock_write(
        kiosk_id,
        current_user,
        lambda: service.transfer_vault_to_counter(
            ticket_type_id, kiosk_id, request.quantity, actor=current_user
        ),
        "vault transfer",
    )


@router.post("/{kiosk_id}/{ticket_type_id}/packages", responses=STOCK_WRITE_RESPONSES)
def add_packages(
    kiosk_id: str,
    ticket_type_id: str,
    request: AddPackagesRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    return _run_stock_write(
        kiosk_id,
        current_user,
        lambda: service.add_packages(
            ticket_type_id,
            kiosk_id,
            request.destination,
            request.package_count,
            actor=current_user,
        ),
        "package entry",
    )


@router.post("/{kiosk_id}/{ticket_type_id}/deduct", responses=STOCK_WRITE_RESPONSES)
def deduct_counter_stock(
    kiosk_id: str,
    ticket_type_id: str,
    request: StockQuantityRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    return _run_stock_write(
        kiosk_id,
        current_user,
        lambda: service.deduct_counter_stock(
            ticket_type_id, kiosk_id, request.quantity, actor=current_user
        ),
        "sale deduction",
    )


@router.post("/{kiosk_id}/{ticket_type_id}/return", responses=STOCK_WRITE_RESPONSES)
def return_counter_stock(
    kiosk_id: str,
    ticket_type_id: str,
    request: StockQuantityRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    return _run_stock_write(
        kiosk_id,
        current_user,
        lambda: service.return_counter_stock(
            ticket_type_id, kiosk_id, request.quantity, actor=current_user
        ),
        "sale return",
    )


@router.put("/{kiosk_id}/{ticket_type_id}/opened", responses=STOCK_WRITE_RESPONSES)
def set_opened(
    kiosk_id: str,
    ticket_type_id: str,
    request: OpenedFlagRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    return _run_stock_write(
        kiosk_id,
        current_user,
        lambda: service.set_opened(
            ticket_type_id, kiosk_id, request.is_opened, actor=current_user
        ),
        "opened flag update",
    )


@router.delete("/{kiosk_id}/{ticket_type_id}", responses=STOCK_WRITE_RESPONSES)
def remove_kiosk_inventory(
    kiosk_id: str,
    ticket_type_id: str,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    return _run_stock_write(
        kiosk_id,
        current_user,
        lambda: service.remove_kiosk_inventory(
            ticket_type_id, kiosk_id, actor=current_user
        ),
        "inventory removal",
    )


@router.delete(
    "/{kiosk_id}/",
    responses={
        "200": {"model": ClearKioskResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def clear_kiosk_inventory(
    kiosk_id: str,
    service: InventoryService = Depends(get_inventory_service),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, (ADMIN_ROLE,)))
    if failed is not None:
        return failed
    try:
        updated = service.clear_kiosk_inventory(kiosk_id, actor=current_user)
        return common_response(
            Ok(
                data=ClearKioskResponse(
                    kiosk_id=kiosk_id,
                    ticket_types_updated=updated,
                    message=f"Removed kiosk {kiosk_id} from {updated} ticket types",
                ).model_dump()
            )
        )
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception as e:
        logger.error(f"Error clearing kiosk {kiosk_id}: {e}")
        return common_response(InternalServerError(error=str(e)))
