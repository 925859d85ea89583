"""Kiosk-scoped stock operations over the shared ticket type catalog.

A ticket type is one catalog record shared by every kiosk that stocks it; each
kiosk's split stock lives in ``amount[kiosk_id]`` and its opened flag in
``amount_is_opened[kiosk_id]``. All writes go through
:meth:`InventoryService._mutate`, which re-reads the row, applies the change and
commits under the ``version_id`` check, retrying lost races a bounded number of
times. Side effects (audit trail, stock notifications) are published once per
successful operation through a :class:`StockEventDispatcher`.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core.amount_codec import KioskStock, is_legacy_entry, read_kiosk_stock
from core.code_generator import generate_unique_code
from core.exceptions import (
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidArgumentError,
    InvalidQuantityError,
    NotFoundError,
)
from core.helper import get_current_time_in_timezone
from core.log import logger
from core.stock_events import (
    StockEvent,
    StockEventDispatcher,
    build_default_dispatcher,
    event_details,
)
from models import get_db_sync
from models.TicketType import TicketType
from repository import ticket_type as ticketTypeRepo
from schemas.auth import CurrentUser
from schemas.ticket_type import (
    TicketTypeCreate,
    TicketTypeKioskView,
    TicketTypeUpdate,
    ticket_type_view_from_model,
)
from settings import CODE_GENERATION_MAX_ATTEMPTS, STOCK_WRITE_MAX_ATTEMPTS, TZ

STOCK_DESTINATIONS = ("counter", "vault")

# fields update_ticket_type may write; price and code are fixed at creation
GLOBAL_FIELDS = (
    "name",
    "nickname",
    "min_threshold",
    "default_quantity_per_package",
    "is_active",
    "ticket_category",
    "color",
    "image_url",
)
NULLABLE_GLOBAL_FIELDS = ("nickname", "default_quantity_per_package", "color", "image_url")
IMMUTABLE_FIELDS = ("price", "code")


@dataclass
class StockChange:
    """What one read-modify-write did to a record, reported to subscribers."""

    kiosk_id: Optional[str] = None
    details: dict = field(default_factory=dict)
    counter_before: Optional[int] = None
    counter_after: Optional[int] = None
    changed: bool = True


Mutator = Callable[[TicketType], StockChange]


def _require_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer")
    return value


def _require_positive_int(value, name: str) -> int:
    value = _require_int(value, name)
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be a positive integer")
    return value


def _require_kiosk_id(kiosk_id) -> str:
    if not isinstance(kiosk_id, str) or not kiosk_id.strip():
        raise InvalidArgumentError("kiosk_id is required")
    return kiosk_id


def _with_entry(ticket_type: TicketType, kiosk_id: str, stock: KioskStock) -> dict:
    amount = dict(ticket_type.amount or {})
    amount[kiosk_id] = stock.to_raw()
    return amount


class InventoryService:
    def __init__(
        self, db: Session, dispatcher: Optional[StockEventDispatcher] = None
    ) -> None:
        self.db = db
        self.dispatcher = (
            dispatcher if dispatcher is not None else build_default_dispatcher()
        )

    # Reads

    def list_ticket_types(
        self,
        kiosk_id: Optional[str] = None,
        only_stocked: bool = False,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[TicketTypeKioskView]:
        ticket_types = ticketTypeRepo.get_ticket_types(
            db=self.db, is_active=is_active, search=search
        )
        if only_stocked:
            ticket_types = [
                t for t in ticket_types if read_kiosk_stock(t.amount, kiosk_id) is not None
            ]
        return [ticket_type_view_from_model(t, kiosk_id=kiosk_id) for t in ticket_types]

    def get_ticket_type(
        self, ticket_type_id, kiosk_id: Optional[str] = None
    ) -> Optional[TicketTypeKioskView]:
        ticket_type = ticketTypeRepo.get_ticket_type_by_id(db=self.db, id=ticket_type_id)
        if ticket_type is None:
            return None
        return ticket_type_view_from_model(ticket_type, kiosk_id=kiosk_id)

    # Catalog-wide writes

    def create_ticket_type(
        self, data: TicketTypeCreate, actor: Optional[CurrentUser] = None
    ) -> TicketTypeKioskView:
        if data.code:
            if ticketTypeRepo.get_ticket_type_by_code(db=self.db, code=data.code):
                raise InvalidArgumentError(f"Ticket code {data.code} already exists")
            code = data.code
        else:
            code = generate_unique_code(
                data.ticket_category,
                code_exists=lambda candidate: ticketTypeRepo.get_ticket_type_by_code(
                    db=self.db, code=candidate
                )
                is not None,
                max_attempts=CODE_GENERATION_MAX_ATTEMPTS,
            )

        amount, amount_is_opened = {}, {}
        seed = None
        if data.kiosk_id:
            seed = KioskStock(counter=data.quantity_counter, vault=data.quantity_vault)
            amount[data.kiosk_id] = seed.to_raw()
            amount_is_opened[data.kiosk_id] = data.is_opened

        try:
            ticket_type = ticketTypeRepo.insert_ticket_type(
                db=self.db,
                name=data.name,
                price=data.price,
                code=code,
                nickname=data.nickname,
                min_threshold=data.min_threshold,
                default_quantity_per_package=data.default_quantity_per_package,
                is_active=data.is_active,
                ticket_category=data.ticket_category,
                color=data.color,
                image_url=data.image_url,
                amount=amount,
                amount_is_opened=amount_is_opened,
            )
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to create ticket type with code {code}: {e}")
            raise InvalidArgumentError(f"Ticket code {code} already exists")

        change = StockChange(
            kiosk_id=data.kiosk_id,
            details=event_details(
                name=data.name,
                code=code,
                price=data.price,
                ticket_category=data.ticket_category,
                counter=seed.counter if seed else None,
                vault=seed.vault if seed else None,
            ),
        )
        if seed is not None and seed.counter > 0:
            change.counter_before, change.counter_after = 0, seed.counter
        self._publish(ticket_type, "create_ticket_type", change, actor)
        return ticket_type_view_from_model(ticket_type, kiosk_id=data.kiosk_id)

    def update_ticket_type(
        self,
        ticket_type_id,
        patch: TicketTypeUpdate,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        values = patch.model_dump(exclude_unset=True)
        ignored = [name for name in IMMUTABLE_FIELDS if values.pop(name, None) is not None]
        if ignored:
            logger.warning(
                f"Ignoring immutable fields {ignored} in update of ticket type {ticket_type_id}"
            )
        values = {
            key: value
            for key, value in values.items()
            if key in GLOBAL_FIELDS
            and (value is not None or key in NULLABLE_GLOBAL_FIELDS)
        }

        def apply(ticket_type: TicketType) -> StockChange:
            changed = {}
            for key, value in values.items():
                if getattr(ticket_type, key) != value:
                    setattr(ticket_type, key, value)
                    changed[key] = value
            details = {"fields": changed}
            if ignored:
                details["ignored"] = ignored
            return StockChange(details=details, changed=bool(changed))

        ticket_type, change = self._mutate(ticket_type_id, apply)
        self._publish(ticket_type, "update_ticket_type", change, actor)
        return ticket_type_view_from_model(ticket_type)

    def delete_ticket_type(
        self, ticket_type_id, actor: Optional[CurrentUser] = None
    ) -> None:
        ticket_type = self._get_for_write(ticket_type_id)
        event = StockEvent(
            action="delete_ticket_type",
            target_id=str(ticket_type.id),
            ticket_name=ticket_type.name,
            actor=actor,
            details=event_details(
                name=ticket_type.name,
                code=ticket_type.code,
                kiosks=sorted((ticket_type.amount or {}).keys()),
            ),
            threshold=ticket_type.min_threshold,
            occurred_at=get_current_time_in_timezone(TZ),
        )
        try:
            ticketTypeRepo.delete_ticket_type(db=self.db, ticket_type=ticket_type)
        except StaleDataError:
            self.db.rollback()
            logger.warning(f"Ticket type {ticket_type_id} changed during delete")
            raise ConcurrentModificationError(
                f"Ticket type {ticket_type_id} changed while being deleted"
            )
        self.dispatcher.publish(self.db, event)

    # Kiosk-scoped writes

    def update_kiosk_stock(
        self,
        ticket_type_id,
        kiosk_id: str,
        counter: Optional[int] = None,
        vault: Optional[int] = None,
        is_opened: Optional[bool] = None,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        kiosk_id = _require_kiosk_id(kiosk_id)
        if counter is not None:
            _require_int(counter, "counter")
        if vault is not None:
            _require_int(vault, "vault")
        if is_opened is not None and not isinstance(is_opened, bool):
            raise InvalidArgumentError("is_opened must be a boolean")

        def apply(ticket_type: TicketType) -> StockChange:
            current = read_kiosk_stock(ticket_type.amount, kiosk_id)
            before = current or KioskStock()
            after = before.replace(counter=counter, vault=vault)
            if after.counter < 0 or after.vault < 0:
                raise InvalidQuantityError(
                    f"Stock for kiosk {kiosk_id} cannot be negative "
                    f"(counter={after.counter}, vault={after.vault})"
                )
            ticket_type.amount = _with_entry(ticket_type, kiosk_id, after)
            opened = dict(ticket_type.amount_is_opened or {})
            if is_opened is not None:
                opened[kiosk_id] = is_opened
            elif kiosk_id not in opened:
                opened[kiosk_id] = False
            ticket_type.amount_is_opened = opened

            change = StockChange(
                kiosk_id=kiosk_id,
                details=event_details(
                    counter_before=before.counter,
                    vault_before=before.vault,
                    counter=after.counter,
                    vault=after.vault,
                    is_opened=is_opened,
                    new_entry=current is None,
                ),
            )
            if counter is not None:
                change.counter_before, change.counter_after = before.counter, after.counter
            return change

        return self._run_kiosk_write(ticket_type_id, kiosk_id, "update_kiosk_stock", apply, actor)

    def transfer_vault_to_counter(
        self,
        ticket_type_id,
        kiosk_id: str,
        quantity: int,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        kiosk_id = _require_kiosk_id(kiosk_id)
        quantity = _require_positive_int(quantity, "quantity")

        def apply(ticket_type: TicketType) -> StockChange:
            before = read_kiosk_stock(ticket_type.amount, kiosk_id) or KioskStock()
            if quantity > before.vault:
                raise InsufficientStockError(
                    f"Cannot transfer {quantity} from vault holding {before.vault}"
                )
            after = KioskStock(
                counter=before.counter + quantity, vault=before.vault - quantity
            )
            ticket_type.amount = _with_entry(ticket_type, kiosk_id, after)
            opened = dict(ticket_type.amount_is_opened or {})
            opened[kiosk_id] = False
            ticket_type.amount_is_opened = opened
            return StockChange(
                kiosk_id=kiosk_id,
                details={
                    "quantity": quantity,
                    "counter_before": before.counter,
                    "vault_before": before.vault,
                    "counter": after.counter,
                    "vault": after.vault,
                },
                counter_before=before.counter,
                counter_after=after.counter,
            )

        return self._run_kiosk_write(
            ticket_type_id, kiosk_id, "transfer_vault_to_counter", apply, actor
        )

    def add_packages(
        self,
        ticket_type_id,
        kiosk_id: str,
        destination: str,
        package_count: int,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        kiosk_id = _require_kiosk_id(kiosk_id)
        if destination not in STOCK_DESTINATIONS:
            raise InvalidArgumentError(
                f"destination must be one of {', '.join(STOCK_DESTINATIONS)}"
            )
        package_count = _require_positive_int(package_count, "package_count")

        def apply(ticket_type: TicketType) -> StockChange:
            current = read_kiosk_stock(ticket_type.amount, kiosk_id)
            before = current or KioskStock()
            units = package_count * (ticket_type.default_quantity_per_package or 1)
            if destination == "counter":
                after = before.replace(counter=before.counter + units)
            else:
                after = before.replace(vault=before.vault + units)
            ticket_type.amount = _with_entry(ticket_type, kiosk_id, after)
            opened = dict(ticket_type.amount_is_opened or {})
            opened.setdefault(kiosk_id, False)
            ticket_type.amount_is_opened = opened

            change = StockChange(
                kiosk_id=kiosk_id,
                details={
                    "destination": destination,
                    "package_count": package_count,
                    "units": units,
                    "counter": after.counter,
                    "vault": after.vault,
                },
            )
            if destination == "counter":
                change.counter_before, change.counter_after = before.counter, after.counter
            return change

        return self._run_kiosk_write(ticket_type_id, kiosk_id, "add_packages", apply, actor)

    def deduct_counter_stock(
        self,
        ticket_type_id,
        kiosk_id: str,
        quantity: int,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        kiosk_id = _require_kiosk_id(kiosk_id)
        quantity = _require_positive_int(quantity, "quantity")

        def apply(ticket_type: TicketType) -> StockChange:
            before = read_kiosk_stock(ticket_type.amount, kiosk_id) or KioskStock()
            if quantity > before.counter:
                raise InsufficientStockError(
                    f"Cannot sell {quantity} from counter holding {before.counter}"
                )
            after = before.replace(counter=before.counter - quantity)
            ticket_type.amount = _with_entry(ticket_type, kiosk_id, after)
            return StockChange(
                kiosk_id=kiosk_id,
                details={"quantity": quantity, "counter": after.counter},
                counter_before=before.counter,
                counter_after=after.counter,
            )

        return self._run_kiosk_write(
            ticket_type_id, kiosk_id, "deduct_counter_stock", apply, actor
        )

    def return_counter_stock(
        self,
        ticket_type_id,
        kiosk_id: str,
        quantity: int,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        kiosk_id = _require_kiosk_id(kiosk_id)
        quantity = _require_positive_int(quantity, "quantity")

        def apply(ticket_type: TicketType) -> StockChange:
            current = read_kiosk_stock(ticket_type.amount, kiosk_id)
            before = current or KioskStock()
            after = before.replace(counter=before.counter + quantity)
            ticket_type.amount = _with_entry(ticket_type, kiosk_id, after)
            opened = dict(ticket_type.amount_is_opened or {})
            opened.setdefault(kiosk_id, False)
            ticket_type.amount_is_opened = opened
            return StockChange(
                kiosk_id=kiosk_id,
                details={"quantity": quantity, "counter": after.counter},
                counter_before=before.counter,
                counter_after=after.counter,
            )

        return self._run_kiosk_write(
            ticket_type_id, kiosk_id, "return_counter_stock", apply, actor
        )

    def set_opened(
        self,
        ticket_type_id,
        kiosk_id: str,
        is_opened: bool,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        kiosk_id = _require_kiosk_id(kiosk_id)
        if not isinstance(is_opened, bool):
            raise InvalidArgumentError("is_opened must be a boolean")

        def apply(ticket_type: TicketType) -> StockChange:
            if read_kiosk_stock(ticket_type.amount, kiosk_id) is None:
                raise InvalidArgumentError(
                    f"Kiosk {kiosk_id} has no inventory for this ticket type"
                )
            opened = dict(ticket_type.amount_is_opened or {})
            previous = bool(opened.get(kiosk_id, False))
            opened[kiosk_id] = is_opened
            ticket_type.amount_is_opened = opened
            return StockChange(
                kiosk_id=kiosk_id,
                details={"is_opened": is_opened, "was_opened": previous},
                changed=previous != is_opened,
            )

        return self._run_kiosk_write(ticket_type_id, kiosk_id, "set_opened", apply, actor)

    def remove_kiosk_inventory(
        self,
        ticket_type_id,
        kiosk_id: str,
        actor: Optional[CurrentUser] = None,
    ) -> TicketTypeKioskView:
        kiosk_id = _require_kiosk_id(kiosk_id)

        def apply(ticket_type: TicketType) -> StockChange:
            had_entry = kiosk_id in (ticket_type.amount or {})
            had_flag = kiosk_id in (ticket_type.amount_is_opened or {})
            if had_entry:
                amount = dict(ticket_type.amount)
                removed = KioskStock.from_raw(amount.pop(kiosk_id))
                ticket_type.amount = amount
            if had_flag:
                opened = dict(ticket_type.amount_is_opened)
                opened.pop(kiosk_id)
                ticket_type.amount_is_opened = opened
            details = {"removed": had_entry}
            if had_entry:
                details.update(counter=removed.counter, vault=removed.vault)
            return StockChange(
                kiosk_id=kiosk_id, details=details, changed=had_entry or had_flag
            )

        return self._run_kiosk_write(
            ticket_type_id, kiosk_id, "remove_kiosk_inventory", apply, actor
        )

    def clear_kiosk_inventory(
        self, kiosk_id: str, actor: Optional[CurrentUser] = None
    ) -> int:
        """Remove one kiosk from every ticket type. Returns the records changed."""
        kiosk_id = _require_kiosk_id(kiosk_id)

        def apply(ticket_type: TicketType) -> StockChange:
            amount = dict(ticket_type.amount or {})
            opened = dict(ticket_type.amount_is_opened or {})
            had_entry = amount.pop(kiosk_id, None) is not None
            had_flag = opened.pop(kiosk_id, None) is not None
            if had_entry or had_flag:
                ticket_type.amount = amount
                ticket_type.amount_is_opened = opened
            return StockChange(kiosk_id=kiosk_id, changed=had_entry or had_flag)

        cleared = []
        for ticket_type in ticketTypeRepo.get_ticket_types(db=self.db):
            if kiosk_id not in (ticket_type.amount or {}) and kiosk_id not in (
                ticket_type.amount_is_opened or {}
            ):
                continue
            updated, change = self._mutate(ticket_type.id, apply)
            if change.changed:
                cleared.append(updated.code)

        logger.info(f"Cleared kiosk {kiosk_id} from {len(cleared)} ticket types")
        self.dispatcher.publish(
            self.db,
            StockEvent(
                action="clear_kiosk_inventory",
                target_id=kiosk_id,
                target_type="Kiosk",
                kiosk_id=kiosk_id,
                actor=actor,
                details={"ticket_types_updated": len(cleared), "codes": cleared},
                occurred_at=get_current_time_in_timezone(TZ),
            ),
        )
        return len(cleared)

    def migrate_legacy_amounts(self) -> int:
        """Rewrite ``"counter,vault"`` string entries into structured entries."""

        def apply(ticket_type: TicketType) -> StockChange:
            amount = dict(ticket_type.amount or {})
            legacy = [key for key, value in amount.items() if is_legacy_entry(value)]
            for key in legacy:
                amount[key] = KioskStock.from_raw(amount[key]).to_raw()
            opened = dict(ticket_type.amount_is_opened or {})
            missing = [key for key in amount if key not in opened]
            for key in missing:
                opened[key] = False
            if legacy:
                ticket_type.amount = amount
            if missing:
                ticket_type.amount_is_opened = opened
            return StockChange(changed=bool(legacy or missing))

        migrated = 0
        for ticket_type in ticketTypeRepo.get_ticket_types(db=self.db):
            _, change = self._mutate(ticket_type.id, apply)
            if change.changed:
                migrated += 1
        logger.info(f"Migrated legacy amounts on {migrated} ticket types")
        return migrated

    # Write boundary

    def _get_for_write(self, ticket_type_id) -> TicketType:
        ticket_type = ticketTypeRepo.get_ticket_type_by_id(
            db=self.db, id=ticket_type_id, refresh=True
        )
        if ticket_type is None:
            raise NotFoundError(f"Ticket type {ticket_type_id} not found")
        return ticket_type

    def _mutate(self, ticket_type_id, apply: Mutator) -> Tuple[TicketType, StockChange]:
        """Re-read, apply and commit one record under the version check.

        Business errors raised by ``apply`` roll back and propagate untouched.
        A lost race (``StaleDataError``) re-runs the whole read-modify-write.
        """
        for attempt in range(1, STOCK_WRITE_MAX_ATTEMPTS + 1):
            ticket_type = self._get_for_write(ticket_type_id)
            try:
                change = apply(ticket_type)
                if change.changed:
                    ticket_type.updated_date = get_current_time_in_timezone(TZ)
                    self.db.commit()
                    self.db.refresh(ticket_type)
                return ticket_type, change
            except StaleDataError:
                self.db.rollback()
                logger.warning(
                    f"Ticket type {ticket_type_id} changed concurrently "
                    f"(attempt {attempt}/{STOCK_WRITE_MAX_ATTEMPTS})"
                )
            except Exception:
                self.db.rollback()
                raise
        raise ConcurrentModificationError(
            f"Ticket type {ticket_type_id} kept changing, gave up after "
            f"{STOCK_WRITE_MAX_ATTEMPTS} attempts"
        )

    def _run_kiosk_write(
        self,
        ticket_type_id,
        kiosk_id: str,
        action: str,
        apply: Mutator,
        actor: Optional[CurrentUser],
    ) -> TicketTypeKioskView:
        ticket_type, change = self._mutate(ticket_type_id, apply)
        self._publish(ticket_type, action, change, actor)
        return ticket_type_view_from_model(ticket_type, kiosk_id=kiosk_id)

    def _publish(
        self,
        ticket_type: TicketType,
        action: str,
        change: StockChange,
        actor: Optional[CurrentUser],
    ) -> None:
        event = StockEvent(
            action=action,
            target_id=str(ticket_type.id),
            ticket_name=ticket_type.name,
            kiosk_id=change.kiosk_id,
            actor=actor,
            details=change.details,
            counter_before=change.counter_before,
            counter_after=change.counter_after,
            threshold=ticket_type.min_threshold,
            occurred_at=get_current_time_in_timezone(TZ),
        )
        self.dispatcher.publish(self.db, event)


def get_inventory_service(db: Session = Depends(get_db_sync)) -> InventoryService:
    return InventoryService(db=db)
