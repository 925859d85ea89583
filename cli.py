from typing import Optional

import typer

app = typer.Typer()


@app.command()
def seed_pais_tickets():
    from models import factory_session
    from seeders.initial_ticket_types import initial_ticket_types

    with factory_session() as db:
        created = initial_ticket_types(db=db, is_commit=True)
    print(f"Pais tickets created: {created}")


@app.command()
def initial_data():
    from seeders.initial_seeders import initial_seeders

    initial_seeders()


@app.command()
def clear_kiosk_inventory(
    kiosk_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Remove one kiosk's stock from every ticket type."""
    from core.inventory_service import InventoryService
    from models import factory_session

    if not yes:
        typer.confirm(
            f"Remove all inventory of kiosk {kiosk_id} from every ticket type?",
            abort=True,
        )
    with factory_session() as db:
        updated = InventoryService(db=db).clear_kiosk_inventory(kiosk_id)
    print(f"Removed kiosk {kiosk_id} from {updated} ticket types")


@app.command()
def migrate_legacy_amounts():
    from core.inventory_service import InventoryService
    from models import factory_session

    with factory_session() as db:
        migrated = InventoryService(db=db).migrate_legacy_amounts()
    print(f"Ticket types migrated: {migrated}")


@app.command()
def generate_token(
    user_id: str,
    name: Optional[str] = None,
    role: str = typer.Option("seller", help="admin, owner or seller"),
    kiosk_id: Optional[str] = None,
):
    from core.security import generate_token as encode_token
    from schemas.auth import USER_ROLES, CurrentUser

    if role not in USER_ROLES:
        raise typer.BadParameter(f"role must be one of {', '.join(USER_ROLES)}")
    print(encode_token(CurrentUser(id=user_id, name=name, role=role, kiosk_id=kiosk_id)))


if __name__ == "__main__":
    app()
