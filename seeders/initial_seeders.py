from models import factory_session
from seeders.initial_ticket_types import initial_ticket_types


def initial_seeders():
    with factory_session() as session:
        initial_ticket_types(db=session, is_commit=True)
