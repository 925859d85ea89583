from sqlalchemy import create_engine, MetaData
from sqlalchemy.orm import (
    sessionmaker,
    DeclarativeBase,
    scoped_session,
    Session as SqlalchemySession,
)
from sqlalchemy.pool import StaticPool


from settings import DATABASE_ECHO, DATABASE_SCHEMA, DATABASE_URL, IS_SQLITE


if IS_SQLITE:
    # a single shared connection keeps in-memory databases alive across sessions
    engine = create_engine(
        DATABASE_URL,
        echo=DATABASE_ECHO,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        echo=DATABASE_ECHO,
        pool_size=20,
        max_overflow=0,
        pool_timeout=300,
    )
db = sessionmaker(engine, future=True)
factory_session = scoped_session(db)


def get_db_sync():
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_db_sync_for_test(db: SqlalchemySession):
    def inner():
        yield db

    return inner


"""SQLAlchemy doesn't default to any schema, and PostgreSQL expects it.
    This ensures all models are created in the `public` schema.
    SQLite has no schemas, so DATABASE_SCHEMA is None there.
"""


class Base(DeclarativeBase):
    metadata = MetaData(schema=DATABASE_SCHEMA)


# define all model for alembic migration
from models.TicketType import TicketType  # NOQA
from models.Notification import Notification  # NOQA
from models.AuditLog import AuditLog  # NOQA
