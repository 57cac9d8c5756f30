# barber_booking/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session

from .config import DATABASE_URL, DB_ECHO

logger = logging.getLogger(__name__)

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # required for SQLite + FastAPI
    connect_args = {"check_same_thread": False}

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=DB_ECHO,
    connect_args=connect_args,
)


def create_db_and_tables():
    # make sure every table model is registered on the metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ready")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
