"""
Database Configuration
======================

This module sets up:
1. make_engine() / engine (connection pool for DATABASE_URL)
2. SessionLocal (database session factory)
3. Base (declarative base for models)

The engine is only used when STORAGE_BACKEND is "database"; creating it does
not open a connection.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront import config


def make_engine(url: str, **kwargs):
    """
    Create an engine for ``url``.

    - pool_pre_ping=True
      Tests connections before using them, so a restarted database does not
      surface as "connection lost" errors.

    - connect_args={"check_same_thread": False}
      Only for SQLite: FastAPI may run sync handlers on different threads.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        url,
        pool_pre_ping=True,
        echo=False,  # Set to True to see SQL queries in logs
        connect_args=connect_args,
        **kwargs,
    )


def make_session_factory(bind):
    # autocommit=False: nothing is written until crud calls commit()
    # autoflush=False: crud decides when pending changes reach the database
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(config.DATABASE_URL)

SessionLocal = make_session_factory(engine)

# All ORM models inherit from this; Base.metadata.create_all() builds the tables
Base = declarative_base()
