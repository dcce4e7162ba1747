"""Database engine and helpers.

The engine is owned by the application factory (see `main.create_app`)
and stored on `app.state.engine`; nothing in this module keeps a global
connection. Request handlers receive a `Session` through the
`get_session` dependency, one per request, drawn from the engine pool.
"""

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

# registers every table on SQLModel.metadata
from . import models  # noqa: F401


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create the SQLAlchemy engine for `url`.

    SQLite needs `check_same_thread=False` because FastAPI runs sync
    handlers in a threadpool.
    """
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=echo, connect_args=connect_args, pool_pre_ping=True)


def create_db_and_tables(engine: Engine):
    """Create database tables using SQLModel metadata.

    Intended for local development and tests; production deployments
    should rely on a proper migration tool (alembic) instead.
    """
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session bound to the application's engine and
    ensures it is closed when the request scope finishes. Objects stay
    loaded after commit so handlers can serialize them without a reload.
    """
    with Session(request.app.state.engine, expire_on_commit=False) as session:
        yield session
