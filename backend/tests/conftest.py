from collections.abc import Callable, Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

from cineverse import models  # noqa: F401

from .fixtures.factories import *
from .fixtures.providers import *


@pytest.fixture(scope="session")
def test_engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs behave.
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection):
        connection.exec_driver_sql("BEGIN")

    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_connection(test_engine: Engine) -> Generator[Connection, None, None]:
    connection = test_engine.connect()
    transaction = connection.begin()

    yield connection

    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def session_factory(db_connection: Connection) -> Callable[[], Session]:
    """New sessions on the test connection; their commits become savepoints."""

    def factory() -> Session:
        return Session(
            bind=db_connection,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )

    return factory


@pytest.fixture(scope="function")
def db_transaction(
    session_factory: Callable[[], Session],
) -> Generator[Session, None, None]:
    session = session_factory()

    yield session

    session.close()
