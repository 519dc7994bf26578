from collections.abc import Generator
from typing import Any

from sqlalchemy.future import Engine
from sqlmodel import Session, SQLModel, create_engine

from ...config import settings


def _get_engine() -> Engine:
    database_url = settings.effective_database_url
    connect_args: dict[str, Any] = {}
    engine_kwargs: dict[str, int | bool] = {}

    # A stalled store call must fail instead of hanging the request
    if "sqlite" in database_url:
        connect_args["timeout"] = settings.db_timeout_seconds
        # FastAPI runs sync routes in a threadpool
        connect_args["check_same_thread"] = False
    elif "postgresql" in database_url:
        timeout_ms = int(settings.db_timeout_seconds * 1000)
        connect_args["options"] = f"-c statement_timeout={timeout_ms}"
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 10
        engine_kwargs["max_overflow"] = 20

    engine = create_engine(
        database_url,
        # echo=True,  # Enable for SQL debugging
        connect_args=connect_args,
        **engine_kwargs,
    )
    return engine


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


_engine: Engine | None = None


def get_main_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _get_engine()
    return _engine


def get_session() -> Generator[Session, None, None]:
    with Session(get_main_engine()) as session:
        yield session
