# paytrack/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_TIMEOUT_SECONDS = 10


def build_engine(db_url: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> Engine:
    '''
    Create the engine behind a RecordStore.
    No module level engine is kept: the caller owns the returned object.

    :param db_url: SQLAlchemy database URL
    :param timeout_seconds: connect / lock wait timeout for a single round trip
    '''
    if not db_url:
        raise RuntimeError("DATABASE_URL not set")

    if db_url.startswith("sqlite"):
        kwargs = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": timeout_seconds,
            }
        }
        # 内存库必须共享同一个连接，否则每个 session 都是空库
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, **kwargs)

    return create_engine(
        db_url,
        pool_pre_ping=True,
        pool_timeout=timeout_seconds,
        connect_args={"connect_timeout": int(timeout_seconds)},
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )
