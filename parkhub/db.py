from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy import create_engine, event
from .config import settings


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def sqlite_on_connect(dbapi_conn, _record) -> None:
    """SQLite ignores foreign keys unless asked per connection, and its
    built-in lower() only folds ASCII; replace it so case-insensitive matches
    agree with PostgreSQL."""
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


def _build_engine(url: str):
    is_sqlite = url.startswith("sqlite")
    kwargs = {"future": True, "pool_pre_ping": True}
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(pool_size=5, max_overflow=10, pool_recycle=3600)  # Recycle connections after 1 hour
    eng = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(eng, "connect", sqlite_on_connect)
    return eng


engine = _build_engine(settings.database_url)

# IMPORTANT: do not use scoped_session with async frameworks; create a fresh Session per request
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
