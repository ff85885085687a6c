"""
Database engine and sessions (SQLAlchemy)

API-процесс берёт session factory из кэша (get_session_factory),
worker собирает свою явно через create_session_factory(settings).
"""
from functools import lru_cache
from typing import Iterator, Optional

import psycopg
from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from app.config import Settings, get_settings


class Base(DeclarativeBase):
    """Declarative base для budgets и processed_transactions"""
    pass


def create_session_factory(settings: Settings) -> sessionmaker:
    """Новый engine (pool_pre_ping) и session factory поверх него"""
    engine = create_engine(settings.get_sqlalchemy_url(), pool_pre_ping=True)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@lru_cache
def get_session_factory() -> sessionmaker:
    return create_session_factory(get_settings())


def get_db() -> Iterator[Session]:
    """
    Dependency для FastAPI: одна session на запрос, закрывается после ответа

    Usage:
        @router.get("/")
        def get_budgets(db: Session = Depends(get_db)):
            ...
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def ping(session_factory: sessionmaker) -> None:
    """
    SELECT 1 через ORM session

    Raises:
        sqlalchemy.exc.OperationalError: БД недоступна
    """
    with session_factory() as db:
        db.execute(text("SELECT 1"))


def check_db_connection(settings: Optional[Settings] = None) -> None:
    """
    Readiness probe - прямое соединение psycopg в обход пула

    Raises:
        psycopg.OperationalError: БД недоступна
    """
    settings = settings or get_settings()
    with psycopg.connect(settings.DATABASE_URL, connect_timeout=3) as conn:
        conn.execute("SELECT 1").fetchone()
