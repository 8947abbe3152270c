from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from backend.app.core.config import settings

DATABASE_URL = settings.database_url


def build_engine(url: str = DATABASE_URL, echo: bool = settings.sql_echo):
    engine_kwargs = dict(pool_pre_ping=True, echo=echo)
    if make_url(url).get_backend_name().startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **engine_kwargs)


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
