from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine
from app.core.config import settings


def build_engine(url: str) -> Engine:
    if url.startswith('sqlite'):
        # sync endpoints run in the threadpool, so connections cross threads
        return create_engine(url, connect_args={'check_same_thread': False, 'timeout': 30})
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.DB_URL)


def get_session():
    with Session(engine) as session:
        yield session
