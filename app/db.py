import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import DATABASE_URL


def _connect_args(url):
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(DATABASE_URL, connect_args=_connect_args(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_database(bind=None):
    """Create the SQLite data directory if needed and all tables."""
    bind = bind or engine
    url = bind.url
    if url.get_backend_name() == "sqlite" and url.database:
        directory = os.path.dirname(url.database)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

    # Models register themselves on Base.metadata when imported
    from app.models import booking, conversation, equipment, favorite, user  # noqa: F401
    Base.metadata.create_all(bind=bind)


def get_db():
    """Provide a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
