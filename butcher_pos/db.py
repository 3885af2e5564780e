from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from pathlib import Path

from .config import settings

DB_URL = settings.db_url
if DB_URL.startswith("sqlite:///./data/"):
    Path("data").mkdir(exist_ok=True)

# SQLite needs check_same_thread off for the API worker threads
engine = create_engine(DB_URL, connect_args={"check_same_thread": False} if DB_URL.startswith("sqlite") else {})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    # Register tables on Base.metadata
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
