import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from app.core.config import settings
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        # sessions are handed across the request threadpool
        return {"check_same_thread": False, "timeout": 30}
    return {"connect_timeout": 30}


# Create the SQLAlchemy engine
engine = create_engine(settings.DATABASE_URL,
                       connect_args=_connect_args(settings.DATABASE_URL),
                       pool_pre_ping=True,
                       pool_recycle=3600,
)

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# do not change the order of the code below
# Dependency that can be used in routes to get the session
def get_db() -> Session  |  HTTPException:
    db = SessionLocal()  # generate a new SessionLocal
    try:
        yield db
    except SQLAlchemyError:
        logger.exception("database error")
        db.rollback()
        raise HTTPException(status_code=500, detail="Query data error")
    finally:
        db.close()
