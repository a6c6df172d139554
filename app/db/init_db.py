from sqlalchemy.engine import Engine

from app.db.base import Base

# imported for their side effect of registering tables on Base.metadata
import app.models.auth  # noqa: F401
import app.models.courses  # noqa: F401
import app.models.rate_limits  # noqa: F401
import app.models.rewards  # noqa: F401
import app.models.users  # noqa: F401


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
