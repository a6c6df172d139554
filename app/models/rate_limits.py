from sqlalchemy import BigInteger, Column, Integer, String

from app.db.base import Base


class RateLimitBucket(Base):
    """Fixed-window request counter for one key (e.g. "auth:nonce:<ip>", "quiz_submit:<user id>").

    Timestamps are epoch seconds; a bucket past expires_at starts a new window on its next hit.
    """

    __tablename__ = "rate_limit_buckets"

    key = Column(String(255), primary_key=True)
    request_count = Column(Integer, nullable=False, default=0)
    window_start = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger, nullable=False, index=True)
