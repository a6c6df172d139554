from sqlalchemy import BigInteger, Column, String, Text

from app.db.base import Base


class AuthChallenge(Base):
    """Pending sign-in challenge, at most one per wallet address.

    Keyed by wallet address so issuing a new challenge replaces the previous one.
    Timestamps are epoch seconds.
    """

    __tablename__ = "auth_challenges"

    wallet_address = Column(String(255), primary_key=True)
    nonce = Column(String(128), nullable=False, unique=True)
    message = Column(Text, nullable=False)
    issued_at = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger, nullable=False)


class AuthSession(Base):
    """Bearer session bound to a verified wallet.

    `id` is the random session id embedded in the token (`sid` claim).
    """

    __tablename__ = "auth_sessions"

    id = Column(String(128), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    wallet_address = Column(String(255), nullable=False, index=True)
    issued_at = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger, nullable=False, index=True)
