from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from app.db.base import Base, new_id
from app.models.users import utcnow

REWARD_COURSE_COMPLETION = "course_completion"
REWARD_QUIZ_BONUS = "quiz_bonus"
REWARD_REFERRAL = "referral"
REWARD_TYPES = (REWARD_COURSE_COMPLETION, REWARD_QUIZ_BONUS, REWARD_REFERRAL)

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_FAILED = "failed"
REWARD_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_FAILED)


def _one_of(column: str, values: tuple) -> str:
    return f"{column} IN (" + ", ".join(f"'{value}'" for value in values) + ")"


class Reward(Base):
    """Token reward for a qualifying event.

    The unique key makes (user, course, type) grants idempotent at the storage layer.
    Referral rewards have no course, and NULLs never collide.
    """

    __tablename__ = "rewards"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", "type", name="uq_reward_user_course_type"),
        CheckConstraint(_one_of("type", REWARD_TYPES), name="ck_reward_type"),
        CheckConstraint(_one_of("status", REWARD_STATUSES), name="ck_reward_status"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=True)
    type = Column(String(32), nullable=False)
    amount = Column(Float, nullable=False)
    status = Column(String(16), nullable=False, default=STATUS_PENDING)
    tx_hash = Column(String(128), nullable=True)
    failure_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_certificate_user_course"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    quiz_attempt_id = Column(String(36), ForeignKey("quiz_attempts.id"), nullable=True)
    score = Column(Integer, nullable=True)
    verification_code = Column(String(32), nullable=False, unique=True)
    tx_hash = Column(String(128), nullable=True)
    issued_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
