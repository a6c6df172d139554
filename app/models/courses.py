from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, new_id
from app.models.users import utcnow


class Course(Base):
    """Course catalog entry; only the fields the reward pipeline reads live here."""

    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    reward_amount = Column(Float, nullable=False, default=0.0)
    bonus_amount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    title = Column(Text, nullable=False, default="")
    passing_score = Column(Integer, nullable=False, default=70)

    course = relationship("Course")
    questions = relationship(
        "QuizQuestion",
        order_by="QuizQuestion.position",
        cascade="all, delete-orphan",
    )


class QuizQuestion(Base):
    """One question of a quiz.

    options: [{"id": "a", "text": "..."}, ...]
    """

    __tablename__ = "quiz_questions"

    id = Column(String(36), primary_key=True, default=new_id)
    quiz_id = Column(String(36), ForeignKey("quizzes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False, default=list)
    correct_option_id = Column(String(64), nullable=False)
    explanation = Column(Text, nullable=True)


class QuizAttempt(Base):
    """One graded submission. Never updated after insert."""

    __tablename__ = "quiz_attempts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(String(36), ForeignKey("quizzes.id"), nullable=False, index=True)
    answers = Column(JSON, nullable=False)
    score = Column(Integer, nullable=False)
    correct_count = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    status = Column(String(16), nullable=False, default="active")  # active, completed
    progress = Column(Integer, nullable=False, default=0)
    enrolled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    course = relationship("Course")
