import os

# Settings are read at import time; configure the test environment first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENCODE_KEY"] = "test-encode-key-0123456789abcdef0123456789abcdef"
os.environ["SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["DISBURSEMENT_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"  # tests that need limits switch them on

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

from main import app
from app.clients.wallet import CardanoKeyWallet, EvmKeyWallet, login
from app.db.base import Base
from app.db.init_db import create_tables
from app.db.session import get_db
from app.models.courses import Course, Quiz, QuizQuestion
from app.models.users import User


@pytest.fixture
def engine():
    """In-memory SQLite database, fresh for every test"""
    test_engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite database for tests that use several connections at once"""
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    create_tables(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory) -> TestClient:
    """Create a test client for the FastAPI application"""

    def override_get_db() -> Generator:
        """Override database dependency for testing"""
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def evm_wallet() -> EvmKeyWallet:
    return EvmKeyWallet()


@pytest.fixture
def cardano_wallet() -> CardanoKeyWallet:
    return CardanoKeyWallet()


@pytest.fixture
def auth_headers(client, evm_wallet) -> dict:
    token = login(client, evm_wallet)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(db) -> User:
    user = User(wallet_address="0x52908400098527886e0f7030069857d2e4169ee7")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_course_with_quiz(
    session: Session,
    question_count: int = 5,
    passing_score: int = 70,
    reward_amount: float = 100.0,
    bonus_amount: float = 0.0,
) -> Quiz:
    """Course with one quiz; every question has options a-d and the correct option is "a"."""
    course = Course(title="Intro to Wallets", reward_amount=reward_amount, bonus_amount=bonus_amount)
    session.add(course)
    session.flush()
    quiz = Quiz(course_id=course.id, title="Final quiz", passing_score=passing_score)
    session.add(quiz)
    session.flush()
    for position in range(question_count):
        session.add(
            QuizQuestion(
                id=f"q{position + 1}",
                quiz_id=quiz.id,
                position=position,
                text=f"Question {position + 1}?",
                options=[{"id": option, "text": f"Option {option}"} for option in "abcd"],
                correct_option_id="a",
                explanation=f"Because of reason {position + 1}",
            )
        )
    session.commit()
    session.refresh(quiz)
    return quiz


def answers_with(correct: int, total: int = 5) -> dict:
    """Answer map for q1..q{total} with the first `correct` answers right."""
    return {f"q{i + 1}": ("a" if i < correct else "b") for i in range(total)}


@pytest.fixture
def quiz(db) -> Quiz:
    return make_course_with_quiz(db)
