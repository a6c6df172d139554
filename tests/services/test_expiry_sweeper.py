import asyncio

from app.models.auth import AuthChallenge, AuthSession
from app.services import challenge_store, session_issuer
from app.services.challenge_store import issue_challenge
from app.services.expiry_sweeper import start_sweeper, sweep_once
from app.services.session_issuer import issue_session


def test_sweep_once_removes_expired_rows(db, session_factory, user, monkeypatch):
    issue_challenge(db, "0xab5801a7d398351b8be11c439e05c5b3259aec9b")
    issue_session(db, user)
    later = db.query(AuthSession).one().expires_at + 1
    monkeypatch.setattr(challenge_store, "_now", lambda: later)
    monkeypatch.setattr(session_issuer, "_now", lambda: later)

    assert sweep_once(session_factory) == 2
    assert db.query(AuthChallenge).count() == 0
    assert db.query(AuthSession).count() == 0


def test_sweep_once_keeps_live_rows(db, session_factory, user):
    issue_challenge(db, "0xab5801a7d398351b8be11c439e05c5b3259aec9b")
    issue_session(db, user)

    assert sweep_once(session_factory) == 0
    assert db.query(AuthChallenge).count() == 1


def test_zero_interval_disables_sweeper():
    async def start():
        return start_sweeper(0)

    assert asyncio.run(start()) is None
