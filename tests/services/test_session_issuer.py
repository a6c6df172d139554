import jwt
import pytest

from app.core.config import settings
from app.core.errors import InvalidSession, SessionExpired
from app.models.auth import AuthSession
from app.services import session_issuer
from app.services.session_issuer import (
    authenticate,
    issue_session,
    revoke,
    sweep_expired_sessions,
)


class TestIssueAndAuthenticate:
    def test_token_resolves_to_wallet(self, db, user):
        token = issue_session(db, user)

        identity = authenticate(db, token)

        assert identity.wallet_address == user.wallet_address
        assert identity.user_id == user.id
        assert db.query(AuthSession).count() == 1

    def test_session_id_has_at_least_128_bits(self, db, user):
        token = issue_session(db, user)
        sid = jwt.decode(token, options={"verify_signature": False})["sid"]
        # token_urlsafe(32) -> 43 chars of 6 bits each
        assert len(sid) >= 43

    def test_two_logins_get_distinct_sessions(self, db, user):
        assert issue_session(db, user) != issue_session(db, user)
        assert db.query(AuthSession).count() == 2

    def test_use_does_not_extend_expiry(self, db, user):
        token = issue_session(db, user)
        before = authenticate(db, token).expires_at
        authenticate(db, token)
        assert db.query(AuthSession).one().expires_at == before

    def test_expired_session_is_rejected(self, db, user, monkeypatch):
        token = issue_session(db, user)
        expires_at = db.query(AuthSession).one().expires_at
        monkeypatch.setattr(session_issuer, "_now", lambda: expires_at)

        with pytest.raises(SessionExpired):
            authenticate(db, token)

    def test_expired_jwt_is_rejected(self, db, user):
        payload = {"wallet_address": user.wallet_address, "sid": "x", "iat": 1, "exp": 2}
        token = jwt.encode(payload, settings.ENCODE_KEY, algorithm=settings.ENCODE_ALGORITHM)

        with pytest.raises(SessionExpired):
            authenticate(db, token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token_is_rejected(self, db, token):
        with pytest.raises(InvalidSession):
            authenticate(db, token)

    def test_forged_token_is_rejected(self, db, user):
        token = issue_session(db, user)
        sid = jwt.decode(token, options={"verify_signature": False})["sid"]
        forged = jwt.encode(
            {"wallet_address": user.wallet_address, "sid": sid, "exp": 9999999999},
            "another-key-0123456789abcdef0123456789",
            algorithm="HS256",
        )

        with pytest.raises(InvalidSession):
            authenticate(db, forged)


class TestRevoke:
    def test_revoked_token_is_rejected(self, db, user):
        token = issue_session(db, user)

        revoke(db, token)

        with pytest.raises(InvalidSession):
            authenticate(db, token)
        assert db.query(AuthSession).count() == 0

    def test_revoke_is_idempotent(self, db, user):
        token = issue_session(db, user)
        revoke(db, token)
        revoke(db, token)
        revoke(db, "not-a-token")

    def test_revoke_only_affects_that_session(self, db, user):
        first = issue_session(db, user)
        second = issue_session(db, user)

        revoke(db, first)

        assert authenticate(db, second).user_id == user.id


def test_sweep_removes_expired_sessions(db, user, monkeypatch):
    issue_session(db, user)
    expires_at = db.query(AuthSession).one().expires_at
    monkeypatch.setattr(session_issuer, "_now", lambda: expires_at + 1)

    assert sweep_expired_sessions(db) == 1
    assert db.query(AuthSession).count() == 0
