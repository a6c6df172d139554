import pytest

from app.clients.wallet import EvmKeyWallet
from app.core.errors import AuthenticationFailed, ChallengeExpired, ChallengeNotFound
from app.models.auth import AuthSession
from app.models.users import User
from app.services import challenge_store
from app.services.wallet_login import get_or_create_user, login_with_signature, request_challenge


class TestLoginWithSignature:
    def test_valid_signature_creates_user_and_session(self, db, evm_wallet: EvmKeyWallet):
        address = evm_wallet.request_accounts()
        challenge = request_challenge(db, address)

        token, user = login_with_signature(db, address, evm_wallet.sign_message(challenge.message))

        assert token
        assert user.wallet_address == address.lower()
        assert db.query(AuthSession).count() == 1

    def test_replay_fails_with_challenge_not_found(self, db, evm_wallet: EvmKeyWallet):
        address = evm_wallet.request_accounts()
        signature = evm_wallet.sign_message(request_challenge(db, address).message)
        login_with_signature(db, address, signature)

        with pytest.raises(ChallengeNotFound):
            login_with_signature(db, address, signature)

    def test_expired_challenge_fails_even_with_valid_signature(self, db, evm_wallet, monkeypatch):
        address = evm_wallet.request_accounts()
        challenge = request_challenge(db, address)
        signature = evm_wallet.sign_message(challenge.message)
        later = challenge.expires_at + 1
        monkeypatch.setattr(challenge_store, "_now", lambda: later)

        with pytest.raises(ChallengeExpired):
            login_with_signature(db, address, signature)

    def test_signature_by_other_wallet(self, db, evm_wallet: EvmKeyWallet):
        address = evm_wallet.request_accounts()
        challenge = request_challenge(db, address)

        with pytest.raises(AuthenticationFailed):
            login_with_signature(db, address, EvmKeyWallet().sign_message(challenge.message))

        assert db.query(AuthSession).count() == 0
        assert db.query(User).count() == 0

    def test_checksum_and_lowercase_address_are_the_same_wallet(self, db, evm_wallet: EvmKeyWallet):
        address = evm_wallet.request_accounts()
        challenge = request_challenge(db, address.lower())

        _, user = login_with_signature(db, address, evm_wallet.sign_message(challenge.message))

        assert user.wallet_address == address.lower()


def test_get_or_create_user_is_stable(db):
    first = get_or_create_user(db, "0xab5801a7d398351b8be11c439e05c5b3259aec9b")
    second = get_or_create_user(db, "0xab5801a7d398351b8be11c439e05c5b3259aec9b")

    assert first.id == second.id
    assert db.query(User).count() == 1
