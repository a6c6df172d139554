import pytest

from app.clients.wallet import CardanoKeyWallet, EvmKeyWallet
from app.core.errors import InvalidWalletAddress
from app.core.wallet_auth import (
    CardanoSignatureScheme,
    EvmSignatureScheme,
    build_challenge_message,
    generate_nonce,
    normalize_address,
    resolve_scheme,
    verify_signature,
)


class TestNonce:
    def test_nonce_is_256_bit_hex(self):
        nonce = generate_nonce()
        assert len(nonce) == 64
        int(nonce, 16)

    def test_short_nonce_request_falls_back_to_default(self):
        assert len(generate_nonce(4)) == 64

    def test_nonces_are_unique(self):
        assert len({generate_nonce() for _ in range(50)}) == 50

    def test_message_embeds_nonce(self):
        nonce = generate_nonce()
        message = build_challenge_message(nonce)
        assert message.endswith(nonce)
        assert message == build_challenge_message(nonce)


class TestAddressHandling:
    def test_evm_address_is_lowercased(self):
        address = "0x52908400098527886E0F7030069857D2E4169EE7"
        assert normalize_address(address) == address.lower()

    def test_cardano_address_resolves_cardano_scheme(self, cardano_wallet):
        address = cardano_wallet.request_accounts()
        assert isinstance(resolve_scheme(address), CardanoSignatureScheme)
        assert normalize_address(address) == address

    def test_evm_address_resolves_evm_scheme(self, evm_wallet):
        assert isinstance(resolve_scheme(evm_wallet.request_accounts()), EvmSignatureScheme)

    @pytest.mark.parametrize("address", ["", "   ", "0x1234", "not-a-wallet", "addr1notbech32"])
    def test_unsupported_address_is_rejected(self, address):
        with pytest.raises(InvalidWalletAddress):
            normalize_address(address)


class TestEvmSignatures:
    def test_valid_signature_verifies(self, evm_wallet):
        message = build_challenge_message(generate_nonce())
        signature = evm_wallet.sign_message(message)
        assert verify_signature(evm_wallet.request_accounts(), message, signature) is True

    def test_comparison_ignores_address_case(self, evm_wallet):
        message = build_challenge_message(generate_nonce())
        signature = evm_wallet.sign_message(message)
        assert verify_signature(evm_wallet.request_accounts().lower(), message, signature) is True

    def test_signature_from_other_wallet_fails(self, evm_wallet):
        other = EvmKeyWallet()
        message = build_challenge_message(generate_nonce())
        assert verify_signature(evm_wallet.request_accounts(), message, other.sign_message(message)) is False

    def test_signature_over_other_message_fails(self, evm_wallet):
        signature = evm_wallet.sign_message("something else")
        message = build_challenge_message(generate_nonce())
        assert verify_signature(evm_wallet.request_accounts(), message, signature) is False

    @pytest.mark.parametrize("signature", ["", "0x", "0xzz", "0x" + "00" * 65, "0x" + "ab" * 10, "garbage"])
    def test_malformed_signature_fails_closed(self, evm_wallet, signature):
        message = build_challenge_message(generate_nonce())
        assert verify_signature(evm_wallet.request_accounts(), message, signature) is False


class TestCardanoSignatures:
    def test_valid_signature_verifies(self, cardano_wallet):
        message = build_challenge_message(generate_nonce())
        assert verify_signature(
            cardano_wallet.request_accounts(),
            message,
            cardano_wallet.sign_message(message),
            cardano_wallet.public_key(),
        ) is True

    def test_missing_public_key_fails(self, cardano_wallet):
        message = build_challenge_message(generate_nonce())
        assert verify_signature(
            cardano_wallet.request_accounts(), message, cardano_wallet.sign_message(message)
        ) is False

    def test_key_of_other_wallet_fails(self, cardano_wallet):
        other = CardanoKeyWallet()
        message = build_challenge_message(generate_nonce())
        assert verify_signature(
            cardano_wallet.request_accounts(),
            message,
            other.sign_message(message),
            other.public_key(),
        ) is False

    def test_garbage_signature_fails_closed(self, cardano_wallet):
        message = build_challenge_message(generate_nonce())
        assert verify_signature(
            cardano_wallet.request_accounts(), message, "%%%not-hex%%%", cardano_wallet.public_key()
        ) is False


def test_unknown_address_never_verifies():
    assert verify_signature("bob", "message", "0x" + "11" * 65) is False
