"""
Wallet Signature Utilities

This module handles the cryptographic side of wallet authentication: nonce generation,
the challenge message template, and signature verification for every supported wallet family.

Authentication Flow:
1. Backend generates a random nonce and a message embedding it -> generate_nonce(), build_challenge_message()
2. Frontend signs the message with the wallet
3. Frontend sends: address, signature (and public key for Cardano wallets)
4. Backend verifies: verify_signature()
   - EVM: recovers the signer from the EIP-191 signature and compares it to the address
   - Cardano: verifies the ED25519 signature and that the public key hashes to the address

Each wallet family is a SignatureScheme. Callers never branch on the family themselves;
resolve_scheme() picks the scheme whose supports() accepts the address.
"""

import base64
import binascii
import logging
import re
import secrets
from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from eth_account import Account
from eth_account.messages import encode_defunct
from pycardano import Address
from pycardano.key import VerificationKey

from app.core.config import settings
from app.core.errors import InvalidWalletAddress

logger = logging.getLogger(__name__)

NONCE_NUM_BYTES = 32  # 32 bytes = 64 hex characters

_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    """
    Generate a cryptographically secure random nonce for wallet authentication.

    Args:
        num_bytes: Number of random bytes to generate (default: 32 = 64 hex chars).
            Values below 16 (128 bits) fall back to the default.

    Returns:
        Hex-encoded random string (e.g., "a1b2c3d4...")
    """
    if num_bytes < 16:
        num_bytes = NONCE_NUM_BYTES
    return secrets.token_hex(num_bytes)


def build_challenge_message(nonce: str) -> str:
    """The exact text the wallet signs. Deterministic for a given nonce."""
    return f"{settings.AUTH_MESSAGE_PREFIX}{nonce}"


def _decode_hex(value: str) -> bytes:
    """Helper: Decode hex string (optionally 0x-prefixed) to bytes."""
    if value[:2].lower() == "0x":
        value = value[2:]
    return binascii.unhexlify(value.encode())


def _decode_base64(value: str) -> bytes:
    """Helper: Decode base64 string to bytes."""
    return base64.b64decode(value, validate=True)


def _decode_hex_or_base64(value: str) -> bytes:
    """
    Helper: Decode hex or base64 string to bytes.

    Cardano wallets may send signatures/keys in either format, so we support both.
    """
    value = value.strip()
    try:
        return _decode_hex(value)
    except (binascii.Error, ValueError):
        try:
            return _decode_base64(value)
        except (binascii.Error, ValueError):
            raise ValueError("Value must be hex or base64 encoded")


class SignatureScheme:
    """One wallet family: how to recognise, normalise and verify its addresses."""

    name = ""

    def supports(self, address: str) -> bool:
        raise NotImplementedError

    def normalize(self, address: str) -> str:
        raise NotImplementedError

    def verify(self, address: str, message: str, signature: str, public_key: Optional[str] = None) -> bool:
        raise NotImplementedError


class EvmSignatureScheme(SignatureScheme):
    """EIP-191 personal_sign, as produced by MetaMask-style wallets."""

    name = "evm"

    def supports(self, address: str) -> bool:
        return bool(_EVM_ADDRESS_RE.match(address))

    def normalize(self, address: str) -> str:
        return address.lower()

    def verify(self, address: str, message: str, signature: str, public_key: Optional[str] = None) -> bool:
        try:
            recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
        except Exception:
            # malformed hex, wrong length, invalid v/r/s: all plain verification failures
            return False
        return secrets.compare_digest(recovered.lower(), address.lower())


class CardanoSignatureScheme(SignatureScheme):
    """ED25519 signature over the message bytes plus the signing public key."""

    name = "cardano"

    def supports(self, address: str) -> bool:
        if not address.startswith("addr"):
            return False
        try:
            Address.decode(address)
        except Exception:
            return False
        return True

    def normalize(self, address: str) -> str:
        return Address.decode(address).encode()

    @staticmethod
    def _public_key_matches_address(address: str, public_key_bytes: bytes) -> bool:
        """
        Verify that the public key corresponds to the Cardano address.

        Uses pycardano to decode the address and compare payment part hash with key hash.
        """
        try:
            addr = Address.decode(address)
            v_key = VerificationKey.from_primitive(public_key_bytes)
            return addr.payment_part == v_key.hash()
        except Exception:
            return False

    def verify(self, address: str, message: str, signature: str, public_key: Optional[str] = None) -> bool:
        if not public_key:
            return False
        try:
            signature_bytes = _decode_hex_or_base64(signature)
            public_key_bytes = _decode_hex_or_base64(public_key)
            Ed25519PublicKey.from_public_bytes(public_key_bytes).verify(signature_bytes, message.encode())
        except (InvalidSignature, ValueError):
            return False
        return self._public_key_matches_address(address, public_key_bytes)


SCHEMES: Tuple[SignatureScheme, ...] = (EvmSignatureScheme(), CardanoSignatureScheme())


def resolve_scheme(address: str) -> Optional[SignatureScheme]:
    address = (address or "").strip()
    for scheme in SCHEMES:
        if scheme.supports(address):
            return scheme
    return None


def normalize_address(address: str) -> str:
    """
    Return the canonical form of a wallet address.

    Raises:
        InvalidWalletAddress: if no supported wallet family recognises the address
    """
    address = (address or "").strip()
    scheme = resolve_scheme(address)
    if scheme is None:
        raise InvalidWalletAddress(f"unsupported address format: {address[:16]!r}")
    return scheme.normalize(address)


def verify_signature(address: str, message: str, signature: str, public_key: Optional[str] = None) -> bool:
    """
    Check that `signature` over `message` was produced by the key controlling `address`.

    Fails closed: unknown address formats, undecodable signatures and mismatching signers
    all return False. Nothing here raises for bad client input.

    Example:
        ok = verify_signature(
            address="0x52908400098527886e0f7030069857d2e4169ee7",
            message=build_challenge_message(nonce),
            signature="0x5f1c...",
        )
    """
    address = (address or "").strip()
    scheme = resolve_scheme(address)
    if scheme is None or not signature or not isinstance(signature, str):
        return False
    valid = scheme.verify(address, message, signature.strip(), public_key)
    if not valid:
        logger.info("signature rejected for %s wallet", scheme.name)
    return valid
