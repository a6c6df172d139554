"""
Wallet providers and the client half of challenge/response login.

A WalletProvider is the only thing login() needs: an address and the ability to sign a
message with the key behind it. Browser wallets implement it in the frontend; the key-backed
providers here serve scripts, bots and tests.

Usage:
    http = requests.Session()
    token = login(http, EvmKeyWallet(private_key), base_url="https://academy.example")
    http.headers["Authorization"] = f"Bearer {token}"
"""

from typing import Any, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from pycardano import Address, Network, PaymentSigningKey


class LoginError(Exception):
    """Raised when the server rejects a nonce request or a signed challenge."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class WalletProvider:
    def request_accounts(self) -> str:
        raise NotImplementedError

    def sign_message(self, message: str) -> str:
        raise NotImplementedError

    def public_key(self) -> Optional[str]:
        """Hex public key for schemes that cannot recover it from the signature."""
        return None


class EvmKeyWallet(WalletProvider):
    def __init__(self, private_key: Optional[str] = None) -> None:
        self._account = Account.from_key(private_key) if private_key else Account.create()

    def request_accounts(self) -> str:
        return self._account.address

    def sign_message(self, message: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=message))
        return "0x" + bytes(signed.signature).hex()


class CardanoKeyWallet(WalletProvider):
    def __init__(
        self, signing_key: Optional[PaymentSigningKey] = None, network: Network = Network.TESTNET
    ) -> None:
        self._signing_key = signing_key or PaymentSigningKey.generate()
        self._verification_key = self._signing_key.to_verification_key()
        self._address = Address(payment_part=self._verification_key.hash(), network=network)

    def request_accounts(self) -> str:
        return self._address.encode()

    def sign_message(self, message: str) -> str:
        return self._signing_key.sign(message.encode()).hex()

    def public_key(self) -> Optional[str]:
        return self._verification_key.payload.hex()


def _detail(response: Any) -> str:
    try:
        return str(response.json().get("detail", ""))
    except ValueError:
        return response.text[:200]


def login(http: Any, wallet: WalletProvider, base_url: str = "") -> str:
    """
    Run nonce -> sign -> verify against the API and return the bearer token.

    `http` is anything with a requests-style post(url, json=...) (requests.Session,
    fastapi TestClient, httpx.Client).
    """
    address = wallet.request_accounts()
    response = http.post(f"{base_url}/api/auth/nonce", json={"walletAddress": address})
    if response.status_code != 200:
        raise LoginError(response.status_code, _detail(response))
    challenge = response.json()

    body = {"walletAddress": address, "signature": wallet.sign_message(challenge["message"])}
    key = wallet.public_key()
    if key:
        body["key"] = key
    response = http.post(f"{base_url}/api/auth/verify", json=body)
    if response.status_code != 200:
        raise LoginError(response.status_code, _detail(response))
    return response.json()["token"]
