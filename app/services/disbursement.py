"""
Reward disbursement boundary.

Sending tokens is done by an external payout service; this module only hands it a pending
reward and records what came back. It runs after the quiz response has been sent
(FastAPI background task), so a slow or failing payout never delays or hides a grade.

Retry policy: up to DISBURSEMENT_MAX_ATTEMPTS tries with linear backoff, then the reward is
marked failed. `failed` is terminal here; re-driving failed rewards is left to whoever owns
the payout service contract.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import DisbursementFailed
from app.db.session import SessionLocal
from app.models.rewards import STATUS_PENDING, Reward
from app.models.users import User
from app.services import reward_ledger

logger = logging.getLogger(__name__)


class DisbursementClient:
    """Sends `amount` tokens to `wallet_address` and returns the transaction hash."""

    def disburse(self, wallet_address: str, amount: float, reference: str) -> str:
        raise NotImplementedError


class HttpDisbursementClient(DisbursementClient):
    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 30.0) -> None:
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def disburse(self, wallet_address: str, amount: float, reference: str) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        body = {"recipient": wallet_address, "amount": amount, "reference": reference}
        try:
            response = requests.post(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DisbursementFailed(f"payout request failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise DisbursementFailed(
                f"payout service returned {response.status_code}: {response.text[:200]}"
            )
        try:
            tx_hash = response.json().get("txHash")
        except ValueError as exc:
            raise DisbursementFailed("payout service returned invalid JSON") from exc
        if not tx_hash:
            raise DisbursementFailed("payout service response has no txHash")
        return str(tx_hash)


@dataclass
class DisbursementOutcome:
    reward_id: str
    status: str
    tx_hash: Optional[str] = None
    error: Optional[str] = None


def get_disbursement_client() -> Optional[DisbursementClient]:
    """None when no payout service is configured; rewards then stay pending."""
    if not settings.DISBURSEMENT_URL:
        return None
    return HttpDisbursementClient(
        settings.DISBURSEMENT_URL,
        api_key=settings.DISBURSEMENT_API_KEY,
        timeout=settings.DISBURSEMENT_TIMEOUT_SECONDS,
    )


def process_disbursement(
    db: Session,
    reward_id: str,
    client: DisbursementClient,
    max_attempts: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DisbursementOutcome:
    """
    Pay out one pending reward and record the result on it.

    Rewards that are no longer pending are skipped untouched.
    """
    max_attempts = max(1, max_attempts or settings.DISBURSEMENT_MAX_ATTEMPTS)
    row = (
        db.query(Reward, User.wallet_address)
        .join(User, User.id == Reward.user_id)
        .filter(Reward.id == reward_id)
        .first()
    )
    if row is None:
        return DisbursementOutcome(reward_id=reward_id, status="missing", error="reward not found")
    reward, wallet_address = row
    if reward.status != STATUS_PENDING:
        return DisbursementOutcome(reward_id=reward_id, status=reward.status, tx_hash=reward.tx_hash)

    amount = reward.amount
    last_error = ""
    for attempt in range(1, max_attempts + 1):
        try:
            tx_hash = client.disburse(wallet_address, amount, reward_id)
        except DisbursementFailed as exc:
            last_error = str(exc)
            logger.warning(
                "[disbursement] reward %s attempt %d/%d failed: %s",
                reward_id, attempt, max_attempts, last_error,
            )
            if attempt < max_attempts:
                sleep(settings.DISBURSEMENT_RETRY_SLEEP_SECONDS * attempt)
            continue
        reward = reward_ledger.mark_confirmed(db, reward_id, tx_hash)
        return DisbursementOutcome(reward_id=reward_id, status=reward.status, tx_hash=tx_hash)

    reward = reward_ledger.mark_failed(db, reward_id, last_error)
    return DisbursementOutcome(reward_id=reward_id, status=reward.status, error=last_error)


def run_disbursement(reward_id: str) -> None:
    """Background-task entry point: own session, never raises into the worker."""
    client = get_disbursement_client()
    if client is None:
        return
    db = SessionLocal()
    try:
        outcome = process_disbursement(db, reward_id, client)
        logger.info("[disbursement] reward %s -> %s", reward_id, outcome.status)
    except Exception:
        logger.exception("[disbursement] reward %s crashed", reward_id)
        db.rollback()
    finally:
        db.close()
