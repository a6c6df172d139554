from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.db.session import get_db
from app.models.users import User
from app.schemas.reward import RewardResponse
from app.services.reward_ledger import list_rewards

router = APIRouter()
group_tags = ["Rewards"]


@router.get(
    "",
    tags=group_tags,
    response_model=List[RewardResponse],
)
def get_my_rewards(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> List[RewardResponse]:
    """Rewards of the authenticated wallet, newest first, including failed payouts."""
    return [RewardResponse.model_validate(reward) for reward in list_rewards(db, user.id)]
