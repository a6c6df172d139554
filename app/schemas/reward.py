from datetime import datetime
from typing import Optional

from app.schemas.my_base_model import CustomBaseModel


class RewardResponse(CustomBaseModel):
    """Response model for a reward
    Example:
    {
        "id": "0f8e...",
        "userId": "550e...",
        "courseId": "c1a2...",
        "type": "course_completion",
        "amount": 100.0,
        "status": "pending",
        "txHash": null,
        "createdAt": "2024-01-01T12:00:00Z"
    }
    """

    id: str = ""
    user_id: str = ""
    course_id: Optional[str] = None
    type: str = ""
    amount: float = 0.0
    status: str = ""
    tx_hash: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
