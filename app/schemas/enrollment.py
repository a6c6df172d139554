from datetime import datetime
from typing import Optional

from app.schemas.my_base_model import CustomBaseModel


class CourseSummary(CustomBaseModel):
    id: str = ""
    title: str = ""
    reward_amount: float = 0.0


class EnrollmentResponse(CustomBaseModel):
    """Enrollment of the authenticated wallet, with its course and quiz status"""

    id: str = ""
    course_id: str = ""
    status: str = ""
    progress: int = 0
    enrolled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    course: Optional[CourseSummary] = None
    quiz_passed: bool = False
    failed_attempt_count: int = 0
