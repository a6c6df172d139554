from fastapi import APIRouter, status

from app.schemas.my_base_model import CustomBaseModel

router = APIRouter()


class HealthCheck(CustomBaseModel):
    status: str = "oke"


@router.get(
    "/health",
    tags=["healthcheck"],
    response_model=HealthCheck,
    status_code=status.HTTP_200_OK,
)
def get_health() -> HealthCheck:
    return HealthCheck(status="oke")
