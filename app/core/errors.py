"""
Service Errors

Every failure the auth and grading pipeline can report is a ServiceError subclass carrying
the HTTP status it maps to and a detail that is safe to show to the client.

Authentication failures (challenge missing/expired, bad signature, bad session) all render
the same 401 body so a caller cannot tell an unseen wallet from a wrong signature.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        # message is for logs only; clients receive `detail`
        super().__init__(message or self.detail)


class AuthError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication failed"


class ChallengeNotFound(AuthError):
    pass


class ChallengeExpired(AuthError):
    pass


class AuthenticationFailed(AuthError):
    pass


class InvalidSession(AuthError):
    detail = "Unauthorized"


class SessionExpired(InvalidSession):
    pass


class InvalidWalletAddress(ServiceError):
    detail = "Invalid wallet address format"


class IncompleteSubmission(ServiceError):
    detail = "Every question must be answered"

    def __init__(self, missing_question_ids: list[str] | None = None) -> None:
        self.missing_question_ids = list(missing_question_ids or [])
        super().__init__(f"missing answers for {len(self.missing_question_ids)} question(s)")


class QuizNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Quiz not found"


class CourseNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Course not found"


class AlreadyEnrolled(ServiceError):
    detail = "Already enrolled in this course"


class DisbursementFailed(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Reward disbursement failed"


class InvalidRewardTransition(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Reward is not pending"


class RateLimited(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    detail = "Too many requests. Please try again later."

    def __init__(self, retry_after: int = 1, message: str | None = None) -> None:
        self.retry_after = max(1, int(retry_after))
        super().__init__(message)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthError):
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )
