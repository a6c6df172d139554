from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "Wallet Academy"
    # Application settings
    PORT: int = 8000
    HOST: str = "127.0.0.1"
    VERSION: str = "1.0.0"
    DOC_PASSWORD: str | None = None
    CORS_ORIGINS: str = "*"

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./academy.db"

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 24 * 60 * 60 # 24 hours, fixed (not sliding)
    NONCE_EXPIRY_SECONDS: int = 300 # 5 minutes
    AUTH_MESSAGE_PREFIX: str = "Sign this message to authenticate with Wallet Academy: "
    SWEEP_INTERVAL_SECONDS: int = 10 * 60 # 0 disables the background sweep

    # Grading / rewards
    CERTIFICATE_CODE_LENGTH: int = 10
    QUIZ_BONUS_SCORE: int = 100

    # Rate limiting (fixed window per client ip or user)
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: int = 10
    AUTH_RATE_WINDOW_SECONDS: int = 15 * 60
    QUIZ_SUBMIT_RATE_LIMIT: int = 1
    QUIZ_SUBMIT_RATE_WINDOW_SECONDS: int = 5

    # Reward disbursement collaborator
    DISBURSEMENT_URL: str | None = None
    DISBURSEMENT_API_KEY: str | None = None
    DISBURSEMENT_TIMEOUT_SECONDS: float = 30.0
    DISBURSEMENT_MAX_ATTEMPTS: int = 3
    DISBURSEMENT_RETRY_SLEEP_SECONDS: float = 5.0

    # Debug settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
