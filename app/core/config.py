from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # API Settings
    PROJECT_NAME: str = "Pairwise Ledger API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Two-party expense ledger with invitation-based onboarding"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Storage: "mongo" or "memory"
    STORE_BACKEND: str = "mongo"

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "pairwise_ledger"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # JWT
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Account verification
    PASSWORD_MIN_LENGTH: int = 8
    OTP_LENGTH: int = 6
    OTP_TTL_MINUTES: int = 10

    # Invitations
    INVITATION_TTL_DAYS: int = 7
    INVITATION_REUSE_PENDING: bool = True
    INVITATION_FAILURE_IS_WARNING: bool = True
    FRONTEND_URL: str = "http://localhost:3000"

    # Money
    MONEY_DECIMAL_PLACES: int = 2
    MONEY_MAX_AMOUNT: Decimal = Decimal("1000000000")

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
