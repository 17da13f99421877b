from decimal import Decimal
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Brokerage Back-Office"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "postgresql://brokerage_user:brokerage_pass@db:5432/brokerage_db"

    # Commission dates are compared in the brokerage's local time
    TIMEZONE: str = "Europe/Zurich"

    # Split retrieval (one call per commission)
    SPLIT_FETCH_MAX_WORKERS: int = 8
    SPLIT_FETCH_TIMEOUT_SECONDS: float = 30.0

    # Social contributions, flat rates on gross pay
    AVS_RATE: Decimal = Decimal("0.053")
    AC_RATE: Decimal = Decimal("0.011")
    LPP_RATE: Decimal = Decimal("0.07")
    AANP_RATE: Decimal = Decimal("0.016")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
