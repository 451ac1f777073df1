from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # MongoDB 접속 정보
    MONGODB_URI: str = "mongodb://mongodb:27017"
    MONGODB_DB_NAME: str = "erp"

    # 인보이스 / 급여 규칙
    PAYMENT_CYCLE_DAYS: int = 45
    GST_RATE: float = 0.1
    DEFAULT_CURRENCY: str = "AUD"

    # 비어 있으면 알림 전송 안 함
    NOTIFICATION_SERVICE_BASE_URL: str | None = None
    NOTIFICATION_TIMEOUT: float = 5.0

    LOG_LEVEL: str = "INFO"


settings = Settings()
