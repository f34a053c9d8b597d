from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Application
    API_V1_PREFIX: str = "/api/1.0"
    PROJECT_NAME: str = "Batch Gateway"

    # Backing service all batch operations are resolved against
    BATCH_BASE_PATH: str = "http://localhost:8080"
    BATCH_MAX_OPERATIONS: int = 1024
    BATCH_TIMEOUT_SECONDS: Optional[float] = None

    # Inbound requests
    MAX_REQUEST_BODY_BYTES: int = 1024 * 1024  # 1MB

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
