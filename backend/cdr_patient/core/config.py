from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    APP_NAME: str = "CDR Patient Registry"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Patient identity and program enrollment service"
    API_PREFIX: str = "/api/patient"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./cdr_patient.db"
    AUTO_CREATE_TABLES: bool = True  # Production: run Alembic migrations instead

    # Acting principal
    SECRET_KEY: str = "change-me-in-production-use-strong-random-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    AUTH_REQUIRED: bool = False
    DEFAULT_ACTOR_ID: int = 1  # Used when no bearer token is sent and AUTH_REQUIRED is off

    # Demographic (Person) service
    DEMOGRAPHIC_SERVICE_URL: Optional[str] = None
    DEMOGRAPHIC_TIMEOUT: float = 5.0

    # Location / metadata service
    METADATA_SERVICE_URL: Optional[str] = None
    METADATA_TIMEOUT: float = 3.0

    CORRELATION_ID_HEADER: str = "X-cdr-correlation-id"

    # Served by GET /configs
    CONTACT_DETAILS: Dict[str, str] = {"name": "CDR Support", "phone": "+000 000 0000"}
    WORK_DAYS: List[str] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    SUPPORT_EMAIL: str = "support@cdr.local"

    class Config:
        env_file = ".env"


settings = Settings()
