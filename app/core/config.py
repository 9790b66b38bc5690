"""

app/core/config.py

"""


from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # App
    APP_NAME: str = "ArtMarket Reports"
    DEBUG: bool = False
    SECRET_KEY: str

    # Database
    MONGODB_URL: str
    DATABASE_NAME: str

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Auth
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    ALGORITHM: str = "HS256"

    # Reports
    REPORTS_DEFAULT_PAGE_SIZE: int = 20
    REPORTS_MAX_PAGE_SIZE: int = 100
    RELATED_REPORTS_LIMIT: int = 5
    TOP_REASONS_LIMIT: int = 5
    BULK_UPDATE_MAX_REPORTS: int = 50

    # Notifications
    NOTIFICATION_FANOUT_CONCURRENCY: int = 10
    EXPO_PUSH_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
