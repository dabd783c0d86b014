from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Ctrl Alt Vibe"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://127.0.0.1:3000",
        "https://ctrlaltvibe.com",
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./ctrlaltvibe.db"
    TEST_DATABASE_URL: Optional[str] = None

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_DEFAULT_TTL_SECONDS: int = 300

    # Monitoring
    SLOW_OPERATION_THRESHOLD_MS: float = 500.0
    MONITORING_API_KEY: Optional[str] = None
    LOG_DIR: str = "logs"

    # Realtime
    WEBSOCKET_PATH: str = "/ws"
    NOTIFICATION_POLL_INTERVAL_SECONDS: int = 30

    # Outbound calls (metadata scraping, OAuth token checks)
    EXTERNAL_REQUEST_TIMEOUT_SECONDS: float = 20.0

    # OAuth2
    GOOGLE_CLIENT_ID: Optional[str] = None

    # Sitemap
    SITE_URL: str = "https://ctrlaltvibe.com"
    SITEMAP_PATH: str = "public/sitemap.xml"

    TESTING: bool = False

    class Config:
        env_file = ".env"

settings = Settings()
