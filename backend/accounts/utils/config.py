from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Storage
    IDENTITY_STORE_PATH: str = "data/identities.json"

    # API tokens
    CRM_API_TOKEN: str = ""
    ADMIN_API_TOKEN: str = ""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_DIR: Optional[str] = "logs"

    # Face matching
    FACE_MATCH_THRESHOLD: float = 0.6

    # Activity log
    ACTIVITY_LOG_LIMIT: int = 1000

    class Config:
        env_file = ".env"
        extra = "ignore"
        case_sensitive = True


# Global settings instance
settings = Settings()
