from pydantic_settings import BaseSettings
from typing import List
import os


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "postgresql+psycopg2://posuser:pospass@db:5432/restaurant_pos"
    backend_cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    # Completed/cancelled orders older than this are moved to the archive tables
    default_archive_days: int = 30

    # Railway specific - use PORT env var if available
    port: int = int(os.getenv("PORT", "8000"))

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
