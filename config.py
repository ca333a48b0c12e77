"""Backend settings."""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    service_name: str = "visitor-checkin-backend"

    # postgres://, postgresql:// and sqlite:// URLs are normalized to async drivers
    database_url: str = "sqlite+aiosqlite:///./visitors.db"
    debug: bool = False

    log_level: str = "INFO"
    log_json: bool = True

    # Face recognition registry (CompreFace-style recognition API)
    biometric_api_url: str = "http://localhost:8000/api/v1/recognition"
    biometric_api_token: str = ""
    biometric_timeout_seconds: float = 5.0

    # Pending biometric registrations kept in memory before new ones are dropped
    registration_queue_size: int = 1000

    cors_origins: List[str] = [
        *[f"http://localhost:{port}" for port in range(3000, 3007)],
        *[f"http://127.0.0.1:{port}" for port in range(3000, 3007)],
    ]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
