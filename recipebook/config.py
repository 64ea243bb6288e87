# Settings loaded from the environment (.env supported)
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./recipebook.db"

    jwt_secret: str = "your_jwt_secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    mealdb_api_url: str = "https://www.themealdb.com/api/json/v1/1"
    mealdb_timeout: float = 10.0

    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024
    public_base_url: str = "http://localhost:8000"

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )


settings = Settings()
