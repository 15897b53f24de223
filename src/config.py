"""Application configuration loaded from environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    # Database
    DATABASE_URL: str = "sqlite:///./intake.db"

    # Identity provider (tokens signed with a shared secret)
    IDENTITY_JWT_SECRET: str = "change-me"
    IDENTITY_JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Blob storage: "local" writes under BLOB_LOCAL_DIR, "s3" uses an S3-compatible bucket
    BLOB_BACKEND: str = "local"
    BLOB_LOCAL_DIR: str = "uploads"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_REGION: str = "us-east-1"
    S3_BUCKET: str = "intake-artifacts"
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    S3_PUBLIC_BASE_URL: Optional[str] = None

    # "scheduler" runs workflows on APScheduler, "inline" runs them in the request
    JOB_RUNNER: str = "scheduler"

    SEED_DEMO_DATA: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()


def get_settings() -> Settings:
    return settings
