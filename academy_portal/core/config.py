from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    # Fee applied when a batch is created without an explicit amount
    default_batch_fee: int = Field(500, alias="DEFAULT_BATCH_FEE")
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    # Used only by academy_portal.db.seed_academy
    seed_academy_name: Optional[str] = Field(None, alias="SEED_ACADEMY_NAME")
    seed_admin_username: Optional[str] = Field(None, alias="SEED_ADMIN_USERNAME")
    seed_admin_password: Optional[str] = Field(None, alias="SEED_ADMIN_PASSWORD")
    seed_admin_email: Optional[str] = Field(None, alias="SEED_ADMIN_EMAIL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
