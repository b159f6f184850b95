from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "SpendTracker"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Expense store: "dynamo" in deployments, "memory" for local runs
    STORE_BACKEND: str = Field(default="dynamo")
    # JSON array of expense records served by the memory backend
    MEMORY_STORE_PATH: Optional[str] = Field(default=None)

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_EXPENSES_TABLE: str = Field(
        default="spend-tracker-expenses",
        validation_alias="DYNAMO_TABLE_EXPENSES",
    )
    DYNAMO_DATE_INDEX: str = Field(default="user-date-index")

    # JWT Authentication (tokens are issued by the auth service)
    JWT_SECRET_KEY: str = Field(default="change-me", validation_alias="JWT_SECRET")
    JWT_ALGORITHM: str = "HS256"

    # Analytics
    UPCOMING_WINDOW_DAYS: int = Field(default=7, ge=1)
    TOP_MERCHANTS_LIMIT: int = Field(default=3, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",
    )


settings = Settings()
