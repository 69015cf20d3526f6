from __future__ import annotations

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

GENDERS = ("male", "female")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    api_key: str = "test-api-key"

    database_url: str = Field("sqlite:////tmp/gymflow_test.db", alias="DATABASE_URL")
    db_create_all: bool = Field(False, alias="DB_CREATE_ALL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    scan_cooldown_seconds: int = Field(
        30,
        ge=0,
        description="Window in which a repeated successful scan is ignored",
    )
    session_cap_male: int = Field(26, ge=1)
    session_cap_female: int = Field(30, ge=1)
    warning_days_before_expiry: int = Field(3, ge=0)
    warning_sessions_remaining: int = Field(3, ge=0)

    default_country_code: str = Field("+20", pattern=r"^\+\d{1,4}$")
    guest_pass_max_validity_days: int = Field(7, ge=1)

    model_config = ConfigDict(
        extra="ignore",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
    )

    def default_session_cap(self, gender: str) -> int:
        """Monthly session cap used when a subscription carries no override."""
        if gender == "male":
            return self.session_cap_male
        return self.session_cap_female
