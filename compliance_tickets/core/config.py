from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Storage backend
    ticket_store: Literal["memory", "supabase"] = Field("memory", alias="TICKET_STORE")

    # Supabase (only read when TICKET_STORE=supabase)
    supabase_url: str | None = Field(None, alias="SUPABASE_URL")
    supabase_service_role_key: str | None = Field(None, alias="SUPABASE_SERVICE_ROLE_KEY")

    # Which tickets a strike off resolves: the company's own, or every other ticket.
    strike_off_scope: Literal["company", "global"] = Field("company", alias="STRIKE_OFF_SCOPE")

    # Runtime
    log_level: str = Field("INFO", alias="LOG_LEVEL")


settings = Settings()
