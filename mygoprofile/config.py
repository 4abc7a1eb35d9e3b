from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Google OAuth
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field(default="", alias="GOOGLE_CLIENT_SECRET")
    google_redirect_uri: str = Field(
        default="http://localhost:8000/auth/google/callback",
        alias="GOOGLE_REDIRECT_URI",
    )
    google_oauth_scopes: str = Field(
        default="openid email profile https://www.googleapis.com/auth/business.manage",
        alias="GOOGLE_OAUTH_SCOPES",
    )

    # Session cookie
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    session_cookie_name: str = Field(default="mygoprofile_session", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")

    # "mock" serves fixed data, "google" calls the Business Profile APIs
    business_data_source: Literal["mock", "google"] = Field(
        default="mock", alias="BUSINESS_DATA_SOURCE"
    )

    # Comma separated: "http://localhost:3000,https://mygoprofile.app"
    frontend_origin: str = Field(default="http://localhost:3000", alias="FRONTEND_ORIGIN")

    google_api_timeout: float = Field(default=30, alias="GOOGLE_API_TIMEOUT")
    reviews_page_size: int = Field(default=50, alias="REVIEWS_PAGE_SIZE")
    max_reviews: int = Field(default=3000, alias="MAX_REVIEWS")
    insights_days: int = Field(default=30, alias="INSIGHTS_DAYS")
    location_fetch_concurrency: int = Field(default=4, ge=1, alias="LOCATION_FETCH_CONCURRENCY")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache
def get_settings() -> Settings:
    return Settings()


def parse_origins(s: str) -> list[str]:
    """Turn 'a,b,c' into a list of origins without trailing slashes."""
    out = []
    for part in s.split(","):
        o = part.strip()
        if o.endswith("/"):
            o = o[:-1]
        if o:
            out.append(o)
    return out
