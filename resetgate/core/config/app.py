"""
Application-specific settings.
"""
from typing import List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, debug mode, and CORS origins.

    Security Note:
        - Ensure ALLOWED_ORIGINS is explicitly set to trusted domains in production
          to prevent unauthorized cross-origin requests.
        - TRUST_PROXY_HEADERS is off by default. Enable it only behind a reverse
          proxy that overwrites X-Forwarded-For, otherwise clients can pick
          their own rate-limit identity.
    """
    PROJECT_NAME: str = "resetgate"
    VERSION: str = "0.1.0"
    APP_ENV: str = Field(
        default="development",
        pattern="^(development|test|staging|production)$",
    )
    DEBUG: bool = False

    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(ge=1, le=65535, default=8000)
    API_PREFIX: str = ""
    RELOAD: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    ALLOWED_ORIGINS: Union[str, List[str]] = Field(default="http://localhost:3000")
    TRUST_PROXY_HEADERS: bool = False

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """
        Splits a comma-separated string of origins into a list.

        Args:
            v: Input value as a string or list of origins.

        Returns:
            List of stripped origin strings.
        """
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @field_validator("API_PREFIX")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        """Strips trailing slashes and makes sure a non-empty prefix starts with one."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = f"/{v}"
        return v
