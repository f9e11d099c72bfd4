"""
Runtime settings for the relay, sourced from environment variables.

Settings are built once at process start and handed to the client,
the REST app factory and the MCP server factory.
"""

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigError

# Todoist REST API v2
TODOIST_API_BASE = "https://api.todoist.com/rest/v2"

DEFAULT_TIMEOUT = 15.0
MIN_API_KEY_LENGTH = 20

# Origins allowed to call the REST API from a browser
DEFAULT_CORS_ORIGINS = (
    "https://claude.ai",
    "https://api.anthropic.com",
    "http://localhost:3000",
    "http://localhost:8000",
)

# Environment variable -> Settings field
ENV_VARS = {
    "RELAY_ENV": "environment",
    "PORT": "port",
    "TODOIST_API_KEY": "todoist_api_key",
    "MCP_SERVER_NAME": "server_name",
    "MCP_SERVER_VERSION": "server_version",
    "LOG_LEVEL": "log_level",
    "TODOIST_TIMEOUT": "timeout",
    "TODOIST_BASE_URL": "base_url",
    "CORS_ORIGINS": "cors_origins",
}


class Settings(BaseModel):
    """Validated, immutable process configuration."""

    model_config = ConfigDict(frozen=True)

    environment: Literal["development", "production", "test"] = "development"
    port: int = Field(3000, ge=1000, le=65535)
    todoist_api_key: str = Field(min_length=MIN_API_KEY_LENGTH, repr=False)
    server_name: str = Field("claude-todoist-api", min_length=1)
    server_version: str = Field("1.0.0", min_length=1)
    log_level: Literal["debug", "info", "warning", "error"] = "info"
    timeout: float = Field(DEFAULT_TIMEOUT, ge=1, le=120)
    base_url: str = TODOIST_API_BASE
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS

    @field_validator("environment", "log_level", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return tuple(origin.strip() for origin in value.split(",") if origin.strip())
        return value

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigError: If a required variable is missing or any value is invalid
        """
        environ = os.environ if environ is None else environ
        values = {
            field: environ[var]
            for var, field in ENV_VARS.items()
            if environ.get(var, "").strip()
        }

        if "todoist_api_key" not in values:
            raise ConfigError([
                "TODOIST_API_KEY environment variable is required. "
                "Set it in your .env file or environment. "
                "Get your token at https://app.todoist.com/app/settings/integrations/developer"
            ])

        try:
            return cls(**values)
        except PydanticValidationError as e:
            field_to_var = {field: var for var, field in ENV_VARS.items()}
            problems = []
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "?"
                problems.append(f"{field_to_var.get(field, field)}: {error['msg']}")
            raise ConfigError(problems) from e
