"""Configuration management using Pydantic Settings.

Loads configuration from multiple sources with the following priority (highest first):
1. Explicit constructor arguments
2. Environment variables (AZURE_API_ENDPOINT, AZURE_API_KEY, MODEL_NAME, PORT
   and AZRELAY_* for nested groups)
3. .env file
4. config.local.yaml (if exists)
5. config.yaml
6. Default values
"""

from contextvars import ContextVar
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# Environment variable names of the required settings
REQUIRED_ENV_VARS = ("AZURE_API_ENDPOINT", "AZURE_API_KEY", "MODEL_NAME")

# YAML files read from the config directory, highest priority first
YAML_CONFIG_FILES = ("config.local.yaml", "config.yaml")

# Config directory of the Settings instance being built
_config_dir_var: ContextVar[Path | None] = ContextVar("config_dir", default=None)


class CorsSettings(BaseModel):
    """CORS configuration. Every origin is allowed by default."""

    model_config = ConfigDict(frozen=True)

    allowed_origins: list[str] = ["*"]
    allowed_methods: list[str] = ["*"]
    allowed_headers: list[str] = ["*"]


class ServerSettings(BaseModel):
    """Server configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 3000
    cors: CorsSettings = Field(default_factory=CorsSettings)


class BackendSettings(BaseModel):
    """Outbound chat-completions backend configuration."""

    model_config = ConfigDict(frozen=True)

    # None disables the timeout; completions can take minutes
    timeout_seconds: float | None = None


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    """Application settings loaded from environment, .env, and config files.

    Instances are frozen: built once at startup and shared read-only by
    every request handler.
    """

    model_config = SettingsConfigDict(
        env_prefix="AZRELAY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        protected_namespaces=(),
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Required settings, read from their bare environment variable names
    azure_api_endpoint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AZURE_API_ENDPOINT", "azure_api_endpoint"),
    )
    azure_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AZURE_API_KEY", "azure_api_key"),
    )
    model_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_NAME", "model_name"),
    )

    # PORT overrides server.port when set
    port: int | None = Field(default=None, validation_alias=AliasChoices("PORT", "port"))

    @field_validator("port", mode="before")
    @classmethod
    def blank_port_is_unset(cls, v):
        """Treat an empty PORT (common in .env templates) as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def __init__(self, config_dir: Path | None = None, **data):
        """Initialize settings, layering YAML from config_dir if provided."""
        token = _config_dir_var.set(config_dir)
        try:
            super().__init__(**data)
        finally:
            _config_dir_var.reset(token)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Place YAML config files below the environment and .env file."""
        sources = [init_settings, env_settings, dotenv_settings]
        config_dir = _config_dir_var.get()
        if config_dir is not None:
            sources.extend(
                YamlConfigSettingsSource(settings_cls, yaml_file=config_dir / name)
                for name in YAML_CONFIG_FILES
            )
        sources.append(file_secret_settings)
        return tuple(sources)

    @property
    def listen_port(self) -> int:
        """Port the HTTP server binds to."""
        return self.port if self.port is not None else self.server.port

    @property
    def chat_completions_url(self) -> str:
        """Backend chat-completions URL."""
        return f"{(self.azure_api_endpoint or '').rstrip('/')}/chat/completions"

    def missing_required(self) -> list[str]:
        """Return the environment names of required settings that are unset."""
        values = (self.azure_api_endpoint, self.azure_api_key, self.model_name)
        return [name for name, value in zip(REQUIRED_ENV_VARS, values) if not value]

    def validate_required(self) -> None:
        """Validate that required settings are present.

        Raises:
            ValueError: If required settings are missing.
        """
        missing = self.missing_required()
        if missing:
            raise ValueError(
                f"Make sure {', '.join(REQUIRED_ENV_VARS)} are set in the environment "
                f"or .env file (missing: {', '.join(missing)})"
            )


@lru_cache
def get_settings(config_dir: Path | None = None) -> Settings:
    """Get cached settings instance.

    Args:
        config_dir: Optional path to config directory. If None, only environment
                   variables and .env file are used.

    Returns:
        Settings instance.
    """
    if config_dir is None:
        # Try to find config directory relative to project root
        project_root = Path(__file__).parent.parent.parent
        default_config_dir = project_root / "config"
        if default_config_dir.exists():
            config_dir = default_config_dir

    return Settings(config_dir=config_dir)
