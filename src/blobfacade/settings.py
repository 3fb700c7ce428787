"""
Startup configuration using Pydantic settings.

Settings come from the process environment, optionally seeded from a .env
file. Real environment variables always win over .env entries. Azure
identity uses the SDK's usual AZURE_STORAGE_* names, everything else is
prefixed with BLOBFACADE_.
"""

from typing import Any, Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]


class StorageSettings(BaseSettings):
    """Storage account identity, transport tuning and logging options."""

    # Storage identity
    account_name: Optional[str] = Field(
        default=None,
        validation_alias="AZURE_STORAGE_ACCOUNT_NAME",
        description="Storage account name, authenticated with DefaultAzureCredential",
    )
    account_url: Optional[str] = Field(
        default=None,
        validation_alias="AZURE_STORAGE_ACCOUNT_URL",
        description="Blob endpoint override, e.g. a sovereign cloud or Azurite",
    )
    connection_string: Optional[str] = Field(
        default=None,
        validation_alias="AZURE_STORAGE_CONNECTION_STRING",
        description="Full connection string. Wins over account_name.",
    )
    local_path: Optional[str] = Field(
        default=None,
        description="Directory for the local file adapter. Wins over Azure identity.",
    )

    # Transport
    retry_total: Optional[int] = Field(
        default=None, ge=0, description="Total retries per request"
    )
    connection_timeout: Optional[float] = Field(
        default=None, ge=0, description="Seconds to wait for a connection"
    )
    read_timeout: Optional[float] = Field(
        default=None, ge=0, description="Seconds to wait between response bytes"
    )

    # Logging
    log_level: LogLevel = Field(default="INFO", description="blobfacade logger level")
    log_format: LogFormat = Field(default="text", description="text or json")

    model_config = SettingsConfigDict(
        env_prefix="BLOBFACADE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator(
        "account_name",
        "account_url",
        "connection_string",
        "local_path",
        "retry_total",
        "connection_timeout",
        "read_timeout",
        mode="before",
    )
    @classmethod
    def _blank_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "StorageSettings":
        """
        Build and validate settings from environment variables.

        Raises ConfigurationError when a value does not parse or when no
        storage account identity is given.
        """
        try:
            settings = cls() if dotenv else cls(_env_file=None)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid storage settings: {exc}") from exc

        missing = settings.validate_required_fields()
        if missing:
            raise ConfigurationError(
                f"{missing[0]} is required "
                "(or AZURE_STORAGE_CONNECTION_STRING / BLOBFACADE_LOCAL_PATH)"
            )
        return settings

    def validate_required_fields(self) -> list[str]:
        """Return the names of required settings that are not set."""
        if self.account_name or self.connection_string or self.local_path:
            return []
        return ["AZURE_STORAGE_ACCOUNT_NAME"]

    def client_options(self) -> dict[str, Any]:
        """Transport options handed unchanged to the Azure SDK client."""
        options = {
            "retry_total": self.retry_total,
            "connection_timeout": self.connection_timeout,
            "read_timeout": self.read_timeout,
        }
        return {key: value for key, value in options.items() if value is not None}
