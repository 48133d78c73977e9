from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ConfigLocation = Literal["local", "remote", "remote-no-auth"]


class LoadParams(BaseModel):
    """
    Parameters of a single configuration load.

    `interval` is the auto-refresh period in seconds. `None` or `0` disables auto-refresh.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    app_name: str
    profile: str
    config_server_name: str
    config_location: ConfigLocation
    log_properties: bool = False
    interval: Optional[float] = None

    @field_validator("interval")
    @classmethod
    def _interval_not_negative(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value < 0:
            raise ValueError("interval must be a positive number of seconds")
        return value

    @property
    def refresh_enabled(self) -> bool:
        return bool(self.interval) and self.interval > 0


class FileLoggingSettings(BaseModel):
    """Log file rotated at midnight, keeping `backup_count` old files."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = "logs/cf-config-client.log"
    backup_count: int = 5


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    # None keeps logging on the console only
    file: Optional[FileLoggingSettings] = None


class BindingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    vcap_services_env: str = "VCAP_SERVICES"
    vcap_local_path: str = "./vcap_services.json"
    skip_auth_uri_env: str = "CONFIG_SERVER_URI_WHEN_SKIP_AUTH"


class HttpSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_seconds: float = 30


class ClientSettings(BaseModel):
    """Effective client settings after applying defaults, the optional YAML file and env overrides."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    bindings: BindingSettings = Field(default_factory=BindingSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@dataclass(frozen=True, slots=True)
class SettingsLoadRequest:
    """
    Inputs for the client settings loader.

    `yaml_path=None` skips the settings file and starts from defaults.
    """

    yaml_path: Optional[str] = None
    env_prefix: str = "CF_CONFIG_CLIENT__"
    dotenv_path: Optional[str] = ".env"
