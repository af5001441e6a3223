# bmsync Configuration Schema
# Pydantic models for YAML configuration validation

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

API_KEY_ENV = "BMSYNC_API_KEY"

PUSHABLE_KINDS = ("field", "action", "backend-script", "report", "page")


class InstanceConfig(BaseModel):
    """Connection settings for one platform instance."""

    url: str = Field(description="Instance base URL, e.g. https://acme.bizmanage.com")
    api_key: str | None = Field(default=None, description="API key (falls back to $BMSYNC_API_KEY)")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    request_delay_ms: int = Field(default=0, ge=0, description="Minimum delay between requests")

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        """Require an http(s) URL and drop trailing slashes."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v.rstrip("/")

    def resolve_api_key(self) -> str | None:
        """API key from the config, or from the environment."""
        return self.api_key or os.environ.get(API_KEY_ENV) or None


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_path(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class BmsyncConfig(BaseModel):
    """Root configuration model for bmsync."""

    default_alias: str = Field(default="default", description="Instance alias used when none is given")
    instances: dict[str, InstanceConfig] = Field(default_factory=dict, description="Instances by alias")
    push_endpoints: dict[str, str] = Field(
        default_factory=dict,
        description="Push endpoint per item kind; {name} and {object_name} are substituted",
    )
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @field_validator("push_endpoints")
    @classmethod
    def check_push_endpoints(cls, v: dict[str, str]) -> dict[str, str]:
        """Only item kinds other than objects take a configurable endpoint."""
        unknown = [kind for kind in v if kind not in PUSHABLE_KINDS]
        if unknown:
            raise ValueError(f"unknown item kind(s): {', '.join(unknown)}")
        return v

    @model_validator(mode="after")
    def check_default_alias(self) -> "BmsyncConfig":
        """The default alias must name a configured instance, when any exist."""
        if self.instances and self.default_alias not in self.instances:
            raise ValueError(f"default_alias '{self.default_alias}' is not a configured instance")
        return self

    def get_instance(self, alias: str | None = None) -> InstanceConfig | None:
        """Get an instance by alias, or the default one."""
        return self.instances.get(alias or self.default_alias)
