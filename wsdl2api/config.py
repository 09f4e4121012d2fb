"""Runtime configuration, read from the environment (prefix ``WSDL2API_``) or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .projector import Target

SOAP_VERSIONS = ("1.1", "1.2")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WSDL2API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Generation
    wsdl: str = Field(default="", description="WSDL file path or URL")
    output_dir: Path = Field(default=Path("generated"))
    package_name: str = Field(default="client", description="Native client package name")
    targets: Annotated[list[Target], NoDecode] = Field(
        default_factory=lambda: [Target.NATIVE, Target.OPENAPI, Target.TYPESCRIPT],
    )
    client_security: bool = Field(default=True, description="Emit WS-Security setters on the native client")
    generate_mock: bool = Field(default=False, description="Also emit a mock SOAP server under <output_dir>/mock")
    fetch_timeout: float = Field(default=30.0, gt=0)
    ts_timeout_ms: int = Field(default=30000, gt=0)

    # SOAP
    soap_version: str | None = Field(default=None, description="Defaults to the binding's version")
    soap_endpoint: str | None = Field(default=None, description="Overrides the WSDL port address")
    soap_timeout: float | None = Field(default=None, description="None means no timeout")

    # Bridge
    bridge_host: str = "localhost"
    bridge_port: int = Field(default=8080, ge=1, le=65535)

    log_level: str = "INFO"

    @field_validator("targets", mode="before")
    @classmethod
    def parse_targets(cls, value):
        if isinstance(value, str):
            return [t.strip().lower() for t in value.split(",") if t.strip()]
        return value

    @field_validator("soap_version")
    @classmethod
    def validate_soap_version(cls, v):
        if v is not None and v not in SOAP_VERSIONS:
            raise ValueError(f"soap_version must be one of {', '.join(SOAP_VERSIONS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        return v.upper()

    @property
    def bridge_url(self) -> str:
        return f"http://{self.bridge_host}:{self.bridge_port}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
