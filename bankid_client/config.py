from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .client import BankIDClient
from .environment import ClientIdentity, EnvironmentProfile, Production, Sandbox
from .errors import ConfigurationError


class IdentityConfig(BaseModel):
    """Client certificate settings for the production environment."""

    pkcs12_path: Optional[Path] = None
    password: Optional[str] = None
    cert_path: Optional[Path] = None
    key_path: Optional[Path] = None
    key_password: Optional[str] = None


class BankIDConfig(BaseModel):
    """Top-level configuration model."""

    model_config = ConfigDict(validate_assignment=True)

    environment: Literal["test", "production"] = "test"
    timeout: float = 10.0
    base_url: Optional[str] = None
    identity: Optional[IdentityConfig] = None

    def profile(self) -> EnvironmentProfile:
        """Build the environment profile described by this configuration."""
        if self.environment == "test":
            return Sandbox(base_url=self.base_url)

        if self.identity is None:
            raise ConfigurationError("production requires a client identity")
        try:
            identity = ClientIdentity(**self.identity.model_dump())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid client identity: {exc}") from exc
        return Production(identity=identity, base_url=self.base_url)


def load_config(path: Optional[str] = None) -> BankIDConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to BANKID_CONFIG env
            variable or 'bankid.yaml' in the current directory.

    Raises:
        ConfigurationError: If a setting, from the file or the environment,
            has an invalid value.
    """

    config_path = path or os.getenv("BANKID_CONFIG", "bankid.yaml")
    try:
        if os.path.exists(config_path):
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            config = BankIDConfig(**data)
        else:
            config = BankIDConfig()

        env_environment = os.getenv("BANKID_ENVIRONMENT")
        if env_environment:
            config.environment = env_environment.lower()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc

    env_pkcs12 = os.getenv("BANKID_PKCS12_PATH")
    if env_pkcs12:
        config.identity = IdentityConfig(
            pkcs12_path=Path(env_pkcs12),
            password=os.getenv("BANKID_PKCS12_PASSWORD"),
        )
    return config


def get_client(config: Optional[BankIDConfig] = None) -> BankIDClient:
    """Factory function to build a client from configuration."""

    config = config or load_config()
    return BankIDClient(config.profile(), timeout=config.timeout)
