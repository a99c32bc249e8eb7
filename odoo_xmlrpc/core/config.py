"""
core/config.py
----------------

Client configuration module.

Defines strongly-typed settings loaded from the environment using
``pydantic-settings``.  These settings control the backend location,
credentials, the transport timeout and the retry policy defaults.
Values can be overridden via environment variables prefixed with
``ODOO_`` at deployment time, or bypassed entirely by building a
:class:`ConnectionConfig` by hand.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CredentialKind = Literal["password", "api_key"]

COMMON_PATH = "/xmlrpc/2/common"
OBJECT_PATH = "/xmlrpc/2/object"


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    The structure is flat and uses environment variables prefixed with
    ``ODOO_``.  For example, to override the default exchange timeout
    set ``ODOO_TIMEOUT=15``.
    """

    # Backend and credentials
    url: str = Field("http://localhost:8069", description="Base URL of the backend, without the /xmlrpc path.")
    database: str = Field("", description="Database name sent with every call.")
    username: str = Field("", description="Login used by common.authenticate.")
    password: str = Field("", description="Password, used when credential_kind is 'password'.")
    api_key: str = Field("", description="API key, used when credential_kind is 'api_key'.")
    credential_kind: CredentialKind = Field("password", description="Which secret travels in the password slot.")

    # Transport settings
    timeout: float = Field(30.0, gt=0, description="Hard timeout for one XML-RPC exchange in seconds.")

    # Retry settings
    retry_max_attempts: int = Field(3, ge=1, description="Maximum number of attempts for retried operations.")
    retry_base_delay: float = Field(1.0, ge=0, description="Delay before the first retry in seconds.")
    retry_max_delay: float = Field(30.0, ge=0, description="Upper bound for a single backoff delay in seconds.")
    retry_backoff_factor: float = Field(2.0, gt=1, description="Multiplier applied to the delay after each retry.")

    log_level: str = Field("INFO", description="Level for the odoo_xmlrpc logger.")

    model_config = SettingsConfigDict(env_prefix="ODOO_", env_file=None, case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached instance of the client settings.

    Using a cache prevents parsing the environment on every call.  Tests
    that change the environment should call ``get_settings.cache_clear()``.
    """
    return Settings()


class ConnectionConfig(BaseModel):
    """Explicit configuration for one backend session.

    ``credential_kind`` selects whether ``password`` or ``api_key`` is
    sent in the password slot of ``authenticate`` and ``execute_kw``.
    The wire contract is identical for both.
    """

    url: str
    database: str
    username: str
    password: str = ""
    api_key: str = ""
    credential_kind: CredentialKind = "password"
    timeout: float = Field(30.0, gt=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ConnectionConfig":
        settings = settings or get_settings()
        return cls(
            url=settings.url,
            database=settings.database,
            username=settings.username,
            password=settings.password,
            api_key=settings.api_key,
            credential_kind=settings.credential_kind,
            timeout=settings.timeout,
        )

    @property
    def credential(self) -> str:
        return self.api_key if self.credential_kind == "api_key" else self.password

    @property
    def common_url(self) -> str:
        return f"{self.url}{COMMON_PATH}"

    @property
    def object_url(self) -> str:
        return f"{self.url}{OBJECT_PATH}"
