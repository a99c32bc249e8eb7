import pytest
from pydantic import ValidationError

from odoo_xmlrpc.core.config import ConnectionConfig, Settings, get_settings


def test_settings_defaults() -> None:
    settings = Settings()
    assert settings.url == "http://localhost:8069"
    assert settings.credential_kind == "password"
    assert settings.timeout == 30.0
    assert settings.retry_max_attempts == 3
    assert settings.retry_base_delay == 1.0
    assert settings.retry_max_delay == 30.0
    assert settings.retry_backoff_factor == 2.0
    assert settings.log_level == "INFO"


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("ODOO_TIMEOUT", "15")
    monkeypatch.setenv("odoo_credential_kind", "api_key")
    monkeypatch.setenv("ODOO_RETRY_BACKOFF_FACTOR", "3")

    settings = get_settings()

    assert settings.timeout == 15.0
    assert settings.credential_kind == "api_key"
    assert settings.retry_backoff_factor == 3.0
    assert get_settings() is settings


def test_settings_reject_invalid_values(monkeypatch) -> None:
    monkeypatch.setenv("ODOO_RETRY_MAX_ATTEMPTS", "0")
    with pytest.raises(ValidationError):
        Settings()


def test_connection_config_endpoints_and_credential() -> None:
    config = ConnectionConfig(url="https://erp.example.com//", database="db", username="u",
                              password="pw", api_key="key")
    assert config.url == "https://erp.example.com"
    assert config.common_url == "https://erp.example.com/xmlrpc/2/common"
    assert config.object_url == "https://erp.example.com/xmlrpc/2/object"
    assert config.credential == "pw"
    assert config.model_copy(update={"credential_kind": "api_key"}).credential == "key"


def test_connection_config_is_frozen() -> None:
    config = ConnectionConfig(url="http://x", database="db", username="u")
    with pytest.raises(ValidationError):
        config.database = "other"


def test_connection_config_from_settings() -> None:
    settings = Settings(url="http://erp:8069/", database="demo", username="admin", api_key="k",
                        credential_kind="api_key", timeout=5)
    config = ConnectionConfig.from_settings(settings)
    assert config.url == "http://erp:8069"
    assert config.credential == "k"
    assert config.timeout == 5.0
