"""Tests for configuration models and YAML loading."""

import pytest
from pydantic import ValidationError

from chroma_rest.config.loader import build_config, load_config, save_config
from chroma_rest.config.schema import BasicAuth, ClientConfig, NoAuth, TokenAuth
from chroma_rest.errors import ConfigurationError


def test_default_config(monkeypatch):
    """Test that default configuration is valid."""
    monkeypatch.delenv("CHROMA_HOST", raising=False)
    monkeypatch.delenv("CHROMA_URL", raising=False)
    config = ClientConfig()

    assert config.url == "http://localhost:8000"
    assert config.tenant == "default_tenant"
    assert config.database == "default_database"
    assert isinstance(config.auth, NoAuth)
    assert config.allow_reset is False


def test_url_from_environment(monkeypatch):
    monkeypatch.setenv("CHROMA_URL", "http://from-url:9000")
    monkeypatch.delenv("CHROMA_HOST", raising=False)
    assert ClientConfig().url == "http://from-url:9000"

    monkeypatch.setenv("CHROMA_HOST", "https://from-host")
    assert ClientConfig().url == "https://from-host"


def test_trailing_slash_stripped():
    assert ClientConfig(url="http://localhost:8000/").url == "http://localhost:8000"


@pytest.mark.parametrize("url", ["localhost:8000", "ftp://host", "http://", "not a url"])
def test_invalid_url_rejected(url):
    with pytest.raises(ValidationError):
        ClientConfig(url=url)


def test_config_is_immutable():
    config = ClientConfig()
    with pytest.raises(ValidationError):
        config.database = "other"


def test_auth_discriminator():
    config = ClientConfig(auth={"method": "token", "token": "abc", "header": "X-Chroma-Token"})
    assert isinstance(config.auth, TokenAuth)
    assert config.auth.header == "X-Chroma-Token"

    config = ClientConfig(auth={"method": "basic", "username": "u", "password": "p"})
    assert isinstance(config.auth, BasicAuth)


def test_unknown_auth_method_rejected():
    with pytest.raises(ValidationError):
        ClientConfig(auth={"method": "oauth", "token": "abc"})


def test_build_config_wraps_validation_errors():
    with pytest.raises(ConfigurationError):
        build_config(timeout=0)


def test_load_missing_file_returns_defaults(tmp_path):
    config = load_config(tmp_path / "missing.yaml")
    assert config.database == "default_database"


def test_load_empty_file_returns_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path).tenant == "default_tenant"


def test_load_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "url: https://chroma.example.com\n"
        "database: prod\n"
        "allow_reset: true\n"
        "auth:\n"
        "  method: token\n"
        "  token: s3cret\n"
    )

    config = load_config(path)

    assert config.url == "https://chroma.example.com"
    assert config.database == "prod"
    assert config.allow_reset is True
    assert isinstance(config.auth, TokenAuth)
    assert config.auth.token == "s3cret"


def test_load_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("url: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_config(path)


def test_load_invalid_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("url: nowhere\n")

    with pytest.raises(ConfigurationError, match="validation failed"):
        load_config(path)


def test_load_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n")

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    config = ClientConfig(
        url="http://db:8000",
        auth=BasicAuth(username="admin", password="pw"),
        timeout=5,
    )

    save_config(config, str(path))

    assert load_config(path) == config
