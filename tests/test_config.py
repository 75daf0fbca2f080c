import pytest
from pydantic import ValidationError

from identity_api.config import FALLBACK_SECRET_KEY, Settings


def make_settings(**overrides):
    values = {"mail_from": "no-reply@gmail.com", "database_url_override": ""}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_production_refuses_the_fallback_secret():
    with pytest.raises(ValidationError):
        make_settings(environment="production", secret_key=FALLBACK_SECRET_KEY)


def test_production_with_a_real_secret():
    settings = make_settings(environment="Production", secret_key="a-real-secret")
    assert settings.is_production
    assert not settings.uses_fallback_secret


def test_development_tolerates_the_fallback_secret():
    settings = make_settings(environment="development", secret_key=FALLBACK_SECRET_KEY)
    assert settings.uses_fallback_secret


def test_list_settings_are_split_and_trimmed():
    settings = make_settings(cors_origins="http://a.test, http://b.test", allowed_email_domains=" Gmail.com, ,x.com")
    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
    assert settings.allowed_email_domains_list == ["gmail.com", "x.com"]
    assert make_settings(allowed_email_domains="").allowed_email_domains_list == []


def test_database_url():
    settings = make_settings(database_username="u", database_password="p", database_hostname="db",
                             database_port="5433", database_name="identity")
    assert settings.database_url == "postgresql://u:p@db:5433/identity"
    assert make_settings(database_url_override="sqlite://").database_url == "sqlite://"


def test_storage_configured_needs_bucket_and_keys():
    assert not make_settings(s3_bucket="", s3_access_key="", s3_secret_key="", s3_public_base_url="").storage_configured
    assert make_settings(
        s3_bucket="b", s3_access_key="k", s3_secret_key="s", s3_public_base_url="https://cdn.test.local"
    ).storage_configured
